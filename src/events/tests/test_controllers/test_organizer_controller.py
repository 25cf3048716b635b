import typing as t
from datetime import datetime, timedelta

import orjson
import pytest
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client

from accounts.models import FelicityUser
from events.models import Event

pytestmark = pytest.mark.django_db


def _post(client: Client, url: str, payload: dict[str, t.Any] | None = None) -> t.Any:
    return client.post(url, data=orjson.dumps(payload or {}), content_type="application/json")


@pytest.fixture
def create_payload(next_week: datetime) -> dict[str, t.Any]:
    return {
        "name": "Felicity Hoodie",
        "event_type": "merchandise",
        "item_name": "Hoodie",
        "registration_deadline": (next_week - timedelta(days=1)).isoformat(),
        "start": next_week.isoformat(),
        "end": (next_week + timedelta(days=2)).isoformat(),
        "registration_limit": 200,
        "registration_fee": "650.00",
        "purchase_limit_per_participant": 2,
        "variants": [{"size": "S", "color": "Navy", "stock_quantity": 30}],
    }


def test_create_event(organizer_client: Client, organizer: FelicityUser, create_payload: dict[str, t.Any]) -> None:
    response = _post(organizer_client, reverse("api:create_event"), create_payload)

    assert response.status_code == 201, response.content
    data = response.json()
    assert data["status"] == Event.Status.DRAFT
    assert data["organizer_name"] == organizer.display_name
    assert [(v["size"], v["stock_quantity"]) for v in data["variants"]] == [("S", 30)]


def test_draft_is_not_public(
    organizer_client: Client, participant_client: Client, create_payload: dict[str, t.Any]
) -> None:
    event_id = _post(organizer_client, reverse("api:create_event"), create_payload).json()["id"]

    assert participant_client.get(reverse("api:get_event", kwargs={"event_id": event_id})).status_code == 404

    _post(organizer_client, reverse("api:publish_event", kwargs={"event_id": event_id}))
    assert participant_client.get(reverse("api:get_event", kwargs={"event_id": event_id})).status_code == 200


def test_create_event_with_bad_dates(organizer_client: Client, create_payload: dict[str, t.Any]) -> None:
    create_payload["end"] = create_payload["registration_deadline"]

    response = _post(organizer_client, reverse("api:create_event"), create_payload)

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"
    assert not Event.objects.exists()


def test_participants_cannot_create_events(participant_client: Client, create_payload: dict[str, t.Any]) -> None:
    response = _post(participant_client, reverse("api:create_event"), create_payload)

    assert response.status_code == 403


def test_list_my_events(
    organizer_client: Client,
    event_factory: t.Callable[..., Event],
    other_organizer: FelicityUser,
) -> None:
    draft = event_factory(name="Draft", status=Event.Status.DRAFT)
    published = event_factory(name="Live")
    event_factory(name="Someone else's", organizer=other_organizer)

    response = organizer_client.get(reverse("api:list_my_events"))

    assert response.status_code == 200, response.content
    assert {e["id"] for e in response.json()["results"]} == {str(draft.pk), str(published.pk)}

    response = organizer_client.get(reverse("api:list_my_events"), {"status": "draft"})
    assert [e["id"] for e in response.json()["results"]] == [str(draft.pk)]
