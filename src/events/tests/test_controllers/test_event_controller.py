import typing as t
from decimal import Decimal

import orjson
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client

from accounts.models import FelicityUser
from events.models import Event, MerchandiseVariant, Registration

pytestmark = pytest.mark.django_db

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# --- GET /events/ ---


def test_list_events_hides_drafts_and_closed(
    client: Client, normal_event: Event, event_factory: t.Callable[..., Event]
) -> None:
    event_factory(name="Draft", status=Event.Status.DRAFT)
    closed = event_factory(name="Closed", status=Event.Status.CLOSED)
    url = reverse("api:list_events")

    response = client.get(url)
    assert response.status_code == 200, response.content
    assert [e["name"] for e in response.json()["results"]] == ["Code Golf"]

    response = client.get(url, {"include_closed": "true"})
    names = {e["name"] for e in response.json()["results"]}
    assert names == {"Code Golf", closed.name}


def test_list_events_filters_and_searches(
    client: Client, normal_event: Event, merch_event: Event, hackathon_event: Event
) -> None:
    url = reverse("api:list_events")

    response = client.get(url, {"event_type": Event.EventType.MERCHANDISE})
    assert [e["id"] for e in response.json()["results"]] == [str(merch_event.pk)]

    response = client.get(url, {"search": "hackathon"})
    assert [e["id"] for e in response.json()["results"]] == [str(hackathon_event.pk)]
    assert response.json()["results"][0]["organizer_name"] == "Coding Club"


# --- GET /events/{id} ---


def test_get_event(client: Client, merch_event: Event, variant: MerchandiseVariant) -> None:
    response = client.get(reverse("api:get_event", kwargs={"event_id": merch_event.pk}))

    assert response.status_code == 200, response.content
    data = response.json()
    assert data["item_name"] == "Hoodie"
    assert data["variants"] == [
        {"id": str(variant.pk), "size": "M", "color": "Black", "stock_quantity": 5, "price": None}
    ]
    assert "total_revenue" not in data


def test_get_event_lists_form_fields_in_order(client: Client, normal_event: Event) -> None:
    response = client.get(reverse("api:get_event", kwargs={"event_id": normal_event.pk}))

    assert [f["field_id"] for f in response.json()["custom_form"]] == ["tshirt", "github"]


def test_draft_event_is_not_found(client: Client, event_factory: t.Callable[..., Event]) -> None:
    draft = event_factory(status=Event.Status.DRAFT)

    response = client.get(reverse("api:get_event", kwargs={"event_id": draft.pk}))

    assert response.status_code == 404
    assert response.json() == {"kind": "not_found", "detail": "Event not found."}


# --- POST /events/{id}/register ---


def test_register(participant_client: Client, normal_event: Event) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": normal_event.pk})

    response = participant_client.post(
        url, data=orjson.dumps({"form_responses": {"tshirt": "L"}}), content_type="application/json"
    )

    assert response.status_code == 201, response.content
    data = response.json()
    assert data["status"] == Registration.Status.CONFIRMED
    assert data["ticket_id"].startswith("TKT-")
    assert data["form_responses"] == {"tshirt": "L"}
    assert data["event"]["id"] == str(normal_event.pk)


def test_register_requires_authentication(client: Client, normal_event: Event) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": normal_event.pk})

    response = client.post(url, data=orjson.dumps({}), content_type="application/json")

    assert response.status_code == 401


@pytest.mark.parametrize(
    "payload,status,kind",
    [
        ({"form_responses": {"tshirt": "XXL"}}, 400, "validation_error"),
        ({"form_responses": {}}, 400, "validation_error"),
    ],
)
def test_register_with_invalid_form(
    participant_client: Client, normal_event: Event, payload: dict[str, t.Any], status: int, kind: str
) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": normal_event.pk})

    response = participant_client.post(url, data=orjson.dumps(payload), content_type="application/json")

    assert response.status_code == status
    assert response.json()["kind"] == kind
    assert not Registration.objects.exists()


def test_register_twice_conflicts(
    participant_client: Client, normal_event: Event, confirmed_registration: Registration
) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": normal_event.pk})

    response = participant_client.post(
        url, data=orjson.dumps({"form_responses": {"tshirt": "L"}}), content_type="application/json"
    )

    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_organizer_cannot_register(organizer_client: Client, normal_event: Event) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": normal_event.pk})

    response = organizer_client.post(
        url, data=orjson.dumps({"form_responses": {"tshirt": "L"}}), content_type="application/json"
    )

    assert response.status_code == 403
    assert response.json()["kind"] == "eligibility_error"


def test_register_for_merchandise_is_rejected(participant_client: Client, merch_event: Event) -> None:
    url = reverse("api:register_for_event", kwargs={"event_id": merch_event.pk})

    response = participant_client.post(url, data=orjson.dumps({}), content_type="application/json")

    assert response.status_code == 400
    assert response.json() == {
        "kind": "validation_error",
        "detail": "Merchandise is bought through the orders endpoint.",
    }
    assert not Registration.objects.exists()


# --- POST /events/{id}/orders ---


def test_place_order_with_payment_proof(
    participant_client: Client,
    merch_event: Event,
    variant: MerchandiseVariant,
    participant: FelicityUser,
    settings: t.Any,
    tmp_path: t.Any,
) -> None:
    settings.MEDIA_ROOT = tmp_path
    url = reverse("api:place_merchandise_order", kwargs={"event_id": merch_event.pk})
    proof = SimpleUploadedFile("proof.png", PNG_BYTES, content_type="image/png")

    response = participant_client.post(url, data={"size": "M", "color": "Black", "quantity": 2, "payment_proof": proof})

    assert response.status_code == 201, response.content
    data = response.json()
    assert data["status"] == Registration.Status.PENDING
    assert data["ticket_id"] is None
    assert Decimal(data["amount_paid"]) == Decimal("1000")
    registration = Registration.objects.get(pk=data["id"])
    assert registration.payment_proof.name.endswith("proof.png")
    variant.refresh_from_db()
    assert variant.stock_quantity == 5


def test_place_order_for_unknown_variant(
    participant_client: Client, merch_event: Event, variant: MerchandiseVariant
) -> None:
    url = reverse("api:place_merchandise_order", kwargs={"event_id": merch_event.pk})

    response = participant_client.post(url, data={"size": "XL", "color": "Black", "quantity": 1})

    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_place_order_above_purchase_limit(
    participant_client: Client, merch_event: Event, variant: MerchandiseVariant
) -> None:
    url = reverse("api:place_merchandise_order", kwargs={"event_id": merch_event.pk})

    response = participant_client.post(url, data={"size": "M", "color": "Black", "quantity": 4})

    assert response.status_code == 400
    assert "at most 3" in response.json()["detail"]
    assert not Registration.objects.exists()


def test_place_order_for_normal_event_is_rejected(
    participant_client: Client, event_factory: t.Callable[..., Event]
) -> None:
    event = event_factory(name="Open Mic")
    assert event.form.fields == []
    url = reverse("api:place_merchandise_order", kwargs={"event_id": event.pk})

    response = participant_client.post(url, data={"size": "M", "color": "Black", "quantity": 1})

    assert response.status_code == 400
    assert response.json()["detail"] == "Only merchandise events take orders."
    assert not Registration.objects.exists()
    event.refresh_from_db()
    assert event.registration_count == 0


def test_export_event_calendar(client: Client, normal_event: Event) -> None:
    response = client.get(reverse("api:export_event_calendar", kwargs={"event_id": normal_event.pk}))

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/calendar")
    assert f'filename="event-{normal_event.pk}.ics"' in response["Content-Disposition"]
    body = response.content.decode()
    assert body.count("BEGIN:VEVENT") == 1
    assert f"UID:event-{normal_event.pk}@felicity" in body
    assert "SUMMARY:Code Golf" in body


def test_export_draft_event_calendar(client: Client, event_factory: t.Callable[..., Event]) -> None:
    draft = event_factory(status=Event.Status.DRAFT)

    response = client.get(reverse("api:export_event_calendar", kwargs={"event_id": draft.pk}))

    assert response.status_code == 404
