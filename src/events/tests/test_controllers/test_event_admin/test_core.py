import typing as t

import orjson
import pytest
from django.shortcuts import reverse  # type: ignore[attr-defined]
from django.test.client import Client

from events.models import Event, Registration

pytestmark = pytest.mark.django_db

TEAM_FIELD = {"field_id": "team", "field_type": "text", "label": "Team name", "required": True}


def _send(client: Client, method: str, url: str, payload: dict[str, t.Any] | None = None) -> t.Any:
    return getattr(client, method)(url, data=orjson.dumps(payload or {}), content_type="application/json")


def _url(name: str, event: Event) -> str:
    return reverse(f"api:{name}", kwargs={"event_id": event.pk})


def test_get_draft_event(organizer_client: Client, event_factory: t.Callable[..., Event]) -> None:
    draft = event_factory(name="Secret Draft", status=Event.Status.DRAFT)

    response = organizer_client.get(_url("get_admin_event", draft))

    assert response.status_code == 200, response.content
    assert response.json()["status"] == Event.Status.DRAFT


def test_update_event(organizer_client: Client, normal_event: Event) -> None:
    response = _send(organizer_client, "patch", _url("update_event", normal_event), {"registration_limit": 42})

    assert response.status_code == 200, response.content
    assert response.json()["registration_limit"] == 42


def test_update_restricted_field_on_published_event(organizer_client: Client, normal_event: Event) -> None:
    response = _send(organizer_client, "patch", _url("update_event", normal_event), {"name": "Renamed"})

    assert response.status_code == 400
    assert response.json() == {"kind": "validation_error", "detail": "Published events cannot change: name."}


def test_invalid_status_transition(organizer_client: Client, event_factory: t.Callable[..., Event]) -> None:
    closed = event_factory(status=Event.Status.CLOSED)

    response = _send(organizer_client, "patch", _url("update_event", closed), {"status": "published"})

    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_state"


def test_publish_event(organizer_client: Client, event_factory: t.Callable[..., Event]) -> None:
    draft = event_factory(status=Event.Status.DRAFT)

    response = _send(organizer_client, "post", _url("publish_event", draft))
    assert response.status_code == 200, response.content
    assert response.json()["status"] == Event.Status.PUBLISHED

    response = _send(organizer_client, "post", _url("publish_event", draft))
    assert response.status_code == 409
    assert response.json()["kind"] == "invalid_state"


def test_update_custom_form(organizer_client: Client, normal_event: Event) -> None:
    response = _send(organizer_client, "put", _url("update_custom_form", normal_event), {"fields": [TEAM_FIELD]})

    assert response.status_code == 200, response.content
    assert [f["field_id"] for f in response.json()["custom_form"]] == ["team"]


def test_update_custom_form_after_first_registration(
    organizer_client: Client, normal_event: Event, confirmed_registration: Registration
) -> None:
    response = _send(organizer_client, "put", _url("update_custom_form", normal_event), {"fields": [TEAM_FIELD]})

    assert response.status_code == 409
    assert response.json() == {
        "kind": "conflict",
        "detail": "The registration form is locked after the first registration.",
    }
    normal_event.refresh_from_db()
    assert [f.field_id for f in normal_event.form.ordered_fields()] == ["tshirt", "github"]


def test_update_custom_form_with_duplicate_ids(organizer_client: Client, normal_event: Event) -> None:
    response = _send(
        organizer_client, "put", _url("update_custom_form", normal_event), {"fields": [TEAM_FIELD, TEAM_FIELD]}
    )

    assert response.status_code == 400
    assert "custom_form" in response.json()["errors"]


def test_other_organizer_is_forbidden(other_organizer_client: Client, normal_event: Event) -> None:
    response = _send(other_organizer_client, "put", _url("update_custom_form", normal_event), {"fields": []})
    assert response.status_code == 403
    assert response.json()["kind"] == "authorization_error"

    response = _send(other_organizer_client, "patch", _url("update_event", normal_event), {"description": "x"})
    assert response.status_code == 403


def test_participants_are_forbidden(participant_client: Client, normal_event: Event) -> None:
    response = _send(participant_client, "patch", _url("update_event", normal_event), {"description": "x"})

    assert response.status_code == 403
