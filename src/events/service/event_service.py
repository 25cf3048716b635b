"""Organizer-side event lifecycle: drafting, editing, publishing and the custom form.

What an organizer may change depends on the status. Drafts are freely editable.
Published events only take description, deadline and limit changes. Later
stages only move forward through the status transitions below.
"""

import typing as t

import structlog
from django.db import transaction
from django.utils import timezone

from accounts.models import FelicityUser
from events.exceptions import ConflictError, InvalidInputError, StateError
from events.models import Event
from events.models.custom_form import CustomFormField
from events.models.event import EventQuerySet
from events.service.access import ensure_event_owner
from events.service.inventory_service import EventInventoryManager

if t.TYPE_CHECKING:
    from events.schema import EventCreateSchema, EventUpdateSchema

logger = structlog.get_logger(__name__)

EDITABLE_WHEN_PUBLISHED = frozenset({"description", "registration_deadline", "registration_limit"})

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    Event.Status.DRAFT: frozenset(),
    Event.Status.PUBLISHED: frozenset({Event.Status.ONGOING, Event.Status.CLOSED}),
    Event.Status.ONGOING: frozenset({Event.Status.COMPLETED, Event.Status.CLOSED}),
    Event.Status.COMPLETED: frozenset({Event.Status.CLOSED}),
    Event.Status.CLOSED: frozenset(),
}


def _check_dates(event: Event) -> None:
    if event.start <= event.registration_deadline:
        raise InvalidInputError("The event must start after the registration deadline.")
    if event.end < event.start:
        raise InvalidInputError("The event cannot end before it starts.")


@transaction.atomic
def create_event(organizer: FelicityUser, payload: "EventCreateSchema") -> Event:
    """Create a draft event, with its merchandise variants when given.

    Raises:
        InvalidInputError: dates out of order, or type-specific data on the wrong event type.
    """
    data = payload.model_dump(exclude={"custom_form", "variants"})
    if payload.custom_form and payload.event_type != Event.EventType.NORMAL:
        raise InvalidInputError("Custom forms are only for normal events.")
    if payload.variants and payload.event_type != Event.EventType.MERCHANDISE:
        raise InvalidInputError("Variants are only for merchandise events.")
    if payload.registration_deadline <= timezone.now():
        raise InvalidInputError("The registration deadline must be in the future.")

    event = Event(
        organizer=organizer,
        status=Event.Status.DRAFT,
        custom_form=[f.model_dump(mode="json") for f in payload.custom_form],
        **data,
    )
    _check_dates(event)
    event.save()

    inventory = EventInventoryManager()
    for variant in payload.variants:
        inventory.add_variant(event, **variant.model_dump())
    event.refresh_from_db()
    logger.info("event_created", event_id=str(event.pk), event_type=event.event_type, organizer_id=str(organizer.pk))
    return event


@transaction.atomic
def update_event(event: Event, actor: FelicityUser, payload: "EventUpdateSchema") -> Event:
    """Apply the changes allowed by the event's current status.

    Raises:
        AuthorizationError, InvalidInputError, StateError
    """
    event = Event.objects.select_for_update().get(pk=event.pk)
    ensure_event_owner(event, actor)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    status = changes.pop("status", None)
    new_status = Event.Status(status).value if status is not None else None

    if event.status == Event.Status.PUBLISHED:
        not_editable = sorted(set(changes) - EDITABLE_WHEN_PUBLISHED)
        if not_editable:
            raise InvalidInputError(f"Published events cannot change: {', '.join(not_editable)}.")
    elif event.status != Event.Status.DRAFT and changes:
        raise InvalidInputError(f"A {event.status} event only accepts status changes.")

    if new_status is not None and new_status != event.status:
        if new_status not in STATUS_TRANSITIONS[event.status]:
            raise StateError(f"An event cannot move from {event.status} to {new_status}.")
        event.status = new_status

    for field, value in changes.items():
        setattr(event, field, value)
    if event.registration_limit < event.registration_count:
        raise InvalidInputError(
            f"The registration limit cannot drop below the {event.registration_count} existing registrations."
        )
    _check_dates(event)
    event.save()
    logger.info("event_updated", event_id=str(event.pk), fields=sorted(changes), status=event.status)
    return event


@transaction.atomic
def publish_event(event: Event, actor: FelicityUser) -> Event:
    """Open a draft for registrations."""
    event = Event.objects.select_for_update().get(pk=event.pk)
    ensure_event_owner(event, actor)
    if event.status != Event.Status.DRAFT:
        raise StateError("Only draft events can be published.")
    event.status = Event.Status.PUBLISHED
    event.save()
    logger.info("event_published", event_id=str(event.pk))
    return event


@transaction.atomic
def update_custom_form(event: Event, actor: FelicityUser, fields: list[CustomFormField]) -> Event:
    """Replace the registration form of a normal event.

    The row lock orders this against the first registration, which locks the form.

    Raises:
        AuthorizationError, InvalidInputError, ConflictError
    """
    event = Event.objects.select_for_update().get(pk=event.pk)
    ensure_event_owner(event, actor)
    if event.event_type != Event.EventType.NORMAL:
        raise InvalidInputError("Custom forms are only for normal events.")
    if event.custom_form_locked:
        raise ConflictError("The registration form is locked after the first registration.")
    event.custom_form = [f.model_dump(mode="json") for f in fields]
    event.save()
    logger.info("custom_form_updated", event_id=str(event.pk), fields=len(fields))
    return event


def list_my_events(organizer: FelicityUser) -> EventQuerySet:
    """Events created by the organizer, newest first, drafts included."""
    return Event.objects.get_queryset().filter(organizer=organizer).with_organizer().order_by("-created_at")
