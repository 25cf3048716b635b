"""iCalendar exports: a participant's confirmed registrations, or a single event."""

from django.conf import settings
from ics import Calendar, Organizer
from ics import Event as ICSEvent

from accounts.models import FelicityUser
from events.models import Event, Registration


def _to_ics_event(registration: Registration) -> ICSEvent:
    event = registration.event
    description = event.description
    if registration.ticket_id:
        description = f"{description}\nTicket: {registration.ticket_id}".strip()
    e = ICSEvent(
        name=event.name,
        begin=event.start,
        end=event.end,
        uid=f"registration-{registration.pk}@felicity",
        description=description or None,
    )
    if registration.ticket_id:
        e.url = f"{settings.FRONTEND_BASE_URL}/ticket/{registration.ticket_id}"
    return e


def export_registrations_ics(participant: FelicityUser) -> str:
    """Build a VCALENDAR with one VEVENT per confirmed registration."""
    registrations = (
        Registration.objects.with_related().for_participant(participant).confirmed().order_by("event__start")
    )
    calendar = Calendar()
    for registration in registrations:
        calendar.events.add(_to_ics_event(registration))
    return str(calendar.serialize())


def export_event_ics(event: Event) -> str:
    calendar = Calendar()
    calendar.events.add(
        ICSEvent(
            name=event.name,
            begin=event.start,
            end=event.end,
            uid=f"event-{event.pk}@felicity",
            description=event.description or None,
            organizer=Organizer(event.organizer.email, common_name=event.organizer.display_name),
            url=f"{settings.FRONTEND_BASE_URL}/events/{event.pk}",
        )
    )
    return str(calendar.serialize())
