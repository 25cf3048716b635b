from uuid import UUID

from events.controllers.user_aware_controller import UserAwareController
from events.exceptions import NotFoundError
from events.models import Event
from events.models.event import EventQuerySet
from events.service.access import ensure_event_owner


class EventAdminBaseController(UserAwareController):
    """Base controller for event admin endpoints.

    Events of other organizers are reported as forbidden rather than missing,
    so a wrong id and a foreign event can be told apart.
    """

    def get_queryset(self) -> EventQuerySet:
        """Every event, with its organizer."""
        return Event.objects.get_queryset().with_organizer()

    def get_one(self, event_id: UUID) -> Event:
        """Fetch an event the user administers."""
        event = self.get_queryset().filter(pk=event_id).first()
        if event is None:
            raise NotFoundError("Event not found.")
        ensure_event_owner(event, self.user())
        return event
