from uuid import UUID

from events.controllers.user_aware_controller import UserAwareController
from events.exceptions import NotFoundError
from events.models import Event
from events.models.event import EventQuerySet


class EventBaseController(UserAwareController):
    def get_queryset(self) -> EventQuerySet:
        """Events visible to anyone: everything past the draft stage."""
        return Event.objects.get_queryset().exclude(status=Event.Status.DRAFT).with_organizer()

    def get_one(self, event_id: UUID) -> Event:
        """Fetch a visible event or raise NotFoundError."""
        event = self.get_queryset().filter(pk=event_id).first()
        if event is None:
            raise NotFoundError("Event not found.")
        return event
