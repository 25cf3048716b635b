from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.throttling import WriteThrottle
from events import models, schema
from events.controllers.permissions import IsOrganizer
from events.models.event import EventQuerySet
from events.service import event_service

from .user_aware_controller import UserAwareController


@api_controller("/organizer/events", auth=ContextJWTAuth(), permissions=[IsOrganizer()], tags=["Organizer"])
class OrganizerEventController(UserAwareController):
    @route.get("/", url_name="list_my_events", response=PaginatedResponseSchema[schema.OrganizerEventSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_events(self, status: models.Event.Status | None = None) -> EventQuerySet:
        """Events you created, newest first, drafts included."""
        qs = event_service.list_my_events(self.user())
        if status:
            qs = qs.filter(status=status)
        return qs

    @route.post("/", url_name="create_event", response={201: schema.EventDetailSchema}, throttle=WriteThrottle())
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, models.Event]:
        """Create an event as a draft.

        Merchandise events may bring their `variants`; normal events their `custom_form`.
        Publish the draft to open registrations.
        """
        return 201, event_service.create_event(self.user(), payload)
