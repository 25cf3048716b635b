from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.controllers.permissions import IsOrganizer
from events.service import event_service

from .base import EventAdminBaseController


@api_controller(
    "/event-admin/{uuid:event_id}",
    auth=ContextJWTAuth(),
    permissions=[IsOrganizer()],
    tags=["Event Admin"],
    throttle=WriteThrottle(),
)
class EventAdminCoreController(EventAdminBaseController):
    """Core event admin operations.

    Handles event edits, publishing and the custom registration form.
    """

    @route.get("", url_name="get_admin_event", response=schema.EventDetailSchema, throttle=UserDefaultThrottle())
    def get_event(self, event_id: UUID) -> models.Event:
        """Event details, drafts included."""
        return self.get_one(event_id)

    @route.patch("", url_name="update_event", response={200: schema.EventDetailSchema, 409: ErrorResponse})
    def update_event(self, event_id: UUID, payload: schema.EventUpdateSchema) -> models.Event:
        """Update an event.

        Drafts accept any field. Published events accept `description`,
        `registration_deadline` and `registration_limit`, and can move to ongoing
        or closed. Later stages only accept status changes.
        """
        event = self.get_one(event_id)
        return event_service.update_event(event, self.user(), payload)

    @route.post("/publish", url_name="publish_event", response={200: schema.EventDetailSchema, 409: ErrorResponse})
    def publish_event(self, event_id: UUID) -> models.Event:
        """Open a draft event for registrations."""
        event = self.get_one(event_id)
        return event_service.publish_event(event, self.user())

    @route.put("/form", url_name="update_custom_form", response={200: schema.EventDetailSchema, 409: ErrorResponse})
    def update_custom_form(self, event_id: UUID, payload: schema.CustomFormUpdateSchema) -> models.Event:
        """Replace the registration form.

        The form locks when the first registration arrives; after that this returns 409.
        """
        event = self.get_one(event_id)
        return event_service.update_custom_form(event, self.user(), payload.fields)
