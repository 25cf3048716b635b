from django.db.models import QuerySet
from django.http import HttpResponse
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from events import models, schema
from events.service.calendar_service import export_registrations_ics
from events.service.registration import RegistrationLedger

from .user_aware_controller import UserAwareController


@api_controller("/registrations", auth=ContextJWTAuth(), tags=["Registrations"])
class RegistrationController(UserAwareController):
    @route.get("/me", url_name="list_my_registrations", response=PaginatedResponseSchema[schema.RegistrationSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_my_registrations(
        self,
        params: schema.RegistrationFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.Registration]:
        """List the authenticated participant's registrations.

        Filter by `event_type`, `status`, and `window` (`upcoming` or `past`).
        """
        return RegistrationLedger().list_for_participant(
            self.user(),
            event_type=params.event_type,
            status=params.status,
            window=params.window,
        )

    @route.get("/me/calendar.ics", url_name="export_my_calendar")
    def export_calendar(self) -> HttpResponse:
        """Download every confirmed registration as an iCalendar file."""
        response = HttpResponse(export_registrations_ics(self.user()), content_type="text/calendar; charset=utf-8")
        response["Content-Disposition"] = 'attachment; filename="felicity.ics"'
        return response

    @route.get("/tickets/{ticket_id}", url_name="get_ticket", response=schema.TicketSchema)
    def get_ticket(self, ticket_id: str) -> models.Registration:
        """Get a ticket with its QR code. Visible to the holder and the event's organizer."""
        return RegistrationLedger().get_ticket(ticket_id, self.user())
