import typing as t
from uuid import UUID

from django.http import HttpResponse
from ninja import File, Form, Query
from ninja.files import UploadedFile
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_extra.searching import Searching, searching

from common.authentication import ContextJWTAuth
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.exceptions import InvalidInputError
from events.models.event import EventQuerySet
from events.service.calendar_service import export_event_ics
from events.service.registration import RegistrationLedger, RegistrationRequest

from .base import EventBaseController


@api_controller("/events", tags=["Events"])
class EventController(EventBaseController):
    @route.get("/", url_name="list_events", response=PaginatedResponseSchema[schema.MinimalEventSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    @searching(Searching, search_fields=["name", "description", "organizer__organizer_name"])
    def list_events(
        self,
        event_type: models.Event.EventType | None = None,
        include_closed: bool = False,
    ) -> EventQuerySet:
        """Browse events, soonest first.

        By default only events that are open for registration are listed.
        Set `include_closed` to also see ongoing, completed and closed events.
        """
        qs = self.get_queryset() if include_closed else self.get_queryset().published()
        if event_type:
            qs = qs.filter(event_type=event_type)
        return qs.order_by("start")

    @route.get("/{uuid:event_id}", url_name="get_event", response=schema.EventDetailSchema)
    def get_event(self, event_id: UUID) -> models.Event:
        """Event details, including the registration form and merchandise variants."""
        return self.get_one(event_id)

    @route.get("/{uuid:event_id}/calendar.ics", url_name="export_event_calendar")
    def export_calendar(self, event_id: UUID) -> HttpResponse:
        """Download the event as an iCalendar file."""
        event = self.get_one(event_id)
        response = HttpResponse(export_event_ics(event), content_type="text/calendar; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="event-{event.pk}.ics"'
        return response

    @route.post(
        "/{uuid:event_id}/register",
        url_name="register_for_event",
        response={201: schema.RegistrationSchema, 409: ErrorResponse},
        auth=ContextJWTAuth(),
        throttle=WriteThrottle(),
    )
    def register(self, event_id: UUID, payload: schema.RegistrationCreateSchema) -> tuple[int, models.Registration]:
        """Register for a normal event.

        The answers in `form_responses` are checked against the event's custom form.
        A successful registration is confirmed immediately and carries a ticket.
        """
        event = self.get_one(event_id)
        if event.event_type == models.Event.EventType.MERCHANDISE:
            raise InvalidInputError("Merchandise is bought through the orders endpoint.")
        request = RegistrationRequest(form_responses=payload.form_responses)
        return 201, RegistrationLedger().register(event, self.user(), request)

    @route.post(
        "/{uuid:event_id}/orders",
        url_name="place_merchandise_order",
        response={201: schema.RegistrationSchema, 409: ErrorResponse},
        auth=ContextJWTAuth(),
        throttle=WriteThrottle(),
    )
    def place_order(
        self,
        event_id: UUID,
        payload: Form[schema.MerchandiseOrderSchema],
        payment_proof: File[UploadedFile] | None = None,
    ) -> tuple[int, models.Registration]:
        """Order merchandise.

        Accepts multipart/form-data with `size`, `color`, `quantity` and an optional
        `payment_proof` image. The order stays pending until the organizer approves it.
        """
        event = self.get_one(event_id)
        if event.event_type != models.Event.EventType.MERCHANDISE:
            raise InvalidInputError("Only merchandise events take orders.")
        # Django Ninja doesn't populate the File parameter when using Form[Schema]
        proof = payment_proof or self.context.request.FILES.get("payment_proof")  # type: ignore[union-attr]
        request = RegistrationRequest(
            size=payload.size,
            color=payload.color,
            quantity=payload.quantity,
            payment_proof=t.cast(UploadedFile | None, proof),
        )
        return 201, RegistrationLedger().register(event, self.user(), request)
