from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.controllers.permissions import IsOrganizer
from events.exceptions import NotFoundError
from events.service.inventory_service import EventInventoryManager

from .base import EventAdminBaseController


@api_controller(
    "/event-admin/{uuid:event_id}",
    auth=ContextJWTAuth(),
    permissions=[IsOrganizer()],
    tags=["Event Admin"],
    throttle=WriteThrottle(),
)
class EventAdminOrdersController(EventAdminBaseController):
    """Merchandise orders, stock and counters."""

    def _get_registration(self, event: models.Event, registration_id: UUID) -> None:
        if not models.Registration.objects.filter(pk=registration_id, event=event).exists():
            raise NotFoundError("Registration not found.")

    # ---- Orders ----

    @route.get(
        "/orders",
        url_name="list_pending_orders",
        response=PaginatedResponseSchema[schema.OrderSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_pending_orders(self, event_id: UUID) -> QuerySet[models.Registration]:
        """Pending merchandise orders, oldest first."""
        event = self.get_one(event_id)
        return EventInventoryManager().list_pending_orders(event, self.user())

    @route.post(
        "/orders/{uuid:registration_id}/approve",
        url_name="approve_order",
        response={200: schema.OrderSchema, 409: ErrorResponse},
    )
    def approve_order(self, event_id: UUID, registration_id: UUID) -> models.Registration:
        """Approve a pending order.

        Stock is taken from the variant and a ticket is issued. If the variant no longer
        holds enough stock the order stays pending and a 409 is returned.
        """
        event = self.get_one(event_id)
        self._get_registration(event, registration_id)
        return EventInventoryManager().approve(registration_id, self.user())

    @route.post("/orders/{uuid:registration_id}/reject", url_name="reject_order", response=schema.OrderSchema)
    def reject_order(
        self, event_id: UUID, registration_id: UUID, payload: schema.OrderRejectSchema
    ) -> models.Registration:
        """Reject a pending order. Stock is not touched."""
        event = self.get_one(event_id)
        self._get_registration(event, registration_id)
        return EventInventoryManager().reject(registration_id, self.user(), payload.reason)

    # ---- Stock ----

    @route.post("/variants", url_name="add_variant", response={201: schema.MerchandiseVariantSchema})
    def add_variant(
        self, event_id: UUID, payload: schema.MerchandiseVariantCreateSchema
    ) -> tuple[int, models.MerchandiseVariant]:
        """Add a size and color combination with its initial stock."""
        event = self.get_one(event_id)
        return 201, EventInventoryManager().add_variant(event, **payload.model_dump())

    @route.post(
        "/variants/{uuid:variant_id}/restock", url_name="restock_variant", response=schema.MerchandiseVariantSchema
    )
    def restock_variant(
        self, event_id: UUID, variant_id: UUID, payload: schema.RestockSchema
    ) -> models.MerchandiseVariant:
        """Add stock to a variant."""
        event = self.get_one(event_id)
        variant = models.MerchandiseVariant.objects.filter(pk=variant_id, event=event).first()
        if variant is None:
            raise NotFoundError("Variant not found.")
        EventInventoryManager().restock(variant, payload.quantity)
        variant.refresh_from_db()
        return variant

    # ---- Counters ----

    @route.get(
        "/counters",
        url_name="get_event_counters",
        response=schema.EventCountersSchema,
        throttle=UserDefaultThrottle(),
    )
    def get_counters(self, event_id: UUID) -> models.Event:
        """Registration count, revenue, attendance and stock totals."""
        return self.get_one(event_id)

    @route.post("/counters/reconcile", url_name="reconcile_event_counters", response=schema.CounterDriftSchema)
    def reconcile_counters(self, event_id: UUID) -> schema.CounterDriftSchema:
        """Recompute the counters from registrations and stock and return the correction applied."""
        event = self.get_one(event_id)
        drift = EventInventoryManager().reconcile(event)
        return schema.CounterDriftSchema(**drift.__dict__, has_drift=drift.has_drift)
