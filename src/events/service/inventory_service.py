"""Counters and merchandise stock.

EventInventoryManager is the only code that writes Event counters
(registration_count, total_revenue, total_attendance, total_stock) and
MerchandiseVariant.stock_quantity. Every write is a conditional F() update,
so concurrent requests cannot push a counter past its bound.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from accounts.models import FelicityUser
from events import tasks
from events.exceptions import ConflictError, InvalidInputError, NotFoundError, StateError, TicketCollisionError
from events.models import Event, MerchandiseVariant, Registration
from events.models.registration import RegistrationQuerySet
from events.service.access import ensure_event_owner
from events.service.notification_service import notify_on_commit
from events.service.ticket_issuer import TicketContext, TicketIssuer

logger = structlog.get_logger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by organizer."


@dataclass(frozen=True)
class CounterDrift:
    """Difference between stored counters and the values derived from registrations."""

    registration_count: int
    total_revenue: Decimal
    total_attendance: int
    total_stock: int

    @property
    def has_drift(self) -> bool:
        return any((self.registration_count, self.total_revenue, self.total_attendance, self.total_stock))


class EventInventoryManager:
    """Owns event counters and merchandise stock."""

    def __init__(self, issuer: TicketIssuer | None = None) -> None:
        """Initialize the manager with the issuer used to mint tickets on approval."""
        self.issuer = issuer or TicketIssuer()

    # ---- Counters ----

    def reserve_seats(self, event: Event, count: int = 1, revenue: Decimal = Decimal("0")) -> None:
        """Increment registration count and revenue if the event has room for ``count`` more seats.

        Raises:
            ConflictError: if the registration limit would be exceeded. Nothing is written.
        """
        updated = Event.objects.filter(
            pk=event.pk,
            registration_count__lte=F("registration_limit") - count,
        ).update(
            registration_count=F("registration_count") + count,
            total_revenue=F("total_revenue") + revenue,
        )
        if not updated:
            logger.warning("event_capacity_exhausted", event_id=str(event.pk), requested=count)
            raise ConflictError("Event has reached its registration limit.")
        logger.info("seats_reserved", event_id=str(event.pk), count=count, revenue=str(revenue))

    def record_attendance_increment(self, event: Event) -> None:
        """Increment the attendance counter by exactly one."""
        Event.objects.filter(pk=event.pk).update(total_attendance=F("total_attendance") + 1)

    # ---- Stock ----

    @transaction.atomic
    def add_variant(
        self,
        event: Event,
        *,
        size: str,
        color: str,
        stock_quantity: int,
        price: Decimal | None = None,
    ) -> MerchandiseVariant:
        """Create a merchandise variant and add its stock to the event total."""
        if event.event_type != Event.EventType.MERCHANDISE:
            raise InvalidInputError("Only merchandise events have variants.")
        variant = MerchandiseVariant.objects.create(
            event=event, size=size, color=color, stock_quantity=stock_quantity, price=price
        )
        Event.objects.filter(pk=event.pk).update(total_stock=F("total_stock") + stock_quantity)
        logger.info("variant_added", event_id=str(event.pk), variant_id=str(variant.pk), stock=stock_quantity)
        return variant

    @transaction.atomic
    def restock(self, variant: MerchandiseVariant, quantity: int) -> None:
        """Add stock to a variant."""
        if quantity < 1:
            raise InvalidInputError("Restock quantity must be at least 1.")
        MerchandiseVariant.objects.filter(pk=variant.pk).update(stock_quantity=F("stock_quantity") + quantity)
        Event.objects.filter(pk=variant.event_id).update(total_stock=F("total_stock") + quantity)
        logger.info("variant_restocked", variant_id=str(variant.pk), quantity=quantity)

    # ---- Order decisions ----

    def _get_locked_registration(self, registration_id: UUID) -> Registration:
        registration = (
            Registration.objects.select_for_update(of=("self",))
            .select_related("event", "participant", "variant")
            .filter(pk=registration_id)
            .first()
        )
        if registration is None:
            raise NotFoundError("Registration not found.")
        return registration

    @transaction.atomic
    def approve(self, registration_id: UUID, actor: FelicityUser) -> Registration:
        """Approve a pending merchandise order.

        The variant decrement is the inventory gate: it only matches while the
        variant still holds enough stock, so concurrent approvals cannot overdraw it.
        On failure the order stays Pending and nothing is written.

        Raises:
            NotFoundError, AuthorizationError, StateError, ConflictError
        """
        registration = self._get_locked_registration(registration_id)
        event = registration.event
        ensure_event_owner(event, actor)
        if registration.status != Registration.Status.PENDING:
            raise StateError(f"Only pending orders can be approved; this one is {registration.status}.")
        if registration.variant_id is None or not registration.quantity:
            raise StateError("This registration has no merchandise order to approve.")

        quantity = registration.quantity
        decremented = MerchandiseVariant.objects.filter(
            pk=registration.variant_id,
            event_id=event.pk,
            size=registration.order_size,
            color=registration.order_color,
            stock_quantity__gte=quantity,
        ).update(stock_quantity=F("stock_quantity") - quantity)
        if not decremented:
            logger.warning(
                "order_approval_insufficient_stock",
                registration_id=str(registration.pk),
                event_id=str(event.pk),
                quantity=quantity,
            )
            raise ConflictError("Insufficient stock for this order.")

        # Any failure below propagates out of the atomic block and restores the stock.
        Event.objects.filter(pk=event.pk).update(total_stock=F("total_stock") - quantity)
        self.reserve_seats(event, count=1, revenue=registration.amount_paid)

        ticket = self.issuer.issue(TicketContext.for_participant(event, registration.participant))
        registration.ticket_id = ticket.ticket_id
        registration.qr_payload = ticket.payload
        registration.qr_code = ticket.qr_code
        registration.status = Registration.Status.CONFIRMED
        registration.payment_status = Registration.PaymentStatus.COMPLETED
        registration.decided_by = actor
        registration.decided_at = timezone.now()
        try:
            with transaction.atomic():
                registration.save()
        except IntegrityError as e:
            raise TicketCollisionError("Ticket id collision, please retry.") from e

        logger.info(
            "order_approved",
            registration_id=str(registration.pk),
            event_id=str(event.pk),
            ticket_id=registration.ticket_id,
            quantity=quantity,
        )
        notify_on_commit(tasks.send_order_decision, registration_id=str(registration.pk))
        return registration

    @transaction.atomic
    def reject(self, registration_id: UUID, actor: FelicityUser, reason: str = "") -> Registration:
        """Reject a pending order. Stock and counters are left untouched."""
        registration = self._get_locked_registration(registration_id)
        ensure_event_owner(registration.event, actor)
        if registration.status != Registration.Status.PENDING:
            raise StateError(f"Only pending orders can be rejected; this one is {registration.status}.")
        registration.status = Registration.Status.REJECTED
        registration.payment_status = Registration.PaymentStatus.FAILED
        registration.rejection_reason = reason.strip() or DEFAULT_REJECTION_REASON
        registration.decided_by = actor
        registration.decided_at = timezone.now()
        registration.save()
        logger.info("order_rejected", registration_id=str(registration.pk), event_id=str(registration.event_id))
        notify_on_commit(tasks.send_order_decision, registration_id=str(registration.pk))
        return registration

    def list_pending_orders(self, event: Event, actor: FelicityUser) -> RegistrationQuerySet:
        """Pending merchandise orders of an owned event, oldest first."""
        ensure_event_owner(event, actor)
        return Registration.objects.pending_orders().filter(event=event).with_related()

    # ---- Reconciliation ----

    @transaction.atomic
    def reconcile(self, event: Event) -> CounterDrift:
        """Recompute the counters from registrations and stock and write them back.

        Returns:
            The correction applied (derived minus stored) for each counter.
        """
        locked = Event.objects.select_for_update().get(pk=event.pk)
        aggregates = Registration.objects.filter(event=locked).aggregate(
            confirmed=Count("pk", filter=Q(status=Registration.Status.CONFIRMED)),
            revenue=Sum("amount_paid", filter=Q(status=Registration.Status.CONFIRMED)),
            attended=Count("pk", filter=Q(attended=True)),
        )
        stock = MerchandiseVariant.objects.filter(event=locked).aggregate(total=Sum("stock_quantity"))["total"] or 0
        revenue = aggregates["revenue"] or Decimal("0")
        drift = CounterDrift(
            registration_count=aggregates["confirmed"] - locked.registration_count,
            total_revenue=revenue - locked.total_revenue,
            total_attendance=aggregates["attended"] - locked.total_attendance,
            total_stock=stock - locked.total_stock,
        )
        if drift.has_drift:
            Event.objects.filter(pk=locked.pk).update(
                registration_count=aggregates["confirmed"],
                total_revenue=revenue,
                total_attendance=aggregates["attended"],
                total_stock=stock,
            )
            logger.warning("event_counters_reconciled", event_id=str(locked.pk), drift=drift.__dict__)
        return drift
