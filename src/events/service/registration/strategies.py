"""One registration strategy per event type, selected once per request."""

from __future__ import annotations

import abc
import typing as t

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import Sum

from accounts.models import FelicityUser
from events import tasks
from events.exceptions import ConflictError, InvalidInputError
from events.models import Event, Registration
from events.service.notification_service import notify_on_commit

from .forms import validate_form_responses
from .gates import REGISTRATION_GATES, BaseRegistrationGate, run_gates
from .types import RegistrationRequest

if t.TYPE_CHECKING:
    from .ledger import RegistrationLedger

logger = structlog.get_logger(__name__)


class BaseRegistrationStrategy(abc.ABC):
    gates: t.ClassVar[tuple[type[BaseRegistrationGate], ...]] = REGISTRATION_GATES

    def __init__(self, ledger: RegistrationLedger, event: Event, participant: FelicityUser) -> None:
        """Bind the strategy to one registration attempt."""
        self.ledger = ledger
        self.event = event
        self.participant = participant

    def check_preconditions(self) -> None:
        """Run the gates for this event type."""
        run_gates(self.gates, self.event, self.participant)

    @abc.abstractmethod
    def register(self, request: RegistrationRequest) -> Registration:
        """Create the registration for this event type."""


class NormalRegistrationStrategy(BaseRegistrationStrategy):
    """Instant confirmation: the ticket is minted with the registration."""

    def register(self, request: RegistrationRequest) -> Registration:
        """Validate the form, take a seat and issue the ticket in one transaction."""
        self.check_preconditions()
        responses = validate_form_responses(self.event.form, request.form_responses)
        fee = self.event.registration_fee
        with transaction.atomic():
            self.ledger.inventory.reserve_seats(self.event, count=1, revenue=fee)
            self.ledger.lock_form(self.event)
            registration = self.ledger.create_confirmed(
                self.event, self.participant, amount=fee, form_responses=responses
            )
            notify_on_commit(tasks.send_registration_confirmation, registration_id=str(registration.pk))
        return registration


class MerchandiseRegistrationStrategy(BaseRegistrationStrategy):
    """Approval-gated: the order waits for an organizer to check the payment proof."""

    def _check_payment_proof(self, request: RegistrationRequest) -> None:
        proof = request.payment_proof
        if proof is None:
            return
        if proof.size and proof.size > settings.PAYMENT_PROOF_MAX_SIZE_MB * 1024 * 1024:
            raise InvalidInputError(f"Payment proof must be smaller than {settings.PAYMENT_PROOF_MAX_SIZE_MB} MB.")
        content_type = proof.content_type or ""
        if not (content_type.startswith("image/") or content_type == "application/pdf"):
            raise InvalidInputError("Payment proof must be an image or a PDF.")

    def _prior_quantity(self) -> int:
        total = (
            Registration.objects.active()
            .filter(event=self.event, participant=self.participant)
            .aggregate(total=Sum("quantity"))["total"]
        )
        return total or 0

    def register(self, request: RegistrationRequest) -> Registration:
        """Place a pending order after the advisory stock check."""
        self.check_preconditions()
        if not request.size or not request.color:
            raise InvalidInputError("Select a size and a color.")
        if request.quantity is None or request.quantity < 1:
            raise InvalidInputError("Quantity must be at least 1.")
        self._check_payment_proof(request)

        variant = self.event.variants.filter(size=request.size, color=request.color).first()
        if variant is None:
            raise InvalidInputError(f"No variant {request.size}/{request.color} exists for this item.")

        limit = self.event.purchase_limit_per_participant
        if self._prior_quantity() + request.quantity > limit:
            raise InvalidInputError(f"You can buy at most {limit} of this item.")

        # Advisory only: pending orders may overlap. Approval holds the real gate.
        if variant.stock_quantity < request.quantity:
            raise ConflictError("Insufficient stock for this order.")

        registration = Registration(
            event=self.event,
            participant=self.participant,
            status=Registration.Status.PENDING,
            payment_status=Registration.PaymentStatus.PENDING,
            variant=variant,
            order_size=variant.size,
            order_color=variant.color,
            quantity=request.quantity,
            amount_paid=variant.unit_price() * request.quantity,
            payment_proof=request.payment_proof,
        )
        self.ledger.insert(registration)
        logger.info(
            "merchandise_order_placed",
            registration_id=str(registration.pk),
            event_id=str(self.event.pk),
            variant_id=str(variant.pk),
            quantity=request.quantity,
        )
        return registration


class TeamRegistrationStrategy(BaseRegistrationStrategy):
    """Quorum-gated: registrations are created by the team coordinator."""

    def register(self, request: RegistrationRequest) -> Registration:
        """Hackathon participants register by forming or joining a team.

        The shared gates still run, so a participant already registered
        through their team gets a conflict rather than a redirect.
        """
        self.check_preconditions()
        raise InvalidInputError("Hackathon registration happens through teams. Create or join a team instead.")


STRATEGIES: dict[str, type[BaseRegistrationStrategy]] = {
    Event.EventType.NORMAL: NormalRegistrationStrategy,
    Event.EventType.MERCHANDISE: MerchandiseRegistrationStrategy,
    Event.EventType.HACKATHON: TeamRegistrationStrategy,
}
