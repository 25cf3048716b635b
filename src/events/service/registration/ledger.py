import typing as t
from decimal import Decimal

import structlog
from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts.models import FelicityUser
from events.exceptions import AuthorizationError, ConflictError, NotFoundError, TicketCollisionError
from events.models import Event, Registration, Team
from events.models.registration import RegistrationQuerySet
from events.service.inventory_service import EventInventoryManager
from events.service.ticket_issuer import TicketContext, TicketIssuer

from .gates import TEAM_MEMBER_GATES, run_gates
from .strategies import STRATEGIES, BaseRegistrationStrategy
from .types import RegistrationRequest

logger = structlog.get_logger(__name__)

TimeWindow = t.Literal["upcoming", "past"]


class RegistrationLedger:
    """Creates and transitions registrations for every event type.

    The event type picks a strategy (instant, approval-gated or quorum-gated);
    the ledger provides the pieces the strategies share: ticket minting,
    inserts that translate uniqueness violations, and the form lock.
    """

    def __init__(self, issuer: TicketIssuer | None = None, inventory: EventInventoryManager | None = None) -> None:
        """Initialize the ledger with its collaborators."""
        self.issuer = issuer or TicketIssuer()
        self.inventory = inventory or EventInventoryManager(issuer=self.issuer)

    def strategy_for(self, event: Event, participant: FelicityUser) -> BaseRegistrationStrategy:
        """Select the strategy for the event type."""
        return STRATEGIES[event.event_type](self, event, participant)

    def register(
        self, event: Event, participant: FelicityUser, request: RegistrationRequest | None = None
    ) -> Registration:
        """Register a participant for an event.

        Raises:
            InvalidInputError, StateError, ConflictError, EligibilityError
        """
        logger.info(
            "registration_started",
            event_id=str(event.pk),
            event_type=event.event_type,
            participant_id=str(participant.pk),
        )
        registration = self.strategy_for(event, participant).register(request or RegistrationRequest())
        logger.info(
            "registration_created",
            registration_id=str(registration.pk),
            event_id=str(event.pk),
            status=registration.status,
        )
        return registration

    # ---- Team members ----

    def check_team_member(self, event: Event, participant: FelicityUser) -> None:
        """Run the duplicate and eligibility checks that apply to team members."""
        run_gates(TEAM_MEMBER_GATES, event, participant)

    def register_team_member(self, event: Event, participant: FelicityUser, team: Team) -> Registration:
        """Create a confirmed registration for a member of a team that reached quorum.

        Only the team coordinator calls this. Counters are left to the caller,
        which applies them once for the whole batch.
        """
        self.check_team_member(event, participant)
        return self.create_confirmed(event, participant, amount=event.registration_fee, team=team)

    # ---- Shared pieces ----

    def create_confirmed(
        self,
        event: Event,
        participant: FelicityUser,
        *,
        amount: Decimal,
        form_responses: dict[str, t.Any] | None = None,
        team: Team | None = None,
    ) -> Registration:
        """Mint a ticket and insert a Confirmed/Completed registration."""
        ticket = self.issuer.issue(TicketContext.for_participant(event, participant))
        registration = Registration(
            event=event,
            participant=participant,
            team=team,
            status=Registration.Status.CONFIRMED,
            payment_status=Registration.PaymentStatus.COMPLETED,
            ticket_id=ticket.ticket_id,
            qr_payload=ticket.payload,
            qr_code=ticket.qr_code,
            amount_paid=amount,
            form_responses=form_responses or {},
        )
        self.insert(registration)
        return registration

    def insert(self, registration: Registration) -> None:
        """Insert a new registration, translating uniqueness violations.

        Raises:
            ConflictError: the participant already holds a registration for the event.
            TicketCollisionError: the minted ticket id already exists.
        """
        try:
            with transaction.atomic():
                registration.save()
        except IntegrityError as e:
            if Registration.objects.filter(
                event_id=registration.event_id, participant_id=registration.participant_id
            ).exists():
                raise ConflictError("You are already registered for this event.") from e
            if registration.ticket_id and Registration.objects.filter(ticket_id=registration.ticket_id).exists():
                logger.error("ticket_id_collision", ticket_id=registration.ticket_id)
                raise TicketCollisionError("Ticket id collision, please retry.") from e
            raise

    def lock_form(self, event: Event) -> None:
        """Freeze the custom form once registrations start. The flag is never unset."""
        if Event.objects.filter(pk=event.pk, custom_form_locked=False).update(custom_form_locked=True):
            logger.info("custom_form_locked", event_id=str(event.pk))
        event.custom_form_locked = True

    # ---- Queries ----

    def list_for_participant(
        self,
        participant: FelicityUser,
        *,
        event_type: str | None = None,
        status: str | None = None,
        window: TimeWindow | None = None,
    ) -> RegistrationQuerySet:
        """The participant's registrations, newest first."""
        qs = Registration.objects.with_related().for_participant(participant)
        if event_type:
            qs = qs.filter(event__event_type=event_type)
        if status:
            qs = qs.filter(status=status)
        now = timezone.now()
        if window == "upcoming":
            qs = qs.filter(
                event__end__gte=now, event__status__in=[Event.Status.PUBLISHED, Event.Status.ONGOING]
            ).order_by("event__start")
        elif window == "past":
            qs = qs.filter(event__end__lt=now).order_by("-event__start")
        return qs

    def get_ticket(self, ticket_id: str, actor: FelicityUser) -> Registration:
        """The registration behind a ticket, for its holder or the event's owner."""
        registration = Registration.objects.with_related().filter(ticket_id=ticket_id).first()
        if registration is None:
            raise NotFoundError("Ticket not found.")
        if registration.participant_id != actor.pk and not registration.event.is_owned_by(actor):
            raise AuthorizationError("You cannot view this ticket.")
        return registration
