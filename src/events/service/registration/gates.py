"""Precondition gates for registrations.

Each gate checks one rule and raises a typed error when the rule does not hold.
Strategies compose the gates that apply to their event type.
"""

import abc

from django.utils import timezone

from accounts.models import FelicityUser
from events.exceptions import ConflictError, EligibilityError, StateError
from events.models import Event, Registration


class BaseRegistrationGate(abc.ABC):
    """Abstract Base Class for a composable registration precondition."""

    def __init__(self, event: Event, participant: FelicityUser) -> None:
        """Initialize the gate."""
        self.event = event
        self.participant = participant

    @abc.abstractmethod
    def check(self) -> None:
        """Raise if this gate blocks the registration."""


class EventPublishedGate(BaseRegistrationGate):
    def check(self) -> None:
        """Only published events take registrations."""
        if self.event.status != Event.Status.PUBLISHED:
            raise StateError("This event is not open for registration.")


class DeadlineGate(BaseRegistrationGate):
    def check(self) -> None:
        """The deadline is inclusive."""
        if timezone.now() > self.event.registration_deadline:
            raise ConflictError("The registration deadline has passed.")


class EligibilityRuleGate(BaseRegistrationGate):
    """Matches the participant category against the event's eligibility rule."""

    def check(self) -> None:
        """Check role and category."""
        if self.participant.role != FelicityUser.Role.PARTICIPANT:
            raise EligibilityError("Only participants can register for events.")
        category = self.participant.participant_type
        match self.event.eligibility:
            case Event.Eligibility.IIIT_ONLY if category != FelicityUser.ParticipantType.IIIT:
                raise EligibilityError("This event is open to IIIT participants only.")
            case Event.Eligibility.NON_IIIT_ONLY if category != FelicityUser.ParticipantType.NON_IIIT:
                raise EligibilityError("This event is open to non-IIIT participants only.")


class DuplicateRegistrationGate(BaseRegistrationGate):
    def check(self) -> None:
        """Any earlier registration blocks a new one, whatever its outcome."""
        if Registration.objects.filter(event=self.event, participant=self.participant).exists():
            raise ConflictError("You are already registered for this event.")


class CapacityGate(BaseRegistrationGate):
    def check(self) -> None:
        """Advisory check. The conditional counter increment is authoritative."""
        if not self.event.has_capacity:
            raise ConflictError("Event has reached its registration limit.")


REGISTRATION_GATES: tuple[type[BaseRegistrationGate], ...] = (
    EventPublishedGate,
    DeadlineGate,
    EligibilityRuleGate,
    DuplicateRegistrationGate,
    CapacityGate,
)

TEAM_MEMBER_GATES: tuple[type[BaseRegistrationGate], ...] = (
    EligibilityRuleGate,
    DuplicateRegistrationGate,
)


def run_gates(gates: tuple[type[BaseRegistrationGate], ...], event: Event, participant: FelicityUser) -> None:
    """Run the gates in order. The first failing gate raises."""
    for gate_class in gates:
        gate_class(event, participant).check()
