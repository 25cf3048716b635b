"""Ticket minting for confirmed registrations."""

import secrets
import typing as t
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog
from django.utils import timezone
from pydantic import BaseModel

from events.utils import render_qr_data_uri

if t.TYPE_CHECKING:
    from accounts.models import FelicityUser
    from events.models import Event

logger = structlog.get_logger(__name__)

TICKET_ID_PREFIX = "TKT-"
TICKET_ID_BYTES = 8

QrEncoder = t.Callable[[dict[str, t.Any]], str]


class TicketContext(BaseModel):
    """Who and what a ticket is for."""

    event_id: UUID
    event_name: str
    participant_id: UUID
    participant_name: str
    participant_email: str

    @classmethod
    def for_participant(cls, event: "Event", participant: "FelicityUser") -> "TicketContext":
        """Build the context for a participant attending an event."""
        return cls(
            event_id=event.pk,
            event_name=event.name,
            participant_id=participant.pk,
            participant_name=participant.get_full_name() or participant.username,
            participant_email=participant.email,
        )


class TicketPayload(TicketContext):
    """The scannable content of a ticket."""

    ticket_id: str
    issued_at: datetime


@dataclass(frozen=True)
class IssuedTicket:
    ticket_id: str
    payload: dict[str, t.Any]
    qr_code: str


def generate_ticket_id() -> str:
    """A ticket id such as ``TKT-9F2A61C0D4E3B7A8``: 64 bits of randomness."""
    return TICKET_ID_PREFIX + secrets.token_hex(TICKET_ID_BYTES).upper()


class TicketIssuer:
    """Mints ticket ids and scannable payloads.

    The issuer does not persist anything. Uniqueness of the id is guaranteed by the
    unique column on Registration; callers translate a violation into a
    TicketCollisionError.
    """

    def __init__(self, encoder: QrEncoder = render_qr_data_uri) -> None:
        """Initialize the issuer with a QR encoder."""
        self.encoder = encoder

    def issue(self, context: TicketContext) -> IssuedTicket:
        """Mint a new ticket for the given context."""
        ticket_id = generate_ticket_id()
        payload = TicketPayload(ticket_id=ticket_id, issued_at=timezone.now(), **context.model_dump()).model_dump(
            mode="json"
        )
        qr_code = self.encoder(payload)
        logger.debug("ticket_minted", ticket_id=ticket_id, event_id=str(context.event_id))
        return IssuedTicket(ticket_id=ticket_id, payload=payload, qr_code=qr_code)
