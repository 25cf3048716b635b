import base64
import typing as t
import uuid

import pytest

from events.service.ticket_issuer import TICKET_ID_PREFIX, TicketContext, TicketIssuer, generate_ticket_id


@pytest.fixture
def context() -> TicketContext:
    return TicketContext(
        event_id=uuid.uuid4(),
        event_name="Code Golf",
        participant_id=uuid.uuid4(),
        participant_name="Ada Lovelace",
        participant_email="ada@example.com",
    )


def test_ticket_id_format() -> None:
    ticket_id = generate_ticket_id()

    assert ticket_id.startswith(TICKET_ID_PREFIX)
    suffix = ticket_id.removeprefix(TICKET_ID_PREFIX)
    assert len(suffix) == 16
    assert suffix == suffix.upper()
    int(suffix, 16)


def test_ticket_ids_are_random() -> None:
    assert len({generate_ticket_id() for _ in range(500)}) == 500


def test_payload_carries_context(context: TicketContext) -> None:
    captured: list[dict[str, t.Any]] = []

    def encoder(payload: dict[str, t.Any]) -> str:
        captured.append(payload)
        return "qr"

    ticket = TicketIssuer(encoder=encoder).issue(context)

    assert ticket.qr_code == "qr"
    assert captured == [ticket.payload]
    assert ticket.payload["ticket_id"] == ticket.ticket_id
    assert ticket.payload["event_id"] == str(context.event_id)
    assert ticket.payload["participant_email"] == "ada@example.com"
    assert "issued_at" in ticket.payload


def test_default_encoder_renders_png(context: TicketContext) -> None:
    ticket = TicketIssuer().issue(context)

    prefix = "data:image/png;base64,"
    assert ticket.qr_code.startswith(prefix)
    assert base64.b64decode(ticket.qr_code.removeprefix(prefix)).startswith(b"\x89PNG")


def test_each_issue_mints_a_new_ticket(context: TicketContext) -> None:
    issuer = TicketIssuer(encoder=lambda payload: "qr")

    assert issuer.issue(context).ticket_id != issuer.issue(context).ticket_id
