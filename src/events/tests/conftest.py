"""Fixtures for the events app: one event per type, variants and registrations."""

import typing as t
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from accounts.models import FelicityUser
from events.models import Event, MerchandiseVariant, Registration
from events.service.inventory_service import EventInventoryManager
from events.service.registration import RegistrationLedger, RegistrationRequest
from events.service.ticket_issuer import TicketIssuer


@pytest.fixture
def event_factory(organizer: FelicityUser, next_week: datetime) -> t.Callable[..., Event]:
    """Create published events starting in a week with a deadline a day before."""

    def _create(**kwargs: t.Any) -> Event:
        kwargs.setdefault("organizer", organizer)
        kwargs.setdefault("name", "Felicity Event")
        kwargs.setdefault("status", Event.Status.PUBLISHED)
        kwargs.setdefault("start", next_week)
        kwargs.setdefault("end", kwargs["start"] + timedelta(hours=4))
        kwargs.setdefault("registration_deadline", kwargs["start"] - timedelta(days=1))
        kwargs.setdefault("registration_limit", 10)
        return Event.objects.create(**kwargs)

    return _create


@pytest.fixture
def normal_event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(
        name="Code Golf",
        registration_fee=Decimal("100.00"),
        custom_form=[
            {
                "field_id": "tshirt",
                "field_type": "dropdown",
                "label": "T-shirt",
                "required": True,
                "options": ["S", "M", "L"],
            },
            {"field_id": "github", "field_type": "text", "label": "GitHub handle", "required": False, "order": 1},
        ],
    )


@pytest.fixture
def merch_event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(
        name="Felicity Hoodie",
        event_type=Event.EventType.MERCHANDISE,
        item_name="Hoodie",
        registration_fee=Decimal("500.00"),
        purchase_limit_per_participant=3,
        registration_limit=100,
    )


@pytest.fixture
def variant(merch_event: Event) -> MerchandiseVariant:
    """Size M, black, five in stock."""
    return EventInventoryManager().add_variant(merch_event, size="M", color="Black", stock_quantity=5)


@pytest.fixture
def hackathon_event(event_factory: t.Callable[..., Event]) -> Event:
    return event_factory(
        name="24h Hackathon",
        event_type=Event.EventType.HACKATHON,
        registration_fee=Decimal("50.00"),
        max_team_size=4,
        registration_limit=20,
    )


@pytest.fixture
def ledger() -> RegistrationLedger:
    return RegistrationLedger(issuer=TicketIssuer())


@pytest.fixture
def confirmed_registration(
    ledger: RegistrationLedger, normal_event: Event, participant: FelicityUser
) -> Registration:
    return ledger.register(normal_event, participant, RegistrationRequest(form_responses={"tshirt": "M"}))


@pytest.fixture
def pending_order(
    ledger: RegistrationLedger, merch_event: Event, variant: MerchandiseVariant, participant: FelicityUser
) -> Registration:
    return ledger.register(merch_event, participant, RegistrationRequest(size="M", color="Black", quantity=2))
