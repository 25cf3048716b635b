"""Ownership checks shared by the event services."""

from accounts.models import FelicityUser
from events.exceptions import AuthorizationError
from events.models import Event


def ensure_event_owner(event: Event, actor: FelicityUser) -> None:
    """Raise AuthorizationError unless the actor owns the event or is a platform admin."""
    if not event.is_owned_by(actor):
        raise AuthorizationError("You do not manage this event.")
