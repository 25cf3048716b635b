"""Errors raised by the registration, inventory, team and attendance services.

Each error carries a machine-readable ``kind`` and the HTTP status the API
renders it with, so callers can tell failures apart without parsing messages.
"""


class FelicityError(Exception):
    """Base class for domain errors surfaced to the caller."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(FelicityError):
    """Raised when input is missing or malformed."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(FelicityError):
    """Raised when an event, registration, team, invite or ticket does not exist."""

    kind = "not_found"
    status_code = 404


class AuthorizationError(FelicityError):
    """Raised when the actor does not own the resource."""

    kind = "authorization_error"
    status_code = 403


class ConflictError(FelicityError):
    """Raised on duplicates, passed deadlines, exhausted capacity or stock, full teams and consumed invites."""

    kind = "conflict"
    status_code = 409


class StateError(FelicityError):
    """Raised when an entity is not in the status an operation requires."""

    kind = "invalid_state"
    status_code = 409


class EligibilityError(FelicityError):
    """Raised when the participant category does not satisfy the event's eligibility rule."""

    kind = "eligibility_error"
    status_code = 403


class TicketCollisionError(ConflictError):
    """Raised when a freshly minted ticket id already exists. Safe to retry."""

    kind = "ticket_collision"
