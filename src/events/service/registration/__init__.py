from .ledger import RegistrationLedger
from .types import RegistrationRequest

__all__ = [
    "RegistrationLedger",
    "RegistrationRequest",
]
