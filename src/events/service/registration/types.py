import typing as t
from dataclasses import dataclass, field

from django.core.files.uploadedfile import UploadedFile


@dataclass
class RegistrationRequest:
    """What a participant submits when registering.

    Normal events read ``form_responses``. Merchandise events read the
    variant selection, the quantity and the optional payment proof.
    """

    form_responses: dict[str, t.Any] = field(default_factory=dict)
    size: str | None = None
    color: str | None = None
    quantity: int | None = None
    payment_proof: UploadedFile | None = None
