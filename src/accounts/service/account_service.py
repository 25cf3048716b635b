"""Service layer for participant accounts."""

import structlog
from django.conf import settings
from django.db import transaction
from ninja.errors import HttpError

from accounts import schema
from accounts.models import FelicityUser

logger = structlog.get_logger(__name__)


def is_iiit_email(email: str) -> bool:
    """Whether the email belongs to one of the configured IIIT domains."""
    domain = email.rsplit("@", 1)[-1].lower()
    return domain in {d.lower() for d in settings.IIIT_EMAIL_DOMAINS}


@transaction.atomic
def register_participant(payload: schema.RegisterParticipantSchema) -> FelicityUser:
    """Create a participant account.

    IIIT participants must sign up with an institute email, since event
    eligibility rules trust the participant category.
    """
    email = payload.email.lower()
    logger.info("participant_registration_started", participant_type=payload.participant_type)
    if payload.participant_type == FelicityUser.ParticipantType.IIIT and not is_iiit_email(email):
        logger.warning("participant_registration_domain_mismatch", participant_type=payload.participant_type)
        raise HttpError(400, "IIIT participants must register with an IIIT email address.")
    if FelicityUser.objects.filter(email__iexact=email).exists():
        logger.warning("participant_registration_duplicate")
        raise HttpError(400, "A user with this email already exists.")
    user = FelicityUser.objects.create_user(
        username=email,
        email=email,
        password=payload.password1,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=FelicityUser.Role.PARTICIPANT,
        participant_type=payload.participant_type,
        college_name=payload.college_name,
        contact_number=payload.contact_number,
    )
    logger.info("participant_registration_completed", user_id=str(user.id))
    return user
