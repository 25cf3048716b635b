import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.db.models.functions import Lower


class FelicityUserQueryset(models.QuerySet["FelicityUser"]):
    """Queryset for FelicityUser."""

    def organizers(self) -> t.Self:
        """Users that can own events."""
        return self.filter(role=FelicityUser.Role.ORGANIZER)

    def participants(self) -> t.Self:
        """Users that can register for events."""
        return self.filter(role=FelicityUser.Role.PARTICIPANT)


class FelicityUserManager(UserManager["FelicityUser"]):
    def get_queryset(self) -> FelicityUserQueryset:
        """Get queryset for FelicityUser."""
        return FelicityUserQueryset(self.model)

    def organizers(self) -> FelicityUserQueryset:
        """Shortcut to the organizers."""
        return self.get_queryset().organizers()


class FelicityUser(AbstractUser):
    class Role(models.TextChoices):
        PARTICIPANT = "participant"
        ORGANIZER = "organizer"
        ADMIN = "admin"

    class ParticipantType(models.TextChoices):
        IIIT = "iiit", "IIIT"
        NON_IIIT = "non_iiit", "Non-IIIT"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PARTICIPANT, db_index=True)
    participant_type = models.CharField(
        max_length=20,
        choices=ParticipantType.choices,
        blank=True,
        default="",
        help_text="Participant category used by event eligibility rules.",
    )
    college_name = models.CharField(max_length=255, blank=True, default="")
    contact_number = models.CharField(max_length=20, blank=True, default="")
    organizer_name = models.CharField(max_length=255, blank=True, default="", help_text="Club or team name")
    organizer_category = models.CharField(max_length=100, blank=True, default="")

    objects = FelicityUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]
        constraints = [
            models.UniqueConstraint(
                Lower("email"),
                name="unique_user_email_ci",
                condition=~models.Q(email=""),
            ),
        ]

    @property
    def display_name(self) -> str:
        """Organizer name for organizers, full name for everyone else."""
        if self.role == self.Role.ORGANIZER and self.organizer_name:
            return self.organizer_name
        return self.get_full_name() or self.username

    @property
    def is_organizer(self) -> bool:
        """Whether this user can own events."""
        return self.role == self.Role.ORGANIZER

    @property
    def is_platform_admin(self) -> bool:
        """Platform admins act as the owner of every event."""
        return self.role == self.Role.ADMIN or self.is_superuser

    def __str__(self) -> str:
        return self.display_name
