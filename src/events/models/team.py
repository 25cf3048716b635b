import typing as t
from datetime import datetime, timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event
from .mixins import invite_code, join_code

if t.TYPE_CHECKING:
    from accounts.models import FelicityUser


class TeamQuerySet(models.QuerySet["Team"]):
    def with_members(self) -> t.Self:
        """Prefetch members and invites for serialization."""
        return self.select_related("event", "leader").prefetch_related("memberships__user", "invites")

    def visible_to(self, user: "FelicityUser") -> t.Self:
        """Teams the user belongs to or whose event the user owns."""
        if user.is_platform_admin:
            return self.all()
        return self.filter(models.Q(memberships__user=user) | models.Q(event__organizer=user)).distinct()


class Team(TimeStampedModel):
    class Status(models.TextChoices):
        FORMING = "forming"
        COMPLETE = "complete"
        CANCELLED = "cancelled"

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="teams")
    leader = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="led_teams")
    name = models.CharField(max_length=120)
    size = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    join_code = models.CharField(max_length=16, unique=True, default=join_code, editable=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.FORMING, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    objects = TeamQuerySet.as_manager()

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["event", "name"], name="unique_team_name_per_event"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.event_id})"

    @property
    def member_count(self) -> int:
        """Number of members, leader included."""
        return self.memberships.count()

    def is_member(self, user: "FelicityUser") -> bool:
        """Whether the user has joined this team."""
        return self.memberships.filter(user=user).exists()


class TeamMember(TimeStampedModel):
    """A seat in a team.

    ``event`` duplicates ``team.event`` so that the database can keep a
    participant in at most one team per event.
    """

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="memberships")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="team_memberships")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="team_memberships")
    registration = models.ForeignKey(
        "events.Registration", on_delete=models.SET_NULL, null=True, blank=True, related_name="team_memberships"
    )
    skip_reason = models.TextField(blank=True, default="", help_text="Why registration at quorum skipped this member.")

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="unique_team_member"),
            models.UniqueConstraint(fields=["event", "user"], name="unique_team_per_event_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} in {self.team_id}"

    @property
    def joined_at(self) -> datetime:
        return self.created_at


def default_invite_expiry() -> datetime:
    return timezone.now() + timedelta(days=settings.TEAM_INVITE_TTL_DAYS)


class TeamInvite(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "pending"
        ACCEPTED = "accepted"
        DECLINED = "declined"
        EXPIRED = "expired"

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name="invites")
    invited_email = models.EmailField(db_index=True)
    invited_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sent_team_invites")
    code = models.CharField(max_length=16, unique=True, default=invite_code, editable=False)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    expires_at = models.DateTimeField(default=default_invite_expiry)
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="accepted_team_invites",
    )
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.invited_email} -> {self.team_id} ({self.status})"

    @property
    def is_expired(self) -> bool:
        """Whether the invite can no longer be used because its time ran out."""
        return timezone.now() > self.expires_at
