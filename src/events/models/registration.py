import typing as t
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from common.models import TimeStampedModel

from .event import Event, MerchandiseVariant

if t.TYPE_CHECKING:
    from accounts.models import FelicityUser


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def active(self) -> t.Self:
        """Registrations that hold or may still hold a seat."""
        return self.exclude(status=Registration.Status.REJECTED)

    def confirmed(self) -> t.Self:
        """Registrations with an issued ticket."""
        return self.filter(status=Registration.Status.CONFIRMED)

    def pending_orders(self) -> t.Self:
        """Merchandise orders awaiting an organizer decision, oldest first."""
        return self.filter(
            status=Registration.Status.PENDING,
            event__event_type=Event.EventType.MERCHANDISE,
        ).order_by("created_at")

    def for_participant(self, participant: "FelicityUser") -> t.Self:
        """Registrations belonging to a participant."""
        return self.filter(participant=participant)

    def with_related(self) -> t.Self:
        """Select the objects needed for serialization."""
        return self.select_related("event", "event__organizer", "participant", "variant", "team")


class RegistrationManager(models.Manager["Registration"]):
    def get_queryset(self) -> RegistrationQuerySet:
        """Get the RegistrationQuerySet."""
        return RegistrationQuerySet(self.model, using=self._db)

    def active(self) -> RegistrationQuerySet:
        """Shortcut to RegistrationQuerySet.active."""
        return self.get_queryset().active()

    def confirmed(self) -> RegistrationQuerySet:
        """Shortcut to RegistrationQuerySet.confirmed."""
        return self.get_queryset().confirmed()

    def pending_orders(self) -> RegistrationQuerySet:
        """Shortcut to RegistrationQuerySet.pending_orders."""
        return self.get_queryset().pending_orders()

    def with_related(self) -> RegistrationQuerySet:
        """Shortcut to RegistrationQuerySet.with_related."""
        return self.get_queryset().with_related()


def payment_proof_upload_path(instance: "Registration", filename: str) -> str:
    return f"payment_proofs/{instance.event_id}/{instance.id}/{filename}"


class Registration(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        REJECTED = "rejected"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending"
        COMPLETED = "completed"
        FAILED = "failed"

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="registrations")
    participant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="registrations")
    team = models.ForeignKey(
        "events.Team", on_delete=models.SET_NULL, null=True, blank=True, related_name="registrations"
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    ticket_id = models.CharField(max_length=32, unique=True, null=True, blank=True)
    qr_code = models.TextField(blank=True, default="", help_text="Rendered QR code as a data URI.")
    qr_payload = models.JSONField(null=True, blank=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    form_responses = models.JSONField(default=dict, blank=True)

    # Merchandise order
    variant = models.ForeignKey(
        MerchandiseVariant, on_delete=models.PROTECT, null=True, blank=True, related_name="orders"
    )
    order_size = models.CharField(max_length=20, blank=True, default="")
    order_color = models.CharField(max_length=40, blank=True, default="")
    quantity = models.PositiveIntegerField(null=True, blank=True)
    payment_proof = models.FileField(upload_to=payment_proof_upload_path, null=True, blank=True)

    rejection_reason = models.TextField(blank=True, default="")
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="decided_registrations",
    )
    decided_at = models.DateTimeField(null=True, blank=True)

    attended = models.BooleanField(default=False)
    attended_at = models.DateTimeField(null=True, blank=True)

    objects = RegistrationManager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["event", "participant"], name="unique_registration_per_event_participant"),
            models.CheckConstraint(
                condition=Q(status="confirmed", ticket_id__isnull=False) | ~Q(status="confirmed"),
                name="confirmed_registration_has_ticket",
            ),
        ]
        indexes = [models.Index(fields=["event", "status"], name="registration_event_status_idx")]

    def __str__(self) -> str:
        return f"{self.participant_id} @ {self.event_id} ({self.status})"

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Save without the Python-side uniqueness lookups.

        The (event, participant) pair and the ticket id are unique at the database level.
        Services translate the resulting IntegrityError into a conflict.
        """
        self.full_clean(validate_unique=False, validate_constraints=False)
        super(TimeStampedModel, self).save(*args, **kwargs)

    @property
    def is_merchandise_order(self) -> bool:
        """Whether this registration carries a merchandise order."""
        return self.variant_id is not None
