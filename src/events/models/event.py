import typing as t
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from pydantic import ValidationError as PydanticValidationError

from common.models import TimeStampedModel

from .custom_form import CustomForm

if t.TYPE_CHECKING:
    from accounts.models import FelicityUser

COUNTER_FIELDS = frozenset({"registration_count", "total_revenue", "total_attendance", "total_stock"})


class EventQuerySet(models.QuerySet["Event"]):
    def owned_by(self, user: "FelicityUser") -> t.Self:
        """Events the user may administer. Platform admins see everything."""
        if user.is_platform_admin:
            return self.all()
        return self.filter(organizer=user)

    def published(self) -> t.Self:
        """Events open to registrations."""
        return self.filter(status=Event.Status.PUBLISHED)

    def with_organizer(self) -> t.Self:
        """Select the organizer for serialization."""
        return self.select_related("organizer")


class EventManager(models.Manager["Event"]):
    def get_queryset(self) -> EventQuerySet:
        """Get the EventQuerySet."""
        return EventQuerySet(self.model, using=self._db)

    def owned_by(self, user: "FelicityUser") -> EventQuerySet:
        """Shortcut to EventQuerySet.owned_by."""
        return self.get_queryset().owned_by(user)

    def published(self) -> EventQuerySet:
        """Shortcut to EventQuerySet.published."""
        return self.get_queryset().published()


class Event(TimeStampedModel):
    class EventType(models.TextChoices):
        NORMAL = "normal"
        MERCHANDISE = "merchandise"
        HACKATHON = "hackathon"

    class Status(models.TextChoices):
        DRAFT = "draft"
        PUBLISHED = "published"
        ONGOING = "ongoing"
        COMPLETED = "completed"
        CLOSED = "closed"

    class Eligibility(models.TextChoices):
        IIIT_ONLY = "iiit_only", "IIIT Only"
        NON_IIIT_ONLY = "non_iiit_only", "Non-IIIT Only"
        ALL = "all", "All"

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="organized_events"
    )
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    event_type = models.CharField(max_length=20, choices=EventType.choices, default=EventType.NORMAL, db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)
    eligibility = models.CharField(max_length=20, choices=Eligibility.choices, default=Eligibility.ALL)
    tags = models.JSONField(default=list, blank=True)

    registration_deadline = models.DateTimeField()
    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField()

    registration_limit = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    # Counters. Only EventInventoryManager writes these, through conditional F() updates.
    registration_count = models.PositiveIntegerField(default=0, editable=False)
    total_revenue = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), editable=False)
    total_attendance = models.PositiveIntegerField(default=0, editable=False)

    custom_form = models.JSONField(default=list, blank=True, help_text="List of custom form field definitions.")
    custom_form_locked = models.BooleanField(
        default=False, help_text="Set when the first registration arrives. Never unset."
    )

    # Merchandise
    item_name = models.CharField(max_length=255, blank=True, default="")
    purchase_limit_per_participant = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    total_stock = models.PositiveIntegerField(default=0, editable=False)

    # Hackathon
    max_team_size = models.PositiveSmallIntegerField(default=4, validators=[MinValueValidator(1)])

    objects = EventManager()

    class Meta:
        ordering = ["start"]
        constraints = [
            models.CheckConstraint(
                condition=Q(registration_count__lte=F("registration_limit")),
                name="event_registration_count_within_limit",
            ),
            models.CheckConstraint(condition=Q(end__gte=F("start")), name="event_end_after_start"),
        ]

    def __str__(self) -> str:
        return self.name

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Save the event without touching the counters of an existing row.

        Counters move only through EventInventoryManager, so a stale instance
        must not overwrite them.
        """
        if not self._state.adding and kwargs.get("update_fields") is None:
            kwargs["update_fields"] = [
                f.name for f in self._meta.concrete_fields if not f.primary_key and f.name not in COUNTER_FIELDS
            ]
        super().save(*args, **kwargs)

    def clean(self) -> None:
        """Validate the form definition and keep a locked form frozen."""
        super().clean()
        try:
            CustomForm.from_event_value(self.custom_form)
        except PydanticValidationError as e:
            raise DjangoValidationError({"custom_form": [err["msg"] for err in e.errors()]}) from e
        if self._state.adding:
            return
        stored = Event.objects.filter(pk=self.pk).values("custom_form", "custom_form_locked").first()
        if not stored or not stored["custom_form_locked"]:
            return
        if not self.custom_form_locked:
            raise DjangoValidationError({"custom_form_locked": ["A locked registration form cannot be unlocked."]})
        if stored["custom_form"] != self.custom_form:
            raise DjangoValidationError(
                {"custom_form": ["The registration form is locked after the first registration."]}
            )

    @property
    def form(self) -> CustomForm:
        """The parsed custom form."""
        return CustomForm.from_event_value(self.custom_form)

    @property
    def is_registration_open(self) -> bool:
        """Published and before the deadline."""
        return self.status == self.Status.PUBLISHED and timezone.now() <= self.registration_deadline

    @property
    def has_capacity(self) -> bool:
        """Advisory capacity check against the in-memory counter."""
        return self.registration_count < self.registration_limit

    def is_owned_by(self, user: "FelicityUser") -> bool:
        """Whether the user administers this event."""
        return user.is_platform_admin or self.organizer_id == user.pk


class MerchandiseVariant(TimeStampedModel):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="variants")
    size = models.CharField(max_length=20)
    color = models.CharField(max_length=40)
    stock_quantity = models.PositiveIntegerField(default=0)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, help_text="Overrides the event fee when set."
    )

    class Meta:
        ordering = ["size", "color"]
        constraints = [
            models.UniqueConstraint(fields=["event", "size", "color"], name="unique_variant_per_event"),
            models.CheckConstraint(condition=Q(stock_quantity__gte=0), name="variant_stock_non_negative"),
        ]

    def __str__(self) -> str:
        return f"{self.size}/{self.color}"

    def unit_price(self) -> Decimal:
        """The variant price, falling back to the event fee."""
        return self.price if self.price is not None else self.event.registration_fee
