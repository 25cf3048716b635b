import typing as t
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from .event import Event
from .registration import Registration


class AppendOnlyError(Exception):
    """Raised on any attempt to change or remove an attendance record."""


class AttendanceRecordQuerySet(models.QuerySet["AttendanceRecord"]):
    def update(self, **kwargs: t.Any) -> int:
        """Attendance records are immutable."""
        raise AppendOnlyError("Attendance records cannot be updated.")

    def delete(self) -> tuple[int, dict[str, int]]:
        """Attendance records are never deleted."""
        raise AppendOnlyError("Attendance records cannot be deleted.")

    def with_related(self) -> t.Self:
        """Select the objects needed for logs and exports."""
        return self.select_related("participant", "scanned_by", "registration")


class AttendanceRecord(models.Model):
    """Append-only audit row for every scan attempt that resolved a ticket."""

    class Method(models.TextChoices):
        MANUAL = "manual"
        CAMERA = "camera"
        API = "api"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="attendance_records")
    registration = models.ForeignKey(Registration, on_delete=models.PROTECT, related_name="attendance_records")
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="attendance_records"
    )
    scanned_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="performed_scans")
    method = models.CharField(max_length=10, choices=Method.choices)
    duplicate = models.BooleanField(default=False)
    reason = models.TextField(blank=True, default="")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=512, blank=True, default="")
    scanned_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = AttendanceRecordQuerySet.as_manager()

    class Meta:
        ordering = ["scanned_at"]

    def __str__(self) -> str:
        return f"{self.method} scan of {self.registration_id}{' (duplicate)' if self.duplicate else ''}"

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Insert only."""
        if not self._state.adding:
            raise AppendOnlyError("Attendance records cannot be updated.")
        self.full_clean()
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, *args: t.Any, **kwargs: t.Any) -> tuple[int, dict[str, int]]:
        """Attendance records are never deleted."""
        raise AppendOnlyError("Attendance records cannot be deleted.")
