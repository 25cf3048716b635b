"""Ticket scanning and the attendance audit trail."""

import csv
import io
import typing as t
from dataclasses import dataclass
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from accounts.models import FelicityUser
from events.exceptions import InvalidInputError, NotFoundError, StateError
from events.models import AttendanceRecord, Event, Registration
from events.service.access import ensure_event_owner
from events.service.inventory_service import EventInventoryManager

logger = structlog.get_logger(__name__)

CSV_HEADERS = [
    "Participant Name",
    "Email",
    "Ticket ID",
    "Scanned By",
    "Method",
    "Duplicate",
    "Reason",
    "IP",
    "User Agent",
    "Scanned At",
]


@dataclass(frozen=True)
class ManualOverride:
    """An organizer marks attendance by hand and must say why."""

    reason: str

    def __post_init__(self) -> None:
        if not self.reason or not self.reason.strip():
            raise InvalidInputError("A manual override requires a reason.")

    @property
    def method(self) -> str:
        return AttendanceRecord.Method.MANUAL


@dataclass(frozen=True)
class AutomaticScan:
    """A ticket read by the camera scanner or submitted through the API."""

    method: t.Literal["camera", "api"] = "camera"

    @property
    def reason(self) -> str:
        return ""


ScanAttempt = ManualOverride | AutomaticScan


def build_scan(method: str, reason: str = "") -> ScanAttempt:
    """Turn a submitted method and reason into a scan attempt."""
    if method == AttendanceRecord.Method.MANUAL:
        return ManualOverride(reason=reason)
    if method not in (AttendanceRecord.Method.CAMERA, AttendanceRecord.Method.API):
        raise InvalidInputError(f"Unknown scan method: {method}.")
    return AutomaticScan(method=t.cast(t.Literal["camera", "api"], str(method)))


@dataclass(frozen=True)
class ClientMetadata:
    ip_address: str | None = None
    user_agent: str = ""


@dataclass(frozen=True)
class ScanResult:
    registration: Registration
    record: AttendanceRecord

    @property
    def duplicate(self) -> bool:
        return self.record.duplicate


class AttendanceRecorder:
    def __init__(self, inventory: EventInventoryManager | None = None) -> None:
        """Initialize the recorder with the manager that owns the attendance counter."""
        self.inventory = inventory or EventInventoryManager()

    @transaction.atomic
    def mark_attendance(
        self,
        ticket_id: str,
        scan: ScanAttempt,
        actor: FelicityUser,
        client: ClientMetadata | None = None,
        event_id: UUID | None = None,
    ) -> ScanResult:
        """Record a scan of a ticket.

        The first scan flips ``attended`` and bumps the attendance counter. Later scans
        succeed as duplicates and change nothing but the audit trail.

        Raises:
            NotFoundError, AuthorizationError, StateError
        """
        client = client or ClientMetadata()
        registration = Registration.objects.select_related("event", "participant").filter(ticket_id=ticket_id).first()
        if registration is None or (event_id is not None and registration.event_id != event_id):
            raise NotFoundError("Ticket not found.")
        ensure_event_owner(registration.event, actor)
        if registration.status != Registration.Status.CONFIRMED:
            raise StateError("Only confirmed registrations can be checked in.")

        now = timezone.now()
        first_scan = bool(
            Registration.objects.filter(pk=registration.pk, attended=False).update(
                attended=True, attended_at=now, updated_at=now
            )
        )
        if first_scan:
            self.inventory.record_attendance_increment(registration.event)

        record = AttendanceRecord.objects.create(
            event=registration.event,
            registration=registration,
            participant=registration.participant,
            scanned_by=actor,
            method=scan.method,
            duplicate=not first_scan,
            reason=scan.reason.strip(),
            ip_address=client.ip_address,
            user_agent=client.user_agent[:512],
            scanned_at=now,
        )
        registration.refresh_from_db(fields=["attended", "attended_at"])
        logger.info(
            "attendance_marked",
            registration_id=str(registration.pk),
            event_id=str(registration.event_id),
            method=scan.method,
            duplicate=record.duplicate,
        )
        return ScanResult(registration=registration, record=record)

    def get_attendance_logs(
        self, event: Event, actor: FelicityUser, duplicate: bool | None = None
    ) -> QuerySet[AttendanceRecord]:
        """The audit trail of an owned event, newest first."""
        ensure_event_owner(event, actor)
        qs = AttendanceRecord.objects.with_related().filter(event=event).order_by("-scanned_at")
        if duplicate is not None:
            qs = qs.filter(duplicate=duplicate)
        return qs

    def export_attendance_csv(self, event: Event, actor: FelicityUser) -> str:
        """Render the audit trail of an owned event as CSV, oldest first."""
        ensure_event_owner(event, actor)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADERS)
        records = AttendanceRecord.objects.with_related().filter(event=event).order_by("scanned_at")
        for record in records.iterator():
            participant = record.participant
            writer.writerow(
                [
                    participant.get_full_name() or participant.username,
                    participant.email,
                    record.registration.ticket_id,
                    record.scanned_by.display_name,
                    record.method,
                    "Yes" if record.duplicate else "No",
                    record.reason,
                    record.ip_address or "",
                    record.user_agent,
                    record.scanned_at.isoformat(),
                ]
            )
        logger.info("attendance_exported", event_id=str(event.pk))
        return buffer.getvalue()
