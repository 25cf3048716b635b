"""Read-only admin for the attendance audit trail."""

from django.contrib import admin

from events import models
from events.admin.base import EventLinkMixin, ParticipantLinkMixin


@admin.register(models.AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin, EventLinkMixin, ParticipantLinkMixin):  # type: ignore[type-arg]
    list_display = ["scanned_at", "event_link", "participant_link", "method", "duplicate", "scanned_by"]
    list_filter = ["method", "duplicate"]
    search_fields = ["participant__email", "registration__ticket_id", "event__name"]
    list_select_related = ["event", "participant", "scanned_by"]
    date_hierarchy = "scanned_at"

    def has_add_permission(self, request) -> bool:  # type: ignore[no-untyped-def]
        return False

    def has_change_permission(self, request, obj=None) -> bool:  # type: ignore[no-untyped-def]
        return False

    def has_delete_permission(self, request, obj=None) -> bool:  # type: ignore[no-untyped-def]
        return False
