"""Admin classes for registrations."""

from django.contrib import admin

from events import models
from events.admin.base import EventLinkMixin, ParticipantLinkMixin


@admin.register(models.Registration)
class RegistrationAdmin(admin.ModelAdmin, EventLinkMixin, ParticipantLinkMixin):  # type: ignore[type-arg]
    list_display = [
        "ticket_id",
        "event_link",
        "participant_link",
        "status",
        "payment_status",
        "amount_paid",
        "attended",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "attended", "event__event_type"]
    search_fields = ["ticket_id", "participant__email", "participant__username", "event__name"]
    list_select_related = ["event", "participant"]
    readonly_fields = [
        "ticket_id",
        "qr_payload",
        "status",
        "payment_status",
        "amount_paid",
        "decided_by",
        "decided_at",
        "attended",
        "attended_at",
    ]
    exclude = ["qr_code"]
    raw_id_fields = ["event", "participant", "team", "variant"]

    def has_delete_permission(self, request, obj=None) -> bool:  # type: ignore[no-untyped-def]
        """Registrations are referenced by the attendance audit trail."""
        return False
