"""Base admin components: link mixins and inlines."""

import typing as t

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from events import models


class ParticipantLinkMixin:
    """Mixin to add a link to the participant."""

    def participant_link(self, obj: t.Any) -> str:
        user = getattr(obj, "participant", getattr(obj, "user", None))
        url = reverse("admin:accounts_felicityuser_change", args=[user.id])  # type: ignore[union-attr]
        return format_html('<a href="{}">{}</a>', url, user.email or user.username)  # type: ignore[union-attr]

    participant_link.short_description = "Participant"  # type: ignore[attr-defined]


class EventLinkMixin:
    """Mixin to add a link to an event."""

    def event_link(self, obj: t.Any) -> str | None:
        if not getattr(obj, "event", None):
            return None
        url = reverse("admin:events_event_change", args=[obj.event.id])
        return format_html('<a href="{}">{}</a>', url, obj.event.name)

    event_link.short_description = "Event"  # type: ignore[attr-defined]


class MerchandiseVariantInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.MerchandiseVariant
    extra = 0
    fields = ["size", "color", "stock_quantity", "price"]
    readonly_fields = ["stock_quantity"]


class TeamMemberInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.TeamMember
    extra = 0
    fields = ["user", "registration", "skip_reason", "created_at"]
    readonly_fields = ["user", "registration", "skip_reason", "created_at"]
    can_delete = False


class TeamInviteInline(admin.TabularInline):  # type: ignore[type-arg]
    model = models.TeamInvite
    extra = 0
    fields = ["invited_email", "status", "expires_at", "accepted_by", "accepted_at"]
    readonly_fields = ["invited_email", "status", "expires_at", "accepted_by", "accepted_at"]
    can_delete = False
