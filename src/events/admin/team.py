"""Admin classes for hackathon teams."""

from django.contrib import admin

from events import models
from events.admin.base import EventLinkMixin, TeamInviteInline, TeamMemberInline


@admin.register(models.Team)
class TeamAdmin(admin.ModelAdmin, EventLinkMixin):  # type: ignore[type-arg]
    list_display = ["name", "event_link", "leader", "size", "status", "completed_at"]
    list_filter = ["status"]
    search_fields = ["name", "event__name", "leader__email"]
    readonly_fields = ["join_code", "status", "completed_at"]
    raw_id_fields = ["event", "leader"]
    inlines = [TeamMemberInline, TeamInviteInline]


@admin.register(models.TeamInvite)
class TeamInviteAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["invited_email", "team", "status", "expires_at", "accepted_at"]
    list_filter = ["status"]
    search_fields = ["invited_email", "team__name"]
    readonly_fields = ["code", "accepted_by", "accepted_at"]
    raw_id_fields = ["team", "invited_by"]
