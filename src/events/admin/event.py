"""Admin classes for Event and merchandise variants."""

from django.contrib import admin

from events import models
from events.admin.base import EventLinkMixin, MerchandiseVariantInline


@admin.register(models.Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin model for Events.

    Counters are read-only here; run ``reconcile_event_counters`` to repair them.
    """

    list_display = [
        "name",
        "organizer",
        "event_type",
        "status",
        "start",
        "registration_count",
        "registration_limit",
        "total_attendance",
    ]
    list_filter = ["event_type", "status", "eligibility", "start"]
    search_fields = ["name", "organizer__email", "organizer__organizer_name"]
    autocomplete_fields = ["organizer"]
    date_hierarchy = "start"
    inlines = [MerchandiseVariantInline]
    readonly_fields = ["registration_count", "total_revenue", "total_attendance", "total_stock", "custom_form_locked"]
    fieldsets = [
        (
            "Details",
            {"fields": ("organizer", "name", "description", "tags", ("event_type", "status", "eligibility"))},
        ),
        (
            "Schedule",
            {"fields": (("start", "end"), "registration_deadline")},
        ),
        (
            "Registration",
            {"fields": (("registration_limit", "registration_fee"), "custom_form", "custom_form_locked")},
        ),
        (
            "Merchandise",
            {"fields": ("item_name", "purchase_limit_per_participant")},
        ),
        (
            "Hackathon",
            {"fields": ("max_team_size",)},
        ),
        (
            "Counters",
            {"fields": (("registration_count", "total_revenue"), ("total_attendance", "total_stock"))},
        ),
    ]


@admin.register(models.MerchandiseVariant)
class MerchandiseVariantAdmin(admin.ModelAdmin, EventLinkMixin):  # type: ignore[type-arg]
    list_display = ["__str__", "event_link", "stock_quantity", "price"]
    list_filter = ["size", "color"]
    search_fields = ["event__name", "size", "color"]
    readonly_fields = ["stock_quantity"]
