# src/events/management/commands/reconcile_event_counters.py

import typing as t

import structlog
from django.core.management.base import BaseCommand, CommandError

from events.models import Event
from events.service.inventory_service import EventInventoryManager

logger = structlog.get_logger(__name__)


class Command(BaseCommand):
    """Recompute event counters from registrations and merchandise stock.

    Counters are maintained transactionally, so drift means something wrote
    around the inventory manager. Every correction is logged.
    """

    help = "Recompute registration, revenue, attendance and stock counters for events"

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments.

        Args:
            parser: The argument parser.
        """
        parser.add_argument("event_ids", nargs="*", help="Only reconcile these events (default: all)")

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Execute the reconcile_event_counters command."""
        events = Event.objects.all()
        if options["event_ids"]:
            events = events.filter(pk__in=options["event_ids"])
            if events.count() != len(set(options["event_ids"])):
                raise CommandError("One or more events do not exist.")

        manager = EventInventoryManager()
        corrected = 0
        for event in events.iterator():
            drift = manager.reconcile(event)
            if drift.has_drift:
                corrected += 1
                self.stdout.write(self.style.WARNING(f"{event.name}: corrected {drift}"))
        logger.info("event_counters_reconciliation_finished", corrected=corrected)
        self.stdout.write(self.style.SUCCESS(f"Reconciled {corrected} event(s)."))
