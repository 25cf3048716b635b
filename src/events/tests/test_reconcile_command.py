import uuid
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from events.models import Event, Registration

pytestmark = pytest.mark.django_db


def test_reconcile_all_events(confirmed_registration: Registration, normal_event: Event, merch_event: Event) -> None:
    Event.objects.filter(pk=normal_event.pk).update(registration_count=5)
    out = StringIO()

    call_command("reconcile_event_counters", stdout=out)

    normal_event.refresh_from_db()
    assert normal_event.registration_count == 1
    assert "Code Golf: corrected" in out.getvalue()
    assert "Reconciled 1 event(s)." in out.getvalue()


def test_reconcile_selected_events(normal_event: Event, merch_event: Event) -> None:
    Event.objects.filter(pk=merch_event.pk).update(total_stock=12)
    out = StringIO()

    call_command("reconcile_event_counters", str(normal_event.pk), stdout=out)

    merch_event.refresh_from_db()
    assert merch_event.total_stock == 12
    assert "Reconciled 0 event(s)." in out.getvalue()


def test_reconcile_unknown_event() -> None:
    with pytest.raises(CommandError):
        call_command("reconcile_event_counters", str(uuid.uuid4()))
