"""Fire-and-forget dispatch of notification tasks."""

import typing as t

import structlog
from django.db import transaction

logger = structlog.get_logger(__name__)


def notify_on_commit(task: t.Any, **kwargs: t.Any) -> None:
    """Queue a celery task once the current transaction commits.

    Nothing is sent for rolled-back work. Dispatch failures are logged and
    swallowed: a notification never fails the operation that caused it.
    """

    def _dispatch() -> None:
        try:
            task.delay(**kwargs)
        except Exception:
            logger.warning("notification_dispatch_failed", task=getattr(task, "name", repr(task)), exc_info=True)

    transaction.on_commit(_dispatch)
