"""Event admin controllers package.

Organizer-facing endpoints, grouped by the part of the event they manage.
"""

from .attendance import EventAdminAttendanceController
from .core import EventAdminCoreController
from .orders import EventAdminOrdersController
from .teams import EventAdminTeamsController

EVENT_ADMIN_CONTROLLERS: list[type] = [
    EventAdminCoreController,
    EventAdminOrdersController,
    EventAdminTeamsController,
    EventAdminAttendanceController,
]

__all__ = [
    "EventAdminCoreController",
    "EventAdminOrdersController",
    "EventAdminTeamsController",
    "EventAdminAttendanceController",
    "EVENT_ADMIN_CONTROLLERS",
]
