"""Events admin module.

Django autodiscover will import this module, which triggers registration
of all admin classes via the @admin.register decorators in submodules.
"""

from events.admin.attendance import AttendanceRecordAdmin
from events.admin.event import EventAdmin, MerchandiseVariantAdmin
from events.admin.registration import RegistrationAdmin
from events.admin.team import TeamAdmin, TeamInviteAdmin

__all__ = [
    "EventAdmin",
    "MerchandiseVariantAdmin",
    "RegistrationAdmin",
    "TeamAdmin",
    "TeamInviteAdmin",
    "AttendanceRecordAdmin",
]
