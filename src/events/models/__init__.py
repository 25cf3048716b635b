from .attendance import AppendOnlyError, AttendanceRecord
from .custom_form import CustomForm, CustomFormField, FieldType
from .event import Event, MerchandiseVariant
from .registration import Registration
from .team import Team, TeamInvite, TeamMember

__all__ = [
    # Events
    "Event",
    "MerchandiseVariant",
    "CustomForm",
    "CustomFormField",
    "FieldType",
    # Registrations
    "Registration",
    # Teams
    "Team",
    "TeamMember",
    "TeamInvite",
    # Attendance
    "AppendOnlyError",
    "AttendanceRecord",
]
