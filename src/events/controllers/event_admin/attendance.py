from uuid import UUID

from django.db.models import QuerySet
from django.http import HttpResponse
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from common.throttling import ScanThrottle
from common.utils import client_metadata
from events import models, schema
from events.controllers.permissions import IsOrganizer
from events.service.attendance_service import AttendanceRecorder, ClientMetadata, build_scan

from .base import EventAdminBaseController


@api_controller(
    "/event-admin/{uuid:event_id}/attendance",
    auth=ContextJWTAuth(),
    permissions=[IsOrganizer()],
    tags=["Event Admin"],
)
class EventAdminAttendanceController(EventAdminBaseController):
    @route.post("/scan", url_name="scan_ticket", response=schema.AttendanceResultSchema, throttle=ScanThrottle())
    def scan_ticket(self, event_id: UUID, payload: schema.AttendanceMarkSchema) -> schema.AttendanceResultSchema:
        """Check a ticket in.

        The first scan marks the participant as attended. Scanning the same ticket again
        succeeds with `duplicate: true` and is logged, but changes nothing else.
        Manual overrides must include a `reason`.
        """
        self.get_one(event_id)
        scan = build_scan(payload.method, payload.reason)
        ip_address, user_agent = client_metadata(self.context.request)
        result = AttendanceRecorder().mark_attendance(
            payload.ticket_id,
            scan,
            self.user(),
            client=ClientMetadata(ip_address=ip_address, user_agent=user_agent),
            event_id=event_id,
        )
        return schema.AttendanceResultSchema.from_orm(result)

    @route.get(
        "/logs",
        url_name="list_attendance_logs",
        response=PaginatedResponseSchema[schema.AttendanceRecordSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_logs(self, event_id: UUID, duplicate: bool | None = None) -> QuerySet[models.AttendanceRecord]:
        """The scan audit trail, newest first. Filter by `duplicate`."""
        event = self.get_one(event_id)
        return AttendanceRecorder().get_attendance_logs(event, self.user(), duplicate=duplicate)

    @route.get("/export", url_name="export_attendance_csv")
    def export_csv(self, event_id: UUID) -> HttpResponse:
        """Download the audit trail as CSV."""
        event = self.get_one(event_id)
        response = HttpResponse(AttendanceRecorder().export_attendance_csv(event, self.user()), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="attendance-{event.pk}.csv"'
        return response
