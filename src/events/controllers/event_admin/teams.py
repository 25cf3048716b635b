from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import ContextJWTAuth
from events import models, schema
from events.controllers.permissions import IsOrganizer
from events.service.team_service import TeamFormationCoordinator

from .base import EventAdminBaseController


@api_controller(
    "/event-admin/{uuid:event_id}",
    auth=ContextJWTAuth(),
    permissions=[IsOrganizer()],
    tags=["Event Admin"],
)
class EventAdminTeamsController(EventAdminBaseController):
    @route.get("/teams", url_name="list_event_teams", response=PaginatedResponseSchema[schema.TeamSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_teams(self, event_id: UUID, status: models.Team.Status | None = None) -> QuerySet[models.Team]:
        """Every team of a hackathon with members and invites."""
        event = self.get_one(event_id)
        qs = TeamFormationCoordinator().list_teams(event, self.user())
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("created_at")
