from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.throttling import WriteThrottle
from events import models, schema
from events.exceptions import NotFoundError
from events.service.team_service import TeamFormationCoordinator

from .user_aware_controller import UserAwareController


@api_controller("/teams", auth=ContextJWTAuth(), tags=["Teams"], throttle=WriteThrottle())
class TeamController(UserAwareController):
    """Hackathon team formation."""

    @property
    def coordinator(self) -> TeamFormationCoordinator:
        return TeamFormationCoordinator()

    @route.post("/", url_name="create_team", response={201: schema.TeamSchema})
    def create_team(self, payload: schema.TeamCreateSchema) -> tuple[int, models.Team]:
        """Create a team for a hackathon with yourself as leader.

        A team of size 1 is complete, and registered, right away.
        """
        event = models.Event.objects.filter(pk=payload.event_id).first()
        if event is None:
            raise NotFoundError("Event not found.")
        team = self.coordinator.create_team(event, self.user(), payload.size, payload.name)
        return 201, self.coordinator.get_team(team.pk, self.user())

    @route.get("/{uuid:team_id}", url_name="get_team", response=schema.TeamSchema)
    def get_team(self, team_id: UUID) -> models.Team:
        """Team details with members and invites."""
        return self.coordinator.get_team(team_id, self.user())

    @route.post("/{uuid:team_id}/invites", url_name="invite_to_team", response={201: list[schema.TeamInviteSchema]})
    def invite(self, team_id: UUID, payload: schema.TeamInviteCreateSchema) -> tuple[int, list[models.TeamInvite]]:
        """Invite participants by email. Only the leader of a forming team can invite.

        Addresses that already belong to a member or hold a pending invite are skipped.
        """
        team = self.coordinator.get_team(team_id, self.user())
        return 201, self.coordinator.invite(team, self.user(), [str(email) for email in payload.emails])

    @route.post("/invites/{code}/accept", url_name="accept_team_invite", response=schema.TeamSchema)
    def accept_invite(self, code: str) -> models.Team:
        """Join a team with an invite code.

        The acceptance that fills the team completes it and registers every member.
        """
        team = self.coordinator.accept_invite(code, self.user())
        return self.coordinator.get_team(team.pk, self.user())

    @route.post("/invites/{code}/decline", url_name="decline_team_invite", response=schema.TeamInviteSchema)
    def decline_invite(self, code: str) -> models.TeamInvite:
        """Decline a pending invite."""
        return self.coordinator.decline_invite(code, self.user())

    @route.post("/{uuid:team_id}/retry-registrations", url_name="retry_team_registrations", response=schema.TeamSchema)
    def retry_registrations(self, team_id: UUID) -> models.Team:
        """Register members of a complete team that were skipped when it reached quorum."""
        self.coordinator.retry_skipped_members(team_id, self.user())
        return self.coordinator.get_team(team_id, self.user())
