"""Team formation for hackathon events.

A team collects members until it reaches its size. The acceptance that fills
the last seat flips the team to Complete and registers every member; that
transition happens once, guarded by a conditional status update.
"""

from decimal import Decimal
from uuid import UUID

import structlog
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from accounts.models import FelicityUser
from events import tasks
from events.exceptions import (
    AuthorizationError,
    ConflictError,
    FelicityError,
    InvalidInputError,
    NotFoundError,
    StateError,
)
from events.models import Event, Registration, Team, TeamInvite, TeamMember
from events.service.access import ensure_event_owner
from events.service.notification_service import notify_on_commit
from events.service.registration import RegistrationLedger

logger = structlog.get_logger(__name__)

CAPACITY_SKIP_REASON = "Event has reached its registration limit."


class TeamFormationCoordinator:
    def __init__(self, ledger: RegistrationLedger | None = None) -> None:
        """Initialize the coordinator with the ledger that registers members at quorum."""
        self.ledger = ledger or RegistrationLedger()

    # ---- Creation and invites ----

    @transaction.atomic
    def create_team(self, event: Event, leader: FelicityUser, size: int, name: str) -> Team:
        """Create a team with the leader as its only member.

        Raises:
            InvalidInputError, StateError, ConflictError, EligibilityError
        """
        if event.event_type != Event.EventType.HACKATHON:
            raise InvalidInputError("Teams can only be formed for hackathon events.")
        if event.status != Event.Status.PUBLISHED:
            raise StateError("This event is not open for registration.")
        if size < 1 or size > event.max_team_size:
            raise InvalidInputError(f"Team size must be between 1 and {event.max_team_size}.")
        if timezone.now() > event.registration_deadline:
            raise ConflictError("The registration deadline has passed.")
        self.ledger.check_team_member(event, leader)
        if TeamMember.objects.filter(event=event, user=leader).exists():
            raise ConflictError("You are already part of a team for this event.")
        if Team.objects.filter(event=event, name=name).exists():
            raise ConflictError("A team with this name already exists for this event.")

        team = Team.objects.create(event=event, leader=leader, size=size, name=name)
        self._add_member(team, leader)
        logger.info("team_created", team_id=str(team.pk), event_id=str(event.pk), size=size)

        if size == 1:
            self._complete(team)
        return team

    @transaction.atomic
    def invite(self, team: Team, actor: FelicityUser, emails: list[str]) -> list[TeamInvite]:
        """Create one single-use invite per new email address. Leader only.

        Addresses that already belong to a member or hold a pending invite are skipped.
        """
        if team.leader_id != actor.pk:
            raise AuthorizationError("Only the team leader can invite members.")
        if team.status != Team.Status.FORMING:
            raise StateError("This team is no longer accepting members.")
        normalized = list(dict.fromkeys(e.strip().lower() for e in emails if e and e.strip()))
        if not normalized:
            raise InvalidInputError("Provide at least one email address.")

        member_emails = {e.lower() for e in team.memberships.values_list("user__email", flat=True)}
        pending_emails = set(
            team.invites.filter(status=TeamInvite.Status.PENDING).values_list("invited_email", flat=True)
        )
        invites = [
            TeamInvite.objects.create(team=team, invited_email=email, invited_by=actor)
            for email in normalized
            if email not in member_emails and email not in pending_emails
        ]
        logger.info(
            "team_invites_created",
            team_id=str(team.pk),
            created=len(invites),
            skipped=len(normalized) - len(invites),
        )
        if invites:
            notify_on_commit(tasks.send_team_invites, invite_ids=[str(i.pk) for i in invites])
        return invites

    def accept_invite(self, code: str, participant: FelicityUser) -> Team:
        """Join a team with an invite code.

        Accepting again as an existing member is a no-op that marks the invite used,
        even when the invite has expired. The acceptance that fills the team
        completes it and registers all members.

        Raises:
            NotFoundError, ConflictError, EligibilityError
        """
        invite = TeamInvite.objects.filter(code=code).first()
        if invite is None:
            raise NotFoundError("Invite not found.")

        with transaction.atomic():
            invite = TeamInvite.objects.select_for_update().get(pk=invite.pk)
            team = Team.objects.select_for_update(of=("self",)).select_related("event").get(pk=invite.team_id)

            if team.is_member(participant):
                if invite.status == TeamInvite.Status.PENDING:
                    self._mark_accepted(invite, participant)
                return team

            if not (invite.status == TeamInvite.Status.PENDING and invite.is_expired):
                self._join(team, invite, participant)
                return team

        # Outside the atomic block so the status change survives the error.
        TeamInvite.objects.filter(pk=invite.pk, status=TeamInvite.Status.PENDING).update(
            status=TeamInvite.Status.EXPIRED, updated_at=timezone.now()
        )
        logger.info("team_invite_expired", invite_id=str(invite.pk))
        raise ConflictError("This invite has expired.")

    def _join(self, team: Team, invite: TeamInvite, participant: FelicityUser) -> None:
        if invite.status != TeamInvite.Status.PENDING:
            raise ConflictError("This invite has already been processed.")
        if team.status != Team.Status.FORMING:
            raise ConflictError("This team is already complete.")
        member_count = team.memberships.count()
        if member_count >= team.size:
            raise ConflictError("This team is full.")
        self.ledger.check_team_member(team.event, participant)
        if TeamMember.objects.filter(event_id=team.event_id, user=participant).exists():
            raise ConflictError("You are already part of a team for this event.")

        self._add_member(team, participant)
        self._mark_accepted(invite, participant)
        logger.info("team_invite_accepted", team_id=str(team.pk), invite_id=str(invite.pk))

        if member_count + 1 == team.size:
            self._complete(team)

    @transaction.atomic
    def decline_invite(self, code: str, participant: FelicityUser) -> TeamInvite:
        """Decline a pending invite. Only the invited address may decline it."""
        invite = TeamInvite.objects.select_for_update().filter(code=code).first()
        if invite is None:
            raise NotFoundError("Invite not found.")
        if participant.email.strip().lower() != invite.invited_email:
            raise AuthorizationError("This invite was sent to a different email address.")
        if invite.status != TeamInvite.Status.PENDING:
            raise ConflictError("This invite has already been processed.")
        invite.status = TeamInvite.Status.DECLINED
        invite.save()
        logger.info("team_invite_declined", invite_id=str(invite.pk), participant_id=str(participant.pk))
        return invite

    # ---- Queries ----

    def get_team(self, team_id: UUID, actor: FelicityUser) -> Team:
        """A team with its members and invites, visible to members and the event owner."""
        team = Team.objects.with_members().filter(pk=team_id).first()
        if team is None:
            raise NotFoundError("Team not found.")
        if not team.is_member(actor) and not team.event.is_owned_by(actor):
            raise AuthorizationError("You cannot view this team.")
        return team

    def list_teams(self, event: Event, actor: FelicityUser) -> QuerySet[Team]:
        """All teams of an owned event."""
        ensure_event_owner(event, actor)
        return Team.objects.with_members().filter(event=event)

    # ---- Quorum ----

    @transaction.atomic
    def retry_skipped_members(self, team_id: UUID, actor: FelicityUser) -> Team:
        """Register the members of a complete team that were skipped at quorum."""
        team = Team.objects.select_for_update(of=("self",)).select_related("event").filter(pk=team_id).first()
        if team is None:
            raise NotFoundError("Team not found.")
        if team.leader_id != actor.pk and not team.event.is_owned_by(actor):
            raise AuthorizationError("Only the team leader or the event organizer can retry registrations.")
        if team.status != Team.Status.COMPLETE:
            raise StateError("Only complete teams have members to register.")
        self._register_members(team)
        return team

    def _add_member(self, team: Team, user: FelicityUser) -> TeamMember:
        try:
            with transaction.atomic():
                return TeamMember.objects.create(team=team, event_id=team.event_id, user=user)
        except IntegrityError as e:
            raise ConflictError("You are already part of a team for this event.") from e

    def _mark_accepted(self, invite: TeamInvite, participant: FelicityUser) -> None:
        invite.status = TeamInvite.Status.ACCEPTED
        invite.accepted_by = participant
        invite.accepted_at = timezone.now()
        invite.save()

    def _complete(self, team: Team) -> None:
        """Flip Forming to Complete and register the members. Runs once per team."""
        flipped = Team.objects.filter(pk=team.pk, status=Team.Status.FORMING).update(
            status=Team.Status.COMPLETE, completed_at=timezone.now(), updated_at=timezone.now()
        )
        if not flipped:
            logger.info("team_quorum_already_reached", team_id=str(team.pk))
            return
        team.refresh_from_db(fields=["status", "completed_at"])
        TeamInvite.objects.filter(team=team, status=TeamInvite.Status.PENDING).update(
            status=TeamInvite.Status.EXPIRED, updated_at=timezone.now()
        )
        logger.info("team_quorum_reached", team_id=str(team.pk), event_id=str(team.event_id))
        self._register_members(team)

    def _register_members(self, team: Team) -> list[Registration]:
        """Best-effort registration of every unregistered member.

        Capacity for the whole batch is checked under the event row lock before
        any member is registered. A member whose registration fails is logged,
        keeps a ``skip_reason``, and can be retried; the others are kept.
        Counters are applied once for the batch.
        """
        event = Event.objects.select_for_update().get(pk=team.event_id)
        memberships = list(team.memberships.select_related("user").filter(registration__isnull=True))

        pending: list[TeamMember] = []
        for membership in memberships:
            existing = Registration.objects.filter(event=event, participant=membership.user).first()
            if existing is not None:
                logger.info(
                    "team_member_already_registered",
                    team_id=str(team.pk),
                    participant_id=str(membership.user_id),
                )
                membership.registration = existing
                membership.skip_reason = ""
                membership.save()
                continue
            pending.append(membership)

        if not pending:
            return []

        free_seats = event.registration_limit - event.registration_count
        if len(pending) > free_seats:
            logger.warning(
                "team_registration_capacity_exhausted",
                team_id=str(team.pk),
                event_id=str(event.pk),
                needed=len(pending),
                free=free_seats,
            )
            for membership in pending:
                membership.skip_reason = CAPACITY_SKIP_REASON
                membership.save()
            return []

        created: list[Registration] = []
        for membership in pending:
            try:
                with transaction.atomic():
                    registration = self.ledger.register_team_member(event, membership.user, team)
            except (FelicityError, DatabaseError) as e:
                logger.warning(
                    "team_member_registration_skipped",
                    team_id=str(team.pk),
                    participant_id=str(membership.user_id),
                    error=str(e),
                    exc_info=True,
                )
                membership.skip_reason = str(e)
                membership.save()
                continue
            membership.registration = registration
            membership.skip_reason = ""
            membership.save()
            created.append(registration)
            notify_on_commit(tasks.send_registration_confirmation, registration_id=str(registration.pk))

        if created:
            self.ledger.inventory.reserve_seats(
                event, count=len(created), revenue=sum((r.amount_paid for r in created), Decimal("0"))
            )
        logger.info(
            "team_members_registered",
            team_id=str(team.pk),
            created=len(created),
            skipped=len(pending) - len(created),
        )
        return created
