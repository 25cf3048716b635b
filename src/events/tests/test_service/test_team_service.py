import typing as t
from datetime import timedelta
from decimal import Decimal

import pytest
from django.conf import settings
from django.utils import timezone
from freezegun import freeze_time

from accounts.models import FelicityUser
from events.exceptions import (
    AuthorizationError,
    ConflictError,
    EligibilityError,
    InvalidInputError,
    NotFoundError,
    StateError,
)
from events.models import Event, Registration, Team, TeamInvite, TeamMember
from events.service.team_service import CAPACITY_SKIP_REASON, TeamFormationCoordinator

pytestmark = pytest.mark.django_db


@pytest.fixture
def coordinator() -> TeamFormationCoordinator:
    return TeamFormationCoordinator()


@pytest.fixture
def members(felicity_user_factory: t.Any) -> list[FelicityUser]:
    return [felicity_user_factory.participant() for _ in range(3)]


def _fill(coordinator: TeamFormationCoordinator, team: Team, users: list[FelicityUser]) -> Team:
    invites = coordinator.invite(team, team.leader, [u.email for u in users])
    for invite, user in zip(invites, users, strict=True):
        team = coordinator.accept_invite(invite.code, user)
    return team


# --- Creation ---


def test_team_of_one_completes_immediately(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, participant: FelicityUser
) -> None:
    team = coordinator.create_team(hackathon_event, participant, size=1, name="Solo")

    assert team.status == Team.Status.COMPLETE
    assert team.completed_at is not None
    registration = Registration.objects.get(event=hackathon_event, participant=participant)
    assert registration.team == team
    assert registration.status == Registration.Status.CONFIRMED
    assert registration.ticket_id is not None
    hackathon_event.refresh_from_db()
    assert hackathon_event.registration_count == 1
    assert hackathon_event.total_revenue == Decimal("50.00")


def test_create_team_requires_a_hackathon(
    coordinator: TeamFormationCoordinator, normal_event: Event, participant: FelicityUser
) -> None:
    with pytest.raises(InvalidInputError):
        coordinator.create_team(normal_event, participant, size=2, name="Wrong event")


@pytest.mark.parametrize("size", [0, 5])
def test_team_size_is_bounded(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, participant: FelicityUser, size: int
) -> None:
    with pytest.raises(InvalidInputError):
        coordinator.create_team(hackathon_event, participant, size=size, name="Bad size")


def test_leader_cannot_lead_two_teams(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, participant: FelicityUser
) -> None:
    coordinator.create_team(hackathon_event, participant, size=3, name="First")

    with pytest.raises(ConflictError):
        coordinator.create_team(hackathon_event, participant, size=3, name="Second")


def test_team_names_are_unique_per_event(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    coordinator.create_team(hackathon_event, members[0], size=3, name="Null Pointers")

    with pytest.raises(ConflictError):
        coordinator.create_team(hackathon_event, members[1], size=3, name="Null Pointers")


def test_organizers_cannot_form_teams(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, organizer: FelicityUser
) -> None:
    with pytest.raises(EligibilityError):
        coordinator.create_team(hackathon_event, organizer, size=2, name="Staff")


# --- Invites ---


def test_only_the_leader_can_invite(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    team = coordinator.create_team(hackathon_event, members[0], size=3, name="Team")

    with pytest.raises(AuthorizationError):
        coordinator.invite(team, members[1], ["someone@example.com"])


def test_invite_deduplicates_addresses(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, participant: FelicityUser
) -> None:
    team = coordinator.create_team(hackathon_event, participant, size=3, name="Team")

    invites = coordinator.invite(team, participant, ["Friend@Example.com", " friend@example.com", participant.email])
    assert [i.invited_email for i in invites] == ["friend@example.com"]

    assert coordinator.invite(team, participant, ["friend@example.com"]) == []


def test_invite_emails_are_sent(
    coordinator: TeamFormationCoordinator,
    hackathon_event: Event,
    participant: FelicityUser,
    django_capture_on_commit_callbacks: t.Any,
    mailoutbox: list[t.Any],
) -> None:
    team = coordinator.create_team(hackathon_event, participant, size=2, name="Mailers")

    with django_capture_on_commit_callbacks(execute=True):
        [invite] = coordinator.invite(team, participant, ["friend@example.com"])

    assert len(mailoutbox) == 1
    assert mailoutbox[0].bcc == ["friend@example.com"]
    assert mailoutbox[0].subject == "Join Mailers for 24h Hackathon"
    assert invite.code in mailoutbox[0].body


def test_unknown_invite_code(coordinator: TeamFormationCoordinator, participant: FelicityUser) -> None:
    with pytest.raises(NotFoundError):
        coordinator.accept_invite("does-not-exist", participant)


def test_expired_invite_cannot_be_used(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    team = coordinator.create_team(hackathon_event, members[0], size=2, name="Slow")
    [invite] = coordinator.invite(team, members[0], [members[1].email])

    with freeze_time(timezone.now() + timedelta(days=settings.TEAM_INVITE_TTL_DAYS, hours=1)):
        with pytest.raises(ConflictError, match="expired"):
            coordinator.accept_invite(invite.code, members[1])

    invite.refresh_from_db()
    assert invite.status == TeamInvite.Status.EXPIRED
    assert not team.is_member(members[1])


def test_decline_invite(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    team = coordinator.create_team(hackathon_event, members[0], size=2, name="Declined")
    [invite] = coordinator.invite(team, members[0], [members[1].email])

    declined = coordinator.decline_invite(invite.code, members[1])

    assert declined.status == TeamInvite.Status.DECLINED
    with pytest.raises(ConflictError):
        coordinator.accept_invite(invite.code, members[1])


def test_only_the_invited_address_can_decline(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    team = coordinator.create_team(hackathon_event, members[0], size=2, name="Guarded")
    [invite] = coordinator.invite(team, members[0], [members[1].email])

    with pytest.raises(AuthorizationError):
        coordinator.decline_invite(invite.code, members[2])

    invite.refresh_from_db()
    assert invite.status == TeamInvite.Status.PENDING
    coordinator.accept_invite(invite.code, members[1])
    assert team.is_member(members[1])


def test_decline_matches_email_case_insensitively(
    coordinator: TeamFormationCoordinator,
    hackathon_event: Event,
    participant: FelicityUser,
    felicity_user_factory: t.Any,
) -> None:
    invited = felicity_user_factory.participant(email="Mixed.Case@Example.com")
    team = coordinator.create_team(hackathon_event, participant, size=2, name="Casing")
    [invite] = coordinator.invite(team, participant, ["MIXED.case@example.COM"])

    assert coordinator.decline_invite(invite.code, invited).status == TeamInvite.Status.DECLINED


def test_member_presenting_an_expired_invite_is_a_no_op(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    leader, joiner, _ = members
    team = coordinator.create_team(hackathon_event, leader, size=3, name="Patient")
    [invite, spare] = coordinator.invite(team, leader, [joiner.email, "spare@example.com"])
    coordinator.accept_invite(invite.code, joiner)

    with freeze_time(timezone.now() + timedelta(days=settings.TEAM_INVITE_TTL_DAYS, hours=1)):
        result = coordinator.accept_invite(spare.code, joiner)

    assert result.pk == team.pk
    assert result.memberships.count() == 2
    spare.refresh_from_db()
    assert spare.status == TeamInvite.Status.ACCEPTED


# --- Quorum ---


def test_quorum_registers_every_member_once(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    leader, *others = members
    team = coordinator.create_team(hackathon_event, leader, size=3, name="Triple")
    [first_invite, second_invite] = coordinator.invite(team, leader, [u.email for u in others])

    team = coordinator.accept_invite(first_invite.code, others[0])
    assert team.status == Team.Status.FORMING
    assert not Registration.objects.filter(event=hackathon_event).exists()

    team = coordinator.accept_invite(second_invite.code, others[1])
    assert team.status == Team.Status.COMPLETE

    registrations = Registration.objects.filter(event=hackathon_event, team=team)
    assert {r.participant_id for r in registrations} == {u.pk for u in members}
    assert len({r.ticket_id for r in registrations}) == 3
    assert all(m.registration_id is not None for m in team.memberships.all())
    hackathon_event.refresh_from_db()
    assert hackathon_event.registration_count == 3
    assert hackathon_event.total_revenue == Decimal("150.00")


def test_accepting_again_as_a_member_is_a_no_op(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    leader, joiner, _ = members
    team = coordinator.create_team(hackathon_event, leader, size=3, name="Repeat")
    [invite, spare] = coordinator.invite(team, leader, [joiner.email, "spare@example.com"])
    coordinator.accept_invite(invite.code, joiner)

    team = coordinator.accept_invite(spare.code, joiner)

    assert team.status == Team.Status.FORMING
    assert team.memberships.count() == 2
    spare.refresh_from_db()
    assert spare.status == TeamInvite.Status.ACCEPTED


def test_complete_team_rejects_further_members(
    coordinator: TeamFormationCoordinator,
    hackathon_event: Event,
    members: list[FelicityUser],
    felicity_user_factory: t.Any,
) -> None:
    """Two participants race for the last seat: one completes the team, the other is turned away."""
    leader, *others = members
    late = felicity_user_factory.participant()
    team = coordinator.create_team(hackathon_event, leader, size=3, name="Full")
    invites = coordinator.invite(team, leader, [others[0].email, others[1].email, late.email])
    coordinator.accept_invite(invites[0].code, others[0])
    coordinator.accept_invite(invites[1].code, others[1])

    with pytest.raises(ConflictError):
        coordinator.accept_invite(invites[2].code, late)

    team.refresh_from_db()
    assert team.status == Team.Status.COMPLETE
    assert team.memberships.count() == 3
    assert Registration.objects.filter(event=hackathon_event, team=team).count() == 3
    assert not Registration.objects.filter(event=hackathon_event, participant=late).exists()
    hackathon_event.refresh_from_db()
    assert hackathon_event.registration_count == 3
    assert hackathon_event.total_revenue == Decimal("150.00")
    invites[2].refresh_from_db()
    assert invites[2].status == TeamInvite.Status.EXPIRED
    with pytest.raises(StateError):
        coordinator.invite(team, leader, ["another@example.com"])


def test_quorum_transition_runs_once(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    leader, *others = members
    team = coordinator.create_team(hackathon_event, leader, size=3, name="Once")
    stale = Team.objects.get(pk=team.pk)
    team = _fill(coordinator, team, others)
    team.refresh_from_db()
    completed_at = team.completed_at
    assert stale.status == Team.Status.FORMING

    coordinator._complete(stale)
    coordinator._complete(team)

    team.refresh_from_db()
    assert team.status == Team.Status.COMPLETE
    assert team.completed_at == completed_at
    assert Registration.objects.filter(event=hackathon_event).count() == 3
    hackathon_event.refresh_from_db()
    assert hackathon_event.registration_count == 3
    assert hackathon_event.total_revenue == Decimal("150.00")


def test_member_of_one_team_cannot_join_another(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, members: list[FelicityUser]
) -> None:
    first = coordinator.create_team(hackathon_event, members[0], size=3, name="First")
    second = coordinator.create_team(hackathon_event, members[1], size=3, name="Second")
    [invite] = coordinator.invite(first, members[0], [members[2].email])
    coordinator.accept_invite(invite.code, members[2])
    [other_invite] = coordinator.invite(second, members[1], [members[2].email])

    with pytest.raises(ConflictError):
        coordinator.accept_invite(other_invite.code, members[2])


def test_capacity_shortfall_skips_members_until_retried(
    coordinator: TeamFormationCoordinator,
    event_factory: t.Callable[..., Event],
    members: list[FelicityUser],
) -> None:
    event = event_factory(event_type=Event.EventType.HACKATHON, max_team_size=4, registration_limit=2)
    leader, *others = members
    team = _fill(coordinator, coordinator.create_team(event, leader, size=3, name="Too many"), others)

    assert team.status == Team.Status.COMPLETE
    assert not Registration.objects.filter(event=event).exists()
    assert set(TeamMember.objects.filter(team=team).values_list("skip_reason", flat=True)) == {CAPACITY_SKIP_REASON}

    Event.objects.filter(pk=event.pk).update(registration_limit=5)
    coordinator.retry_skipped_members(team.pk, leader)

    assert Registration.objects.filter(event=event, team=team).count() == 3
    assert not TeamMember.objects.filter(team=team).exclude(skip_reason="").exists()
    event.refresh_from_db()
    assert event.registration_count == 3


def test_retry_requires_a_complete_team(
    coordinator: TeamFormationCoordinator, hackathon_event: Event, participant: FelicityUser
) -> None:
    team = coordinator.create_team(hackathon_event, participant, size=2, name="Forming")

    with pytest.raises(StateError):
        coordinator.retry_skipped_members(team.pk, participant)


def test_retry_is_limited_to_leader_and_owner(
    coordinator: TeamFormationCoordinator,
    hackathon_event: Event,
    participant: FelicityUser,
    other_organizer: FelicityUser,
    organizer: FelicityUser,
) -> None:
    team = coordinator.create_team(hackathon_event, participant, size=1, name="Solo")

    with pytest.raises(AuthorizationError):
        coordinator.retry_skipped_members(team.pk, other_organizer)
    assert coordinator.retry_skipped_members(team.pk, organizer).status == Team.Status.COMPLETE


# --- Queries ---


def test_get_team_is_limited_to_members_and_owner(
    coordinator: TeamFormationCoordinator,
    hackathon_event: Event,
    members: list[FelicityUser],
    organizer: FelicityUser,
    other_organizer: FelicityUser,
) -> None:
    team = coordinator.create_team(hackathon_event, members[0], size=2, name="Private")

    assert coordinator.get_team(team.pk, members[0]) == team
    assert coordinator.get_team(team.pk, organizer) == team
    with pytest.raises(AuthorizationError):
        coordinator.get_team(team.pk, members[1])
    with pytest.raises(AuthorizationError):
        coordinator.list_teams(hackathon_event, other_organizer)
