from datetime import timedelta

import pytest
from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone
from freezegun import freeze_time

from accounts.models import FelicityUser
from events.models import Event, Team, TeamInvite, TeamMember

pytestmark = pytest.mark.django_db


@pytest.fixture
def team(hackathon_event: Event, participant: FelicityUser) -> Team:
    team = Team.objects.create(event=hackathon_event, leader=participant, name="Ninjas", size=3)
    TeamMember.objects.create(team=team, event=hackathon_event, user=participant)
    return team


def test_codes_are_generated(team: Team) -> None:
    invite = TeamInvite.objects.create(team=team, invited_email="a@example.com", invited_by=team.leader)

    assert team.join_code
    assert invite.code
    assert invite.code != TeamInvite.objects.create(
        team=team, invited_email="b@example.com", invited_by=team.leader
    ).code


def test_invite_expiry(team: Team) -> None:
    invite = TeamInvite.objects.create(team=team, invited_email="a@example.com", invited_by=team.leader)

    assert not invite.is_expired
    with freeze_time(timezone.now() + timedelta(days=settings.TEAM_INVITE_TTL_DAYS, minutes=1)):
        assert invite.is_expired


def test_one_team_per_event_and_user(team: Team, hackathon_event: Event, participant: FelicityUser) -> None:
    other = Team.objects.create(event=hackathon_event, leader=participant, name="Pirates", size=2)

    with pytest.raises(ValidationError):
        TeamMember.objects.create(team=other, event=hackathon_event, user=participant)


def test_visible_to(
    team: Team, participant: FelicityUser, organizer: FelicityUser, other_organizer: FelicityUser
) -> None:
    assert list(Team.objects.visible_to(participant)) == [team]
    assert list(Team.objects.visible_to(organizer)) == [team]
    assert list(Team.objects.visible_to(other_organizer)) == []
