"""Project-wide fixtures: users, clients and test-run settings."""

import secrets
import string
import typing as t
from datetime import datetime, time, timedelta

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import FelicityUser
from felicity.celery import app as celery_app


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Enable Celery eager mode for tests so tasks execute synchronously."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    celery_app.conf.update(task_always_eager=True, task_eager_propagates=True)


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()


class FelicityUserFactory:
    """Factory for creating FelicityUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> FelicityUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(10)))
        email = kwargs.pop("email", f"{username}@example.com")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return FelicityUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def participant(
        self, participant_type: str = FelicityUser.ParticipantType.NON_IIIT, **kwargs: t.Any
    ) -> FelicityUser:
        kwargs.setdefault("college_name", self.fake.company())
        if participant_type == FelicityUser.ParticipantType.IIIT and "email" not in kwargs:
            kwargs["email"] = f"{self.fake.user_name()}{secrets.randbelow(10_000)}@students.iiit.ac.in"
        return self.create_user(role=FelicityUser.Role.PARTICIPANT, participant_type=participant_type, **kwargs)

    def organizer(self, **kwargs: t.Any) -> FelicityUser:
        kwargs.setdefault("organizer_name", f"{self.fake.word().title()} Club")
        return self.create_user(role=FelicityUser.Role.ORGANIZER, **kwargs)

    def __call__(self, **kwargs: t.Any) -> FelicityUser:
        return self.create_user(**kwargs)


@pytest.fixture
def felicity_user_factory() -> FelicityUserFactory:
    return FelicityUserFactory()


@pytest.fixture
def organizer(felicity_user_factory: FelicityUserFactory) -> FelicityUser:
    """An organizer that owns the test events."""
    return felicity_user_factory.organizer(organizer_name="Coding Club")


@pytest.fixture
def other_organizer(felicity_user_factory: FelicityUserFactory) -> FelicityUser:
    """An organizer that owns nothing used in the test."""
    return felicity_user_factory.organizer()


@pytest.fixture
def participant(felicity_user_factory: FelicityUserFactory) -> FelicityUser:
    """A non-IIIT participant."""
    return felicity_user_factory.participant()


@pytest.fixture
def iiit_participant(felicity_user_factory: FelicityUserFactory) -> FelicityUser:
    """An IIIT participant."""
    return felicity_user_factory.participant(FelicityUser.ParticipantType.IIIT)


@pytest.fixture
def platform_admin(felicity_user_factory: FelicityUserFactory) -> FelicityUser:
    """A platform admin."""
    return felicity_user_factory(role=FelicityUser.Role.ADMIN)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )


def _client_for(user: FelicityUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def client_for() -> t.Callable[[FelicityUser], Client]:
    """Build an API client authenticated as any user."""
    return _client_for


@pytest.fixture
def organizer_client(organizer: FelicityUser) -> Client:
    return _client_for(organizer)


@pytest.fixture
def other_organizer_client(other_organizer: FelicityUser) -> Client:
    return _client_for(other_organizer)


@pytest.fixture
def participant_client(participant: FelicityUser) -> Client:
    return _client_for(participant)
