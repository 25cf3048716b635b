from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI

from accounts.controllers.account import AccountController
from accounts.controllers.auth import AuthController
from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.event_admin import EVENT_ADMIN_CONTROLLERS
from events.controllers.events import EventController
from events.controllers.organizer import OrganizerEventController
from events.controllers.registrations import RegistrationController
from events.controllers.teams import TeamController
from events.exceptions import FelicityError
from events.models import AppendOnlyError

from .exception_handlers import (
    handle_append_only_error,
    handle_database_error,
    handle_django_validation_error,
    handle_felicity_error,
    handle_general_exception,
)

api = NinjaExtraAPI(
    title=f"{settings.SITE_NAME} Backend API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"{settings.SITE_NAME} API {settings.VERSION}",
    app_name=f"felicity-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API."""
    return 200, ResponseOk()


api.register_controllers(
    # Auth/Account controllers
    AuthController,
    AccountController,
    # Participant controllers
    EventController,
    RegistrationController,
    TeamController,
    # Organizer controllers
    OrganizerEventController,
    *EVENT_ADMIN_CONTROLLERS,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    DatabaseError: handle_database_error,
    ValidationError: handle_django_validation_error,
    FelicityError: handle_felicity_error,
    AppendOnlyError: handle_append_only_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
