"""Exception handlers for the API.

Domain errors are rendered as ``{"kind": ..., "detail": ...}`` with the status
the error class declares. Anything unexpected becomes a generic 500.
"""

import traceback
import typing as t
from copy import deepcopy

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import FelicityError
from events.models import AppendOnlyError

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    logger.exception(
        "internal_server_error",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
        query=obfuscate(request.GET.dict()),
    )
    data = {"kind": "internal_error", "detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_felicity_error(request: HttpRequest, exc: FelicityError | t.Type[FelicityError]) -> Response:
    """Render a domain error with its kind and status."""
    assert isinstance(exc, FelicityError)
    if exc.status_code >= 500:  # pragma: no cover
        logger.error("domain_error", kind=exc.kind, detail=exc.message, path=request.path)
    else:
        logger.info("domain_error", kind=exc.kind, detail=exc.message, path=request.path)
    return Response(status=exc.status_code, data={"kind": exc.kind, "detail": exc.message})


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    assert isinstance(exc, ValidationError)
    logger.warning("validation_error", path=request.path, messages=exc.messages)
    if hasattr(exc, "error_dict"):
        errors = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        errors = {"__all__": exc.messages}
    return Response(status=400, data={"kind": "validation_error", "detail": "; ".join(exc.messages), "errors": errors})


def handle_append_only_error(request: HttpRequest, exc: AppendOnlyError | t.Type[AppendOnlyError]) -> Response:
    """Attendance records cannot be changed once written."""
    logger.warning("append_only_violation", path=request.path)
    return Response(status=409, data={"kind": "invalid_state", "detail": str(exc)})


def handle_database_error(request: HttpRequest, exc: DatabaseError | t.Type[DatabaseError]) -> Response:
    """Storage failures surface as a generic internal error."""
    logger.exception("database_error", method=request.method, path=request.path)
    return Response(status=500, data={"kind": "internal_error", "detail": "Internal Server Error."})


SENSITIVE_KEYS = {"password", "token", "x-api-key", "authorization", "authentication", "cookie"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
