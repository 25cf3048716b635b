"""Request context for structured logs."""

import typing as t
import uuid

import structlog
from django.http import HttpRequest, HttpResponse

from common.utils import client_metadata


class StructlogContextMiddleware:
    """Binds request metadata to structlog for the lifetime of a request.

    Every log event emitted while handling the request carries ``request_id``,
    the method, the path and the client IP. JWT authentication adds ``user_id``
    once the token has been checked.
    """

    def __init__(self, get_response: t.Callable[[HttpRequest], HttpResponse]) -> None:
        """Initialize middleware.

        Args:
            get_response: Django middleware get_response callable
        """
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """Bind the request context, handle the request and clear the context."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        ip_address, _ = client_metadata(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
            ip_address=ip_address,
        )
        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response["X-Request-ID"] = request_id
        return response
