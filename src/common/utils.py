import typing as t


def client_metadata(request: t.Any) -> tuple[str | None, str]:
    """Extract the client IP and user agent from a request.

    X-Forwarded-For wins over REMOTE_ADDR when the app runs behind a proxy.
    """
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR", "")
    ip = forwarded_for.split(",")[0].strip() if forwarded_for else request.META.get("REMOTE_ADDR")
    user_agent = request.META.get("HTTP_USER_AGENT", "")[:512]
    return ip or None, user_agent
