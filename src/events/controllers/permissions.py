from django.http import HttpRequest
from ninja_extra import ControllerBase
from ninja_extra.permissions import BasePermission


class IsOrganizer(BasePermission):
    """Organizers and platform admins only."""

    def has_permission(self, request: HttpRequest, controller: ControllerBase) -> bool:
        """Check the role of the authenticated user."""
        user = request.user
        return bool(user.is_authenticated and (user.is_organizer or user.is_platform_admin))  # type: ignore[union-attr]

