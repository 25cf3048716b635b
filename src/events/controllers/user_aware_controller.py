import typing as t

from ninja_extra import ControllerBase

from accounts.models import FelicityUser


class UserAwareController(ControllerBase):
    def user(self) -> FelicityUser:
        """Get the authenticated user for this request."""
        return t.cast(FelicityUser, self.context.request.user)  # type: ignore[union-attr]
