from ninja_extra import api_controller, route

from accounts import schema
from accounts.models import FelicityUser
from accounts.service import account_service
from common.authentication import ContextJWTAuth
from common.throttling import UserRegistrationThrottle
from events.controllers.user_aware_controller import UserAwareController


@api_controller("/account", tags=["Account"])
class AccountController(UserAwareController):
    @route.post(
        "/register",
        url_name="register_participant",
        response={201: schema.FelicityUserSchema},
        throttle=UserRegistrationThrottle(),
    )
    def register(self, payload: schema.RegisterParticipantSchema) -> tuple[int, FelicityUser]:
        """Sign up as a participant.

        IIIT participants must use an institute email address.
        """
        return 201, account_service.register_participant(payload)

    @route.get("/me", url_name="me", response=schema.FelicityUserSchema, auth=ContextJWTAuth())
    def me(self) -> FelicityUser:
        """Get the authenticated user's profile."""
        return self.user()
