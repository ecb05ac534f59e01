import typing as t

from ninja_extra import api_controller, route

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.throttling import UserDefaultThrottle

from . import schema, service


@api_controller("/gamification", auth=UserJWTAuth(), tags=["Gamification"], throttle=UserDefaultThrottle())
class GamificationController(UserAwareController):
    @route.get("/me", url_name="my_stats", response=schema.UserStatsSchema)
    def my_stats(self) -> dict[str, t.Any]:
        """Points, level and progress of the current user."""
        return service.get_user_stats(self.user().pk)
