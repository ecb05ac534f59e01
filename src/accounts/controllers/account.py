"""Endpoints for the authenticated user's own account."""

from ninja_extra import api_controller, route

from accounts.models import UniversityUser
from accounts.schema import ProfileUpdateSchema, UniversityUserSchema
from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.throttling import UserDefaultThrottle, WriteThrottle


@api_controller("/me", auth=UserJWTAuth(), tags=["Account"], throttle=UserDefaultThrottle())
class AccountController(UserAwareController):
    @route.get("", response=UniversityUserSchema, url_name="me")
    def me(self) -> UniversityUser:
        """Retrieve the authenticated user's profile, including role and faculty."""
        return self.user()

    @route.put("", response=UniversityUserSchema, url_name="update_profile", throttle=WriteThrottle())
    def update_profile(self, payload: ProfileUpdateSchema) -> UniversityUser:
        """Update name and faculty. Role changes go through the admin."""
        user = self.user()
        data = payload.model_dump()
        for key, value in data.items():
            setattr(user, key, value)
        user.save(update_fields=list(data))
        return user
