import typing as t

from ninja_extra import ControllerBase

from accounts.models import UniversityUser


class UserAwareController(ControllerBase):
    def user(self) -> UniversityUser:
        """Get the user for this request."""
        return t.cast(UniversityUser, self.context.request.user)  # type: ignore[union-attr]
