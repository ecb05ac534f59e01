import typing as t

import structlog
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth

logger = structlog.get_logger(__name__)


class UserJWTAuth(JWTAuth):
    """JWT authentication that also binds the authenticated user to the log context.

    JWT authentication runs inside the ninja router, after Django middleware, so
    StructlogContextMiddleware never sees the user. Binding here fills that gap.
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and bind ``user_id``/``user_role`` to structlog."""
        user = super().authenticate(request, token)
        if user:
            structlog.contextvars.bind_contextvars(user_id=str(user.id), user_role=getattr(user, "role", None))
        return user
