from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from accounts.controllers.account import AccountController
from common.schema import ResponseOk, VersionResponse
from common.signing import SigningSecretMissingError
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers import EVENT_CONTROLLERS
from events.exceptions import EventsError
from gamification.controllers import GamificationController

from .exception_handlers import (
    handle_django_validation_error,
    handle_events_error,
    handle_general_exception,
    handle_signing_secret_missing,
)

api = NinjaExtraAPI(
    title="UniEvents API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"University events: registration, ticketing and check-in. Version {settings.VERSION}",
    app_name=f"unievents-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version."""
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API."""
    return 200, ResponseOk()


api.register_controllers(
    # Auth: /token/pair, /token/refresh, /token/verify
    NinjaJWTDefaultController,
    AccountController,
    *EVENT_CONTROLLERS,
    GamificationController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    EventsError: handle_events_error,
    SigningSecretMissingError: handle_signing_secret_missing,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)  # type: ignore[arg-type]
