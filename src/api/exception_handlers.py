"""Map service errors to JSON responses.

Every error body has the same shape: ``{"detail": <message>, "code": <CODE>}``.
"""

import traceback
import typing as t

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from common.signing import SigningSecretMissingError
from events.exceptions import EventsError

logger = structlog.get_logger(__name__)


def handle_events_error(request: HttpRequest, exc: EventsError) -> Response:
    """Handle a typed service error using its own status and code."""
    logger.info("request_rejected", code=exc.code, status=exc.status_code, detail=exc.message, path=request.path)
    return Response(status=exc.status_code, data={"detail": exc.message, "code": exc.code})


def handle_signing_secret_missing(
    request: HttpRequest, exc: SigningSecretMissingError | t.Type[SigningSecretMissingError]
) -> Response:
    """A QR code had to be minted or checked but no signing secret is configured."""
    logger.critical("qr_signing_secret_missing", path=request.path, method=request.method)
    return Response(
        status=500,
        data={"detail": "QR signing is not configured on the server.", "code": SigningSecretMissingError.code},
    )


def handle_django_validation_error(request: HttpRequest, exc: ValidationError) -> Response:
    """Handle a model validation error raised by ``full_clean``."""
    logger.warning("validation_error", path=request.path, errors=exc.messages)
    if hasattr(exc, "error_dict"):
        errors = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        errors = {"__all__": exc.messages}
    return Response(
        status=400,
        data={"detail": "; ".join(exc.messages), "code": "VALIDATION_ERROR", "errors": errors},
    )


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Log anything unexpected and answer with a generic 500."""
    logger.exception("internal_server_error", path=request.path, method=request.method)
    data = {"detail": "Internal Server Error.", "code": "INTERNAL_ERROR"}
    if settings.DEBUG:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)
