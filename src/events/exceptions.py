"""Errors raised by the events services.

Each error carries a stable ``code`` and HTTP ``status_code``; the API layer turns
them into ``{"detail": ..., "code": ...}`` responses.
"""

from django.utils.translation import gettext_lazy as _


class EventsError(Exception):
    code = "EVENTS_ERROR"
    status_code = 400
    default_message = _("Request could not be processed.")

    def __init__(self, message: str | None = None) -> None:
        """Use the class default message when none is given."""
        self.message = str(message or self.default_message)
        super().__init__(self.message)


class NotFoundError(EventsError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = _("Not found.")


class ConflictError(EventsError):
    code = "CONFLICT"
    status_code = 409
    default_message = _("Resource already exists.")


class ForbiddenError(EventsError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = _("You do not have permission to perform this action.")


class InvalidStateError(EventsError):
    code = "INVALID_STATE"
    status_code = 400
    default_message = _("The resource is not in a state that allows this action.")


class ValidationFailedError(EventsError):
    code = "VALIDATION_FAILED"
    status_code = 422
    default_message = _("Validation failed.")
