import pytest
from django.utils.functional import Promise
from django.utils.translation import override

from events.exceptions import (
    ConflictError,
    EventsError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from events.service import checkin_service


@pytest.mark.parametrize(
    "error_class, code, status_code",
    [
        (NotFoundError, "NOT_FOUND", 404),
        (ConflictError, "CONFLICT", 409),
        (ForbiddenError, "FORBIDDEN", 403),
        (InvalidStateError, "INVALID_STATE", 400),
        (ValidationFailedError, "VALIDATION_FAILED", 422),
    ],
)
def test_taxonomy(error_class: type[EventsError], code: str, status_code: int) -> None:
    error = error_class()

    assert isinstance(error, EventsError)
    assert error.code == code
    assert error.status_code == status_code
    assert isinstance(error_class.default_message, Promise)
    assert isinstance(error.message, str)
    assert error.message == str(error_class.default_message)


def test_explicit_message_wins() -> None:
    assert NotFoundError("Event not found.").message == "Event not found."


@pytest.mark.django_db
def test_service_messages_are_resolved_strings(student) -> None:
    with override("en"), pytest.raises(NotFoundError) as exc_info:
        checkin_service.get_event_stats("00000000-0000-0000-0000-000000000000", student)

    assert type(exc_info.value.message) is str
    assert exc_info.value.message == "Event not found."
