import typing as t

import structlog
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from events.exceptions import ConflictError
from events.models import CheckIn, CheckInMode, Event
from gamification.tasks import award_check_in_points

logger = structlog.get_logger(__name__)


def record_check_in(
    event: Event,
    user_id: t.Any,
    scan_mode: CheckInMode,
    checked_in_by: UniversityUser | None = None,
) -> CheckIn:
    """Write the attendance record for ``user_id`` at ``event``. Call inside the check-in transaction."""
    if CheckIn.objects.filter(event=event, user_id=user_id).exists():
        raise ConflictError(str(_("Attendee has already checked in to this event.")))
    check_in = CheckIn.objects.create(
        event=event,
        user_id=user_id,
        scan_mode=scan_mode,
        checked_in_at=timezone.now(),
        checked_in_by=checked_in_by,
    )
    logger.info(
        "attendance_recorded",
        check_in_id=str(check_in.pk),
        event_id=str(event.pk),
        user_id=str(user_id),
        scan_mode=scan_mode,
    )
    return check_in


def remove_check_in(event: Event, user_id: t.Any) -> int:
    """Delete the attendance record, if any. Returns the number of rows removed."""
    return CheckIn.objects.filter(event=event, user_id=user_id).delete()[0]


def notify_check_in(user_id: t.Any, event_id: t.Any) -> None:
    """Hand a completed check-in to gamification.

    Must be called after the check-in has been committed. Failures are logged and
    never propagate: a check-in stands even when points cannot be awarded.
    """
    try:
        award_check_in_points.delay(str(user_id), str(event_id))
    except Exception:
        logger.exception("gamification_dispatch_failed", user_id=str(user_id), event_id=str(event_id))
