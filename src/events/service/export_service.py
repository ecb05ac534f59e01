import csv
import io
import typing as t

import structlog
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from events.exceptions import ForbiddenError, NotFoundError
from events.models import Event, Registration

from . import access

logger = structlog.get_logger(__name__)

UTF8_BOM = "\ufeff"
HEADERS = ["Name", "Email", "Faculty", "Registration Date", "Status", "Check-in Status", "Check-in Time"]
NOT_AVAILABLE = "N/A"


def _row(registration: Registration) -> list[str]:
    user = registration.user
    checked_in_at = registration.checked_in_at
    return [
        user.get_full_name() or NOT_AVAILABLE,
        user.email or NOT_AVAILABLE,
        user.faculty or NOT_AVAILABLE,
        timezone.localtime(registration.created_at).strftime("%d/%m/%Y"),
        registration.get_status_display(),
        "Checked In" if registration.checked_in else "Registered Only",
        timezone.localtime(checked_in_at).strftime("%d/%m/%Y, %H:%M:%S") if checked_in_at else NOT_AVAILABLE,
    ]


def export_event_participants(event_id: t.Any, actor: UniversityUser) -> str:
    """Render the participant list of an event as CSV.

    Every field is quoted and the text starts with a UTF-8 BOM so spreadsheet apps
    pick the right encoding.
    """
    try:
        event = Event.objects.get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(str(_("Event not found.")))
    if not access.can_export_participants(actor, event):
        raise ForbiddenError(str(_("You can only export participants for your own events.")))

    registrations = Registration.objects.select_related("user").filter(event=event).order_by("created_at", "position")
    buffer = io.StringIO()
    buffer.write(UTF8_BOM)
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(HEADERS)
    count = 0
    for registration in registrations.iterator():
        writer.writerow(_row(registration))
        count += 1

    logger.info("participants_exported", event_id=str(event.pk), actor_id=str(actor.pk), rows=count)
    return buffer.getvalue()
