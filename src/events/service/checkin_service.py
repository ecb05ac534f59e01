"""QR check-in at the door.

Two scan directions, picked per event by ``Event.check_in_mode``:

* ORGANIZER_SCANS: staff scan the attendee's ticket QR (paid events) or
  registration QR (free external events).
* STUDENTS_SCAN: the attendee scans the QR the organizer displays for the event.
"""

import math
import typing as t
from dataclasses import dataclass
from datetime import timedelta

import structlog
from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from common.signing import QRRejectReason, QRVerification, event_payload, get_qr_codec
from events.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationFailedError
from events.models import CheckIn, CheckInMode, Event, Registration, Ticket

from . import access, attendance
from .registration_service import mark_checked_in

logger = structlog.get_logger(__name__)


@dataclass
class ScanResult:
    check_in: CheckIn
    user: UniversityUser
    ticket: Ticket | None = None
    registration: Registration | None = None


@dataclass
class EventQRCode:
    qr_code: str
    expires_at: t.Any


@dataclass
class CheckInStats:
    total_check_ins: int
    capacity: int
    check_in_mode: str
    check_in_rate: float
    total_tickets: int | None = None
    total_registrations: int | None = None


def _get_event(event_id: t.Any) -> Event:
    try:
        return Event.objects.select_related("external_partner").get(pk=event_id)
    except (Event.DoesNotExist, DjangoValidationError):
        raise NotFoundError(str(_("Event not found.")))


def _require_owner_or_partner(actor: UniversityUser, event: Event) -> None:
    if not access.is_event_owner_or_partner(actor, event):
        raise ForbiddenError(str(_("You do not have access to this event.")))


def _verify(qr_data: str) -> QRVerification:
    verification = get_qr_codec().verify(qr_data)
    if verification.reason == QRRejectReason.MALFORMED:
        raise ValidationFailedError(str(_("Invalid QR code format.")))
    if verification.reason == QRRejectReason.BAD_SIGNATURE:
        raise ForbiddenError(str(_("Invalid QR code signature.")))
    return verification


def validate_ticket_scan(event_id: t.Any, qr_data: str, actor: UniversityUser) -> ScanResult:
    """Check in the holder of a scanned ticket or registration QR code."""
    event = _get_event(event_id)
    _require_owner_or_partner(actor, event)
    fields = _verify(qr_data).fields

    try:
        with transaction.atomic():
            if ticket_id := fields.get("ticketId"):
                result = _check_in_ticket(event, ticket_id, actor)
            elif registration_id := fields.get("registrationId"):
                result = _check_in_registration(event, registration_id, actor)
            else:
                raise ValidationFailedError(str(_("Invalid QR code: missing ticketId or registrationId.")))
    except IntegrityError as e:
        raise ConflictError(str(_("Attendee has already checked in to this event."))) from e

    logger.info(
        "attendee_scanned",
        event_id=str(event.pk),
        user_id=str(result.user.pk),
        ticket_id=str(result.ticket.pk) if result.ticket else None,
        registration_id=str(result.registration.pk) if result.registration else None,
        actor_id=str(actor.pk),
    )
    attendance.notify_check_in(result.user.pk, event.pk)
    return result


def _check_in_ticket(event: Event, ticket_id: t.Any, actor: UniversityUser) -> ScanResult:
    try:
        ticket = Ticket.objects.select_for_update().select_related("user").get(pk=ticket_id)
    except (Ticket.DoesNotExist, DjangoValidationError):
        raise NotFoundError(str(_("Ticket not found.")))
    if ticket.status == Ticket.TicketStatus.USED:
        raise ConflictError(str(_("Ticket has already been used.")))
    if ticket.status != Ticket.TicketStatus.PAID:
        raise InvalidStateError(
            str(_("Ticket is {status}. Only paid tickets can be checked in.")).format(status=ticket.status.lower())
        )
    if ticket.event_id != event.pk:
        raise InvalidStateError(str(_("Ticket is for a different event.")))

    ticket.status = Ticket.TicketStatus.USED
    ticket.checked_in_at = timezone.now()
    ticket.save(update_fields=["status", "checked_in_at", "updated_at"])
    check_in = attendance.record_check_in(event, ticket.user_id, CheckInMode.ORGANIZER_SCANS, checked_in_by=actor)
    return ScanResult(check_in=check_in, user=ticket.user, ticket=ticket)


def _check_in_registration(event: Event, registration_id: t.Any, actor: UniversityUser) -> ScanResult:
    try:
        registration = (
            Registration.objects.select_for_update().select_related("user", "event").get(pk=registration_id)
        )
    except (Registration.DoesNotExist, DjangoValidationError):
        raise NotFoundError(str(_("Registration not found.")))
    if registration.checked_in:
        raise ConflictError(str(_("Already checked in.")))
    if registration.event_id != event.pk:
        raise InvalidStateError(str(_("Registration is for a different event.")))

    mark_checked_in(registration, actor, scan_mode=CheckInMode.ORGANIZER_SCANS)
    check_in = CheckIn.objects.get(event=event, user_id=registration.user_id)
    return ScanResult(check_in=check_in, user=registration.user, registration=registration)


def _throttle_scan(user: UniversityUser, event: Event) -> None:
    cooldown = settings.CHECK_IN_SCAN_COOLDOWN_SECONDS
    key = f"checkin:cooldown:{user.pk}:{event.pk}"
    if not cache.add(key, timezone.now().timestamp(), timeout=cooldown):
        raise InvalidStateError(
            str(_("Please wait {cooldown} second(s) before scanning again.")).format(cooldown=cooldown)
        )


def validate_student_scan(qr_data: str, user: UniversityUser) -> ScanResult:
    """Check in a student who scanned the event's QR code."""
    verification = _verify(qr_data)
    event_id = verification.fields.get("eventId")
    if not event_id:
        raise ValidationFailedError(str(_("Invalid QR code: missing eventId.")))
    event = _get_event(event_id)
    if event.check_in_mode != CheckInMode.STUDENTS_SCAN:
        raise InvalidStateError(str(_("This event does not use self check-in.")))

    now = timezone.now()
    earliest = event.start_date - timedelta(minutes=settings.CHECK_IN_EARLY_MINUTES)
    if now < earliest:
        minutes = math.ceil((earliest - now).total_seconds() / 60)
        raise InvalidStateError(
            str(_("Check-in not available yet. You can check in {minutes} minutes before the event starts.")).format(
                minutes=minutes
            )
        )
    if now > event.end_date:
        raise InvalidStateError(str(_("Check-in is no longer available. Event has ended.")))
    if event.qr_code_expiry and now > event.qr_code_expiry:
        raise InvalidStateError(str(_("QR code has expired.")))
    if not verification.is_fresh(timedelta(hours=settings.EVENT_QR_MAX_AGE_HOURS), now=now):
        raise InvalidStateError(str(_("QR code has expired.")))
    if CheckIn.objects.filter(event=event, user=user).exists():
        raise ConflictError(str(_("You have already checked in to this event.")))

    _throttle_scan(user, event)

    try:
        with transaction.atomic():
            registration = (
                Registration.objects.select_for_update()
                .select_related("event")
                .filter(event=event, user=user, status=Registration.RegistrationStatus.REGISTERED)
                .first()
            )
            if registration is None:
                raise ForbiddenError(str(_("You are not registered for this event.")))
            if registration.checked_in:
                raise ConflictError(str(_("You have already checked in to this event.")))
            mark_checked_in(registration, None, scan_mode=CheckInMode.STUDENTS_SCAN)
            check_in = CheckIn.objects.get(event=event, user=user)
    except IntegrityError as e:
        raise ConflictError(str(_("You have already checked in to this event."))) from e

    logger.info("student_self_checked_in", event_id=str(event.pk), user_id=str(user.pk))
    attendance.notify_check_in(user.pk, event.pk)
    return ScanResult(check_in=check_in, user=user, registration=registration)


def generate_event_qr(event_id: t.Any, actor: UniversityUser, expiry_hours: int = 24) -> EventQRCode:
    """Mint the QR code students scan and store it on the event."""
    event = _get_event(event_id)
    _require_owner_or_partner(actor, event)
    if event.check_in_mode != CheckInMode.STUDENTS_SCAN:
        raise InvalidStateError(str(_("Event QR codes are only used when students scan to check in.")))

    expires_at = timezone.now() + timedelta(hours=expiry_hours)
    qr_code = get_qr_codec().mint(event_payload(event))
    Event.objects.filter(pk=event.pk).update(event_qr_code=qr_code, qr_code_expiry=expires_at)
    logger.info("event_qr_generated", event_id=str(event.pk), expires_at=expires_at.isoformat())
    return EventQRCode(qr_code=qr_code, expires_at=expires_at)


def get_event_stats(event_id: t.Any, actor: UniversityUser) -> CheckInStats:
    """Attendance numbers for an event: tickets for paid events, registrations for free ones."""
    event = _get_event(event_id)
    if not (actor.has_role(UniversityUser.Role.ADMIN) or access.is_event_owner_or_partner(actor, event)):
        raise ForbiddenError(str(_("You do not have access to this event.")))

    total_check_ins = CheckIn.objects.filter(event=event).count()
    stats = CheckInStats(
        total_check_ins=total_check_ins,
        capacity=event.capacity,
        check_in_mode=event.check_in_mode,
        check_in_rate=0.0,
    )
    if event.is_paid:
        stats.total_tickets = Ticket.objects.filter(
            event=event, status__in=[Ticket.TicketStatus.PAID, Ticket.TicketStatus.USED]
        ).count()
        denominator = stats.total_tickets
    else:
        stats.total_registrations = Registration.objects.filter(
            event=event, status=Registration.RegistrationStatus.REGISTERED
        ).count()
        denominator = stats.total_registrations
    if denominator:
        stats.check_in_rate = round(total_check_ins / denominator * 100, 1)
    return stats


def list_check_ins(event_id: t.Any, actor: UniversityUser) -> t.Any:
    """Attendance records for an event, latest first."""
    event = _get_event(event_id)
    _require_owner_or_partner(actor, event)
    return CheckIn.objects.select_related("user").filter(event=event).order_by("-checked_in_at")
