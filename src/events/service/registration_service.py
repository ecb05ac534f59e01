"""Registration ledger.

A registration is either REGISTERED (holds a seat) or WAITLIST (queued). Cancelling
deletes the row; when a seat frees up the oldest waitlisted registration takes it.
Every mutation that depends on the seat count runs under a row lock on the event,
so concurrent requests for the same event serialize and the number of REGISTERED
rows never exceeds capacity.
"""

import typing as t

import structlog
from django.db import IntegrityError, transaction
from django.db.models import Max, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from common.signing import get_qr_codec, registration_payload
from events.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from events.models import CheckInMode, Event, Registration

from . import access, attendance
from .check_in_mode import should_generate_registration_qr

logger = structlog.get_logger(__name__)

RegistrationStatus = Registration.RegistrationStatus


def _lock_event(event_id: t.Any) -> Event:
    try:
        return Event.objects.select_for_update().get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(str(_("Event not found.")))


def _get_registration(registration_id: t.Any) -> Registration:
    try:
        return Registration.objects.select_related("event", "event__external_partner").get(pk=registration_id)
    except Registration.DoesNotExist:
        raise NotFoundError(str(_("Registration not found.")))


def register(event_id: t.Any, user: UniversityUser) -> Registration:
    """Register ``user`` for the event, or put them on the waitlist when it is full.

    Raises:
        NotFoundError: the event does not exist.
        InvalidStateError: the event is cancelled or already over.
        ConflictError: the user already holds a registration for the event.
    """
    try:
        with transaction.atomic():
            event = _lock_event(event_id)
            if event.status == Event.EventStatus.CANCELLED:
                raise InvalidStateError(str(_("Cannot register for a cancelled event.")))
            if event.has_ended():
                raise InvalidStateError(str(_("Cannot register for a past event.")))
            if Registration.objects.filter(event=event, user=user).exists():
                raise ConflictError(str(_("You are already registered for this event.")))

            registered = Registration.objects.filter(event=event, status=RegistrationStatus.REGISTERED).count()
            status = RegistrationStatus.REGISTERED if registered < event.capacity else RegistrationStatus.WAITLIST
            last_position = Registration.objects.filter(event=event).aggregate(last=Max("position"))["last"] or 0
            registration = Registration.objects.create(
                event=event, user=user, status=status, position=last_position + 1
            )

            if should_generate_registration_qr(check_in_mode=event.check_in_mode, is_paid=event.is_paid):
                registration.qr_code = get_qr_codec().mint(registration_payload(registration))
                registration.save(update_fields=["qr_code", "updated_at"])
    except IntegrityError as e:
        # Lost a race against a concurrent request from the same user.
        raise ConflictError(str(_("You are already registered for this event."))) from e

    logger.info(
        "registration_created",
        registration_id=str(registration.pk),
        event_id=str(event.pk),
        user_id=str(user.pk),
        status=registration.status,
        has_qr_code=registration.qr_code is not None,
    )
    return registration


def issue_registration_qr(registration: Registration) -> Registration:
    """Mint a QR code for a registration that should have one but does not.

    No-op when the registration already has a code or its event does not issue them.
    """
    event = registration.event
    if registration.qr_code or not should_generate_registration_qr(
        check_in_mode=event.check_in_mode, is_paid=event.is_paid
    ):
        return registration
    registration.qr_code = get_qr_codec().mint(registration_payload(registration))
    registration.save(update_fields=["qr_code", "updated_at"])
    logger.info("registration_qr_issued", registration_id=str(registration.pk), event_id=str(event.pk))
    return registration


def _promote_from_waitlist(event: Event) -> Registration | None:
    """Move the oldest waitlisted registration onto a free seat. Caller must hold the event lock."""
    registered = Registration.objects.filter(event=event, status=RegistrationStatus.REGISTERED).count()
    if registered >= event.capacity:
        return None
    promoted = (
        Registration.objects.select_for_update()
        .filter(event=event, status=RegistrationStatus.WAITLIST)
        .waitlist_order()
        .first()
    )
    if promoted is None:
        return None
    promoted.status = RegistrationStatus.REGISTERED
    promoted.save(update_fields=["status", "updated_at"])
    logger.info(
        "registration_promoted_from_waitlist",
        registration_id=str(promoted.pk),
        event_id=str(event.pk),
        user_id=str(promoted.user_id),
    )
    return promoted


def cancel(registration_id: t.Any, requester: UniversityUser) -> Registration | None:
    """Cancel the requester's own registration before the event starts.

    If the cancelled registration held a seat, the oldest waitlisted registration is
    promoted into it.

    Returns:
        The promoted registration, if any.
    """
    registration = _get_registration(registration_id)
    if registration.user_id != requester.pk:
        raise ForbiddenError(str(_("You can only cancel your own registrations.")))

    with transaction.atomic():
        event = _lock_event(registration.event_id)
        if event.has_started():
            raise InvalidStateError(str(_("Cannot cancel a registration for an event that has already started.")))
        try:
            registration = Registration.objects.get(pk=registration.pk)
        except Registration.DoesNotExist:
            raise NotFoundError(str(_("Registration not found.")))
        held_seat = registration.status == RegistrationStatus.REGISTERED
        registration.delete()
        promoted = _promote_from_waitlist(event) if held_seat else None

    logger.info(
        "registration_cancelled",
        registration_id=str(registration_id),
        event_id=str(event.pk),
        user_id=str(requester.pk),
        promoted_registration_id=str(promoted.pk) if promoted else None,
    )
    return promoted


def _require_check_in_permission(actor: UniversityUser, event: Event, message: str) -> None:
    if not access.can_manage_check_in(actor, event):
        raise ForbiddenError(message)


def mark_checked_in(
    registration: Registration, actor: UniversityUser | None, scan_mode: CheckInMode
) -> Registration:
    """Flag a locked REGISTERED registration as attended and write the attendance record.

    Shared by manual check-in and QR scans; the caller owns the transaction and the
    authorization checks.
    """
    if registration.status != RegistrationStatus.REGISTERED:
        raise InvalidStateError(str(_("Can only check in registered participants.")))
    if registration.checked_in:
        raise InvalidStateError(str(_("User already checked in.")))
    registration.checked_in = True
    registration.checked_in_at = timezone.now()
    registration.save(update_fields=["checked_in", "checked_in_at", "updated_at"])
    attendance.record_check_in(registration.event, registration.user_id, scan_mode, checked_in_by=actor)
    return registration


def check_in(registration_id: t.Any, actor: UniversityUser) -> Registration:
    """Manually check a participant in."""
    registration = _get_registration(registration_id)
    _require_check_in_permission(
        actor, registration.event, str(_("You do not have permission to check in participants."))
    )

    with transaction.atomic():
        registration = Registration.objects.select_for_update().select_related("event").get(pk=registration.pk)
        mark_checked_in(registration, actor, scan_mode=CheckInMode.ORGANIZER_SCANS)

    logger.info(
        "registration_checked_in",
        registration_id=str(registration.pk),
        event_id=str(registration.event_id),
        actor_id=str(actor.pk),
    )
    attendance.notify_check_in(registration.user_id, registration.event_id)
    return registration


def undo_check_in(registration_id: t.Any, actor: UniversityUser) -> Registration:
    """Revert a check-in and drop its attendance record."""
    registration = _get_registration(registration_id)
    _require_check_in_permission(actor, registration.event, str(_("You do not have permission to undo check-ins.")))

    with transaction.atomic():
        registration = Registration.objects.select_for_update().select_related("event").get(pk=registration.pk)
        if not registration.checked_in:
            raise InvalidStateError(str(_("User is not checked in.")))
        registration.checked_in = False
        registration.checked_in_at = None
        registration.save(update_fields=["checked_in", "checked_in_at", "updated_at"])
        attendance.remove_check_in(registration.event, registration.user_id)

    logger.info(
        "registration_check_in_undone",
        registration_id=str(registration.pk),
        event_id=str(registration.event_id),
        actor_id=str(actor.pk),
    )
    return registration


def list_my_registrations(user: UniversityUser) -> t.Any:
    """The user's registrations, newest first."""
    return Registration.objects.with_event_and_user().filter(user=user).order_by("-created_at")


def list_event_participants(event_id: t.Any, actor: UniversityUser, search: str | None = None) -> t.Any:
    """Registrations for an event in join order, optionally filtered by name or email."""
    try:
        event = Event.objects.get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(str(_("Event not found.")))
    _require_check_in_permission(actor, event, str(_("You do not have permission to view event participants.")))

    qs = Registration.objects.with_event_and_user().filter(event=event)
    if search := (search or "").strip():
        qs = qs.filter(
            Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(user__username__icontains=search)
        )
    return qs.waitlist_order()
