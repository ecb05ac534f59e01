import typing as t

import structlog
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from events.exceptions import ForbiddenError, InvalidStateError, ValidationFailedError
from events.models import Event, ExternalPartner
from events.signals import event_submitted_for_moderation

from . import access
from .check_in_mode import determine_check_in_mode

logger = structlog.get_logger(__name__)

Role = UniversityUser.Role


def _payload_data(payload: t.Any, exclude_unset: bool = False) -> dict[str, t.Any]:
    if hasattr(payload, "model_dump"):
        return t.cast(dict[str, t.Any], payload.model_dump(exclude_unset=exclude_unset))
    return dict(payload)


def _check_dates(start_date: t.Any, end_date: t.Any) -> None:
    if start_date >= end_date:
        raise ValidationFailedError(str(_("End date must be after start date.")))


@transaction.atomic
def create_event(creator: UniversityUser, payload: t.Any) -> Event:
    """Create an event.

    Partners' events are external and billed by commission. Events by staff
    (admins and moderators) go live right away; everyone else's wait for moderation.
    """
    if not access.can_create_events(creator):
        raise ForbiddenError(str(_("You do not have permission to create events.")))
    data = _payload_data(payload)
    _check_dates(data["start_date"], data["end_date"])
    if data["start_date"] < timezone.now():
        raise ValidationFailedError(str(_("Start date cannot be in the past.")))

    partner: ExternalPartner | None = None
    if creator.has_role(Role.EXTERNAL_PARTNER):
        partner = ExternalPartner.objects.filter(user=creator, is_active=True).first()
        if partner is None:
            raise ForbiddenError(str(_("Your partner account is not active.")))

    is_paid = bool(data.get("is_paid"))
    needs_moderation = not creator.has_role(Role.ADMIN, Role.MODERATOR)
    event = Event.objects.create(
        **data,
        creator=creator,
        external_partner=partner,
        is_external_event=partner is not None,
        check_in_mode=determine_check_in_mode(is_paid=is_paid, is_external_event=partner is not None),
        status=Event.EventStatus.PENDING_MODERATION if needs_moderation else Event.EventStatus.UPCOMING,
    )
    logger.info(
        "event_created",
        event_id=str(event.pk),
        creator_id=str(creator.pk),
        check_in_mode=event.check_in_mode,
        status=event.status,
    )
    if needs_moderation:
        event_submitted_for_moderation.send(sender=Event, event=event)
    return event


@transaction.atomic
def update_event(event: Event, actor: UniversityUser, payload: t.Any) -> Event:
    """Apply a partial update.

    Switching between free and paid is refused once anybody registered or bought a
    ticket. The check-in mode follows the paid/external flags.
    """
    if not access.can_manage_event(actor, event):
        raise ForbiddenError(str(_("You do not have permission to edit this event.")))
    event = Event.objects.select_for_update().get(pk=event.pk)
    if event.status == Event.EventStatus.CANCELLED:
        raise InvalidStateError(str(_("Cannot edit a cancelled event.")))

    data = _payload_data(payload, exclude_unset=True)
    _check_dates(data.get("start_date", event.start_date), data.get("end_date", event.end_date))

    if "is_paid" in data and data["is_paid"] != event.is_paid:
        if event.registrations.exists() or event.tickets.exists():
            raise InvalidStateError(
                str(_("Cannot change payment status after students have registered. Please create a new event."))
            )

    flags_before = (event.is_paid, event.is_external_event)
    for field, value in data.items():
        setattr(event, field, value)
    if (event.is_paid, event.is_external_event) != flags_before:
        event.check_in_mode = determine_check_in_mode(
            is_paid=event.is_paid, is_external_event=event.is_external_event
        )
        if not event.is_paid:
            event.price = None
    event.save()
    logger.info("event_updated", event_id=str(event.pk), actor_id=str(actor.pk), fields=sorted(data))
    return event


@transaction.atomic
def cancel_event(event: Event, actor: UniversityUser) -> Event:
    """Cancel an event. Registrations and tickets are kept for the record."""
    if not access.can_manage_event(actor, event):
        raise ForbiddenError(str(_("You do not have permission to cancel this event.")))
    event = Event.objects.select_for_update().get(pk=event.pk)
    if event.status == Event.EventStatus.CANCELLED:
        raise InvalidStateError(str(_("Event is already cancelled.")))
    if event.has_ended():
        raise InvalidStateError(str(_("Cannot cancel an event that has already ended.")))
    event.status = Event.EventStatus.CANCELLED
    event.save(update_fields=["status", "updated_at"])
    logger.info("event_cancelled", event_id=str(event.pk), actor_id=str(actor.pk))
    return event
