import secrets
import typing as t
from decimal import ROUND_HALF_UP, Decimal

import structlog
from django.db import IntegrityError, transaction
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from events.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from events.models import Event, Ticket

logger = structlog.get_logger(__name__)

TicketStatus = Ticket.TicketStatus
CENTS = Decimal("0.01")


def generate_ticket_code() -> str:
    """Reference the buyer writes in the bank transfer comment, e.g. ``TICKET-9F2C01AB``."""
    return f"TICKET-{secrets.token_hex(4).upper()}"


def split_commission(price: Decimal, rate: Decimal) -> tuple[Decimal, Decimal]:
    """Return ``(commission_amount, partner_amount)`` for a ticket price, rounded to cents."""
    commission = (price * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    return commission, (price - commission).quantize(CENTS, rounding=ROUND_HALF_UP)


@transaction.atomic
def reserve_ticket(event_id: t.Any, user: UniversityUser) -> Ticket:
    """Hold a seat for a paid event until the buyer's transfer is verified.

    Tickets that are PENDING, PAID or USED all count against capacity.
    """
    try:
        event = Event.objects.select_for_update().get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(str(_("Event not found.")))

    if not event.is_paid or not event.price:
        raise InvalidStateError(str(_("This event is free.")))
    if event.status == Event.EventStatus.CANCELLED:
        raise InvalidStateError(str(_("Cannot buy a ticket for a cancelled event.")))
    if event.has_ended():
        raise InvalidStateError(str(_("Cannot buy a ticket for a past event.")))
    if Ticket.objects.live().filter(event=event, user=user).exists():
        raise ConflictError(str(_("You already have a ticket for this event.")))
    if Ticket.objects.live().filter(event=event).count() >= event.capacity:
        raise InvalidStateError(str(_("Event is sold out.")))

    ticket = Ticket(event=event, user=user, price=event.price, status=TicketStatus.PENDING)
    ticket.ticket_code = generate_ticket_code()
    partner = event.external_partner if event.is_external_event else None
    if partner is not None:
        ticket.commission_rate = partner.commission_rate
        ticket.commission_amount, ticket.partner_amount = split_commission(event.price, partner.commission_rate)
    try:
        with transaction.atomic():
            ticket.save()
    except IntegrityError as e:
        raise ConflictError(str(_("You already have a ticket for this event."))) from e

    logger.info(
        "ticket_reserved",
        ticket_id=str(ticket.pk),
        event_id=str(event.pk),
        user_id=str(user.pk),
        ticket_code=ticket.ticket_code,
        commission_amount=str(ticket.commission_amount) if ticket.commission_amount is not None else None,
    )
    return ticket


@transaction.atomic
def refund_ticket(ticket_id: t.Any, actor: UniversityUser) -> Ticket:
    """Refund a paid ticket before the event starts. Owner or admin only."""
    try:
        ticket = Ticket.objects.select_for_update().select_related("event").get(pk=ticket_id)
    except Ticket.DoesNotExist:
        raise NotFoundError(str(_("Ticket not found.")))

    if ticket.user_id != actor.pk and not actor.has_role(UniversityUser.Role.ADMIN):
        raise ForbiddenError(str(_("You do not have access to this ticket.")))
    if ticket.status == TicketStatus.REFUNDED:
        raise InvalidStateError(str(_("Ticket has already been refunded.")))
    if ticket.status == TicketStatus.USED:
        raise InvalidStateError(str(_("Ticket has already been used.")))
    if ticket.status != TicketStatus.PAID:
        raise InvalidStateError(str(_("Only paid tickets can be refunded.")))
    if ticket.event.has_started():
        raise InvalidStateError(str(_("Cannot refund a ticket after the event has started.")))

    ticket.status = TicketStatus.REFUNDED
    ticket.save(update_fields=["status", "updated_at"])
    logger.info("ticket_refunded", ticket_id=str(ticket.pk), event_id=str(ticket.event_id), actor_id=str(actor.pk))
    return ticket


def list_my_tickets(user: UniversityUser) -> t.Any:
    """The user's tickets, newest first."""
    return Ticket.objects.full().filter(user=user)
