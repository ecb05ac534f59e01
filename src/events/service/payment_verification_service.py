"""Manual payment verification.

Buyers of paid tickets transfer money outside the platform and upload a receipt.
The event's organizer (or the hosting partner) looks at it and approves or
rejects. Approval is the only way a ticket becomes PAID and gets its QR code.

    ticket PENDING --upload--> verification PENDING --approve--> APPROVED, ticket PAID
                                                    --reject---> REJECTED (re-upload allowed)
"""

import typing as t
from enum import StrEnum

import structlog
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from common.signing import get_qr_codec, ticket_payload
from events.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationFailedError
from events.models import Event, ExternalPartner, PaymentVerification, Ticket

from . import access

logger = structlog.get_logger(__name__)

VerificationStatus = PaymentVerification.VerificationStatus


class Decision(StrEnum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


def _base_queryset() -> t.Any:
    return PaymentVerification.objects.select_related(
        "ticket", "ticket__user", "ticket__event", "ticket__event__external_partner"
    )


@transaction.atomic
def upload_receipt(ticket_id: t.Any, receipt_image_url: str, requester: UniversityUser) -> PaymentVerification:
    """Attach a transfer receipt to the requester's pending ticket.

    Re-uploading replaces the previous receipt and resets the verification to PENDING.
    """
    try:
        ticket = Ticket.objects.select_for_update().get(pk=ticket_id)
    except Ticket.DoesNotExist:
        raise NotFoundError(str(_("Ticket not found.")))
    if ticket.user_id != requester.pk:
        raise ForbiddenError(str(_("You can only upload receipts for your own tickets.")))
    if ticket.status != Ticket.TicketStatus.PENDING:
        raise InvalidStateError(str(_("Ticket is not pending payment.")))

    verification, created = PaymentVerification.objects.update_or_create(
        ticket=ticket,
        defaults={
            "receipt_image_url": receipt_image_url,
            "status": VerificationStatus.PENDING,
            "organizer_notes": None,
            "verified_at": None,
            "verified_by": None,
        },
    )
    logger.info(
        "payment_receipt_uploaded",
        verification_id=str(verification.pk),
        ticket_id=str(ticket.pk),
        event_id=str(ticket.event_id),
        reupload=not created,
    )
    return verification


def verify_payment(
    verification_id: t.Any, actor: UniversityUser, decision: Decision | str, notes: str | None = None
) -> PaymentVerification:
    """Approve or reject a receipt.

    Approving mints the ticket QR, marks the ticket PAID and, for partner events,
    adds the platform commission to the partner's debt, all in one transaction.
    Rejecting leaves the ticket PENDING so the buyer can upload again.

    Raises:
        NotFoundError: unknown verification.
        ForbiddenError: the actor neither created the event nor hosts it as a partner.
        ValidationFailedError: rejecting without notes.
        InvalidStateError: the ticket was already settled.
        SigningSecretMissingError: approving while the QR secret is not configured.
    """
    decision = Decision(decision)
    notes = (notes or "").strip() or None

    try:
        verification = _base_queryset().get(pk=verification_id)
    except PaymentVerification.DoesNotExist:
        raise NotFoundError(str(_("Payment verification not found.")))
    if not access.is_event_owner_or_partner(actor, verification.ticket.event):
        raise ForbiddenError(str(_("You are not the organizer or partner of this event.")))
    if decision == Decision.REJECTED and notes is None:
        raise ValidationFailedError(str(_("Organizer notes are required when rejecting a payment.")))

    with transaction.atomic():
        ticket = Ticket.objects.select_for_update().select_related("event").get(pk=verification.ticket_id)
        if ticket.status != Ticket.TicketStatus.PENDING:
            raise InvalidStateError(str(_("Ticket is not pending payment.")))
        verification = PaymentVerification.objects.select_for_update().get(pk=verification.pk)

        verification.status = VerificationStatus(decision)
        verification.organizer_notes = notes
        verification.verified_at = timezone.now()
        verification.verified_by = actor

        if decision == Decision.APPROVED:
            ticket.qr_code = get_qr_codec().mint(ticket_payload(ticket))
            ticket.status = Ticket.TicketStatus.PAID
            ticket.save(update_fields=["qr_code", "status", "updated_at"])
            _accrue_commission(ticket)
        verification.save()

    logger.info(
        "payment_verified",
        verification_id=str(verification.pk),
        ticket_id=str(ticket.pk),
        event_id=str(ticket.event_id),
        decision=decision,
        actor_id=str(actor.pk),
    )
    return verification


def _accrue_commission(ticket: Ticket) -> None:
    event = ticket.event
    if not event.is_external_event or event.external_partner_id is None or not ticket.commission_amount:
        return
    ExternalPartner.objects.filter(pk=event.external_partner_id).update(
        commission_debt=F("commission_debt") + ticket.commission_amount
    )
    logger.info(
        "partner_commission_accrued",
        partner_id=str(event.external_partner_id),
        ticket_id=str(ticket.pk),
        amount=str(ticket.commission_amount),
    )


def list_pending_verifications(actor: UniversityUser, event_id: t.Any | None = None) -> t.Any:
    """Pending receipts across the events the actor runs, oldest first."""
    qs = _base_queryset().filter(
        ticket__event__in=Event.objects.managed_by(actor.pk), status=VerificationStatus.PENDING
    )
    if event_id is not None:
        qs = qs.filter(ticket__event_id=event_id)
    return qs.order_by("created_at")


def list_event_verifications(event_id: t.Any, actor: UniversityUser) -> t.Any:
    """Every verification for one event, newest first."""
    try:
        event = Event.objects.select_related("external_partner").get(pk=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(str(_("Event not found.")))
    if not access.is_event_owner_or_partner(actor, event):
        raise ForbiddenError(str(_("You are not the organizer or partner of this event.")))
    return _base_queryset().filter(ticket__event=event).order_by("-created_at")


def get_verification(verification_id: t.Any, actor: UniversityUser) -> PaymentVerification:
    """A single verification, visible to the buyer, the event's organizer or partner, and admins."""
    try:
        verification = _base_queryset().get(pk=verification_id)
    except PaymentVerification.DoesNotExist:
        raise NotFoundError(str(_("Payment verification not found.")))
    if not (
        verification.ticket.user_id == actor.pk
        or access.is_event_owner_or_partner(actor, verification.ticket.event)
        or actor.has_role(UniversityUser.Role.ADMIN)
    ):
        raise ForbiddenError(str(_("You do not have access to this payment verification.")))
    return verification


def list_my_verifications(user: UniversityUser) -> t.Any:
    """The user's own receipts, newest first."""
    return _base_queryset().filter(ticket__user=user).order_by("-created_at")
