import typing as t
from decimal import Decimal

import structlog
from django.db import transaction
from django.db.models import F
from django.utils.translation import gettext_lazy as _

from accounts.models import UniversityUser
from events.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from events.models import ExternalPartner

logger = structlog.get_logger(__name__)


@transaction.atomic
def mark_commission_paid(partner_id: t.Any, amount: Decimal, actor: UniversityUser) -> ExternalPartner:
    """Record that a partner settled part of their commission debt."""
    if not actor.has_role(UniversityUser.Role.ADMIN):
        raise ForbiddenError(str(_("Only admins can record commission payments.")))
    try:
        partner = ExternalPartner.objects.select_for_update().get(pk=partner_id)
    except ExternalPartner.DoesNotExist:
        raise NotFoundError(str(_("Partner not found.")))
    if amount <= 0:
        raise ValidationFailedError(str(_("Amount must be positive.")))
    if amount > partner.commission_debt:
        raise ValidationFailedError(str(_("Amount exceeds the outstanding commission debt.")))

    ExternalPartner.objects.filter(pk=partner.pk).update(
        commission_debt=F("commission_debt") - amount,
        total_commission_paid=F("total_commission_paid") + amount,
    )
    partner.refresh_from_db()
    logger.info(
        "partner_commission_paid",
        partner_id=str(partner.pk),
        amount=str(amount),
        remaining_debt=str(partner.commission_debt),
        actor_id=str(actor.pk),
    )
    return partner
