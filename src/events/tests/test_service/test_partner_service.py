from decimal import Decimal

import pytest

from events.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from events.models import ExternalPartner
from events.service.partner_service import mark_commission_paid

pytestmark = pytest.mark.django_db


@pytest.fixture
def indebted_partner(partner: ExternalPartner) -> ExternalPartner:
    ExternalPartner.objects.filter(pk=partner.pk).update(commission_debt=Decimal("30.00"))
    partner.refresh_from_db()
    return partner


def test_partial_payment(indebted_partner: ExternalPartner, admin_user) -> None:
    partner = mark_commission_paid(indebted_partner.pk, Decimal("10.00"), admin_user)

    assert partner.commission_debt == Decimal("20.00")
    assert partner.total_commission_paid == Decimal("10.00")


def test_cannot_overpay(indebted_partner: ExternalPartner, admin_user) -> None:
    with pytest.raises(ValidationFailedError):
        mark_commission_paid(indebted_partner.pk, Decimal("30.01"), admin_user)


def test_amount_must_be_positive(indebted_partner: ExternalPartner, admin_user) -> None:
    with pytest.raises(ValidationFailedError):
        mark_commission_paid(indebted_partner.pk, Decimal("0"), admin_user)


def test_admin_only(indebted_partner: ExternalPartner, organizer) -> None:
    with pytest.raises(ForbiddenError):
        mark_commission_paid(indebted_partner.pk, Decimal("10.00"), organizer)


def test_unknown_partner(admin_user) -> None:
    with pytest.raises(NotFoundError):
        mark_commission_paid("00000000-0000-0000-0000-000000000000", Decimal("1.00"), admin_user)
