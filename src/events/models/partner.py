from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from common.models import TimeStampedModel

DEFAULT_COMMISSION_RATE = Decimal("0.10")


class ExternalPartner(TimeStampedModel):
    """A third-party venue hosting events on the platform.

    Partners collect ticket money directly by bank transfer; the platform's cut
    accrues as ``commission_debt`` and is settled manually by an admin.
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="partner_profile")
    company_name = models.CharField(max_length=255)
    payment_account_name = models.CharField(max_length=255, blank=True, default="")
    payment_phone = models.CharField(max_length=32, blank=True, default="")
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=DEFAULT_COMMISSION_RATE,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
    )
    commission_debt = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total_commission_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    is_active = models.BooleanField(default=True)

    def __str__(self) -> str:
        return self.company_name
