import typing as t

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from common.models import TimeStampedModel


class TicketQuerySet(models.QuerySet["Ticket"]):
    def live(self) -> t.Self:
        """Tickets that hold a seat."""
        return self.filter(status__in=Ticket.LIVE_STATUSES)

    def full(self) -> t.Self:
        """Select everything the ticket schemas render."""
        return self.select_related("event", "user", "payment_verification")


class TicketManager(models.Manager["Ticket"]):
    def get_queryset(self) -> TicketQuerySet:
        """Get base queryset."""
        return TicketQuerySet(self.model, using=self._db)

    def live(self) -> TicketQuerySet:
        """Tickets that hold a seat."""
        return self.get_queryset().live()

    def full(self) -> TicketQuerySet:
        """Select everything the ticket schemas render."""
        return self.get_queryset().full()


class Ticket(TimeStampedModel):
    class TicketStatus(models.TextChoices):
        PENDING = "PENDING", "Pending payment"
        PAID = "PAID", "Paid"
        USED = "USED", "Used"
        REFUNDED = "REFUNDED", "Refunded"
        CANCELLED = "CANCELLED", "Cancelled"

    LIVE_STATUSES = (TicketStatus.PENDING, TicketStatus.PAID, TicketStatus.USED)

    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="tickets")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tickets")
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    commission_rate = models.DecimalField(max_digits=5, decimal_places=4, null=True, blank=True)
    commission_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    partner_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    ticket_code = models.CharField(
        max_length=32, null=True, blank=True, unique=True, help_text="Reference the buyer puts in the transfer comment."
    )
    status = models.CharField(max_length=20, choices=TicketStatus.choices, default=TicketStatus.PENDING, db_index=True)
    qr_code = models.TextField(null=True, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)

    objects = TicketManager()

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"],
                condition=Q(status__in=["PENDING", "PAID", "USED"]),
                name="unique_live_ticket_user_event",
            )
        ]

    def __str__(self) -> str:
        return f"Ticket: {self.user_id} -> {self.event_id} ({self.status})"


class PaymentVerification(TimeStampedModel):
    """A buyer's bank-transfer receipt, awaiting a human decision.

    One row per ticket: re-uploading after a rejection overwrites it.
    """

    class VerificationStatus(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    ticket = models.OneToOneField(Ticket, on_delete=models.CASCADE, related_name="payment_verification")
    receipt_image_url = models.URLField(max_length=1024)
    status = models.CharField(
        max_length=20, choices=VerificationStatus.choices, default=VerificationStatus.PENDING, db_index=True
    )
    organizer_notes = models.TextField(null=True, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"Verification for {self.ticket_id} ({self.status})"
