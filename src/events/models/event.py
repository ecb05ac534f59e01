import typing as t
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from common.models import TimeStampedModel

from .enums import CheckInMode


class EventQuerySet(models.QuerySet["Event"]):
    def visible(self) -> t.Self:
        """Events that passed moderation."""
        return self.exclude(status=Event.EventStatus.PENDING_MODERATION)

    def managed_by(self, user_id: t.Any) -> t.Self:
        """Events the user created or hosts as an external partner."""
        return self.filter(Q(creator_id=user_id) | Q(external_partner__user_id=user_id))

    def with_check_in_mode_drift(self) -> t.Self:
        """Events whose stored check-in mode no longer matches their paid/external flags."""
        should_be_organizer_scans = Q(is_external_event=True) | Q(is_paid=True)
        return self.filter(
            (should_be_organizer_scans & Q(check_in_mode=CheckInMode.STUDENTS_SCAN))
            | (~should_be_organizer_scans & Q(check_in_mode=CheckInMode.ORGANIZER_SCANS))
        )


class EventManager(models.Manager["Event"]):
    def get_queryset(self) -> EventQuerySet:
        """Get base queryset."""
        return EventQuerySet(self.model, using=self._db)

    def visible(self) -> EventQuerySet:
        """Events that passed moderation."""
        return self.get_queryset().visible()

    def managed_by(self, user_id: t.Any) -> EventQuerySet:
        """Events the user created or hosts as an external partner."""
        return self.get_queryset().managed_by(user_id)

    def with_check_in_mode_drift(self) -> EventQuerySet:
        """Events whose stored check-in mode no longer matches their paid/external flags."""
        return self.get_queryset().with_check_in_mode_drift()


class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        PENDING_MODERATION = "PENDING_MODERATION", "Pending moderation"
        UPCOMING = "UPCOMING", "Upcoming"
        ONGOING = "ONGOING", "Ongoing"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    title = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    creator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="created_events")
    external_partner = models.ForeignKey(
        "events.ExternalPartner", on_delete=models.SET_NULL, null=True, blank=True, related_name="events"
    )
    is_external_event = models.BooleanField(default=False, db_index=True)
    is_paid = models.BooleanField(default=False, db_index=True)
    price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal("0"))]
    )
    capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    check_in_mode = models.CharField(
        max_length=20,
        choices=CheckInMode.choices,
        default=CheckInMode.STUDENTS_SCAN,
        help_text="Set from is_paid/is_external_event when the event is created or updated.",
    )
    status = models.CharField(
        max_length=20, choices=EventStatus.choices, default=EventStatus.PENDING_MODERATION, db_index=True
    )
    start_date = models.DateTimeField(db_index=True)
    end_date = models.DateTimeField(db_index=True)
    event_qr_code = models.TextField(null=True, blank=True, help_text="Rendered QR students scan to check in.")
    qr_code_expiry = models.DateTimeField(null=True, blank=True)

    objects = EventManager()

    class Meta:
        ordering = ["start_date"]

    def __str__(self) -> str:
        return self.title

    def clean(self) -> None:
        """Validate dates and pricing."""
        super().clean()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": "End date must be after the start date."})
        if self.is_paid and not self.price:
            raise ValidationError({"price": "Paid events need a price."})
        if self.is_external_event and self.external_partner_id is None:
            raise ValidationError({"external_partner": "External events need a partner."})

    @property
    def expected_check_in_mode(self) -> CheckInMode:
        """The check-in mode the current paid/external flags call for."""
        from events.service.check_in_mode import determine_check_in_mode

        return determine_check_in_mode(is_paid=self.is_paid, is_external_event=self.is_external_event)

    @property
    def has_check_in_mode_drift(self) -> bool:
        """Whether the stored check-in mode disagrees with the derived one."""
        return self.check_in_mode != self.expected_check_in_mode

    def has_started(self) -> bool:
        """Whether the event start is in the past."""
        return self.start_date < timezone.now()

    def has_ended(self) -> bool:
        """Whether the event end is in the past."""
        return self.end_date < timezone.now()

    def is_managed_by(self, user_id: t.Any) -> bool:
        """Creator or external partner account holder."""
        if self.creator_id == user_id:
            return True
        return self.external_partner is not None and self.external_partner.user_id == user_id
