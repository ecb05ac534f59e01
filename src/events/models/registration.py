import typing as t

from django.conf import settings
from django.db import models

from common.models import TimeStampedModel


class RegistrationQuerySet(models.QuerySet["Registration"]):
    def with_event_and_user(self) -> t.Self:
        """Select the event and user for serialization."""
        return self.select_related("event", "user")

    def waitlist_order(self) -> t.Self:
        """FIFO order: join time, then insertion order within the event."""
        return self.order_by("created_at", "position")


class RegistrationManager(models.Manager["Registration"]):
    def get_queryset(self) -> RegistrationQuerySet:
        """Get base queryset."""
        return RegistrationQuerySet(self.model, using=self._db)

    def with_event_and_user(self) -> RegistrationQuerySet:
        """Select the event and user for serialization."""
        return self.get_queryset().with_event_and_user()


class Registration(TimeStampedModel):
    class RegistrationStatus(models.TextChoices):
        REGISTERED = "REGISTERED", "Registered"
        WAITLIST = "WAITLIST", "Waitlist"

    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="registrations")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations")
    status = models.CharField(
        max_length=20, choices=RegistrationStatus.choices, default=RegistrationStatus.REGISTERED, db_index=True
    )
    position = models.PositiveBigIntegerField(
        editable=False, help_text="Insertion order within the event; breaks created_at ties."
    )
    checked_in = models.BooleanField(default=False, db_index=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    qr_code = models.TextField(null=True, blank=True)

    objects = RegistrationManager()

    class Meta:
        ordering = ["created_at", "position"]
        constraints = [
            models.UniqueConstraint(fields=["user", "event"], name="unique_registration_user_event"),
            models.UniqueConstraint(fields=["event", "position"], name="unique_registration_event_position"),
        ]

    def __str__(self) -> str:
        return f"Registration: {self.user_id} -> {self.event_id} ({self.status})"
