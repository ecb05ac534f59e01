from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .enums import CheckInMode


class CheckIn(TimeStampedModel):
    """Attendance record: one per attendee per event, whichever side scanned."""

    event = models.ForeignKey("events.Event", on_delete=models.CASCADE, related_name="check_ins")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="check_ins")
    scan_mode = models.CharField(max_length=20, choices=CheckInMode.choices)
    checked_in_at = models.DateTimeField(default=timezone.now, db_index=True)
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )

    class Meta:
        ordering = ["-checked_in_at"]
        constraints = [models.UniqueConstraint(fields=["event", "user"], name="unique_check_in_event_user")]

    def __str__(self) -> str:
        return f"CheckIn: {self.user_id} @ {self.event_id}"
