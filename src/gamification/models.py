from django.conf import settings
from django.db import models

from common.models import TimeStampedModel


class Level(models.TextChoices):
    NEWCOMER = "NEWCOMER", "Newcomer"
    ACTIVE = "ACTIVE", "Active"
    LEADER = "LEADER", "Leader"
    LEGEND = "LEGEND", "Legend"


class UserScore(TimeStampedModel):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="score")
    points = models.PositiveIntegerField(default=0)
    level = models.CharField(max_length=20, choices=Level.choices, default=Level.NEWCOMER)

    def __str__(self) -> str:
        return f"{self.user_id}: {self.points} ({self.level})"


class PointsTransaction(TimeStampedModel):
    """Append-only log of awarded points."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="points_transactions")
    event = models.ForeignKey(
        "events.Event", on_delete=models.SET_NULL, null=True, blank=True, related_name="points_transactions"
    )
    points = models.PositiveIntegerField()
    reason = models.CharField(max_length=255)

    class Meta:
        ordering = ["-created_at"]


class Achievement(TimeStampedModel):
    class AchievementCode(models.TextChoices):
        FIRST_EVENT = "FIRST_EVENT", "First event attended"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="achievements")
    code = models.CharField(max_length=50, choices=AchievementCode.choices)
    points = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [models.UniqueConstraint(fields=["user", "code"], name="unique_achievement_per_user")]
