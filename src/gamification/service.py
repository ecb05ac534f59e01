"""Points and levels earned by attending events."""

import typing as t

import structlog
from django.db import transaction
from django.db.models import F

from events.models import CheckIn, Event

from .models import Achievement, Level, PointsTransaction, UserScore

logger = structlog.get_logger(__name__)

FREE_EVENT_CHECK_IN_POINTS = 10
PAID_EVENT_CHECK_IN_POINTS = 20
EXTERNAL_EVENT_CHECK_IN_POINTS = 15
FIRST_EVENT_POINTS = 25

# Minimum points per level, highest first.
LEVEL_THRESHOLDS: list[tuple[Level, int]] = [
    (Level.LEGEND, 1000),
    (Level.LEADER, 500),
    (Level.ACTIVE, 100),
    (Level.NEWCOMER, 0),
]


def calculate_level(points: int) -> Level:
    for level, threshold in LEVEL_THRESHOLDS:
        if points >= threshold:
            return level
    return Level.NEWCOMER


def check_in_points(event: Event) -> int:
    """Points for attending ``event``."""
    if event.is_external_event:
        return EXTERNAL_EVENT_CHECK_IN_POINTS
    if event.is_paid:
        return PAID_EVENT_CHECK_IN_POINTS
    return FREE_EVENT_CHECK_IN_POINTS


def award_points(user_id: t.Any, points: int, reason: str, event: Event | None = None) -> UserScore:
    """Add points to the user's score and move them to the matching level."""
    with transaction.atomic():
        score, _ = UserScore.objects.select_for_update().get_or_create(user_id=user_id)
        UserScore.objects.filter(pk=score.pk).update(points=F("points") + points)
        score.refresh_from_db()
        previous_level = score.level
        new_level = calculate_level(score.points)
        if new_level != previous_level:
            UserScore.objects.filter(pk=score.pk).update(level=new_level)
            score.level = new_level
        PointsTransaction.objects.create(user_id=user_id, event=event, points=points, reason=reason)

    logger.info("points_awarded", user_id=str(user_id), points=points, reason=reason, total=score.points)
    if new_level != previous_level:
        logger.info("level_up", user_id=str(user_id), level=new_level)
    return score


def _grant_first_event(user_id: t.Any, event: Event) -> int:
    if CheckIn.objects.filter(user_id=user_id).count() != 1:
        return 0
    _, created = Achievement.objects.get_or_create(
        user_id=user_id, code=Achievement.AchievementCode.FIRST_EVENT, defaults={"points": FIRST_EVENT_POINTS}
    )
    if not created:
        return 0
    award_points(user_id, FIRST_EVENT_POINTS, "Achievement: first event", event=event)
    return FIRST_EVENT_POINTS


def on_event_check_in(user_id: t.Any, event_id: t.Any) -> int:
    """Award attendance points for a check-in. Returns the points earned."""
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        logger.warning("check_in_points_skipped_unknown_event", user_id=str(user_id), event_id=str(event_id))
        return 0
    points = check_in_points(event)
    award_points(user_id, points, f"Check-in at {event.title}", event=event)
    return points + _grant_first_event(user_id, event)


def get_user_stats(user_id: t.Any) -> dict[str, t.Any]:
    """Points, level and progress towards the next level."""
    score = UserScore.objects.filter(user_id=user_id).first()
    points = score.points if score else 0
    level = calculate_level(points)
    thresholds = {lvl: threshold for lvl, threshold in LEVEL_THRESHOLDS}
    ordered = [lvl for lvl, _ in reversed(LEVEL_THRESHOLDS)]
    index = ordered.index(level)
    if level == Level.LEGEND:
        progress, next_level_points = 100, thresholds[Level.LEGEND]
    else:
        current, next_level_points = thresholds[level], thresholds[ordered[index + 1]]
        progress = round((points - current) / (next_level_points - current) * 100)
    return {
        "points": points,
        "level": level,
        "events_attended": CheckIn.objects.filter(user_id=user_id).count(),
        "achievements_count": Achievement.objects.filter(user_id=user_id).count(),
        "progress_to_next_level": progress,
        "next_level_points": next_level_points,
    }
