import structlog
from celery import shared_task

from . import service

logger = structlog.get_logger(__name__)


@shared_task
def award_check_in_points(user_id: str, event_id: str) -> int:
    """Award attendance points after a check-in was committed."""
    points = service.on_event_check_in(user_id, event_id)
    logger.info("check_in_points_task_done", user_id=user_id, event_id=event_id, points=points)
    return points
