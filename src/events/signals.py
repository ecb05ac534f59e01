import structlog
from django.dispatch import Signal, receiver

logger = structlog.get_logger(__name__)

# Sent with ``event`` when a non-staff user creates an event that needs review.
event_submitted_for_moderation = Signal()


@receiver(event_submitted_for_moderation)
def log_moderation_request(sender: type, event: object, **kwargs: object) -> None:
    """Record the submission; moderators pick events up from the admin queue."""
    logger.info("event_submitted_for_moderation", event_id=str(getattr(event, "pk", None)))
