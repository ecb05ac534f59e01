"""Who may do what to an event.

Plain predicates; services raise ``ForbiddenError`` when they return False.
"""

from accounts.models import UniversityUser
from events.models import Event

Role = UniversityUser.Role


def is_event_owner_or_partner(user: UniversityUser, event: Event) -> bool:
    """The event creator or the account holder of the hosting partner."""
    return event.is_managed_by(user.pk)


def can_manage_event(user: UniversityUser, event: Event) -> bool:
    """Edit or cancel the event."""
    return is_event_owner_or_partner(user, event) or user.has_role(Role.ADMIN, Role.MODERATOR)


def can_manage_check_in(user: UniversityUser, event: Event) -> bool:
    """Check registrations in/out and browse participants."""
    return event.creator_id == user.pk or user.has_role(Role.ORGANIZER, Role.ADMIN)


def can_export_participants(user: UniversityUser, event: Event) -> bool:
    """Organizers export their own events; admins export any."""
    if user.has_role(Role.ADMIN):
        return True
    return user.has_role(Role.ORGANIZER) and event.creator_id == user.pk


def can_create_events(user: UniversityUser) -> bool:
    return user.has_role(Role.ORGANIZER, Role.ADMIN, Role.MODERATOR, Role.EXTERNAL_PARTNER)
