import re
import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models


class UniversityUserQueryset(models.QuerySet["UniversityUser"]):
    """Queryset for UniversityUser."""

    def with_role(self, *roles: "UniversityUser.Role") -> t.Self:
        """Filter users holding any of the given roles."""
        return self.filter(role__in=roles)


class UniversityUserManager(UserManager["UniversityUser"]):
    def get_queryset(self) -> UniversityUserQueryset:
        """Get queryset for UniversityUser."""
        return UniversityUserQueryset(self.model, using=self._db)

    def with_role(self, *roles: "UniversityUser.Role") -> UniversityUserQueryset:
        """Filter users holding any of the given roles."""
        return self.get_queryset().with_role(*roles)

    def create_superuser(  # type: ignore[override]
        self, username: str, email: str | None = None, password: str | None = None, **extra_fields: t.Any
    ) -> "UniversityUser":
        """Superusers are platform admins."""
        extra_fields.setdefault("role", UniversityUser.Role.ADMIN)
        return super().create_superuser(username, email, password, **extra_fields)


class UniversityUser(AbstractUser):
    class Role(models.TextChoices):
        STUDENT = "STUDENT", "Student"
        ORGANIZER = "ORGANIZER", "Organizer"
        ADMIN = "ADMIN", "Admin"
        MODERATOR = "MODERATOR", "Moderator"
        FACULTY = "FACULTY", "Faculty"
        EXTERNAL_PARTNER = "EXTERNAL_PARTNER", "External partner"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT, db_index=True)
    faculty = models.CharField(max_length=255, blank=True, help_text="Faculty or department")

    objects = UniversityUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    @property
    def display_name(self) -> str:
        """Display name."""
        return self.get_display_name()

    def get_display_name(self) -> str:
        """Returns the user's full name, falling back to a prettified username."""
        return self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()

    def has_role(self, *roles: "UniversityUser.Role") -> bool:
        """Whether the user holds any of the given roles."""
        return self.role in roles
