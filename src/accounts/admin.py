"""Admin interface for accounts app."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.db.models import Count, QuerySet
from django.http import HttpRequest

from accounts.models import UniversityUser


@admin.register(UniversityUser)
class UniversityUserAdmin(UserAdmin):  # type: ignore[type-arg]
    list_display = [
        "username",
        "email",
        "display_name",
        "role",
        "faculty",
        "is_active",
        "date_joined",
        "registration_count",
    ]
    list_filter = ["role", "is_staff", "is_active", "date_joined"]
    search_fields = ["username", "first_name", "last_name", "email", "faculty"]
    ordering = ["-date_joined"]
    date_hierarchy = "date_joined"
    readonly_fields = ["id", "date_joined", "last_login"]

    fieldsets = (
        ("Personal Information", {"fields": ("id", ("username", "email"), ("first_name", "last_name"), "faculty")}),
        ("Role", {"fields": ("role",)}),
        ("Authentication", {"fields": ("password", ("date_joined", "last_login"))}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups"), "classes": ("collapse",)}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("username", "email", "role", "password1", "password2")}),
    )

    def get_queryset(self, request: HttpRequest) -> QuerySet[UniversityUser]:
        """Annotate registration counts for the changelist."""
        return super().get_queryset(request).annotate(_registration_count=Count("registrations"))

    @admin.display(description="Registrations", ordering="_registration_count")
    def registration_count(self, obj: UniversityUser) -> int:
        return getattr(obj, "_registration_count", 0)
