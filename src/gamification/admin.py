from django.contrib import admin

from .models import Achievement, PointsTransaction, UserScore


@admin.register(UserScore)
class UserScoreAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["user", "points", "level", "updated_at"]
    list_filter = ["level"]
    search_fields = ["user__username", "user__email"]
    ordering = ["-points"]


@admin.register(PointsTransaction)
class PointsTransactionAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["user", "points", "reason", "event", "created_at"]
    search_fields = ["user__username", "reason"]
    readonly_fields = ["user", "points", "reason", "event", "created_at"]


@admin.register(Achievement)
class AchievementAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["user", "code", "points", "created_at"]
    list_filter = ["code"]
