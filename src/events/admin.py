from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from events.models import CheckIn, Event, ExternalPartner, PaymentVerification, Registration, Ticket


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["title", "status", "start_date", "capacity", "is_paid", "is_external_event", "check_in_mode"]
    list_filter = ["status", "is_paid", "is_external_event", "check_in_mode"]
    search_fields = ["title", "creator__username", "creator__email"]
    date_hierarchy = "start_date"
    readonly_fields = ["check_in_mode", "event_qr_code", "qr_code_expiry", "created_at", "updated_at"]
    raw_id_fields = ["creator", "external_partner"]
    actions = ["approve"]

    @admin.action(description="Approve selected events")
    def approve(self, request: HttpRequest, queryset: QuerySet[Event]) -> None:
        queryset.filter(status=Event.EventStatus.PENDING_MODERATION).update(status=Event.EventStatus.UPCOMING)


@admin.register(ExternalPartner)
class ExternalPartnerAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["company_name", "user", "commission_rate", "commission_debt", "total_commission_paid", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["company_name", "user__username", "user__email"]
    readonly_fields = ["commission_debt", "total_commission_paid"]
    raw_id_fields = ["user"]


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["user", "event", "status", "checked_in", "created_at"]
    list_filter = ["status", "checked_in"]
    search_fields = ["user__username", "user__email", "event__title"]
    readonly_fields = ["position", "qr_code"]
    raw_id_fields = ["user", "event"]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["ticket_code", "user", "event", "status", "price", "commission_amount", "created_at"]
    list_filter = ["status"]
    search_fields = ["ticket_code", "user__username", "user__email", "event__title"]
    readonly_fields = ["qr_code", "commission_rate", "commission_amount", "partner_amount"]
    raw_id_fields = ["user", "event"]


@admin.register(PaymentVerification)
class PaymentVerificationAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["ticket", "status", "verified_at", "created_at"]
    list_filter = ["status"]
    raw_id_fields = ["ticket", "verified_by"]


@admin.register(CheckIn)
class CheckInAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["user", "event", "scan_mode", "checked_in_at"]
    list_filter = ["scan_mode"]
    raw_id_fields = ["user", "event", "checked_in_by"]
