from uuid import UUID

from django.db.models import QuerySet
from django.http import HttpResponse
from django.utils.translation import gettext_lazy as _
from ninja_extra import api_controller, route, status
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import ExportThrottle, UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.exceptions import NotFoundError
from events.service import checkin_service, event_service, export_service, payment_verification_service


@api_controller("/events", auth=UserJWTAuth(), tags=["Events"], throttle=UserDefaultThrottle())
class EventController(UserAwareController):
    def get_event(self, event_id: UUID) -> models.Event:
        try:
            return models.Event.objects.select_related("creator", "external_partner").get(pk=event_id)
        except models.Event.DoesNotExist:
            raise NotFoundError(str(_("Event not found.")))

    @route.get("", url_name="list_events", response=PaginatedResponseSchema[schema.EventSchema], auth=None)
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_events(self) -> QuerySet[models.Event]:
        """Browse published events, soonest first."""
        return models.Event.objects.visible().select_related("creator")

    @route.post(
        "",
        url_name="create_event",
        response={201: schema.EventSchema, 403: ErrorResponse, 422: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def create_event(self, payload: schema.EventCreateSchema) -> tuple[int, models.Event]:
        """Create an event.

        The check-in mode is derived from the paid/external flags. Events created by
        anyone but admins and moderators wait for moderation before they are listed.
        """
        return status.HTTP_201_CREATED, event_service.create_event(self.user(), payload)

    @route.get("/{event_id}", url_name="get_event", response=schema.EventSchema, auth=None)
    def get_event_detail(self, event_id: UUID) -> models.Event:
        """Retrieve a single event."""
        return self.get_event(event_id)

    @route.patch(
        "/{event_id}",
        url_name="update_event",
        response={200: schema.EventSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def update_event(self, event_id: UUID, payload: schema.EventUpdateSchema) -> models.Event:
        """Partially update an event. Switching free/paid is refused once people registered."""
        return event_service.update_event(self.get_event(event_id), self.user(), payload)

    @route.post(
        "/{event_id}/cancel",
        url_name="cancel_event",
        response={200: schema.EventSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def cancel_event(self, event_id: UUID) -> models.Event:
        """Cancel an event."""
        return event_service.cancel_event(self.get_event(event_id), self.user())

    @route.get("/{event_id}/stats", url_name="event_check_in_stats", response=schema.CheckInStatsSchema)
    def stats(self, event_id: UUID) -> checkin_service.CheckInStats:
        """Check-in totals and rate for an event."""
        return checkin_service.get_event_stats(event_id, self.user())

    @route.post(
        "/{event_id}/qr-code",
        url_name="generate_event_qr",
        response={200: schema.EventQRCodeSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def generate_qr(self, event_id: UUID, payload: schema.GenerateEventQRSchema) -> checkin_service.EventQRCode:
        """Generate the QR code students scan to check themselves in."""
        return checkin_service.generate_event_qr(event_id, self.user(), expiry_hours=payload.expiry_hours)

    @route.get(
        "/{event_id}/export",
        url_name="export_participants",
        response={200: None, 403: ErrorResponse, 404: ErrorResponse},
        throttle=ExportThrottle(),
    )
    def export_participants(self, event_id: UUID) -> HttpResponse:
        """Download the participant list as CSV."""
        content = export_service.export_event_participants(event_id, self.user())
        response = HttpResponse(content, content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="participants-{event_id}.csv"'
        return response

    @route.get(
        "/{event_id}/payment-verifications",
        url_name="event_payment_verifications",
        response=PaginatedResponseSchema[schema.PaymentVerificationSchema],
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def payment_verifications(self, event_id: UUID) -> QuerySet[models.PaymentVerification]:
        """All receipts uploaded for an event (organizer or partner only)."""
        return payment_verification_service.list_event_verifications(event_id, self.user())  # type: ignore[no-any-return]
