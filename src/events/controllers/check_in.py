from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import ScanThrottle, UserDefaultThrottle
from events import models, schema
from events.service import checkin_service

SCAN_ERRORS = {400: ErrorResponse, 403: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse, 422: ErrorResponse}


def _scan_response(result: checkin_service.ScanResult) -> schema.ScanResultSchema:
    return schema.ScanResultSchema(
        check_in=schema.CheckInSchema.from_orm(result.check_in),
        ticket_id=result.ticket.pk if result.ticket else None,
        registration_id=result.registration.pk if result.registration else None,
    )


@api_controller("/check-in", auth=UserJWTAuth(), tags=["Check-in"], throttle=ScanThrottle())
class CheckInController(UserAwareController):
    @route.post("/validate-ticket", url_name="validate_ticket", response={200: schema.ScanResultSchema, **SCAN_ERRORS})
    def validate_ticket(self, payload: schema.TicketScanSchema) -> schema.ScanResultSchema:
        """Organizer scans an attendee's ticket or registration QR code."""
        return _scan_response(checkin_service.validate_ticket_scan(payload.event_id, payload.qr_data, self.user()))

    @route.post(
        "/validate-student", url_name="validate_student", response={200: schema.ScanResultSchema, **SCAN_ERRORS}
    )
    def validate_student(self, payload: schema.StudentScanSchema) -> schema.ScanResultSchema:
        """Student scans the event's QR code to check in."""
        return _scan_response(checkin_service.validate_student_scan(payload.qr_data, self.user()))

    @route.get(
        "/events/{event_id}",
        url_name="list_check_ins",
        response=list[schema.CheckInSchema],
        throttle=UserDefaultThrottle(),
    )
    def list_check_ins(self, event_id: UUID) -> QuerySet[models.CheckIn]:
        """Everyone checked in to an event, latest first."""
        return checkin_service.list_check_ins(event_id, self.user())  # type: ignore[no-any-return]
