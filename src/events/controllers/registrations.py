from uuid import UUID

from django.db.models import QuerySet
from django.utils.translation import gettext_lazy as _
from ninja import Query
from ninja_extra import api_controller, route, status
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.service import registration_service


@api_controller("/registrations", auth=UserJWTAuth(), tags=["Registrations"], throttle=WriteThrottle())
class RegistrationController(UserAwareController):
    @route.post(
        "",
        url_name="register",
        response={201: schema.RegistrationSchema, 400: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    )
    def register(self, payload: schema.RegistrationCreateSchema) -> tuple[int, models.Registration]:
        """Register for an event.

        When the event is full the registration is put on the waitlist instead of being
        refused. Free external events return a QR code to show at the door.
        """
        registration = registration_service.register(payload.event_id, self.user())
        return status.HTTP_201_CREATED, models.Registration.objects.with_event_and_user().get(pk=registration.pk)

    @route.get(
        "/my",
        url_name="my_registrations",
        response=PaginatedResponseSchema[schema.RegistrationSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def my_registrations(self) -> QuerySet[models.Registration]:
        """The current user's registrations, newest first."""
        return registration_service.list_my_registrations(self.user())  # type: ignore[no-any-return]

    @route.get(
        "/event/{event_id}",
        url_name="event_participants",
        response=PaginatedResponseSchema[schema.ParticipantSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def participants(
        self, event_id: UUID, params: Query[schema.ParticipantSearchSchema]
    ) -> QuerySet[models.Registration]:
        """Participants of an event in join order, searchable by name or email."""
        return registration_service.list_event_participants(  # type: ignore[no-any-return]
            event_id, self.user(), search=params.search
        )

    @route.delete(
        "/{registration_id}",
        url_name="cancel_registration",
        response={200: schema.CancelRegistrationResponse, 400: ErrorResponse, 403: ErrorResponse},
    )
    def cancel(self, registration_id: UUID) -> schema.CancelRegistrationResponse:
        """Cancel your registration. A freed seat goes to the first person on the waitlist."""
        promoted = registration_service.cancel(registration_id, self.user())
        return schema.CancelRegistrationResponse(
            message=str(_("Registration cancelled successfully.")),
            promoted_registration_id=promoted.pk if promoted else None,
        )

    @route.post(
        "/{registration_id}/check-in",
        url_name="check_in_registration",
        response={200: schema.RegistrationSchema, 400: ErrorResponse, 403: ErrorResponse},
    )
    def check_in(self, registration_id: UUID) -> models.Registration:
        """Manually mark a participant as attended."""
        registration = registration_service.check_in(registration_id, self.user())
        return models.Registration.objects.with_event_and_user().get(pk=registration.pk)

    @route.post(
        "/{registration_id}/undo-check-in",
        url_name="undo_check_in_registration",
        response={200: schema.RegistrationSchema, 400: ErrorResponse, 403: ErrorResponse},
    )
    def undo_check_in(self, registration_id: UUID) -> models.Registration:
        """Revert a manual or scanned check-in."""
        registration = registration_service.undo_check_in(registration_id, self.user())
        return models.Registration.objects.with_event_and_user().get(pk=registration.pk)
