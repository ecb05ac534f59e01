from uuid import UUID

from django.db.models import QuerySet
from ninja import Query
from ninja_extra import api_controller, route, status

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.service import payment_verification_service


@api_controller(
    "/payment-verifications", auth=UserJWTAuth(), tags=["Payment Verification"], throttle=UserDefaultThrottle()
)
class PaymentVerificationController(UserAwareController):
    @route.post(
        "/upload",
        url_name="upload_receipt",
        response={201: schema.PaymentVerificationSchema, 400: ErrorResponse, 403: ErrorResponse},
        throttle=WriteThrottle(),
    )
    def upload(self, payload: schema.ReceiptUploadSchema) -> tuple[int, models.PaymentVerification]:
        """Upload a bank-transfer receipt for a pending ticket. Re-uploading replaces the previous one."""
        verification = payment_verification_service.upload_receipt(
            payload.ticket_id, str(payload.receipt_image_url), self.user()
        )
        return status.HTTP_201_CREATED, payment_verification_service.get_verification(verification.pk, self.user())

    @route.get("/pending", url_name="pending_verifications", response=list[schema.PaymentVerificationSchema])
    def pending(self, filters: Query[schema.PendingVerificationFilterSchema]) -> QuerySet[models.PaymentVerification]:
        """Receipts waiting for a decision on the events you run, oldest first."""
        return payment_verification_service.list_pending_verifications(  # type: ignore[no-any-return]
            self.user(), event_id=filters.event_id
        )

    @route.get("/my", url_name="my_verifications", response=list[schema.PaymentVerificationSchema])
    def mine(self) -> QuerySet[models.PaymentVerification]:
        """Your uploaded receipts and their status."""
        return payment_verification_service.list_my_verifications(self.user())  # type: ignore[no-any-return]

    @route.get(
        "/{verification_id}",
        url_name="get_verification",
        response={200: schema.PaymentVerificationSchema, 403: ErrorResponse, 404: ErrorResponse},
    )
    def get(self, verification_id: UUID) -> models.PaymentVerification:
        """Retrieve one verification."""
        return payment_verification_service.get_verification(verification_id, self.user())

    @route.patch(
        "/{verification_id}/verify",
        url_name="verify_payment",
        response={
            200: schema.PaymentVerificationSchema,
            400: ErrorResponse,
            403: ErrorResponse,
            404: ErrorResponse,
            422: ErrorResponse,
        },
        throttle=WriteThrottle(),
    )
    def verify(self, verification_id: UUID, payload: schema.VerifyPaymentSchema) -> models.PaymentVerification:
        """Approve or reject a receipt.

        Approving marks the ticket PAID and issues its QR code. Rejecting requires
        notes; the buyer can then upload a new receipt.
        """
        verification = payment_verification_service.verify_payment(
            verification_id, self.user(), payload.decision, payload.organizer_notes
        )
        return payment_verification_service.get_verification(verification.pk, self.user())
