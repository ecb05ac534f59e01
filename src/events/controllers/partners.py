from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import WriteThrottle
from events import models, schema
from events.service import partner_service


@api_controller("/partners", auth=UserJWTAuth(), tags=["Partners"], throttle=WriteThrottle())
class PartnerController(UserAwareController):
    @route.post(
        "/{partner_id}/commission-paid",
        url_name="mark_commission_paid",
        response={200: schema.ExternalPartnerSchema, 403: ErrorResponse, 404: ErrorResponse, 422: ErrorResponse},
    )
    def commission_paid(self, partner_id: UUID, payload: schema.CommissionPaymentSchema) -> models.ExternalPartner:
        """Record a commission payment received from a partner (admin only)."""
        return partner_service.mark_commission_paid(partner_id, payload.amount, self.user())
