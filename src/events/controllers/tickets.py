from uuid import UUID

from django.db.models import QuerySet
from ninja_extra import api_controller, route, status
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import UserJWTAuth
from common.controllers import UserAwareController
from common.schema import ErrorResponse
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.service import ticket_service


@api_controller("/tickets", auth=UserJWTAuth(), tags=["Tickets"], throttle=WriteThrottle())
class TicketController(UserAwareController):
    @route.post(
        "",
        url_name="reserve_ticket",
        response={201: schema.TicketSchema, 400: ErrorResponse, 404: ErrorResponse, 409: ErrorResponse},
    )
    def reserve(self, payload: schema.TicketReserveSchema) -> tuple[int, models.Ticket]:
        """Reserve a ticket for a paid event.

        The ticket stays PENDING until the organizer approves the uploaded transfer
        receipt. Pay by bank transfer and put the returned ``ticket_code`` in the
        transfer comment.
        """
        ticket = ticket_service.reserve_ticket(payload.event_id, self.user())
        return status.HTTP_201_CREATED, models.Ticket.objects.full().get(pk=ticket.pk)

    @route.get(
        "/my",
        url_name="my_tickets",
        response=PaginatedResponseSchema[schema.TicketSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def my_tickets(self) -> QuerySet[models.Ticket]:
        """The current user's tickets, newest first."""
        return ticket_service.list_my_tickets(self.user())  # type: ignore[no-any-return]

    @route.post(
        "/{ticket_id}/refund",
        url_name="refund_ticket",
        response={200: schema.TicketSchema, 400: ErrorResponse, 403: ErrorResponse},
    )
    def refund(self, ticket_id: UUID) -> models.Ticket:
        """Refund a paid ticket before the event starts."""
        ticket = ticket_service.refund_ticket(ticket_id, self.user())
        return models.Ticket.objects.full().get(pk=ticket.pk)
