import re
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts.models import UniversityUser
from events.exceptions import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from events.models import Event, Ticket
from events.service import ticket_service

pytestmark = pytest.mark.django_db

TicketStatus = Ticket.TicketStatus


def test_ticket_code_format() -> None:
    assert re.fullmatch(r"TICKET-[0-9A-F]{8}", ticket_service.generate_ticket_code())


@pytest.mark.parametrize(
    "price,rate,commission,partner_amount",
    [
        (Decimal("100.00"), Decimal("0.10"), Decimal("10.00"), Decimal("90.00")),
        (Decimal("49.99"), Decimal("0.10"), Decimal("5.00"), Decimal("44.99")),
        (Decimal("0.05"), Decimal("0.10"), Decimal("0.01"), Decimal("0.04")),
        (Decimal("33.33"), Decimal("0.15"), Decimal("5.00"), Decimal("28.33")),
    ],
)
def test_split_commission(price: Decimal, rate: Decimal, commission: Decimal, partner_amount: Decimal) -> None:
    assert ticket_service.split_commission(price, rate) == (commission, partner_amount)


class TestReserve:
    def test_reserves_pending_ticket(self, paid_event: Event, student: UniversityUser) -> None:
        ticket = ticket_service.reserve_ticket(paid_event.pk, student)

        assert ticket.status == TicketStatus.PENDING
        assert ticket.price == Decimal("100.00")
        assert ticket.ticket_code.startswith("TICKET-")
        assert ticket.qr_code is None
        assert ticket.commission_amount is None

    def test_partner_event_snapshots_commission(self, external_paid_event: Event, student, partner) -> None:
        ticket = ticket_service.reserve_ticket(external_paid_event.pk, student)

        assert ticket.commission_rate == Decimal("0.10")
        assert ticket.commission_amount == Decimal("5.00")
        assert ticket.partner_amount == Decimal("45.00")

    def test_commission_rate_change_does_not_touch_existing_tickets(
        self, external_paid_event: Event, student, partner
    ) -> None:
        ticket = ticket_service.reserve_ticket(external_paid_event.pk, student)
        partner.commission_rate = Decimal("0.20")
        partner.save()

        ticket.refresh_from_db()
        assert ticket.commission_amount == Decimal("5.00")

    def test_free_event_is_rejected(self, free_event: Event, student) -> None:
        with pytest.raises(InvalidStateError):
            ticket_service.reserve_ticket(free_event.pk, student)

    def test_second_live_ticket_conflicts(self, paid_event: Event, student) -> None:
        ticket_service.reserve_ticket(paid_event.pk, student)

        with pytest.raises(ConflictError):
            ticket_service.reserve_ticket(paid_event.pk, student)

    def test_sold_out(self, paid_event: Event, user_factory) -> None:
        for _ in range(paid_event.capacity):
            ticket_service.reserve_ticket(paid_event.pk, user_factory())

        with pytest.raises(InvalidStateError, match="sold out"):
            ticket_service.reserve_ticket(paid_event.pk, user_factory())

    def test_refunded_ticket_frees_seat_and_allows_rebuy(self, paid_event: Event, student, make_ticket) -> None:
        make_ticket(paid_event, student, status=TicketStatus.REFUNDED)

        ticket = ticket_service.reserve_ticket(paid_event.pk, student)

        assert ticket.status == TicketStatus.PENDING
        assert Ticket.objects.filter(event=paid_event, user=student).count() == 2

    def test_cancelled_event(self, paid_event: Event, student) -> None:
        Event.objects.filter(pk=paid_event.pk).update(status=Event.EventStatus.CANCELLED)

        with pytest.raises(InvalidStateError):
            ticket_service.reserve_ticket(paid_event.pk, student)

    def test_unknown_event(self, student) -> None:
        with pytest.raises(NotFoundError):
            ticket_service.reserve_ticket("00000000-0000-0000-0000-000000000000", student)


class TestRefund:
    def test_refund_paid_ticket(self, paid_event: Event, student, make_ticket) -> None:
        ticket = make_ticket(paid_event, student, status=TicketStatus.PAID)

        assert ticket_service.refund_ticket(ticket.pk, student).status == TicketStatus.REFUNDED

    def test_admin_can_refund(self, paid_event: Event, student, admin_user, make_ticket) -> None:
        ticket = make_ticket(paid_event, student, status=TicketStatus.PAID)

        assert ticket_service.refund_ticket(ticket.pk, admin_user).status == TicketStatus.REFUNDED

    def test_other_user_cannot_refund(self, paid_event: Event, student, other_student, make_ticket) -> None:
        ticket = make_ticket(paid_event, student, status=TicketStatus.PAID)

        with pytest.raises(ForbiddenError):
            ticket_service.refund_ticket(ticket.pk, other_student)

    @pytest.mark.parametrize("status", [TicketStatus.PENDING, TicketStatus.USED, TicketStatus.REFUNDED])
    def test_only_paid_tickets(self, paid_event: Event, student, make_ticket, status) -> None:
        ticket = make_ticket(paid_event, student, status=status)

        with pytest.raises(InvalidStateError):
            ticket_service.refund_ticket(ticket.pk, student)

    def test_not_after_start(self, make_event, student, make_ticket) -> None:
        start = timezone.now() - timedelta(minutes=5)
        event = make_event(is_paid=True, price=Decimal("10.00"), start_date=start, end_date=start + timedelta(hours=1))
        ticket = make_ticket(event, student, status=TicketStatus.PAID)

        with pytest.raises(InvalidStateError):
            ticket_service.refund_ticket(ticket.pk, student)


def test_list_my_tickets(paid_event: Event, external_paid_event: Event, student, other_student) -> None:
    ticket_service.reserve_ticket(paid_event.pk, student)
    ticket_service.reserve_ticket(external_paid_event.pk, student)
    ticket_service.reserve_ticket(paid_event.pk, other_student)

    assert {t.event_id for t in ticket_service.list_my_tickets(student)} == {paid_event.pk, external_paid_event.pk}
