import typing as t
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts.models import UniversityUser
from events.models import Event, ExternalPartner, Registration, Ticket
from events.service.ticket_service import generate_ticket_code

EventFactory = t.Callable[..., Event]


@pytest.fixture
def ongoing_free_event(make_event: EventFactory) -> Event:
    """A students-scan event that started ten minutes ago."""
    start = timezone.now() - timedelta(minutes=10)
    return make_event(title="Live Lecture", start_date=start, end_date=start + timedelta(hours=2), capacity=50)


@pytest.fixture
def ongoing_external_event(make_event: EventFactory, partner: ExternalPartner) -> Event:
    start = timezone.now() - timedelta(minutes=10)
    return make_event(
        title="Partner Live Show",
        creator=partner.user,
        external_partner=partner,
        start_date=start,
        end_date=start + timedelta(hours=2),
        capacity=50,
    )


@pytest.fixture
def ongoing_paid_event(make_event: EventFactory) -> Event:
    start = timezone.now() - timedelta(minutes=10)
    return make_event(
        title="Paid Live Show",
        is_paid=True,
        price=Decimal("80.00"),
        start_date=start,
        end_date=start + timedelta(hours=2),
        capacity=50,
    )


@pytest.fixture
def make_registration() -> t.Callable[..., Registration]:
    """Insert a registration row directly, bypassing the service."""

    def _make(event: Event, user: UniversityUser, **kwargs: t.Any) -> Registration:
        kwargs.setdefault("status", Registration.RegistrationStatus.REGISTERED)
        position = Registration.objects.filter(event=event).count() + 1
        return Registration.objects.create(event=event, user=user, position=position, **kwargs)

    return _make


@pytest.fixture
def make_ticket() -> t.Callable[..., Ticket]:
    """Insert a ticket row directly, bypassing the service."""

    def _make(event: Event, user: UniversityUser, **kwargs: t.Any) -> Ticket:
        kwargs.setdefault("price", event.price or Decimal("0"))
        kwargs.setdefault("status", Ticket.TicketStatus.PENDING)
        kwargs.setdefault("ticket_code", generate_ticket_code())
        return Ticket.objects.create(event=event, user=user, **kwargs)

    return _make
