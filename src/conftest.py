"""Fixtures shared by every app's tests."""

import secrets
import string
import typing as t
from datetime import datetime, time, timedelta
from decimal import Decimal

import faker
import pytest
from django.core.cache import cache
from django.test.client import Client
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from accounts.models import UniversityUser
from events.models import Event, ExternalPartner
from events.service.check_in_mode import determine_check_in_mode
from unievents.celery import app as celery_app

TEST_QR_SECRET = "test-qr-signing-secret"


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Run Celery tasks synchronously so their side effects are visible in the test."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True


@pytest.fixture(autouse=True)
def qr_signing_secret(settings: t.Any) -> str:
    """Configure a known QR signing secret."""
    settings.QR_SIGNING_SECRET = TEST_QR_SECRET
    return TEST_QR_SECRET


@pytest.fixture(autouse=True)
def clear_cache() -> t.Iterator[None]:
    """Start every test with an empty cache (scan cooldowns, throttles)."""
    cache.clear()
    yield
    cache.clear()


class UniversityUserFactory:
    """Factory for creating UniversityUser instances for testing."""

    fake = faker.Faker()

    def create_user(self, **kwargs: t.Any) -> UniversityUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)))
        email = kwargs.pop("email", f"{username}@university.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return UniversityUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> UniversityUser:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> UniversityUserFactory:
    return UniversityUserFactory()


@pytest.fixture
def student(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.STUDENT, faculty="Computer Science")


@pytest.fixture
def other_student(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.STUDENT, faculty="Economics")


@pytest.fixture
def organizer(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.ORGANIZER)


@pytest.fixture
def other_organizer(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.ORGANIZER)


@pytest.fixture
def admin_user(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.ADMIN, is_staff=True)


@pytest.fixture
def partner_user(user_factory: UniversityUserFactory) -> UniversityUser:
    return user_factory(role=UniversityUser.Role.EXTERNAL_PARTNER)


def auth_client(user: UniversityUser) -> Client:
    """A test client authenticated as ``user`` with a JWT access token."""
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")  # type: ignore[attr-defined]


@pytest.fixture
def student_client(student: UniversityUser) -> Client:
    return auth_client(student)


@pytest.fixture
def organizer_client(organizer: UniversityUser) -> Client:
    return auth_client(organizer)


@pytest.fixture
def admin_client_jwt(admin_user: UniversityUser) -> Client:
    return auth_client(admin_user)


@pytest.fixture
def partner_client(partner_user: UniversityUser) -> Client:
    return auth_client(partner_user)


@pytest.fixture
def next_week() -> datetime:
    today = timezone.now()
    same_time_next_week = today + timedelta(days=7)
    noon = time(hour=12, minute=0)
    return timezone.make_aware(
        datetime.combine(same_time_next_week.date(), noon),
        timezone.get_current_timezone(),
    )


@pytest.fixture
def client_for() -> t.Callable[[UniversityUser], Client]:
    """Build JWT-authenticated clients for arbitrary users."""
    return auth_client


EventFactory = t.Callable[..., Event]


@pytest.fixture
def partner(partner_user: UniversityUser) -> ExternalPartner:
    return ExternalPartner.objects.create(
        user=partner_user,
        company_name="Campus Concerts Ltd",
        payment_account_name="Campus Concerts",
        payment_phone="+201000000000",
        commission_rate=Decimal("0.10"),
    )


@pytest.fixture
def make_event(organizer: UniversityUser, next_week: datetime) -> EventFactory:
    """Create approved events; the check-in mode follows the paid/external flags unless given."""

    def _make(**kwargs: t.Any) -> Event:
        kwargs.setdefault("title", "Intro to Distributed Systems")
        kwargs.setdefault("creator", organizer)
        kwargs.setdefault("capacity", 2)
        kwargs.setdefault("status", Event.EventStatus.UPCOMING)
        kwargs.setdefault("start_date", next_week)
        kwargs.setdefault("end_date", kwargs["start_date"] + timedelta(hours=2))
        if kwargs.get("external_partner") is not None:
            kwargs.setdefault("is_external_event", True)
        kwargs.setdefault(
            "check_in_mode",
            determine_check_in_mode(
                is_paid=kwargs.get("is_paid", False), is_external_event=kwargs.get("is_external_event", False)
            ),
        )
        return Event.objects.create(**kwargs)

    return _make


@pytest.fixture
def free_event(make_event: EventFactory) -> Event:
    return make_event(title="Free Workshop")


@pytest.fixture
def paid_event(make_event: EventFactory) -> Event:
    return make_event(title="Gala Dinner", is_paid=True, price=Decimal("100.00"))


@pytest.fixture
def external_free_event(make_event: EventFactory, partner: ExternalPartner) -> Event:
    return make_event(title="Partner Meetup", creator=partner.user, external_partner=partner)


@pytest.fixture
def external_paid_event(make_event: EventFactory, partner: ExternalPartner) -> Event:
    return make_event(
        title="Partner Concert", creator=partner.user, external_partner=partner, is_paid=True, price=Decimal("50.00")
    )

