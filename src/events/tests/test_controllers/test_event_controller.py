from datetime import timedelta

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from events.models import CheckInMode, Event

pytestmark = pytest.mark.django_db


def test_list_events_is_public_and_hides_unmoderated(free_event: Event, make_event) -> None:
    make_event(title="Waiting for review", status=Event.EventStatus.PENDING_MODERATION)

    response = Client().get(reverse("api:list_events"))

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 1
    assert data["results"][0]["title"] == free_event.title
    assert data["results"][0]["check_in_mode"] == CheckInMode.STUDENTS_SCAN


def test_get_event(free_event: Event) -> None:
    response = Client().get(reverse("api:get_event", kwargs={"event_id": free_event.pk}))

    assert response.status_code == 200
    assert response.json()["id"] == str(free_event.pk)


def test_get_unknown_event() -> None:
    response = Client().get(reverse("api:get_event", kwargs={"event_id": "00000000-0000-0000-0000-000000000000"}))

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_create_event(organizer_client: Client, next_week) -> None:
    payload = {
        "title": "Career Fair",
        "capacity": 200,
        "is_paid": True,
        "price": "15.00",
        "start_date": next_week.isoformat(),
        "end_date": (next_week + timedelta(hours=6)).isoformat(),
    }

    response = organizer_client.post(
        reverse("api:create_event"), data=orjson.dumps(payload), content_type="application/json"
    )

    assert response.status_code == 201, response.content
    data = response.json()
    assert data["check_in_mode"] == CheckInMode.ORGANIZER_SCANS
    assert data["status"] == Event.EventStatus.PENDING_MODERATION


def test_create_event_requires_auth(next_week) -> None:
    response = Client().post(reverse("api:create_event"), data={}, content_type="application/json")
    assert response.status_code == 401


def test_student_cannot_create_event(student_client: Client, next_week) -> None:
    payload = {
        "title": "Party",
        "capacity": 10,
        "start_date": next_week.isoformat(),
        "end_date": (next_week + timedelta(hours=2)).isoformat(),
    }

    response = student_client.post(
        reverse("api:create_event"), data=orjson.dumps(payload), content_type="application/json"
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "You do not have permission to create events.", "code": "FORBIDDEN"}


def test_update_event(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.patch(
        reverse("api:update_event", kwargs={"event_id": free_event.pk}),
        data=orjson.dumps({"location": "Auditorium B"}),
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json()["location"] == "Auditorium B"


def test_cancel_event(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.post(reverse("api:cancel_event", kwargs={"event_id": free_event.pk}))

    assert response.status_code == 200
    assert response.json()["status"] == Event.EventStatus.CANCELLED


def test_generate_event_qr(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.post(
        reverse("api:generate_event_qr", kwargs={"event_id": free_event.pk}),
        data=orjson.dumps({"expiry_hours": 4}),
        content_type="application/json",
    )

    assert response.status_code == 200
    assert response.json()["qr_code"].startswith("data:image/png;base64,")


def test_generate_event_qr_rejects_long_expiry(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.post(
        reverse("api:generate_event_qr", kwargs={"event_id": free_event.pk}),
        data=orjson.dumps({"expiry_hours": 169}),
        content_type="application/json",
    )

    assert response.status_code == 422


def test_generate_event_qr_without_secret(organizer_client: Client, free_event: Event, settings) -> None:
    settings.QR_SIGNING_SECRET = None

    response = organizer_client.post(
        reverse("api:generate_event_qr", kwargs={"event_id": free_event.pk}),
        data=orjson.dumps({}),
        content_type="application/json",
    )

    assert response.status_code == 500
    assert response.json()["code"] == "CONFIG_FATAL"


def test_stats(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.get(reverse("api:event_check_in_stats", kwargs={"event_id": free_event.pk}))

    assert response.status_code == 200
    assert response.json()["total_check_ins"] == 0


def test_export_csv(organizer_client: Client, free_event: Event) -> None:
    response = organizer_client.get(reverse("api:export_participants", kwargs={"event_id": free_event.pk}))

    assert response.status_code == 200
    assert response["Content-Type"].startswith("text/csv")
    assert "attachment" in response["Content-Disposition"]
    assert response.content.decode("utf-8").startswith("\ufeff")


def test_export_forbidden_for_students(student_client: Client, free_event: Event) -> None:
    response = student_client.get(reverse("api:export_participants", kwargs={"event_id": free_event.pk}))
    assert response.status_code == 403
