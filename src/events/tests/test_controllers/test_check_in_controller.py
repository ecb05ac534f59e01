import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from common.signing import event_payload, get_qr_codec, ticket_payload
from events.models import Event, Ticket
from events.service import checkin_service

pytestmark = pytest.mark.django_db


def test_validate_ticket(organizer_client: Client, ongoing_paid_event: Event, student, make_ticket) -> None:
    ticket = make_ticket(ongoing_paid_event, student, status=Ticket.TicketStatus.PAID)
    qr_data = get_qr_codec().encode(ticket_payload(ticket))

    response = organizer_client.post(
        reverse("api:validate_ticket"),
        data=orjson.dumps({"event_id": str(ongoing_paid_event.pk), "qr_data": qr_data}),
        content_type="application/json",
    )

    assert response.status_code == 200, response.content
    data = response.json()
    assert data["ticket_id"] == str(ticket.pk)
    assert data["check_in"]["user"]["id"] == str(student.pk)
    assert data["check_in"]["scan_mode"] == "ORGANIZER_SCANS"


def test_validate_ticket_bad_signature(
    organizer_client: Client, ongoing_paid_event: Event, student, make_ticket
) -> None:
    ticket = make_ticket(ongoing_paid_event, student, status=Ticket.TicketStatus.PAID)
    data = orjson.loads(get_qr_codec().encode(ticket_payload(ticket)))
    data["signature"] = "f" * 64

    response = organizer_client.post(
        reverse("api:validate_ticket"),
        data=orjson.dumps({"event_id": str(ongoing_paid_event.pk), "qr_data": orjson.dumps(data).decode()}),
        content_type="application/json",
    )

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_validate_ticket_malformed(organizer_client: Client, ongoing_paid_event: Event) -> None:
    response = organizer_client.post(
        reverse("api:validate_ticket"),
        data=orjson.dumps({"event_id": str(ongoing_paid_event.pk), "qr_data": "{not-json"}),
        content_type="application/json",
    )

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_FAILED"


def test_validate_student(student_client: Client, ongoing_free_event: Event, student, make_registration) -> None:
    make_registration(ongoing_free_event, student)
    qr_data = get_qr_codec().encode(event_payload(ongoing_free_event))

    response = student_client.post(
        reverse("api:validate_student"), data=orjson.dumps({"qr_data": qr_data}), content_type="application/json"
    )

    assert response.status_code == 200, response.content
    assert response.json()["check_in"]["scan_mode"] == "STUDENTS_SCAN"


def test_validate_student_twice(
    student_client: Client, ongoing_free_event: Event, student, make_registration
) -> None:
    make_registration(ongoing_free_event, student)
    body = orjson.dumps({"qr_data": get_qr_codec().encode(event_payload(ongoing_free_event))})
    student_client.post(reverse("api:validate_student"), data=body, content_type="application/json")

    response = student_client.post(reverse("api:validate_student"), data=body, content_type="application/json")

    assert response.status_code == 409


def test_list_check_ins(organizer_client: Client, ongoing_free_event: Event, student, make_registration) -> None:
    make_registration(ongoing_free_event, student)
    checkin_service.validate_student_scan(get_qr_codec().encode(event_payload(ongoing_free_event)), student)

    response = organizer_client.get(reverse("api:list_check_ins", kwargs={"event_id": ongoing_free_event.pk}))

    assert response.status_code == 200
    assert [c["user"]["id"] for c in response.json()] == [str(student.pk)]
