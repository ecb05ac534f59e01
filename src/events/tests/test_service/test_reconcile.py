from io import StringIO

import pytest
from django.core.management import call_command

from accounts.models import UniversityUser
from common.signing import QRTokenCodec
from events.models import CheckInMode, Event, Registration
from events.service.reconcile import reconcile_check_in_modes

pytestmark = pytest.mark.django_db


def test_nothing_to_do(free_event: Event) -> None:
    report = reconcile_check_in_modes()

    assert not report.changed
    assert report.mode_changes == []


def test_repairs_drifted_mode(paid_event: Event) -> None:
    Event.objects.filter(pk=paid_event.pk).update(check_in_mode=CheckInMode.STUDENTS_SCAN)

    report = reconcile_check_in_modes()

    paid_event.refresh_from_db()
    assert paid_event.check_in_mode == CheckInMode.ORGANIZER_SCANS
    assert len(report.mode_changes) == 1
    change = report.mode_changes[0]
    assert change.event_id == paid_event.pk
    assert change.old_mode == CheckInMode.STUDENTS_SCAN
    assert change.new_mode == CheckInMode.ORGANIZER_SCANS


def test_clears_qr_codes_on_events_that_should_not_issue_them(
    free_event: Event, student: UniversityUser, make_registration
) -> None:
    registration = make_registration(free_event, student, qr_code="data:image/png;base64,stale")

    report = reconcile_check_in_modes()

    registration.refresh_from_db()
    assert registration.qr_code is None
    assert report.qr_codes_cleared == 1


def test_issues_missing_qr_codes(external_free_event: Event, student: UniversityUser, make_registration) -> None:
    registration = make_registration(external_free_event, student)

    report = reconcile_check_in_modes()

    registration.refresh_from_db()
    assert registration.qr_code.startswith("data:image/png;base64,")
    assert report.qr_codes_issued == 1


def test_mode_repair_is_considered_before_qr_fixes(
    external_free_event: Event, student: UniversityUser, make_registration
) -> None:
    # Stored as students-scan; after repair it is organizer-scans and the registration needs a QR code.
    Event.objects.filter(pk=external_free_event.pk).update(check_in_mode=CheckInMode.STUDENTS_SCAN)
    registration = make_registration(external_free_event, student)

    report = reconcile_check_in_modes()

    registration.refresh_from_db()
    assert len(report.mode_changes) == 1
    assert report.qr_codes_issued == 1
    assert registration.qr_code is not None


def test_dry_run_writes_nothing(paid_event: Event, free_event: Event, student: UniversityUser, make_registration) -> None:
    Event.objects.filter(pk=paid_event.pk).update(check_in_mode=CheckInMode.STUDENTS_SCAN)
    registration = make_registration(free_event, student, qr_code="stale")

    report = reconcile_check_in_modes(dry_run=True)

    paid_event.refresh_from_db()
    registration.refresh_from_db()
    assert report.dry_run
    assert report.changed
    assert report.qr_codes_cleared == 1
    assert paid_event.check_in_mode == CheckInMode.STUDENTS_SCAN
    assert registration.qr_code == "stale"


def test_issued_qr_carries_registration_payload(
    external_free_event: Event, student: UniversityUser, make_registration, monkeypatch, qr_signing_secret: str
) -> None:
    encoded: list[str] = []
    codec = QRTokenCodec(qr_signing_secret, renderer=lambda text: encoded.append(text) or "img")
    monkeypatch.setattr("events.service.registration_service.get_qr_codec", lambda: codec)
    registration = make_registration(external_free_event, student)

    reconcile_check_in_modes()

    assert len(encoded) == 1
    fields = codec.verify(encoded[0]).fields
    assert fields["registrationId"] == str(registration.pk)
    assert fields["eventId"] == str(external_free_event.pk)
    assert fields["userId"] == str(student.pk)


class TestCommand:
    def test_reports_consistent(self, free_event: Event) -> None:
        out = StringIO()
        call_command("fix_check_in_modes", stdout=out)
        assert "All events are consistent." in out.getvalue()

    def test_reports_changes(self, paid_event: Event) -> None:
        Event.objects.filter(pk=paid_event.pk).update(check_in_mode=CheckInMode.STUDENTS_SCAN)
        out = StringIO()

        call_command("fix_check_in_modes", stdout=out)

        output = out.getvalue()
        assert "STUDENTS_SCAN -> ORGANIZER_SCANS" in output
        assert "1 event(s) updated" in output
        paid_event.refresh_from_db()
        assert paid_event.check_in_mode == CheckInMode.ORGANIZER_SCANS

    def test_dry_run(self, paid_event: Event) -> None:
        Event.objects.filter(pk=paid_event.pk).update(check_in_mode=CheckInMode.STUDENTS_SCAN)
        out = StringIO()

        call_command("fix_check_in_modes", "--dry-run", stdout=out)

        assert "[dry run]" in out.getvalue()
        paid_event.refresh_from_db()
        assert paid_event.check_in_mode == CheckInMode.STUDENTS_SCAN
