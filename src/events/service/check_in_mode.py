"""Check-in mode policy.

Who scans at the door follows from two event flags:

    external event        -> ORGANIZER_SCANS (partner staff scan tickets)
    internal, paid        -> ORGANIZER_SCANS (organizer scans tickets)
    internal, free        -> STUDENTS_SCAN  (students scan the event QR)

A registration only carries its own QR code when organizers scan and there is no
paid ticket to scan instead, i.e. free external events.

``Event.check_in_mode`` stores the result of ``determine_check_in_mode`` and is what
runtime code reads. See ``events.service.reconcile`` for repairing drifted rows.
"""

from events.models import CheckInMode


def determine_check_in_mode(*, is_paid: bool, is_external_event: bool) -> CheckInMode:
    """Return the check-in mode for an event with the given flags."""
    if is_external_event or is_paid:
        return CheckInMode.ORGANIZER_SCANS
    return CheckInMode.STUDENTS_SCAN


def should_generate_registration_qr(*, check_in_mode: str, is_paid: bool) -> bool:
    """Whether a registration for such an event needs its own QR code.

    Paid events are scanned by ticket, and students-scan events by the event QR.
    """
    return check_in_mode == CheckInMode.ORGANIZER_SCANS and not is_paid
