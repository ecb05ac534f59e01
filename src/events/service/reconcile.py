"""Repair events whose stored check-in mode drifted from their flags."""

import typing as t
from dataclasses import dataclass, field

import structlog
from django.db import transaction

from events.models import Event, Registration

from .check_in_mode import should_generate_registration_qr
from .registration_service import issue_registration_qr

logger = structlog.get_logger(__name__)


@dataclass
class ModeChange:
    event_id: t.Any
    title: str
    old_mode: str
    new_mode: str


@dataclass
class ReconcileReport:
    dry_run: bool
    mode_changes: list[ModeChange] = field(default_factory=list)
    qr_codes_cleared: int = 0
    qr_codes_issued: int = 0

    @property
    def changed(self) -> bool:
        """Whether anything was (or would be) modified."""
        return bool(self.mode_changes or self.qr_codes_cleared or self.qr_codes_issued)


def reconcile_check_in_modes(dry_run: bool = False) -> ReconcileReport:
    """Bring stored check-in modes and registration QR codes back in line with the policy.

    1. Events whose stored mode differs from ``determine_check_in_mode`` get the derived mode.
    2. Registrations holding a QR code on events that should not issue one lose it.
    3. Registrations missing a QR code on events that should issue one get a fresh one.

    With ``dry_run`` nothing is written; the report says what would change.
    """
    report = ReconcileReport(dry_run=dry_run)

    with transaction.atomic():
        drifted = Event.objects.with_check_in_mode_drift().select_for_update()
        for event in drifted:
            new_mode = event.expected_check_in_mode
            report.mode_changes.append(
                ModeChange(event_id=event.pk, title=event.title, old_mode=event.check_in_mode, new_mode=new_mode)
            )
            if not dry_run:
                Event.objects.filter(pk=event.pk).update(check_in_mode=new_mode)
            logger.info(
                "check_in_mode_drift_repaired",
                event_id=str(event.pk),
                old_mode=event.check_in_mode,
                new_mode=new_mode,
                dry_run=dry_run,
            )

        # Evaluated after step 1, so repaired modes are taken into account (or simulated on dry runs).
        simulated_modes = {change.event_id: change.new_mode for change in report.mode_changes}
        with_qr_event_ids: list[t.Any] = []
        without_qr_event_ids: list[t.Any] = []
        for event_id, mode, is_paid in Event.objects.values_list("id", "check_in_mode", "is_paid"):
            mode = simulated_modes.get(event_id, mode)
            if should_generate_registration_qr(check_in_mode=mode, is_paid=is_paid):
                with_qr_event_ids.append(event_id)
            else:
                without_qr_event_ids.append(event_id)

        stale = Registration.objects.filter(event_id__in=without_qr_event_ids, qr_code__isnull=False)
        report.qr_codes_cleared = stale.count()
        if not dry_run and report.qr_codes_cleared:
            stale.update(qr_code=None)

        missing = Registration.objects.filter(event_id__in=with_qr_event_ids, qr_code__isnull=True)
        if dry_run:
            report.qr_codes_issued = missing.count()
        else:
            for registration in missing.select_for_update().select_related("event"):
                if issue_registration_qr(registration).qr_code:
                    report.qr_codes_issued += 1

    logger.info(
        "check_in_modes_reconciled",
        dry_run=dry_run,
        mode_changes=len(report.mode_changes),
        qr_codes_cleared=report.qr_codes_cleared,
        qr_codes_issued=report.qr_codes_issued,
    )
    return report
