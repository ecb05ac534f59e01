import typing as t

from django.core.management.base import BaseCommand

from events.service.reconcile import reconcile_check_in_modes


class Command(BaseCommand):
    """Repair events whose stored check-in mode drifted from their paid/external flags.

    Also clears registration QR codes on events that should not issue them and mints
    missing ones where they are required.
    """

    help = "Recompute check-in modes and fix registration QR codes"

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report what would change without writing anything",
        )

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Run the reconciliation and print a summary."""
        report = reconcile_check_in_modes(dry_run=options["dry_run"])
        prefix = "[dry run] " if report.dry_run else ""

        for change in report.mode_changes:
            self.stdout.write(f"{prefix}{change.title} ({change.event_id}): {change.old_mode} -> {change.new_mode}")

        if not report.changed:
            self.stdout.write(self.style.SUCCESS("All events are consistent."))
            return

        self.stdout.write(
            self.style.SUCCESS(
                f"{prefix}{len(report.mode_changes)} event(s) updated, "
                f"{report.qr_codes_cleared} registration QR code(s) cleared, "
                f"{report.qr_codes_issued} registration QR code(s) issued."
            )
        )
