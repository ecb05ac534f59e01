import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _timestamped() -> list[tuple[str, models.Field]]:  # type: ignore[type-arg]
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
        ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
    ]


CHECK_IN_MODES = [
    ("ORGANIZER_SCANS", "Organizer scans attendee QR"),
    ("STUDENTS_SCAN", "Students scan event QR"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ExternalPartner",
            fields=[
                *_timestamped(),
                ("company_name", models.CharField(max_length=255)),
                ("payment_account_name", models.CharField(blank=True, default="", max_length=255)),
                ("payment_phone", models.CharField(blank=True, default="", max_length=32)),
                (
                    "commission_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.10"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("1")),
                        ],
                    ),
                ),
                ("commission_debt", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("total_commission_paid", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="partner_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"abstract": False},
        ),
        migrations.CreateModel(
            name="Event",
            fields=[
                *_timestamped(),
                ("title", models.CharField(db_index=True, max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("is_external_event", models.BooleanField(db_index=True, default=False)),
                ("is_paid", models.BooleanField(db_index=True, default=False)),
                (
                    "price",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                    ),
                ),
                ("capacity", models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                (
                    "check_in_mode",
                    models.CharField(
                        choices=CHECK_IN_MODES,
                        default="STUDENTS_SCAN",
                        help_text="Set from is_paid/is_external_event when the event is created or updated.",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING_MODERATION", "Pending moderation"),
                            ("UPCOMING", "Upcoming"),
                            ("ONGOING", "Ongoing"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="PENDING_MODERATION",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField(db_index=True)),
                ("end_date", models.DateTimeField(db_index=True)),
                (
                    "event_qr_code",
                    models.TextField(blank=True, help_text="Rendered QR students scan to check in.", null=True),
                ),
                ("qr_code_expiry", models.DateTimeField(blank=True, null=True)),
                (
                    "creator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "external_partner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="events",
                        to="events.externalpartner",
                    ),
                ),
            ],
            options={"ordering": ["start_date"]},
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                *_timestamped(),
                (
                    "status",
                    models.CharField(
                        choices=[("REGISTERED", "Registered"), ("WAITLIST", "Waitlist")],
                        db_index=True,
                        default="REGISTERED",
                        max_length=20,
                    ),
                ),
                (
                    "position",
                    models.PositiveBigIntegerField(
                        editable=False, help_text="Insertion order within the event; breaks created_at ties."
                    ),
                ),
                ("checked_in", models.BooleanField(db_index=True, default=False)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("qr_code", models.TextField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="registrations", to="events.event"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "position"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "event"), name="unique_registration_user_event"),
                    models.UniqueConstraint(fields=("event", "position"), name="unique_registration_event_position"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                *_timestamped(),
                (
                    "price",
                    models.DecimalField(
                        decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0)]
                    ),
                ),
                ("commission_rate", models.DecimalField(blank=True, decimal_places=4, max_digits=5, null=True)),
                ("commission_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("partner_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                (
                    "ticket_code",
                    models.CharField(
                        blank=True,
                        help_text="Reference the buyer puts in the transfer comment.",
                        max_length=32,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending payment"),
                            ("PAID", "Paid"),
                            ("USED", "Used"),
                            ("REFUNDED", "Refunded"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("qr_code", models.TextField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="tickets", to="events.event"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["PENDING", "PAID", "USED"])),
                        fields=("event", "user"),
                        name="unique_live_ticket_user_event",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentVerification",
            fields=[
                *_timestamped(),
                ("receipt_image_url", models.URLField(max_length=1024)),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pending"), ("APPROVED", "Approved"), ("REJECTED", "Rejected")],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("organizer_notes", models.TextField(blank=True, null=True)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                (
                    "ticket",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_verification",
                        to="events.ticket",
                    ),
                ),
                (
                    "verified_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={"ordering": ["created_at"]},
        ),
        migrations.CreateModel(
            name="CheckIn",
            fields=[
                *_timestamped(),
                ("scan_mode", models.CharField(choices=CHECK_IN_MODES, max_length=20)),
                ("checked_in_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="check_ins", to="events.event"
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="check_ins",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-checked_in_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "user"), name="unique_check_in_event_user"),
                ],
            },
        ),
    ]
