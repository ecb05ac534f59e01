"""Request and response schemas for the events API."""

import typing as t
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from django.utils.translation import gettext_lazy as _
from ninja import ModelSchema, Schema
from pydantic import UUID4, AwareDatetime, Field, HttpUrl, model_validator

from accounts.schema import MinimalUserSchema
from common.schema import OneToTwoFiftyFiveString, StrippedString
from events.models import CheckIn, Event, ExternalPartner, PaymentVerification, Registration, Ticket

# ---- Events ----


class _EventDatesMixin(Schema):
    @model_validator(mode="after")
    def validate_dates(self) -> t.Self:
        """End date must come after start date when both are given."""
        start_date = getattr(self, "start_date", None)
        end_date = getattr(self, "end_date", None)
        if start_date and end_date and end_date <= start_date:
            raise ValueError(str(_("End date must be after start date.")))
        return self


class EventCreateSchema(_EventDatesMixin):
    title: OneToTwoFiftyFiveString
    description: StrippedString = ""
    location: StrippedString = Field("", max_length=255)
    is_paid: bool = False
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    capacity: int = Field(..., ge=1)
    start_date: AwareDatetime
    end_date: AwareDatetime

    @model_validator(mode="after")
    def validate_price(self) -> t.Self:
        """Paid events need a positive price; free events carry none."""
        if self.is_paid and not self.price:
            raise ValueError(str(_("Paid events need a price.")))
        if not self.is_paid:
            self.price = None
        return self


class EventUpdateSchema(_EventDatesMixin):
    title: OneToTwoFiftyFiveString | None = None
    description: StrippedString | None = None
    location: StrippedString | None = Field(None, max_length=255)
    is_paid: bool | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    capacity: int | None = Field(None, ge=1)
    start_date: AwareDatetime | None = None
    end_date: AwareDatetime | None = None


class MinimalEventSchema(ModelSchema):
    id: UUID4

    class Meta:
        model = Event
        fields = ["title", "start_date", "end_date", "location", "is_paid", "price", "status"]


class EventSchema(ModelSchema):
    id: UUID4
    creator: MinimalUserSchema
    external_partner_id: UUID | None = None

    class Meta:
        model = Event
        fields = [
            "title",
            "description",
            "location",
            "is_paid",
            "price",
            "capacity",
            "is_external_event",
            "check_in_mode",
            "status",
            "start_date",
            "end_date",
            "qr_code_expiry",
            "created_at",
        ]


class GenerateEventQRSchema(Schema):
    expiry_hours: int = Field(24, ge=1, le=168)


class EventQRCodeSchema(Schema):
    qr_code: str
    expires_at: datetime


class CheckInStatsSchema(Schema):
    total_check_ins: int
    total_tickets: int | None = None
    total_registrations: int | None = None
    check_in_rate: float
    capacity: int
    check_in_mode: str


# ---- Registrations ----


class RegistrationCreateSchema(Schema):
    event_id: UUID


class RegistrationSchema(ModelSchema):
    id: UUID4
    event: MinimalEventSchema
    user: MinimalUserSchema

    class Meta:
        model = Registration
        fields = ["status", "checked_in", "checked_in_at", "qr_code", "created_at"]


class ParticipantSchema(ModelSchema):
    id: UUID4
    user: MinimalUserSchema
    faculty: str

    class Meta:
        model = Registration
        fields = ["status", "checked_in", "checked_in_at", "created_at"]

    @staticmethod
    def resolve_faculty(obj: Registration) -> str:
        return obj.user.faculty


class ParticipantSearchSchema(Schema):
    search: str | None = Field(None, max_length=100)


class CancelRegistrationResponse(Schema):
    message: str
    promoted_registration_id: UUID | None = None


# ---- Tickets ----


class TicketReserveSchema(Schema):
    event_id: UUID


class TicketSchema(ModelSchema):
    id: UUID4
    event: MinimalEventSchema
    payment_verification_status: str | None = None

    class Meta:
        model = Ticket
        fields = [
            "price",
            "commission_amount",
            "partner_amount",
            "ticket_code",
            "status",
            "qr_code",
            "checked_in_at",
            "created_at",
        ]

    @staticmethod
    def resolve_payment_verification_status(obj: Ticket) -> str | None:
        verification = getattr(obj, "payment_verification", None)
        return verification.status if verification else None


class MinimalTicketSchema(ModelSchema):
    id: UUID4
    event: MinimalEventSchema
    user: MinimalUserSchema

    class Meta:
        model = Ticket
        fields = ["price", "ticket_code", "status"]


# ---- Payment verification ----


class ReceiptUploadSchema(Schema):
    ticket_id: UUID
    receipt_image_url: HttpUrl


class PendingVerificationFilterSchema(Schema):
    event_id: UUID | None = None


class VerifyPaymentSchema(Schema):
    decision: t.Literal["APPROVED", "REJECTED"]
    organizer_notes: StrippedString | None = Field(None, max_length=2000)


class PaymentVerificationSchema(ModelSchema):
    id: UUID4
    ticket: MinimalTicketSchema

    class Meta:
        model = PaymentVerification
        fields = ["receipt_image_url", "status", "organizer_notes", "verified_at", "created_at"]


# ---- Check-in ----


class TicketScanSchema(Schema):
    event_id: UUID
    qr_data: str = Field(..., min_length=2, max_length=4096)


class StudentScanSchema(Schema):
    qr_data: str = Field(..., min_length=2, max_length=4096)


class CheckInSchema(ModelSchema):
    id: UUID4
    user: MinimalUserSchema

    class Meta:
        model = CheckIn
        fields = ["scan_mode", "checked_in_at"]


class ScanResultSchema(Schema):
    message: str = "Check-in successful"
    check_in: CheckInSchema
    ticket_id: UUID | None = None
    registration_id: UUID | None = None


# ---- Partners ----


class CommissionPaymentSchema(Schema):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class ExternalPartnerSchema(ModelSchema):
    id: UUID4

    class Meta:
        model = ExternalPartner
        fields = [
            "company_name",
            "payment_account_name",
            "payment_phone",
            "commission_rate",
            "commission_debt",
            "total_commission_paid",
            "is_active",
        ]
