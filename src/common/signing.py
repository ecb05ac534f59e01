"""HMAC signing for scannable QR payloads.

Every QR code the platform issues (paid tickets, registrations of external free
events, and the per-event code students scan) carries a compact JSON payload:

    {"ticketId": "...", "eventId": "...", "userId": "...", "timestamp": 1704067200000, "signature": "9f2c..."}

The signature is the lowercase hex HMAC-SHA256 of the compact JSON serialization of
every field that precedes it, in that exact key order. Scanner clients depend on
this shape, so it must stay byte-for-byte reproducible.

The codec only proves authenticity and integrity. Freshness (how old a payload may
be) and business validity (is the ticket already used?) are decided by callers.
"""

import hashlib
import hmac
import time
import typing as t
from datetime import datetime, timedelta
from enum import StrEnum

import orjson
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from .qr import render_qr_data_url

__all__ = [
    "SIGNATURE_FIELD",
    "QRRejectReason",
    "QRTokenCodec",
    "QRVerification",
    "SigningSecretMissingError",
    "event_payload",
    "get_qr_codec",
    "now_ms",
    "registration_payload",
    "ticket_payload",
]

SIGNATURE_FIELD = "signature"


class SigningSecretMissingError(ImproperlyConfigured):
    """Raised when a QR code is minted or verified without a signing secret."""

    code = "CONFIG_FATAL"


class QRRejectReason(StrEnum):
    MALFORMED = "MALFORMED"
    BAD_SIGNATURE = "BAD_SIGNATURE"


class QRVerification(t.NamedTuple):
    """Outcome of verifying a scanned payload."""

    valid: bool
    fields: dict[str, t.Any]
    reason: QRRejectReason | None = None

    def issued_at(self) -> datetime | None:
        """Return the payload timestamp as an aware datetime, if it has a usable one."""
        timestamp = self.fields.get("timestamp")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            return None
        return datetime.fromtimestamp(timestamp / 1000, tz=timezone.get_current_timezone())

    def is_fresh(self, max_age: timedelta, now: datetime | None = None) -> bool:
        """Whether the payload was issued within ``max_age`` of ``now``."""
        issued_at = self.issued_at()
        if issued_at is None:
            return False
        now = now or timezone.now()
        return now - issued_at <= max_age


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def _serialize(fields: dict[str, t.Any]) -> bytes:
    return orjson.dumps(fields)


class QRTokenCodec:
    """Signs, renders and verifies QR payloads with a shared secret."""

    def __init__(self, secret: str | None, renderer: t.Callable[[str], str] = render_qr_data_url) -> None:
        """Bind the codec to a signing secret and an image renderer."""
        if not secret:
            raise SigningSecretMissingError("QR_SIGNING_SECRET is not configured; refusing to issue QR codes.")
        self._key = secret.encode()
        self._renderer = renderer

    def sign(self, fields: dict[str, t.Any]) -> str:
        """Return the hex HMAC-SHA256 of the serialized fields."""
        return hmac.new(self._key, _serialize(fields), hashlib.sha256).hexdigest()

    def encode(self, fields: dict[str, t.Any]) -> str:
        """Return the signed payload as the JSON text that goes into the QR code."""
        if SIGNATURE_FIELD in fields:
            raise ValueError("Payload fields must not already contain a signature.")
        signed = {**fields, SIGNATURE_FIELD: self.sign(fields)}
        return _serialize(signed).decode()

    def mint(self, fields: dict[str, t.Any]) -> str:
        """Sign the fields and render them as a scannable image data URL."""
        return self._renderer(self.encode(fields))

    def verify(self, payload: str | bytes) -> QRVerification:
        """Check a scanned payload's signature.

        Args:
            payload: The raw text decoded from the QR code.

        Returns:
            A QRVerification. ``fields`` never includes the signature.
        """
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError:
            return QRVerification(valid=False, fields={}, reason=QRRejectReason.MALFORMED)

        if not isinstance(data, dict) or not isinstance(data.get(SIGNATURE_FIELD), str):
            return QRVerification(valid=False, fields={}, reason=QRRejectReason.MALFORMED)

        signature = data.pop(SIGNATURE_FIELD)
        expected = self.sign(data)
        if not hmac.compare_digest(signature.encode(), expected.encode()):
            return QRVerification(valid=False, fields=data, reason=QRRejectReason.BAD_SIGNATURE)
        return QRVerification(valid=True, fields=data)


def get_qr_codec() -> QRTokenCodec:
    """Build a codec from ``settings.QR_SIGNING_SECRET``.

    Raises:
        SigningSecretMissingError: if the secret is unset or empty.
    """
    return QRTokenCodec(settings.QR_SIGNING_SECRET)


# Payload builders. Key order is part of the signed bytes: identity fields first, then timestamp.


def registration_payload(registration: t.Any, timestamp: int | None = None) -> dict[str, t.Any]:
    """Fields for a registration QR code."""
    return {
        "registrationId": str(registration.pk),
        "eventId": str(registration.event_id),
        "userId": str(registration.user_id),
        "timestamp": now_ms() if timestamp is None else timestamp,
    }


def ticket_payload(ticket: t.Any, timestamp: int | None = None) -> dict[str, t.Any]:
    """Fields for a paid-ticket QR code."""
    return {
        "ticketId": str(ticket.pk),
        "eventId": str(ticket.event_id),
        "userId": str(ticket.user_id),
        "timestamp": now_ms() if timestamp is None else timestamp,
    }


def event_payload(event: t.Any, timestamp: int | None = None) -> dict[str, t.Any]:
    """Fields for the per-event QR code students scan."""
    return {
        "eventId": str(event.pk),
        "timestamp": now_ms() if timestamp is None else timestamp,
    }
