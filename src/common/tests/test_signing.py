"""Tests for QR payload signing."""

import hashlib
import hmac
import typing as t
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from types import SimpleNamespace
from uuid import uuid4

import orjson
import pytest

from common.signing import (
    QRRejectReason,
    QRTokenCodec,
    SigningSecretMissingError,
    event_payload,
    get_qr_codec,
    registration_payload,
    ticket_payload,
)

SECRET = "unit-test-secret"


def _codec(secret: str = SECRET) -> QRTokenCodec:
    # Identity renderer: the "image" is the signed JSON itself.
    return QRTokenCodec(secret, renderer=lambda text: text)


def _fields() -> dict[str, t.Any]:
    return {"ticketId": "t-1", "eventId": "e-1", "userId": "u-1", "timestamp": 1704067200000}


class TestSign:
    def test_signature_is_lowercase_hex_sha256(self) -> None:
        signature = _codec().sign(_fields())
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_signature_matches_hmac_of_compact_json(self) -> None:
        fields = _fields()
        expected = hmac.new(
            SECRET.encode(),
            b'{"ticketId":"t-1","eventId":"e-1","userId":"u-1","timestamp":1704067200000}',
            hashlib.sha256,
        ).hexdigest()
        assert _codec().sign(fields) == expected

    def test_key_order_is_part_of_the_signature(self) -> None:
        fields = _fields()
        reordered = {key: fields[key] for key in reversed(list(fields))}
        assert _codec().sign(fields) != _codec().sign(reordered)

    def test_different_secrets_produce_different_signatures(self) -> None:
        assert _codec("a").sign(_fields()) != _codec("b").sign(_fields())


class TestEncode:
    def test_signature_is_the_last_key(self) -> None:
        encoded = orjson.loads(_codec().encode(_fields()))
        assert list(encoded) == ["ticketId", "eventId", "userId", "timestamp", "signature"]

    def test_rejects_fields_that_already_carry_a_signature(self) -> None:
        with pytest.raises(ValueError):
            _codec().encode({**_fields(), "signature": "abc"})

    def test_mint_passes_encoded_payload_to_renderer(self) -> None:
        rendered: list[str] = []
        codec = QRTokenCodec(SECRET, renderer=lambda text: rendered.append(text) or "data:image/png;base64,xx")

        assert codec.mint(_fields()) == "data:image/png;base64,xx"
        assert rendered == [codec.encode(_fields())]


class TestVerify:
    def test_round_trip(self) -> None:
        codec = _codec()
        result = codec.verify(codec.encode(_fields()))

        assert result.valid is True
        assert result.reason is None
        assert result.fields == _fields()

    def test_accepts_bytes(self) -> None:
        codec = _codec()
        assert codec.verify(codec.encode(_fields()).encode()).valid

    def test_tampered_field_is_rejected(self) -> None:
        codec = _codec()
        data = orjson.loads(codec.encode(_fields()))
        data["userId"] = "someone-else"

        result = codec.verify(orjson.dumps(data))

        assert result.valid is False
        assert result.reason == QRRejectReason.BAD_SIGNATURE

    def test_signed_with_other_secret_is_rejected(self) -> None:
        payload = _codec("other").encode(_fields())
        assert _codec().verify(payload).reason == QRRejectReason.BAD_SIGNATURE

    def test_reordered_keys_are_rejected(self) -> None:
        codec = _codec()
        data = orjson.loads(codec.encode(_fields()))
        signature = data.pop("signature")
        reordered = {key: data[key] for key in reversed(list(data))}
        reordered["signature"] = signature

        assert codec.verify(orjson.dumps(reordered)).reason == QRRejectReason.BAD_SIGNATURE

    @pytest.mark.parametrize(
        "payload",
        ["not json", "", "[1, 2, 3]", '"just a string"', '{"ticketId": "t-1"}', '{"ticketId": "t-1", "signature": 5}'],
    )
    def test_malformed_payloads(self, payload: str) -> None:
        result = _codec().verify(payload)
        assert result.valid is False
        assert result.reason == QRRejectReason.MALFORMED
        assert result.fields == {}


class TestFreshness:
    def test_recent_payload_is_fresh(self) -> None:
        now = datetime(2024, 1, 1, 12, 0, tzinfo=dt_timezone.utc)
        codec = _codec()
        fields = {"eventId": "e-1", "timestamp": int((now - timedelta(hours=1)).timestamp() * 1000)}

        result = codec.verify(codec.encode(fields))

        assert result.is_fresh(timedelta(hours=24), now=now)

    def test_old_payload_is_stale(self) -> None:
        now = datetime(2024, 1, 3, 12, 0, tzinfo=dt_timezone.utc)
        codec = _codec()
        fields = {"eventId": "e-1", "timestamp": int((now - timedelta(hours=25)).timestamp() * 1000)}

        assert not codec.verify(codec.encode(fields)).is_fresh(timedelta(hours=24), now=now)

    @pytest.mark.parametrize("timestamp", [None, "1704067200000", True])
    def test_unusable_timestamp_is_never_fresh(self, timestamp: t.Any) -> None:
        codec = _codec()
        result = codec.verify(codec.encode({"eventId": "e-1", "timestamp": timestamp}))

        assert result.valid
        assert result.issued_at() is None
        assert not result.is_fresh(timedelta(days=365))


class TestSecretConfiguration:
    @pytest.mark.parametrize("secret", [None, ""])
    def test_codec_refuses_missing_secret(self, secret: str | None) -> None:
        with pytest.raises(SigningSecretMissingError):
            QRTokenCodec(secret)

    def test_get_qr_codec_reads_settings(self, settings: t.Any) -> None:
        settings.QR_SIGNING_SECRET = SECRET
        payload = _codec().encode(_fields())

        assert get_qr_codec().verify(payload).valid

    def test_get_qr_codec_without_secret(self, settings: t.Any) -> None:
        settings.QR_SIGNING_SECRET = None
        with pytest.raises(SigningSecretMissingError):
            get_qr_codec()

    def test_error_carries_config_fatal_code(self) -> None:
        assert SigningSecretMissingError.code == "CONFIG_FATAL"


class TestPayloadBuilders:
    def test_ticket_payload(self) -> None:
        ticket = SimpleNamespace(pk=uuid4(), event_id=uuid4(), user_id=uuid4())
        payload = ticket_payload(ticket, timestamp=42)

        assert payload == {
            "ticketId": str(ticket.pk),
            "eventId": str(ticket.event_id),
            "userId": str(ticket.user_id),
            "timestamp": 42,
        }
        assert list(payload) == ["ticketId", "eventId", "userId", "timestamp"]

    def test_registration_payload(self) -> None:
        registration = SimpleNamespace(pk=uuid4(), event_id=uuid4(), user_id=uuid4())
        payload = registration_payload(registration, timestamp=7)

        assert list(payload) == ["registrationId", "eventId", "userId", "timestamp"]
        assert payload["registrationId"] == str(registration.pk)

    def test_event_payload_defaults_to_current_time(self) -> None:
        event = SimpleNamespace(pk=uuid4())
        payload = event_payload(event)

        assert list(payload) == ["eventId", "timestamp"]
        assert isinstance(payload["timestamp"], int)
        assert payload["timestamp"] > 1_700_000_000_000
