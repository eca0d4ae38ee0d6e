"""Unit tests for webhook event parsing and confirmation metadata."""

import json
from decimal import Decimal

import pytest

from chezvous.models.webhook import (
    ConfirmationDetails,
    MalformedEventError,
    WebhookEvent,
)


def _event(data: dict, kind: str = "charge.success") -> WebhookEvent:
    return WebhookEvent.from_payload(json.dumps({"event": kind, "data": data}).encode())


class TestWebhookEventParsing:
    """Tests for WebhookEvent.from_payload."""

    def test_parses_kind_and_data(self) -> None:
        event = _event({"reference": "CNV-1", "id": 302961})

        assert event.kind == "charge.success"
        assert event.reference == "CNV-1"
        assert event.transaction_id == "302961"

    @pytest.mark.parametrize("payload", [b"not json", b"\xff\xfe", b"[1, 2]", b'"text"'])
    def test_rejects_non_object_bodies(self, payload: bytes) -> None:
        with pytest.raises(MalformedEventError):
            WebhookEvent.from_payload(payload)

    def test_missing_or_non_string_kind_is_none(self) -> None:
        assert WebhookEvent.from_payload(b'{"data": {}}').kind is None
        assert WebhookEvent.from_payload(b'{"event": 42}').kind is None

    def test_non_object_data_is_empty(self) -> None:
        assert WebhookEvent.from_payload(b'{"event": "charge.success", "data": []}').data == {}

    def test_metadata_sent_as_json_string_is_decoded(self) -> None:
        event = _event({"metadata": json.dumps({"name": "Ada"})})

        assert event.metadata == {"name": "Ada"}

    def test_customer_email_from_gateway_customer(self) -> None:
        event = _event({"customer": {"email": "ada@example.com"}})

        assert event.customer_email == "ada@example.com"


class TestEventId:
    """Tests for ledger identifier derivation."""

    def test_prefers_reference(self) -> None:
        event = _event({"reference": "CNV-1", "id": 302961})

        assert event.event_id("hash") == "charge.success:CNV-1"

    def test_falls_back_to_transaction_id(self) -> None:
        assert _event({"id": 302961}).event_id("hash") == "charge.success:302961"

    def test_falls_back_to_payload_hash(self) -> None:
        assert _event({}).event_id("abc") == "charge.success:sha256:abc"


class TestConfirmationDetails:
    """Tests for extracting confirmation metadata from a charge."""

    def test_extracts_complete_metadata(self) -> None:
        details = ConfirmationDetails.from_event(
            _event({"metadata": {"email": "a@b.com", "name": "A", "nights": 2, "total": 50000}})
        )

        assert details.name == "A"
        assert details.email == "a@b.com"
        assert details.nights == 2
        assert details.total == Decimal("50000")

    def test_derives_nights_from_dates(self) -> None:
        details = ConfirmationDetails.from_event(
            _event(
                {
                    "metadata": {
                        "email": "a@b.com",
                        "name": "A",
                        "checkIn": "2026-12-20",
                        "checkOut": "2026-12-23",
                        "total": 50000,
                    }
                }
            )
        )

        assert details.nights == 3

    def test_falls_back_to_gateway_email_and_amount(self) -> None:
        details = ConfirmationDetails.from_event(
            _event(
                {
                    "amount": 5000050,
                    "customer": {"email": "ada@example.com"},
                    "metadata": {"name": "Ada", "nights": 1},
                }
            )
        )

        assert details.email == "ada@example.com"
        assert details.total == Decimal("50000.5")

    def test_missing_metadata_lists_fields(self) -> None:
        with pytest.raises(MalformedEventError) as exc_info:
            ConfirmationDetails.from_event(_event({}))

        assert set(exc_info.value.fields) == {"email", "name", "nights", "total"}

    @pytest.mark.parametrize(
        "field, value",
        [
            ("nights", "2"),
            ("nights", 0),
            ("total", "50000"),
            ("total", True),
            ("total", -1),
            ("email", "not-an-email"),
            ("name", ""),
        ],
    )
    def test_rejects_wrong_types(self, field: str, value) -> None:
        metadata = {"email": "a@b.com", "name": "A", "nights": 2, "total": 50000}
        metadata[field] = value

        with pytest.raises(MalformedEventError) as exc_info:
            ConfirmationDetails.from_event(_event({"metadata": metadata}))

        assert exc_info.value.fields == [field]

    def test_context_round_trip(self) -> None:
        details = ConfirmationDetails(name="A", email="a@b.com", nights=2, total=Decimal("50000"))

        assert ConfirmationDetails.from_context(details.to_context()) == details
