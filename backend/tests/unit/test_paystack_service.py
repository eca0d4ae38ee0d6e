"""Unit tests for the Paystack gateway client.

Tests verify webhook signature verification and transaction
initialization without calling Paystack. HTTP traffic goes through
httpx.MockTransport.

Test categories:
- Webhook signature verification
- Transaction initialization requests and responses
"""

import json
from collections.abc import Callable

import httpx
import pytest

from chezvous.config import PaymentSettings
from chezvous.services.paystack_service import (
    PaystackService,
    PaystackServiceError,
    compute_signature,
)

# === Test Configuration ===

BODY = b'{"event":"charge.success","data":{"reference":"CNV-1A2B3C4D5E6F"}}'


def _service(
    settings: PaymentSettings,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
) -> PaystackService:
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(500)))
    return PaystackService(settings, http_client=httpx.Client(transport=transport))


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "status": True,
            "message": "Authorization URL created",
            "data": {
                "authorization_url": "https://checkout.paystack.com/abc123",
                "access_code": "abc123",
                "reference": json.loads(request.content)["reference"],
            },
        },
    )


# === Signature Verification ===


class TestVerifyWebhookSignature:
    """Tests for HMAC-SHA512 webhook signature checks."""

    def test_accepts_valid_signature(self, settings: PaymentSettings, sign) -> None:
        assert _service(settings).verify_webhook_signature(BODY, sign(BODY)) is True

    def test_accepts_uppercase_hex(self, settings: PaymentSettings, sign) -> None:
        assert _service(settings).verify_webhook_signature(BODY, sign(BODY).upper()) is True

    def test_rejects_missing_signature(self, settings: PaymentSettings) -> None:
        service = _service(settings)

        assert service.verify_webhook_signature(BODY, None) is False
        assert service.verify_webhook_signature(BODY, "") is False

    @pytest.mark.parametrize("offset", [0, len(BODY) // 2, len(BODY) - 1])
    def test_rejects_single_byte_change(
        self, settings: PaymentSettings, sign, offset: int
    ) -> None:
        signature = sign(BODY)
        tampered = bytearray(BODY)
        tampered[offset] ^= 0x01

        assert _service(settings).verify_webhook_signature(bytes(tampered), signature) is False

    def test_rejects_wrong_secret(self, settings: PaymentSettings, sign) -> None:
        signature = sign(BODY, "sk_test_someone_else")

        assert _service(settings).verify_webhook_signature(BODY, signature) is False

    @pytest.mark.parametrize(
        "signature",
        ["abc123", "z" * 128, "0" * 127, "0" * 129, "sha512=" + "0" * 128],
    )
    def test_rejects_malformed_header(self, settings: PaymentSettings, signature: str) -> None:
        assert _service(settings).verify_webhook_signature(BODY, signature) is False

    def test_uses_dedicated_webhook_secret_when_configured(
        self, settings: PaymentSettings, sign
    ) -> None:
        custom = settings.model_copy(update={"paystack_webhook_secret": "whsec_dedicated"})
        service = _service(custom)

        assert service.verify_webhook_signature(BODY, sign(BODY, "whsec_dedicated")) is True
        assert service.verify_webhook_signature(BODY, sign(BODY)) is False

    def test_signature_is_hex_sha512(self) -> None:
        signature = compute_signature(b"{}", "secret")

        assert len(signature) == 128
        int(signature, 16)

    def test_payload_hash_is_sha256(self) -> None:
        assert len(PaystackService.compute_payload_hash(BODY)) == 64


# === Transaction Initialization ===


class TestInitializeTransaction:
    """Tests for POST /transaction/initialize."""

    def test_sends_amount_in_minor_units_with_bearer_token(
        self, settings: PaymentSettings
    ) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return _ok(request)

        result = _service(settings, handler).initialize_transaction(
            email="ada@example.com",
            amount_minor=5000000,
            reference="CNV-1A2B3C4D5E6F",
            metadata={"name": "Ada Obi", "nights": 2},
        )

        request = captured[0]
        body = json.loads(request.content)
        assert str(request.url) == "https://api.paystack.co/transaction/initialize"
        assert request.headers["Authorization"] == "Bearer sk_test_chezvous_secret"
        assert body["amount"] == 5000000
        assert body["email"] == "ada@example.com"
        assert body["currency"] == "NGN"
        assert body["callback_url"] == "https://chezvous.example.com/payment-complete"
        assert body["metadata"] == {"name": "Ada Obi", "nights": 2}
        assert result.authorization_url == "https://checkout.paystack.com/abc123"
        assert result.access_code == "abc123"
        assert result.reference == "CNV-1A2B3C4D5E6F"

    def test_declined_request_raises_with_gateway_message(
        self, settings: PaymentSettings
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"status": False, "message": "Invalid key"})

        with pytest.raises(PaystackServiceError) as exc_info:
            _service(settings, handler).initialize_transaction(
                email="ada@example.com", amount_minor=100, reference="CNV-1", metadata={}
            )

        assert "Invalid key" in str(exc_info.value)
        assert exc_info.value.status_code == 400

    def test_status_false_with_http_200_raises(self, settings: PaymentSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": False, "message": "Duplicate reference"})

        with pytest.raises(PaystackServiceError, match="Duplicate reference"):
            _service(settings, handler).initialize_transaction(
                email="ada@example.com", amount_minor=100, reference="CNV-1", metadata={}
            )

    def test_missing_authorization_url_raises(self, settings: PaymentSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": True, "data": {"reference": "CNV-1"}})

        with pytest.raises(PaystackServiceError, match="authorization_url"):
            _service(settings, handler).initialize_transaction(
                email="ada@example.com", amount_minor=100, reference="CNV-1", metadata={}
            )

    def test_unreadable_response_raises(self, settings: PaymentSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        with pytest.raises(PaystackServiceError) as exc_info:
            _service(settings, handler).initialize_transaction(
                email="ada@example.com", amount_minor=100, reference="CNV-1", metadata={}
            )

        assert exc_info.value.status_code == 502

    def test_transport_error_raises(self, settings: PaymentSettings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(PaystackServiceError, match="request failed") as exc_info:
            _service(settings, handler).initialize_transaction(
                email="ada@example.com", amount_minor=100, reference="CNV-1", metadata={}
            )

        assert exc_info.value.status_code is None
