"""Paystack gateway client for transaction initialization and webhook signatures.

Transactions are created through the REST API with httpx. Webhooks are
authenticated with an HMAC-SHA512 of the raw request body, keyed by the
secret key and sent hex-encoded in the x-paystack-signature header.
"""

import hashlib
import hmac
import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel

from chezvous.config import PaymentSettings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"

# SHA-512 hex digest
_SIGNATURE_PATTERN = re.compile(r"[0-9a-fA-F]{128}")


class PaystackServiceError(Exception):
    """Raised when a Paystack API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize with message and optional HTTP status.

        Args:
            message: Human-readable error message.
            status_code: HTTP status returned by Paystack, if a response arrived.
        """
        super().__init__(message)
        self.status_code = status_code


class TransactionInitialization(BaseModel):
    """Checkout details returned by /transaction/initialize."""

    authorization_url: str
    access_code: str | None = None
    reference: str


def compute_signature(payload: bytes, secret: str) -> str:
    """Hex-encoded HMAC-SHA512 of payload keyed by secret."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


class PaystackService:
    """Service for Paystack operations.

    Handles:
    - Transaction initialization (returns the hosted payment link)
    - Webhook signature verification

    Usage:
        paystack = PaystackService(settings)
        init = paystack.initialize_transaction(
            email="guest@example.com",
            amount_minor=5000000,
            reference="CNV-1A2B3C4D5E6F",
            metadata={"name": "Ada"},
        )
    """

    def __init__(
        self,
        settings: PaymentSettings,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Payment settings (secret key, base URL, timeout).
            http_client: Preconfigured httpx client, mainly for tests.
        """
        self._settings = settings
        self._base_url = settings.paystack_base_url.rstrip("/")
        self._client = http_client or httpx.Client(
            timeout=settings.gateway_timeout_seconds
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.paystack_secret_key}",
            "Content-Type": "application/json",
        }

    def initialize_transaction(
        self,
        *,
        email: str,
        amount_minor: int,
        reference: str,
        metadata: dict[str, Any],
        callback_url: str | None = None,
        currency: str | None = None,
    ) -> TransactionInitialization:
        """Create a transaction and obtain the hosted payment page URL.

        Args:
            email: Customer email.
            amount_minor: Amount in minor units (kobo for NGN).
            reference: Unique transaction reference.
            metadata: Booking details echoed back in webhook events.
            callback_url: Redirect after payment. Defaults to settings.
            currency: ISO currency code. Defaults to settings.

        Returns:
            TransactionInitialization with the authorization URL.

        Raises:
            PaystackServiceError: If the request fails or Paystack declines it.
        """
        body = {
            "email": email,
            "amount": amount_minor,
            "currency": currency or self._settings.currency,
            "reference": reference,
            "callback_url": callback_url or self._settings.paystack_callback_url,
            "metadata": metadata,
        }

        logger.info(
            "Initializing Paystack transaction %s for %d minor units",
            reference,
            amount_minor,
        )

        try:
            response = self._client.post(
                f"{self._base_url}/transaction/initialize",
                json=body,
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.error("Paystack request failed for %s: %s", reference, e)
            raise PaystackServiceError(f"Paystack request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise PaystackServiceError(
                f"Paystack returned an unreadable response (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise PaystackServiceError(
                "Paystack returned an unexpected response",
                status_code=response.status_code,
            )

        if response.is_error or not data.get("status"):
            message = data.get("message") or f"HTTP {response.status_code}"
            logger.error(
                "Paystack initialization failed for %s: %s (HTTP %d)",
                reference,
                message,
                response.status_code,
            )
            raise PaystackServiceError(
                f"Paystack initialization failed: {message}",
                status_code=response.status_code,
            )

        payload = data.get("data")
        if not isinstance(payload, dict) or not payload.get("authorization_url"):
            raise PaystackServiceError(
                "Paystack response is missing authorization_url",
                status_code=response.status_code,
            )

        return TransactionInitialization(
            authorization_url=payload["authorization_url"],
            access_code=payload.get("access_code"),
            reference=payload.get("reference") or reference,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        """Check that a webhook body was signed with the shared secret.

        Args:
            payload: Raw request body bytes exactly as received.
            signature: Value of the x-paystack-signature header.

        Returns:
            True only when the header is a well-formed digest matching the body.
        """
        if not signature:
            return False
        if not _SIGNATURE_PATTERN.fullmatch(signature):
            logger.warning("Malformed webhook signature header (length %d)", len(signature))
            return False

        expected = compute_signature(payload, self._settings.webhook_secret)
        return hmac.compare_digest(expected, signature.lower())

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of a webhook payload.

        Args:
            payload: Raw webhook payload bytes.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        return hashlib.sha256(payload).hexdigest()

    def close(self) -> None:
        self._client.close()
