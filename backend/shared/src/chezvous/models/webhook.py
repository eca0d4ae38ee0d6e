"""Webhook event models for gateway callbacks and the processed-event ledger."""

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)

from .booking import json_number, to_major_units
from .notification import DeliveryResult, RecipientRole

CHARGE_SUCCESS = "charge.success"


class MalformedEventError(Exception):
    """Raised when a verified webhook body cannot be interpreted."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class ProcessingResult(str, Enum):
    """Outcome reported back to the gateway for one delivery."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    MALFORMED = "malformed"
    NOTIFICATION_FAILED = "notification_failed"


class LedgerStatus(str, Enum):
    """State of an event in the processed-event ledger."""

    PROCESSING = "processing"
    PROCESSED = "processed"
    NOTIFICATION_FAILED = "notification_failed"


class WebhookEvent(BaseModel):
    """A parsed gateway event.

    Only the envelope is modelled; `data` is kept as received because
    the gateway adds fields freely.
    """

    kind: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: bytes) -> "WebhookEvent":
        """Parse a verified raw body.

        Raises:
            MalformedEventError: If the body is not a JSON object.
        """
        try:
            body = json.loads(payload)
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedEventError(f"Body is not valid JSON: {e}") from e

        if not isinstance(body, dict):
            raise MalformedEventError("Body is not a JSON object")

        kind = body.get("event")
        data = body.get("data")
        return cls(
            kind=kind if isinstance(kind, str) else None,
            data=data if isinstance(data, dict) else {},
        )

    @property
    def metadata(self) -> dict[str, Any]:
        metadata = self.data.get("metadata")
        if isinstance(metadata, str):
            # The gateway echoes metadata as a JSON string when it was sent as one
            try:
                metadata = json.loads(metadata)
            except ValueError:
                return {}
        return metadata if isinstance(metadata, dict) else {}

    @property
    def reference(self) -> str | None:
        reference = self.data.get("reference")
        return str(reference) if reference not in (None, "") else None

    @property
    def transaction_id(self) -> str | None:
        transaction_id = self.data.get("id")
        if transaction_id in (None, "") or isinstance(transaction_id, bool):
            return None
        return str(transaction_id)

    @property
    def customer_email(self) -> str | None:
        customer = self.data.get("customer")
        if isinstance(customer, dict) and isinstance(customer.get("email"), str):
            return customer["email"]
        return None

    def event_id(self, payload_hash: str) -> str:
        """Stable ledger identifier assigned by the gateway.

        Uses the transaction reference, then the transaction id, and only
        falls back to the payload hash when the gateway sent neither.
        """
        key = self.reference or self.transaction_id or f"sha256:{payload_hash}"
        return f"{self.kind}:{key}"


def _reject_non_numbers(value: Any) -> Any:
    if isinstance(value, (bool, str)):
        raise ValueError("must be a number")
    return value


class ConfirmationDetails(BaseModel):
    """Validated booking details needed to confirm a successful charge."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: EmailStr
    nights: int = Field(..., ge=1, strict=True)
    total: Decimal = Field(..., gt=0)
    check_in: date | None = Field(
        default=None, validation_alias=AliasChoices("check_in", "checkIn")
    )
    check_out: date | None = Field(
        default=None, validation_alias=AliasChoices("check_out", "checkOut")
    )

    @field_validator("total", mode="before")
    @classmethod
    def _total_is_number(cls, value: Any) -> Any:
        return _reject_non_numbers(value)

    @field_serializer("total")
    def _total_as_number(self, total: Decimal) -> int | float:
        return json_number(total)

    @model_validator(mode="before")
    @classmethod
    def _derive_nights(cls, values: Any) -> Any:
        if not isinstance(values, dict) or values.get("nights") is not None:
            return values
        check_in = values.get("check_in") or values.get("checkIn")
        check_out = values.get("check_out") or values.get("checkOut")
        try:
            start = date.fromisoformat(check_in) if isinstance(check_in, str) else check_in
            end = date.fromisoformat(check_out) if isinstance(check_out, str) else check_out
        except ValueError:
            return values
        if isinstance(start, date) and isinstance(end, date):
            return {**values, "nights": (end - start).days}
        return values

    @classmethod
    def from_event(cls, event: WebhookEvent) -> "ConfirmationDetails":
        """Extract confirmation details from a charge event.

        Falls back to the gateway's own customer email and charged amount
        when the metadata omits them.

        Raises:
            MalformedEventError: Listing every missing or invalid field.
        """
        raw = dict(event.metadata)
        if not raw.get("email") and event.customer_email:
            raw["email"] = event.customer_email
        amount = event.data.get("amount")
        if raw.get("total") is None and isinstance(amount, int) and not isinstance(amount, bool):
            raw["total"] = to_major_units(amount)

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            fields = fields or ["metadata"]
            raise MalformedEventError(
                f"Invalid confirmation metadata: {', '.join(fields)}",
                fields=fields,
            ) from e

    def to_context(self) -> str:
        """Serialize for storage alongside the ledger entry."""
        return self.model_dump_json()

    @classmethod
    def from_context(cls, context: str) -> "ConfirmationDetails":
        return cls.model_validate_json(context)


class ProcessedWebhookEvent(BaseModel):
    """Ledger entry for a payment-confirmation event.

    Used for:
    - Idempotency: at most one notification dispatch per event
    - Auditing: when and how each event was handled
    - Recovery: failed notifications keep enough context to resend
    """

    event_id: str = Field(..., description="Ledger identifier (kind:reference)")
    event_type: str = Field(..., examples=[CHARGE_SUCCESS])
    status: LedgerStatus
    payload_hash: str = Field(..., description="SHA-256 of the raw body")
    reference: str | None = None
    claimed_at: datetime
    claim_expires_at: int | None = Field(
        default=None,
        description="Epoch seconds after which an unfinished claim may be taken over",
    )
    processed_at: datetime | None = None
    error_message: str | None = None
    failed_roles: list[RecipientRole] = Field(
        default_factory=list,
        description="Recipients whose notification failed",
    )
    notification_context: str | None = Field(
        default=None,
        description="Serialized ConfirmationDetails",
    )
    expires_at: int = Field(..., description="Epoch seconds; DynamoDB TTL attribute")


class WebhookResult(BaseModel):
    """Outcome of handling one webhook delivery."""

    event_id: str | None = None
    event_type: str | None = None
    result: ProcessingResult
    message: str | None = None
    deliveries: list[DeliveryResult] = Field(default_factory=list)
