"""Pydantic models for payment initiation and webhook confirmation."""

from .booking import (
    MINOR_UNITS_PER_MAJOR,
    BookingRequest,
    json_number,
    to_major_units,
    to_minor_units,
)
from .errors import ERROR_MESSAGES, ERROR_RECOVERY, BookingError, ErrorCode, ToolError
from .notification import DeliveryResult, RecipientRole
from .webhook import (
    CHARGE_SUCCESS,
    ConfirmationDetails,
    LedgerStatus,
    MalformedEventError,
    ProcessedWebhookEvent,
    ProcessingResult,
    WebhookEvent,
    WebhookResult,
)

__all__ = [
    # Booking
    "BookingRequest",
    "MINOR_UNITS_PER_MAJOR",
    "json_number",
    "to_major_units",
    "to_minor_units",
    # Errors
    "BookingError",
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ToolError",
    # Notifications
    "DeliveryResult",
    "RecipientRole",
    # Webhooks
    "CHARGE_SUCCESS",
    "ConfirmationDetails",
    "LedgerStatus",
    "MalformedEventError",
    "ProcessedWebhookEvent",
    "ProcessingResult",
    "WebhookEvent",
    "WebhookResult",
]
