"""Standard error codes for payment initiation and webhook confirmation.

All services raise BookingError with one of these codes; the API layer
maps each code to an HTTP status and renders a ToolError body.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Request validation
    INVALID_BOOKING = "ERR_001"

    # Gateway / webhook
    INVALID_WEBHOOK_SIGNATURE = "ERR_PAYSTACK_001"
    MALFORMED_EVENT = "ERR_PAYSTACK_002"
    GATEWAY_ERROR = "ERR_PAYSTACK_003"

    # Deployment
    CONFIGURATION_ERROR = "ERR_CONFIG_001"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_BOOKING: "Booking details are missing or invalid",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.MALFORMED_EVENT: "Webhook payload is not a valid event",
    ErrorCode.GATEWAY_ERROR: "Payment gateway could not initialize the transaction",
    ErrorCode.CONFIGURATION_ERROR: "Payment service is not configured",
}

ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_BOOKING: "Check the booking fields and try again",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify the webhook secret configuration",
    ErrorCode.MALFORMED_EVENT: "Inspect the gateway delivery log for this payload",
    ErrorCode.GATEWAY_ERROR: "Try again shortly or contact support",
    ErrorCode.CONFIGURATION_ERROR: "Set the required environment variables and redeploy",
}


class ToolError(BaseModel):
    """Standard error response body."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ) -> "ToolError":
        """Create a ToolError with the message and recovery hint for a code."""
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by payment operations.

    Converted to a ToolError response by the API exception handlers.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_tool_error(self) -> ToolError:
        """Convert this exception to a ToolError."""
        return ToolError.from_code(self.code, self.details)
