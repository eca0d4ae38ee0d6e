"""Webhook response models."""

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Acknowledgment returned to Paystack."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str  # success, duplicate, ignored, malformed, notification_failed
    message: str | None = None
