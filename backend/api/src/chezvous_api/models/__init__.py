"""API request/response models."""

from chezvous_api.models.payments import InitializePaymentResponse
from chezvous_api.models.webhooks import WebhookResponse

__all__ = [
    "InitializePaymentResponse",
    "WebhookResponse",
]
