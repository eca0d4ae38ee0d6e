"""Email delivery outcome model."""

from enum import Enum

from pydantic import BaseModel, Field


class RecipientRole(str, Enum):
    """Who a notification is addressed to."""

    CUSTOMER = "customer"
    OWNER = "owner"


class DeliveryResult(BaseModel):
    """Outcome of one notification email."""

    role: RecipientRole
    recipient: str
    delivered: bool
    message_id: str | None = None
    error: str | None = Field(default=None, description="Failure reason if not delivered")
