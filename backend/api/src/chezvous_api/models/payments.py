"""Payment initiation response models.

The request body is chezvous.models.booking.BookingRequest, shared with
the service layer so there is exactly one validation contract.
"""

from typing import Literal

from pydantic import BaseModel, Field


class InitializePaymentResponse(BaseModel):
    """Payment link returned to the booking page."""

    status: Literal["success"] = "success"
    authorization_url: str = Field(
        ...,
        description="Paystack hosted payment page",
        examples=["https://checkout.paystack.com/0peioxfhpn"],
    )
    reference: str = Field(..., examples=["CNV-1A2B3C4D5E6F"])
    message: str = "Payment initialized successfully"
    notifications_sent: bool = Field(
        ...,
        description="False when the payment-link emails could not be delivered",
    )
