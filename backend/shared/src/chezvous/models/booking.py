"""Booking request model and minor-currency-unit conversion.

One validation contract for every payment initiation: the required fields
are name, email, check-in, check-out and amount. Amounts arrive in major
units (naira) and are sent to the gateway in minor units (kobo).

Rounding rule: an amount is converted by multiplying by 100; the product
must already be a whole number. Amounts with sub-kobo precision
(e.g. 100.005) are rejected, never rounded, so the charged amount always
equals the displayed amount exactly.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)

MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Convert a major-unit amount to integer minor units.

    Args:
        amount: Amount in major units (e.g. 50000 or "1250.50")

    Returns:
        Amount in minor units (e.g. 5000000 or 125050)

    Raises:
        ValueError: If the amount is not finite or has sub-minor-unit precision.
    """
    value = Decimal(str(amount))
    if not value.is_finite():
        raise ValueError("Amount must be a finite number")

    minor = value * MINOR_UNITS_PER_MAJOR
    if minor != minor.to_integral_value():
        raise ValueError("Amount cannot have more than two decimal places")
    return int(minor)


def to_major_units(amount_minor: int) -> Decimal:
    """Convert integer minor units back to a major-unit Decimal."""
    return Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR


def json_number(amount: Decimal) -> int | float:
    """Render a Decimal as a JSON number (int when whole)."""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


class BookingRequest(BaseModel):
    """Booking details submitted by the website to start a payment.

    Accepts both snake_case and the camelCase field names the booking
    forms post (checkIn/checkOut).
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200, description="Guest full name")
    email: EmailStr = Field(..., description="Guest email for the payment link")
    check_in: date = Field(
        ...,
        validation_alias=AliasChoices("check_in", "checkIn"),
        description="Arrival date",
    )
    check_out: date = Field(
        ...,
        validation_alias=AliasChoices("check_out", "checkOut"),
        description="Departure date",
    )
    amount: Decimal = Field(..., gt=0, description="Total in major currency units")

    @field_validator("amount")
    @classmethod
    def _amount_fits_minor_units(cls, value: Decimal) -> Decimal:
        to_minor_units(value)
        return value

    @model_validator(mode="after")
    def _check_out_after_check_in(self) -> "BookingRequest":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self

    @property
    def nights(self) -> int:
        """Number of nights between check-in and check-out."""
        return (self.check_out - self.check_in).days

    @property
    def amount_minor(self) -> int:
        """Amount in minor currency units."""
        return to_minor_units(self.amount)

    def to_gateway_metadata(self) -> dict[str, Any]:
        """Metadata attached to the gateway transaction.

        The webhook reads these same keys back to build the confirmation.
        """
        return {
            "name": self.name,
            "email": self.email,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "total": json_number(self.amount),
        }
