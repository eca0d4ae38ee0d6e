"""Payment initiation service.

Single initiation path for every booking form: validate the booking,
create the gateway transaction, email the payment link and return it.
"""

import uuid

from pydantic import BaseModel, Field

from chezvous.config import PaymentSettings
from chezvous.models.booking import BookingRequest
from chezvous.models.errors import BookingError, ErrorCode
from chezvous.models.notification import DeliveryResult
from chezvous.services.notifications import NotificationService
from chezvous.services.paystack_service import PaystackService, PaystackServiceError
from chezvous.utils.logging import get_logger, log_payment_operation

logger = get_logger(__name__)


def generate_reference() -> str:
    """Generate a unique transaction reference (CNV-XXXXXXXXXXXX)."""
    return f"CNV-{uuid.uuid4().hex[:12].upper()}"


class PaymentInitiationResult(BaseModel):
    """Result of starting a payment."""

    authorization_url: str = Field(..., description="Hosted payment page")
    reference: str
    amount_minor: int = Field(..., ge=0)
    notifications_sent: bool
    deliveries: list[DeliveryResult] = Field(default_factory=list)


class PaymentInitiationService:
    """Starts gateway transactions for bookings."""

    def __init__(
        self,
        paystack: PaystackService,
        notifications: NotificationService,
        settings: PaymentSettings,
    ) -> None:
        self._paystack = paystack
        self._notifications = notifications
        self._settings = settings

    def initiate(self, booking: BookingRequest) -> PaymentInitiationResult:
        """Create a transaction and email the payment link.

        An email failure does not fail the request: the customer still
        receives the link in the response.

        Raises:
            BookingError: GATEWAY_ERROR if Paystack declines or is unreachable.
        """
        reference = generate_reference()
        amount_minor = booking.amount_minor

        try:
            init = self._paystack.initialize_transaction(
                email=booking.email,
                amount_minor=amount_minor,
                reference=reference,
                metadata=booking.to_gateway_metadata(),
            )
        except PaystackServiceError as e:
            log_payment_operation(
                logger,
                "initialize_transaction",
                reference=reference,
                email=booking.email,
                amount_minor=amount_minor,
                error=str(e),
            )
            details = {"message": str(e)}
            if e.status_code is not None:
                details["gateway_status"] = str(e.status_code)
            raise BookingError(code=ErrorCode.GATEWAY_ERROR, details=details) from e

        log_payment_operation(
            logger,
            "initialize_transaction",
            reference=init.reference,
            email=booking.email,
            amount_minor=amount_minor,
            status="initialized",
        )

        deliveries = self._notifications.send_payment_link(booking, init.authorization_url)
        failed = [d.role.value for d in deliveries if not d.delivered]
        sent = not failed
        if sent:
            log_payment_operation(
                logger, "send_payment_link", reference=init.reference, status="sent"
            )
        else:
            log_payment_operation(
                logger,
                "send_payment_link",
                reference=init.reference,
                error=f"Undelivered: {', '.join(failed)}",
            )

        return PaymentInitiationResult(
            authorization_url=init.authorization_url,
            reference=init.reference,
            amount_minor=amount_minor,
            notifications_sent=sent,
            deliveries=deliveries,
        )
