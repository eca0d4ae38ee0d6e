"""Customer and owner notification emails.

Each operation emails the customer and the property owner. Both sends are
always attempted; failures are returned as DeliveryResult entries rather
than raised so callers decide how to report them.
"""

import html
from collections.abc import Iterable
from decimal import Decimal

from chezvous.config import PaymentSettings
from chezvous.models.booking import BookingRequest
from chezvous.models.notification import DeliveryResult, RecipientRole
from chezvous.models.webhook import ConfirmationDetails
from chezvous.services.email_service import EmailDeliveryError, EmailService
from chezvous.utils.logging import get_logger, mask_email

logger = get_logger(__name__)

CURRENCY_SYMBOLS = {"NGN": "₦", "USD": "$", "EUR": "€", "GBP": "£"}


def format_amount(amount: Decimal | int | float, currency: str = "NGN") -> str:
    """Format a major-unit amount for display.

    >>> format_amount(Decimal("50000"))
    '₦50,000'
    >>> format_amount(Decimal("1250.5"))
    '₦1,250.50'
    """
    value = Decimal(str(amount))
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    if value == value.to_integral_value():
        return f"{symbol}{int(value):,}"
    return f"{symbol}{value:,.2f}"


class NotificationService:
    """Renders and sends booking emails."""

    def __init__(self, email: EmailService, settings: PaymentSettings) -> None:
        self._email = email
        self._settings = settings

    def send_payment_link(
        self,
        booking: BookingRequest,
        authorization_url: str,
    ) -> list[DeliveryResult]:
        """Email the payment link to the customer and alert the owner."""
        business = self._settings.business_name
        name = html.escape(booking.name)
        amount = format_amount(booking.amount, self._settings.currency)
        link = html.escape(authorization_url, quote=True)
        check_in = booking.check_in.isoformat()
        check_out = booking.check_out.isoformat()

        customer = self._deliver(
            RecipientRole.CUSTOMER,
            booking.email,
            f"Payment Initialization Successful - {business}",
            f"""
        <h2>Dear {name},</h2>
        <p>Your booking from <b>{check_in}</b> to <b>{check_out}</b> has been initialized.</p>
        <p>Total Amount: <b>{amount}</b></p>
        <p>Click the button below to complete your payment:</p>
        <p>
          <a href="{link}"
            style="background:#ff7f00;color:#fff;padding:12px 24px;border-radius:8px;text-decoration:none;font-weight:bold;">
            Complete Payment
          </a>
        </p>
        <br>
        <p>Thank you for choosing {html.escape(business)}!</p>
        """,
            f"Dear {booking.name},\n\n"
            f"Your booking from {check_in} to {check_out} has been initialized.\n"
            f"Total Amount: {amount}\n\n"
            f"Complete your payment here: {authorization_url}\n\n"
            f"Thank you for choosing {business}!\n",
        )

        owner = self._deliver(
            RecipientRole.OWNER,
            str(self._settings.owner_email),
            "New Booking Payment Started",
            f"""
        <h3>New Booking Payment Started</h3>
        <p><b>Name:</b> {name}</p>
        <p><b>Email:</b> {html.escape(booking.email)}</p>
        <p><b>Check-in:</b> {check_in}</p>
        <p><b>Check-out:</b> {check_out}</p>
        <p><b>Amount:</b> {amount}</p>
        <p>Payment Link: <a href="{link}">{link}</a></p>
        """,
            "New Booking Payment Started\n\n"
            f"Name: {booking.name}\n"
            f"Email: {booking.email}\n"
            f"Check-in: {check_in}\n"
            f"Check-out: {check_out}\n"
            f"Amount: {amount}\n"
            f"Payment Link: {authorization_url}\n",
        )
        return [customer, owner]

    def send_booking_confirmation(
        self,
        details: ConfirmationDetails,
        roles: Iterable[RecipientRole] | None = None,
    ) -> list[DeliveryResult]:
        """Confirm a paid booking to the customer and notify the owner.

        Args:
            details: Validated confirmation details.
            roles: Restrict sending to these recipients (used when resending
                only the emails that previously failed). Defaults to both.
        """
        wanted = set(roles) if roles is not None else set(RecipientRole)
        name = html.escape(details.name)
        total = format_amount(details.total, self._settings.currency)
        nights = details.nights
        results: list[DeliveryResult] = []

        if RecipientRole.CUSTOMER in wanted:
            results.append(
                self._deliver(
                    RecipientRole.CUSTOMER,
                    details.email,
                    "Payment Successful - Booking Confirmed",
                    f"""
        <h2>Hello {name},</h2>
        <p>Your booking for {nights} night(s) has been confirmed.</p>
        <p>Total Paid: {total}</p>
        <p>We look forward to hosting you.</p>
        """,
                    f"Hello {details.name},\n\n"
                    f"Your booking for {nights} night(s) has been confirmed.\n"
                    f"Total Paid: {total}\n\n"
                    "We look forward to hosting you.\n",
                )
            )

        if RecipientRole.OWNER in wanted:
            results.append(
                self._deliver(
                    RecipientRole.OWNER,
                    str(self._settings.owner_email),
                    "New Payment Received",
                    f"""
        <h2>New Booking</h2>
        <p><b>Name:</b> {name}</p>
        <p><b>Email:</b> {html.escape(details.email)}</p>
        <p><b>Nights:</b> {nights}</p>
        <p><b>Amount:</b> {total}</p>
        """,
                    "New Booking\n\n"
                    f"Name: {details.name}\n"
                    f"Email: {details.email}\n"
                    f"Nights: {nights}\n"
                    f"Amount: {total}\n",
                )
            )

        return results

    def _deliver(
        self,
        role: RecipientRole,
        recipient: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> DeliveryResult:
        try:
            message_id = self._email.send(recipient, subject, html_body, text_body)
        except EmailDeliveryError as e:
            logger.error(
                "Email to %s (%s) failed: %s | subject=%s",
                role.value,
                mask_email(recipient),
                e,
                subject,
            )
            return DeliveryResult(
                role=role, recipient=recipient, delivered=False, error=str(e)
            )

        logger.info("Email to %s (%s) sent: %s", role.value, mask_email(recipient), message_id)
        return DeliveryResult(
            role=role, recipient=recipient, delivered=True, message_id=message_id
        )
