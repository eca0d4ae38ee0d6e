"""Unit tests for the SES email sender and booking notifications."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError, ConnectTimeoutError

from chezvous.config import PaymentSettings
from chezvous.models.booking import BookingRequest
from chezvous.models.notification import RecipientRole
from chezvous.models.webhook import ConfirmationDetails
from chezvous.services.email_service import EmailDeliveryError, EmailService
from chezvous.services.notifications import NotificationService, format_amount


@pytest.fixture
def booking() -> BookingRequest:
    return BookingRequest(
        name="Ada <Obi>",
        email="ada@example.com",
        check_in=date(2026, 12, 20),
        check_out=date(2026, 12, 22),
        amount=Decimal("50000"),
    )


@pytest.fixture
def details() -> ConfirmationDetails:
    return ConfirmationDetails(name="Ada", email="ada@example.com", nights=2, total=Decimal("50000"))


def _throttled() -> ClientError:
    return ClientError(
        {"Error": {"Code": "Throttling", "Message": "Maximum sending rate exceeded"}},
        "SendEmail",
    )


class TestFormatAmount:
    @pytest.mark.parametrize(
        "amount, currency, expected",
        [
            (Decimal("50000"), "NGN", "₦50,000"),
            (Decimal("1250.5"), "NGN", "₦1,250.50"),
            (100, "USD", "$100"),
            (100, "KES", "KES 100"),
        ],
    )
    def test_formats(self, amount, currency: str, expected: str) -> None:
        assert format_amount(amount, currency) == expected


class TestEmailService:
    """Tests for the SES sender."""

    def test_sends_through_ses(
        self, settings: PaymentSettings, ses_sent_count: Callable[[], int]
    ) -> None:
        service = EmailService(settings, boto3.client("ses", region_name="eu-west-1"))

        message_id = service.send("ada@example.com", "Hello", "<p>Hi</p>", "Hi")

        assert message_id
        assert ses_sent_count() == 1

    def test_source_carries_business_name(self, settings: PaymentSettings) -> None:
        client = MagicMock()
        client.send_email.return_value = {"MessageId": "msg-1"}

        EmailService(settings, client).send("ada@example.com", "Hello", "<p>Hi</p>", "Hi")

        kwargs = client.send_email.call_args.kwargs
        assert kwargs["Source"] == "Chez Nous Chez Vous Apartments <bookings@example.com>"
        assert kwargs["Destination"] == {"ToAddresses": ["ada@example.com"]}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Hi"

    def test_rejection_raises_delivery_error(self, settings: PaymentSettings) -> None:
        client = MagicMock()
        client.send_email.side_effect = _throttled()

        with pytest.raises(EmailDeliveryError, match="Throttling") as exc_info:
            EmailService(settings, client).send("ada@example.com", "Hello", "<p>Hi</p>", "Hi")

        assert exc_info.value.recipient == "ada@example.com"

    def test_timeout_raises_delivery_error(self, settings: PaymentSettings) -> None:
        client = MagicMock()
        client.send_email.side_effect = ConnectTimeoutError(endpoint_url="https://email.eu-west-1.amazonaws.com")

        with pytest.raises(EmailDeliveryError, match="request failed"):
            EmailService(settings, client).send("ada@example.com", "Hello", "<p>Hi</p>", "Hi")


class TestNotificationService:
    """Tests for customer and owner notifications."""

    def test_payment_link_goes_to_customer_and_owner(
        self,
        settings: PaymentSettings,
        booking: BookingRequest,
        ses_sent_count: Callable[[], int],
    ) -> None:
        service = NotificationService(
            EmailService(settings, boto3.client("ses", region_name="eu-west-1")), settings
        )

        results = service.send_payment_link(booking, "https://checkout.paystack.com/abc")

        assert [(r.role, r.recipient, r.delivered) for r in results] == [
            (RecipientRole.CUSTOMER, "ada@example.com", True),
            (RecipientRole.OWNER, "owner@example.com", True),
        ]
        assert ses_sent_count() == 2

    def test_payment_link_escapes_guest_input(
        self, settings: PaymentSettings, booking: BookingRequest
    ) -> None:
        email = MagicMock(spec=EmailService)
        email.send.return_value = "msg-1"

        NotificationService(email, settings).send_payment_link(
            booking, "https://checkout.paystack.com/abc"
        )

        to, subject, html_body, text_body = email.send.call_args_list[0].args
        assert to == "ada@example.com"
        assert "Ada &lt;Obi&gt;" in html_body
        assert "Ada <Obi>" not in html_body
        assert "https://checkout.paystack.com/abc" in text_body
        assert "₦50,000" in html_body

    def test_confirmation_subjects(
        self, settings: PaymentSettings, details: ConfirmationDetails
    ) -> None:
        email = MagicMock(spec=EmailService)
        email.send.return_value = "msg-1"

        NotificationService(email, settings).send_booking_confirmation(details)

        sent = [(c.args[0], c.args[1]) for c in email.send.call_args_list]
        assert sent == [
            ("ada@example.com", "Payment Successful - Booking Confirmed"),
            ("owner@example.com", "New Payment Received"),
        ]
        assert "2 night(s)" in email.send.call_args_list[0].args[2]

    def test_failed_send_is_reported_and_other_still_sent(
        self, settings: PaymentSettings, details: ConfirmationDetails
    ) -> None:
        email = MagicMock(spec=EmailService)
        email.send.side_effect = [
            EmailDeliveryError("SES rejected message (Throttling)", "ada@example.com"),
            "msg-2",
        ]

        results = NotificationService(email, settings).send_booking_confirmation(details)

        assert [r.delivered for r in results] == [False, True]
        assert results[0].error == "SES rejected message (Throttling)"
        assert results[1].message_id == "msg-2"

    def test_roles_restrict_recipients(
        self, settings: PaymentSettings, details: ConfirmationDetails
    ) -> None:
        email = MagicMock(spec=EmailService)
        email.send.return_value = "msg-1"

        results = NotificationService(email, settings).send_booking_confirmation(
            details, roles=[RecipientRole.OWNER]
        )

        assert [r.role for r in results] == [RecipientRole.OWNER]
        assert email.send.call_count == 1
