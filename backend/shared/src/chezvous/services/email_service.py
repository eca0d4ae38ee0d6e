"""Amazon SES email sender.

Every call is bounded by the configured connect/read timeouts so a slow
SES endpoint is reported as a failed send instead of hanging the request.
"""

import logging
from email.utils import formataddr

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from chezvous.config import PaymentSettings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when SES does not accept a message."""

    def __init__(self, message: str, recipient: str) -> None:
        super().__init__(message)
        self.recipient = recipient


class EmailService:
    """Sends HTML + text emails through SES."""

    def __init__(self, settings: PaymentSettings, client=None) -> None:
        """Initialize the SES client.

        Args:
            settings: Payment settings (sender, region, timeout).
            client: Preconfigured boto3 SES client.
        """
        self._source = formataddr((settings.business_name, str(settings.sender_email)))
        self._client = client or boto3.client(
            "ses",
            region_name=settings.ses_region,
            config=Config(
                connect_timeout=settings.email_timeout_seconds,
                read_timeout=settings.email_timeout_seconds,
                retries={"max_attempts": 2, "mode": "standard"},
            ),
        )

    def send(self, to: str, subject: str, html_body: str, text_body: str) -> str:
        """Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            html_body: HTML body
            text_body: Plain-text alternative

        Returns:
            SES message ID.

        Raises:
            EmailDeliveryError: If SES rejects the message or cannot be reached.
        """
        try:
            response = self._client.send_email(
                Source=self._source,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": text_body, "Charset": "UTF-8"},
                        "Html": {"Data": html_body, "Charset": "UTF-8"},
                    },
                },
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise EmailDeliveryError(f"SES rejected message ({error_code}): {e}", to) from e
        except BotoCoreError as e:
            raise EmailDeliveryError(f"SES request failed: {e}", to) from e

        message_id: str = response["MessageId"]
        return message_id
