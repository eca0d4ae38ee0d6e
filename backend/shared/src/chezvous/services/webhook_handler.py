"""Webhook handler for Paystack payment events.

Business logic for webhook deliveries, separate from HTTP routing:

1. Authenticate the raw body against x-paystack-signature.
2. Parse the event and ignore every kind except charge.success.
3. Validate the booking metadata carried by the charge.
4. Claim the event in the ledger; a lost claim is a duplicate delivery.
5. Send the customer confirmation and owner alert.
6. Record the outcome.

Delivery policy: the claim is taken before the emails are sent and
finalised afterwards, so a redelivered event never sends a second email
while its first delivery is in flight or after it finished, whether the
emails succeeded or failed. The remaining window is a crash between the
send and the final ledger write: that claim lapses after
ledger_claim_timeout_seconds and a later redelivery sends again.
"""

from chezvous.models.errors import BookingError, ErrorCode
from chezvous.models.notification import DeliveryResult
from chezvous.models.webhook import (
    CHARGE_SUCCESS,
    ConfirmationDetails,
    LedgerStatus,
    MalformedEventError,
    ProcessingResult,
    WebhookEvent,
    WebhookResult,
)
from chezvous.services.notifications import NotificationService
from chezvous.services.paystack_service import PaystackService
from chezvous.services.webhook_ledger import LedgerError, WebhookLedger
from chezvous.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


class WebhookHandler:
    """Authenticates, de-duplicates and dispatches gateway events."""

    def __init__(
        self,
        paystack: PaystackService,
        ledger: WebhookLedger,
        notifications: NotificationService,
    ) -> None:
        self._paystack = paystack
        self._ledger = ledger
        self._notifications = notifications

    def handle(
        self,
        payload: bytes,
        signature: str | None,
        *,
        source: str | None = None,
    ) -> WebhookResult:
        """Process one webhook delivery.

        Args:
            payload: Raw request body exactly as received.
            signature: x-paystack-signature header value.
            source: Client address, recorded when authentication fails.

        Returns:
            WebhookResult describing what was done. Every result is
            acknowledged to the gateway with HTTP 200.

        Raises:
            BookingError: INVALID_WEBHOOK_SIGNATURE when the signature is
                missing or wrong; MALFORMED_EVENT when the verified body is
                not a JSON object.
            LedgerError: If the ledger cannot be reached before any email
                was sent (the gateway retries on the resulting 5xx).
        """
        if not self._paystack.verify_webhook_signature(payload, signature):
            reason = "missing" if not signature else "invalid"
            logger.warning(
                "Rejected webhook with %s signature from %s (%d bytes)",
                reason,
                source or "unknown",
                len(payload),
            )
            raise BookingError(
                code=ErrorCode.INVALID_WEBHOOK_SIGNATURE,
                details={"reason": f"Signature header {reason}"},
            )

        try:
            event = WebhookEvent.from_payload(payload)
        except MalformedEventError as e:
            logger.error("Verified webhook body could not be parsed: %s", e)
            raise BookingError(
                code=ErrorCode.MALFORMED_EVENT,
                details={"message": str(e)},
            ) from e

        if event.kind != CHARGE_SUCCESS:
            log_webhook_event(logger, event.kind, None, reference=event.reference, result="ignored")
            return WebhookResult(
                event_type=event.kind,
                result=ProcessingResult.IGNORED,
                message=f"Event type '{event.kind}' not handled",
            )

        payload_hash = PaystackService.compute_payload_hash(payload)
        event_id = event.event_id(payload_hash)
        log_webhook_event(logger, event.kind, event_id, reference=event.reference, result="received")

        try:
            details = ConfirmationDetails.from_event(event)
        except MalformedEventError as e:
            log_webhook_event(
                logger,
                event.kind,
                event_id,
                reference=event.reference,
                result="malformed",
                error=str(e),
            )
            return WebhookResult(
                event_id=event_id,
                event_type=event.kind,
                result=ProcessingResult.MALFORMED,
                message=str(e),
            )

        claimed = self._ledger.claim(
            event_id,
            event_type=event.kind,
            payload_hash=payload_hash,
            reference=event.reference,
            notification_context=details.to_context(),
        )
        if not claimed:
            log_webhook_event(logger, event.kind, event_id, reference=event.reference, result="duplicate")
            return WebhookResult(
                event_id=event_id,
                event_type=event.kind,
                result=ProcessingResult.DUPLICATE,
                message="Event already processed",
            )

        deliveries = self._notifications.send_booking_confirmation(details)
        return self._finish(event_id, event.kind, event.reference, deliveries)

    def resend_failed(self, event_id: str) -> WebhookResult:
        """Resend the notifications that failed for an event.

        Only the recipients recorded as failed are emailed again.

        Raises:
            LookupError: If the event is unknown or not in notification_failed.
        """
        entry = self._ledger.get(event_id)
        if entry is None:
            raise LookupError(f"Event {event_id} is not in the ledger")
        if entry.status != LedgerStatus.NOTIFICATION_FAILED:
            raise LookupError(f"Event {event_id} is {entry.status.value}, nothing to resend")
        if not entry.notification_context:
            raise LookupError(f"Event {event_id} has no stored notification context")

        details = ConfirmationDetails.from_context(entry.notification_context)
        deliveries = self._notifications.send_booking_confirmation(
            details, roles=entry.failed_roles or None
        )
        return self._finish(event_id, entry.event_type, entry.reference, deliveries)

    def _finish(
        self,
        event_id: str,
        event_type: str,
        reference: str | None,
        deliveries: list[DeliveryResult],
    ) -> WebhookResult:
        failed = [d for d in deliveries if not d.delivered]

        if not failed:
            log_webhook_event(logger, event_type, event_id, reference=reference, result="success")
            self._record(self._ledger.mark_processed, event_id)
            return WebhookResult(
                event_id=event_id,
                event_type=event_type,
                result=ProcessingResult.SUCCESS,
                deliveries=deliveries,
            )

        # Full detail goes to the log and ledger only, never to the gateway
        error = "; ".join(f"{d.role.value} <{d.recipient}>: {d.error}" for d in failed)
        log_webhook_event(
            logger,
            event_type,
            event_id,
            reference=reference,
            result="notification_failed",
            error=error,
        )
        self._record(
            self._ledger.mark_notification_failed, event_id, error, [d.role for d in failed]
        )
        return WebhookResult(
            event_id=event_id,
            event_type=event_type,
            result=ProcessingResult.NOTIFICATION_FAILED,
            message="Notification delivery failed for: "
            + ", ".join(d.role.value for d in failed),
            deliveries=deliveries,
        )

    @staticmethod
    def _record(mark, event_id: str, *args) -> None:
        try:
            mark(event_id, *args)
        except LedgerError:
            # Emails already went out; the claim stays in "processing"
            logger.exception("Could not record outcome for event %s", event_id)
