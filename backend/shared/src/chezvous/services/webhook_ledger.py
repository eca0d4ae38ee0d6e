"""Processed-event ledger for webhook idempotency.

One DynamoDB item per payment-confirmation event, keyed by event_id.

Lifecycle:
    claim()                     -> status "processing"
    mark_processed()            -> status "processed"
    mark_notification_failed()  -> status "notification_failed"

claim() is a conditional put on attribute_not_exists(event_id), so when
several deliveries of the same event arrive at once exactly one of them
wins. A claim left in "processing" by an invocation that crashed before
finishing can be taken over once claim_expires_at has passed. Items carry
an expires_at TTL so DynamoDB evicts them after the retention window.
"""

import logging
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from chezvous.config import PaymentSettings
from chezvous.models.notification import RecipientRole
from chezvous.models.webhook import LedgerStatus, ProcessedWebhookEvent
from chezvous.services.dynamodb import DynamoDBService

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class LedgerError(Exception):
    """Raised when the ledger table cannot be read or written."""

    pass


class WebhookLedger:
    """DynamoDB-backed record of processed webhook events."""

    def __init__(
        self,
        db: DynamoDBService,
        settings: PaymentSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the ledger.

        Args:
            db: DynamoDB wrapper.
            settings: Provides table name, claim timeout and retention.
            clock: Returns the current epoch time in seconds.
        """
        self._db = db
        self._table = settings.webhook_events_table
        self._claim_timeout = settings.ledger_claim_timeout_seconds
        self._retention = settings.ledger_retention_days * SECONDS_PER_DAY
        self._clock = clock

    def _now(self) -> tuple[int, str]:
        now = self._clock()
        return int(now), datetime.fromtimestamp(now, UTC).isoformat()

    def claim(
        self,
        event_id: str,
        *,
        event_type: str,
        payload_hash: str,
        reference: str | None = None,
        notification_context: str | None = None,
    ) -> bool:
        """Atomically claim an event for processing.

        Args:
            event_id: Ledger identifier.
            event_type: Gateway event kind.
            payload_hash: SHA-256 of the raw body.
            reference: Gateway transaction reference.
            notification_context: Serialized details kept for resends.

        Returns:
            True if this caller owns the event and must dispatch
            notifications; False if it was already claimed or processed.

        Raises:
            LedgerError: If DynamoDB cannot be reached.
        """
        now, now_iso = self._now()
        claim_expires_at = now + self._claim_timeout

        item: dict[str, Any] = {
            "event_id": event_id,
            "event_type": event_type,
            "status": LedgerStatus.PROCESSING.value,
            "payload_hash": payload_hash,
            "claimed_at": now_iso,
            "claim_expires_at": claim_expires_at,
            "expires_at": now + self._retention,
        }
        if reference:
            item["reference"] = reference
        if notification_context:
            item["notification_context"] = notification_context

        try:
            if self._db.put_item(
                self._table, item, condition_expression="attribute_not_exists(event_id)"
            ):
                return True

            # Take over a claim abandoned by an invocation that never finished
            taken_over = self._db.update_item(
                self._table,
                {"event_id": event_id},
                "SET claimed_at = :claimed_at, claim_expires_at = :claim_expires_at",
                {
                    ":claimed_at": now_iso,
                    ":claim_expires_at": claim_expires_at,
                    ":processing": LedgerStatus.PROCESSING.value,
                    ":now": now,
                },
                {"#status": "status"},
                condition_expression="#status = :processing AND claim_expires_at < :now",
            )
        except (ClientError, BotoCoreError) as e:
            raise LedgerError(f"Failed to claim event {event_id}: {e}") from e

        if taken_over is not None:
            logger.warning("Took over stale claim for event %s", event_id)
            return True
        return False

    def mark_processed(self, event_id: str) -> None:
        """Record that notifications for an event were delivered."""
        _, now_iso = self._now()
        self._update(
            event_id,
            "SET #status = :status, processed_at = :now "
            "REMOVE claim_expires_at, error_message, failed_roles",
            {":status": LedgerStatus.PROCESSED.value, ":now": now_iso},
        )

    def mark_notification_failed(
        self,
        event_id: str,
        error_message: str,
        failed_roles: Iterable[RecipientRole],
    ) -> None:
        """Record that at least one notification could not be delivered.

        The event stays claimed: redeliveries are treated as duplicates and
        the failed emails are resent manually.
        """
        _, now_iso = self._now()
        self._update(
            event_id,
            "SET #status = :status, processed_at = :now, error_message = :error, "
            "failed_roles = :roles REMOVE claim_expires_at",
            {
                ":status": LedgerStatus.NOTIFICATION_FAILED.value,
                ":now": now_iso,
                ":error": error_message,
                ":roles": [role.value for role in failed_roles],
            },
        )

    def _update(self, event_id: str, expression: str, values: dict[str, Any]) -> None:
        try:
            updated = self._db.update_item(
                self._table,
                {"event_id": event_id},
                expression,
                values,
                {"#status": "status"},
                condition_expression="attribute_exists(event_id)",
            )
        except (ClientError, BotoCoreError) as e:
            raise LedgerError(f"Failed to update event {event_id}: {e}") from e

        if updated is None:
            raise LedgerError(f"Event {event_id} is not in the ledger")

    def get(self, event_id: str) -> ProcessedWebhookEvent | None:
        """Fetch one ledger entry."""
        try:
            item = self._db.get_item(self._table, {"event_id": event_id})
        except (ClientError, BotoCoreError) as e:
            raise LedgerError(f"Failed to read event {event_id}: {e}") from e
        return _to_model(item) if item else None

    def list_failed(self) -> list[ProcessedWebhookEvent]:
        """All events whose notifications need a manual resend."""
        try:
            items = self._db.scan(
                self._table,
                Attr("status").eq(LedgerStatus.NOTIFICATION_FAILED.value),
            )
        except (ClientError, BotoCoreError) as e:
            raise LedgerError(f"Failed to scan ledger: {e}") from e
        return sorted((_to_model(item) for item in items), key=lambda e: e.claimed_at)


def _to_model(item: dict[str, Any]) -> ProcessedWebhookEvent:
    # DynamoDB returns numbers as Decimal
    data = {key: value for key, value in item.items() if key in ProcessedWebhookEvent.model_fields}
    data["expires_at"] = int(item["expires_at"])
    if item.get("claim_expires_at") is not None:
        data["claim_expires_at"] = int(item["claim_expires_at"])
    return ProcessedWebhookEvent.model_validate(data)
