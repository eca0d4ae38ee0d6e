#!/usr/bin/env python3
"""List and resend booking confirmations whose emails failed.

Reads the processed-webhook-event ledger for entries in
notification_failed and resends only the emails that were not delivered.
Configuration is read from the same environment variables as the API.

Usage:
    python scripts/resend_notifications.py --list
    python scripts/resend_notifications.py --event-id charge.success:CNV-1A2B3C4D5E6F
    python scripts/resend_notifications.py --all
"""

import argparse
import sys

from chezvous.config import ConfigurationError
from chezvous.models.webhook import ProcessedWebhookEvent, ProcessingResult
from chezvous.services.webhook_handler import WebhookHandler
from chezvous.services.webhook_ledger import LedgerError, WebhookLedger
from chezvous.utils.logging import configure_logging
from chezvous_api.dependencies import get_webhook_handler, get_webhook_ledger


def describe(entry: ProcessedWebhookEvent) -> str:
    roles = ", ".join(role.value for role in entry.failed_roles) or "unknown"
    return (
        f"{entry.event_id}  reference={entry.reference or '-'}  "
        f"failed={roles}  at={entry.processed_at or entry.claimed_at}  "
        f"error={entry.error_message or '-'}"
    )


def resend(handler: WebhookHandler, event_ids: list[str]) -> int:
    """Resend failed notifications for each event.

    Returns:
        Number of events that are still failing afterwards.
    """
    still_failing = 0
    for event_id in event_ids:
        try:
            result = handler.resend_failed(event_id)
        except LookupError as e:
            print(f"  Skipped {event_id}: {e}")
            still_failing += 1
            continue

        if result.result == ProcessingResult.SUCCESS:
            print(f"  Resent {event_id}")
        else:
            print(f"  Still failing {event_id}: {result.message}")
            still_failing += 1
    return still_failing


def main(argv: list[str] | None = None) -> int:
    """Run the resend script."""
    parser = argparse.ArgumentParser(description="Resend failed booking notifications")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--list", action="store_true", help="List failed events")
    action.add_argument("--event-id", action="append", help="Resend one event (repeatable)")
    action.add_argument("--all", action="store_true", help="Resend every failed event")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        ledger: WebhookLedger = get_webhook_ledger()
        handler = get_webhook_handler()
        failed = ledger.list_failed() if (args.list or args.all) else []
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1
    except LedgerError as e:
        print(f"Could not read the ledger: {e}")
        return 1

    if args.list:
        if not failed:
            print("No failed notifications.")
        for entry in failed:
            print(describe(entry))
        return 0

    event_ids = [entry.event_id for entry in failed] if args.all else args.event_id
    print(f"Resending {len(event_ids)} event(s)")
    try:
        remaining = resend(handler, event_ids)
    except LedgerError as e:
        print(f"Could not read the ledger: {e}")
        return 1
    return 1 if remaining else 0


if __name__ == "__main__":
    sys.exit(main())
