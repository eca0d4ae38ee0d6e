#!/usr/bin/env python3
"""Create the DynamoDB tables used by the payment service.

Creates the processed-webhook-event ledger with on-demand billing and
enables TTL on expires_at so old entries are evicted automatically.
Existing tables are left untouched.

Usage:
    python scripts/create_tables.py --env dev
    python scripts/create_tables.py --env prod --region eu-west-1
"""

import argparse
import os
import sys
from typing import Any

import boto3
from botocore.exceptions import ClientError

LEDGER_TABLE = "paystack-webhook-events"
TTL_ATTRIBUTE = "expires_at"


def get_table_name(env: str, table: str) -> str:
    """Get full table name with the same prefix DynamoDBService uses."""
    prefix = os.environ.get("DYNAMODB_TABLE_PREFIX", f"chezvous-{env}")
    return f"{prefix}-{table}"


def create_ledger_table(client: Any, table_name: str) -> bool:
    """Create the ledger table and enable TTL.

    Args:
        client: boto3 DynamoDB client
        table_name: Full table name

    Returns:
        True if the table was created, False if it already existed.
    """
    try:
        client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            return False
        raise

    client.get_waiter("table_exists").wait(TableName=table_name)
    client.update_time_to_live(
        TableName=table_name,
        TimeToLiveSpecification={"Enabled": True, "AttributeName": TTL_ATTRIBUTE},
    )
    return True


def main(argv: list[str] | None = None) -> int:
    """Run the table creation script."""
    parser = argparse.ArgumentParser(description="Create payment service DynamoDB tables")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--table",
        default=os.environ.get("WEBHOOK_EVENTS_TABLE", LEDGER_TABLE),
        help=f"Ledger table name without prefix (default: {LEDGER_TABLE})",
    )
    args = parser.parse_args(argv)

    client = boto3.client("dynamodb", region_name=args.region)
    table_name = get_table_name(args.env, args.table)

    try:
        created = create_ledger_table(client, table_name)
    except ClientError as e:
        print(f"Failed to create {table_name}: {e}")
        return 1

    if created:
        print(f"Created {table_name} (TTL on {TTL_ATTRIBUTE})")
    else:
        print(f"{table_name} already exists, skipped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
