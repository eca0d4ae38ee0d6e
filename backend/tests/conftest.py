"""Pytest configuration and fixtures for Chez Nous Chez Vous payment backend tests.

This module provides reusable fixtures for testing:
- AWS mocking with moto (ledger table, SES identities, SSM)
- Payment settings and webhook signing helpers
- Sample webhook bodies
"""

import json
import os
from collections.abc import Callable
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-chezvous")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_chezvous_secret")
os.environ.setdefault("PAYSTACK_CALLBACK_URL", "https://chezvous.example.com/payment-complete")
os.environ.setdefault("SES_FROM_EMAIL", "bookings@example.com")
os.environ.setdefault("OWNER_EMAIL", "owner@example.com")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from chezvous.config import PaymentSettings  # noqa: E402
from chezvous.services.paystack_service import compute_signature  # noqa: E402

TEST_SECRET = "sk_test_chezvous_secret"
LEDGER_TABLE = "test-chezvous-paystack-webhook-events"
SENDER = "bookings@example.com"
OWNER = "owner@example.com"


# === Singletons ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached settings and services before and after each test.

    Tests using mock_aws get fresh boto3 clients created inside the mock
    context rather than reusing ones built by a previous test.
    """
    from chezvous_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === Settings Fixtures ===


@pytest.fixture
def settings() -> PaymentSettings:
    """Settings matching the test environment."""
    return PaymentSettings(
        paystack_secret_key=TEST_SECRET,
        paystack_callback_url="https://chezvous.example.com/payment-complete",
        sender_email=SENDER,
        owner_email=OWNER,
        ses_region="eu-west-1",
    )


@pytest.fixture
def sign() -> Callable[..., str]:
    """Return a helper that signs a body the way Paystack does."""

    def _sign(payload: bytes, secret: str = TEST_SECRET) -> str:
        return compute_signature(payload, secret)

    return _sign


# === AWS Fixtures ===


@pytest.fixture
def aws() -> Generator[None, None, None]:
    """Mock AWS with the ledger table and a verified SES sender."""
    with mock_aws():
        dynamodb = boto3.client("dynamodb", region_name="eu-west-1")
        dynamodb.create_table(
            TableName=LEDGER_TABLE,
            KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )

        ses = boto3.client("ses", region_name="eu-west-1")
        ses.verify_email_identity(EmailAddress=SENDER)
        ses.verify_domain_identity(Domain="example.com")

        yield


@pytest.fixture
def ledger_table(aws: None) -> Any:
    """boto3 Table resource for inspecting ledger items directly."""
    return boto3.resource("dynamodb", region_name="eu-west-1").Table(LEDGER_TABLE)


@pytest.fixture
def ses_sent_count(aws: None) -> Callable[[], int]:
    """Return a helper that counts emails accepted by mocked SES."""
    client = boto3.client("ses", region_name="eu-west-1")

    def _count() -> int:
        return int(client.get_send_quota()["SentLast24Hours"])

    return _count


# === Sample Data ===


def charge_success_body(
    metadata: dict[str, Any] | None = None,
    reference: str | None = "CNV-1A2B3C4D5E6F",
    **data: Any,
) -> bytes:
    """Build a charge.success webhook body."""
    payload: dict[str, Any] = {
        "metadata": {
            "name": "Ada Obi",
            "email": "ada@example.com",
            "nights": 2,
            "total": 50000,
        }
        if metadata is None
        else metadata,
        **data,
    }
    if reference:
        payload["reference"] = reference
    return json.dumps({"event": "charge.success", "data": payload}).encode()


@pytest.fixture
def charge_body() -> Callable[..., bytes]:
    """Factory for charge.success bodies."""
    return charge_success_body


@pytest.fixture
def scenario_body() -> bytes:
    """The minimal charge.success body from the delivery contract."""
    return (
        b'{"event":"charge.success","data":{"metadata":'
        b'{"email":"a@b.com","name":"A","nights":2,"total":50000}}}'
    )
