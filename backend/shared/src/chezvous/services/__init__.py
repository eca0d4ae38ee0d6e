"""Services for payment initiation and webhook confirmation."""

from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .email_service import EmailDeliveryError, EmailService
from .notifications import NotificationService, format_amount
from .payment_service import PaymentInitiationResult, PaymentInitiationService
from .paystack_service import (
    SIGNATURE_HEADER,
    PaystackService,
    PaystackServiceError,
    TransactionInitialization,
    compute_signature,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .webhook_handler import WebhookHandler
from .webhook_ledger import LedgerError, WebhookLedger

__all__ = [
    "DynamoDBService",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "EmailDeliveryError",
    "EmailService",
    "NotificationService",
    "format_amount",
    "PaymentInitiationResult",
    "PaymentInitiationService",
    "SIGNATURE_HEADER",
    "PaystackService",
    "PaystackServiceError",
    "TransactionInitialization",
    "compute_signature",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "WebhookHandler",
    "LedgerError",
    "WebhookLedger",
]
