"""FastAPI dependency providers for shared services.

Services are built once per process from the validated PaymentSettings and
cached with @lru_cache.

Service Dependency Graph:
    PaymentSettings (get_settings)
        ├── PaystackService
        ├── EmailService
        │       └── NotificationService
        ├── WebhookLedger (DynamoDBService singleton)
        ├── WebhookHandler (Paystack + Ledger + Notifications)
        └── PaymentInitiationService (Paystack + Notifications)

Testing:
    reset_services() closes clients and clears cached instances (shutdown, tests).
"""

from functools import lru_cache

from chezvous.config import get_settings, reset_settings
from chezvous.services.dynamodb import get_dynamodb_service, reset_dynamodb_service
from chezvous.services.email_service import EmailService
from chezvous.services.notifications import NotificationService
from chezvous.services.payment_service import PaymentInitiationService
from chezvous.services.paystack_service import PaystackService
from chezvous.services.webhook_handler import WebhookHandler
from chezvous.services.webhook_ledger import WebhookLedger


@lru_cache
def get_paystack_service() -> PaystackService:
    return PaystackService(get_settings())


@lru_cache
def get_notification_service() -> NotificationService:
    settings = get_settings()
    return NotificationService(EmailService(settings), settings)


@lru_cache
def get_webhook_ledger() -> WebhookLedger:
    settings = get_settings()
    return WebhookLedger(get_dynamodb_service(settings.environment), settings)


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler wired to the Paystack, ledger and email services."""
    return WebhookHandler(
        paystack=get_paystack_service(),
        ledger=get_webhook_ledger(),
        notifications=get_notification_service(),
    )


@lru_cache
def get_payment_service() -> PaymentInitiationService:
    """Get cached PaymentInitiationService."""
    return PaymentInitiationService(
        paystack=get_paystack_service(),
        notifications=get_notification_service(),
        settings=get_settings(),
    )


def reset_services() -> None:
    """Close open clients and clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    if get_paystack_service.cache_info().currsize:
        get_paystack_service().close()
    get_paystack_service.cache_clear()
    get_notification_service.cache_clear()
    get_webhook_ledger.cache_clear()
    get_webhook_handler.cache_clear()
    get_payment_service.cache_clear()

    reset_settings()
    reset_dynamodb_service()
