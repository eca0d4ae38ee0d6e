"""Explicit configuration for the payment services.

Every service receives a PaymentSettings instance at construction time
instead of reading the process environment on its own. Settings are loaded
once, at startup, by PaymentSettings.from_env(); a deployment missing any
required value fails immediately with a ConfigurationError that names every
missing variable.

Required:
    PAYSTACK_SECRET_KEY (or PAYSTACK_SECRET_KEY_PARAMETER naming an SSM
    SecureString), PAYSTACK_CALLBACK_URL, SES_FROM_EMAIL, OWNER_EMAIL

Optional:
    PAYSTACK_WEBHOOK_SECRET, PAYSTACK_BASE_URL, PAYMENT_CURRENCY,
    BUSINESS_NAME, SES_REGION, ALLOWED_ORIGINS, WEBHOOK_EVENTS_TABLE,
    GATEWAY_TIMEOUT_SECONDS, EMAIL_TIMEOUT_SECONDS,
    LEDGER_CLAIM_TIMEOUT_SECONDS, LEDGER_RETENTION_DAYS, ENVIRONMENT, LOG_LEVEL
"""

import logging
import os
from collections.abc import Mapping
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError

if TYPE_CHECKING:
    from chezvous.services.ssm_service import SSMService

logger = logging.getLogger(__name__)

# Environment variable name for each required field
REQUIRED_ENV_VARS: dict[str, str] = {
    "paystack_secret_key": "PAYSTACK_SECRET_KEY",
    "paystack_callback_url": "PAYSTACK_CALLBACK_URL",
    "sender_email": "SES_FROM_EMAIL",
    "owner_email": "OWNER_EMAIL",
}

OPTIONAL_ENV_VARS: dict[str, str] = {
    "paystack_webhook_secret": "PAYSTACK_WEBHOOK_SECRET",
    "paystack_base_url": "PAYSTACK_BASE_URL",
    "currency": "PAYMENT_CURRENCY",
    "business_name": "BUSINESS_NAME",
    "ses_region": "SES_REGION",
    "webhook_events_table": "WEBHOOK_EVENTS_TABLE",
    "gateway_timeout_seconds": "GATEWAY_TIMEOUT_SECONDS",
    "email_timeout_seconds": "EMAIL_TIMEOUT_SECONDS",
    "ledger_claim_timeout_seconds": "LEDGER_CLAIM_TIMEOUT_SECONDS",
    "ledger_retention_days": "LEDGER_RETENTION_DAYS",
    "environment": "ENVIRONMENT",
    "log_level": "LOG_LEVEL",
}

SECRET_KEY_PARAMETER_VAR = "PAYSTACK_SECRET_KEY_PARAMETER"


class ConfigurationError(Exception):
    """Raised at startup when required configuration is absent or invalid."""

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class PaymentSettings(BaseModel):
    """Configuration consumed by the gateway client, email sender and ledger."""

    model_config = ConfigDict(frozen=True)

    paystack_secret_key: str = Field(..., min_length=1, repr=False)
    paystack_webhook_secret: str | None = Field(
        default=None,
        repr=False,
        description="Webhook signing secret; Paystack signs with the secret key",
    )
    paystack_base_url: str = "https://api.paystack.co"
    paystack_callback_url: str = Field(..., min_length=1)
    currency: str = "NGN"

    business_name: str = "Chez Nous Chez Vous Apartments"
    sender_email: EmailStr
    owner_email: EmailStr
    ses_region: str | None = None

    webhook_events_table: str = "paystack-webhook-events"
    ledger_claim_timeout_seconds: int = Field(default=300, gt=0)
    ledger_retention_days: int = Field(default=90, gt=0)

    gateway_timeout_seconds: float = Field(default=10.0, gt=0)
    email_timeout_seconds: float = Field(default=10.0, gt=0)

    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    environment: str = "dev"
    log_level: str = "INFO"

    @property
    def webhook_secret(self) -> str:
        """Secret used to verify webhook signatures."""
        return self.paystack_webhook_secret or self.paystack_secret_key

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        ssm: "SSMService | None" = None,
    ) -> "PaymentSettings":
        """Load and validate settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            ssm: SSM service used when the secret key is stored as a
                parameter. Created on demand.

        Returns:
            Validated settings.

        Raises:
            ConfigurationError: If any required value is missing or invalid.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        for field_name, var in {**REQUIRED_ENV_VARS, **OPTIONAL_ENV_VARS}.items():
            raw = env.get(var, "").strip()
            if raw:
                values[field_name] = raw

        origins = env.get("ALLOWED_ORIGINS", "").strip()
        if origins:
            values["allowed_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        if "paystack_secret_key" not in values:
            parameter = env.get(SECRET_KEY_PARAMETER_VAR, "").strip()
            if parameter:
                values["paystack_secret_key"] = _secret_from_ssm(parameter, ssm)

        missing = [
            REQUIRED_ENV_VARS[name] for name in REQUIRED_ENV_VARS if name not in values
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            )

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ConfigurationError(
                f"Invalid configuration values: {', '.join(fields)}"
            ) from e


def _secret_from_ssm(parameter: str, ssm: "SSMService | None") -> str:
    from chezvous.services.ssm_service import SSMServiceError, get_ssm_service

    service = ssm or get_ssm_service()
    try:
        return service.get_parameter(parameter)
    except SSMServiceError as e:
        raise ConfigurationError(
            f"Could not load {SECRET_KEY_PARAMETER_VAR} ({parameter}): {e}",
            missing=[REQUIRED_ENV_VARS["paystack_secret_key"]],
        ) from e


@lru_cache(maxsize=1)
def get_settings() -> PaymentSettings:
    """Load settings once per process."""
    settings = PaymentSettings.from_env()
    logger.info(
        "Payment settings loaded for environment %s (currency=%s)",
        settings.environment,
        settings.currency,
    )
    return settings


def reset_settings() -> None:
    """Forget cached settings (for testing)."""
    get_settings.cache_clear()
