"""FastAPI application for the Chez Nous Chez Vous payment API.

This package provides REST endpoints for:
- Health checks
- Payment initiation for a booking (Paystack checkout link + emails)
- Paystack webhook deliveries (booking confirmation emails)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from mangum import Mangum

from chezvous import __version__
from chezvous.config import get_settings
from chezvous.utils.logging import configure_logging, get_logger
from chezvous_api.dependencies import reset_services
from chezvous_api.exceptions import register_exception_handlers
from chezvous_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from chezvous_api.middleware.cors import SettingsCORSMiddleware
from chezvous_api.routes.health import router as health_router
from chezvous_api.routes.payments import router as payments_router
from chezvous_api.routes.webhooks import router as webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Validate configuration at startup and close gateway clients on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level.upper())
    logger.info(
        "Payment API starting (environment=%s, currency=%s)",
        settings.environment,
        settings.currency,
    )
    yield
    reset_services()


app = FastAPI(
    title="Chez Nous Chez Vous Payment API",
    description="Paystack payment initiation and webhook processing for apartment bookings",
    version=__version__,
    lifespan=lifespan,
)

# The booking page posts cross-origin
app.add_middleware(
    SettingsCORSMiddleware,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
app.include_router(health_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "chezvous-payments",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="auto")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "chezvous_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
