"""API routes package.

- health: liveness endpoint
- payments: payment initiation
- webhooks: Paystack webhook receiver

All routers are registered in main.py with the /api prefix.
"""

from chezvous_api.routes.health import router as health_router
from chezvous_api.routes.payments import router as payments_router
from chezvous_api.routes.webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "payments_router",
    "webhooks_router",
]
