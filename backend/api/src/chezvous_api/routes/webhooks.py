"""Webhook endpoint for Paystack events.

Does NOT require authentication headers from a user: the payload is
authenticated by its x-paystack-signature HMAC.

Every authenticated delivery is acknowledged with 200 (including
duplicates, ignored kinds and malformed metadata) so Paystack stops
retrying. Only a bad signature (401), an unparseable body (400) or an
internal failure (5xx) produce other statuses.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from chezvous.models.errors import ToolError
from chezvous.services.paystack_service import SIGNATURE_HEADER
from chezvous.services.webhook_handler import WebhookHandler
from chezvous_api.dependencies import get_webhook_handler
from chezvous_api.models.webhooks import WebhookResponse

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/paystack",
    summary="Receive Paystack webhook events",
    description="""
Handles `charge.success`: sends the booking confirmation to the guest and
a payment alert to the owner, once per transaction.

**Idempotent**: redelivered events return 200 with `duplicate`.
Other event kinds return 200 with `ignored`.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event received (processed or acknowledged)", "model": WebhookResponse},
        400: {"description": "Body is not a JSON object", "model": ToolError},
        401: {"description": "Missing or invalid signature", "model": ToolError},
    },
)
async def handle_paystack_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify, de-duplicate and process a Paystack event."""
    # Signature is computed over the exact bytes received
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)
    source = request.client.host if request.client else None

    result = await run_in_threadpool(handler.handle, payload, signature, source=source)

    return WebhookResponse(
        received=True,
        event_id=result.event_id,
        event_type=result.event_type,
        processing_result=result.result.value,
        message=result.message,
    )
