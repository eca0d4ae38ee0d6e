"""Payment initiation endpoint.

Replaces the separate per-form handlers with one route and one
validation contract (BookingRequest).
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from starlette.status import HTTP_200_OK

from chezvous.models.booking import BookingRequest
from chezvous.models.errors import ToolError
from chezvous.services.payment_service import PaymentInitiationService
from chezvous_api.dependencies import get_payment_service
from chezvous_api.models.payments import InitializePaymentResponse

router = APIRouter(tags=["payments"])


@router.post(
    "/payments/initialize",
    summary="Initialize a booking payment",
    description="""
Create a Paystack transaction for a booking and email the payment link
to the guest and the property owner.

**Validation:** name, email, check-in, check-out and amount are required;
check-out must be after check-in; amount is in naira with at most two
decimal places and is charged in kobo (amount x 100).

**Notes:**
- Email delivery failures do not fail the request; see `notifications_sent`.
- `checkIn`/`checkOut` are accepted as aliases.
""",
    response_model=InitializePaymentResponse,
    status_code=HTTP_200_OK,
    responses={
        400: {"description": "Missing or invalid booking fields", "model": ToolError},
        502: {"description": "Paystack initialization failed", "model": ToolError},
    },
)
async def initialize_payment(
    booking: BookingRequest,
    payment_service: PaymentInitiationService = Depends(get_payment_service),
) -> InitializePaymentResponse:
    """Start a payment and return the Paystack authorization URL."""
    result = await run_in_threadpool(payment_service.initiate, booking)

    return InitializePaymentResponse(
        authorization_url=result.authorization_url,
        reference=result.reference,
        notifications_sent=result.notifications_sent,
    )
