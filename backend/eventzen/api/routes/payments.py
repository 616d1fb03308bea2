"""
Payment endpoints: payment intent issuance and payment confirmation.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.schemas.payment import (
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentProcess,
    PaymentResponse,
)
from eventzen.services.gateway_factory import get_payment_gateway
from eventzen.services.interfaces.payment_gateway import PaymentGateway
from eventzen.services.payment_service import create_payment_intent, process_payment
from eventzen.core.security import Principal, require_user
from eventzen.realtime.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["Payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent_endpoint(
    payload: PaymentIntentCreate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Create a provider payment intent for the booking's stored total."""
    intent = await create_payment_intent(db, gateway, principal, payload.booking_id)
    return PaymentIntentResponse(client_secret=intent.client_secret)


@router.post(
    "/process-payment",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"description": "Payment was already recorded for this booking"}},
)
async def process_payment_endpoint(
    payload: PaymentProcess,
    response: Response,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """
    Record a gateway-confirmed payment and confirm the booking.

    Safe to repeat: the same booking and payment reference return the
    original payment with 200.
    """
    payment, created = await process_payment(
        db, registry, principal, payload.booking_id, payload.stripe_payment_id
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return payment
