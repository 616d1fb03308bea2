"""
Payment service: payment intents and payment confirmation.

The charge amount always comes from the stored booking, converted to minor
units exactly once here before it reaches the gateway.

Confirmation is atomic and idempotent:
  - the Payment row and the booking's confirmed/completed transition are
    committed in one transaction, so a crash cannot leave a recorded payment
    on a pending booking
  - payments.booking_id is unique; a replay with the same gateway reference
    returns the existing payment, and a racing duplicate that loses on the
    constraint is rolled back and resolved to the winner
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.config import get_settings
from eventzen.core.exceptions import ConflictError, GatewayError, InvalidBookingStateError
from eventzen.core.logging import get_logger
from eventzen.core.metrics import (
    record_booking_transition,
    record_payment_confirmation,
    record_payment_intent,
)
from eventzen.core.security import Principal
from eventzen.models.booking import (
    PAYMENT_COMPLETED,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    can_transition,
)
from eventzen.models.payment import Payment
from eventzen.realtime.connection_registry import ConnectionRegistry
from eventzen.services.booking_service import get_owned_booking
from eventzen.services.interfaces.payment_gateway import (
    PaymentGateway,
    PaymentIntentResult,
    to_minor_units,
)
from eventzen.services.notification_service import TYPE_PAYMENT_PROCESSED, notify_user

logger = get_logger(__name__)


async def create_payment_intent(
    db: AsyncSession,
    gateway: PaymentGateway,
    principal: Principal,
    booking_id: int,
) -> PaymentIntentResult:
    """
    Ask the gateway for a payment intent covering the booking's total.

    A gateway failure leaves the booking pending and untouched so the client
    can retry.
    """
    booking = await get_owned_booking(db, booking_id, principal)

    if booking.status == STATUS_CANCELLED:
        record_payment_intent("rejected")
        raise InvalidBookingStateError("Cannot pay for a cancelled booking")
    if booking.payment_status == PAYMENT_COMPLETED:
        record_payment_intent("rejected")
        raise InvalidBookingStateError("Booking is already paid")

    amount = to_minor_units(booking.total_amount)
    currency = get_settings().PAYMENT_CURRENCY
    metadata = {
        "bookingId": str(booking.id),
        "userId": str(booking.user_id),
    }

    try:
        intent = await gateway.create_payment_intent(amount, currency, metadata)
    except GatewayError:
        record_payment_intent("gateway_error")
        raise

    record_payment_intent("created")
    logger.info(
        "payment_intent_created",
        booking_id=booking.id,
        payment_intent_id=intent.id,
        amount=amount,
        currency=currency,
    )
    return intent


async def _get_payment_for_booking(db: AsyncSession, booking_id: int) -> Optional[Payment]:
    result = await db.execute(
        select(Payment).where(Payment.booking_id == booking_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _reference_in_use(db: AsyncSession, stripe_payment_id: str) -> bool:
    result = await db.execute(
        select(Payment.booking_id).where(Payment.stripe_payment_id == stripe_payment_id)
    )
    return result.scalar_one_or_none() is not None


def _replay(existing: Payment, stripe_payment_id: str) -> tuple[Payment, bool]:
    if existing.stripe_payment_id != stripe_payment_id:
        record_payment_confirmation("rejected")
        raise ConflictError("Booking has already been paid with a different payment")
    record_payment_confirmation("duplicate")
    logger.info(
        "payment_replayed",
        booking_id=existing.booking_id,
        payment_id=existing.id,
        stripe_payment_id=stripe_payment_id,
    )
    return existing, False


async def process_payment(
    db: AsyncSession,
    registry: ConnectionRegistry,
    principal: Principal,
    booking_id: int,
    stripe_payment_id: str,
) -> tuple[Payment, bool]:
    """
    Record a gateway-confirmed payment and confirm the booking.

    Returns (payment, created). `created` is False when the call replays a
    confirmation that was already recorded.
    """
    booking = await get_owned_booking(db, booking_id, principal)

    existing = await _get_payment_for_booking(db, booking.id)
    if existing is not None:
        return _replay(existing, stripe_payment_id)

    if not can_transition(booking.status, STATUS_CONFIRMED):
        record_payment_confirmation("rejected")
        if booking.status == STATUS_CANCELLED:
            raise InvalidBookingStateError("Cannot process payment for a cancelled booking")
        raise InvalidBookingStateError(f"Cannot process payment for a booking that is {booking.status}")

    if await _reference_in_use(db, stripe_payment_id):
        record_payment_confirmation("rejected")
        raise ConflictError("Payment reference has already been used")

    payment = Payment(
        user_id=booking.user_id,
        booking_id=booking.id,
        amount=booking.total_amount,
        status="completed",
        stripe_payment_id=stripe_payment_id,
    )
    db.add(payment)
    booking.payment_status = PAYMENT_COMPLETED
    booking.status = STATUS_CONFIRMED

    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent confirmation for the same booking
        await db.rollback()
        existing = await _get_payment_for_booking(db, booking_id)
        if existing is None:
            record_payment_confirmation("rejected")
            raise ConflictError("Payment reference has already been used")
        return _replay(existing, stripe_payment_id)

    await db.refresh(payment)
    await db.refresh(booking)

    record_payment_confirmation("completed")
    record_booking_transition(STATUS_CONFIRMED)
    logger.info(
        "payment_processed",
        booking_id=booking.id,
        payment_id=payment.id,
        amount=str(payment.amount),
        stripe_payment_id=stripe_payment_id,
    )

    await notify_user(
        db,
        registry,
        booking.user_id,
        f"Your payment for booking #{booking.id} has been processed successfully.",
        TYPE_PAYMENT_PROCESSED,
        entity_type="payment",
        entity_id=payment.id,
    )
    return payment, True
