"""
Pydantic schemas for payment request/response validation.
"""

from datetime import datetime
from pydantic import Field

from eventzen.schemas.common import APIModel, Money


class PaymentIntentCreate(APIModel):
    booking_id: int


class PaymentIntentResponse(APIModel):
    client_secret: str


class PaymentProcess(APIModel):
    booking_id: int
    stripe_payment_id: str = Field(..., min_length=1, max_length=255)


class PaymentResponse(APIModel):
    id: int
    user_id: int
    booking_id: int
    amount: Money
    status: str
    stripe_payment_id: str
    created_at: datetime
