"""
Pydantic schemas for booking-related request/response validation.

Create schemas deliberately carry no price, amount or status fields; any
such keys in the request body are ignored.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import Field

from eventzen.schemas.common import APIModel, Money

MAX_VENUE_BOOKING_HOURS = 12


class EventBookingCreate(APIModel):
    event_id: int
    ticket_count: int = Field(default=1, gt=0)


class VenueBookingCreate(APIModel):
    venue_id: int
    booking_date: datetime
    booking_duration: int = Field(..., ge=1, le=MAX_VENUE_BOOKING_HOURS)
    attendee_count: int = Field(..., gt=0)


class BookingUpdate(APIModel):
    status: Literal["cancelled", "completed"]


class BookingResponse(APIModel):
    id: int
    user_id: int
    event_id: Optional[int]
    venue_id: Optional[int]
    ticket_count: Optional[int]
    booking_date: Optional[datetime]
    booking_duration: Optional[int]
    attendee_count: Optional[int]
    total_amount: Money
    status: str
    payment_status: str
    created_at: datetime
