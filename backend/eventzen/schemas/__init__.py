from eventzen.schemas.common import APIModel, MessageResponse
from eventzen.schemas.event import EventCreate, EventUpdate, EventResponse
from eventzen.schemas.venue import VenueCreate, VenueUpdate, VenueResponse
from eventzen.schemas.booking import (
    EventBookingCreate, VenueBookingCreate, BookingUpdate, BookingResponse,
)
from eventzen.schemas.payment import (
    PaymentIntentCreate, PaymentIntentResponse, PaymentProcess, PaymentResponse,
)
from eventzen.schemas.notification import NotificationResponse

__all__ = [
    "APIModel", "MessageResponse",
    "EventCreate", "EventUpdate", "EventResponse",
    "VenueCreate", "VenueUpdate", "VenueResponse",
    "EventBookingCreate", "VenueBookingCreate", "BookingUpdate", "BookingResponse",
    "PaymentIntentCreate", "PaymentIntentResponse", "PaymentProcess", "PaymentResponse",
    "NotificationResponse",
]
