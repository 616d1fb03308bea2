"""
Booking endpoints: event bookings, venue bookings, status changes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.schemas.booking import (
    BookingResponse,
    BookingUpdate,
    EventBookingCreate,
    VenueBookingCreate,
)
from eventzen.services.booking_service import (
    book_event,
    book_venue,
    get_owned_booking,
    get_user_bookings,
    update_booking_status,
)
from eventzen.services.cache_service import invalidate_event_cache
from eventzen.core.security import Principal, get_principal, require_user
from eventzen.realtime.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["Bookings"])


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of the caller. Guests get an empty list."""
    return await get_user_bookings(db, principal)


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_event_booking(
    booking_data: EventBookingCreate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """
    Book tickets for an event.

    The total is computed from the event's stored price. Tickets are reserved
    with optimistic locking; a conflict that persists after 3 attempts
    returns 409.
    """
    booking = await book_event(
        db, registry, principal.user_id, booking_data.event_id, booking_data.ticket_count
    )
    # Event listings show available tickets
    await invalidate_event_cache()
    return booking


@router.post("/venue-bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_venue_booking(
    booking_data: VenueBookingCreate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """Book a venue by the hour. The total is the venue's hourly price times the duration."""
    return await book_venue(
        db,
        registry,
        principal.user_id,
        booking_data.venue_id,
        booking_data.booking_date,
        booking_data.booking_duration,
        booking_data.attendee_count,
    )


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
async def get_booking_endpoint(
    booking_id: int,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_owned_booking(db, booking_id, principal, allow_admin=True)


@router.put("/bookings/{booking_id}", response_model=BookingResponse)
async def update_booking_endpoint(
    booking_id: int,
    booking_data: BookingUpdate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Change a booking's status: `cancelled` by its owner, or `completed` after its date."""
    booking = await update_booking_status(db, booking_id, booking_data.status, principal)
    if booking.event_id is not None:
        await invalidate_event_cache()
    return booking
