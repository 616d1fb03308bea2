"""
Booking service: creation, lookup and status changes.

PRICING
=======
total_amount is always computed here from the stored price of the booked
event or venue. Nothing the client sends can influence it:

  event booking:  event.price * ticket_count
  venue booking:  venue.price * booking_duration   (price is per hour)

CAPACITY: Optimistic Locking with Retry
=======================================
Two users try to buy the last ticket at the same time. Both read
available_tickets=1; without a guard both would succeed.

Event bookings therefore reserve tickets with a conditional write:

  1. Read the event's current version
  2. UPDATE events SET available_tickets = available_tickets - N, version = version + 1
     WHERE id = :event_id AND version = :current_version AND available_tickets >= N
  3. If rows_affected == 0, someone else modified the row -> retry

The reservation and the booking row are committed together. The CHECK
constraint available_tickets >= 0 is the final safety net.

Venue bookings are checked against the venue's capacity (attendee count);
they do not hold inventory.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    InvalidBookingStateError,
    NotFoundError,
    ValidationError,
)
from eventzen.core.logging import get_logger
from eventzen.core.metrics import booking_retries, record_booking_attempt, record_booking_transition
from eventzen.core.security import Principal
from eventzen.models.booking import (
    Booking,
    PAYMENT_PENDING,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING,
    can_transition,
)
from eventzen.models.event import Event
from eventzen.models.venue import Venue
from eventzen.realtime.connection_registry import ConnectionRegistry
from eventzen.schemas.booking import MAX_VENUE_BOOKING_HOURS
from eventzen.services.event_service import as_utc
from eventzen.services.notification_service import TYPE_BOOKING_CREATED, notify_user

logger = get_logger(__name__)

MAX_RETRY_ATTEMPTS = 3


async def book_event(
    db: AsyncSession,
    registry: ConnectionRegistry,
    user_id: int,
    event_id: int,
    ticket_count: int = 1,
) -> Booking:
    """
    Book tickets for an event with optimistic locking.
    Retries up to MAX_RETRY_ATTEMPTS on version conflicts.
    """
    if ticket_count is None:
        ticket_count = 1
    if isinstance(ticket_count, bool) or not isinstance(ticket_count, int) or ticket_count < 1:
        record_booking_attempt("event", "invalid")
        raise ValidationError("ticketCount must be a positive integer")

    for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
        # Step 1: Read current event state, bypassing whatever the session holds
        result = await db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()

        if not event:
            record_booking_attempt("event", "not_found")
            raise NotFoundError("Event not found")

        if event.available_tickets < ticket_count:
            record_booking_attempt("event", "conflict")
            logger.warning(
                "booking_failed_no_tickets",
                event_id=event_id,
                requested=ticket_count,
                available=event.available_tickets,
            )
            raise CapacityExceededError(
                f"Not enough tickets. Requested: {ticket_count}, Available: {event.available_tickets}"
            )

        # Step 2: Optimistic lock - update only if version matches
        current_version = event.version
        update_result = await db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                Event.version == current_version,
                Event.available_tickets >= ticket_count,
            )
            .values(
                available_tickets=Event.available_tickets - ticket_count,
                version=Event.version + 1,
            )
        )

        if update_result.rowcount == 0:
            booking_retries.inc()
            logger.info(
                "booking_retry",
                event_id=event_id,
                attempt=attempt,
                reason="version_conflict",
            )
            await db.rollback()
            if attempt == MAX_RETRY_ATTEMPTS:
                record_booking_attempt("event", "conflict")
                raise ConflictError("Booking failed due to high demand. Please try again.")
            continue

        # Step 3: Create booking record in the same transaction as the reservation
        booking = Booking(
            user_id=user_id,
            event_id=event.id,
            venue_id=None,
            ticket_count=ticket_count,
            total_amount=event.price * ticket_count,
            status=STATUS_PENDING,
            payment_status=PAYMENT_PENDING,
        )
        db.add(booking)
        await db.commit()
        await db.refresh(booking)

        record_booking_attempt("event", "success")
        logger.info(
            "booking_created",
            booking_id=booking.id,
            user_id=user_id,
            event_id=event_id,
            tickets=ticket_count,
            total_amount=str(booking.total_amount),
            attempt=attempt,
        )

        await notify_user(
            db,
            registry,
            user_id,
            f"Your booking for {event.name} has been created.",
            TYPE_BOOKING_CREATED,
            entity_type="booking",
            entity_id=booking.id,
        )
        return booking

    # Should not reach here, but just in case
    raise ConflictError("Booking failed unexpectedly")


async def book_venue(
    db: AsyncSession,
    registry: ConnectionRegistry,
    user_id: int,
    venue_id: int,
    booking_date: datetime,
    booking_duration: int,
    attendee_count: int,
) -> Booking:
    """Book a venue for `booking_duration` hours starting at `booking_date`."""
    result = await db.execute(select(Venue).where(Venue.id == venue_id))
    venue = result.scalar_one_or_none()
    if not venue:
        record_booking_attempt("venue", "not_found")
        raise NotFoundError("Venue not found")

    if not 1 <= booking_duration <= MAX_VENUE_BOOKING_HOURS:
        record_booking_attempt("venue", "invalid")
        raise ValidationError(f"bookingDuration must be between 1 and {MAX_VENUE_BOOKING_HOURS} hours")
    if attendee_count < 1:
        record_booking_attempt("venue", "invalid")
        raise ValidationError("attendeeCount must be a positive integer")
    if attendee_count > venue.capacity:
        record_booking_attempt("venue", "conflict")
        raise CapacityExceededError(
            f"Venue capacity is {venue.capacity}, requested {attendee_count} attendees"
        )
    if as_utc(booking_date) <= datetime.now(timezone.utc):
        record_booking_attempt("venue", "invalid")
        raise ValidationError("bookingDate must be in the future")

    booking = Booking(
        user_id=user_id,
        event_id=None,
        venue_id=venue.id,
        booking_date=booking_date,
        booking_duration=booking_duration,
        attendee_count=attendee_count,
        total_amount=venue.price * booking_duration,
        status=STATUS_PENDING,
        payment_status=PAYMENT_PENDING,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)

    record_booking_attempt("venue", "success")
    logger.info(
        "venue_booking_created",
        booking_id=booking.id,
        user_id=user_id,
        venue_id=venue_id,
        hours=booking_duration,
        total_amount=str(booking.total_amount),
    )

    await notify_user(
        db,
        registry,
        user_id,
        f"Your booking for {venue.name} on {booking_date:%Y-%m-%d} has been created.",
        TYPE_BOOKING_CREATED,
        entity_type="booking",
        entity_id=booking.id,
    )
    return booking


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


async def get_owned_booking(
    db: AsyncSession,
    booking_id: int,
    principal: Principal,
    allow_admin: bool = False,
) -> Booking:
    """Fetch a booking the caller owns. 404 if missing, 403 if someone else's."""
    booking = await get_booking(db, booking_id)
    if booking.user_id != principal.user_id and not (allow_admin and principal.is_admin):
        raise ForbiddenError("Forbidden")
    return booking


async def get_user_bookings(db: AsyncSession, principal: Principal) -> list[Booking]:
    """Bookings of the caller, newest first. A guest has none."""
    if principal.is_guest:
        return []
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == principal.user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def _target_date(db: AsyncSession, booking: Booking) -> Optional[datetime]:
    """The date the booking is for: the event date or the venue booking date."""
    if booking.is_venue_booking:
        return booking.booking_date
    result = await db.execute(select(Event.date).where(Event.id == booking.event_id))
    return result.scalar_one_or_none()


async def cancel_booking(db: AsyncSession, booking_id: int, principal: Principal) -> Booking:
    """
    Cancel a pending or confirmed booking before its date.

    Payment status is left as is and no refund is issued. Tickets held by an
    event booking go back to the event.
    """
    booking = await get_owned_booking(db, booking_id, principal)

    if not can_transition(booking.status, STATUS_CANCELLED):
        raise InvalidBookingStateError(f"Cannot cancel a booking that is {booking.status}")

    target_date = await _target_date(db, booking)
    if target_date is not None and as_utc(target_date) <= datetime.now(timezone.utc):
        raise InvalidBookingStateError("Cannot cancel a booking whose date has passed")

    if booking.event_id is not None and booking.ticket_count:
        await db.execute(
            update(Event)
            .where(Event.id == booking.event_id)
            .values(
                available_tickets=Event.available_tickets + booking.ticket_count,
                version=Event.version + 1,
            )
        )

    booking.status = STATUS_CANCELLED
    await db.commit()
    await db.refresh(booking)

    record_booking_transition(STATUS_CANCELLED)
    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        user_id=booking.user_id,
        event_id=booking.event_id,
        venue_id=booking.venue_id,
        tickets_released=booking.ticket_count if booking.event_id else 0,
        payment_status=booking.payment_status,
    )
    return booking


async def complete_booking(db: AsyncSession, booking_id: int, principal: Principal) -> Booking:
    """Mark a confirmed booking completed once its date has passed."""
    booking = await get_owned_booking(db, booking_id, principal, allow_admin=True)

    if not can_transition(booking.status, STATUS_COMPLETED):
        raise InvalidBookingStateError(f"Cannot complete a booking that is {booking.status}")

    target_date = await _target_date(db, booking)
    if target_date is not None and as_utc(target_date) > datetime.now(timezone.utc):
        raise InvalidBookingStateError("Cannot complete a booking before its date")

    booking.status = STATUS_COMPLETED
    await db.commit()
    await db.refresh(booking)

    record_booking_transition(STATUS_COMPLETED)
    logger.info("booking_completed", booking_id=booking.id)
    return booking


async def update_booking_status(
    db: AsyncSession,
    booking_id: int,
    status: str,
    principal: Principal,
) -> Booking:
    if status == STATUS_CANCELLED:
        return await cancel_booking(db, booking_id, principal)
    if status == STATUS_COMPLETED:
        return await complete_booking(db, booking_id, principal)
    raise InvalidBookingStateError(f"Unsupported status change: {status}")
