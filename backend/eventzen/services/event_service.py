"""
Event service handling CRUD operations.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from eventzen.core.logging import get_logger
from eventzen.core.security import Principal
from eventzen.models.booking import Booking
from eventzen.models.event import Event
from eventzen.schemas.event import EventCreate, EventUpdate
from eventzen.services.venue_service import get_venue

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as some drivers return them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_event(db: AsyncSession, event_data: EventCreate, creator_id: int) -> Event:
    """Create a new event with every ticket available."""
    if as_utc(event_data.date) <= datetime.now(timezone.utc):
        raise ValidationError("Event date must be in the future")
    if event_data.end_date and as_utc(event_data.end_date) < as_utc(event_data.date):
        raise ValidationError("Event end date must not be before its start date")

    # The venue must exist before anything is scheduled there
    await get_venue(db, event_data.venue_id)

    event = Event(
        **event_data.model_dump(),
        available_tickets=event_data.capacity,
        created_by=creator_id,
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)

    logger.info("event_created", event_id=event.id, name=event.name, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError("Event not found")
    return event


async def list_events(
    db: AsyncSession,
    limit: int = 10,
    offset: int = 0,
    category: Optional[str] = None,
) -> list[Event]:
    """List events by date, optionally filtered by category."""
    query = select(Event)
    if category:
        query = query.where(Event.category == category)

    result = await db.execute(query.order_by(Event.date.asc()).offset(offset).limit(limit))
    return list(result.scalars().all())


def _ensure_can_manage(event: Event, principal: Principal) -> None:
    if event.created_by != principal.user_id and not principal.is_admin:
        raise ForbiddenError("Forbidden")


async def _resize(db: AsyncSession, event_id: int, new_capacity: int) -> Event:
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.capacity - Event.available_tickets <= new_capacity,
        )
        .values(
            available_tickets=Event.available_tickets + (new_capacity - Event.capacity),
            capacity=new_capacity,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )

    fresh = (
        await db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
    ).scalar_one()

    if result.rowcount == 0:
        sold = fresh.tickets_sold
        await db.rollback()
        raise ValidationError(f"Capacity cannot be lower than tickets already sold ({sold})")
    return fresh


async def update_event(
    db: AsyncSession,
    event_id: int,
    event_data: EventUpdate,
    principal: Principal,
) -> Event:
    """
    Update an event. Only its creator or an admin may do so.

    A capacity change shifts available_tickets by the same amount; capacity
    may not drop below the tickets already sold. The shift is applied in the
    database relative to the current row, so bookings made since the event
    was loaded are kept.
    """
    event = await get_event(db, event_id)
    _ensure_can_manage(event, principal)

    changes = event_data.model_dump(exclude_unset=True)

    if "venue_id" in changes and changes["venue_id"] != event.venue_id:
        await get_venue(db, changes["venue_id"])

    if "capacity" in changes:
        event = await _resize(db, event_id, changes.pop("capacity"))

    for field, value in changes.items():
        setattr(event, field, value)

    await db.commit()
    await db.refresh(event)

    logger.info("event_updated", event_id=event.id, fields=sorted(event_data.model_fields_set))
    return event


async def delete_event(db: AsyncSession, event_id: int, principal: Principal) -> None:
    """Delete an event. Refused while bookings reference it."""
    event = await get_event(db, event_id)
    _ensure_can_manage(event, principal)

    booking_count = (
        await db.execute(select(func.count()).select_from(Booking).where(Booking.event_id == event_id))
    ).scalar()
    if booking_count:
        raise ConflictError("Cannot delete an event that has bookings")

    await db.delete(event)
    await db.commit()
    logger.info("event_deleted", event_id=event_id)
