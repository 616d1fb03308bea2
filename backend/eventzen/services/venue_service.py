"""
Venue service handling CRUD operations.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.core.exceptions import NotFoundError, ValidationError
from eventzen.core.logging import get_logger
from eventzen.models.event import Event
from eventzen.models.venue import Venue
from eventzen.schemas.venue import VenueCreate, VenueUpdate

logger = get_logger(__name__)


async def create_venue(db: AsyncSession, venue_data: VenueCreate) -> Venue:
    venue = Venue(**venue_data.model_dump())
    db.add(venue)
    await db.commit()
    await db.refresh(venue)

    logger.info("venue_created", venue_id=venue.id, name=venue.name, capacity=venue.capacity)
    return venue


async def get_venue(db: AsyncSession, venue_id: int) -> Venue:
    result = await db.execute(select(Venue).where(Venue.id == venue_id))
    venue = result.scalar_one_or_none()

    if not venue:
        raise NotFoundError("Venue not found")
    return venue


async def list_venues(db: AsyncSession, limit: int = 10, offset: int = 0) -> list[Venue]:
    result = await db.execute(select(Venue).order_by(Venue.id.asc()).offset(offset).limit(limit))
    return list(result.scalars().all())


async def update_venue(db: AsyncSession, venue_id: int, venue_data: VenueUpdate) -> Venue:
    venue = await get_venue(db, venue_id)

    for field, value in venue_data.model_dump(exclude_unset=True).items():
        setattr(venue, field, value)
    await db.commit()
    await db.refresh(venue)

    logger.info("venue_updated", venue_id=venue.id)
    return venue


async def delete_venue(db: AsyncSession, venue_id: int) -> None:
    """Delete a venue. Refused while any event is scheduled there."""
    venue = await get_venue(db, venue_id)

    event_count = (
        await db.execute(select(func.count()).select_from(Event).where(Event.venue_id == venue_id))
    ).scalar()
    if event_count:
        raise ValidationError(
            "Cannot delete venue with associated events. Remove all events first."
        )

    await db.delete(venue)
    await db.commit()
    logger.info("venue_deleted", venue_id=venue_id)
