"""
Venue endpoints. Reads are public; writes are admin only.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.schemas.venue import VenueCreate, VenueUpdate, VenueResponse
from eventzen.services.venue_service import (
    create_venue,
    delete_venue,
    get_venue,
    list_venues,
    update_venue,
)
from eventzen.services.cache_service import get_cached_venues, set_cached_venues, invalidate_venue_cache
from eventzen.core.security import Principal, require_admin

router = APIRouter(prefix="/venues", tags=["Venues"])


@router.get("", response_model=list[VenueResponse])
async def list_venues_endpoint(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List venues by id. Cached in Redis until the next venue write."""
    cached = await get_cached_venues(limit, offset)
    if cached is not None:
        return cached

    venues = await list_venues(db, limit, offset)
    response_data = [
        VenueResponse.model_validate(v).model_dump(mode="json", by_alias=True) for v in venues
    ]
    await set_cached_venues(limit, offset, response_data)
    return response_data


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue_endpoint(venue_id: int, db: AsyncSession = Depends(get_db)):
    return await get_venue(db, venue_id)


@router.post("", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue_endpoint(
    venue_data: VenueCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    venue = await create_venue(db, venue_data)
    await invalidate_venue_cache()
    return venue


@router.put("/{venue_id}", response_model=VenueResponse)
async def update_venue_endpoint(
    venue_id: int,
    venue_data: VenueUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    venue = await update_venue(db, venue_id, venue_data)
    await invalidate_venue_cache()
    return venue


@router.delete("/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_venue_endpoint(
    venue_id: int,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a venue. Returns 400 while events are scheduled there."""
    await delete_venue(db, venue_id)
    await invalidate_venue_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
