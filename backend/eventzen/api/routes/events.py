"""
Event endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventzen.db.session import get_db
from eventzen.schemas.event import EventCreate, EventUpdate, EventResponse
from eventzen.services.event_service import (
    create_event,
    delete_event,
    get_event,
    list_events,
    update_event,
)
from eventzen.services.cache_service import get_cached_events, set_cached_events, invalidate_event_cache
from eventzen.core.security import Principal, require_user
from eventzen.core.logging import get_logger
from eventzen.realtime.connection_registry import ConnectionRegistry, get_connection_registry

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


def _serialize(event) -> dict:
    return EventResponse.model_validate(event).model_dump(mode="json", by_alias=True)


@router.get("", response_model=list[EventResponse])
async def list_events_endpoint(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List events ordered by date.
    Results are cached in Redis; the cache is invalidated on event writes and
    bookings.
    """
    cached = await get_cached_events(limit, offset, category)
    if cached is not None:
        logger.info("events_list_cache_hit", limit=limit, offset=offset, category=category)
        return cached

    events = await list_events(db, limit, offset, category)
    response_data = [_serialize(e) for e in events]
    await set_cached_events(limit, offset, category, response_data)
    return response_data


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (needs live ticket counts)."""
    return await get_event(db, event_id)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    event = await create_event(db, event_data, principal.user_id)
    await invalidate_event_cache()
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """Update an event (creator or admin) and broadcast the change to connected clients."""
    event = await update_event(db, event_id, event_data, principal)
    await invalidate_event_cache()
    await registry.broadcast_event_update(event.id, _serialize(event))
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    principal: Principal = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    await delete_event(db, event_id, principal)
    await invalidate_event_cache()
    await registry.broadcast_event_update(event_id, {"deleted": True})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
