"""
Redis cache for catalog listings.

Two listing families are cached, each under its own key prefix:

  events:list:limit=..&offset=..&category=..   GET /api/events
  venues:list:limit=..&offset=..               GET /api/venues

A family is invalidated as a whole (SCAN over its prefix, then DELETE):
events on any event write or any booking change that moves
available_tickets, venues on any venue write. REDIS_CACHE_TTL bounds
staleness if an invalidation is missed.

Single events and venues are read straight from the database because
booking needs live ticket counts.

Redis is optional. When it is disabled or unreachable every lookup is a
miss and every write is a no-op; failures are logged, never raised.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from eventzen.core.config import get_settings
from eventzen.core.logging import get_logger
from eventzen.core.metrics import record_cache_operation

logger = get_logger(__name__)

EVENT_LIST_PREFIX = "events:list:"
VENUE_LIST_PREFIX = "venues:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, connected on first use. None when Redis is off or down."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def make_event_list_key(limit: int, offset: int, category: Optional[str]) -> str:
    return f"{EVENT_LIST_PREFIX}limit={limit}&offset={offset}&category={category or '*'}"


def make_venue_list_key(limit: int, offset: int) -> str:
    return f"{VENUE_LIST_PREFIX}limit={limit}&offset={offset}"


async def _read(key: str) -> Optional[Any]:
    client = await get_redis()
    if client is None:
        return None
    try:
        raw = await client.get(key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", "hit" if raw is not None else "miss")
    return json.loads(raw) if raw else None


async def _write(key: str, data: Any) -> None:
    client = await get_redis()
    if client is None:
        return
    ttl = get_settings().REDIS_CACHE_TTL
    try:
        await client.setex(key, ttl, json.dumps(data, default=str))
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))
        return
    record_cache_operation("set", "stored")
    logger.debug("cache_set", key=key, ttl=ttl)


async def _drop_prefix(prefix: str) -> None:
    client = await get_redis()
    if client is None:
        return
    try:
        keys = [key async for key in client.scan_iter(match=f"{prefix}*", count=100)]
        if keys:
            await client.delete(*keys)
    except Exception as e:
        logger.error("cache_invalidation_error", prefix=prefix, error=str(e))
        return
    logger.info("cache_invalidated", prefix=prefix, keys_deleted=len(keys))


async def get_cached_events(limit: int, offset: int, category: Optional[str]) -> Optional[list]:
    return await _read(make_event_list_key(limit, offset, category))


async def set_cached_events(limit: int, offset: int, category: Optional[str], data: list) -> None:
    await _write(make_event_list_key(limit, offset, category), data)


async def invalidate_event_cache() -> None:
    await _drop_prefix(EVENT_LIST_PREFIX)


async def get_cached_venues(limit: int, offset: int) -> Optional[list]:
    return await _read(make_venue_list_key(limit, offset))


async def set_cached_venues(limit: int, offset: int, data: list) -> None:
    await _write(make_venue_list_key(limit, offset), data)


async def invalidate_venue_cache() -> None:
    await _drop_prefix(VENUE_LIST_PREFIX)


async def get_cache_stats() -> dict:
    """Hit/miss counters reported by /health."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except Exception as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
