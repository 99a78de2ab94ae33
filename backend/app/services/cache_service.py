"""
Redis cache for event listings.

Only the public listing is cached. Registration, ticketing and check-in
always read the database: a stale capacity or check-in state would let a
registrant or a ticket through twice.

Keys look like "events:list:p1:s20:upcoming"; creating an event unlinks every
key under the "events:list:" prefix, and the TTL covers anything else that
edits events. When Redis is down or disabled the cache fails open and every
call goes to the database.
"""

import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"

T = TypeVar("T")

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, connected lazily. None when Redis is disabled or unreachable."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("redis_unavailable", url=settings.REDIS_URL, error=str(e))
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


async def _guarded(op: str, call: Callable[[redis.Redis], Awaitable[T]], default: T) -> T:
    client = await get_redis()
    if client is None:
        return default
    try:
        return await call(client)
    except RedisError as e:
        logger.error("cache_error", op=op, error=str(e))
        return default


def event_list_key(page: int, page_size: int, upcoming_only: bool) -> str:
    scope = "upcoming" if upcoming_only else "all"
    return f"{EVENT_LIST_PREFIX}p{page}:s{page_size}:{scope}"


async def get_cached_events(page: int, page_size: int, upcoming_only: bool) -> Optional[dict[str, Any]]:
    key = event_list_key(page, page_size, upcoming_only)

    async def read(client: redis.Redis) -> Optional[dict[str, Any]]:
        raw = await client.get(key)
        record_cache_operation("get", hit=raw is not None)
        return json.loads(raw) if raw else None

    return await _guarded("get", read, None)


async def set_cached_events(page: int, page_size: int, upcoming_only: bool, data: dict[str, Any]) -> None:
    key = event_list_key(page, page_size, upcoming_only)

    async def write(client: redis.Redis) -> None:
        await client.set(key, json.dumps(data), ex=settings.EVENT_LIST_CACHE_TTL)
        record_cache_operation("set", hit=False)

    await _guarded("set", write, None)


async def invalidate_event_cache() -> None:
    async def unlink_all(client: redis.Redis) -> int:
        keys = [key async for key in client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100)]
        if keys:
            await client.unlink(*keys)
        return len(keys)

    deleted = await _guarded("invalidate", unlink_all, 0)
    logger.info("event_cache_invalidated", keys_deleted=deleted)


async def get_cache_stats() -> dict[str, Any]:
    """Hit/miss counters from Redis INFO, for the health endpoint."""

    async def stats(client: redis.Redis) -> dict[str, Any]:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }

    if not settings.REDIS_ENABLED:
        return {"status": "disabled"}
    return await _guarded("stats", stats, {"status": "unavailable"})
