"""Redis store for caching catalog reference data.

Handles:
- JSON caching with TTL policies
- Invalidation of reference lists after admin writes

TTL policies:
- Attribute / brand / category lists: REFERENCE_CACHE_TTL (default 5 minutes)

Caching is best-effort: callers treat any Redis failure as a cache miss.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from variant_studio.settings import get_settings

# Key prefixes
PREFIX_REFERENCE = "catalog:ref:"

REFERENCE_KINDS = ("attributes", "brands", "categories")

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_delete(key: str) -> None:
    await _get_redis().delete(key)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Reference data cache
# ============================================================


def _reference_key(kind: str, locale: str) -> str:
    if kind not in REFERENCE_KINDS:
        raise ValueError(f"Unknown reference kind: {kind}")
    return f"{PREFIX_REFERENCE}{kind}:{locale}"


async def get_reference_cache(kind: str, locale: str) -> list[dict[str, Any]] | None:
    """Get a cached reference list ("attributes", "brands" or "categories")."""
    payload = await cache_get_json(_reference_key(kind, locale))
    if not payload or not isinstance(payload.get("data"), list):
        return None
    return payload["data"]


async def set_reference_cache(kind: str, locale: str, items: list[dict[str, Any]]) -> None:
    ttl = get_settings().reference_cache_ttl
    if ttl <= 0:
        return
    await cache_set_json(_reference_key(kind, locale), {"data": items}, ttl)


async def invalidate_reference_cache(kind: str, locale: str) -> None:
    await cache_delete(_reference_key(kind, locale))
