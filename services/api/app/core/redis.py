"""Redis client for caching redirect lookups."""

import json
from typing import Any

import redis.asyncio as redis
import structlog

from app.core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None

# Cache key prefixes
LINK_CACHE_PREFIX = "link:"
LINK_CACHE_TTL = 3600  # 1 hour


async def get_redis() -> redis.Redis | None:
    """Get the Redis client instance, creating it if necessary.

    Returns None when no Redis URL is configured (cache disabled).
    """
    global _redis_client
    if _redis_client is None and settings.redis_url:
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Redis client initialized", url=settings.redis_url)
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")


def _link_cache_key(short_code: str) -> str:
    """Generate cache key for a link."""
    return f"{LINK_CACHE_PREFIX}{short_code}"


async def get_cached_link(short_code: str) -> dict[str, Any] | None:
    """Get a link from cache by short code.

    Returns None if not found in cache or the cache is unavailable.
    """
    client = await get_redis()
    if client is None:
        return None
    try:
        data = await client.get(_link_cache_key(short_code))
        if data:
            logger.debug("Cache hit", short_code=short_code)
            return json.loads(data)
        logger.debug("Cache miss", short_code=short_code)
        return None
    except redis.RedisError as e:
        logger.warning("Redis get error", short_code=short_code, error=str(e))
        return None


async def cache_link(
    short_code: str,
    link_data: dict[str, Any],
    ttl: int = LINK_CACHE_TTL,
) -> None:
    """Cache a link by short code.

    Args:
        short_code: The short code for the link
        link_data: Dictionary with link data (link_id, original_url, expires_at)
        ttl: Time to live in seconds (default 1 hour)
    """
    client = await get_redis()
    if client is None:
        return
    try:
        await client.setex(
            _link_cache_key(short_code),
            ttl,
            json.dumps(link_data),
        )
        logger.debug("Link cached", short_code=short_code, ttl=ttl)
    except redis.RedisError as e:
        logger.warning("Redis set error", short_code=short_code, error=str(e))


async def invalidate_link_cache(*short_codes: str) -> None:
    """Invalidate (delete) links from cache."""
    if not short_codes:
        return
    client = await get_redis()
    if client is None:
        return
    try:
        await client.delete(*(_link_cache_key(code) for code in short_codes))
        logger.debug("Cache invalidated", short_codes=list(short_codes))
    except redis.RedisError as e:
        logger.warning("Redis delete error", short_codes=list(short_codes), error=str(e))
