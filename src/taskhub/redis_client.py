"""Shared Redis connection, used for rate-limit counters.

Initialized in the app lifespan. Code that finds it uninitialized (tests,
deployments without Redis) simply goes without rate limiting.
"""

from typing import Optional

import redis.asyncio as aioredis

from taskhub.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Connect and verify the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
