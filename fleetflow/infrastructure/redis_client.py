"""Redis async client factory."""

import redis.asyncio as aioredis

from fleetflow.config import settings


def create_redis(url: str | None = None) -> aioredis.Redis:
    """Return a Redis client with its own connection pool.

    The caller owns the client and must ``await client.aclose()`` on shutdown.
    """
    return aioredis.Redis.from_url(url or settings.redis_url, decode_responses=True)
