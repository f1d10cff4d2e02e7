"""Redis connection management and the session revocation list."""

from __future__ import annotations

import redis.asyncio as redis

from app.core.config import get_settings

settings = get_settings()

REVOKED_KEY_PREFIX = "vinci:session:revoked:"

_redis_pool: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """Get or create the Redis connection."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def revoke_jwt(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a JWT ID to the revocation list until the token would have expired."""
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_expire_minutes * 60
    client = await get_redis()
    await client.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl_seconds, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    client = await get_redis()
    return await client.exists(f"{REVOKED_KEY_PREFIX}{jti}") > 0
