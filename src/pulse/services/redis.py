"""Process-wide Redis client backing the shared report cache."""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


async def connect_redis(url: str) -> redis.Redis:
    """
    Open the shared client and verify the server answers.

    Report entries are stored as JSON text, so responses are decoded.
    Raises RuntimeError when the server cannot be reached at startup.
    """
    global _redis_client
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(url, decode_responses=True)
    try:
        await client.ping()  # type: ignore[misc]
    except RedisError as exc:
        await client.aclose()
        raise RuntimeError(f"Redis at {url} is unreachable: {exc}") from exc

    _redis_client = client
    return _redis_client


async def get_redis() -> redis.Redis:
    """Shared client; RuntimeError until connect_redis() has run."""
    if _redis_client is None:
        raise RuntimeError("Redis not connected. Call connect_redis() first.")
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.debug("Redis client closed")
