"""Redis client used for phase locks."""

import redis.asyncio as redis
import structlog

from sales_challenge.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None, client: redis.Redis | None = None) -> None:
    """Connect the shared client and ping it.

    Args:
        url: Overrides ``REDIS_URL``
        client: Ready-made client (tests hand in a fakeredis instance)
    """
    global _redis

    if _redis is not None:
        return

    if client is None:
        client = redis.from_url(
            url or get_settings().redis_url,
            encoding="utf-8",
            decode_responses=True,
            health_check_interval=30,
        )

    await client.ping()
    _redis = client


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        try:
            await _redis.aclose()
        finally:
            _redis = None


def get_redis() -> redis.Redis:
    """Return the shared client. Raises RuntimeError before init_redis()."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
