"""Redis connection factory and healthcheck."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from oauth_gate.core.config import RedisSettings

logger = logging.getLogger(__name__)


def create_redis_client(settings: RedisSettings) -> redis.Redis:
    """Create a pooled client; connections are opened lazily by redis-py."""
    return redis.from_url(
        settings.url,
        password=settings.auth or None,
        decode_responses=True,
    )


async def redis_healthcheck(client: redis.Redis) -> None:
    """Raise ``RuntimeError`` when the redis server cannot be reached."""
    try:
        await client.ping()
    except RedisError as exc:
        logger.error("Redis health check failed: %s", exc)
        raise RuntimeError(f"Redis health check failed: err={exc}") from exc
    logger.debug("Redis health check passed")


__all__ = ["create_redis_client", "redis_healthcheck"]
