"""Shared Redis client for the captcha store and rate limiting.

Learn: The lifespan calls init_redis() at startup and close_redis() at
shutdown. Everything else goes through get_redis(), which raises
RuntimeError while no client exists (under tests, or when Redis was
unreachable at startup). Rate limiting treats that as "skip"; the
captcha store dependency turns it into a 500.

Replies are decoded to str, so captcha answers come back as text.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

_client: Optional[aioredis.Redis] = None


async def init_redis(url: str, timeout: float = 2.0) -> aioredis.Redis:
    """Connect and ping; raises RedisError if the server is unreachable."""
    global _client
    client = aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
        health_check_interval=30,
    )
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    _client = client
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> aioredis.Redis:
    if _client is None:
        raise RuntimeError("Redis is not connected")
    return _client


async def redis_status() -> str:
    """"connected", "disconnected" or "disabled" (no client)."""
    if _client is None:
        return "disabled"
    try:
        await _client.ping()
    except RedisError:
        return "disconnected"
    return "connected"
