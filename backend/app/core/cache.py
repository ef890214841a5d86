"""Key-value store client (Redis) shared by the revocation gate and catalog cache.

The core components only depend on the ``KeyValueStore`` protocol below,
which is a structural subset of ``redis.asyncio.Redis``. The real client is
created once in the application lifespan and stored on ``app.state``; tests
substitute an in-memory implementation.
"""

import asyncio
from typing import Any, Protocol

import redis.asyncio as redis
from fastapi import Request
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("cache")

# Errors that mean "the key-value store could not answer", as opposed to
# "the key is absent".
KV_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, asyncio.TimeoutError)


class KeyValueStore(Protocol):
    """Operations the application performs against the key-value store."""

    async def exists(self, *names: str) -> int: ...

    async def set(self, name: str, value: Any, ex: int | None = None) -> Any: ...

    async def delete(self, *names: str) -> int: ...

    async def hget(self, name: str, key: str) -> Any: ...

    async def hset(self, name: str, key: str, value: Any) -> int: ...

    async def expire(self, name: str, time: int, nx: bool = False) -> bool: ...

    async def ping(self) -> Any: ...

    def pipeline(self, transaction: bool = True) -> Any: ...


def create_redis_client(url: str | None = None) -> redis.Redis:
    """Create the shared async Redis client with bounded socket timeouts."""
    return redis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_connect_timeout,
        health_check_interval=30,
    )


async def check_cache_connection(store: KeyValueStore) -> bool:
    """Check if the key-value store is reachable."""
    try:
        await store.ping()
        return True
    except KV_ERRORS as e:
        logger.debug(f"Cache connection check failed: {e}")
        return False


def get_kv_store(request: Request) -> KeyValueStore:
    """Dependency returning the process-wide key-value store."""
    return request.app.state.kv_store
