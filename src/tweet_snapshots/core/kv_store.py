"""Durable key-value store used for per-user snapshots.

The pipeline only ever writes (``put``); nothing in this service reads a
snapshot back.  :class:`KeyValueStore` is the structural interface the
snapshot writer depends on, so tests can substitute an in-memory double.
:class:`RedisKeyValueStore` is the production implementation.

Typical usage::

    store = RedisKeyValueStore(redis_url=settings.redis_url)
    try:
        await store.put("daily/jack", "{}")
    finally:
        await store.aclose()
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Write side of a durable key-value store."""

    async def put(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``, replacing any existing value."""
        ...


class RedisKeyValueStore:
    """Redis-backed :class:`KeyValueStore`.

    Each :meth:`put` is a single ``SET``: the value at a key is always
    either the previous document or the new one in full.  No TTL is set,
    so a snapshot lives until the next run overwrites it.

    Args:
        redis_url: Redis connection URL.  Defaults to ``Settings.redis_url``.
        client: Pre-built ``redis.asyncio.Redis`` client.  Takes precedence
            over ``redis_url``; the caller keeps ownership of it.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._redis: Any | None = client
        self._owns_client = client is None

    async def _get_redis(self) -> Any:
        """Return (lazily initialised) async Redis client.

        Returns:
            A :class:`redis.asyncio.Redis` instance.
        """
        if self._redis is not None:
            return self._redis
        import redis.asyncio as aioredis  # noqa: PLC0415

        url = self._redis_url
        if url is None:
            from tweet_snapshots.config.settings import get_settings  # noqa: PLC0415

            url = get_settings().redis_url

        self._redis = aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )
        return self._redis

    async def put(self, key: str, value: str) -> None:
        """``SET key value``.  Connection and command errors propagate."""
        r = await self._get_redis()
        await r.set(key, value)
        logger.debug("kv_store: wrote %d chars to '%s'", len(value), key)

    async def aclose(self) -> None:
        """Close the client if this store created it."""
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
