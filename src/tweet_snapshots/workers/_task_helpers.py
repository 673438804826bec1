"""Internal async helpers for the Celery tasks and the manual trigger.

The Celery tasks in ``workers/tasks.py`` are synchronous and bridge into
these coroutines via ``asyncio.run()``; the FastAPI trigger route awaits
:func:`run_enqueue` directly.  Keeping them here makes them unit-testable
without importing the Celery application.

Every helper opens its own HTTP client and Redis connection and closes them
before returning, because each ``asyncio.run()`` call gets a fresh event
loop that must not inherit connections from a previous one.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import httpx

from tweet_snapshots.config.settings import Settings, get_settings
from tweet_snapshots.core.kv_store import KeyValueStore, RedisKeyValueStore
from tweet_snapshots.pipeline.aggregator import SnapshotAggregator
from tweet_snapshots.pipeline.config import USER_AGENT
from tweet_snapshots.pipeline.dispatch import QueueMessage, UserResult, dispatch_batch
from tweet_snapshots.pipeline.enqueue import enqueue_all_users
from tweet_snapshots.pipeline.writer import SnapshotWriter


def build_http_client() -> httpx.AsyncClient:
    """Return the HTTP client shared by listing and content fetches.

    Redirects are followed; timeouts are httpx's defaults.
    """
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )


async def run_batch(
    messages: Iterable[Mapping[str, Any]],
    *,
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
) -> list[UserResult]:
    """Run the dispatch loop over one batch of queue messages.

    Args:
        messages: Queue message bodies.
        settings: Settings override; defaults to :func:`get_settings`.
        store: Store override; defaults to a :class:`RedisKeyValueStore`
            on ``settings.redis_url`` that is closed afterwards.

    Returns:
        One :class:`UserResult` per message.
    """
    settings = settings or get_settings()
    owned_store: RedisKeyValueStore | None = None
    if store is None:
        owned_store = RedisKeyValueStore(redis_url=settings.redis_url)
        store = owned_store

    try:
        async with build_http_client() as client:
            aggregator = SnapshotAggregator(client, base_url=settings.listing_base_url)
            writer = SnapshotWriter(store)
            return await dispatch_batch(messages, aggregator=aggregator, writer=writer)
    finally:
        if owned_store is not None:
            await owned_store.aclose()


async def run_enqueue(
    send: Callable[[QueueMessage], object],
    *,
    settings: Settings | None = None,
) -> int:
    """Fetch the users list and enqueue one message per user via ``send``.

    Returns:
        Number of users queued.

    Raises:
        ListingFetchError: If the users list cannot be retrieved.
    """
    settings = settings or get_settings()
    async with build_http_client() as client:
        return await enqueue_all_users(
            client=client,
            base_url=settings.listing_base_url,
            send=send,
        )


def summarize(results: list[UserResult]) -> dict[str, Any]:
    """Return the JSON-serializable task result for a processed batch."""
    failed = [r for r in results if not r.ok]
    return {
        "processed": len(results),
        "stored": len(results) - len(failed),
        "failed": len(failed),
        "failures": [
            {"username": r.username, "error": str(r.error)} for r in failed
        ],
    }
