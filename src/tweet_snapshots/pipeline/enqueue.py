"""Enqueue every listed user for snapshot processing.

One unconditional listing fetch followed by one send per username, in
listing order.  No retry and no deduplication: a username listed twice is
queued twice.

``send`` is usually a blocking broker publish, so each call runs in a worker
thread; the event loop (the API's, when the manual trigger runs this) stays
free while messages go out one by one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import httpx

from tweet_snapshots.pipeline.dispatch import QueueMessage
from tweet_snapshots.pipeline.listing import fetch_usernames

logger = logging.getLogger(__name__)


async def enqueue_all_users(
    *,
    client: httpx.AsyncClient,
    base_url: str,
    send: Callable[[QueueMessage], object],
) -> int:
    """Fetch the users list and hand one message per user to ``send``.

    Args:
        client: HTTP client for the users listing call.
        base_url: Base URL of the listing service.
        send: Callable that enqueues a single message (e.g. a Celery
            ``delay`` wrapper).

    Returns:
        Number of messages sent.

    Raises:
        ListingFetchError: If the users list cannot be retrieved; nothing is
            sent in that case.
        Exception: Whatever ``send`` raises; users already sent stay queued.
    """
    usernames = await fetch_usernames(client=client, base_url=base_url)
    logger.info("enqueue: processing %d users", len(usernames))

    for username in usernames:
        await asyncio.to_thread(send, {"username": username})
        logger.info("enqueue: queued user %s", username)

    return len(usernames)
