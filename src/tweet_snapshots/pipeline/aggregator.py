"""Bounded fan-out aggregation of one user's content into a snapshot.

For a username the aggregator:

1. **Lists** the user's content references (hard failure on error).
2. **Selects** at most ``MAX_PER_USER`` of them: the list is reversed
   first and then truncated, so for a newest-first list of 30 items
   ``[u0..u29]`` the selection is ``[u29, u28, ..., u5]``.
3. **Chunks** the selection into groups of ``FETCH_GROUP_SIZE``.
4. **Fetches** group by group.  A group's fetches run concurrently and the
   next group starts only after every fetch of the current one has
   finished.  Each fetch also holds a permit of an ``asyncio.Semaphore``
   sized to the group, so no more than ``FETCH_GROUP_SIZE`` requests are in
   flight even if the grouping changes.
5. **Folds** successful outcomes into a ``url -> content`` dict; failed
   URLs are left out.

Only step 1 can raise.  Collaborators are injected so tests can replace
the network with doubles.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import httpx

from tweet_snapshots.pipeline.chunking import chunk
from tweet_snapshots.pipeline.config import FETCH_GROUP_SIZE, MAX_PER_USER
from tweet_snapshots.pipeline.content_fetcher import FetchOutcome, fetch_content
from tweet_snapshots.pipeline.listing import ContentReference, fetch_content_references

logger = logging.getLogger(__name__)

#: ``url -> content`` for every successfully fetched URL of one user.
Snapshot = dict[str, str]

Fetcher = Callable[..., Awaitable[FetchOutcome]]
Lister = Callable[..., Awaitable[list[ContentReference]]]


def select_references(
    references: Sequence[ContentReference],
    limit: int = MAX_PER_USER,
) -> list[ContentReference]:
    """Reverse ``references`` and keep the first ``limit`` items."""
    return list(reversed(references))[:limit]


class SnapshotAggregator:
    """Builds the snapshot for one username at a time.

    Args:
        client: Shared :class:`httpx.AsyncClient` used for the listing call
            and every content fetch.
        base_url: Base URL of the listing service.
        fetcher: Coroutine function ``(url, *, client) -> FetchOutcome``.
        lister: Coroutine function
            ``(username, *, client, base_url) -> list[ContentReference]``.
        max_per_user: Selection cap (see :func:`select_references`).
        group_size: Fetch group size and concurrency ceiling.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        fetcher: Fetcher = fetch_content,
        lister: Lister = fetch_content_references,
        max_per_user: int = MAX_PER_USER,
        group_size: int = FETCH_GROUP_SIZE,
    ) -> None:
        if group_size <= 0:
            raise ValueError(f"group_size must be positive, got {group_size}")
        self._client = client
        self._base_url = base_url
        self._fetcher = fetcher
        self._lister = lister
        self._max_per_user = max_per_user
        self._group_size = group_size

    async def aggregate(self, username: str) -> Snapshot:
        """Return the snapshot for ``username``.

        Raises:
            ListingFetchError: If the user's URL list cannot be retrieved.
        """
        references = await self._lister(
            username, client=self._client, base_url=self._base_url
        )
        selected = select_references(references, self._max_per_user)

        snapshot: Snapshot = {}
        semaphore = asyncio.Semaphore(self._group_size)
        for group in chunk(selected, self._group_size):
            outcomes = await asyncio.gather(
                *(self._fetch_one(ref.url, semaphore) for ref in group)
            )
            for outcome in outcomes:
                if outcome.content is not None:
                    snapshot[outcome.url] = outcome.content

        logger.debug(
            "aggregator: %s: %d of %d selected URLs fetched",
            username,
            len(snapshot),
            len(selected),
        )
        return snapshot

    async def _fetch_one(self, url: str, semaphore: asyncio.Semaphore) -> FetchOutcome:
        """Fetch ``url`` while holding a concurrency permit.

        An exception escaping an injected fetcher is treated like any other
        fetch failure.
        """
        async with semaphore:
            try:
                return await self._fetcher(url, client=self._client)
            except Exception as exc:  # noqa: BLE001
                logger.error("aggregator: fetcher raised for %s: %s", url, exc)
                return FetchOutcome(url=url, content=None)
