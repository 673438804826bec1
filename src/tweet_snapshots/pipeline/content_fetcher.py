"""Async content fetcher for a single URL.

Uses ``httpx`` for all HTTP requests.  Every failure mode (error status,
transport error, undecodable body) is folded into a :class:`FetchOutcome`
whose ``content`` is ``None``; :func:`fetch_content` never raises, so one
broken URL cannot abort the aggregation it is part of.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchOutcome:
    """Result of a single content fetch attempt.

    Attributes:
        url: The URL that was requested, exactly as listed.
        content: Full response body as text, or ``None`` if the fetch failed
            for any reason.  Failure causes are not distinguished.
    """

    url: str
    content: str | None

    @property
    def ok(self) -> bool:
        return self.content is not None


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def fetch_content(url: str, *, client: httpx.AsyncClient) -> FetchOutcome:
    """Fetch the body of ``url`` as text.

    Performs exactly one ``GET`` through ``client``; no retries and no
    per-request timeout override (the client's defaults apply).

    Args:
        url: Content URL to fetch.
        client: Shared :class:`httpx.AsyncClient` instance.

    Returns:
        A :class:`FetchOutcome`; ``content`` is ``None`` on a non-2xx status
        or on any exception.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        logger.error("fetcher: error fetching %s: %s", url, exc)
        return FetchOutcome(url=url, content=None)
    except Exception as exc:  # noqa: BLE001
        logger.error("fetcher: unexpected error fetching %s: %s", url, exc)
        return FetchOutcome(url=url, content=None)

    if not response.is_success:
        logger.warning("fetcher: failed to fetch %s: %d", url, response.status_code)
        return FetchOutcome(url=url, content=None)

    try:
        content = response.text
    except Exception as exc:  # noqa: BLE001
        logger.error("fetcher: decode error for %s: %s", url, exc)
        return FetchOutcome(url=url, content=None)

    return FetchOutcome(url=url, content=content)
