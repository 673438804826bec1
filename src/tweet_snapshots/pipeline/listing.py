"""Client for the listing service.

Two endpoints are consumed:

- ``GET <base>/users.json``: JSON array of usernames.
- ``GET <base>/<username>/with_replies.json``: JSON array of ``{"url": ...}``
  objects, newest first.

Unlike content fetches, listing failures are hard failures: a non-2xx
status, a transport error or a body of the wrong shape raises
:class:`~tweet_snapshots.core.exceptions.ListingFetchError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from tweet_snapshots.core.exceptions import ListingFetchError
from tweet_snapshots.pipeline.config import USER_LISTING_PATH, USERS_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentReference:
    """One fetchable resource listed for a user."""

    url: str


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    username: str | None,
    what: str,
) -> Any:
    """GET ``url`` and decode its JSON body, raising ``ListingFetchError`` on failure."""
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise ListingFetchError(
            f"Failed to fetch {what}: {exc}", username=username
        ) from exc

    if not response.is_success:
        raise ListingFetchError(
            f"Failed to fetch {what}: {response.status_code} {response.reason_phrase}",
            username=username,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise ListingFetchError(
            f"Malformed JSON in {what}: {exc}",
            username=username,
            status_code=response.status_code,
        ) from exc


def _parse_references(payload: Any, username: str) -> list[ContentReference]:
    """Validate a ``with_replies.json`` payload and convert it to references."""
    if not isinstance(payload, list):
        raise ListingFetchError(
            f"Malformed listing for {username}: expected a JSON array, "
            f"got {type(payload).__name__}",
            username=username,
        )
    references: list[ContentReference] = []
    for index, item in enumerate(payload):
        url = item.get("url") if isinstance(item, dict) else None
        if not isinstance(url, str):
            raise ListingFetchError(
                f"Malformed listing for {username}: item {index} has no string 'url'",
                username=username,
            )
        references.append(ContentReference(url=url))
    return references


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def fetch_content_references(
    username: str,
    *,
    client: httpx.AsyncClient,
    base_url: str,
) -> list[ContentReference]:
    """Return the content references listed for ``username``, in source order.

    The username is inserted into the path verbatim.

    Raises:
        ListingFetchError: On a non-2xx response, a transport error or a
            malformed body.  ``username`` is set on the exception.
    """
    url = base_url.rstrip("/") + USER_LISTING_PATH.format(username=username)
    payload = await _get_json(
        client, url, username=username, what=f"data for {username}"
    )
    references = _parse_references(payload, username)
    logger.info("listing: found %d URLs for %s", len(references), username)
    return references


async def fetch_usernames(
    *,
    client: httpx.AsyncClient,
    base_url: str,
) -> list[str]:
    """Return every username listed in ``<base>/users.json``.

    Raises:
        ListingFetchError: On a non-2xx response, a transport error or a
            body that is not a JSON array of strings.
    """
    url = base_url.rstrip("/") + USERS_PATH
    payload = await _get_json(client, url, username=None, what="users")
    if not isinstance(payload, list) or not all(isinstance(u, str) for u in payload):
        raise ListingFetchError("Malformed users list: expected a JSON array of strings")
    return payload
