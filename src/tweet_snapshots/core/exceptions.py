"""Application-wide exception hierarchy for Tweet Snapshots.

All custom exceptions subclass ``TweetSnapshotsError``, enabling
consistent error handling and structured logging across the worker.

Hierarchy::

    TweetSnapshotsError
    ├── ListingFetchError        (username, status_code)
    └── SnapshotStoreError       (key)

Content fetch failures are deliberately absent: a failed content URL is
reported as an empty :class:`~tweet_snapshots.pipeline.content_fetcher.FetchOutcome`
and never raised.
"""

from __future__ import annotations


class TweetSnapshotsError(Exception):
    """Base class for all Tweet Snapshots exceptions.

    Callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Listing exceptions
# ---------------------------------------------------------------------------


class ListingFetchError(TweetSnapshotsError):
    """Raised when a listing call (users list or per-user URL list) fails.

    Covers non-2xx responses, transport errors and malformed bodies.  For
    per-user listings this is fatal to that username only; the dispatch loop
    records it and moves on.

    Args:
        message: Human-readable description of the failure.
        username: Username whose URL list was requested, or ``None`` for the
            users list.
        status_code: HTTP status code, or ``None`` on transport / decode errors.
    """

    def __init__(
        self,
        message: str,
        username: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.username = username
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Storage exceptions
# ---------------------------------------------------------------------------


class SnapshotStoreError(TweetSnapshotsError):
    """Raised when writing a snapshot to the durable store fails.

    Args:
        message: Description of the write failure.
        key: Storage key that could not be written.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
