"""Batch dispatch loop: aggregate and store one snapshot per queued username.

Messages are handled strictly one after another.  Each message runs inside
its own error boundary: a listing failure, a store failure or a malformed
message is logged, recorded as a ``failed`` :class:`UserResult`, and the
loop moves on.  :func:`dispatch_batch` itself never raises for the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal, TypedDict

import structlog

from tweet_snapshots.pipeline.aggregator import SnapshotAggregator
from tweet_snapshots.pipeline.writer import SnapshotWriter

logger = logging.getLogger(__name__)


class QueueMessage(TypedDict):
    """Body of one queued work item."""

    username: str


@dataclass(frozen=True)
class UserResult:
    """Outcome of processing one queue message.

    Attributes:
        username: The username from the message (``None`` if the message
            carried none).
        status: ``"stored"`` if the snapshot was written, ``"failed"``
            otherwise.
        item_count: Number of URLs in the stored snapshot (0 on failure).
        key: Storage key written, or ``None`` on failure.
        error: The exception that failed the item, or ``None``.
    """

    username: str | None
    status: Literal["stored", "failed"]
    item_count: int = 0
    key: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status == "stored"


def _extract_username(message: Mapping[str, Any]) -> str:
    username = message.get("username") if isinstance(message, Mapping) else None
    if not isinstance(username, str):
        raise ValueError(f"queue message has no string 'username': {message!r}")
    return username


async def process_message(
    message: Mapping[str, Any],
    *,
    aggregator: SnapshotAggregator,
    writer: SnapshotWriter,
) -> UserResult:
    """Aggregate and store the snapshot for one message; never raises."""
    username: str | None = None
    try:
        username = _extract_username(message)
        with structlog.contextvars.bound_contextvars(username=username):
            logger.info("dispatch: processing user %s", username)
            snapshot = await aggregator.aggregate(username)
            key = await writer.store(username, snapshot)
    except Exception as exc:  # noqa: BLE001
        logger.error("dispatch: error processing %s: %s", username, exc)
        return UserResult(username=username, status="failed", error=exc)

    return UserResult(
        username=username,
        status="stored",
        item_count=len(snapshot),
        key=key,
    )


async def dispatch_batch(
    messages: Iterable[Mapping[str, Any]],
    *,
    aggregator: SnapshotAggregator,
    writer: SnapshotWriter,
) -> list[UserResult]:
    """Process every message of a batch sequentially.

    Args:
        messages: Queue message bodies, each ``{"username": str}``.
        aggregator: Builds the snapshot for a username.
        writer: Persists a snapshot.

    Returns:
        One :class:`UserResult` per message, in message order.
    """
    results: list[UserResult] = []
    for message in messages:
        results.append(
            await process_message(message, aggregator=aggregator, writer=writer)
        )

    failed = sum(1 for r in results if not r.ok)
    logger.info(
        "dispatch: batch done: %d processed, %d stored, %d failed",
        len(results),
        len(results) - failed,
        failed,
    )
    return results
