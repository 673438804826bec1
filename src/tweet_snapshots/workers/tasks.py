"""Celery tasks for Tweet Snapshots.

``enqueue_users``
    Beat target (see ``workers/beat_schedule.py``).  Fetches ``users.json``
    and sends one ``process_user_batch`` message per username.

``process_user_batch``
    Queue consumer.  Receives a batch of ``{"username": ...}`` messages and
    runs the dispatch loop over it: for each user, aggregate up to 25
    content URLs and store the snapshot under ``daily/<username>``.

Both tasks are synchronous Celery tasks that bridge to the async pipeline
via ``asyncio.run()``.  The async helpers live in ``workers._task_helpers``.

Error handling policy: neither task retries (``max_retries=0``) and neither
re-raises.  Per-user failures are contained by the dispatch loop; anything
escaping it (e.g. the HTTP client cannot be created) is logged at ERROR and
reported in the returned dict.  Redelivery after a worker crash is left to
the broker (``task_acks_late``).

Task names::

    tweet_snapshots.workers.tasks.enqueue_users
    tweet_snapshots.workers.tasks.process_user_batch
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog

from tweet_snapshots.pipeline.dispatch import QueueMessage
from tweet_snapshots.workers._task_helpers import run_batch, run_enqueue, summarize
from tweet_snapshots.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


def send_to_queue(message: QueueMessage) -> None:
    """Enqueue ``message`` as a single-message batch for ``process_user_batch``."""
    process_user_batch.delay([dict(message)])


# ---------------------------------------------------------------------------
# Task 1: enqueue_users
# ---------------------------------------------------------------------------


@celery_app.task(
    name="tweet_snapshots.workers.tasks.enqueue_users",
    max_retries=0,
)
def enqueue_users() -> dict[str, Any]:
    """Queue every user listed in ``users.json`` for snapshot processing.

    Returns:
        Dict with ``queued`` (number of messages sent), plus ``error`` if
        the run failed.
    """
    log = logger.bind(task="enqueue_users")
    log.info("enqueue_users: daily schedule triggered")

    try:
        queued = asyncio.run(run_enqueue(send_to_queue))
    except Exception as exc:  # noqa: BLE001
        log.error("enqueue_users: error in scheduled job", error=str(exc), exc_info=True)
        return {"queued": 0, "error": str(exc)}

    log.info("enqueue_users: complete", queued=queued)
    return {"queued": queued}


# ---------------------------------------------------------------------------
# Task 2: process_user_batch
# ---------------------------------------------------------------------------


@celery_app.task(
    name="tweet_snapshots.workers.tasks.process_user_batch",
    acks_late=True,
    max_retries=0,
)
def process_user_batch(messages: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate and store a snapshot for every message in ``messages``.

    Args:
        messages: Batch of queue message bodies, each ``{"username": str}``.

    Returns:
        Dict with ``processed``, ``stored``, ``failed`` and a ``failures``
        list of ``{username, error}``; ``error`` is added if the batch could
        not run at all.
    """
    _task_start = time.perf_counter()
    # A malformed payload (not a list) is reported below, not raised here.
    batch_size = len(messages) if isinstance(messages, list) else 0
    log = logger.bind(task="process_user_batch", batch_size=batch_size)
    log.info("process_user_batch: starting")

    try:
        results = asyncio.run(run_batch(messages))
    except Exception as exc:  # noqa: BLE001
        log.error("process_user_batch: batch aborted", error=str(exc), exc_info=True)
        return {
            "processed": 0,
            "stored": 0,
            "failed": batch_size,
            "failures": [],
            "error": str(exc),
        }

    summary = summarize(results)
    log.info(
        "process_user_batch: complete",
        stored=summary["stored"],
        failed=summary["failed"],
        elapsed_s=round(time.perf_counter() - _task_start, 2),
    )
    return summary
