"""Manual trigger route.

``GET /``
    Liveness text for anyone.  With ``?secret=<trigger_secret>`` the
    request first runs the enqueue step (the same work the daily Beat entry
    does) and answers with an acknowledgement that processing was
    *initiated*; per-user results only ever appear in the worker logs.

The secret is the only authentication this service has.  An empty
``trigger_secret`` setting disables the trigger.
"""

from __future__ import annotations

import secrets

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from tweet_snapshots.config.settings import get_settings
from tweet_snapshots.workers._task_helpers import run_enqueue

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["trigger"])

TRIGGERED_TEXT = "Running schedule now. tail it!"
IDLE_TEXT = "Worker is running. Check logs for schedule and queue processing."


def _secret_matches(provided: str | None, expected: str) -> bool:
    """Constant-time comparison; an unset or empty secret never matches."""
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


@router.get("/", response_class=PlainTextResponse)
async def trigger(
    secret: str | None = Query(default=None),
) -> PlainTextResponse:
    """Enqueue all users when ``secret`` matches, otherwise report liveness.

    Enqueue failures are logged and do not change the response: the caller
    is told the run was started, not that it succeeded.
    """
    settings = get_settings()
    if not _secret_matches(secret, settings.trigger_secret):
        return PlainTextResponse(IDLE_TEXT)

    from tweet_snapshots.workers.tasks import send_to_queue  # noqa: PLC0415

    logger.info("manual_trigger: enqueueing all users")
    try:
        queued = await run_enqueue(send_to_queue, settings=settings)
    except Exception as exc:  # noqa: BLE001
        logger.error("manual_trigger: error in scheduled job", error=str(exc), exc_info=True)
    else:
        logger.info("manual_trigger: complete", queued=queued)
    return PlainTextResponse(TRIGGERED_TEXT)
