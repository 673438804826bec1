"""``GET /api/health``: can this deployment actually produce snapshots?

Two dependencies decide that: the Redis instance the snapshots are written
to, and at least one Celery worker consuming the ``snapshots`` queue.  The
response also echoes the configured daily run time so a misconfigured Beat
schedule is visible without shell access.

The route always answers HTTP 200; ``status`` is ``"ok"`` or ``"degraded"``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

import redis.asyncio as aioredis
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from tweet_snapshots.config.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

SNAPSHOT_QUEUE = "snapshots"


async def _check_redis() -> str:
    """``PING`` the snapshot store; ``"ok"`` or ``"error"``."""
    client: aioredis.Redis | None = None
    try:
        client = aioredis.from_url(
            get_settings().redis_url,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        await client.ping()
    except Exception:
        logger.exception("health: snapshot store unreachable")
        return "error"
    finally:
        if client is not None:
            await client.aclose()
    return "ok"


def _consumes_snapshot_queue(active_queues: dict[str, list[dict]] | None) -> bool:
    """True if any worker in an ``inspect().active_queues()`` reply listens on ``snapshots``."""
    return any(
        queue.get("name") == SNAPSHOT_QUEUE
        for queues in (active_queues or {}).values()
        for queue in queues
    )


async def _check_celery_workers() -> str:
    """Look for a worker consuming the ``snapshots`` queue.

    Returns:
        ``"ok"``; ``"no_workers"`` when no worker (or none on that queue)
        answers, in which case enqueued users wait until one starts; or
        ``"error"`` when the broker cannot be asked at all.
    """
    try:
        from tweet_snapshots.workers.celery_app import celery_app  # noqa: PLC0415

        inspect = celery_app.control.inspect(timeout=2.0)
        loop = asyncio.get_running_loop()
        active_queues = await loop.run_in_executor(None, inspect.active_queues)
    except Exception:
        logger.exception("health: celery inspect failed")
        return "error"
    return "ok" if _consumes_snapshot_queue(active_queues) else "no_workers"


@router.get("/api/health")
async def system_health() -> JSONResponse:
    """Report store and worker reachability plus the daily schedule.

    Returns:
        JSON with ``status``, ``version``, ``redis``, ``celery``,
        ``daily_run_utc`` (``"HH:MM"``) and ``timestamp``.
    """
    settings = get_settings()
    redis_status, celery_status = await asyncio.gather(
        _check_redis(),
        _check_celery_workers(),
    )

    payload = {
        "status": "ok" if redis_status == celery_status == "ok" else "degraded",
        "version": "0.1.0",
        "redis": redis_status,
        "celery": celery_status,
        "daily_run_utc": (
            f"{settings.daily_schedule_hour:02d}:{settings.daily_schedule_minute:02d}"
        ),
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if payload["status"] != "ok":
        logger.warning("health: degraded (redis=%s, celery=%s)", redis_status, celery_status)
    return JSONResponse(payload)
