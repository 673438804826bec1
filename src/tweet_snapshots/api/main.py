"""ASGI entry point: the manual trigger and the health check.

The HTTP surface is deliberately small; the daily run is driven by Celery
Beat and this app only lets an operator start it early and check that the
store and workers are reachable.

Usage::

    uvicorn tweet_snapshots.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response

from tweet_snapshots.config.settings import get_settings
from tweet_snapshots.core.logging_config import configure_logging, request_id_var

configure_logging("INFO")

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def _log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind a request ID for the request's log lines and log its outcome.

    An incoming ``X-Request-ID`` is reused so a caller's ID can be followed
    into the enqueue logs.  Only the path is bound: the query string may
    hold the trigger secret.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request_id_var.set(request_id)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed")
        raise

    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
    log = logger.warning if response.status_code >= 400 else logger.info
    log("request_complete", status_code=response.status_code, elapsed_ms=elapsed_ms)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
    settings = get_settings()
    logger.info(
        "api_started",
        listing_base_url=settings.listing_base_url,
        trigger_enabled=bool(settings.trigger_secret),
        daily_run_utc=f"{settings.daily_schedule_hour:02d}:{settings.daily_schedule_minute:02d}",
    )
    yield


def create_app() -> FastAPI:
    """Build the application from the current settings.

    Tests call this after patching the environment so each client sees
    fresh settings rather than the import-time ``app``.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Manual trigger and health check for the daily snapshot worker.",
        version="0.1.0",
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=_lifespan,
    )
    application.middleware("http")(_log_requests)

    from tweet_snapshots.api.routes.health import router as health_router  # noqa: PLC0415
    from tweet_snapshots.api.routes.trigger import router as trigger_router  # noqa: PLC0415

    application.include_router(trigger_router)
    application.include_router(health_router)
    return application


app = create_app()
