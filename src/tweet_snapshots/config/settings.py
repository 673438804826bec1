"""Environment-driven settings for the worker, Beat and the API.

The three processes read the same variables (or a shared ``.env``): Redis
URLs for the snapshot store and Celery, the listing service base URL, the
daily run time and the trigger secret.  Code reads them through
:func:`get_settings`, not ``os.environ``.

Usage::

    from tweet_snapshots.config.settings import get_settings

    settings = get_settings()
    redis_url = settings.redis_url
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Worker configuration backed by environment variables and an optional .env file.

    Every field has a development default so the worker, the Beat scheduler
    and the API can start against a local Redis without extra setup.  The
    trigger secret defaults to empty, which disables the manual trigger.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Snapshot store
    # ------------------------------------------------------------------

    redis_url: str = "redis://localhost:6379/0"
    """Redis connection URL of the durable key-value store holding
    ``daily/<username>`` snapshots."""

    # ------------------------------------------------------------------
    # Celery task queue
    # ------------------------------------------------------------------

    celery_broker_url: str = "redis://localhost:6379/1"
    """Redis URL used as Celery's message broker (database 1 to isolate from snapshots)."""

    celery_result_backend: str = "redis://localhost:6379/2"
    """Celery result backend (database 2); holds the per-batch summaries."""

    # ------------------------------------------------------------------
    # Listing service
    # ------------------------------------------------------------------

    listing_base_url: str = "https://xymake.com"
    """Base URL of the listing service.

    ``<base>/users.json`` lists usernames and
    ``<base>/<username>/with_replies.json`` lists content URLs per user.
    """

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    trigger_secret: str = ""
    """Shared secret expected in the ``secret`` query parameter of ``GET /``.

    An empty value never matches, so the manual trigger stays disabled
    until a secret is configured.
    """

    daily_schedule_hour: int = Field(default=0, ge=0, le=23)
    """Hour (UTC) at which Celery Beat enqueues all users."""

    daily_schedule_minute: int = Field(default=0, ge=0, le=59)
    """Minute past ``daily_schedule_hour`` at which Celery Beat enqueues all users."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Tweet Snapshots"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """Enable FastAPI debug mode.  Never True in production."""

    log_level: str = "INFO"
    """Root log level name; ``DEBUG`` also switches to console rendering."""


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide :class:`Settings`, built on first call.

    Tests that change the environment must call ``get_settings.cache_clear()``.
    """
    return Settings()
