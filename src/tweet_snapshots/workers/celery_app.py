"""Celery application factory for Tweet Snapshots.

Configures the broker, result backend, serialization, task routing and the
Beat schedule.  All configuration values are sourced from ``Settings`` so
that no environment-specific values are hard-coded here.

Usage (starting a worker for both queues)::

    celery -A tweet_snapshots.workers.celery_app worker -Q celery,snapshots --loglevel=info

Usage (starting the Beat scheduler for the daily run)::

    celery -A tweet_snapshots.workers.celery_app beat --loglevel=info
"""

from __future__ import annotations

import logging

from celery import Celery
from celery.signals import setup_logging
from dotenv import load_dotenv

_logger = logging.getLogger(__name__)

load_dotenv()

from tweet_snapshots.config.settings import get_settings  # noqa: E402

settings = get_settings()

#: The global Celery application instance.
celery_app = Celery(
    "tweet_snapshots",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["tweet_snapshots.workers.tasks"],
)

# ---------------------------------------------------------------------------
# Core configuration
# ---------------------------------------------------------------------------

celery_app.conf.update(
    # JSON keeps queued messages inspectable; every task argument and return
    # value must be JSON-serializable.
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # Acknowledge after completion so a crashed worker's batch is redelivered
    # by the broker.  This service never retries a batch itself.
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86_400,
    # The only upper bound on a batch: no per-fetch cancellation exists.
    task_soft_time_limit=900,
    task_time_limit=1_200,
    task_max_retries=0,
    task_routes={
        "tweet_snapshots.workers.tasks.process_user_batch": {"queue": "snapshots"},
        "tweet_snapshots.workers.tasks.enqueue_users": {"queue": "celery"},
    },
    beat_schedule_filename="celerybeat-schedule",
)

from tweet_snapshots.workers.beat_schedule import beat_schedule  # noqa: E402

celery_app.conf.beat_schedule = beat_schedule


# ---------------------------------------------------------------------------
# Logging: route worker and Beat output through structlog
# ---------------------------------------------------------------------------
@setup_logging.connect
def _configure_worker_logging(**kwargs: object) -> None:  # noqa: ARG001
    """Replace Celery's default logging setup with the structlog configuration.

    Connecting to ``setup_logging`` stops Celery from installing its own
    root handlers, so worker and task records share the JSON format used by
    the API.
    """
    from tweet_snapshots.core.logging_config import configure_logging  # noqa: PLC0415

    configure_logging(settings.log_level)
    _logger.debug("celery: logging configured at %s", settings.log_level)
