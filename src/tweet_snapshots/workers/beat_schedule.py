"""Celery Beat periodic task schedule for Tweet Snapshots.

A single entry enqueues every listed user once a day.  The time of day comes
from ``Settings.daily_schedule_hour`` / ``daily_schedule_minute`` and is
interpreted in UTC (``celery_app.py`` sets ``timezone="UTC"``).

+------------------+----------------------+-------------------------------+
| Task name        | Schedule             | Purpose                       |
+==================+======================+===============================+
| daily_enqueue    | configured time, UTC | Queue one snapshot message    |
|                  |                      | per user from users.json.     |
+------------------+----------------------+-------------------------------+
"""

from __future__ import annotations

from celery.schedules import crontab

from tweet_snapshots.config.settings import Settings, get_settings


def build_beat_schedule(settings: Settings) -> dict[str, dict]:  # type: ignore[type-arg]
    """Return the Beat schedule for the configured daily run time."""
    return {
        "daily_enqueue": {
            "task": "tweet_snapshots.workers.tasks.enqueue_users",
            "schedule": crontab(
                hour=settings.daily_schedule_hour,
                minute=settings.daily_schedule_minute,
            ),
            "options": {
                "queue": "celery",
                "expires": 3_600,  # discard if not started within 1 hour
            },
        },
    }


#: Celery Beat schedule dict.  Applied to ``celery_app.conf.beat_schedule``
#: in ``celery_app.py``.
beat_schedule: dict[str, dict] = build_beat_schedule(get_settings())  # type: ignore[type-arg]
