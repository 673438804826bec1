"""Configuration package for Tweet Snapshots.

Re-exports the settings symbols so that callers can write::

    from tweet_snapshots.config import get_settings
"""

from __future__ import annotations

from tweet_snapshots.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
