"""Shared pytest fixtures for Tweet Snapshots tests.

Fixture summary
---------------
memory_store    In-memory ``KeyValueStore`` double recording every put.
references      Factory building ``ContentReference`` lists from URLs.
settings_env    Sets env vars and resets the cached ``Settings`` around a test.

No test needs Redis, a Celery broker or network access: HTTP is mocked
with ``respx`` and Redis / Celery with ``unittest.mock`` doubles.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set before any application module is imported so Settings() and the
# Celery app never pick up a developer's local configuration.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "REDIS_URL": "redis://localhost:6379/0",
    "CELERY_BROKER_URL": "memory://",
    "CELERY_RESULT_BACKEND": "cache+memory://",
    "LISTING_BASE_URL": "https://listing.test",
    "TRIGGER_SECRET": "",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from tweet_snapshots.config.settings import get_settings  # noqa: E402
from tweet_snapshots.pipeline.listing import ContentReference  # noqa: E402

get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Store double
# ---------------------------------------------------------------------------


class InMemoryKeyValueStore:
    """``KeyValueStore`` double backed by a dict.

    Attributes:
        data: Current value per key.
        puts: Every ``(key, value)`` written, in call order.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.puts: list[tuple[str, str]] = []

    async def put(self, key: str, value: str) -> None:
        self.puts.append((key, value))
        self.data[key] = value


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    """Return an empty in-memory store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def references() -> Callable[..., list[ContentReference]]:
    """Return a factory: ``references("a", "b")`` -> ``[ContentReference("a"), ...]``."""

    def _build(*urls: str) -> list[ContentReference]:
        return [ContentReference(url=u) for u in urls]

    return _build


# ---------------------------------------------------------------------------
# Settings override
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[Callable[..., None]]:
    """Yield a setter that patches env vars and clears the settings cache.

    Usage::

        def test_x(settings_env):
            settings_env(TRIGGER_SECRET="s3cret")
    """

    def _set(**env: str) -> None:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _set
    get_settings.cache_clear()
