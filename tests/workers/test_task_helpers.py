"""Tests for workers/_task_helpers.py.

Exercises the async helpers end to end against ``respx``-mocked HTTP and an
in-memory store, without importing the Celery application.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

from tweet_snapshots.config.settings import Settings
from tweet_snapshots.core.exceptions import ListingFetchError
from tweet_snapshots.pipeline.dispatch import UserResult
from tweet_snapshots.workers._task_helpers import (
    build_http_client,
    run_batch,
    run_enqueue,
    summarize,
)

_BASE = "https://listing.test"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, listing_base_url=_BASE)


class TestBuildHttpClient:
    @pytest.mark.asyncio
    async def test_client_follows_redirects_and_identifies_itself(self) -> None:
        async with build_http_client() as client:
            assert client.follow_redirects is True
            assert client.headers["User-Agent"].startswith("TweetSnapshots/")


class TestRunBatch:
    @pytest.mark.asyncio
    async def test_stores_each_user_and_isolates_failures(self, settings, memory_store) -> None:
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/alice/with_replies.json").mock(
                return_value=httpx.Response(200, json=[{"url": f"{_BASE}/c/1"}])
            )
            mock.get("/bob/with_replies.json").mock(return_value=httpx.Response(500))
            mock.get("/c/1").mock(return_value=httpx.Response(200, text="content one"))

            results = await run_batch(
                [{"username": "alice"}, {"username": "bob"}],
                settings=settings,
                store=memory_store,
            )

        assert [r.status for r in results] == ["stored", "failed"]
        assert json.loads(memory_store.data["daily/alice"]) == {f"{_BASE}/c/1": "content one"}
        assert "daily/bob" not in memory_store.data

    @pytest.mark.asyncio
    async def test_owned_redis_store_is_closed(self, settings) -> None:
        redis_client = AsyncMock()
        with (
            patch("redis.asyncio.from_url", return_value=redis_client),
            respx.mock(base_url=_BASE) as mock,
        ):
            mock.get("/alice/with_replies.json").mock(
                return_value=httpx.Response(200, json=[])
            )
            results = await run_batch([{"username": "alice"}], settings=settings)

        assert results[0].ok
        redis_client.set.assert_awaited_once_with("daily/alice", "{}")
        redis_client.aclose.assert_awaited_once()


class TestRunEnqueue:
    @pytest.mark.asyncio
    async def test_sends_one_message_per_user(self, settings) -> None:
        sent: list[dict] = []
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(return_value=httpx.Response(200, json=["a", "b"]))
            queued = await run_enqueue(sent.append, settings=settings)

        assert queued == 2
        assert sent == [{"username": "a"}, {"username": "b"}]

    @pytest.mark.asyncio
    async def test_listing_failure_propagates(self, settings) -> None:
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(ListingFetchError):
                await run_enqueue(lambda message: None, settings=settings)


class TestSummarize:
    def test_counts_and_failures(self) -> None:
        results = [
            UserResult(username="alice", status="stored", item_count=3, key="daily/alice"),
            UserResult(username="bob", status="failed", error=ListingFetchError("404 for bob")),
            UserResult(username=None, status="failed", error=ValueError("no username")),
        ]

        assert summarize(results) == {
            "processed": 3,
            "stored": 1,
            "failed": 2,
            "failures": [
                {"username": "bob", "error": "404 for bob"},
                {"username": None, "error": "no username"},
            ],
        }

    def test_empty_batch(self) -> None:
        assert summarize([]) == {"processed": 0, "stored": 0, "failed": 0, "failures": []}
