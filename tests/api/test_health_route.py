"""Tests for ``GET /api/health``."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from tweet_snapshots.api.main import create_app
from tweet_snapshots.api.routes.health import (
    _check_celery_workers,
    _check_redis,
    _consumes_snapshot_queue,
)
from tweet_snapshots.workers.celery_app import celery_app

_HEALTH = "tweet_snapshots.api.routes.health"


async def _get_health() -> httpx.Response:
    transport = httpx.ASGITransport(app=create_app())
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/api/health")


class TestHealthRoute:
    @pytest.mark.asyncio
    async def test_all_dependencies_reachable(self, settings_env) -> None:
        settings_env(DAILY_SCHEDULE_HOUR="6", DAILY_SCHEDULE_MINUTE="5")
        with (
            patch(f"{_HEALTH}._check_redis", AsyncMock(return_value="ok")),
            patch(f"{_HEALTH}._check_celery_workers", AsyncMock(return_value="ok")),
        ):
            response = await _get_health()

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["redis"] == "ok"
        assert body["celery"] == "ok"
        assert body["daily_run_utc"] == "06:05"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_unreachable_dependency_is_degraded_not_5xx(self) -> None:
        with (
            patch(f"{_HEALTH}._check_redis", AsyncMock(return_value="error")),
            patch(f"{_HEALTH}._check_celery_workers", AsyncMock(return_value="no_workers")),
        ):
            response = await _get_health()

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestChecks:
    @pytest.mark.asyncio
    async def test_redis_check_reports_error_and_closes_client(self) -> None:
        client = AsyncMock()
        client.ping.side_effect = ConnectionError("refused")
        with patch("redis.asyncio.from_url", return_value=client):
            assert await _check_redis() == "error"

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_check_ok(self) -> None:
        with patch("redis.asyncio.from_url", return_value=AsyncMock()):
            assert await _check_redis() == "ok"

    @pytest.mark.parametrize(
        ("reply", "expected"),
        [
            (None, False),
            ({}, False),
            ({"w1@host": [{"name": "celery"}]}, False),
            ({"w1@host": [{"name": "celery"}], "w2@host": [{"name": "snapshots"}]}, True),
        ],
    )
    def test_snapshot_queue_consumer_detection(self, reply, expected: bool) -> None:
        assert _consumes_snapshot_queue(reply) is expected

    @pytest.mark.asyncio
    async def test_celery_check_without_snapshot_consumer(self) -> None:
        inspect = MagicMock()
        inspect.active_queues.return_value = {"w1@host": [{"name": "celery"}]}
        with patch.object(
            celery_app.control,
            "inspect",
            return_value=inspect,
        ):
            assert await _check_celery_workers() == "no_workers"

    @pytest.mark.asyncio
    async def test_celery_check_broker_failure(self) -> None:
        with patch.object(
            celery_app.control,
            "inspect",
            side_effect=ConnectionError("broker down"),
        ):
            assert await _check_celery_workers() == "error"
