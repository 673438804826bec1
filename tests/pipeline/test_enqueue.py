"""Tests for pipeline/enqueue.py."""

from __future__ import annotations

import asyncio
import time

import httpx
import pytest
import respx

from tweet_snapshots.core.exceptions import ListingFetchError
from tweet_snapshots.pipeline.enqueue import enqueue_all_users

_BASE = "https://listing.test"


class TestEnqueueAllUsers:
    @pytest.mark.asyncio
    async def test_one_message_per_user_in_listing_order(self) -> None:
        sent: list[dict] = []
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(
                return_value=httpx.Response(200, json=["alice", "bob", "alice"])
            )
            async with httpx.AsyncClient() as client:
                count = await enqueue_all_users(client=client, base_url=_BASE, send=sent.append)

        assert count == 3
        assert sent == [{"username": "alice"}, {"username": "bob"}, {"username": "alice"}]

    @pytest.mark.asyncio
    async def test_empty_users_list_sends_nothing(self) -> None:
        sent: list[dict] = []
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(return_value=httpx.Response(200, json=[]))
            async with httpx.AsyncClient() as client:
                count = await enqueue_all_users(client=client, base_url=_BASE, send=sent.append)

        assert count == 0
        assert sent == []

    @pytest.mark.asyncio
    async def test_listing_failure_sends_nothing(self) -> None:
        sent: list[dict] = []
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient() as client:
                with pytest.raises(ListingFetchError):
                    await enqueue_all_users(client=client, base_url=_BASE, send=sent.append)

        assert sent == []

    @pytest.mark.asyncio
    async def test_send_failure_keeps_earlier_sends(self) -> None:
        sent: list[dict] = []

        def _send(message: dict) -> None:
            if message["username"] == "bob":
                raise ConnectionError("broker down")
            sent.append(message)

        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(
                return_value=httpx.Response(200, json=["alice", "bob", "carol"])
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(ConnectionError):
                    await enqueue_all_users(client=client, base_url=_BASE, send=_send)

        assert sent == [{"username": "alice"}]

    @pytest.mark.asyncio
    async def test_blocking_send_does_not_stall_event_loop(self) -> None:
        sent: list[dict] = []

        def _slow_send(message: dict) -> None:
            time.sleep(0.1)
            sent.append(message)

        gaps: list[float] = []
        finished = False

        async def _ticker() -> None:
            last = time.perf_counter()
            while not finished:
                await asyncio.sleep(0.005)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        users = [f"user{i}" for i in range(5)]
        with respx.mock(base_url=_BASE) as mock:
            mock.get("/users.json").mock(return_value=httpx.Response(200, json=users))
            ticker = asyncio.create_task(_ticker())
            try:
                async with httpx.AsyncClient() as client:
                    count = await enqueue_all_users(
                        client=client, base_url=_BASE, send=_slow_send
                    )
            finally:
                finished = True
                await ticker

        assert count == 5
        assert sent == [{"username": u} for u in users]
        assert max(gaps) < 0.05
