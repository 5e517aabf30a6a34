"""Tests for the scheduled and stream pollers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

from tradfri_link.models import PollMode
from tradfri_link.poller import ScheduledPoller, StreamPoller, create_poller


class TestScheduledPoller:
    """Fixed-interval re-observation."""

    async def test_polls_every_interval(self):
        poll = AsyncMock()
        poller = ScheduledPoller(poll, interval=0.01)
        poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

        assert poll.await_count >= 2

    async def test_start_is_idempotent(self):
        poller = ScheduledPoller(AsyncMock(), interval=60)
        poller.start()
        task = poller._task
        poller.start()

        assert poller._task is task
        await poller.stop()

    async def test_stop_clears_handle(self):
        poller = ScheduledPoller(AsyncMock(), interval=60)
        poller.start()
        assert poller.running is True

        await poller.stop()
        assert poller.running is False
        assert poller._task is None

    async def test_stop_before_start_is_safe(self):
        poller = ScheduledPoller(AsyncMock(), interval=60)
        await poller.stop()
        await poller.stop()
        assert poller.running is False

    async def test_failed_tick_keeps_polling(self, caplog):
        calls = 0

        async def _poll() -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("gateway went away")

        poller = ScheduledPoller(_poll, interval=0.01)
        poller.start()
        await asyncio.sleep(0.06)
        await poller.stop()

        assert calls >= 2
        assert "Scheduled device refresh failed" in caplog.text

    async def test_no_poll_before_first_interval(self):
        poll = AsyncMock()
        poller = ScheduledPoller(poll, interval=60)
        poller.start()
        await asyncio.sleep(0)
        await poller.stop()

        poll.assert_not_awaited()


class TestStreamPoller:
    """Persistent observation needs no schedule."""

    async def test_start_stop_toggle_flag(self):
        poller = StreamPoller()
        assert poller.running is False
        poller.start()
        poller.start()
        assert poller.running is True
        await poller.stop()
        assert poller.running is False

    async def test_stop_before_start_is_safe(self):
        await StreamPoller().stop()


class TestCreatePoller:
    """Poll mode selection."""

    def test_scheduled(self):
        poller = create_poller(PollMode.SCHEDULED, AsyncMock(), 5)
        assert isinstance(poller, ScheduledPoller)
        assert poller._interval == 5

    def test_stream(self):
        assert isinstance(create_poller(PollMode.STREAM, AsyncMock()), StreamPoller)
