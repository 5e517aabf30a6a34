"""Keeping device state fresh after connect.

``ScheduledPoller`` re-issues the observation request on a fixed interval.
``StreamPoller`` relies on the transport's persistent observations and only
tracks whether auto-get is on.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

from .const import DEFAULT_POLL_INTERVAL
from .models import PollMode

_LOGGER = logging.getLogger(__name__)


class ScheduledPoller:
    """Fixed-interval re-observation loop."""

    def __init__(
        self,
        poll: Callable[[], Awaitable[None]],
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._poll = poll
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        _LOGGER.debug("Scheduled polling started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        _LOGGER.debug("Scheduled polling stopped")

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._poll()
            except Exception:
                _LOGGER.exception("Scheduled device refresh failed")


class StreamPoller:
    """Persistent observation; the transport redelivers updates itself."""

    def __init__(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False


Poller = ScheduledPoller | StreamPoller


def create_poller(
    mode: PollMode,
    poll: Callable[[], Awaitable[None]],
    interval: float = DEFAULT_POLL_INTERVAL,
) -> Poller:
    if mode is PollMode.STREAM:
        return StreamPoller()
    return ScheduledPoller(poll, interval)
