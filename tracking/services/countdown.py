"""Countdown to the arrival target."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from config import COUNTDOWN_TICK_SECONDS
from date_utils import get_local_now, seconds_until

logger = logging.getLogger(__name__)


class CountdownClock:
    """
    Ticks once per second with the time left until ``target``.

    Remaining time is always recomputed from the absolute target, so a
    suspended process catches up on its first tick after resuming. Ticks are
    aligned to whole seconds of remaining time, which makes the last tick
    land on zero. ``on_expire`` fires once per ``start``.
    """

    def __init__(
        self,
        *,
        on_tick: Callable[[float], None],
        on_expire: Callable[[], None],
        now: Callable[[], datetime] = get_local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tick_seconds: float = COUNTDOWN_TICK_SECONDS,
    ) -> None:
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._now = now
        self._sleep = sleep
        self._tick_seconds = tick_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, target: datetime) -> None:
        self.stop()
        self._task = asyncio.create_task(self._run(target), name="countdown-clock")

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _next_delay(self, remaining: float) -> float:
        return remaining % self._tick_seconds or self._tick_seconds

    async def _run(self, target: datetime) -> None:
        while True:
            remaining = seconds_until(target, self._now())
            self._on_tick(remaining)
            if remaining <= 0:
                break
            await self._sleep(self._next_delay(remaining))

        # Detach first: on_expire usually calls stop(), which must not cancel us
        self._task = None
        logger.debug("Countdown reached arrival target %s", target.isoformat())
        self._on_expire()
