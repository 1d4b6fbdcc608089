"""
Adaptive refresh scheduling.

Each refresh cycle samples the device position, resolves the road route to
the destination and recomputes the required speed. When a cycle ends the
scheduler measures the time left and arms exactly one delayed re-entry,
with a delay taken from the refresh policy.

``stop()`` disarms the pending re-entry but does not abort a cycle that is
already waiting on the network; that cycle's results are dropped through the
generation check instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import Protocol

from core.mapping.models import Coordinate, RouteResult
from date_utils import get_local_now, seconds_until
from tracking.refresh_policy import DEFAULT_REFRESH_POLICY, RefreshPolicy
from tracking.services.position_sampler import PositionSampler
from tracking.services.route_resolver import RouteResolver
from tracking.speed import compute_required_speed

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    CYCLE_RUNNING = "cycle_running"
    ARMED = "armed"


class CycleSink(Protocol):
    """Receives the results of refresh cycles that are still current."""

    def on_position(self, position: Coordinate) -> None: ...

    def on_route(self, route: RouteResult, speed_kmh: float) -> None: ...

    def on_next_refresh(self, interval_seconds: int) -> None: ...


class AdaptiveScheduler:
    def __init__(
        self,
        sampler: PositionSampler,
        resolver: RouteResolver,
        sink: CycleSink,
        *,
        policy: RefreshPolicy = DEFAULT_REFRESH_POLICY,
        now: Callable[[], datetime] = get_local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._sampler = sampler
        self._resolver = resolver
        self._sink = sink
        self._policy = policy
        self._now = now
        self._sleep = sleep

        self._state = SchedulerState.IDLE
        self._generation = 0
        self._destination: Coordinate | None = None
        self._target: datetime | None = None
        self._cycle_task: asyncio.Task[None] | None = None
        self._armed_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    def start(
        self,
        destination: Coordinate,
        target: datetime,
        *,
        run_now: bool = True,
    ) -> None:
        """
        Begin refreshing toward ``destination``.

        With ``run_now=False`` the first cycle is armed after one policy
        interval instead of running immediately, for callers that have just
        refreshed themselves.
        """
        if self._state is not SchedulerState.IDLE:
            self.stop()
        self._generation += 1
        self._destination = destination
        self._target = target
        logger.debug("Refresh scheduler started (generation %d)", self._generation)
        if run_now:
            self._begin_cycle(self._generation)
        else:
            self._arm(self._generation)

    def stop(self) -> None:
        if self._state is SchedulerState.IDLE:
            return
        self._generation += 1
        self._state = SchedulerState.IDLE
        armed, self._armed_task = self._armed_task, None
        if armed is not None and not armed.done():
            armed.cancel()
        logger.debug("Refresh scheduler stopped")

    async def aclose(self) -> None:
        """Stop and abandon any in-flight cycle (process shutdown)."""
        self.stop()
        cycle, self._cycle_task = self._cycle_task, None
        if cycle is not None and not cycle.done():
            cycle.cancel()
            await asyncio.wait([cycle])

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state is not SchedulerState.IDLE

    def _begin_cycle(self, generation: int) -> None:
        previous = self._cycle_task
        self._state = SchedulerState.CYCLE_RUNNING
        self._armed_task = None
        self._cycle_task = asyncio.create_task(
            self._run_cycle(generation, previous),
            name=f"refresh-cycle-{generation}",
        )

    async def _run_cycle(
        self,
        generation: int,
        previous: asyncio.Task[None] | None,
    ) -> None:
        # Never overlap cycles, even across a stop/start
        if previous is not None and not previous.done():
            await asyncio.wait([previous])

        if not self._is_current(generation):
            return
        try:
            await self._refresh(generation)
        except Exception:
            logger.exception("Refresh cycle failed")

        if self._is_current(generation):
            self._arm(generation)

    async def _refresh(self, generation: int) -> None:
        remaining_at_start = seconds_until(self._target, self._now())

        position = await self._sampler.sample()
        if not self._is_current(generation):
            logger.debug("Discarding position sample from a stopped refresh cycle")
            return
        if position is None:
            logger.info("Skipping route refresh: position unavailable")
            return
        self._sink.on_position(position)

        route = await self._resolver.resolve(position, self._destination)
        if not self._is_current(generation):
            logger.debug("Discarding route from a stopped refresh cycle")
            return
        if not route.resolved:
            logger.info("Route unresolved; holding previous distance and speed")
            return

        speed = compute_required_speed(route.distance_km, remaining_at_start)
        self._sink.on_route(route, speed)

    def _arm(self, generation: int) -> None:
        remaining = seconds_until(self._target, self._now())
        if remaining <= 0:
            self._state = SchedulerState.IDLE
            logger.debug("Arrival target reached; no further refresh armed")
            return

        interval = self._policy.next_interval(remaining)
        self._sink.on_next_refresh(interval)
        self._state = SchedulerState.ARMED
        self._armed_task = asyncio.create_task(
            self._wait_and_refresh(generation, interval),
            name=f"refresh-armed-{generation}",
        )

    async def _wait_and_refresh(self, generation: int, interval: int) -> None:
        await self._sleep(interval)
        if self._is_current(generation):
            self._begin_cycle(generation)
