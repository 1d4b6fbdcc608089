"""Deterministic stand-ins for the tracking engine's collaborators."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from core.mapping.models import Coordinate, Place, RouteResult

START = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)
ORIGIN = Coordinate(latitude=34.0, longitude=-118.0)
DESTINATION = Coordinate(latitude=34.1, longitude=-118.0)


def make_route(distance_km: float) -> RouteResult:
    return RouteResult(
        distance_km=distance_km,
        duration_seconds=distance_km * 60,
        path=[ORIGIN, DESTINATION],
    )


async def until(predicate: Callable[[], bool], *, max_spins: int = 500) -> None:
    """Yield to the event loop until ``predicate()`` holds."""
    for _ in range(max_spins):
        if predicate():
            return
        await asyncio.sleep(0)
    msg = "condition never became true"
    raise AssertionError(msg)


async def settle(spins: int = 50) -> None:
    for _ in range(spins):
        await asyncio.sleep(0)


class ManualClock:
    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def set_remaining(self, target: datetime, seconds: float) -> None:
        self.current = target - timedelta(seconds=seconds)


class ManualSleeper:
    """
    Injectable ``sleep`` whose calls block until a test releases them.

    Releasing a sleep advances the shared ManualClock by its duration.
    """

    def __init__(self, clock: ManualClock | None = None) -> None:
        self.clock = clock
        self.calls: list[float] = []
        self._pending: list[tuple[float, asyncio.Future[None]]] = []

    async def __call__(self, seconds: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (seconds, future)
        self.calls.append(seconds)
        self._pending.append(entry)
        try:
            await future
        finally:
            if entry in self._pending:
                self._pending.remove(entry)

    @property
    def pending(self) -> list[float]:
        return [seconds for seconds, future in self._pending if not future.done()]

    def release(self, seconds: float | None = None, *, advance: bool = True) -> float:
        for entry in list(self._pending):
            duration, future = entry
            if future.done():
                continue
            if seconds is not None and duration != seconds:
                continue
            self._pending.remove(entry)
            if advance and self.clock is not None:
                self.clock.advance(duration)
            future.set_result(None)
            return duration
        msg = f"no pending sleep of {seconds}s (pending: {self.pending})"
        raise AssertionError(msg)

    async def release_when_pending(self, seconds: float) -> float:
        """Wait until a sleep of ``seconds`` is pending, then release it."""
        await until(lambda: seconds in self.pending)
        return self.release(seconds)


class FakeRouter:
    def __init__(
        self,
        results: list[RouteResult | Exception] | None = None,
        *,
        default: RouteResult | None = None,
    ) -> None:
        self.results = list(results or [])
        self.default = default or make_route(20.0)
        self.calls: list[tuple[Coordinate, Coordinate]] = []
        self.gate: asyncio.Event | None = None

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        self.calls.append((origin, destination))
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, Exception):
            raise result
        return result


class FakePositionProvider:
    def __init__(
        self,
        positions: list[Coordinate | Exception] | None = None,
        *,
        default: Coordinate | None = ORIGIN,
    ) -> None:
        self.positions = list(positions or [])
        self.default = default
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def get_current_position(self) -> Coordinate:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.positions.pop(0) if self.positions else self.default
        if isinstance(result, Exception):
            raise result
        if result is None:
            # Never answers; the sampler's timeout has to cut it off
            await asyncio.Event().wait()
        return result


class FakeGeocoder:
    def __init__(
        self,
        places: list[Place] | None = None,
        *,
        reverse_payload: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.places = list(places or [])
        self.reverse_payload = reverse_payload
        self.error = error
        self.search_calls: list[tuple[str, int]] = []
        self.reverse_calls: list[tuple[float, float]] = []
        self.gate: asyncio.Event | None = None

    async def search(self, query: str, *, limit: int = 5) -> list[Place]:
        self.search_calls.append((query, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.places[:limit]

    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int = 18,
    ) -> dict[str, Any] | None:
        self.reverse_calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return self.reverse_payload


def make_place(name: str, coordinate: Coordinate = DESTINATION) -> Place:
    return Place(display_name=name, coordinate=coordinate, kind="house", importance=0.5)
