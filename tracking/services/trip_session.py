"""
Trip session orchestration.

A TripSession owns one trip at a time. ``start`` geocodes the destination,
resolves the arrival target, takes an initial position and route, then hands
over to the countdown clock and the adaptive refresh scheduler. Every
observable change is published as a TripUpdate on the session's event bus.

Updates are only published while the trip is active, so nothing reaches
subscribers after ``stop`` or completion, even when a slow network call
finishes later.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import aiohttp

from config import (
    COUNTDOWN_TICK_SECONDS,
    INITIAL_ROUTE_TIMEOUT_SECONDS,
    POSITION_SAMPLE_TIMEOUT_SECONDS,
)
from core.exceptions import DestinationNotFoundError, ExternalServiceError
from core.http.circuit_breaker import CircuitOpen
from core.mapping.interfaces import Geocoder, PositionProvider, Router
from core.mapping.models import Coordinate, RouteResult
from date_utils import format_duration, get_local_now, seconds_until
from tracking.arrival import resolve_arrival_target
from tracking.events import TripEventBus
from tracking.models import (
    ArrivalSpec,
    TripSnapshot,
    TripStatus,
    TripUpdate,
    TripUpdateKind,
)
from tracking.refresh_policy import DEFAULT_REFRESH_POLICY, RefreshPolicy
from tracking.services.countdown import CountdownClock
from tracking.services.position_sampler import PositionSampler
from tracking.services.route_resolver import RouteResolver
from tracking.services.scheduler import AdaptiveScheduler
from tracking.speed import compute_required_speed

logger = logging.getLogger(__name__)


def _path_payload(path: list[Coordinate]) -> list[dict[str, float]]:
    return [point.model_dump() for point in path]


class TripSession:
    def __init__(
        self,
        *,
        geocoder: Geocoder,
        router: Router,
        position_provider: PositionProvider,
        bus: TripEventBus | None = None,
        policy: RefreshPolicy = DEFAULT_REFRESH_POLICY,
        now: Callable[[], datetime] = get_local_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tick_seconds: float = COUNTDOWN_TICK_SECONDS,
        sample_timeout: float = POSITION_SAMPLE_TIMEOUT_SECONDS,
        initial_route_timeout: float = INITIAL_ROUTE_TIMEOUT_SECONDS,
    ) -> None:
        self.bus = bus or TripEventBus()
        self._geocoder = geocoder
        self._now = now
        self._initial_route_timeout = initial_route_timeout

        self._sampler = PositionSampler(position_provider, timeout=sample_timeout)
        self._resolver = RouteResolver(router)
        self._clock = CountdownClock(
            on_tick=self._on_tick,
            on_expire=self._on_expire,
            now=now,
            sleep=sleep,
            tick_seconds=tick_seconds,
        )
        self._scheduler = AdaptiveScheduler(
            self._sampler,
            self._resolver,
            self,
            policy=policy,
            now=now,
            sleep=sleep,
        )

        # Bumped by every start/stop so a start that loses a race gives up
        self._generation = 0
        self.current_position: Coordinate | None = None
        self.last_outcome: TripStatus | None = None
        self.last_updated: datetime | None = None
        self._clear_trip()

    def _clear_trip(self) -> None:
        self.trip_id: str | None = None
        self.status = TripStatus.IDLE
        self.destination: Coordinate | None = None
        self.destination_name: str | None = None
        self.target: datetime | None = None
        self.last_distance_km = 0.0
        self.required_speed_kmh = 0.0
        self.remaining_seconds = 0.0
        self.next_refresh_seconds = 0
        self.route_path: list[Coordinate] = []

    @property
    def active(self) -> bool:
        return self.status is TripStatus.ACTIVE

    @property
    def position_provider(self) -> PositionProvider:
        return self._sampler.provider

    def snapshot(self) -> TripSnapshot:
        return TripSnapshot(
            trip_id=self.trip_id,
            status=self.status,
            destination=self.destination,
            destination_name=self.destination_name,
            target=self.target,
            current_position=self.current_position,
            last_distance_km=self.last_distance_km,
            required_speed_kmh=self.required_speed_kmh,
            remaining_seconds=self.remaining_seconds,
            next_refresh_seconds=self.next_refresh_seconds,
            route_path=list(self.route_path),
            last_updated=self.last_updated,
            last_outcome=self.last_outcome,
        )

    async def start(
        self,
        destination: str | Coordinate,
        arrival: ArrivalSpec | datetime,
        *,
        destination_name: str | None = None,
    ) -> TripSnapshot:
        """
        Start tracking a trip to ``destination``.

        An active trip is stopped first. If ``stop`` or another ``start``
        happens while this one is still geocoding or routing, this call
        returns the current snapshot without activating anything.

        Raises:
            InvalidArrivalSpecError: the arrival time cannot be placed in the future.
            DestinationNotFoundError: geocoding found nothing for the address.
            ExternalServiceError: the geocoder could not be reached.
        """
        if self.active:
            logger.info("Superseding active trip %s", self.trip_id)
            self.stop()
        self._generation += 1
        generation = self._generation

        target = resolve_arrival_target(arrival, self._now())

        if isinstance(destination, Coordinate):
            coordinate, name = destination, destination_name
        else:
            coordinate, found_name = await self._geocode(destination)
            name = destination_name or found_name
            if generation != self._generation:
                return self._abandon_start()

        position = await self._sampler.sample()
        if generation != self._generation:
            return self._abandon_start()

        route = await self._initial_route(position, coordinate)
        if generation != self._generation:
            return self._abandon_start()

        self._activate(coordinate, name, target, position, route)
        self._clock.start(target)
        # The initial route above counts as the first refresh
        self._scheduler.start(coordinate, target, run_now=False)
        return self.snapshot()

    def stop(self) -> TripSnapshot:
        """Stop the active trip; a no-op when nothing is active."""
        self._generation += 1
        self._finish(TripStatus.STOPPED)
        return self.snapshot()

    async def aclose(self) -> None:
        self.stop()
        await self._scheduler.aclose()

    async def _geocode(self, address: str) -> tuple[Coordinate, str]:
        query = (address or "").strip()
        if not query:
            raise DestinationNotFoundError("Destination address is required")
        try:
            candidates = await self._geocoder.search(query, limit=1)
        except CircuitOpen as exc:
            raise ExternalServiceError(str(exc), {"service": "geocoder"}) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ExternalServiceError(
                f"Geocoding failed: {exc}", {"service": "geocoder"}
            ) from exc

        if not candidates:
            raise DestinationNotFoundError(
                f"Address not found: {query}", {"query": query}
            )
        place = candidates[0]
        logger.info("Geocoded %r to %s", query, place.coordinate.format())
        return place.coordinate, place.display_name

    async def _initial_route(
        self,
        origin: Coordinate | None,
        destination: Coordinate,
    ) -> RouteResult:
        if origin is None:
            logger.info("No position yet; trip starts without an initial route")
            return RouteResult.unresolved()
        try:
            async with asyncio.timeout(self._initial_route_timeout):
                return await self._resolver.resolve(origin, destination)
        except TimeoutError:
            logger.warning(
                "Initial route not resolved within %.1fs", self._initial_route_timeout
            )
            return RouteResult.unresolved()

    def _abandon_start(self) -> TripSnapshot:
        logger.info("Trip start superseded before activation")
        return self.snapshot()

    def _activate(
        self,
        destination: Coordinate,
        name: str | None,
        target: datetime,
        position: Coordinate | None,
        route: RouteResult,
    ) -> None:
        self.trip_id = uuid.uuid4().hex
        self.status = TripStatus.ACTIVE
        self.destination = destination
        self.destination_name = name
        self.target = target
        self.remaining_seconds = seconds_until(target, self._now())
        self.last_outcome = None

        logger.info(
            "Trip %s started to %s, arriving by %s (%s left)",
            self.trip_id,
            name or destination.format(),
            target.isoformat(),
            format_duration(self.remaining_seconds),
        )
        self._publish(TripUpdateKind.STATUS, self.status.value)
        if position is not None:
            self.on_position(position)
        if route.resolved:
            speed = compute_required_speed(route.distance_km, self.remaining_seconds)
            self.on_route(route, speed)
        self._publish(TripUpdateKind.REMAINING, self.remaining_seconds)

    def _finish(self, outcome: TripStatus) -> None:
        if not self.active:
            return
        self._clock.stop()
        self._scheduler.stop()
        self.status = outcome
        self.last_outcome = outcome
        self._publish(TripUpdateKind.STATUS, outcome.value)
        logger.info("Trip %s %s", self.trip_id, outcome.value)
        # Back to idle; the last known position is kept
        self._clear_trip()

    def _publish(self, kind: TripUpdateKind, value: Any) -> None:
        self.last_updated = self._now()
        self.bus.publish(TripUpdate(trip_id=self.trip_id, kind=kind, value=value))

    # Countdown callbacks

    def _on_tick(self, remaining: float) -> None:
        if not self.active:
            return
        self.remaining_seconds = remaining
        self._publish(TripUpdateKind.REMAINING, remaining)

    def _on_expire(self) -> None:
        self._generation += 1
        self._finish(TripStatus.COMPLETED)

    # Refresh cycle sink

    def on_position(self, position: Coordinate) -> None:
        if not self.active:
            return
        self.current_position = position
        self._publish(TripUpdateKind.POSITION, position.model_dump())

    def on_route(self, route: RouteResult, speed_kmh: float) -> None:
        if not self.active:
            return
        self.last_distance_km = route.distance_km
        self.route_path = list(route.path)
        self.required_speed_kmh = speed_kmh
        self._publish(TripUpdateKind.DISTANCE, route.distance_km)
        self._publish(TripUpdateKind.ROUTE, _path_payload(self.route_path))
        self._publish(TripUpdateKind.SPEED, speed_kmh)

    def on_next_refresh(self, interval_seconds: int) -> None:
        if not self.active:
            return
        self.next_refresh_seconds = interval_seconds
        self._publish(TripUpdateKind.NEXT_REFRESH, interval_seconds)
