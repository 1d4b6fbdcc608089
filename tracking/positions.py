"""
Position providers.

The driver's device owns the GPS. It pushes fixes (or geolocation error
codes) to the service, and the engine reads the latest one through the
PositionProvider interface.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from config import POSITION_MAX_FIX_AGE_SECONDS
from core.exceptions import PermissionDeniedError, PositionUnavailableError
from core.mapping.models import Coordinate

logger = logging.getLogger(__name__)

PERMISSION_DENIED = "permission_denied"
POSITION_UNAVAILABLE = "position_unavailable"
TIMEOUT = "timeout"
ERROR_CODES = frozenset({PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT})


class StaticPositionProvider:
    """Always reports the same coordinate."""

    def __init__(self, coordinate: Coordinate) -> None:
        self.coordinate = coordinate

    async def get_current_position(self) -> Coordinate:
        return self.coordinate


class ReportedPositionProvider:
    """
    Latest-wins store of device-reported fixes.

    A fix younger than ``max_fix_age`` seconds is returned immediately;
    otherwise the caller waits for the next report. Callers bound that wait
    with their own timeout. A ``permission_denied`` report sticks until the
    next fix arrives; other error codes fail only the next request.
    """

    def __init__(
        self,
        *,
        max_fix_age: float = POSITION_MAX_FIX_AGE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_fix_age = max_fix_age
        self._clock = clock
        self._latest: Coordinate | None = None
        self._reported_at: float | None = None
        self._error: str | None = None
        self._waiters: list[asyncio.Future[Coordinate]] = []

    @property
    def latest(self) -> Coordinate | None:
        return self._latest

    def _fix_is_fresh(self) -> bool:
        if self._latest is None or self._reported_at is None:
            return False
        return self._clock() - self._reported_at <= self._max_fix_age

    def report(self, coordinate: Coordinate) -> None:
        self._latest = coordinate
        self._reported_at = self._clock()
        self._error = None
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(coordinate)

    def report_error(self, code: str) -> None:
        if code not in ERROR_CODES:
            msg = f"Unknown geolocation error code: {code}"
            raise ValueError(msg)
        logger.info("Device reported geolocation error: %s", code)
        self._error = code
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(self._error_to_exception(code))

    @staticmethod
    def _error_to_exception(code: str) -> PositionUnavailableError:
        if code == PERMISSION_DENIED:
            return PermissionDeniedError("Location permission denied", {"code": code})
        return PositionUnavailableError("Device position unavailable", {"code": code})

    async def get_current_position(self) -> Coordinate:
        if self._error is not None:
            code = self._error
            if code != PERMISSION_DENIED:
                self._error = None
            raise self._error_to_exception(code)

        if self._fix_is_fresh():
            return self._latest

        waiter: asyncio.Future[Coordinate] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
