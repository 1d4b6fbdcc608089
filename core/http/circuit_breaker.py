"""
Lightweight async circuit breaker for geocoding calls.

Stops hammering the geocoder after repeated failures by short-circuiting
calls while the breaker is open. Routing is deliberately not wrapped: a trip
keeps asking for a route on every refresh cycle.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CircuitOpen(Exception):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, service: str, resets_in: float) -> None:
        super().__init__(
            f"Circuit breaker open for {service} (resets in {resets_in:.0f}s)"
        )
        self.service = service
        self.resets_in = resets_in


class CircuitBreaker:
    """
    Three-state circuit breaker: closed → open → half-open → closed.

    Parameters
    ----------
    service : str
        Human-readable name (for logging / error messages).
    failure_threshold : int
        Consecutive failures before the circuit opens.
    recovery_timeout : float
        Seconds to wait before allowing a probe request.
    clock : callable
        Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        service: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.service = service
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._failures = 0
        self._opened_at: float | None = None
        self._state = "closed"

    @property
    def state(self) -> str:
        if self._state == "open" and self._opened_at is not None:
            if self._clock() - self._opened_at >= self.recovery_timeout:
                self._state = "half-open"
        return self._state

    def reset(self) -> None:
        self._failures = 0
        self._opened_at = None
        self._state = "closed"

    def record_success(self) -> None:
        if self._state != "closed":
            logger.info("Circuit breaker CLOSED for %s", self.service)
        self.reset()

    def record_failure(self) -> None:
        self._failures += 1
        if self.state == "half-open":
            self._state = "open"
            self._opened_at = self._clock()
            logger.warning(
                "Circuit breaker re-OPEN for %s (half-open probe failed)",
                self.service,
            )
        elif self._failures >= self.failure_threshold and self._state == "closed":
            self._state = "open"
            self._opened_at = self._clock()
            logger.warning(
                "Circuit breaker OPEN for %s after %d failures",
                self.service,
                self._failures,
            )

    def check(self) -> None:
        """Raise :class:`CircuitOpen` if the circuit is open."""
        if self.state == "open":
            resets_in = self.recovery_timeout - (self._clock() - (self._opened_at or 0))
            raise CircuitOpen(self.service, max(0, resets_in))


nominatim_breaker = CircuitBreaker("Nominatim", failure_threshold=5, recovery_timeout=60)


def with_circuit_breaker(breaker: CircuitBreaker):
    """Decorator that wraps an async function with circuit breaker protection."""

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            breaker.check()
            try:
                result = await fn(*args, **kwargs)
            except CircuitOpen:
                raise
            except Exception:
                breaker.record_failure()
                raise
            else:
                breaker.record_success()
                return result

        return wrapper

    return decorator
