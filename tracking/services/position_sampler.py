"""Single-shot, latest-wins position sampling."""

from __future__ import annotations

import asyncio
import logging

from config import POSITION_SAMPLE_TIMEOUT_SECONDS
from core.exceptions import PositionUnavailableError
from core.mapping.interfaces import PositionProvider
from core.mapping.models import Coordinate

logger = logging.getLogger(__name__)


class PositionSampler:
    """
    Wraps a PositionProvider so that failures never escape into the caller.

    ``sample()`` returns the provider's coordinate, or ``None`` when the
    position is unavailable (permission denied, provider error, timeout).
    Concurrent calls share the one outstanding request.
    """

    def __init__(
        self,
        provider: PositionProvider,
        *,
        timeout: float = POSITION_SAMPLE_TIMEOUT_SECONDS,
    ) -> None:
        self._provider = provider
        self._timeout = timeout
        self._inflight: asyncio.Future[Coordinate | None] | None = None
        self.last_error: PositionUnavailableError | None = None

    @property
    def provider(self) -> PositionProvider:
        return self._provider

    async def sample(self) -> Coordinate | None:
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._request())
        return await asyncio.shield(self._inflight)

    async def _request(self) -> Coordinate | None:
        try:
            async with asyncio.timeout(self._timeout):
                coordinate = await self._provider.get_current_position()
        except PositionUnavailableError as exc:
            self.last_error = exc
            logger.warning("Position unavailable: %s", exc.message)
            return None
        except TimeoutError:
            self.last_error = PositionUnavailableError(
                "Position request timed out", {"timeout": self._timeout}
            )
            logger.warning("Position unavailable: no fix within %.1fs", self._timeout)
            return None

        self.last_error = None
        return coordinate
