"""Route resolution with failure folded into an unresolved result."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from core.exceptions import ExternalServiceError
from core.mapping.interfaces import Router
from core.mapping.models import Coordinate, RouteResult

logger = logging.getLogger(__name__)


class RouteResolver:
    """
    Asks the router for the road distance to the destination.

    Network errors, provider errors and "no route" all come back as
    ``RouteResult.unresolved()``. There is no retry here: the refresh
    scheduler's interval is the retry cadence.
    """

    def __init__(self, router: Router) -> None:
        self._router = router

    async def resolve(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        try:
            result = await self._router.route(origin, destination)
        except ExternalServiceError as exc:
            logger.warning("Route unresolved: %s", exc.message)
            return RouteResult.unresolved()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Route unresolved: %s", exc)
            return RouteResult.unresolved()

        if not result.resolved:
            logger.warning(
                "Route unresolved: empty route from %s to %s",
                origin.format(),
                destination.format(),
            )
            return RouteResult.unresolved()
        return result
