"""Address lookups for the destination form."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from core.constants import SUGGESTION_LIMIT, SUGGESTION_MIN_QUERY_LENGTH
from core.exceptions import ExternalServiceError
from core.http.circuit_breaker import CircuitOpen
from core.mapping.factory import get_geocoder
from core.mapping.interfaces import Geocoder
from core.mapping.models import Coordinate, Place

logger = logging.getLogger(__name__)


async def describe_location(
    coordinate: Coordinate,
    *,
    geocoder: Geocoder | None = None,
) -> str:
    """
    Human readable name for a coordinate.

    Falls back to the ``"lat, lon"`` rendering when reverse geocoding fails
    or finds nothing, so callers always get something to display.
    """
    geocoder = geocoder or get_geocoder()
    try:
        payload = await geocoder.reverse(coordinate.latitude, coordinate.longitude)
    except (
        ExternalServiceError,
        CircuitOpen,
        aiohttp.ClientError,
        asyncio.TimeoutError,
    ) as exc:
        logger.warning("Reverse geocoding %s failed: %s", coordinate.format(), exc)
        return coordinate.format()

    display_name = (payload or {}).get("display_name")
    if not display_name:
        return coordinate.format()
    return display_name


async def suggest_destinations(
    query: str,
    *,
    geocoder: Geocoder | None = None,
    limit: int = SUGGESTION_LIMIT,
) -> list[Place]:
    """Address candidates for a partially typed destination."""
    cleaned = (query or "").strip()
    if len(cleaned) < SUGGESTION_MIN_QUERY_LENGTH:
        return []

    geocoder = geocoder or get_geocoder()
    places = await geocoder.search(cleaned, limit=limit)
    logger.debug("Found %d suggestion(s) for %r", len(places), cleaned)
    return places[:limit]
