"""
Nominatim HTTP client utilities.

Centralizes forward and reverse geocoding against a Nominatim instance
(the public OpenStreetMap server by default).
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from config import (
    get_nominatim_reverse_url,
    get_nominatim_search_url,
    get_nominatim_user_agent,
)
from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import nominatim_breaker, with_circuit_breaker
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import get_session
from core.mapping.models import Coordinate, Place

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(self) -> None:
        self._search_url = get_nominatim_search_url()
        self._reverse_url = get_nominatim_reverse_url()
        self._user_agent = get_nominatim_user_agent()

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    @staticmethod
    def _to_place(result: Any) -> Place | None:
        if not isinstance(result, dict):
            return None
        try:
            coordinate = Coordinate(
                latitude=float(result["lat"]),
                longitude=float(result["lon"]),
            )
        except (KeyError, TypeError, ValueError, PydanticValidationError):
            return None
        try:
            importance = float(result.get("importance") or 0.0)
        except (TypeError, ValueError):
            importance = 0.0
        return Place(
            display_name=result.get("display_name") or coordinate.format(),
            coordinate=coordinate,
            kind=result.get("type"),
            importance=importance,
        )

    @with_circuit_breaker(nominatim_breaker)
    @retry_async()
    async def search(
        self,
        query: str,
        *,
        limit: int = 5,
        country_codes: str | None = None,
    ) -> list[Place]:
        params: dict[str, Any] = {
            "q": query,
            "format": "json",
            "limit": limit,
        }
        if country_codes:
            params["countrycodes"] = country_codes

        session = await get_session()
        results = await request_json(
            "GET",
            self._search_url,
            session=session,
            params=params,
            headers=self._headers(),
            service_name="Nominatim search",
        )
        if not isinstance(results, list):
            msg = "Nominatim search error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._search_url})

        places = []
        for result in results:
            place = self._to_place(result)
            if place is None:
                logger.debug("Skipping malformed Nominatim result: %s", result)
                continue
            places.append(place)
        return places

    @with_circuit_breaker(nominatim_breaker)
    @retry_async()
    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int = 18,
    ) -> dict[str, Any] | None:
        params = {
            "format": "jsonv2",
            "lat": lat,
            "lon": lon,
            "zoom": zoom,
        }
        session = await get_session()
        data = await request_json(
            "GET",
            self._reverse_url,
            session=session,
            params=params,
            headers=self._headers(),
            service_name="Nominatim reverse",
            none_on=(404,),
        )
        if data is None:
            return None
        if not isinstance(data, dict):
            msg = "Nominatim reverse error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._reverse_url})
        return data
