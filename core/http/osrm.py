"""
OSRM HTTP client.

Road routing against an OSRM server (the public demo server by default).
Route requests ask for the full GeoJSON overview so the path can be drawn.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from config import get_osrm_base_url, get_osrm_profile
from core.constants import METERS_PER_KILOMETER
from core.exceptions import ExternalServiceException, RouteUnresolvedException
from core.http.request import request_json
from core.http.session import get_session
from core.mapping.models import Coordinate, RouteResult

logger = logging.getLogger(__name__)


class OsrmClient:
    def __init__(self) -> None:
        self._base_url = get_osrm_base_url()
        self._profile = get_osrm_profile()

    def _route_url(self, origin: Coordinate, destination: Coordinate) -> str:
        points = ";".join(
            f"{point.longitude},{point.latitude}" for point in (origin, destination)
        )
        return f"{self._base_url}/route/v1/{self._profile}/{points}"

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        *,
        timeout: float | None = None,
    ) -> RouteResult:
        url = self._route_url(origin, destination)
        session = await get_session()
        data = await request_json(
            "GET",
            url,
            session=session,
            params={"overview": "full", "geometries": "geojson"},
            # OSRM answers NoRoute / InvalidQuery with 400 and a JSON body
            expected_status=(200, 400),
            service_name="OSRM route",
            timeout=aiohttp.ClientTimeout(total=timeout) if timeout else None,
        )
        if not isinstance(data, dict):
            msg = "OSRM route error: unexpected response"
            raise ExternalServiceException(msg, {"url": url})
        return self._normalize_route_response(data)

    @staticmethod
    def _normalize_route_response(data: dict[str, Any]) -> RouteResult:
        code = data.get("code")
        routes = data.get("routes")
        if code != "Ok" or not isinstance(routes, list) or not routes:
            msg = f"OSRM route error: {code or 'no route'}"
            raise RouteUnresolvedException(msg, {"message": data.get("message")})

        route = routes[0]
        if not isinstance(route, dict):
            msg = "OSRM route error: malformed route"
            raise RouteUnresolvedException(msg)

        try:
            distance_m = float(route.get("distance") or 0.0)
        except (TypeError, ValueError) as exc:
            msg = "OSRM route error: malformed distance"
            raise RouteUnresolvedException(msg) from exc

        duration = route.get("duration")
        return RouteResult(
            distance_km=max(0.0, distance_m / METERS_PER_KILOMETER),
            duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
            path=OsrmClient._extract_path(route.get("geometry")),
        )

    @staticmethod
    def _extract_path(geometry: Any) -> list[Coordinate]:
        if not isinstance(geometry, dict):
            return []
        coords = geometry.get("coordinates")
        if not isinstance(coords, list):
            return []

        path: list[Coordinate] = []
        for point in coords:
            if not isinstance(point, (list, tuple)) or len(point) < 2:
                continue
            try:
                path.append(Coordinate.from_lon_lat(point))
            except (TypeError, ValueError, PydanticValidationError):
                continue
        return path
