"""
Valhalla HTTP client utilities.

Alternative router for deployments that run their own Valhalla instance.
Routes are requested with GeoJSON shapes so no polyline decoding is needed.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from config import get_valhalla_costing, get_valhalla_route_url
from core.exceptions import ExternalServiceException, RouteUnresolvedException
from core.http.request import request_json
from core.http.session import get_session
from core.mapping.models import Coordinate, RouteResult

logger = logging.getLogger(__name__)


class ValhallaClient:
    def __init__(self) -> None:
        self._route_url = get_valhalla_route_url()
        self._costing = get_valhalla_costing()

    async def route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        *,
        timeout: float | None = None,
    ) -> RouteResult:
        payload = {
            "locations": [
                {"lon": point.longitude, "lat": point.latitude}
                for point in (origin, destination)
            ],
            "costing": self._costing,
            "directions_options": {"units": "kilometers"},
            "shape_format": "geojson",
        }
        session = await get_session()
        data = await request_json(
            "POST",
            self._route_url,
            session=session,
            json=payload,
            service_name="Valhalla route",
            timeout=aiohttp.ClientTimeout(total=timeout) if timeout else None,
        )
        if not isinstance(data, dict):
            msg = "Valhalla route error: unexpected response"
            raise ExternalServiceException(msg, {"url": self._route_url})
        return self._normalize_route_response(data)

    @staticmethod
    def _normalize_route_response(data: dict[str, Any]) -> RouteResult:
        trip = data.get("trip")
        if not isinstance(trip, dict):
            msg = "Valhalla route error: response has no trip"
            raise RouteUnresolvedException(msg)

        summary = trip.get("summary")
        if not isinstance(summary, dict):
            legs = trip.get("legs") or []
            summary = legs[0].get("summary") if legs and isinstance(legs[0], dict) else {}

        try:
            distance_km = float((summary or {}).get("length") or 0.0)
        except (TypeError, ValueError) as exc:
            msg = "Valhalla route error: malformed length"
            raise RouteUnresolvedException(msg) from exc

        duration = (summary or {}).get("time")
        return RouteResult(
            distance_km=max(0.0, distance_km),
            duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
            path=ValhallaClient._extract_path(trip),
        )

    @staticmethod
    def _extract_path(trip: dict[str, Any]) -> list[Coordinate]:
        candidates: list[Any] = [trip.get("shape")]
        for leg in trip.get("legs") or []:
            if isinstance(leg, dict):
                candidates.append(leg.get("shape"))

        for shape in candidates:
            path = ValhallaClient._coerce_shape(shape)
            if path:
                return path
        return []

    @staticmethod
    def _coerce_shape(shape: Any) -> list[Coordinate]:
        if isinstance(shape, dict):
            coords = shape.get("coordinates")
        elif isinstance(shape, list):
            coords = shape
        else:
            return []

        if not isinstance(coords, list):
            return []

        path: list[Coordinate] = []
        for point in coords:
            if isinstance(point, dict):
                lon = point.get("lon")
                lat = point.get("lat")
            else:
                if not isinstance(point, (list, tuple)) or len(point) < 2:
                    continue
                lon, lat = point[0], point[1]
            if lon is None or lat is None:
                continue
            try:
                path.append(Coordinate(latitude=float(lat), longitude=float(lon)))
            except (TypeError, ValueError, PydanticValidationError):
                continue
        return path
