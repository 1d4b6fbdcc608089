"""
Provider interfaces for geocoding, routing and device position.
"""

from typing import Any, Protocol

from core.mapping.models import Coordinate, Place, RouteResult


class Geocoder(Protocol):
    """Interface for geocoding services (address <-> coordinates)."""

    async def search(self, query: str, *, limit: int = 5) -> list[Place]:
        """Search for a place by free text, best candidate first."""
        ...

    async def reverse(
        self,
        lat: float,
        lon: float,
        *,
        zoom: int = 18,
    ) -> dict[str, Any] | None:
        """Reverse geocode a coordinate into an address payload."""
        ...


class Router(Protocol):
    """Interface for road routing services."""

    async def route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        """Road distance and path from origin to destination.

        Raises ExternalServiceError when no route can be produced.
        """
        ...


class PositionProvider(Protocol):
    """Interface for the device's location source."""

    async def get_current_position(self) -> Coordinate:
        """Latest device position.

        Raises PositionUnavailableError (or PermissionDeniedError).
        """
        ...
