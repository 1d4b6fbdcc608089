"""Value types exchanged with the geocoding, routing and position providers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """Immutable WGS84 point in degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @classmethod
    def from_lon_lat(cls, point: Any) -> Coordinate:
        """Build from a GeoJSON-ordered ``[lon, lat]`` pair."""
        return cls(latitude=float(point[1]), longitude=float(point[0]))

    def as_lon_lat(self) -> list[float]:
        return [self.longitude, self.latitude]

    def format(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


class RouteResult(BaseModel):
    """
    Road distance and geometry between two points.

    A zero distance or an empty path means the route could not be resolved;
    it never describes a zero-length trip.
    """

    distance_km: float = Field(default=0.0, ge=0.0)
    duration_seconds: float | None = None
    path: list[Coordinate] = Field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.distance_km > 0 and bool(self.path)

    @classmethod
    def unresolved(cls) -> RouteResult:
        return cls(distance_km=0.0, path=[])


class Place(BaseModel):
    """A geocoding candidate."""

    display_name: str
    coordinate: Coordinate
    kind: str | None = None
    importance: float = 0.0
