"""
Destination lookup and history API.

Address suggestions and reverse geocoding for the destination form, plus the
recent and saved destination lists.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from core.api import api_route
from core.mapping.models import Coordinate
from destinations.services.geocoding import describe_location, suggest_destinations
from destinations.services.history_service import DestinationHistoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/destinations", tags=["destinations"])


class SavedDestinationRequest(BaseModel):
    name: str
    latitude: float | None = None
    longitude: float | None = None

    def coordinate(self) -> Coordinate | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


def _entry_payload(entry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "kind": entry.kind.value,
        "coordinate": entry.coordinate.model_dump() if entry.coordinate else None,
        "used_at": entry.used_at.isoformat() if entry.used_at else None,
    }


@router.get("/search", response_model=dict[str, Any])
@api_route(logger)
async def search_destinations(
    q: Annotated[str, Query(description="Partially typed destination address")],
):
    """Address suggestions; short queries return no results."""
    places = await suggest_destinations(q)
    return {
        "query": q,
        "results": [place.model_dump() for place in places],
    }


@router.get("/reverse", response_model=dict[str, Any])
@api_route(logger)
async def reverse_geocode(
    lat: Annotated[float, Query(ge=-90.0, le=90.0)],
    lon: Annotated[float, Query(ge=-180.0, le=180.0)],
):
    coordinate = Coordinate(latitude=lat, longitude=lon)
    return {
        "coordinate": coordinate.model_dump(),
        "display_name": await describe_location(coordinate),
    }


@router.get("/recent", response_model=list[dict[str, Any]])
@api_route(logger)
async def list_recent_destinations():
    entries = await DestinationHistoryService.list_recent()
    return [_entry_payload(entry) for entry in entries]


@router.get("/saved", response_model=list[dict[str, Any]])
@api_route(logger)
async def list_saved_destinations():
    entries = await DestinationHistoryService.list_saved()
    return [_entry_payload(entry) for entry in entries]


@router.post("/saved", response_model=dict[str, Any])
@api_route(logger)
async def save_destination(body: SavedDestinationRequest):
    if not body.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Destination name is required",
        )
    entry = await DestinationHistoryService.save(body.name, body.coordinate())
    return _entry_payload(entry)


@router.delete("/saved/{name}", response_model=dict[str, Any])
@api_route(logger)
async def delete_saved_destination(name: str):
    removed = await DestinationHistoryService.remove_saved(name)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Saved destination not found: {name}",
        )
    return {"status": "success", "name": name}
