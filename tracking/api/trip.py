"""
Trip API.

The device drives the trip through these endpoints: it starts and stops
trips, pushes position fixes, and listens on a WebSocket for the discrete
updates the TripSession publishes.
"""

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.api import api_route
from core.exceptions import InvalidArrivalSpecError, ValidationException
from core.mapping.models import Coordinate
from destinations.services.geocoding import describe_location
from destinations.services.history_service import DestinationHistoryService
from tracking.models import ArrivalSpec, TripStatus
from tracking.positions import ReportedPositionProvider
from tracking.services.trip_session import TripSession

logger = logging.getLogger(__name__)
router = APIRouter()


class ArrivalPayload(BaseModel):
    hour: int | str | None = None
    minute: int | str | None = None
    second: int | str | None = None
    meridiem: str | None = None
    text: str | None = None

    def to_spec(self) -> ArrivalSpec:
        if self.text and self.text.strip():
            return ArrivalSpec.from_text(self.text)
        if self.hour is None:
            raise InvalidArrivalSpecError("Arrival hour is required", {"field": "hour"})
        return ArrivalSpec.parse(self.hour, self.minute, self.second, self.meridiem)


class StartTripRequest(BaseModel):
    destination: Coordinate | str
    destination_name: str | None = None
    arrival: ArrivalPayload


class PositionReport(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    error: str | None = None


def _get_session(app: Any) -> TripSession:
    return app.state.trip_session


async def _record_recent(name: str, coordinate: Coordinate | None) -> None:
    try:
        await DestinationHistoryService.add_recent(name, coordinate)
    except Exception:
        logger.exception("Failed to record recent destination %r", name)


@router.post("/api/trip/start", response_model=dict[str, Any])
@api_route(logger)
async def start_trip(request: Request, body: StartTripRequest):
    """Start (or supersede) the trip and return its snapshot."""
    session = _get_session(request.app)
    arrival = body.arrival.to_spec()

    if isinstance(body.destination, Coordinate):
        name = body.destination_name or await describe_location(body.destination)
        snapshot = await session.start(body.destination, arrival, destination_name=name)
        recent_name = name
    else:
        snapshot = await session.start(
            body.destination,
            arrival,
            destination_name=body.destination_name,
        )
        recent_name = body.destination.strip()

    if snapshot.status is TripStatus.ACTIVE:
        await _record_recent(recent_name, snapshot.destination)
    return snapshot.model_dump(mode="json")


@router.post("/api/trip/stop", response_model=dict[str, Any])
@api_route(logger)
async def stop_trip(request: Request):
    return _get_session(request.app).stop().model_dump(mode="json")


@router.get("/api/trip", response_model=dict[str, Any])
@api_route(logger)
async def get_trip(request: Request):
    return _get_session(request.app).snapshot().model_dump(mode="json")


@router.post("/api/trip/position", response_model=dict[str, Any])
@api_route(logger)
async def report_position(request: Request, body: PositionReport):
    """Accept a device fix, or the device's geolocation error code."""
    provider = _get_session(request.app).position_provider
    if not isinstance(provider, ReportedPositionProvider):
        raise ValidationException("Position reports are disabled for this server")

    if body.error:
        try:
            provider.report_error(body.error)
        except ValueError as exc:
            raise ValidationException(str(exc), {"field": "error"}) from exc
        return {"status": "success", "error": body.error}

    if body.latitude is None or body.longitude is None:
        raise ValidationException("latitude and longitude are required")
    try:
        coordinate = Coordinate(latitude=body.latitude, longitude=body.longitude)
    except PydanticValidationError as exc:
        raise ValidationException("Coordinate out of range") from exc
    provider.report(coordinate)
    return {"status": "success", "position": coordinate.model_dump()}


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    with contextlib.suppress(WebSocketDisconnect):
        while True:
            await websocket.receive_text()


@router.websocket("/ws/trip")
async def trip_updates_socket(websocket: WebSocket):
    """Stream trip updates, starting with the current snapshot."""
    session = _get_session(websocket.app)
    await websocket.accept()

    with session.bus.subscribe() as queue:

        async def _forward() -> None:
            await websocket.send_json(
                {"type": "snapshot", "trip": session.snapshot().model_dump(mode="json")}
            )
            while True:
                update = await queue.get()
                await websocket.send_json(
                    {"type": "update", **update.model_dump(mode="json")}
                )

        logger.info("Trip update subscriber connected")
        sender = asyncio.create_task(_forward())
        receiver = asyncio.create_task(_wait_for_disconnect(websocket))
        try:
            done, _ = await asyncio.wait(
                {sender, receiver},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (sender, receiver):
                task.cancel()
            await asyncio.gather(sender, receiver, return_exceptions=True)

        if sender in done and not sender.cancelled():
            exc = sender.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Trip update stream ended: %s", exc)
        logger.info("Trip update subscriber disconnected")
