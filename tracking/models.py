"""Trip tracking data model."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.exceptions import InvalidArrivalSpecError
from core.mapping.models import Coordinate, Place, RouteResult
from date_utils import get_current_utc_time


class TripStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    STOPPED = "stopped"


class TripUpdateKind(str, Enum):
    STATUS = "status"
    POSITION = "position"
    DISTANCE = "distance"
    ROUTE = "route"
    SPEED = "speed"
    REMAINING = "remaining"
    NEXT_REFRESH = "next_refresh"


# "5", "17:30", "5:45:10 PM", "7.30pm" style times of day; dates are rejected
_TIME_OF_DAY = re.compile(
    r"(?P<hour>\d{1,2})(?:[:.](?P<minute>\d{2})(?::(?P<second>\d{2}))?)?"
    r"\s*(?P<meridiem>[AaPp]\.?\s*[Mm]\.?)?"
)


class ArrivalSpec(BaseModel):
    """
    A wall-clock time of day the driver wants to arrive at.

    With a meridiem the hour is on the 12-hour clock (1-12), otherwise it is
    on the 24-hour clock (0-23).
    """

    model_config = ConfigDict(frozen=True)

    hour: int
    minute: int = 0
    second: int = 0
    meridiem: Literal["AM", "PM"] | None = None

    @model_validator(mode="after")
    def _check_ranges(self) -> ArrivalSpec:
        if self.meridiem is None:
            hour_ok = 0 <= self.hour <= 23
        else:
            hour_ok = 1 <= self.hour <= 12
        if not hour_ok or not 0 <= self.minute <= 59 or not 0 <= self.second <= 59:
            msg = f"arrival time out of range: {self.hour}:{self.minute}:{self.second}"
            raise ValueError(msg)
        return self

    @property
    def hour_24(self) -> int:
        if self.meridiem == "PM" and self.hour < 12:
            return self.hour + 12
        if self.meridiem == "AM" and self.hour == 12:
            return 0
        return self.hour

    @classmethod
    def parse(
        cls,
        hour: str | int,
        minute: str | int | None = None,
        second: str | int | None = None,
        meridiem: str | None = None,
    ) -> ArrivalSpec:
        """Build from raw form fields; blank minute/second count as zero."""

        def _field(name: str, raw: str | int | None, *, required: bool) -> int:
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                if required:
                    raise InvalidArrivalSpecError(
                        f"Arrival {name} is required", {"field": name}
                    )
                return 0
            try:
                return int(str(raw).strip())
            except ValueError as exc:
                raise InvalidArrivalSpecError(
                    f"Arrival {name} is not a number: {raw!r}", {"field": name}
                ) from exc

        normalized_meridiem = (meridiem or "").strip().upper() or None
        if normalized_meridiem not in {None, "AM", "PM"}:
            raise InvalidArrivalSpecError(
                f"Unknown meridiem {meridiem!r}", {"field": "meridiem"}
            )
        try:
            return cls(
                hour=_field("hour", hour, required=True),
                minute=_field("minute", minute, required=False),
                second=_field("second", second, required=False),
                meridiem=normalized_meridiem,
            )
        except ValueError as exc:
            raise InvalidArrivalSpecError(str(exc), {"field": "hour"}) from exc

    @classmethod
    def from_text(cls, text: str) -> ArrivalSpec:
        """Parse free text such as ``"12:05 AM"`` or ``"17:30:15"``."""
        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidArrivalSpecError("Arrival time is required")
        match = _TIME_OF_DAY.fullmatch(cleaned)
        if match is None:
            raise InvalidArrivalSpecError(
                f"Could not parse arrival time {text!r}", {"text": text}
            )
        meridiem = match["meridiem"]
        if meridiem:
            meridiem = re.sub(r"[.\s]", "", meridiem)
        return cls.parse(match["hour"], match["minute"], match["second"], meridiem)


class TripUpdate(BaseModel):
    """One discrete, timestamped change in trip state."""

    trip_id: str | None
    kind: TripUpdateKind
    value: Any = None
    timestamp: datetime = Field(default_factory=get_current_utc_time)


class TripSnapshot(BaseModel):
    trip_id: str | None = None
    status: TripStatus = TripStatus.IDLE
    destination: Coordinate | None = None
    destination_name: str | None = None
    target: datetime | None = None
    current_position: Coordinate | None = None
    last_distance_km: float = 0.0
    required_speed_kmh: float = 0.0
    remaining_seconds: float = 0.0
    next_refresh_seconds: int = 0
    route_path: list[Coordinate] = Field(default_factory=list)
    last_updated: datetime | None = None
    last_outcome: TripStatus | None = None


__all__ = [
    "ArrivalSpec",
    "Coordinate",
    "Place",
    "RouteResult",
    "TripSnapshot",
    "TripStatus",
    "TripUpdate",
    "TripUpdateKind",
]
