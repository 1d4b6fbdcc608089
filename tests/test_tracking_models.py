import pytest
from pydantic import ValidationError

from core.exceptions import InvalidArrivalSpecError
from core.mapping.models import Coordinate, RouteResult
from tracking.models import ArrivalSpec, TripSnapshot, TripStatus, TripUpdate, TripUpdateKind


def test_coordinate_is_immutable_and_range_checked() -> None:
    point = Coordinate(latitude=34.0, longitude=-118.0)
    with pytest.raises(ValidationError):
        point.latitude = 1.0  # type: ignore[misc]
    with pytest.raises(ValidationError):
        Coordinate(latitude=91.0, longitude=0.0)
    with pytest.raises(ValidationError):
        Coordinate(latitude=0.0, longitude=-181.0)


def test_coordinate_format_and_geojson_order() -> None:
    point = Coordinate.from_lon_lat([-118.25, 34.05])
    assert point.latitude == 34.05
    assert point.as_lon_lat() == [-118.25, 34.05]
    assert point.format() == "34.0500, -118.2500"


def test_route_result_resolution() -> None:
    path = [Coordinate(latitude=0, longitude=0), Coordinate(latitude=0, longitude=1)]
    assert RouteResult(distance_km=1.2, path=path).resolved
    assert not RouteResult(distance_km=0.0, path=path).resolved
    assert not RouteResult(distance_km=1.2, path=[]).resolved
    assert not RouteResult.unresolved().resolved


@pytest.mark.parametrize(
    ("spec", "hour_24"),
    [
        (ArrivalSpec(hour=12, meridiem="AM"), 0),
        (ArrivalSpec(hour=12, meridiem="PM"), 12),
        (ArrivalSpec(hour=1, meridiem="PM"), 13),
        (ArrivalSpec(hour=11, meridiem="AM"), 11),
        (ArrivalSpec(hour=23), 23),
    ],
)
def test_arrival_spec_hour_24(spec: ArrivalSpec, hour_24: int) -> None:
    assert spec.hour_24 == hour_24


def test_arrival_spec_parse_treats_blank_fields_as_zero() -> None:
    spec = ArrivalSpec.parse("7", "", None, "pm")
    assert (spec.hour, spec.minute, spec.second, spec.meridiem) == (7, 0, 0, "PM")
    assert spec.hour_24 == 19


@pytest.mark.parametrize(
    ("hour", "minute", "second", "meridiem"),
    [
        ("", "10", "0", None),
        ("abc", "0", "0", None),
        ("13", "0", "0", "PM"),
        ("0", "0", "0", "AM"),
        ("24", "0", "0", None),
        ("10", "60", "0", None),
        ("10", "0", "61", None),
        ("10", "0", "0", "XM"),
    ],
)
def test_arrival_spec_parse_rejects_bad_input(
    hour: str,
    minute: str,
    second: str,
    meridiem: str | None,
) -> None:
    with pytest.raises(InvalidArrivalSpecError):
        ArrivalSpec.parse(hour, minute, second, meridiem)


def test_arrival_spec_from_text() -> None:
    spec = ArrivalSpec.from_text("5:45:10 PM")
    assert (spec.hour_24, spec.minute, spec.second) == (17, 45, 10)
    assert ArrivalSpec.from_text("12:05 AM").hour_24 == 0

    with pytest.raises(InvalidArrivalSpecError):
        ArrivalSpec.from_text("half past never")
    with pytest.raises(InvalidArrivalSpecError):
        ArrivalSpec.from_text("   ")


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5", (5, 0, 0)),
        ("17:30", (17, 30, 0)),
        ("5pm", (17, 0, 0)),
        ("7.30 p.m.", (19, 30, 0)),
        ("12 PM", (12, 0, 0)),
    ],
)
def test_arrival_spec_from_text_reads_times_of_day(
    text: str, expected: tuple[int, int, int]
) -> None:
    spec = ArrivalSpec.from_text(text)
    assert (spec.hour_24, spec.minute, spec.second) == expected


@pytest.mark.parametrize(
    "text",
    ["2026-01-01", "tomorrow 5pm", "Jan 5", "5:7", "25:00", "13 PM", "5:30:00:00"],
)
def test_arrival_spec_from_text_rejects_dates_and_bad_times(text: str) -> None:
    with pytest.raises(InvalidArrivalSpecError):
        ArrivalSpec.from_text(text)


def test_snapshot_carries_last_outcome() -> None:
    snapshot = TripSnapshot(last_outcome=TripStatus.COMPLETED)
    assert snapshot.model_dump(mode="json")["last_outcome"] == "completed"
    assert TripSnapshot().last_outcome is None


def test_trip_update_serializes_with_timestamp() -> None:
    update = TripUpdate(trip_id="abc", kind=TripUpdateKind.SPEED, value=42.5)
    payload = update.model_dump(mode="json")
    assert payload["kind"] == "speed"
    assert payload["value"] == 42.5
    assert payload["timestamp"]


def test_idle_snapshot_defaults() -> None:
    snapshot = TripSnapshot()
    assert snapshot.status is TripStatus.IDLE
    assert snapshot.required_speed_kmh == 0.0
    assert snapshot.route_path == []
