import aiohttp
import pytest

from core.exceptions import ExternalServiceException
from core.http.circuit_breaker import CircuitOpen
from core.mapping.models import Coordinate
from destinations.services.geocoding import describe_location, suggest_destinations
from tracking_fakes import FakeGeocoder, make_place

POINT = Coordinate(latitude=51.5007, longitude=-0.1246)


@pytest.mark.asyncio
async def test_describe_location_uses_display_name() -> None:
    geocoder = FakeGeocoder(reverse_payload={"display_name": "Big Ben, London"})

    assert await describe_location(POINT, geocoder=geocoder) == "Big Ben, London"
    assert geocoder.reverse_calls == [(51.5007, -0.1246)]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [None, {}, {"display_name": ""}])
async def test_describe_location_falls_back_to_coordinates(payload) -> None:
    geocoder = FakeGeocoder(reverse_payload=payload)

    assert await describe_location(POINT, geocoder=geocoder) == "51.5007, -0.1246"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ExternalServiceException("Nominatim reverse error: 500"),
        CircuitOpen("Nominatim", 30),
        aiohttp.ClientConnectionError("reset"),
        TimeoutError(),
    ],
)
async def test_describe_location_survives_geocoder_failures(error) -> None:
    geocoder = FakeGeocoder(error=error)

    assert await describe_location(POINT, geocoder=geocoder) == "51.5007, -0.1246"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", "abc", " ab "])
async def test_short_queries_return_no_suggestions(query: str) -> None:
    geocoder = FakeGeocoder([make_place("Abbey Road")])

    assert await suggest_destinations(query, geocoder=geocoder) == []
    assert geocoder.search_calls == []


@pytest.mark.asyncio
async def test_suggestions_are_capped() -> None:
    places = [make_place(f"Main Street {index}") for index in range(8)]
    geocoder = FakeGeocoder(places)

    results = await suggest_destinations("  Main ", geocoder=geocoder, limit=3)

    assert [place.display_name for place in results] == [
        "Main Street 0",
        "Main Street 1",
        "Main Street 2",
    ]
    assert geocoder.search_calls == [("Main", 3)]
