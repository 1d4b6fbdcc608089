from unittest.mock import AsyncMock

import pytest

from core.exceptions import ExternalServiceException, RouteUnresolvedException
from core.http.osrm import OsrmClient
from tests.http_fakes import FakeResponse, FakeSession
from tracking_fakes import DESTINATION, ORIGIN


def _use_session(monkeypatch: pytest.MonkeyPatch, session: FakeSession) -> None:
    monkeypatch.setattr(
        "core.http.osrm.get_session",
        AsyncMock(return_value=session),
    )


def _ok_payload(distance_m: float = 15234.0) -> dict:
    return {
        "code": "Ok",
        "routes": [
            {
                "distance": distance_m,
                "duration": 1020.5,
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[-118.0, 34.0], [-118.05, 34.05], [-118.0, 34.1]],
                },
            },
        ],
    }


@pytest.mark.asyncio
async def test_osrm_route_requests_geojson_overview(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("OSRM_BASE_URL", "http://osrm.local:5000/")
    session = FakeSession(get_responses=[FakeResponse(json_data=_ok_payload())])
    _use_session(monkeypatch, session)

    result = await OsrmClient().route(ORIGIN, DESTINATION)

    method, url, kwargs = session.requests[0]
    assert method == "GET"
    assert url == "http://osrm.local:5000/route/v1/driving/-118.0,34.0;-118.0,34.1"
    assert kwargs["params"] == {"overview": "full", "geometries": "geojson"}
    assert result.distance_km == pytest.approx(15.234)
    assert result.duration_seconds == pytest.approx(1020.5)
    assert result.path[0] == ORIGIN
    assert result.path[-1] == DESTINATION
    assert result.resolved


@pytest.mark.asyncio
async def test_osrm_no_route_is_unresolved(monkeypatch: pytest.MonkeyPatch) -> None:
    response = FakeResponse(
        status=400,
        json_data={"code": "NoRoute", "message": "Impossible route between points"},
    )
    _use_session(monkeypatch, FakeSession(get_responses=[response]))

    with pytest.raises(RouteUnresolvedException, match="NoRoute"):
        await OsrmClient().route(ORIGIN, DESTINATION)


@pytest.mark.asyncio
async def test_osrm_server_error_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    response = FakeResponse(status=503, text_data="maintenance")
    _use_session(monkeypatch, FakeSession(get_responses=[response]))

    with pytest.raises(ExternalServiceException) as raised:
        await OsrmClient().route(ORIGIN, DESTINATION)

    assert raised.value.details["status"] == 503


@pytest.mark.asyncio
async def test_osrm_does_not_retry(monkeypatch: pytest.MonkeyPatch) -> None:
    session = FakeSession(
        get_responses=[
            FakeResponse(status=502, text_data="bad gateway"),
            FakeResponse(json_data=_ok_payload()),
        ],
    )
    _use_session(monkeypatch, session)

    with pytest.raises(ExternalServiceException):
        await OsrmClient().route(ORIGIN, DESTINATION)
    assert len(session.requests) == 1


@pytest.mark.asyncio
async def test_blocked_host_is_refused(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLOCKED_HOSTS", "router.project-osrm.org")
    session = FakeSession()
    _use_session(monkeypatch, session)

    with pytest.raises(ValueError, match="blocked host"):
        await OsrmClient().route(ORIGIN, DESTINATION)
    assert session.requests == []


def test_normalize_route_response_skips_bad_points() -> None:
    data = _ok_payload()
    data["routes"][0]["geometry"]["coordinates"].insert(1, ["x", "y"])
    data["routes"][0]["geometry"]["coordinates"].insert(1, [1.0])

    result = OsrmClient._normalize_route_response(data)

    assert len(result.path) == 3


def test_normalize_route_response_without_routes() -> None:
    with pytest.raises(RouteUnresolvedException):
        OsrmClient._normalize_route_response({"code": "Ok", "routes": []})
