from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.exceptions import ExternalServiceException
from core.mapping.models import Coordinate
from db.models import DestinationKind
from destinations import api as destinations_api
from destinations.services.history_service import DestinationHistoryService
from tracking_fakes import make_place


def _entry(name: str, kind: DestinationKind, coordinate: Coordinate | None = None):
    return SimpleNamespace(
        name=name,
        kind=kind,
        coordinate=coordinate,
        used_at=datetime(2026, 10, 18, 9, 30, tzinfo=UTC),
    )


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.include_router(destinations_api.router)
    return TestClient(app)


def test_search_returns_suggestions(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    suggest = AsyncMock(return_value=[make_place("Pike Place Market")])
    monkeypatch.setattr(destinations_api, "suggest_destinations", suggest)

    response = client.get("/api/destinations/search", params={"q": "Pike"})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "Pike"
    assert body["results"][0]["display_name"] == "Pike Place Market"
    suggest.assert_awaited_once_with("Pike")


def test_search_requires_query(client: TestClient) -> None:
    assert client.get("/api/destinations/search").status_code == 422


def test_search_maps_geocoder_outage_to_502(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(
        destinations_api,
        "suggest_destinations",
        AsyncMock(side_effect=ExternalServiceException("Nominatim search error: 500")),
    )

    response = client.get("/api/destinations/search", params={"q": "Pike Place"})

    assert response.status_code == 502
    assert response.json()["detail"].startswith("External service error")


def test_reverse_geocode(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    describe = AsyncMock(return_value="Space Needle, Seattle")
    monkeypatch.setattr(destinations_api, "describe_location", describe)

    response = client.get(
        "/api/destinations/reverse",
        params={"lat": 47.6205, "lon": -122.3493},
    )

    assert response.status_code == 200
    assert response.json() == {
        "coordinate": {"latitude": 47.6205, "longitude": -122.3493},
        "display_name": "Space Needle, Seattle",
    }


def test_reverse_geocode_validates_range(client: TestClient) -> None:
    response = client.get("/api/destinations/reverse", params={"lat": 91, "lon": 0})

    assert response.status_code == 422


def test_list_recent(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    entries = [
        _entry("Work", DestinationKind.RECENT),
        _entry("Gym", DestinationKind.RECENT, Coordinate(latitude=1.0, longitude=2.0)),
    ]
    monkeypatch.setattr(
        DestinationHistoryService,
        "list_recent",
        AsyncMock(return_value=entries),
    )

    response = client.get("/api/destinations/recent")

    assert response.status_code == 200
    assert response.json() == [
        {
            "name": "Work",
            "kind": "recent",
            "coordinate": None,
            "used_at": "2026-10-18T09:30:00+00:00",
        },
        {
            "name": "Gym",
            "kind": "recent",
            "coordinate": {"latitude": 1.0, "longitude": 2.0},
            "used_at": "2026-10-18T09:30:00+00:00",
        },
    ]


def test_save_destination(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    home = Coordinate(latitude=10.0, longitude=20.0)
    save = AsyncMock(return_value=_entry("Home", DestinationKind.SAVED, home))
    monkeypatch.setattr(DestinationHistoryService, "save", save)

    response = client.post(
        "/api/destinations/saved",
        json={"name": "Home", "latitude": 10.0, "longitude": 20.0},
    )

    assert response.status_code == 200
    assert response.json()["kind"] == "saved"
    save.assert_awaited_once_with("Home", home)


def test_save_destination_rejects_blank_name(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    save = AsyncMock()
    monkeypatch.setattr(DestinationHistoryService, "save", save)

    response = client.post("/api/destinations/saved", json={"name": "  "})

    assert response.status_code == 400
    save.assert_not_awaited()


def test_list_saved(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        DestinationHistoryService,
        "list_saved",
        AsyncMock(return_value=[_entry("Home", DestinationKind.SAVED)]),
    )

    response = client.get("/api/destinations/saved")

    assert [item["name"] for item in response.json()] == ["Home"]


@pytest.mark.parametrize(("removed", "expected_status"), [(True, 200), (False, 404)])
def test_delete_saved_destination(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    removed: bool,
    expected_status: int,
) -> None:
    remove = AsyncMock(return_value=removed)
    monkeypatch.setattr(DestinationHistoryService, "remove_saved", remove)

    response = client.delete("/api/destinations/saved/Home")

    assert response.status_code == expected_status
    remove.assert_awaited_once_with("Home")
