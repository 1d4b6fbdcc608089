import pytest

from core.mapping.models import Coordinate
from db.models import DestinationEntry, DestinationKind
from destinations.services.history_service import DestinationHistoryService, merge_recent


def test_merge_recent_moves_existing_name_to_front() -> None:
    assert merge_recent(["B", "A", "C"], "A") == ["A", "B", "C"]


def test_merge_recent_caps_the_list() -> None:
    names: list[str] = []
    for name in ["A", "B", "A", "C", "D", "E", "F"]:
        names = merge_recent(names, name)

    assert names == ["F", "E", "D", "C", "A"]


def test_merge_recent_honours_custom_limit() -> None:
    assert merge_recent(["A", "B"], "C", limit=2) == ["C", "A"]


def test_destination_entry_rejects_blank_name(beanie_db) -> None:
    with pytest.raises(ValueError, match="blank"):
        DestinationEntry(name="   ", kind=DestinationKind.SAVED)


@pytest.mark.asyncio
async def test_add_recent_keeps_five_distinct_names(beanie_db) -> None:
    for name in ["A", "B", "A", "C", "D", "E"]:
        await DestinationHistoryService.add_recent(name)

    recent = await DestinationHistoryService.list_recent()

    assert [entry.name for entry in recent] == ["E", "D", "C", "A", "B"]

    await DestinationHistoryService.add_recent("F")
    recent = await DestinationHistoryService.list_recent()
    assert [entry.name for entry in recent] == ["F", "E", "D", "C", "A"]
    assert await DestinationEntry.find(
        DestinationEntry.kind == DestinationKind.RECENT,
    ).count() == 5


@pytest.mark.asyncio
async def test_add_recent_updates_coordinate_of_repeated_name(beanie_db) -> None:
    await DestinationHistoryService.add_recent("Office")
    coordinate = Coordinate(latitude=40.0, longitude=-75.0)

    recent = await DestinationHistoryService.add_recent("  Office ", coordinate)

    assert len(recent) == 1
    assert recent[0].name == "Office"
    assert recent[0].coordinate == coordinate


@pytest.mark.asyncio
async def test_saved_destinations_round_trip(beanie_db) -> None:
    home = Coordinate(latitude=34.0, longitude=-118.0)
    await DestinationHistoryService.save("Work")
    await DestinationHistoryService.save("Home", home)
    await DestinationHistoryService.save("Home", Coordinate(latitude=35.0, longitude=-118.0))

    saved = await DestinationHistoryService.list_saved()

    assert [entry.name for entry in saved] == ["Home", "Work"]
    assert saved[0].coordinate.latitude == 35.0

    assert await DestinationHistoryService.remove_saved("Work") is True
    assert await DestinationHistoryService.remove_saved("Work") is False
    assert [entry.name for entry in await DestinationHistoryService.list_saved()] == [
        "Home"
    ]


@pytest.mark.asyncio
async def test_recent_and_saved_lists_are_independent(beanie_db) -> None:
    await DestinationHistoryService.save("Gym")
    await DestinationHistoryService.add_recent("Gym")

    assert [entry.name for entry in await DestinationHistoryService.list_recent()] == [
        "Gym"
    ]
    assert await DestinationHistoryService.remove_saved("Gym") is True
    assert len(await DestinationHistoryService.list_recent()) == 1
