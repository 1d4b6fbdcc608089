"""
Recent and saved destinations.

The recent list keeps the last few distinct destination names, most recent
first. Saved destinations are named places the driver pinned; that list is
not capped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from core.constants import RECENT_DESTINATIONS_LIMIT
from core.mapping.models import Coordinate
from date_utils import get_current_utc_time
from db.models import DestinationEntry, DestinationKind

logger = logging.getLogger(__name__)

# MongoDB stores datetimes with millisecond precision
_USED_AT_RESOLUTION = timedelta(milliseconds=1)


def merge_recent(
    existing: list[str],
    name: str,
    *,
    limit: int = RECENT_DESTINATIONS_LIMIT,
) -> list[str]:
    """Move ``name`` to the front of ``existing``, drop duplicates and cap."""
    return [name, *(item for item in existing if item != name)][:limit]


def _next_used_at(latest: datetime | None) -> datetime:
    now = get_current_utc_time()
    if latest is not None and now < latest + _USED_AT_RESOLUTION:
        return latest + _USED_AT_RESOLUTION
    return now


class DestinationHistoryService:
    """Persistence for the recent and saved destination lists."""

    @staticmethod
    async def list_recent(
        limit: int = RECENT_DESTINATIONS_LIMIT,
    ) -> list[DestinationEntry]:
        return (
            await DestinationEntry.find(
                DestinationEntry.kind == DestinationKind.RECENT,
            )
            .sort(-DestinationEntry.used_at)
            .limit(limit)
            .to_list()
        )

    @staticmethod
    async def add_recent(
        name: str,
        coordinate: Coordinate | None = None,
    ) -> list[DestinationEntry]:
        """Record ``name`` as the most recent destination and trim the list."""
        name = name.strip()
        current = (
            await DestinationEntry.find(
                DestinationEntry.kind == DestinationKind.RECENT,
            )
            .sort(-DestinationEntry.used_at)
            .to_list()
        )
        latest = current[0].used_at if current else None
        used_at = _next_used_at(latest)

        entry = next((item for item in current if item.name == name), None)
        if entry is None:
            entry = DestinationEntry(
                name=name,
                kind=DestinationKind.RECENT,
                coordinate=coordinate,
                used_at=used_at,
            )
            await entry.insert()
            current.insert(0, entry)
        else:
            entry.used_at = used_at
            if coordinate is not None:
                entry.coordinate = coordinate
            await entry.save()

        keep = set(merge_recent([item.name for item in current], name))
        for stale in current:
            if stale.name not in keep:
                await stale.delete()
                logger.debug("Dropped %r from recent destinations", stale.name)

        return await DestinationHistoryService.list_recent()

    @staticmethod
    async def list_saved() -> list[DestinationEntry]:
        return (
            await DestinationEntry.find(
                DestinationEntry.kind == DestinationKind.SAVED,
            )
            .sort(+DestinationEntry.name)
            .to_list()
        )

    @staticmethod
    async def save(
        name: str,
        coordinate: Coordinate | None = None,
    ) -> DestinationEntry:
        """Save (or update) a named destination."""
        name = name.strip()
        entry = await DestinationEntry.find_one(
            DestinationEntry.kind == DestinationKind.SAVED,
            DestinationEntry.name == name,
        )
        if entry is None:
            entry = DestinationEntry(
                name=name,
                kind=DestinationKind.SAVED,
                coordinate=coordinate,
            )
            await entry.insert()
            logger.info("Saved destination %r", name)
            return entry

        entry.used_at = get_current_utc_time()
        if coordinate is not None:
            entry.coordinate = coordinate
        await entry.save()
        return entry

    @staticmethod
    async def remove_saved(name: str) -> bool:
        entry = await DestinationEntry.find_one(
            DestinationEntry.kind == DestinationKind.SAVED,
            DestinationEntry.name == name.strip(),
        )
        if entry is None:
            return False
        await entry.delete()
        logger.info("Removed saved destination %r", entry.name)
        return True
