"""Beanie ODM document models for MongoDB collections.

Usage:
    from db.models import DestinationEntry

    recent = await DestinationEntry.find(
        DestinationEntry.kind == DestinationKind.RECENT
    ).sort(-DestinationEntry.used_at).to_list()
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from beanie import Document
from pydantic import Field, field_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from core.mapping.models import Coordinate
from date_utils import get_current_utc_time, parse_timestamp


class DestinationKind(str, Enum):
    RECENT = "recent"
    SAVED = "saved"


class DestinationEntry(Document):
    """A destination the driver used recently or saved by name."""

    name: str
    kind: DestinationKind = DestinationKind.RECENT
    coordinate: Coordinate | None = None
    used_at: datetime = Field(default_factory=get_current_utc_time)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            msg = "Destination name must not be blank"
            raise ValueError(msg)
        return stripped

    @field_validator("used_at", mode="before")
    @classmethod
    def _parse_used_at(cls, value):
        # Naive values from the driver are UTC
        if isinstance(value, str | datetime):
            return parse_timestamp(value)
        return value

    class Settings:
        name = "destinations"
        indexes = [
            IndexModel(
                [("kind", ASCENDING), ("name", ASCENDING)],
                name="destinations_kind_name_idx",
                unique=True,
            ),
            IndexModel(
                [("kind", ASCENDING), ("used_at", DESCENDING)],
                name="destinations_kind_used_at_idx",
            ),
        ]


# List of all document models for Beanie initialization
ALL_DOCUMENT_MODELS = [
    DestinationEntry,
]
