"""Destination services."""

from destinations.services.geocoding import describe_location, suggest_destinations
from destinations.services.history_service import (
    DestinationHistoryService,
    merge_recent,
)

__all__ = [
    "DestinationHistoryService",
    "describe_location",
    "merge_recent",
    "suggest_destinations",
]
