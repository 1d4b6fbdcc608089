"""Global constants for the core package.

This module contains shared constants used across the application core.
"""

from typing import Final

# HTTP Client Constants
HTTP_CONNECTION_LIMIT: Final[int] = 10
HTTP_TIMEOUT_CONNECT: Final[float] = 10.0
HTTP_TIMEOUT_SOCK_READ: Final[float] = 20.0
HTTP_TIMEOUT_TOTAL: Final[float] = 30.0
HTTP_USER_AGENT: Final[str] = "DriveTimer/1.0"

# Unit Conversion
METERS_PER_KILOMETER: Final[float] = 1000.0
SECONDS_PER_HOUR: Final[float] = 3600.0

# History
RECENT_DESTINATIONS_LIMIT: Final[int] = 5
SUGGESTION_MIN_QUERY_LENGTH: Final[int] = 4
SUGGESTION_LIMIT: Final[int] = 5
