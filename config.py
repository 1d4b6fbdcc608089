"""Centralized configuration for environment variables and external APIs.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.

URL getters read the environment at call time so tests and long-running
processes can override providers without re-importing this module.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


# --- Logging ---
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_level() -> int:
    level = getattr(logging, LOG_LEVEL, None)
    return level if isinstance(level, int) else logging.INFO


# --- Geocoding (Nominatim) ---
DEFAULT_NOMINATIM_BASE_URL: Final[str] = "https://nominatim.openstreetmap.org"
DEFAULT_NOMINATIM_USER_AGENT: Final[str] = "DriveTimer/1.0"


def get_nominatim_base_url() -> str:
    base = os.getenv("NOMINATIM_BASE_URL", "").strip() or DEFAULT_NOMINATIM_BASE_URL
    return base.rstrip("/")


def get_nominatim_search_url() -> str:
    return f"{get_nominatim_base_url()}/search"


def get_nominatim_reverse_url() -> str:
    return f"{get_nominatim_base_url()}/reverse"


def get_nominatim_user_agent() -> str:
    return os.getenv("NOMINATIM_USER_AGENT", "").strip() or DEFAULT_NOMINATIM_USER_AGENT


# --- Routing ---
DEFAULT_ROUTING_PROVIDER: Final[str] = "osrm"
DEFAULT_OSRM_BASE_URL: Final[str] = "https://router.project-osrm.org"
DEFAULT_VALHALLA_BASE_URL: Final[str] = "http://localhost:8002"


def get_routing_provider() -> str:
    provider = os.getenv("ROUTING_PROVIDER", "").strip().lower()
    return provider or DEFAULT_ROUTING_PROVIDER


def get_osrm_base_url() -> str:
    base = os.getenv("OSRM_BASE_URL", "").strip() or DEFAULT_OSRM_BASE_URL
    return base.rstrip("/")


def get_osrm_profile() -> str:
    return os.getenv("OSRM_PROFILE", "").strip() or "driving"


def get_valhalla_route_url() -> str:
    base = os.getenv("VALHALLA_BASE_URL", "").strip() or DEFAULT_VALHALLA_BASE_URL
    return f"{base.rstrip('/')}/route"


def get_valhalla_costing() -> str:
    return os.getenv("VALHALLA_COSTING", "").strip() or "auto"


def get_blocked_hosts() -> set[str]:
    """Hosts outbound requests must never reach (comma-separated env list)."""
    raw = os.getenv("BLOCKED_HOSTS", "")
    return {host.strip().lower() for host in raw.split(",") if host.strip()}


# --- Trip tracking ---
POSITION_SAMPLE_TIMEOUT_SECONDS: Final[float] = _env_float(
    "POSITION_SAMPLE_TIMEOUT_SECONDS", 10.0
)
POSITION_MAX_FIX_AGE_SECONDS: Final[float] = _env_float(
    "POSITION_MAX_FIX_AGE_SECONDS", 5.0
)
INITIAL_ROUTE_TIMEOUT_SECONDS: Final[float] = _env_float(
    "INITIAL_ROUTE_TIMEOUT_SECONDS", 10.0
)
COUNTDOWN_TICK_SECONDS: Final[float] = _env_float("COUNTDOWN_TICK_SECONDS", 1.0)


def get_static_position() -> tuple[float, float] | None:
    """
    Fixed ``lat,lon`` to use instead of device reports (development only).

    Returns None when STATIC_POSITION is unset or malformed.
    """
    raw = os.getenv("STATIC_POSITION", "").strip()
    if not raw:
        return None
    try:
        lat_text, lon_text = raw.split(",", 1)
        return float(lat_text), float(lon_text)
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring malformed STATIC_POSITION %r", raw
        )
        return None


# --- Persistence / events ---
DEFAULT_MONGO_URI: Final[str] = "mongodb://localhost:27017"
DEFAULT_MONGO_DATABASE: Final[str] = "drive_timer"
PUBLISH_TRIP_EVENTS_TO_REDIS: Final[bool] = _env_bool("PUBLISH_TRIP_EVENTS_TO_REDIS")


def get_mongo_uri() -> str:
    return os.getenv("MONGODB_URI", "").strip() or DEFAULT_MONGO_URI


def get_mongo_database() -> str:
    return os.getenv("MONGODB_DATABASE", "").strip() or DEFAULT_MONGO_DATABASE


__all__ = [
    "COUNTDOWN_TICK_SECONDS",
    "INITIAL_ROUTE_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "POSITION_MAX_FIX_AGE_SECONDS",
    "POSITION_SAMPLE_TIMEOUT_SECONDS",
    "PUBLISH_TRIP_EVENTS_TO_REDIS",
    "get_blocked_hosts",
    "get_log_level",
    "get_mongo_database",
    "get_mongo_uri",
    "get_nominatim_base_url",
    "get_nominatim_reverse_url",
    "get_nominatim_search_url",
    "get_nominatim_user_agent",
    "get_osrm_base_url",
    "get_osrm_profile",
    "get_routing_provider",
    "get_static_position",
    "get_valhalla_costing",
    "get_valhalla_route_url",
]
