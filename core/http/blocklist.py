"""Host block utilities for HTTP clients."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlparse

# Public endpoints the tests must never reach
PUBLIC_PROVIDER_HOSTS = {
    "nominatim.openstreetmap.org",
    "router.project-osrm.org",
    "valhalla1.openstreetmap.de",
}


def is_forbidden_host(url: str, forbidden_hosts: Iterable[str]) -> bool:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        return False
    forbidden = {item.lower() for item in forbidden_hosts}
    if host in forbidden:
        return True
    return any(host.endswith(f".{item}") for item in forbidden)
