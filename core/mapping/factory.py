"""
Factory functions resolving the active geocoder and router.
"""

import logging

from config import get_routing_provider
from core.exceptions import ValidationException
from core.http.nominatim import NominatimClient
from core.http.osrm import OsrmClient
from core.http.valhalla import ValhallaClient
from core.mapping.interfaces import Geocoder, Router

logger = logging.getLogger(__name__)

_ROUTERS = {
    "osrm": OsrmClient,
    "valhalla": ValhallaClient,
}

_geocoder: NominatimClient | None = None
_router: Router | None = None


def clear_provider_cache() -> None:
    """Drop cached clients so configuration changes take effect."""
    global _geocoder, _router
    _geocoder = None
    _router = None


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = NominatimClient()
    return _geocoder


def get_router() -> Router:
    """
    Return the router selected by ROUTING_PROVIDER (``osrm`` by default).
    """
    global _router
    if _router is None:
        provider = get_routing_provider()
        router_cls = _ROUTERS.get(provider)
        if router_cls is None:
            raise ValidationException(
                f"Unknown routing provider '{provider}'. "
                f"Expected one of: {', '.join(sorted(_ROUTERS))}.",
                {"code": "routing_provider_unknown"},
            )
        logger.info("Using %s routing provider", provider)
        _router = router_cls()
    return _router
