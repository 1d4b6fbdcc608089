"""HTTP client utilities and session management."""

from core.http.blocklist import PUBLIC_PROVIDER_HOSTS, is_forbidden_host
from core.http.nominatim import NominatimClient
from core.http.osrm import OsrmClient
from core.http.request import request_json
from core.http.retry import retry_async
from core.http.session import cleanup_session, get_session
from core.http.valhalla import ValhallaClient

__all__ = [
    "PUBLIC_PROVIDER_HOSTS",
    "NominatimClient",
    "OsrmClient",
    "ValhallaClient",
    "cleanup_session",
    "get_session",
    "is_forbidden_host",
    "request_json",
    "retry_async",
]
