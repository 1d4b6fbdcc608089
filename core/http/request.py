"""
JSON-over-HTTP helper shared by the geocoder and router clients.

Every provider call goes through ``request_json`` so blocked hosts, rate
limits, unexpected statuses and malformed bodies map to the same domain
exceptions regardless of provider.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from aiohttp import ContentTypeError

from config import get_blocked_hosts
from core.exceptions import ExternalServiceException, RateLimitException
from core.http.blocklist import is_forbidden_host

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 5


def _retry_after(headers: Any) -> int:
    raw = (headers or {}).get("Retry-After")
    try:
        return max(0, int(raw))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _request_fn(session: Any, method: str, url: str, service_name: str):
    if method == "GET":
        return session.get
    if method == "POST":
        return session.post
    msg = f"{service_name} request error: unsupported method {method}"
    raise ExternalServiceException(msg, {"url": url})


async def _check_status(
    response: Any,
    *,
    expected: set[int],
    url: str,
    service_name: str,
) -> None:
    response_url = str(getattr(response, "url", url))
    if response.status == 429:
        msg = f"{service_name} error: 429"
        raise RateLimitException(
            msg,
            {
                "status": 429,
                "retry_after": _retry_after(response.headers),
                "url": response_url,
            },
        )
    if response.status not in expected:
        msg = f"{service_name} error: {response.status}"
        raise ExternalServiceException(
            msg,
            {
                "status": response.status,
                "body": await response.text(),
                "url": response_url,
            },
        )


async def request_json(
    method: str,
    url: str,
    *,
    session: Any,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    expected_status: int | Iterable[int] = 200,
    none_on: Iterable[int] | None = None,
    service_name: str = "Service",
    timeout: Any | None = None,
) -> Any | None:
    """
    Send one request and decode its JSON body.

    Returns None when the response status is listed in ``none_on``.

    Raises:
        ValueError: ``url`` points at a host listed in BLOCKED_HOSTS.
        RateLimitException: the provider answered 429.
        ExternalServiceException: unexpected status or a body that is not JSON.
    """
    if is_forbidden_host(url, get_blocked_hosts()):
        msg = f"{service_name} blocked host: {url}"
        raise ValueError(msg)

    send = _request_fn(session, method.upper(), url, service_name)
    expected = (
        {expected_status} if isinstance(expected_status, int) else set(expected_status)
    )
    request_kwargs: dict[str, Any] = {"params": params, "json": json, "headers": headers}
    if timeout is not None:
        request_kwargs["timeout"] = timeout

    async with send(url, **request_kwargs) as response:
        if response.status in set(none_on or ()):
            logger.debug("%s returned %s for %s", service_name, response.status, url)
            return None
        await _check_status(
            response,
            expected=expected,
            url=url,
            service_name=service_name,
        )
        try:
            return await response.json()
        except (ContentTypeError, ValueError) as exc:
            msg = f"{service_name} error: malformed JSON response"
            raise ExternalServiceException(msg, {"url": url}) from exc
