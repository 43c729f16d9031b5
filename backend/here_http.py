"""Shared HTTP plumbing for the HERE geocoding and routing APIs."""

import asyncio
import logging
import re
from typing import Any

import httpx

from errors import RouteComparisonError, ServiceTimeoutError

logger = logging.getLogger(__name__)

# Matches the HERE credential in a logged URL (geocoding uses "apiKey",
# routing uses "apikey").
_API_KEY_PATTERN = re.compile(r"(api[kK]ey=)[^&\s'\"]+")


class ApiKeyRedactingFilter(logging.Filter):
    """Masks API keys in records emitted by the HTTP client libraries.

    httpx logs every request URL at INFO, query string included.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _API_KEY_PATTERN.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


for _name in ("httpx", "httpcore"):
    logging.getLogger(_name).addFilter(ApiKeyRedactingFilter())


async def get_json(
    client: httpx.AsyncClient | None,
    url: str,
    params: dict[str, Any],
    *,
    timeout: float,
    error_cls: type[RouteComparisonError],
    service: str,
) -> Any:
    """GETs [url] and returns the decoded JSON body.

    The whole call is bounded by [timeout] seconds. The query parameters
    carry the API key: this module logs none of them, and request lines
    logged by httpx pass through ``ApiKeyRedactingFilter``.

    Raises:
        ServiceTimeoutError: If the service does not answer in time.
        error_cls: On network errors, non-success status, or a body that is
            not JSON.
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await asyncio.wait_for(
                    own_client.get(url, params=params), timeout
                )
        else:
            response = await asyncio.wait_for(
                client.get(url, params=params), timeout
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("%s request timed out after %.1fs", service, timeout)
        raise ServiceTimeoutError(
            f"{service} did not respond within {timeout:.1f}s"
        ) from exc
    except httpx.RequestError as exc:
        logger.warning("%s request failed: %s", service, type(exc).__name__)
        raise error_cls(f"{service} request failed: {type(exc).__name__}") from exc

    if not response.is_success:
        logger.warning("%s returned HTTP %d", service, response.status_code)
        raise error_cls(f"{service} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(
            f"{service} returned a body that is not JSON",
            cause="malformed_response",
            user_message=(
                f"{service} returned a malformed response. Please report this."
            ),
        ) from exc
