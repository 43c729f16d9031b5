"""Fetches one route variant from the HERE Routing v8 API."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

import polyline
from config import DEFAULT_REQUEST_TIMEOUT_S
from errors import (
    MalformedPolylineError,
    MissingCredentialError,
    NoRouteSectionError,
    RouteTransportError,
)
from here_http import get_json
from models import Coordinate, Route
from route_variants import RouteVariant

logger = logging.getLogger(__name__)

ROUTER_URL = "https://router.hereapi.com/v8/routes"


class HereRouteFetcher:
    """Requests a variant and normalizes the answer into a ``Route``."""

    def __init__(
        self,
        api_key: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
    ):
        if not api_key or not api_key.strip():
            raise MissingCredentialError("HERE_API_KEY is not set.")
        self._api_key = api_key
        self._client = client
        self._timeout = timeout

    async def fetch(
        self,
        variant: RouteVariant,
        origin: Coordinate,
        destination: Coordinate,
    ) -> Route:
        """Fetches [variant] between [origin] and [destination].

        Only the first route and its first section are used.

        Raises:
            RouteTransportError: On network errors, non-success status, or a
                body that is not JSON.
            NoRouteSectionError: If the service found no viable path.
            MalformedPolylineError: If the section's path cannot be decoded.
            ServiceTimeoutError: If the service does not answer in time.
        """
        params = variant.build_request(origin, destination, self._api_key)
        data = await get_json(
            self._client,
            ROUTER_URL,
            params,
            timeout=self._timeout,
            error_cls=RouteTransportError,
            service="Routing service",
        )

        section = _first_section(data, variant.key)
        summary = section.get("summary")
        encoded = section.get("polyline")
        if not isinstance(summary, dict) or encoded is None:
            raise NoRouteSectionError(
                f"Route section for {variant.key!r} lacks a summary or polyline."
            )
        try:
            duration = float(summary["duration"])
            length = float(summary["length"])
        except (KeyError, TypeError, ValueError) as exc:
            raise NoRouteSectionError(
                f"Route summary for {variant.key!r} lacks duration or length."
            ) from exc

        if not isinstance(encoded, (str, list)):
            raise MalformedPolylineError(
                f"Polyline for {variant.key!r} is neither a string nor a list."
            )
        points = polyline.decode(encoded)
        try:
            path = [Coordinate(lat=lat, lng=lng) for lat, lng in points]
        except ValidationError as exc:
            raise MalformedPolylineError(
                f"Polyline for {variant.key!r} decodes outside valid coordinates."
            ) from exc

        logger.info(
            "Fetched %s: %.0fs, %.0fm, %d points",
            variant.key,
            duration,
            length,
            len(path),
        )
        return Route(
            variant_key=variant.key,
            display_name=variant.display_name,
            color=variant.color,
            duration_seconds=duration,
            length_meters=length,
            path=path,
            origin=origin,
            destination=destination,
        )


def _first_section(data: Any, variant_key: str) -> dict[str, Any]:
    """Returns ``routes[0].sections[0]`` or raises ``NoRouteSectionError``."""
    routes = data.get("routes") if isinstance(data, dict) else None
    if not isinstance(routes, list) or not routes:
        raise NoRouteSectionError(f"No route returned for {variant_key!r}.")
    sections = routes[0].get("sections") if isinstance(routes[0], dict) else None
    if not sections or not isinstance(sections[0], dict):
        raise NoRouteSectionError(f"Route for {variant_key!r} has no sections.")
    return sections[0]
