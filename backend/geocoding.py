"""Address resolution via the HERE Geocoding & Search API."""

import logging

import httpx

from config import DEFAULT_REQUEST_TIMEOUT_S, parse_coordinate
from errors import (
    AddressNotFoundError,
    InvalidInputError,
    MissingCredentialError,
    ResolutionTransportError,
)
from here_http import get_json
from models import Coordinate

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://geocode.search.hereapi.com/v1/geocode"

_MALFORMED_MESSAGE = (
    "The geocoding service returned a malformed response. Please report this."
)


class HereGeocoder:
    """Resolves free-text places to coordinates.

    The service's own ranking is trusted: the first candidate wins. Failed
    lookups are not retried here; retry policy belongs to the caller.
    """

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

    async def resolve(self, address: str) -> Coordinate:
        """Returns the coordinate of [address].

        If [address] is already in ``lat,lng`` form it is parsed directly
        without a network call.

        Raises:
            InvalidInputError: If [address] is blank.
            AddressNotFoundError: If the service has no candidates.
            ResolutionTransportError: On network errors, non-success status,
                or a payload without a usable position.
            ServiceTimeoutError: If the service does not answer in time.
        """
        address = address.strip()
        if not address:
            raise InvalidInputError("address must not be empty.")

        parsed = parse_coordinate(address)
        if parsed is not None:
            return parsed

        data = await get_json(
            self._client,
            GEOCODE_URL,
            {"q": address, "apiKey": self._api_key},
            timeout=self._timeout,
            error_cls=ResolutionTransportError,
            service="Geocoding service",
        )

        items = data.get("items") if isinstance(data, dict) else None
        if items is None:
            raise ResolutionTransportError(
                "Geocoding response has no 'items' list.",
                cause="malformed_response",
                user_message=_MALFORMED_MESSAGE,
            )
        if not items:
            raise AddressNotFoundError(address)

        try:
            position = items[0]["position"]
            coordinate = Coordinate(
                lat=float(position["lat"]), lng=float(position["lng"])
            )
        except (KeyError, TypeError, ValueError) as exc:
            # pydantic.ValidationError is a ValueError: out-of-range positions
            # land here too.
            raise ResolutionTransportError(
                "Geocoding candidate has no usable position.",
                cause="malformed_response",
                user_message=_MALFORMED_MESSAGE,
            ) from exc

        logger.info("Geocoded %r to %s", address, coordinate.as_param())
        return coordinate
