"""Environment-driven settings for the route comparison backend.

All values come from environment variables so that no credential is ever
checked into the codebase:

  HERE_API_KEY              API key for the HERE geocoding and routing APIs.
  ROUTE_TRANSPORT_MODE      Routing transport mode (default "car").
  ROUTE_REQUEST_TIMEOUT_S   Per-call timeout in seconds (default 10).
  ROUTE_VIA_WAYPOINT        "lat,lng" of the via-waypoint variant.
"""

import os
from dataclasses import dataclass, field

from models import Coordinate

DEFAULT_TRANSPORT_MODE: str = "car"
DEFAULT_REQUEST_TIMEOUT_S: float = 10.0
DEFAULT_VIA_WAYPOINT = Coordinate(lat=51.0965, lng=6.9342)


@dataclass(frozen=True)
class Settings:
    """Process-wide, read-only configuration."""

    api_key: str = field(default="", repr=False)
    transport_mode: str = DEFAULT_TRANSPORT_MODE
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    via_waypoint: Coordinate = DEFAULT_VIA_WAYPOINT


def parse_coordinate(text: str) -> Coordinate | None:
    """Parses a ``lat,lng`` string, returning None if it is not one."""
    parts = text.split(",")
    if len(parts) != 2:
        return None
    try:
        lat, lng = float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinate(lat=lat, lng=lng)


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Builds ``Settings`` from [environ] (defaults to ``os.environ``).

    Raises:
        ValueError: If a numeric or coordinate variable is malformed.
    """
    env = os.environ if environ is None else environ

    timeout_raw = env.get("ROUTE_REQUEST_TIMEOUT_S", "")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_REQUEST_TIMEOUT_S
    except ValueError as exc:
        raise ValueError(
            f"ROUTE_REQUEST_TIMEOUT_S must be a number, got {timeout_raw!r}"
        ) from exc
    if timeout <= 0:
        raise ValueError("ROUTE_REQUEST_TIMEOUT_S must be positive.")

    via_raw = env.get("ROUTE_VIA_WAYPOINT", "")
    via = DEFAULT_VIA_WAYPOINT
    if via_raw:
        via = parse_coordinate(via_raw)
        if via is None:
            raise ValueError(
                f"ROUTE_VIA_WAYPOINT must be 'lat,lng', got {via_raw!r}"
            )

    return Settings(
        api_key=env.get("HERE_API_KEY", "").strip(),
        transport_mode=env.get("ROUTE_TRANSPORT_MODE", "") or DEFAULT_TRANSPORT_MODE,
        request_timeout_s=timeout,
        via_waypoint=via,
    )
