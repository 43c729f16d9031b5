"""Pydantic request and response models for the route comparison backend."""

import math

from pydantic import BaseModel, ConfigDict, Field, computed_field


def _round_half_up(value: float) -> int:
    # round() would send 2.5 to 2.
    return math.floor(value + 0.5)


class Coordinate(BaseModel):
    """A WGS84 point."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def as_param(self) -> str:
        """Returns the ``lat,lng`` form used in map service query strings."""
        return f"{self.lat},{self.lng}"


class ResolvedEndpoint(BaseModel):
    """A user-entered location together with the coordinate it resolved to."""

    model_config = ConfigDict(frozen=True)

    raw: str
    coordinate: Coordinate


class Route(BaseModel):
    """One fetched and decoded route variant."""

    model_config = ConfigDict(frozen=True)

    variant_key: str
    display_name: str
    color: str
    """Display colour assigned to the variant by the catalog."""

    duration_seconds: float
    length_meters: float
    path: list[Coordinate]
    origin: Coordinate
    destination: Coordinate

    @computed_field
    @property
    def duration_minutes(self) -> int:
        return _round_half_up(self.duration_seconds / 60)

    @computed_field
    @property
    def length_km(self) -> int:
        return _round_half_up(self.length_meters / 1000)


class VariantFailure(BaseModel):
    """A variant omitted from a comparison, and why."""

    variant_key: str
    display_name: str
    cause: str
    """Machine-readable cause code, e.g. ``no_route`` or ``timeout``."""

    message: str
    """Human-readable explanation suitable for showing to the rider."""


class ComparisonResult(BaseModel):
    """The complete result of a route comparison.

    ``routes`` follows catalog order, never completion order, so colours and
    legend entries stay stable between runs. Variants that failed are listed
    in ``failures`` instead of leaving gaps in ``routes``.
    """

    origin: ResolvedEndpoint
    destination: ResolvedEndpoint
    routes: list[Route]
    failures: list[VariantFailure] = Field(default_factory=list)
    map_center: Coordinate


# ---------------------------------------------------------------------------
# HTTP bodies
# ---------------------------------------------------------------------------


class CompareRoutesRequest(BaseModel):
    """Request body for the /compare-routes endpoint."""

    start_address: str
    """Start address or 'lat,lng' string."""

    end_address: str
    """End address or 'lat,lng' string."""

    client_id: str | None = None
    """Optional caller identity; a newer request from the same client
    supersedes any of its comparisons still in flight."""


class RouteVariantInfo(BaseModel):
    """Legend entry for a single catalog variant."""

    key: str
    display_name: str
    color: str
