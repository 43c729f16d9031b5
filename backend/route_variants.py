"""The fixed set of route variants requested for every comparison.

Each variant is a pure function from the endpoint pair and API key to the
query parameters of a HERE Routing v8 request. The catalog is built once at
startup and handed to the orchestrator explicitly.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from config import DEFAULT_TRANSPORT_MODE, DEFAULT_VIA_WAYPOINT
from models import Coordinate

# Colours cycled through by catalog position.
PALETTE: tuple[str, ...] = ("red", "blue", "green", "purple")

RequestBuilder = Callable[[Coordinate, Coordinate, str], dict[str, Any]]


@dataclass(frozen=True)
class RouteVariant:
    """A single routing strategy requested for the same endpoint pair."""

    key: str
    display_name: str
    color: str
    build_request: RequestBuilder


class RouteVariantCatalog:
    """An immutable, ordered collection of variants with unique keys."""

    def __init__(self, variants: Sequence[RouteVariant]):
        variants = tuple(variants)
        if not variants:
            raise ValueError("A route variant catalog needs at least one variant.")
        seen: set[str] = set()
        for variant in variants:
            if variant.key in seen:
                raise ValueError(f"Duplicate route variant key: {variant.key!r}")
            seen.add(variant.key)
        self._variants = variants

    def __iter__(self) -> Iterator[RouteVariant]:
        return iter(self._variants)

    def __len__(self) -> int:
        return len(self._variants)

    def __getitem__(self, index: int) -> RouteVariant:
        return self._variants[index]

    def keys(self) -> list[str]:
        return [v.key for v in self._variants]


def _routing_params(
    origin: Coordinate,
    destination: Coordinate,
    api_key: str,
    *,
    transport_mode: str,
    avoid_feature: str | None = None,
    via: Coordinate | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "transportMode": transport_mode,
        "origin": origin.as_param(),
        "destination": destination.as_param(),
        "return": "summary,polyline",
        "apikey": api_key,
    }
    if avoid_feature:
        params["avoid[features]"] = avoid_feature
    if via is not None:
        params["via"] = via.as_param()
    return params


def build_catalog(
    entries: Sequence[tuple[str, str, RequestBuilder]],
) -> RouteVariantCatalog:
    """Builds a catalog from (key, display_name, builder) triples.

    Colours are assigned from ``PALETTE`` by position.
    """
    return RouteVariantCatalog(
        [
            RouteVariant(
                key=key,
                display_name=name,
                color=PALETTE[i % len(PALETTE)],
                build_request=builder,
            )
            for i, (key, name, builder) in enumerate(entries)
        ]
    )


def default_catalog(
    transport_mode: str = DEFAULT_TRANSPORT_MODE,
    via: Coordinate = DEFAULT_VIA_WAYPOINT,
) -> RouteVariantCatalog:
    """Returns the standard comparison set: fastest, no highways, no tolls,
    and a detour through a fixed [via] waypoint."""
    params = partial(_routing_params, transport_mode=transport_mode)
    return build_catalog(
        [
            ("fastest", "Fastest Route", params),
            (
                "avoid_highways",
                "Scenic Route (No Highways)",
                partial(params, avoid_feature="motorway"),
            ),
            (
                "avoid_tolls",
                "Toll-Free Route",
                partial(params, avoid_feature="tollRoad"),
            ),
            ("via_waypoint", "Via Waypoint", partial(params, via=via)),
        ]
    )
