"""Multi-variant route comparison.

Pipeline for one comparison:
  1.  Validate both addresses (no network call on blank input).
  2.  Resolve start and end concurrently; any geocoding failure is fatal.
  3.  Compute the map centre as the midpoint of the two endpoints.
  4.  Fetch every catalog variant concurrently and reassemble the results in
      catalog order, whatever order they complete in.
  5.  Aggregate into a ``ComparisonResult``.

Partial failures are isolated: a variant that fails is omitted from
``routes`` and reported in ``failures``. Only when every variant fails does
the comparison as a whole fail, with the first failure in catalog order.
"""

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import Protocol

import httpx

from config import Settings
from errors import (
    ComparisonSupersededError,
    InvalidInputError,
    RouteComparisonError,
)
from geocoding import HereGeocoder
from models import (
    ComparisonResult,
    Coordinate,
    ResolvedEndpoint,
    Route,
    VariantFailure,
)
from route_fetcher import HereRouteFetcher
from route_variants import RouteVariant, RouteVariantCatalog, default_catalog

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    async def resolve(self, address: str) -> Coordinate: ...


class Fetcher(Protocol):
    async def fetch(
        self, variant: RouteVariant, origin: Coordinate, destination: Coordinate
    ) -> Route: ...


class ComparisonState(enum.Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    DONE = "done"
    FAILED = "failed"


def map_center(a: Coordinate, b: Coordinate) -> Coordinate:
    """Returns the arithmetic midpoint of [a] and [b]."""
    return Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)


def _first_error(results: list) -> BaseException | None:
    for result in results:
        if isinstance(result, BaseException):
            return result
    return None


class ComparisonOrchestrator:
    """Resolves both endpoints and fans out one fetch per catalog variant.

    The orchestrator holds no per-call state, so one instance can serve
    concurrent comparisons. Callers that want to follow a comparison through
    its states pass ``on_state``.
    """

    def __init__(
        self,
        resolver: Resolver,
        fetcher: Fetcher,
        catalog: RouteVariantCatalog,
    ):
        self._resolver = resolver
        self._fetcher = fetcher
        self.catalog = catalog

    async def compare(
        self,
        start_address: str,
        end_address: str,
        *,
        on_state: Callable[[ComparisonState], None] | None = None,
    ) -> ComparisonResult:
        """Compares every catalog variant between the two addresses.

        [on_state] is called with each state this comparison enters:
        RESOLVING, FETCHING, then DONE or FAILED.

        Raises:
            InvalidInputError: If either address is blank.
            AddressNotFoundError, ResolutionTransportError,
            ServiceTimeoutError: If either endpoint cannot be resolved.
            RouteComparisonError: The first variant's error, in catalog
                order, when every variant fails.
        """
        start = (start_address or "").strip()
        end = (end_address or "").strip()

        def _transition(state: ComparisonState) -> None:
            logger.debug("Comparison %r -> %r: %s", start, end, state.value)
            if on_state is not None:
                on_state(state)

        if not start or not end:
            _transition(ComparisonState.FAILED)
            raise InvalidInputError("Both start and end addresses are required.")

        logger.info("Route comparison started: %r -> %r", start, end)
        _transition(ComparisonState.RESOLVING)
        resolved = await asyncio.gather(
            self._resolver.resolve(start),
            self._resolver.resolve(end),
            return_exceptions=True,
        )
        error = _first_error(resolved)
        if error is not None:
            _transition(ComparisonState.FAILED)
            logger.warning("Geocoding failed: %s", error)
            raise error
        origin, destination = resolved
        center = map_center(origin, destination)

        _transition(ComparisonState.FETCHING)
        outcomes = await asyncio.gather(
            *(
                self._fetcher.fetch(variant, origin, destination)
                for variant in self.catalog
            ),
            return_exceptions=True,
        )

        routes: list[Route] = []
        failures: list[VariantFailure] = []
        first_failure: RouteComparisonError | None = None
        # gather() returns results in argument order, i.e. catalog order.
        for variant, outcome in zip(self.catalog, outcomes):
            if isinstance(outcome, RouteComparisonError):
                logger.warning("Variant %s omitted: %s", variant.key, outcome)
                failures.append(
                    VariantFailure(
                        variant_key=variant.key,
                        display_name=variant.display_name,
                        cause=outcome.cause,
                        message=outcome.user_message,
                    )
                )
                if first_failure is None:
                    first_failure = outcome
            elif isinstance(outcome, BaseException):
                _transition(ComparisonState.FAILED)
                raise outcome
            else:
                routes.append(outcome)

        if not routes:
            _transition(ComparisonState.FAILED)
            raise first_failure

        _transition(ComparisonState.DONE)
        logger.info(
            "Route comparison complete: %d routes, %d omitted",
            len(routes),
            len(failures),
        )
        return ComparisonResult(
            origin=ResolvedEndpoint(raw=start, coordinate=origin),
            destination=ResolvedEndpoint(raw=end, coordinate=destination),
            routes=routes,
            failures=failures,
            map_center=center,
        )


class ComparisonSession:
    """Latest-wins wrapper around an orchestrator.

    Every call takes a new generation number. A call that finishes after a
    newer one has started raises ``ComparisonSupersededError`` instead of
    returning its stale result, so only the most recent comparison is ever
    observable. In-flight fetches are not cancelled; their results are
    discarded on arrival.

    ``state`` follows the most recent call only; transitions reported by a
    superseded call are ignored.
    """

    def __init__(self, orchestrator: ComparisonOrchestrator):
        self._orchestrator = orchestrator
        self._generation = 0
        self.latest: ComparisonResult | None = None
        self.state = ComparisonState.IDLE

    def _track(self, generation: int, state: ComparisonState) -> None:
        if generation == self._generation:
            self.state = state

    async def compare(self, start_address: str, end_address: str) -> ComparisonResult:
        self._generation += 1
        generation = self._generation
        try:
            result = await self._orchestrator.compare(
                start_address,
                end_address,
                on_state=lambda state: self._track(generation, state),
            )
        except RouteComparisonError as exc:
            if generation != self._generation:
                raise ComparisonSupersededError(
                    f"Comparison {generation} superseded by {self._generation}."
                ) from exc
            raise
        if generation != self._generation:
            logger.info(
                "Discarding stale comparison %d (latest is %d)",
                generation,
                self._generation,
            )
            raise ComparisonSupersededError(
                f"Comparison {generation} superseded by {self._generation}."
            )
        self.latest = result
        return result


def build_orchestrator(
    settings: Settings,
    *,
    client: httpx.AsyncClient | None = None,
    catalog: RouteVariantCatalog | None = None,
) -> ComparisonOrchestrator:
    """Wires the HERE-backed resolver and fetcher from [settings].

    Raises:
        MissingCredentialError: If no API key is configured.
    """
    if catalog is None:
        catalog = default_catalog(
            transport_mode=settings.transport_mode, via=settings.via_waypoint
        )
    return ComparisonOrchestrator(
        resolver=HereGeocoder(
            settings.api_key, client=client, timeout=settings.request_timeout_s
        ),
        fetcher=HereRouteFetcher(
            settings.api_key, client=client, timeout=settings.request_timeout_s
        ),
        catalog=catalog,
    )
