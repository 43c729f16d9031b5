"""Route comparison backend service.

Exposes endpoints for comparing alternative routes between two addresses and
for listing the route variants (with their display colours) a comparison
returns.
"""

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException

from comparison import ComparisonOrchestrator, ComparisonSession, build_orchestrator
from config import load_settings
from errors import RouteComparisonError
from models import ComparisonResult, CompareRoutesRequest, RouteVariantInfo

logging.basicConfig(level=logging.INFO)
# httpx request lines are redacted by here_http; httpcore adds nothing useful.
logging.getLogger("httpcore").setLevel(logging.WARNING)

# HTTP status returned for each error cause code.
STATUS_BY_CAUSE: dict[str, int] = {
    "invalid_input": 400,
    "address_not_found": 404,
    "no_route": 404,
    "superseded": 409,
    "not_configured": 500,
    "service_unavailable": 502,
    "malformed_response": 502,
    "timeout": 504,
}

# Upper bound on remembered per-client sessions; the oldest is dropped first.
MAX_SESSIONS: int = 1024

_sessions: "OrderedDict[str, ComparisonSession]" = OrderedDict()


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with httpx.AsyncClient() as client:
        app.state.http_client = client
        yield
    # Anything built on the closed client must be rebuilt on the next startup.
    app.state.http_client = None
    app.state.orchestrator = None
    _sessions.clear()


app = FastAPI(
    title="Route Comparison Backend",
    description="Compares alternative routes between two locations.",
    version="0.1.0",
    lifespan=lifespan,
)


def _orchestrator() -> ComparisonOrchestrator:
    """Returns the shared orchestrator, building it on first use.

    Raises:
        MissingCredentialError: If HERE_API_KEY is not set.
    """
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator(
            load_settings(),
            client=getattr(app.state, "http_client", None),
        )
        app.state.orchestrator = orchestrator
    return orchestrator


def _session(client_id: str, orchestrator: ComparisonOrchestrator) -> ComparisonSession:
    session = _sessions.get(client_id)
    if session is None:
        session = ComparisonSession(orchestrator)
        _sessions[client_id] = session
        if len(_sessions) > MAX_SESSIONS:
            _sessions.popitem(last=False)
    else:
        _sessions.move_to_end(client_id)
    return session


def _http_error(exc: RouteComparisonError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CAUSE.get(exc.cause, 500),
        detail={"cause": exc.cause, "message": exc.user_message},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint used to verify the service is live."""
    return {"status": "ok"}


@app.get("/route-variants", response_model=list[RouteVariantInfo])
async def route_variants() -> list[RouteVariantInfo]:
    """Lists the variants every comparison requests, in display order.

    Raises:
        HTTPException 500: If the service is not configured.
    """
    try:
        catalog = _orchestrator().catalog
    except RouteComparisonError as exc:
        raise _http_error(exc) from exc
    return [
        RouteVariantInfo(key=v.key, display_name=v.display_name, color=v.color)
        for v in catalog
    ]


@app.post("/compare-routes", response_model=ComparisonResult)
async def compare_routes(request: CompareRoutesRequest) -> ComparisonResult:
    """Compares every route variant between two addresses.

    Args:
        request: Start and end address (free text or ``lat,lng``), plus an
            optional ``client_id``. A newer request with the same
            ``client_id`` supersedes any comparison still in flight.

    Returns:
        ``ComparisonResult`` with routes in catalog order, any omitted
        variants with their causes, and the map centre.

    Raises:
        HTTPException 400: If either address is empty.
        HTTPException 404: If an address cannot be found or no variant has
            a route.
        HTTPException 409: If a newer request from the same client won.
        HTTPException 500: If the service is not configured.
        HTTPException 502/504: If the upstream map services fail.
    """
    try:
        orchestrator = _orchestrator()
        if request.client_id:
            return await _session(request.client_id, orchestrator).compare(
                request.start_address, request.end_address
            )
        return await orchestrator.compare(request.start_address, request.end_address)
    except RouteComparisonError as exc:
        logging.warning("compare_routes failed (%s): %s", exc.cause, exc.detail)
        raise _http_error(exc) from exc
    except Exception as exc:  # noqa: BLE001
        logging.exception("compare_routes failed")
        raise HTTPException(
            status_code=502,
            detail={
                "cause": "internal_error",
                "message": "Failed to compare routes. Please try again.",
            },
        ) from exc
