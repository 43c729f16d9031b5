"""Tests for the HTTP layer in main.py.

The orchestrator is swapped for one built on fake collaborators, so no
network access occurs during these tests.
"""

import pytest
from fastapi.testclient import TestClient

import main
from comparison import ComparisonOrchestrator
from errors import AddressNotFoundError, RouteTransportError
from models import Coordinate, Route
from route_variants import default_catalog

_START = Coordinate(lat=51.0719, lng=7.0454)
_END = Coordinate(lat=51.1831, lng=6.8157)


class _Resolver:
    async def resolve(self, address):
        table = {"Leverkusen": _START, "Düsseldorf": _END}
        if address not in table:
            raise AddressNotFoundError(address)
        return table[address]


class _Fetcher:
    def __init__(self, failing=()):
        self._failing = set(failing)

    async def fetch(self, variant, origin, destination):
        if variant.key in self._failing:
            raise RouteTransportError("down")
        return Route(
            variant_key=variant.key,
            display_name=variant.display_name,
            color=variant.color,
            duration_seconds=1800,
            length_meters=45000,
            path=[origin, destination],
            origin=origin,
            destination=destination,
        )


@pytest.fixture(autouse=True)
def _reset_state():
    main.app.state.orchestrator = None
    main._sessions.clear()
    yield
    main.app.state.orchestrator = None
    main._sessions.clear()


@pytest.fixture
def client():
    return TestClient(main.app)


def _install(fetcher=None):
    main.app.state.orchestrator = ComparisonOrchestrator(
        _Resolver(), fetcher or _Fetcher(), default_catalog()
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_compare_routes_happy_path(client):
    _install()
    response = client.post(
        "/compare-routes",
        json={"start_address": "Leverkusen", "end_address": "Düsseldorf"},
    )

    assert response.status_code == 200
    body = response.json()
    assert [r["variant_key"] for r in body["routes"]] == default_catalog().keys()
    assert body["routes"][0]["duration_minutes"] == 30
    assert body["routes"][0]["length_km"] == 45
    assert body["failures"] == []
    assert body["map_center"]["lat"] == pytest.approx(51.1275, abs=1e-4)


def test_compare_routes_reports_omitted_variants(client):
    _install(_Fetcher(failing={"via_waypoint"}))
    response = client.post(
        "/compare-routes",
        json={"start_address": "Leverkusen", "end_address": "Düsseldorf"},
    )

    body = response.json()
    assert response.status_code == 200
    assert len(body["routes"]) == 3
    assert body["failures"][0]["variant_key"] == "via_waypoint"
    assert body["failures"][0]["cause"] == "service_unavailable"


def test_compare_routes_with_client_id(client):
    _install()
    response = client.post(
        "/compare-routes",
        json={
            "start_address": "Leverkusen",
            "end_address": "Düsseldorf",
            "client_id": "tab-1",
        },
    )
    assert response.status_code == 200
    assert main._sessions["tab-1"].latest is not None


def test_compare_routes_blank_address_returns_400(client):
    _install()
    response = client.post(
        "/compare-routes", json={"start_address": " ", "end_address": "Düsseldorf"}
    )
    assert response.status_code == 400
    assert response.json()["detail"]["cause"] == "invalid_input"


def test_compare_routes_unknown_address_returns_404(client):
    _install()
    response = client.post(
        "/compare-routes",
        json={"start_address": "Leverkusen", "end_address": "Atlantis"},
    )
    assert response.status_code == 404
    detail = response.json()["detail"]
    assert detail["cause"] == "address_not_found"
    assert "Atlantis" in detail["message"]


def test_compare_routes_all_variants_down_returns_502(client):
    _install(_Fetcher(failing=set(default_catalog().keys())))
    response = client.post(
        "/compare-routes",
        json={"start_address": "Leverkusen", "end_address": "Düsseldorf"},
    )
    assert response.status_code == 502
    assert response.json()["detail"]["cause"] == "service_unavailable"


def test_compare_routes_without_api_key_returns_500(client, monkeypatch):
    monkeypatch.delenv("HERE_API_KEY", raising=False)
    response = client.post(
        "/compare-routes",
        json={"start_address": "Leverkusen", "end_address": "Düsseldorf"},
    )
    assert response.status_code == 500
    assert response.json()["detail"]["cause"] == "not_configured"


def test_route_variants_lists_legend(client):
    _install()
    response = client.get("/route-variants")
    assert response.status_code == 200
    assert response.json()[1] == {
        "key": "avoid_highways",
        "display_name": "Scenic Route (No Highways)",
        "color": "blue",
    }


def test_route_variants_built_from_environment(client, monkeypatch):
    monkeypatch.setenv("HERE_API_KEY", "KEY")
    response = client.get("/route-variants")
    assert response.status_code == 200
    assert len(response.json()) == 4


def test_shutdown_drops_orchestrator_bound_to_closed_client(monkeypatch):
    monkeypatch.setenv("HERE_API_KEY", "KEY")

    with TestClient(main.app) as first:
        assert first.get("/route-variants").status_code == 200
        stale = main.app.state.orchestrator
        main._sessions["rider"] = object()
    assert main.app.state.orchestrator is None
    assert main.app.state.http_client is None
    assert not main._sessions

    with TestClient(main.app) as second:
        assert second.get("/route-variants").status_code == 200
        assert main.app.state.orchestrator is not None
        assert main.app.state.orchestrator is not stale
