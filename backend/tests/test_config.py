"""Tests for config.py."""

import pytest

from config import DEFAULT_VIA_WAYPOINT, load_settings, parse_coordinate


def test_load_settings_defaults():
    settings = load_settings({})
    assert settings.api_key == ""
    assert settings.transport_mode == "car"
    assert settings.request_timeout_s == 10.0
    assert settings.via_waypoint == DEFAULT_VIA_WAYPOINT


def test_load_settings_reads_environment():
    settings = load_settings(
        {
            "HERE_API_KEY": " abc ",
            "ROUTE_TRANSPORT_MODE": "truck",
            "ROUTE_REQUEST_TIMEOUT_S": "2.5",
            "ROUTE_VIA_WAYPOINT": "50.1,6.2",
        }
    )
    assert settings.api_key == "abc"
    assert settings.transport_mode == "truck"
    assert settings.request_timeout_s == 2.5
    assert (settings.via_waypoint.lat, settings.via_waypoint.lng) == (50.1, 6.2)


def test_api_key_hidden_from_repr():
    assert "secret" not in repr(load_settings({"HERE_API_KEY": "secret"}))


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_load_settings_rejects_bad_timeout(value):
    with pytest.raises(ValueError, match="ROUTE_REQUEST_TIMEOUT_S"):
        load_settings({"ROUTE_REQUEST_TIMEOUT_S": value})


def test_load_settings_rejects_bad_via_waypoint():
    with pytest.raises(ValueError, match="ROUTE_VIA_WAYPOINT"):
        load_settings({"ROUTE_VIA_WAYPOINT": "Cologne"})


@pytest.mark.parametrize("text", ["Leverkusen", "1,2,3", "91,0", "0,181", "a,b"])
def test_parse_coordinate_rejects_non_coordinates(text):
    assert parse_coordinate(text) is None


def test_parse_coordinate_accepts_lat_lng():
    coordinate = parse_coordinate(" 51.5074 , -0.1278 ")
    assert (coordinate.lat, coordinate.lng) == (51.5074, -0.1278)
