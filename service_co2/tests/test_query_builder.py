"""
Unit tests for Electricity Maps query construction.
"""

from types import SimpleNamespace

import pytest

from service_co2.app.adapters.query_builder import (
    CoordinateLocation,
    ZoneLocation,
    build_query,
    format_param,
    location_from_config,
)


class TestBuildQuery:
    """Test cases for build_query."""

    def test_zone_mode_without_extras(self):
        query = build_query(ZoneLocation("AT"))

        assert query == "zone=AT"
        assert "lat" not in query
        assert "lon" not in query

    def test_latlon_mode_with_extras(self):
        query = build_query(CoordinateLocation(48.2, 16.37), {"pastHours": 24})

        assert "lat=48.2" in query
        assert "lon=16.37" in query
        assert "pastHours=24" in query
        assert "zone" not in query

    def test_location_params_come_first(self):
        query = build_query(ZoneLocation("DE"), {"pastHours": 12, "limit": 5})

        assert query == "zone=DE&pastHours=12&limit=5"

    def test_extras_follow_insertion_order(self):
        first = build_query(ZoneLocation("AT"), {"a": 1, "b": 2})
        second = build_query(ZoneLocation("AT"), {"b": 2, "a": 1})

        assert first == "zone=AT&a=1&b=2"
        assert second == "zone=AT&b=2&a=1"

    def test_same_request_is_stable(self):
        params = {"pastHours": 48}
        assert build_query(ZoneLocation("AT"), params) == build_query(ZoneLocation("AT"), dict(params))

    def test_extra_overrides_location_key_in_place(self):
        query = build_query(ZoneLocation("AT"), {"pastHours": 6, "zone": "FR"})

        assert query == "zone=FR&pastHours=6"

    def test_extra_overrides_coordinate(self):
        query = build_query(CoordinateLocation(48.2, 16.37), {"lon": 10})

        assert query == "lat=48.2&lon=10"

    def test_values_are_url_encoded(self):
        query = build_query(ZoneLocation("US-CAL-CISO"), {"note": "a b&c"})

        assert query == "zone=US-CAL-CISO&note=a+b%26c"

    def test_does_not_mutate_params(self):
        params = {"pastHours": 24}
        build_query(ZoneLocation("AT"), params)

        assert params == {"pastHours": 24}


class TestFormatParam:
    """Test cases for parameter value rendering."""

    @pytest.mark.parametrize("value,expected", [
        (24, "24"),
        (24.0, "24"),
        (2.5, "2.5"),
        (48.2, "48.2"),
        (True, "true"),
        (False, "false"),
        ("AT", "AT"),
    ])
    def test_format_param(self, value, expected):
        assert format_param(value) == expected


class TestLocationFromConfig:
    """Test cases for selecting the location mode."""

    def test_zone_mode(self):
        config = SimpleNamespace(use_latlon=False, em_zone="AT", em_lat=48.2, em_lon=16.37)

        assert location_from_config(config) == ZoneLocation("AT")

    def test_latlon_mode(self):
        config = SimpleNamespace(use_latlon=True, em_zone="AT", em_lat=48.2, em_lon=16.37)

        assert location_from_config(config) == CoordinateLocation(48.2, 16.37)
