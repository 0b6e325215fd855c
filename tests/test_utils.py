"""
Tests for AeroZone utility functions.
"""

import math
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from aerozone.reference import Airport
from aerozone.utils import (
    bearing_deg,
    destination_point,
    distance_nm,
    format_sim_time,
    nearest_airport,
    nm_to_degrees,
    validate_coordinates,
)


class TestDistance:
    """Tests for distance_nm function."""

    def test_same_point(self):
        """Distance between same point should be 0."""
        assert distance_nm(32.0, 34.9, 32.0, 34.9) == 0.0

    def test_one_degree_latitude(self):
        """One degree of latitude is about 60nm."""
        dist = distance_nm(32.0, 35.0, 33.0, 35.0)
        assert dist == pytest.approx(60.04, abs=0.05)

    def test_known_distance(self):
        """Ben Gurion to Ramon is roughly 137nm."""
        dist = distance_nm(32.011389, 34.886667, 29.723704, 35.01145)
        assert 130 < dist < 145

    def test_symmetric(self):
        a = distance_nm(32.0, 34.9, 33.4, 36.5)
        b = distance_nm(33.4, 36.5, 32.0, 34.9)
        assert a == pytest.approx(b)

    def test_nan_propagates(self):
        """Unvalidated NaN input yields NaN."""
        assert math.isnan(distance_nm(float("nan"), 34.9, 32.0, 34.9))


class TestBearing:
    """Tests for bearing_deg function."""

    def test_cardinal_directions(self):
        assert bearing_deg(32.0, 35.0, 33.0, 35.0) == pytest.approx(0.0, abs=1e-6)
        assert bearing_deg(32.0, 35.0, 31.0, 35.0) == pytest.approx(180.0, abs=1e-6)
        assert bearing_deg(0.0, 35.0, 0.0, 36.0) == pytest.approx(90.0, abs=1e-6)
        assert bearing_deg(0.0, 35.0, 0.0, 34.0) == pytest.approx(270.0, abs=1e-6)

    def test_range(self):
        """Bearing is always within [0, 360)."""
        for lat2, lon2 in [(31.0, 34.0), (33.0, 34.0), (31.0, 36.0)]:
            bearing = bearing_deg(32.0, 35.0, lat2, lon2)
            assert 0 <= bearing < 360


class TestDestinationPoint:
    """Tests for destination_point function."""

    def test_zero_distance(self):
        lat, lon = destination_point(32.0, 35.0, 123.0, 0.0)
        assert lat == pytest.approx(32.0)
        assert lon == pytest.approx(35.0)

    def test_north(self):
        lat, lon = destination_point(32.0, 35.0, 0.0, 60.0)
        assert lat == pytest.approx(32.9993, abs=1e-3)
        assert lon == pytest.approx(35.0)

    def test_roundtrip_distance(self):
        """Projected point lies at the requested distance and bearing."""
        lat, lon = destination_point(32.0, 35.0, 45.0, 100.0)
        assert distance_nm(32.0, 35.0, lat, lon) == pytest.approx(100.0, rel=1e-6)
        assert bearing_deg(32.0, 35.0, lat, lon) == pytest.approx(45.0, abs=1e-6)


class TestNearestAirport:
    """Tests for nearest_airport function."""

    def test_finds_closest(self):
        airports = [
            Airport("LLBG", "Ben Gurion", 32.011389, 34.886667),
            Airport("LLER", "Ramon", 29.723704, 35.01145),
        ]
        airport, dist = nearest_airport(29.8, 35.0, airports)
        assert airport.code == "LLER"
        assert dist < 10

    def test_empty_table(self):
        airport, dist = nearest_airport(32.0, 35.0, [])
        assert airport is None
        assert dist == float("inf")


class TestNmToDegrees:
    """Tests for nm_to_degrees function."""

    def test_equator(self):
        dlat, dlon = nm_to_degrees(60.0, 0.0)
        assert dlat == pytest.approx(1.0)
        assert dlon == pytest.approx(1.0)

    def test_longitude_widens_with_latitude(self):
        dlat, dlon = nm_to_degrees(60.0, 60.0)
        assert dlat == pytest.approx(1.0)
        assert dlon == pytest.approx(2.0)


class TestFormatting:
    """Tests for formatting functions."""

    def test_format_sim_time(self):
        assert format_sim_time(0) == "0m"
        assert format_sim_time(12.7) == "12m"
        assert format_sim_time(65.5) == "1h 5m"
        assert format_sim_time(120) == "2h 0m"

    def test_format_sim_time_unknown(self):
        assert format_sim_time(None) == "N/A"
        assert format_sim_time(-1) == "N/A"


class TestValidation:
    """Tests for validation functions."""

    def test_valid_coordinates(self):
        assert validate_coordinates(32.0, 34.9) is True
        assert validate_coordinates(-90, 180) is True

    def test_invalid_coordinates(self):
        assert validate_coordinates(100, 34.9) is False
        assert validate_coordinates(32.0, 200) is False
