"""
Tests for reference data (airports and palette).
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from aerozone.config import Config
from aerozone.reference import Airport, AirportDirectory, ColorPalette


@pytest.fixture
def directory():
    """Small airport directory."""
    return AirportDirectory.from_records(
        [
            {"code": "LLBG", "name": "Ben Gurion Intl", "lat": 32.011389, "lon": 34.886667},
            {"code": "LLHA", "name": "Haifa", "lat": 32.809444, "lon": 35.043056},
            {"code": "LLER", "name": "Ramon Intl", "latitude": 29.723704, "longitude": 35.01145},
        ]
    )


class TestAirport:
    """Tests for Airport record."""

    def test_from_dict_short_keys(self):
        airport = Airport.from_dict({"code": "OJAI", "name": "Queen Alia", "lat": 31.72, "lon": 35.99})
        assert airport.code == "OJAI"
        assert airport.latitude == 31.72
        assert airport.longitude == 35.99

    def test_name_defaults_to_code(self):
        airport = Airport.from_dict({"code": "XXXX", "lat": 1, "lon": 2})
        assert airport.name == "XXXX"


class TestAirportDirectory:
    """Tests for AirportDirectory class."""

    def test_nearest(self, directory):
        airport, dist = directory.nearest(32.75, 35.0)
        assert airport.code == "LLHA"
        assert dist < 5

    def test_get(self, directory):
        assert directory.get("LLER").name == "Ramon Intl"
        assert directory.get("NOPE") is None

    def test_iteration_and_len(self, directory):
        assert len(directory) == 3
        assert [a.code for a in directory] == ["LLBG", "LLHA", "LLER"]

    def test_empty_directory(self):
        airport, dist = AirportDirectory([]).nearest(32.0, 35.0)
        assert airport is None
        assert dist == float("inf")

    def test_from_config(self):
        directory = AirportDirectory.from_config(Config())
        assert len(directory) == 17
        assert directory.get("LLBG") is not None


class TestColorPalette:
    """Tests for ColorPalette class."""

    def test_round_robin(self):
        palette = ColorPalette(["#111111", "#222222"], "#00ff00", {"low": "#22c55e"})
        assert palette.flight_color(0) == "#111111"
        assert palette.flight_color(1) == "#222222"
        assert palette.flight_color(2) == "#111111"

    def test_empty_flight_colors(self):
        with pytest.raises(ValueError):
            ColorPalette([], "#00ff00", {})

    def test_unknown_severity(self):
        palette = ColorPalette(["#111111"], "#00ff00", {"low": "#22c55e"})
        assert palette.severity_color("low") == "#22c55e"
        with pytest.raises(ValueError):
            palette.severity_color("extreme")

    def test_from_config(self):
        palette = ColorPalette.from_config(Config())
        assert palette.planned_color == "#22c55e"
        assert len(palette.flight_colors) == 8
        assert palette.severity_color("critical") == "#ef4444"
        assert palette.heatmap_gradient[1.0] == "#ef4444"

    def test_default_heatmap_gradient(self):
        palette = ColorPalette(["#111111"], "#00ff00", {"low": "#22c55e"})
        assert sorted(palette.heatmap_gradient) == [0.0, 0.4, 0.7, 1.0]
