"""
Tests for traffic simulation, interpolation and proximity detection.
"""

import pytest

from aerozone.config import Config
from aerozone.reference import AirportDirectory, ColorPalette
from aerozone.simulation import (
    FlightPathPredictor,
    PathPoint,
    SimulatedFlight,
    SimulationClock,
    TrackedAircraft,
    TrafficSimulation,
    Waypoint,
    classify_proximity,
    detect_proximity,
    interpolate_position,
)
from aerozone.simulation.constants import PLANNED_CALLSIGN, PLANNED_FLIGHT_ID
from aerozone.utils import distance_nm

LLBG = (32.011389, 34.886667)
LLER = (29.723704, 35.01145)


def make_flight(flight_id, lat, lon, alt, path=None, eta=None, planned=False, dest=None):
    """Build a simulated flight with sensible defaults."""
    return SimulatedFlight(
        flight_id=flight_id,
        callsign=flight_id.upper(),
        latitude=lat,
        longitude=lon,
        altitude_ft=alt,
        heading_deg=45.0,
        speed_kts=300.0,
        path=path or [],
        eta_minutes=eta,
        color="#ffffff",
        destination_lat=dest[0] if dest else None,
        destination_lon=dest[1] if dest else None,
        is_planned=planned,
    )


@pytest.fixture
def eastbound():
    """Flight heading east with two path points and a known ETA."""
    return make_flight(
        "east",
        32.0,
        35.0,
        10000,
        path=[PathPoint(32.0, 35.5, 10000, 10), PathPoint(32.0, 36.0, 20000, 20)],
        eta=25.0,
        dest=(32.0, 36.2),
    )


@pytest.fixture
def palette():
    return ColorPalette.from_config(Config())


@pytest.fixture
def predictor():
    return FlightPathPredictor(
        AirportDirectory.from_records(
            [
                {"code": "LLBG", "name": "Ben Gurion Intl", "lat": LLBG[0], "lon": LLBG[1]},
                {"code": "LLER", "name": "Ramon Intl", "lat": LLER[0], "lon": LLER[1]},
            ]
        )
    )


@pytest.fixture
def traffic():
    """Two southbound aircraft."""
    return [
        TrackedAircraft("t1", 31.9, 34.9, 11000, 180, 320, callsign="ELY321"),
        TrackedAircraft("t2", 31.0, 35.0, 15000, 180, 280, callsign="ISR77", is_simulated=True),
    ]


@pytest.fixture
def planned_route():
    return {
        "eta_minutes": 24,
        "planned_path": [
            {"lat": LLBG[0], "lon": LLBG[1], "alt_ft": 0, "time_offset_min": 0},
            {"lat": 31.3, "lon": 34.96, "alt_ft": 18000, "time_offset_min": 8},
            {"lat": LLER[0], "lon": LLER[1], "alt_ft": 0, "time_offset_min": 24},
        ],
    }


class TestInterpolatePosition:
    """Tests for interpolate_position function."""

    def test_start_position(self, eastbound):
        state = interpolate_position(eastbound, 0.0)
        assert (state.latitude, state.longitude) == (32.0, 35.0)
        assert state.altitude_ft == 10000
        assert not state.landed
        assert state.heading_deg == pytest.approx(90.0, abs=0.5)

    def test_first_segment(self, eastbound):
        state = interpolate_position(eastbound, 5.0)
        assert state.longitude == pytest.approx(35.25)
        assert state.altitude_ft == pytest.approx(10000)

    def test_second_segment(self, eastbound):
        state = interpolate_position(eastbound, 15.0)
        assert state.longitude == pytest.approx(35.75)
        assert state.altitude_ft == pytest.approx(15000)

    def test_past_path_before_eta(self, eastbound):
        """Beyond the last point the flight holds there."""
        state = interpolate_position(eastbound, 22.0)
        assert state.longitude == pytest.approx(36.0)
        assert state.heading_deg == 45.0
        assert not state.landed

    def test_landed_after_eta(self, eastbound):
        state = interpolate_position(eastbound, 25.0)
        assert state.landed
        assert (state.latitude, state.longitude) == (32.0, 36.2)
        assert state.altitude_ft == 0.0

    def test_landed_without_destination(self, eastbound):
        eastbound.destination_lat = None
        eastbound.destination_lon = None
        state = interpolate_position(eastbound, 30.0)
        assert state.landed
        assert state.longitude == 36.0

    def test_unknown_eta_never_lands(self, eastbound):
        eastbound.eta_minutes = None
        state = interpolate_position(eastbound, 500.0)
        assert not state.landed
        assert state.longitude == pytest.approx(36.0)

    def test_empty_path(self):
        flight = make_flight("still", 31.0, 34.0, 5000)
        state = interpolate_position(flight, 30.0)
        assert (state.latitude, state.longitude, state.altitude_ft) == (31.0, 34.0, 5000)


class TestClassifyProximity:
    """Tests for classify_proximity function."""

    @pytest.mark.parametrize(
        "lateral,vertical,severity",
        [
            (3.0, 500.0, "critical"),
            (4.9, 999.0, "critical"),
            (5.0, 0.0, "warning"),
            (4.0, 1000.0, "warning"),
            (9.9, 1999.0, "warning"),
            (10.0, 0.0, None),
            (3.0, 2000.0, None),
        ],
    )
    def test_thresholds(self, lateral, vertical, severity):
        assert classify_proximity(lateral, vertical) == severity


class TestDetectProximity:
    """Tests for detect_proximity function."""

    @pytest.fixture
    def flights(self):
        return [
            make_flight("own", 32.0, 35.0, 20000, planned=True),
            make_flight("far", 32.12, 35.0, 21500),  # ~7nm, 1500ft
            make_flight("near", 32.05, 35.0, 20500),  # ~3nm, 500ft
            make_flight("above", 32.05, 35.0, 23000),  # Vertically separated
            make_flight("landed", 32.0, 35.0, 20000, eta=0.0, dest=(32.0, 35.0)),
        ]

    def test_warnings_sorted_by_distance(self, flights):
        warnings = detect_proximity(flights, 0.0)
        assert [w.other_flight_id for w in warnings] == ["near", "far"]
        assert [w.severity for w in warnings] == ["critical", "warning"]
        assert warnings[0].lateral_distance_nm == pytest.approx(3.0, abs=0.05)
        assert warnings[0].altitude_diff_ft == 500
        assert warnings[0].other_callsign == "NEAR"

    def test_identical_position_is_critical(self):
        flights = [
            make_flight("own", 32.0, 35.0, 20000, planned=True),
            make_flight("twin", 32.0, 35.0, 20000),
        ]
        warnings = detect_proximity(flights, 0.0)
        assert len(warnings) == 1
        assert warnings[0].other_flight_id == "twin"
        assert warnings[0].severity == "critical"
        assert warnings[0].lateral_distance_nm == pytest.approx(0.0)
        assert warnings[0].altitude_diff_ft == 0

    def test_fifty_nm_apart_no_warning(self):
        # 50nm due north at the same altitude
        flights = [
            make_flight("own", 32.0, 35.0, 20000, planned=True),
            make_flight("distant", 32.0 + 50 / 60.0, 35.0, 20000),
        ]
        assert distance_nm(32.0, 35.0, 32.0 + 50 / 60.0, 35.0) == pytest.approx(50.0, rel=0.01)
        assert detect_proximity(flights, 0.0) == []

    def test_no_planned_flight(self, flights):
        assert detect_proximity(flights[1:], 0.0) == []

    def test_planned_flight_landed(self, flights):
        flights[0].eta_minutes = 10.0
        flights[0].destination_lat, flights[0].destination_lon = 32.0, 35.0
        assert detect_proximity(flights, 10.0) == []

    def test_two_planned_flights(self, flights):
        flights[1].is_planned = True
        with pytest.raises(ValueError):
            detect_proximity(flights, 0.0)

    def test_traffic_pairs_ignored(self):
        flights = [make_flight("a", 32.0, 35.0, 20000), make_flight("b", 32.0, 35.0, 20000)]
        assert detect_proximity(flights, 0.0) == []


class TestTrafficSimulation:
    """Tests for TrafficSimulation class."""

    def test_load_planned_first(self, predictor, palette, traffic, planned_route):
        sim = TrafficSimulation(predictor, palette)
        flights = sim.load(traffic, [], planned_route=planned_route, destination=Waypoint(*LLER, code="LLER"))

        assert len(flights) == 3
        planned = flights[0]
        assert planned.flight_id == PLANNED_FLIGHT_ID
        assert planned.callsign == PLANNED_CALLSIGN
        assert planned.is_planned
        assert planned.color == palette.planned_color
        assert planned.eta_minutes == 24
        assert planned.destination_code == "LLER"
        assert (planned.latitude, planned.longitude) == LLBG

    def test_traffic_colors_and_destinations(self, predictor, palette, traffic, planned_route):
        sim = TrafficSimulation(predictor, palette)
        flights = sim.load(traffic, [], planned_route=planned_route)

        assert flights[1].color == palette.flight_color(0)
        assert flights[2].color == palette.flight_color(1)
        assert flights[1].destination_code == "LLER"
        assert flights[2].is_simulated
        assert flights[1].eta_minutes is not None

    def test_clock_sized_to_flights(self, predictor, palette, traffic, planned_route):
        sim = TrafficSimulation(predictor, palette)
        sim.load(traffic, [], planned_route=planned_route)
        assert sim.clock.max_time == 60.0

    def test_supplied_clock_resized(self, predictor, palette, traffic):
        clock = SimulationClock(max_time=120, speed_multiplier=10)
        slow = TrackedAircraft("slow", 32.5, 35.0, 5000, 180, 100)
        sim = TrafficSimulation(predictor, palette, clock=clock)
        sim.load([slow], [])
        assert sim.clock is clock
        assert clock.speed_multiplier == 10
        # ~167nm to Ramon at 100kt
        assert 95 < clock.max_time < 105

    def test_generated_planned_path(self, predictor, palette):
        sim = TrafficSimulation(predictor, palette)
        flights = sim.load(
            [], [], origin=Waypoint(*LLBG, altitude_ft=0), destination=Waypoint(*LLER)
        )
        planned = flights[0]
        dist = distance_nm(*LLBG, *LLER)

        assert planned.is_planned
        assert planned.speed_kts == 450
        assert planned.eta_minutes == pytest.approx(dist / 450 * 60)
        assert planned.path[0].time_offset_min == 0.0
        assert (planned.path[-1].latitude, planned.path[-1].longitude) == LLER

    def test_no_planned_flight(self, predictor, palette, traffic):
        sim = TrafficSimulation(predictor, palette)
        flights = sim.load(traffic, [])
        assert not any(f.is_planned for f in flights)
        assert sim.warnings() == []

    def test_tick_produces_frame(self, predictor, palette, traffic, planned_route):
        sim = TrafficSimulation(predictor, palette)
        sim.load(traffic, [], planned_route=planned_route)
        sim.clock.set_speed(60)
        sim.clock.play()

        frame = sim.tick(5)

        assert frame.time == pytest.approx(5.0)
        assert len(frame.states) == 3
        assert frame.states[0].flight_id == PLANNED_FLIGHT_ID

    def test_counts(self, predictor, palette, traffic, planned_route):
        sim = TrafficSimulation(predictor, palette)
        sim.load(traffic, [], planned_route=planned_route)
        assert sim.active_count == 3
        assert sim.landed_count == 0

        sim.clock.skip_to_end()
        assert sim.landed_count == 3
        assert sim.active_count == 0

    def test_planned_conflict_detected(self, predictor, palette, planned_route):
        """Traffic sitting on the planned route at the same level is flagged."""
        intruder = TrackedAircraft("x", 31.3, 34.96, 18000, 0, 0, callsign="BLOCK")
        sim = TrafficSimulation(predictor, palette)
        sim.load([intruder], [], planned_route=planned_route)

        sim.clock.seek(8.0)
        warnings = sim.warnings()
        assert len(warnings) == 1
        assert warnings[0].other_callsign == "BLOCK"
        assert warnings[0].severity == "critical"
