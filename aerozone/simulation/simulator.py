"""
Traffic Simulation
Replays predicted paths on a virtual timeline and checks separation
between the planned flight and surrounding traffic.

This module provides:
- Position interpolation along predicted paths
- Proximity classification against the planned flight
- TrafficSimulation, which assembles flights and drives the clock
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..reference import ColorPalette
from ..utils import bearing_deg, distance_nm
from .clock import SimulationClock
from .constants import (
    PLANNED_CALLSIGN,
    PLANNED_FLIGHT_ID,
    SEVERITY_CRITICAL,
    SEVERITY_WARNING,
)
from .predictor import (
    FlightPathPredictor,
    LearnedRoute,
    PathPoint,
    TrackedAircraft,
    Waypoint,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulatedFlight:
    """A flight on the simulation timeline with its predicted path."""

    flight_id: str
    callsign: Optional[str]
    latitude: float
    longitude: float
    altitude_ft: float
    heading_deg: float
    speed_kts: float
    path: List[PathPoint]
    eta_minutes: Optional[float]
    color: str
    destination_code: Optional[str] = None
    destination_lat: Optional[float] = None
    destination_lon: Optional[float] = None
    is_planned: bool = False
    is_simulated: bool = False

    @property
    def label(self) -> str:
        return self.callsign or self.flight_id[:6]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flight_id": self.flight_id,
            "callsign": self.callsign,
            "current_lat": self.latitude,
            "current_lon": self.longitude,
            "current_alt_ft": self.altitude_ft,
            "heading_deg": self.heading_deg,
            "speed_kts": self.speed_kts,
            "destination_airport": self.destination_code,
            "destination_lat": self.destination_lat,
            "destination_lon": self.destination_lon,
            "predicted_path": [p.to_dict() for p in self.path],
            "eta_minutes": self.eta_minutes,
            "color": self.color,
            "is_planned": self.is_planned,
            "is_simulated": self.is_simulated,
        }


@dataclass(frozen=True)
class FlightState:
    """Interpolated position of a flight at a virtual time."""

    flight_id: str
    callsign: Optional[str]
    latitude: float
    longitude: float
    altitude_ft: float
    heading_deg: float
    landed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flight_id": self.flight_id,
            "callsign": self.callsign,
            "lat": self.latitude,
            "lon": self.longitude,
            "alt_ft": self.altitude_ft,
            "heading_deg": self.heading_deg,
            "landed": self.landed,
        }


@dataclass(frozen=True)
class ProximityWarning:
    """Loss of separation between the planned flight and another flight."""

    other_flight_id: str
    other_callsign: Optional[str]
    lateral_distance_nm: float
    altitude_diff_ft: float
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "other_flight_id": self.other_flight_id,
            "other_callsign": self.other_callsign,
            "lateral_distance_nm": self.lateral_distance_nm,
            "altitude_diff_ft": self.altitude_diff_ft,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class SimulationFrame:
    """Snapshot produced by one simulation tick."""

    time: float
    states: List[FlightState] = field(default_factory=list)
    warnings: List[ProximityWarning] = field(default_factory=list)


def interpolate_position(flight: SimulatedFlight, current_time: float) -> FlightState:
    """
    Locate a flight on its predicted path at a virtual time.

    The path is prefixed with the flight's current position at t=0. The
    first point at or after ``current_time`` and its predecessor bracket the
    time; the position is linearly interpolated between them. Past the ETA
    the flight is landed at its destination with zero altitude.

    Args:
        flight: Simulated flight
        current_time: Virtual minutes from start

    Returns:
        FlightState at current_time
    """
    if flight.eta_minutes is not None and current_time >= flight.eta_minutes:
        if flight.destination_lat is not None and flight.destination_lon is not None:
            lat, lon = flight.destination_lat, flight.destination_lon
        elif flight.path:
            lat, lon = flight.path[-1].latitude, flight.path[-1].longitude
        else:
            lat, lon = flight.latitude, flight.longitude
        return FlightState(
            flight.flight_id, flight.callsign, lat, lon, 0.0, flight.heading_deg, landed=True
        )

    start = PathPoint(flight.latitude, flight.longitude, flight.altitude_ft, 0.0)
    if not flight.path:
        return FlightState(
            flight.flight_id, flight.callsign,
            start.latitude, start.longitude, start.altitude_ft, flight.heading_deg,
        )

    points = [start] + list(flight.path)
    prev_point, next_point = points[-1], points[-1]
    for i in range(1, len(points)):
        if points[i].time_offset_min >= current_time:
            prev_point, next_point = points[i - 1], points[i]
            break

    span = next_point.time_offset_min - prev_point.time_offset_min
    progress = (current_time - prev_point.time_offset_min) / span if span > 0 else 0.0
    progress = max(0.0, min(1.0, progress))

    lat = prev_point.latitude + (next_point.latitude - prev_point.latitude) * progress
    lon = prev_point.longitude + (next_point.longitude - prev_point.longitude) * progress
    alt = prev_point.altitude_ft + (next_point.altitude_ft - prev_point.altitude_ft) * progress

    if (prev_point.latitude, prev_point.longitude) == (next_point.latitude, next_point.longitude):
        heading = flight.heading_deg
    else:
        heading = bearing_deg(
            prev_point.latitude, prev_point.longitude,
            next_point.latitude, next_point.longitude,
        )

    return FlightState(flight.flight_id, flight.callsign, lat, lon, alt, heading)


def classify_proximity(lateral_nm: float, altitude_diff_ft: float) -> Optional[str]:
    """
    Classify a separation.

    Args:
        lateral_nm: Horizontal distance
        altitude_diff_ft: Absolute vertical distance

    Returns:
        'critical', 'warning', or None when separated
    """
    if lateral_nm < Settings.CRITICAL_LATERAL_NM and altitude_diff_ft < Settings.CRITICAL_VERTICAL_FT:
        return SEVERITY_CRITICAL
    if lateral_nm < Settings.WARNING_LATERAL_NM and altitude_diff_ft < Settings.WARNING_VERTICAL_FT:
        return SEVERITY_WARNING
    return None


def _planned_flight(flights: Sequence[SimulatedFlight]) -> Optional[SimulatedFlight]:
    planned = [f for f in flights if f.is_planned]
    if len(planned) > 1:
        raise ValueError(f"Expected at most one planned flight, got {len(planned)}")
    return planned[0] if planned else None


def detect_proximity(
    flights: Sequence[SimulatedFlight], current_time: float
) -> List[ProximityWarning]:
    """
    Find traffic too close to the planned flight.

    Only pairs involving the planned flight are checked. Landed flights
    are ignored on either side.

    Args:
        flights: All simulated flights
        current_time: Virtual minutes from start

    Returns:
        Warnings sorted by lateral distance, closest first

    Raises:
        ValueError: If more than one flight is planned
    """
    planned = _planned_flight(flights)
    if planned is None:
        return []

    own = interpolate_position(planned, current_time)
    if own.landed:
        return []

    warnings: List[ProximityWarning] = []
    for flight in flights:
        if flight.is_planned:
            continue

        other = interpolate_position(flight, current_time)
        if other.landed:
            continue

        lateral = distance_nm(own.latitude, own.longitude, other.latitude, other.longitude)
        vertical = abs(own.altitude_ft - other.altitude_ft)
        severity = classify_proximity(lateral, vertical)
        if severity is not None:
            warnings.append(
                ProximityWarning(flight.flight_id, flight.callsign, lateral, vertical, severity)
            )

    warnings.sort(key=lambda w: w.lateral_distance_nm)
    return warnings


class TrafficSimulation:
    """
    Assembles the planned flight and traffic and replays them over time.

    Example:
        >>> sim = TrafficSimulation(predictor, palette)
        >>> sim.load(traffic, routes, origin=origin, destination=destination)
        >>> sim.clock.play()
        >>> frame = sim.tick(6.0)
        >>> print(len(frame.warnings))
    """

    def __init__(
        self,
        predictor: FlightPathPredictor,
        palette: ColorPalette,
        clock: Optional[SimulationClock] = None,
        cruise_speed_kts: float = Settings.DEFAULT_CRUISE_SPEED_KTS,
    ) -> None:
        """
        Initialize simulation.

        Args:
            predictor: Path predictor for traffic
            palette: Flight colors
            clock: Clock to drive; sized on load() when omitted
            cruise_speed_kts: Speed of the planned flight (default: 450kt)
        """
        self.predictor = predictor
        self.palette = palette
        self.clock = clock
        self.cruise_speed_kts = cruise_speed_kts
        self.flights: List[SimulatedFlight] = []

    def load(
        self,
        traffic: Sequence[TrackedAircraft],
        routes: Sequence[LearnedRoute],
        planned_route: Optional[Dict[str, Any]] = None,
        origin: Optional[Waypoint] = None,
        destination: Optional[Waypoint] = None,
    ) -> List[SimulatedFlight]:
        """
        Build simulated flights and size the clock.

        The planned flight comes first, then traffic in input order.

        Args:
            traffic: Aircraft around the planned flight
            routes: Learned routes for path matching
            planned_route: ``{planned_path, eta_minutes}`` of the planned flight
            origin: Planned flight origin
            destination: Planned flight destination

        Returns:
            Simulated flights
        """
        flights: List[SimulatedFlight] = []

        planned = self._build_planned(planned_route, origin, destination)
        if planned is not None:
            flights.append(planned)

        for index, aircraft in enumerate(traffic):
            flights.append(self._build_traffic(aircraft, routes, index))

        _planned_flight(flights)
        self.flights = flights

        etas = [f.eta_minutes for f in flights]
        if self.clock is None:
            self.clock = SimulationClock.for_flights(etas)
        else:
            self.clock.max_time = SimulationClock.for_flights(etas).max_time
            self.clock.seek(self.clock.current_time)

        logger.info(
            "Loaded %d flights (%s planned flight), timeline %.0f min",
            len(flights), "with" if planned else "no", self.clock.max_time,
        )
        return flights

    def _build_planned(
        self,
        planned_route: Optional[Dict[str, Any]],
        origin: Optional[Waypoint],
        destination: Optional[Waypoint],
    ) -> Optional[SimulatedFlight]:
        path: List[PathPoint] = []
        eta: Optional[float] = None

        if planned_route:
            path = [PathPoint.from_dict(p) for p in planned_route.get("planned_path") or []]
            eta = planned_route.get("eta_minutes")

        if not path:
            if origin is None or destination is None:
                return None
            path, eta = self._generate_planned_path(origin, destination)
            if not path:
                return None

        first = path[0]
        if len(path) > 1:
            heading = bearing_deg(first.latitude, first.longitude, path[1].latitude, path[1].longitude)
        elif destination is not None:
            heading = bearing_deg(
                first.latitude, first.longitude, destination.latitude, destination.longitude
            )
        else:
            heading = 0.0

        return SimulatedFlight(
            flight_id=PLANNED_FLIGHT_ID,
            callsign=PLANNED_CALLSIGN,
            latitude=first.latitude,
            longitude=first.longitude,
            altitude_ft=first.altitude_ft,
            heading_deg=heading,
            speed_kts=self.cruise_speed_kts,
            path=path,
            eta_minutes=float(eta) if eta is not None else None,
            color=self.palette.planned_color,
            destination_code=destination.code if destination else None,
            destination_lat=destination.latitude if destination else None,
            destination_lon=destination.longitude if destination else None,
            is_planned=True,
        )

    def _generate_planned_path(
        self, origin: Waypoint, destination: Waypoint
    ) -> Tuple[List[PathPoint], Optional[float]]:
        """Great-circle path from origin to destination at cruise speed."""
        aircraft = TrackedAircraft(
            flight_id=PLANNED_FLIGHT_ID,
            latitude=origin.latitude,
            longitude=origin.longitude,
            altitude_ft=origin.altitude_ft or 0.0,
            heading_deg=bearing_deg(
                origin.latitude, origin.longitude, destination.latitude, destination.longitude
            ),
            speed_kts=self.cruise_speed_kts,
        )
        eta = self.predictor.estimate_eta(aircraft, destination.latitude, destination.longitude)
        horizon = max(eta or 0.0, self.predictor.horizon_minutes)
        path = self.predictor.predict_path(
            aircraft, destination.latitude, destination.longitude, [], horizon_minutes=horizon
        )
        if not path:
            return [], None

        path.insert(0, PathPoint(aircraft.latitude, aircraft.longitude, aircraft.altitude_ft, 0.0))
        logger.debug("Generated planned path with %d points, ETA %s", len(path), eta)
        return path, eta

    def _build_traffic(
        self, aircraft: TrackedAircraft, routes: Sequence[LearnedRoute], index: int
    ) -> SimulatedFlight:
        airport = self.predictor.resolve_destination(aircraft)
        if airport is None:
            dest_lat = dest_lon = None
            path: List[PathPoint] = []
            eta = None
        else:
            dest_lat, dest_lon = airport.latitude, airport.longitude
            path = self.predictor.predict_path(aircraft, dest_lat, dest_lon, routes)
            eta = self.predictor.estimate_eta(aircraft, dest_lat, dest_lon)

        return SimulatedFlight(
            flight_id=aircraft.flight_id,
            callsign=aircraft.callsign,
            latitude=aircraft.latitude,
            longitude=aircraft.longitude,
            altitude_ft=aircraft.altitude_ft,
            heading_deg=aircraft.heading_deg,
            speed_kts=aircraft.speed_kts,
            path=path,
            eta_minutes=eta,
            color=self.palette.flight_color(index),
            destination_code=airport.code if airport else None,
            destination_lat=dest_lat,
            destination_lon=dest_lon,
            is_simulated=aircraft.is_simulated,
        )

    @property
    def current_time(self) -> float:
        return self.clock.current_time if self.clock else 0.0

    def states(self) -> List[FlightState]:
        """Positions of all flights at the current time."""
        return [interpolate_position(f, self.current_time) for f in self.flights]

    def warnings(self) -> List[ProximityWarning]:
        """Proximity warnings at the current time."""
        return detect_proximity(self.flights, self.current_time)

    @property
    def active_count(self) -> int:
        return sum(1 for s in self.states() if not s.landed)

    @property
    def landed_count(self) -> int:
        return sum(1 for s in self.states() if s.landed)

    def tick(self, delta_seconds: float) -> SimulationFrame:
        """
        Advance the clock and snapshot the simulation.

        Args:
            delta_seconds: Wall-clock seconds since the last tick

        Returns:
            SimulationFrame at the new time
        """
        if self.clock is None:
            self.clock = SimulationClock.for_flights([])

        time = self.clock.tick(delta_seconds)
        frame = SimulationFrame(time=time, states=self.states(), warnings=self.warnings())

        critical = [w for w in frame.warnings if w.severity == SEVERITY_CRITICAL]
        if critical:
            logger.debug(
                "t=%.1f min: %d critical proximity warnings", time, len(critical)
            )
        return frame
