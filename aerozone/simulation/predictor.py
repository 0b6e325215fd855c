"""
Flight-Path Prediction
Forecasts where each tracked aircraft will be over the next hour.

This module predicts paths by:
1. Resolving a destination airport (track history, else heading projection)
2. Matching the aircraft against learned route centerlines
3. Walking the matched centerline forward at the aircraft's ground speed
4. Falling back to great-circle extrapolation with a descent profile
"""

import logging
from dataclasses import dataclass
from math import ceil
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import Constants, Settings
from ..reference import Airport, AirportDirectory
from ..utils import bearing_deg, destination_point, distance_nm
from .constants import ARRIVAL_EPSILON_NM, MIN_CENTERLINE_POINTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackPoint:
    """A point of a recorded track or learned centerline."""

    latitude: float
    longitude: float
    altitude_ft: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackPoint":
        alt = data.get("alt", data.get("alt_ft"))
        return cls(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            altitude_ft=float(alt) if alt is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"lat": self.latitude, "lon": self.longitude, "alt": self.altitude_ft}


@dataclass(frozen=True)
class Waypoint:
    """Origin or destination of the planned flight."""

    latitude: float
    longitude: float
    altitude_ft: Optional[float] = None
    name: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Waypoint":
        alt = data.get("alt_ft")
        return cls(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            altitude_ft=float(alt) if alt is not None else None,
            name=data.get("name"),
            code=data.get("airport_code", data.get("code")),
        )

    @classmethod
    def from_airport(cls, airport: Airport) -> "Waypoint":
        return cls(
            latitude=airport.latitude,
            longitude=airport.longitude,
            name=airport.name,
            code=airport.code,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.latitude,
            "lon": self.longitude,
            "alt_ft": self.altitude_ft,
            "name": self.name,
            "airport_code": self.code,
        }


@dataclass(frozen=True)
class TrackedAircraft:
    """Current kinematic state of an aircraft, with optional track history."""

    flight_id: str
    latitude: float
    longitude: float
    altitude_ft: float
    heading_deg: float
    speed_kts: float
    callsign: Optional[str] = None
    is_simulated: bool = False
    track: Tuple[TrackPoint, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackedAircraft":
        """Build an aircraft from a traffic record."""
        return cls(
            flight_id=str(data["flight_id"]),
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            altitude_ft=float(data.get("alt_ft") or 0.0),
            heading_deg=float(data.get("heading_deg") or 0.0),
            speed_kts=float(data.get("speed_kts") or 0.0),
            callsign=data.get("callsign"),
            is_simulated=bool(data.get("is_simulated", False)),
            track=tuple(TrackPoint.from_dict(p) for p in data.get("track_points") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flight_id": self.flight_id,
            "callsign": self.callsign,
            "lat": self.latitude,
            "lon": self.longitude,
            "alt_ft": self.altitude_ft,
            "heading_deg": self.heading_deg,
            "speed_kts": self.speed_kts,
            "is_simulated": self.is_simulated,
            "track_points": [p.to_dict() for p in self.track],
        }


@dataclass(frozen=True)
class LearnedRoute:
    """A precomputed representative path between two areas."""

    route_id: str
    centerline: Tuple[TrackPoint, ...]
    origin: Optional[str] = None
    destination: Optional[str] = None
    width_nm: Optional[float] = None
    member_count: int = 0

    @property
    def start(self) -> TrackPoint:
        return self.centerline[0]

    @property
    def end(self) -> TrackPoint:
        return self.centerline[-1]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LearnedRoute":
        """Build a route from a learned-path record."""
        width = data.get("width_nm")
        return cls(
            route_id=str(data.get("id", "")),
            centerline=tuple(TrackPoint.from_dict(p) for p in data.get("centerline") or []),
            origin=data.get("origin"),
            destination=data.get("destination"),
            width_nm=float(width) if width is not None else None,
            member_count=int(data.get("member_count") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.route_id,
            "origin": self.origin,
            "destination": self.destination,
            "centerline": [p.to_dict() for p in self.centerline],
            "width_nm": self.width_nm,
            "member_count": self.member_count,
        }


@dataclass(frozen=True)
class PathPoint:
    """A predicted position at a time offset from now."""

    latitude: float
    longitude: float
    altitude_ft: float
    time_offset_min: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PathPoint":
        return cls(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            altitude_ft=float(data.get("alt_ft") or 0.0),
            time_offset_min=float(data["time_offset_min"]),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "lat": self.latitude,
            "lon": self.longitude,
            "alt_ft": self.altitude_ft,
            "time_offset_min": self.time_offset_min,
        }


def estimate_eta(aircraft: TrackedAircraft, dest_lat: float, dest_lon: float) -> Optional[float]:
    """
    Estimate minutes to destination at constant ground speed.

    Args:
        aircraft: Aircraft state
        dest_lat: Destination latitude
        dest_lon: Destination longitude

    Returns:
        ETA in minutes, or None when the speed is unknown or zero
    """
    if not aircraft.speed_kts or aircraft.speed_kts <= 0:
        return None
    total = distance_nm(aircraft.latitude, aircraft.longitude, dest_lat, dest_lon)
    return total / aircraft.speed_kts * Constants.MINUTES_PER_HOUR


class FlightPathPredictor:
    """
    Predicts future positions of tracked aircraft.

    Configuration:
        match_radius_nm: Centerline start must lie within this distance
        horizon_minutes: Default prediction window
        projection_nm: Heading projection used to guess a destination
        max_samples: Upper bound on fallback samples
        sample_interval_min: Fallback sample spacing
        descent_fraction: Final share of the distance spent descending
    """

    def __init__(
        self,
        airports: AirportDirectory,
        match_radius_nm: float = Settings.ROUTE_MATCH_RADIUS_NM,
        horizon_minutes: float = Settings.PREDICTION_HORIZON_MIN,
        projection_nm: float = Settings.HEADING_PROJECTION_NM,
        max_samples: int = Settings.MAX_PATH_SAMPLES,
        sample_interval_min: float = Settings.SAMPLE_INTERVAL_MIN,
        descent_fraction: float = Settings.DESCENT_FRACTION,
    ) -> None:
        """
        Initialize predictor.

        Args:
            airports: Reference airports for destination resolution
            match_radius_nm: Route matching radius (default: 50nm)
            horizon_minutes: Prediction window (default: 60 min)
            projection_nm: Heading projection distance (default: 100nm)
            max_samples: Max fallback samples (default: 20)
            sample_interval_min: Fallback spacing (default: 5 min)
            descent_fraction: Descent share of the distance (default: 0.2)
        """
        self.airports = airports
        self.match_radius_nm = match_radius_nm
        self.horizon_minutes = horizon_minutes
        self.projection_nm = projection_nm
        self.max_samples = max_samples
        self.sample_interval_min = sample_interval_min
        self.descent_fraction = descent_fraction

    @classmethod
    def from_config(cls, config: Any, airports: AirportDirectory) -> "FlightPathPredictor":
        """Build a predictor from the ``prediction`` config section."""
        return cls(
            airports,
            match_radius_nm=float(
                config.get("prediction.match_radius_nm", Settings.ROUTE_MATCH_RADIUS_NM)
            ),
            horizon_minutes=config.prediction_horizon,
            projection_nm=float(
                config.get("prediction.projection_nm", Settings.HEADING_PROJECTION_NM)
            ),
        )

    def resolve_destination(self, aircraft: TrackedAircraft) -> Optional[Airport]:
        """
        Guess where an aircraft is heading.

        Prefers the airport nearest the last recorded track point; otherwise
        projects the aircraft ahead along its heading.

        Args:
            aircraft: Aircraft state

        Returns:
            Airport, or None if the directory is empty
        """
        if aircraft.track:
            last = aircraft.track[-1]
            airport, _ = self.airports.nearest(last.latitude, last.longitude)
            return airport

        proj_lat, proj_lon = destination_point(
            aircraft.latitude, aircraft.longitude, aircraft.heading_deg, self.projection_nm
        )
        airport, _ = self.airports.nearest(proj_lat, proj_lon)
        return airport

    def estimate_eta(
        self, aircraft: TrackedAircraft, dest_lat: float, dest_lon: float
    ) -> Optional[float]:
        """Minutes to destination at the aircraft's current ground speed."""
        return estimate_eta(aircraft, dest_lat, dest_lon)

    def match_route(
        self,
        aircraft: TrackedAircraft,
        dest_lat: float,
        dest_lon: float,
        routes: Sequence[LearnedRoute],
    ) -> Optional[LearnedRoute]:
        """
        Find the learned route that best connects aircraft and destination.

        Score is the distance from the aircraft to the centerline start plus
        the distance from the centerline end to the destination; only routes
        starting within the match radius qualify.

        Args:
            aircraft: Aircraft state
            dest_lat: Destination latitude
            dest_lon: Destination longitude
            routes: Learned routes

        Returns:
            Lowest-score route, or None if none qualifies
        """
        best: Optional[LearnedRoute] = None
        best_score = float("inf")

        for route in routes:
            if len(route.centerline) < MIN_CENTERLINE_POINTS:
                continue

            to_start = distance_nm(
                aircraft.latitude, aircraft.longitude,
                route.start.latitude, route.start.longitude,
            )
            if to_start >= self.match_radius_nm:
                continue

            to_end = distance_nm(
                route.end.latitude, route.end.longitude, dest_lat, dest_lon
            )
            score = to_start + to_end
            if score < best_score:
                best_score = score
                best = route

        return best

    def predict_path(
        self,
        aircraft: TrackedAircraft,
        dest_lat: float,
        dest_lon: float,
        routes: Sequence[LearnedRoute],
        horizon_minutes: Optional[float] = None,
    ) -> List[PathPoint]:
        """
        Predict a timestamped sequence of future positions.

        Args:
            aircraft: Aircraft state
            dest_lat: Destination latitude
            dest_lon: Destination longitude
            routes: Learned routes to match against
            horizon_minutes: Prediction window (default: predictor horizon)

        Returns:
            Path points in non-decreasing time order
        """
        horizon = self.horizon_minutes if horizon_minutes is None else horizon_minutes

        if aircraft.speed_kts <= 0:
            # Stationary aircraft hold their position over the window
            return [
                PathPoint(
                    aircraft.latitude, aircraft.longitude, aircraft.altitude_ft, horizon
                )
            ]

        route = self.match_route(aircraft, dest_lat, dest_lon, routes)
        if route is not None:
            logger.debug("Flight %s matched route %s", aircraft.flight_id, route.route_id)
            return self._follow_centerline(aircraft, route, horizon)

        logger.debug("Flight %s has no route match, extrapolating", aircraft.flight_id)
        return self._extrapolate(aircraft, dest_lat, dest_lon, horizon)

    def _follow_centerline(
        self, aircraft: TrackedAircraft, route: LearnedRoute, horizon: float
    ) -> List[PathPoint]:
        """
        Walk a centerline forward from the point closest to the aircraft.

        The walk stops once the elapsed time reaches the horizon or the
        centerline ends; the point that crosses the horizon is kept.
        """
        closest_idx = min(
            range(len(route.centerline)),
            key=lambda i: distance_nm(
                aircraft.latitude, aircraft.longitude,
                route.centerline[i].latitude, route.centerline[i].longitude,
            ),
        )

        path: List[PathPoint] = []
        elapsed = 0.0
        prev_lat, prev_lon = aircraft.latitude, aircraft.longitude

        for point in route.centerline[closest_idx:]:
            if elapsed >= horizon:
                break
            segment = distance_nm(prev_lat, prev_lon, point.latitude, point.longitude)
            elapsed += segment / aircraft.speed_kts * Constants.MINUTES_PER_HOUR

            altitude = point.altitude_ft if point.altitude_ft else aircraft.altitude_ft
            path.append(PathPoint(point.latitude, point.longitude, altitude, elapsed))
            prev_lat, prev_lon = point.latitude, point.longitude

        return path

    def _extrapolate(
        self, aircraft: TrackedAircraft, dest_lat: float, dest_lon: float, horizon: float
    ) -> List[PathPoint]:
        """
        Linear great-circle extrapolation toward the destination.

        Samples are evenly spaced in time. Altitude holds until the descent
        phase, then falls linearly to zero; reaching the destination emits a
        landed point and ends the path.
        """
        total = distance_nm(aircraft.latitude, aircraft.longitude, dest_lat, dest_lon)
        if total <= ARRIVAL_EPSILON_NM:
            return []

        bearing = bearing_deg(aircraft.latitude, aircraft.longitude, dest_lat, dest_lon)
        samples = min(self.max_samples, ceil(horizon / self.sample_interval_min))
        cruise_fraction = 1.0 - self.descent_fraction

        path: List[PathPoint] = []
        for i in range(1, samples + 1):
            offset = (i / samples) * horizon
            travelled = aircraft.speed_kts / Constants.MINUTES_PER_HOUR * offset

            if travelled >= total - ARRIVAL_EPSILON_NM:
                path.append(PathPoint(dest_lat, dest_lon, 0.0, offset))
                break

            lat, lon = destination_point(
                aircraft.latitude, aircraft.longitude, bearing, travelled
            )

            progress = travelled / total
            altitude = aircraft.altitude_ft
            if progress > cruise_fraction:
                altitude = aircraft.altitude_ft * (1 - (progress - cruise_fraction) / self.descent_fraction)

            path.append(PathPoint(lat, lon, max(0.0, altitude), offset))

        return path
