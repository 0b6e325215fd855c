"""
AeroZone Simulation Component

Flight-path prediction and time-stepped traffic replay.

Main Classes:
    - FlightPathPredictor: Route matching and great-circle extrapolation
    - SimulationClock: Play/pause virtual timeline
    - TrafficSimulation: Planned flight plus traffic on one timeline

Example:
    >>> from aerozone.simulation import SimulationClock
    >>> clock = SimulationClock.for_flights([45.0, None, 150.0])
    >>> clock.max_time
    120.0
"""

# Main simulation components
from .clock import SimulationClock
from .predictor import (
    FlightPathPredictor,
    LearnedRoute,
    PathPoint,
    TrackedAircraft,
    TrackPoint,
    Waypoint,
    estimate_eta,
)
from .simulator import (
    FlightState,
    ProximityWarning,
    SimulatedFlight,
    SimulationFrame,
    TrafficSimulation,
    classify_proximity,
    detect_proximity,
    interpolate_position,
)

# Utilities
from . import constants

__all__ = [
    # Main classes
    "FlightPathPredictor",
    "SimulationClock",
    "TrafficSimulation",
    # Records
    "TrackPoint",
    "TrackedAircraft",
    "LearnedRoute",
    "PathPoint",
    "Waypoint",
    "SimulatedFlight",
    "FlightState",
    "ProximityWarning",
    "SimulationFrame",
    # Functions
    "estimate_eta",
    "interpolate_position",
    "classify_proximity",
    "detect_proximity",
    # Modules
    "constants",
]
