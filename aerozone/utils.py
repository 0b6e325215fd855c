"""
AeroZone Utility Functions
Spherical geometry helpers shared by the clustering and simulation engines.
"""

from math import radians, sin, cos, sqrt, atan2, asin, degrees
from typing import Any, Iterable, Optional, Tuple

from .config import Constants


def distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great circle distance between two points using Haversine formula.

    Coordinates are not validated; NaN input yields NaN.

    Args:
        lat1: Latitude of first point in degrees
        lon1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lon2: Longitude of second point in degrees

    Returns:
        Distance in nautical miles

    Example:
        >>> distance_nm(32.0, 34.9, 32.05, 34.95)
        3.94
    """
    # Convert to radians
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return Constants.EARTH_RADIUS_NM * c


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate bearing (direction) from point 1 to point 2.

    Returns the initial bearing (forward azimuth) from the first
    point to the second point. Note that the bearing may change
    along a great circle path.

    Args:
        lat1, lon1: Start point (degrees)
        lat2, lon2: End point (degrees)

    Returns:
        Bearing in degrees (0-360, where 0/360=North, 90=East, 180=South, 270=West)
    """
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    dlon = lon2 - lon1

    x = sin(dlon) * cos(lat2)
    y = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)

    bearing = degrees(atan2(x, y))

    return (bearing + 360) % 360


def destination_point(
    lat: float, lon: float, bearing: float, distance: float
) -> Tuple[float, float]:
    """
    Project a point along a bearing on a spherical Earth.

    Args:
        lat: Start latitude in degrees
        lon: Start longitude in degrees
        bearing: Initial bearing in degrees
        distance: Distance to travel in nautical miles

    Returns:
        Tuple of (latitude, longitude) in degrees

    Example:
        >>> destination_point(32.0, 35.0, 0.0, 60.0)
        (32.9993, 35.0)
    """
    lat_rad = radians(lat)
    lon_rad = radians(lon)
    bearing_rad = radians(bearing)
    angular = distance / Constants.EARTH_RADIUS_NM

    lat_new = asin(
        sin(lat_rad) * cos(angular) + cos(lat_rad) * sin(angular) * cos(bearing_rad)
    )
    lon_new = lon_rad + atan2(
        sin(bearing_rad) * sin(angular) * cos(lat_rad),
        cos(angular) - sin(lat_rad) * sin(lat_new),
    )

    return degrees(lat_new), degrees(lon_new)


def nearest_airport(
    lat: float, lon: float, airports: Iterable[Any]
) -> Tuple[Optional[Any], float]:
    """
    Find the reference airport closest to a point.

    Linear scan over a small table; any object with ``latitude`` and
    ``longitude`` attributes is accepted.

    Args:
        lat: Point latitude in degrees
        lon: Point longitude in degrees
        airports: Reference airports

    Returns:
        Tuple of (airport, distance_nm), or (None, inf) for an empty table
    """
    nearest = None
    min_dist = float("inf")

    for airport in airports:
        dist = distance_nm(lat, lon, airport.latitude, airport.longitude)
        if dist < min_dist:
            min_dist = dist
            nearest = airport

    return nearest, min_dist


def nm_to_degrees(radius_nm: float, latitude: float) -> Tuple[float, float]:
    """
    Convert a distance to degree offsets at a given latitude.

    Args:
        radius_nm: Distance in nautical miles
        latitude: Reference latitude in degrees

    Returns:
        Tuple of (latitude delta, longitude delta) in degrees
    """
    dlat = radius_nm / Constants.NM_PER_DEGREE_LAT
    dlon = radius_nm / (Constants.NM_PER_DEGREE_LAT * cos(radians(latitude)))
    return dlat, dlon


def format_sim_time(minutes: float) -> str:
    """
    Format a simulation time offset.

    Args:
        minutes: Offset in minutes

    Returns:
        Formatted string

    Example:
        >>> format_sim_time(65.5)
        '1h 5m'
    """
    if minutes is None or minutes < 0:
        return "N/A"

    hours = int(minutes // 60)
    mins = int(minutes % 60)

    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        True if coordinates are valid

    Example:
        >>> validate_coordinates(32.0, 34.9)
        True
        >>> validate_coordinates(100, 200)
        False
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180
