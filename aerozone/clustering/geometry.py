"""
Cluster Geometry
Planar polygon helpers over (lon, lat) pairs.

Earth curvature is ignored; clusters span at most a few hundred nautical
miles, where a planar hull is a good enough outline for display.
"""

from math import cos, pi, sin
from typing import Iterable, List, Sequence, Tuple

from ..utils import nm_to_degrees
from .constants import CIRCLE_BUFFER_POINTS

Coord = Tuple[float, float]


def cross_product(o: Coord, a: Coord, b: Coord) -> float:
    """
    Z component of (a - o) x (b - o).

    Positive when o -> a -> b turns counter-clockwise, zero when collinear.
    """
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _squared_distance(a: Coord, b: Coord) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def convex_hull(points: Iterable[Coord]) -> List[Coord]:
    """
    Compute the convex hull using the gift wrapping (Jarvis march) algorithm.

    Starts from the leftmost point (lowest latitude on ties) and repeatedly
    picks the candidate with no point to its clockwise side. Collinear ties
    go to the farthest candidate, so intermediate points on an edge are
    skipped and an all-collinear input collapses to its two endpoints.
    Duplicate points are removed first.

    Args:
        points: (lon, lat) pairs

    Returns:
        Hull vertices in counter-clockwise order, not closed. Fewer than
        three vertices means the input is degenerate.
    """
    unique: List[Coord] = list(dict.fromkeys((float(x), float(y)) for x, y in points))
    if len(unique) < 3:
        return unique

    start = min(range(len(unique)), key=lambda i: unique[i])
    hull: List[Coord] = []
    current = start

    while True:
        hull.append(unique[current])
        candidate = (current + 1) % len(unique)

        for i, point in enumerate(unique):
            if i == current or i == candidate:
                continue
            turn = cross_product(unique[current], unique[candidate], point)
            if turn < 0 or (
                turn == 0
                and _squared_distance(unique[current], point)
                > _squared_distance(unique[current], unique[candidate])
            ):
                candidate = i

        current = candidate
        if current == start or len(hull) >= len(unique):
            break

    return hull


def close_ring(coords: Sequence[Coord]) -> List[Coord]:
    """Return the ring with its first vertex repeated at the end."""
    ring = [(float(x), float(y)) for x, y in coords]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def distinct_vertices(coords: Sequence[Coord]) -> int:
    """Count distinct vertices of a ring, ignoring the closing vertex."""
    return len({(float(x), float(y)) for x, y in coords})


def is_valid_ring(coords: Sequence[Coord]) -> bool:
    """Check that a ring is closed and has at least three distinct vertices."""
    return (
        len(coords) >= 4
        and tuple(coords[0]) == tuple(coords[-1])
        and distinct_vertices(coords) >= 3
    )


def circle_polygon(
    center_lon: float,
    center_lat: float,
    radius_nm: float,
    num_points: int = CIRCLE_BUFFER_POINTS,
) -> List[Coord]:
    """
    Generate a regular polygon approximating a circle.

    Used for clusters of one or two events, which cannot form a hull.

    Args:
        center_lon: Center longitude
        center_lat: Center latitude
        radius_nm: Radius in nautical miles
        num_points: Number of vertices before closing

    Returns:
        Closed ring of (lon, lat) pairs
    """
    radius_lat, radius_lon = nm_to_degrees(radius_nm, center_lat)

    coords: List[Coord] = []
    for i in range(num_points):
        angle = (i / num_points) * 2 * pi
        coords.append(
            (center_lon + radius_lon * cos(angle), center_lat + radius_lat * sin(angle))
        )

    return close_ring(coords)


def grid_cell_polygon(center_lon: float, center_lat: float, cell_size_deg: float) -> List[Coord]:
    """
    Square grid cell centered on a point.

    Args:
        center_lon: Cell center longitude
        center_lat: Cell center latitude
        cell_size_deg: Cell edge length in degrees

    Returns:
        Closed ring of (lon, lat) pairs
    """
    half = cell_size_deg / 2
    return close_ring(
        [
            (center_lon - half, center_lat - half),
            (center_lon + half, center_lat - half),
            (center_lon + half, center_lat + half),
            (center_lon - half, center_lat + half),
        ]
    )
