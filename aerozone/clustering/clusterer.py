"""
Spatial Event Clustering
Groups located signal-loss / anomaly events into displayable regions.

This module clusters events by:
1. Linking every pair of events within a distance threshold (single linkage)
2. Outlining each group with a convex hull (3+ events) or a circle buffer
3. Passing backend-computed polygons through untouched when available

Polygon precedence is strict: backend polygon > circle buffer > local hull.
"""

import logging
from dataclasses import dataclass
from math import radians
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import Constants, Settings
from ..utils import distance_nm
from .constants import (
    BACKEND_EVENT_DURATION_S,
    BUFFER_RADIUS_DIVISOR,
    FALLBACK_BUFFER_RADIUS_NM,
    MIN_HULL_POINTS,
    SOURCE_BACKEND,
    SOURCE_BUFFER,
    SOURCE_HULL,
)
from .geometry import (
    Coord,
    circle_polygon,
    close_ring,
    convex_hull,
    distinct_vertices,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocatedEvent:
    """A signal-loss or anomaly observation aggregated at a point."""

    latitude: float
    longitude: float
    count: int = 1
    avg_duration_s: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocatedEvent":
        """
        Build an event from a backend record.

        Accepts ``lat``/``lon`` with ``count`` or ``event_count`` and
        ``avgDuration`` or ``avg_duration``.
        """
        count = data.get("count", data.get("event_count", 1))
        duration = data.get("avgDuration", data.get("avg_duration"))
        return cls(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            count=int(count),
            avg_duration_s=float(duration) if duration is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain record."""
        return {
            "lat": self.latitude,
            "lon": self.longitude,
            "count": self.count,
            "avg_duration_s": self.avg_duration_s,
        }


@dataclass(frozen=True)
class Cluster:
    """
    A group of events with an outline polygon.

    Attributes:
        members: Events in the cluster, in input order
        centroid: (lon, lat) arithmetic mean of member positions
        total_count: Sum of member counts
        polygon: Closed ring of (lon, lat) pairs
        source: Which regime produced the polygon (backend, buffer or hull)
    """

    members: Tuple[LocatedEvent, ...]
    centroid: Coord
    total_count: int
    polygon: Tuple[Coord, ...]
    source: str

    @property
    def point_count(self) -> int:
        """Number of member events."""
        return len(self.members)

    @property
    def is_buffer(self) -> bool:
        """True if the polygon is a synthesized circle buffer."""
        return self.source == SOURCE_BUFFER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain record (GeoJSON coordinate order)."""
        return {
            "centroid": list(self.centroid),
            "total_count": self.total_count,
            "point_count": self.point_count,
            "polygon": [list(c) for c in self.polygon],
            "source": self.source,
            "points": [m.to_dict() for m in self.members],
        }


class _DisjointSet:
    """Union-find over integer indices with path halving."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, x: int) -> int:
        while self.parent[x] != x:
            self.parent[x] = self.parent[self.parent[x]]
            x = self.parent[x]
        return x

    def union(self, x: int, y: int) -> None:
        root_x, root_y = self.find(x), self.find(y)
        if root_x == root_y:
            return
        # Lower index becomes the root so group order follows input order
        if root_x < root_y:
            self.parent[root_y] = root_x
        else:
            self.parent[root_x] = root_y


class SpatialClusterer:
    """
    Single-linkage spatial clusterer for located events.

    Algorithm:
    1. Sort events by latitude and sweep; pairs further apart in latitude
       than the threshold cannot be linked and are never compared
    2. Union every remaining pair within the threshold
    3. Outline each resulting group (hull for 3+ events, circle buffer below)

    The sweep keeps single-linkage semantics while avoiding the cubic
    cost of growing clusters by repeated rescans.

    Configuration:
        threshold_nm: Maximum link distance between two events
        buffer_points: Vertices of a circle buffer polygon
        min_buffer_radius_nm: Floor for the circle buffer radius
        single_buffer_radius_nm: Radius for backend-reported singles
    """

    def __init__(
        self,
        threshold_nm: float = Settings.CLUSTER_THRESHOLD_NM,
        buffer_points: int = Settings.BUFFER_POINTS,
        min_buffer_radius_nm: float = Settings.MIN_BUFFER_RADIUS_NM,
        single_buffer_radius_nm: float = Settings.SINGLE_BUFFER_RADIUS_NM,
    ) -> None:
        """
        Initialize clusterer.

        Args:
            threshold_nm: Link distance in nautical miles (default: 50nm)
            buffer_points: Circle buffer vertices (default: 16)
            min_buffer_radius_nm: Minimum buffer radius (default: 8nm)
            single_buffer_radius_nm: Backend singles radius (default: 12nm)
        """
        self.threshold_nm = threshold_nm
        self.buffer_points = buffer_points
        self.min_buffer_radius_nm = min_buffer_radius_nm
        self.single_buffer_radius_nm = single_buffer_radius_nm

    @classmethod
    def from_config(cls, config: Any) -> "SpatialClusterer":
        """Build a clusterer from the ``clustering`` config section."""
        return cls(
            threshold_nm=config.cluster_threshold_nm,
            buffer_points=int(config.get("clustering.buffer_points", Settings.BUFFER_POINTS)),
            min_buffer_radius_nm=float(
                config.get("clustering.min_buffer_radius_nm", Settings.MIN_BUFFER_RADIUS_NM)
            ),
            single_buffer_radius_nm=float(
                config.get("clustering.single_buffer_radius_nm", Settings.SINGLE_BUFFER_RADIUS_NM)
            ),
        )

    @property
    def buffer_radius_nm(self) -> float:
        """Circle buffer radius for 1-2 event clusters, proportional to the threshold."""
        return max(self.min_buffer_radius_nm, self.threshold_nm / BUFFER_RADIUS_DIVISOR)

    def build(
        self,
        events: Sequence[LocatedEvent],
        precomputed: Optional[Dict[str, Any]] = None,
    ) -> List[Cluster]:
        """
        Produce clusters, preferring backend-computed geometry.

        Args:
            events: Raw events, clustered locally if no backend clusters exist
            precomputed: Optional backend payload with ``clusters``/``singles``

        Returns:
            List of clusters
        """
        if precomputed and precomputed.get("clusters"):
            return self.from_backend(precomputed)
        return self.cluster(events)

    def group(self, events: Sequence[LocatedEvent]) -> List[List[LocatedEvent]]:
        """
        Partition events into single-linkage groups.

        Two events share a group iff a chain of links, each no longer than
        the threshold, connects them.

        Args:
            events: Events to partition

        Returns:
            Groups ordered by their first member's input index, members in
            input order
        """
        if not events:
            return []

        sets = _DisjointSet(len(events))
        order = sorted(range(len(events)), key=lambda i: events[i].latitude)

        # Great-circle distance is never shorter than the meridional separation
        lat_window_rad = self.threshold_nm / Constants.EARTH_RADIUS_NM

        for pos, i in enumerate(order):
            a = events[i]
            for j in order[pos + 1:]:
                b = events[j]
                if radians(b.latitude - a.latitude) > lat_window_rad:
                    break
                if distance_nm(a.latitude, a.longitude, b.latitude, b.longitude) <= self.threshold_nm:
                    sets.union(i, j)

        groups: Dict[int, List[LocatedEvent]] = {}
        for i, event in enumerate(events):
            groups.setdefault(sets.find(i), []).append(event)

        return list(groups.values())

    def cluster(self, events: Sequence[LocatedEvent]) -> List[Cluster]:
        """
        Cluster events locally and outline each group.

        Groups whose hull degenerates (collinear events) are dropped.

        Args:
            events: Events to cluster

        Returns:
            List of clusters
        """
        clusters: List[Cluster] = []
        dropped = 0

        for members in self.group(events):
            cluster = self._outline(members)
            if cluster is None:
                dropped += 1
                continue
            clusters.append(cluster)

        logger.info(
            "Clustered %d events into %d clusters (threshold %.1fnm, %d degenerate dropped)",
            len(events), len(clusters), self.threshold_nm, dropped,
        )
        return clusters

    def from_backend(self, payload: Dict[str, Any]) -> List[Cluster]:
        """
        Adopt backend-computed clusters without recomputing their geometry.

        Backend polygons with at least three distinct vertices are kept as
        given (closed if left open). Clusters without one fall back to local
        geometry. Singles become fixed-radius circle buffers.

        Args:
            payload: ``{clusters: [{centroid, polygon, points, total_events}],
                      singles: [{lat, lon, event_count}]}``

        Returns:
            List of clusters, backend clusters first
        """
        clusters: List[Cluster] = []

        for record in payload.get("clusters") or []:
            members = tuple(
                self._backend_event(p) for p in record.get("points") or []
            )
            centroid = self._backend_centroid(record, members)
            if centroid is None:
                logger.debug("Skipping backend cluster without centroid or points")
                continue
            total = int(record.get("total_events", sum(m.count for m in members)))
            polygon = record.get("polygon") or []

            if distinct_vertices(polygon) >= 3:
                clusters.append(
                    Cluster(
                        members=members,
                        centroid=centroid,
                        total_count=total,
                        polygon=tuple(close_ring(polygon)),
                        source=SOURCE_BACKEND,
                    )
                )
                continue

            fallback = self._outline(list(members), centroid=centroid, total=total)
            if fallback is None:
                logger.debug("Backend cluster at %s has no usable geometry", centroid)
                fallback = Cluster(
                    members=members,
                    centroid=centroid,
                    total_count=total,
                    polygon=tuple(
                        circle_polygon(
                            centroid[0], centroid[1],
                            FALLBACK_BUFFER_RADIUS_NM, self.buffer_points,
                        )
                    ),
                    source=SOURCE_BUFFER,
                )
            clusters.append(fallback)

        for single in payload.get("singles") or []:
            event = self._backend_event(single)
            clusters.append(
                Cluster(
                    members=(event,),
                    centroid=(event.longitude, event.latitude),
                    total_count=event.count,
                    polygon=tuple(
                        circle_polygon(
                            event.longitude, event.latitude,
                            self.single_buffer_radius_nm, self.buffer_points,
                        )
                    ),
                    source=SOURCE_BUFFER,
                )
            )

        logger.info("Adopted %d backend clusters", len(clusters))
        return clusters

    def _outline(
        self,
        members: List[LocatedEvent],
        centroid: Optional[Coord] = None,
        total: Optional[int] = None,
    ) -> Optional[Cluster]:
        """
        Outline a group of events.

        Args:
            members: Group members
            centroid: Override for the computed centroid
            total: Override for the summed count

        Returns:
            Cluster, or None if the group has no usable geometry
        """
        if not members:
            return None

        if centroid is None:
            centroid = (
                sum(m.longitude for m in members) / len(members),
                sum(m.latitude for m in members) / len(members),
            )
        if total is None:
            total = sum(m.count for m in members)

        if len(members) >= MIN_HULL_POINTS:
            hull = convex_hull((m.longitude, m.latitude) for m in members)
            if len(hull) < 3:
                logger.debug(
                    "Dropping degenerate cluster of %d events at %s", len(members), centroid
                )
                return None
            polygon = close_ring(hull)
            source = SOURCE_HULL
        else:
            polygon = circle_polygon(
                centroid[0], centroid[1], self.buffer_radius_nm, self.buffer_points
            )
            source = SOURCE_BUFFER

        return Cluster(
            members=tuple(members),
            centroid=centroid,
            total_count=total,
            polygon=tuple(polygon),
            source=source,
        )

    def _backend_event(self, record: Dict[str, Any]) -> LocatedEvent:
        """Convert a backend point record into an event."""
        return LocatedEvent(
            latitude=float(record["lat"]),
            longitude=float(record["lon"]),
            count=int(record.get("event_count", record.get("count", 1))),
            avg_duration_s=float(record.get("avg_duration", BACKEND_EVENT_DURATION_S)),
        )

    def _backend_centroid(
        self, record: Dict[str, Any], members: Tuple[LocatedEvent, ...]
    ) -> Optional[Coord]:
        """Backend centroid as (lon, lat), or the member mean if absent."""
        centroid = record.get("centroid")
        if centroid is not None:
            return (float(centroid[0]), float(centroid[1]))
        if not members:
            return None
        return (
            sum(m.longitude for m in members) / len(members),
            sum(m.latitude for m in members) / len(members),
        )
