"""
Zone Renderer Adapter
Maps congestion, coverage-gap and jamming zones and clusters into renderable
polygon + marker records.

The adapter only thresholds, sorts and caps; it keeps clustering output
decoupled from whatever draws it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import Settings
from ..reference import ColorPalette
from .clusterer import Cluster, LocatedEvent
from .constants import (
    CLUSTER_INTENSITY_TIERS,
    CONGESTION_LEVELS,
    CONGESTION_THRESHOLDS,
    FALLBACK_BUFFER_RADIUS_NM,
    MAX_RISK_SCORE,
    MIN_FLIGHTS_FOR_LABEL,
    RISK_TIERS,
    TOP_RANK_LABELS,
    ZONE_TYPE_COVERAGE,
    ZONE_TYPE_JAMMING,
)
from .geometry import Coord, circle_polygon, close_ring, distinct_vertices, grid_cell_polygon

logger = logging.getLogger(__name__)

Bounds = Tuple[float, float, float, float]


def classify_congestion(density_score: float) -> str:
    """
    Map a density score to a congestion level.

    Args:
        density_score: Backend density score

    Returns:
        'critical' (>50), 'high' (>30), 'moderate' (>15) or 'low'
    """
    for bound, level in CONGESTION_THRESHOLDS:
        if density_score > bound:
            return level
    return "low"


def _intensity_tier(intensity: float) -> str:
    for bound, level in CLUSTER_INTENSITY_TIERS:
        if intensity >= bound:
            return level
    return "low"


def classify_risk(risk_score: float) -> str:
    """
    Map a coverage-gap or jamming score (0-100) to a severity tier.

    Returns:
        'critical' (>=60), 'moderate' (>=40) or 'low'
    """
    for bound, level in RISK_TIERS:
        if risk_score >= bound:
            return level
    return "low"


@dataclass(frozen=True)
class CongestionZone:
    """An airspace cell with its congestion metrics."""

    latitude: float
    longitude: float
    density_score: float
    flight_count: int = 0
    holding_count: int = 0
    avg_altitude_ft: float = 0.0
    flights_per_hour: float = 0.0
    polygon: Optional[Tuple[Coord, ...]] = None

    @property
    def congestion_level(self) -> str:
        """Level derived from the density score."""
        return classify_congestion(self.density_score)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CongestionZone":
        """
        Build a zone from a backend bottleneck record.

        A supplied ``congestion_level`` is not trusted; the level always
        follows the density score.
        """
        polygon = data.get("polygon")
        zone = cls(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            density_score=float(data.get("density_score") or 0.0),
            flight_count=int(data.get("flight_count") or 0),
            holding_count=int(data.get("holding_count") or 0),
            avg_altitude_ft=float(data.get("avg_altitude") or 0.0),
            flights_per_hour=float(data.get("flights_per_hour") or 0.0),
            polygon=tuple((float(x), float(y)) for x, y in polygon) if polygon else None,
        )
        supplied = data.get("congestion_level")
        if supplied is not None and supplied != zone.congestion_level:
            logger.debug(
                "Zone at (%.2f, %.2f) reported %s, score %.1f implies %s",
                zone.latitude, zone.longitude, supplied,
                zone.density_score, zone.congestion_level,
            )
        return zone


@dataclass(frozen=True)
class CoverageZone:
    """
    A server-computed signal-coverage gap or GPS jamming area.

    Attributes:
        zone_id: Backend identifier
        zone_type: 'coverage' or 'jamming'
        centroid: (lon, lat) of the zone center
        polygon: (lon, lat) outline as delivered by the backend
        risk_score: Risk (coverage) or jamming score, 0-100
        event_count: Signal-loss or jamming events in the zone
        affected_flights: Distinct flights that crossed it
        avg_gap_duration_s: Mean signal gap (coverage zones)
        gap_type: Backend gap classification (coverage zones)
        jamming_type: 'spoofing', 'denial' or 'mixed' (jamming zones)
        confidence: Backend confidence label (jamming zones)
        area_sq_nm: Estimated area
    """

    zone_id: str
    zone_type: str
    centroid: Coord
    polygon: Tuple[Coord, ...]
    risk_score: float
    event_count: int = 0
    affected_flights: int = 0
    avg_gap_duration_s: Optional[float] = None
    gap_type: Optional[str] = None
    jamming_type: Optional[str] = None
    confidence: Optional[str] = None
    area_sq_nm: Optional[float] = None

    @property
    def risk_level(self) -> str:
        return classify_risk(self.risk_score)

    @property
    def is_high_risk(self) -> bool:
        return self.risk_score >= RISK_TIERS[0][0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoverageZone":
        """
        Build a zone from a coverage-gap or jamming record.

        Records carrying a ``jamming_score`` are jamming zones; the others
        are coverage gaps scored by ``risk_score``.
        """
        is_jamming = "jamming_score" in data
        score = data.get("jamming_score") if is_jamming else data.get("risk_score")
        lon, lat = data["centroid"]
        duration = data.get("avg_gap_duration_sec")
        area = data.get("area_sq_nm")
        return cls(
            zone_id=str(data.get("id", "")),
            zone_type=ZONE_TYPE_JAMMING if is_jamming else ZONE_TYPE_COVERAGE,
            centroid=(float(lon), float(lat)),
            polygon=tuple((float(x), float(y)) for x, y in data.get("polygon") or []),
            risk_score=float(score or 0.0),
            event_count=int(data.get("event_count") or 0),
            affected_flights=int(data.get("affected_flights") or 0),
            avg_gap_duration_s=float(duration) if duration is not None else None,
            gap_type=data.get("gap_type"),
            jamming_type=data.get("jamming_type"),
            confidence=data.get("confidence"),
            area_sq_nm=float(area) if area is not None else None,
        )


@dataclass(frozen=True)
class RenderableZone:
    """
    Display descriptor handed to the rendering layer.

    Attributes:
        rank: 1-based display rank
        kind: 'zone', 'cluster', 'hotspot', 'coverage' or 'jamming'
        polygon: Closed (lon, lat) ring, empty for marker-only records
        marker: (lon, lat) of the label marker
        label: Marker text
        level: Severity tier
        weight: Visual weight of the tier (0-1)
        intensity: Score relative to the top record, or to the 0-100 risk scale (0-1)
        color: Hex color of the tier
        score: Sort key (density score, event count or risk score)
        properties: Popup fields
    """

    rank: int
    kind: str
    polygon: Tuple[Coord, ...]
    marker: Coord
    label: str
    level: str
    weight: float
    intensity: float
    color: str
    score: float
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_feature(self) -> Dict[str, Any]:
        """Convert to a GeoJSON feature (polygon, or point if marker-only)."""
        if self.polygon:
            geometry = {"type": "Polygon", "coordinates": [[list(c) for c in self.polygon]]}
        else:
            geometry = {"type": "Point", "coordinates": list(self.marker)}

        return {
            "type": "Feature",
            "properties": {
                "rank": self.rank,
                "kind": self.kind,
                "label": self.label,
                "level": self.level,
                "weight": self.weight,
                "intensity": self.intensity,
                "color": self.color,
                "score": self.score,
                **self.properties,
            },
            "geometry": geometry,
        }


class ZoneRenderer:
    """
    Turns zones, clusters, coverage gaps and raw events into ranked display
    records.

    Example:
        >>> renderer = ZoneRenderer(ColorPalette.from_config(config))
        >>> records = renderer.render_zones(zones)
        >>> records[0].label
        '#1'
    """

    def __init__(
        self,
        palette: ColorPalette,
        weights: Optional[Dict[str, float]] = None,
        zone_limit: int = Settings.ZONE_DISPLAY_LIMIT,
        cluster_limit: int = Settings.CLUSTER_DISPLAY_LIMIT,
        hotspot_limit: int = Settings.HOTSPOT_DISPLAY_LIMIT,
        coverage_limit: int = Settings.COVERAGE_DISPLAY_LIMIT,
        cell_size_deg: float = Settings.GRID_CELL_SIZE_DEG,
        bounds: Optional[Bounds] = None,
    ) -> None:
        """
        Initialize renderer.

        Args:
            palette: Severity colors
            weights: Visual weight per severity tier
            zone_limit: Congestion zones kept (default: 10)
            cluster_limit: Clusters kept (default: 15)
            hotspot_limit: Raw event markers kept (default: 30)
            coverage_limit: Coverage-gap and jamming zones kept (default: 20)
            cell_size_deg: Grid cell for zones without a polygon (default: 0.25°)
            bounds: Optional (lat_min, lon_min, lat_max, lon_max) display filter

        Raises:
            ValueError: If a severity tier has no weight or color
        """
        self.palette = palette
        self.weights = dict(weights or Settings.SEVERITY_WEIGHTS)
        self.zone_limit = zone_limit
        self.cluster_limit = cluster_limit
        self.hotspot_limit = hotspot_limit
        self.coverage_limit = coverage_limit
        self.cell_size_deg = cell_size_deg
        self.bounds = bounds

        for level in CONGESTION_LEVELS:
            if level not in self.weights:
                raise ValueError(f"Missing visual weight for severity level: {level}")
            palette.severity_color(level)

    @classmethod
    def from_config(cls, config: Any, palette: ColorPalette) -> "ZoneRenderer":
        """Build a renderer from the ``zones`` and ``region`` config sections."""
        return cls(
            palette,
            zone_limit=int(config.get("zones.zone_limit", Settings.ZONE_DISPLAY_LIMIT)),
            cluster_limit=int(config.get("zones.cluster_limit", Settings.CLUSTER_DISPLAY_LIMIT)),
            hotspot_limit=int(config.get("zones.hotspot_limit", Settings.HOTSPOT_DISPLAY_LIMIT)),
            coverage_limit=int(config.get("zones.coverage_limit", Settings.COVERAGE_DISPLAY_LIMIT)),
            cell_size_deg=float(config.get("zones.cell_size_deg", Settings.GRID_CELL_SIZE_DEG)),
            bounds=config.region_bounds,
        )

    def render_zones(self, zones: Sequence[CongestionZone]) -> List[RenderableZone]:
        """
        Rank congestion zones by density score.

        Args:
            zones: Congestion zones

        Returns:
            Top zones, highest density first
        """
        visible = [z for z in zones if self._in_bounds(z.latitude, z.longitude)]
        ranked = sorted(visible, key=lambda z: z.density_score, reverse=True)
        ranked = ranked[: self.zone_limit]
        if not ranked:
            return []

        max_score = max(max(z.density_score for z in ranked), 1.0)
        records: List[RenderableZone] = []

        for rank, zone in enumerate(ranked, 1):
            if zone.polygon and distinct_vertices(zone.polygon) >= 3:
                polygon = close_ring(zone.polygon)
            else:
                polygon = grid_cell_polygon(zone.longitude, zone.latitude, self.cell_size_deg)

            if rank <= TOP_RANK_LABELS:
                label = f"#{rank}"
            elif zone.flight_count >= MIN_FLIGHTS_FOR_LABEL:
                label = str(zone.flight_count)
            else:
                label = ""

            level = zone.congestion_level
            records.append(
                RenderableZone(
                    rank=rank,
                    kind="zone",
                    polygon=tuple(polygon),
                    marker=(zone.longitude, zone.latitude),
                    label=label,
                    level=level,
                    weight=self.weights[level],
                    intensity=zone.density_score / max_score,
                    color=self.palette.severity_color(level),
                    score=zone.density_score,
                    properties={
                        "flight_count": zone.flight_count,
                        "holding_count": zone.holding_count,
                        "avg_altitude_ft": zone.avg_altitude_ft,
                        "flights_per_hour": zone.flights_per_hour,
                    },
                )
            )

        return records

    def render_clusters(self, clusters: Sequence[Cluster]) -> List[RenderableZone]:
        """
        Rank clusters by total event count.

        Args:
            clusters: Clusters from the spatial clusterer

        Returns:
            Top clusters, most events first
        """
        visible = [c for c in clusters if self._in_bounds(c.centroid[1], c.centroid[0])]
        ranked = sorted(visible, key=lambda c: c.total_count, reverse=True)
        ranked = ranked[: self.cluster_limit]
        if not ranked:
            return []

        max_count = max(max(c.total_count for c in ranked), 1)
        records: List[RenderableZone] = []

        for rank, cluster in enumerate(ranked, 1):
            intensity = cluster.total_count / max_count
            level = _intensity_tier(intensity)
            records.append(
                RenderableZone(
                    rank=rank,
                    kind="cluster",
                    polygon=cluster.polygon,
                    marker=cluster.centroid,
                    label=str(cluster.total_count),
                    level=level,
                    weight=self.weights[level],
                    intensity=intensity,
                    color=self.palette.severity_color(level),
                    score=float(cluster.total_count),
                    properties={
                        "point_count": cluster.point_count,
                        "source": cluster.source,
                        "is_buffer": cluster.is_buffer,
                    },
                )
            )

        return records

    def render_hotspots(self, events: Sequence[LocatedEvent]) -> List[RenderableZone]:
        """
        Rank raw events as marker-only records.

        Args:
            events: Unclustered events

        Returns:
            Top events by count
        """
        visible = [e for e in events if self._in_bounds(e.latitude, e.longitude)]
        ranked = sorted(visible, key=lambda e: e.count, reverse=True)
        ranked = ranked[: self.hotspot_limit]
        if not ranked:
            return []

        max_count = max(max(e.count for e in ranked), 1)
        records: List[RenderableZone] = []

        for rank, event in enumerate(ranked, 1):
            intensity = event.count / max_count
            level = _intensity_tier(intensity)
            records.append(
                RenderableZone(
                    rank=rank,
                    kind="hotspot",
                    polygon=(),
                    marker=(event.longitude, event.latitude),
                    label=str(event.count),
                    level=level,
                    weight=self.weights[level],
                    intensity=intensity,
                    color=self.palette.severity_color(level),
                    score=float(event.count),
                    properties={"avg_duration_s": event.avg_duration_s},
                )
            )

        return records

    def render_coverage_zones(self, zones: Sequence[CoverageZone]) -> List[RenderableZone]:
        """
        Rank coverage-gap and jamming zones by risk score.

        Scores are on a fixed 0-100 scale, so intensity is not relative to
        the top zone. Zones without a usable outline get a fallback buffer
        around their centroid.

        Args:
            zones: Coverage-gap and jamming zones

        Returns:
            Top zones, highest risk first
        """
        visible = [z for z in zones if self._in_bounds(z.centroid[1], z.centroid[0])]
        ranked = sorted(visible, key=lambda z: z.risk_score, reverse=True)
        ranked = ranked[: self.coverage_limit]
        records: List[RenderableZone] = []

        for rank, zone in enumerate(ranked, 1):
            if distinct_vertices(zone.polygon) >= 3:
                polygon = close_ring(zone.polygon)
            else:
                logger.debug("Zone %s has no usable outline, buffering centroid", zone.zone_id)
                polygon = circle_polygon(zone.centroid[0], zone.centroid[1], FALLBACK_BUFFER_RADIUS_NM)

            properties: Dict[str, Any] = {
                "zone_id": zone.zone_id,
                "event_count": zone.event_count,
                "affected_flights": zone.affected_flights,
                "area_sq_nm": zone.area_sq_nm,
            }
            if zone.zone_type == ZONE_TYPE_JAMMING:
                properties["jamming_type"] = zone.jamming_type
                properties["confidence"] = zone.confidence
            else:
                properties["avg_gap_duration_s"] = zone.avg_gap_duration_s
                properties["gap_type"] = zone.gap_type
                properties["high_risk"] = zone.is_high_risk

            level = zone.risk_level
            records.append(
                RenderableZone(
                    rank=rank,
                    kind=zone.zone_type,
                    polygon=tuple(polygon),
                    marker=zone.centroid,
                    label=f"#{rank}" if rank <= TOP_RANK_LABELS else "",
                    level=level,
                    weight=self.weights[level],
                    intensity=max(0.0, min(1.0, zone.risk_score / MAX_RISK_SCORE)),
                    color=self.palette.severity_color(level),
                    score=zone.risk_score,
                    properties=properties,
                )
            )

        return records

    @staticmethod
    def to_geojson(records: Sequence[RenderableZone]) -> Dict[str, Any]:
        """Bundle records into a GeoJSON FeatureCollection."""
        return {
            "type": "FeatureCollection",
            "features": [r.to_feature() for r in records],
        }

    def _in_bounds(self, lat: float, lon: float) -> bool:
        if self.bounds is None:
            return True
        lat_min, lon_min, lat_max, lon_max = self.bounds
        return lat_min <= lat <= lat_max and lon_min <= lon <= lon_max
