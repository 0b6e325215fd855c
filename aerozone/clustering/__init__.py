"""
AeroZone Clustering Component

Spatial clustering of located events and display adaptation of the results.

Main Classes:
    - SpatialClusterer: Single-linkage clustering with hull / buffer outlines
    - ZoneRenderer: Ranked, capped display records for zones, clusters and
      coverage-gap / jamming areas
    - LocatedEvent, Cluster, CongestionZone, CoverageZone: Data records

Example:
    >>> from aerozone.clustering import LocatedEvent, SpatialClusterer
    >>> clusterer = SpatialClusterer(threshold_nm=10)
    >>> clusters = clusterer.cluster([LocatedEvent(32.0, 34.9, 5)])
    >>> clusters[0].source
    'buffer'
"""

# Main clustering components
from .clusterer import Cluster, LocatedEvent, SpatialClusterer
from .zones import (
    CongestionZone,
    CoverageZone,
    RenderableZone,
    ZoneRenderer,
    classify_congestion,
    classify_risk,
)

# Utilities
from . import constants
from . import geometry

__all__ = [
    # Main classes
    "SpatialClusterer",
    "ZoneRenderer",
    # Records
    "LocatedEvent",
    "Cluster",
    "CongestionZone",
    "CoverageZone",
    "RenderableZone",
    # Functions
    "classify_congestion",
    "classify_risk",
    # Modules
    "constants",
    "geometry",
]
