"""
Clustering Constants
"""

# Cluster geometry
CIRCLE_BUFFER_POINTS: int = 16  # Vertices of a circle buffer before closing
MIN_HULL_POINTS: int = 3  # Members needed before a hull is attempted
BUFFER_RADIUS_DIVISOR: float = 3.0  # Buffer radius = threshold / 3 above the floor
FALLBACK_BUFFER_RADIUS_NM: float = 10.0  # Clusters left without any geometry

# Backend payload defaults
BACKEND_EVENT_DURATION_S: float = 300.0

# Polygon sources (precedence: backend > buffer > hull)
SOURCE_BACKEND = "backend"
SOURCE_BUFFER = "buffer"
SOURCE_HULL = "hull"

# Congestion classification (density score strictly above the bound)
CONGESTION_LEVELS = ("critical", "high", "moderate", "low")
CONGESTION_THRESHOLDS = [
    (50.0, "critical"),
    (30.0, "high"),
    (15.0, "moderate"),
]

# Cluster severity from intensity (share of the largest cluster)
CLUSTER_INTENSITY_TIERS = [
    (0.75, "critical"),
    (0.5, "high"),
    (0.25, "moderate"),
]

# Rendering
TOP_RANK_LABELS: int = 5  # Zones labelled with their rank
MIN_FLIGHTS_FOR_LABEL: int = 10  # Other zones labelled with flight count

# Coverage-gap and jamming risk (score out of 100, at or above the bound)
RISK_TIERS = [
    (60.0, "critical"),
    (40.0, "moderate"),
]
MAX_RISK_SCORE: float = 100.0
ZONE_TYPE_COVERAGE = "coverage"
ZONE_TYPE_JAMMING = "jamming"
