"""
AeroZone - Airspace Zone Clustering and Traffic Simulation

Groups located airspace events into clustered zones, adapts congestion data
for display, predicts where nearby aircraft are heading, and replays them on
a virtual timeline against a planned flight.

Components:
    - clustering: Single-linkage clustering and zone rendering
    - simulation: Flight-path prediction, clock and proximity checks
    - visualization: Interactive map export

Example:
    >>> from aerozone import Config
    >>> from aerozone.clustering import SpatialClusterer
    >>> config = Config()
    >>> clusterer = SpatialClusterer.from_config(config)
"""

# Component imports for easy access
from . import clustering
from . import simulation
from . import visualization
from . import reference
from . import utils
from . import config
from .config import Config, configure_logging

AEROZONE_VERSION = "v1.0.0"

__version__ = AEROZONE_VERSION
__author__ = "AeroZone Project"
__license__ = "MIT"

__all__ = [
    "clustering",
    "simulation",
    "visualization",
    "reference",
    "utils",
    "config",
    "Config",
    "configure_logging",
]
