"""
AeroZone Configuration Management

This module provides configuration management for the AeroZone engine.
It includes physical constants, clustering and simulation settings, color
schemes, and runtime configuration loaded from YAML files.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Physical Constants
# =============================================================================


class Constants:
    """Physical constants representing real-world measurements."""

    EARTH_RADIUS_NM: float = 3440.065  # Earth's radius for distance calculations
    NM_PER_DEGREE_LAT: float = 60.0  # 1 degree latitude ~ 60 nautical miles
    MINUTES_PER_HOUR: float = 60.0


# =============================================================================
# Clustering & Simulation Settings
# =============================================================================


class Settings:
    """Configurable settings for clustering, prediction and simulation."""

    # --- Spatial Clustering ---
    CLUSTER_THRESHOLD_NM: float = 50.0  # Regional jamming cluster threshold
    BUFFER_POINTS: int = 16  # Vertices of a circle buffer polygon
    MIN_BUFFER_RADIUS_NM: float = 8.0  # Floor for 1-2 point cluster buffers
    SINGLE_BUFFER_RADIUS_NM: float = 12.0  # Backend singles buffer radius

    # --- Zone Rendering ---
    ZONE_DISPLAY_LIMIT: int = 10  # Congestion zones shown on the map
    CLUSTER_DISPLAY_LIMIT: int = 15  # Clusters shown on the map
    HOTSPOT_DISPLAY_LIMIT: int = 30  # Raw event markers shown on the map
    COVERAGE_DISPLAY_LIMIT: int = 20  # Coverage-gap and jamming zones shown
    GRID_CELL_SIZE_DEG: float = 0.25  # Default congestion grid cell

    # Visual weight per severity tier
    SEVERITY_WEIGHTS: Dict[str, float] = {
        "critical": 1.0,
        "high": 0.75,
        "moderate": 0.5,
        "low": 0.25,
    }

    # --- Flight-Path Prediction ---
    ROUTE_MATCH_RADIUS_NM: float = 50.0  # Max distance to a centerline start
    PREDICTION_HORIZON_MIN: float = 60.0  # Default prediction window
    HEADING_PROJECTION_NM: float = 100.0  # Projection used to guess destination
    MAX_PATH_SAMPLES: int = 20  # Max fallback samples
    SAMPLE_INTERVAL_MIN: float = 5.0  # Fallback sample spacing
    DESCENT_FRACTION: float = 0.2  # Final share of distance spent descending
    DEFAULT_CRUISE_SPEED_KTS: float = 450.0  # Planned route default speed

    # --- Simulation ---
    SPEED_MULTIPLIERS = (1, 5, 10, 30, 60)
    MIN_SIMULATION_MINUTES: float = 60.0
    MAX_SIMULATION_MINUTES: float = 120.0
    CRITICAL_LATERAL_NM: float = 5.0
    CRITICAL_VERTICAL_FT: float = 1000.0
    WARNING_LATERAL_NM: float = 10.0
    WARNING_VERTICAL_FT: float = 2000.0

    # --- Visualization ---
    DEFAULT_MAP_STYLE: str = "CartoDB.DarkMatter"  # Base map tile style
    DEFAULT_ZOOM: int = 6  # Initial map zoom level
    FLIGHT_PATH_WEIGHT: int = 2  # Predicted path line thickness
    PLANNED_PATH_WEIGHT: int = 4  # Planned route line thickness
    FLIGHT_PATH_OPACITY: float = 0.4  # Predicted path transparency (0-1)
    PLANNED_PATH_OPACITY: float = 0.8  # Planned route transparency (0-1)
    ZONE_FILL_OPACITY: float = 0.25  # Zone polygon fill transparency (0-1)
    ZONE_BORDER_WEIGHT: int = 2  # Zone border line thickness


# =============================================================================
# Color Schemes
# =============================================================================


class Colors:
    """Color definitions for visualizations."""

    # Traffic colors, assigned round-robin
    FLIGHT_COLORS: List[str] = [
        "#60a5fa",  # Blue
        "#f59e0b",  # Amber
        "#10b981",  # Emerald
        "#f472b6",  # Pink
        "#a78bfa",  # Violet
        "#fb7185",  # Rose
        "#38bdf8",  # Sky
        "#fbbf24",  # Yellow
    ]

    PLANNED_ROUTE_COLOR: str = "#22c55e"  # Green for the planned flight

    # Severity tiers (congestion and proximity)
    SEVERITY_COLORS: Dict[str, str] = {
        "critical": "#ef4444",  # Red
        "high": "#f97316",  # Orange
        "moderate": "#eab308",  # Yellow
        "low": "#22c55e",  # Green
        "warning": "#f59e0b",  # Amber
    }

    # Event density heatmap
    HEATMAP_GRADIENT: Dict[float, str] = {
        0.0: "#1e1b4b",  # Indigo
        0.4: "#eab308",  # Yellow
        0.7: "#f97316",  # Orange
        1.0: "#ef4444",  # Red
    }


# =============================================================================
# Reference Airports
# =============================================================================

DEFAULT_AIRPORTS: List[Dict[str, Any]] = [
    {"code": "LLBG", "name": "Ben Gurion Intl", "lat": 32.011389, "lon": 34.886667},
    {"code": "LLER", "name": "Ramon Intl", "lat": 29.723704, "lon": 35.01145},
    {"code": "LLHA", "name": "Haifa", "lat": 32.809444, "lon": 35.043056},
    {"code": "LLBS", "name": "Beersheba", "lat": 31.287, "lon": 34.723},
    {"code": "LLOV", "name": "Ovda", "lat": 29.940, "lon": 34.935},
    {"code": "LLNV", "name": "Nevatim AFB", "lat": 31.207, "lon": 35.012},
    {"code": "LLMG", "name": "Megiddo", "lat": 32.597, "lon": 35.228},
    {"code": "LLHZ", "name": "Herzliya", "lat": 32.186, "lon": 34.835},
    {"code": "LCRA", "name": "RAF Akrotiri", "lat": 34.5900, "lon": 32.9870},
    {"code": "OLBA", "name": "Beirut Rafic Hariri Intl", "lat": 33.820889, "lon": 35.488389},
    {"code": "OLKA", "name": "Rayak Air Base", "lat": 33.850, "lon": 35.987},
    {"code": "OJAI", "name": "Queen Alia Intl (Amman)", "lat": 31.722556, "lon": 35.993214},
    {"code": "OJAM", "name": "Amman Civil Airport (Marka)", "lat": 31.9697, "lon": 35.9917},
    {"code": "OJAQ", "name": "King Hussein Intl (Aqaba)", "lat": 29.611, "lon": 35.018},
    {"code": "OJMF", "name": "Mafraq", "lat": 32.356, "lon": 36.259},
    {"code": "HEGR", "name": "El Gora Airport", "lat": 31.0686, "lon": 34.1296},
    {"code": "OSDI", "name": "Damascus Intl", "lat": 33.411, "lon": 36.516},
]


# =============================================================================
# Runtime Configuration
# =============================================================================


class Config:
    """
    Runtime configuration manager for AeroZone.

    Loads settings from YAML files or uses sensible defaults.
    Provides property-based access to common settings.

    Example:
        >>> config = Config('aerozone.yaml')
        >>> print(f"Region {config.region_name}")
        >>> print(f"Clustering at {config.cluster_threshold_nm} nm")
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file. If None or missing,
                        uses default configuration.
        """
        self.config_path = config_path
        self._config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file or return defaults.

        Keys missing from the file are filled in from the defaults at every
        nesting level; the merged result is then validated.

        Returns:
            Configuration dictionary
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return self._get_default_config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return self._get_default_config()

        if not isinstance(config, dict):
            logger.warning("Invalid config structure in %s, using defaults", self.config_path)
            return self._get_default_config()

        merged = self._merge(self._get_default_config(), config)
        if not self._validate_config(merged):
            logger.warning("Invalid config structure in %s, using defaults", self.config_path)
            return self._get_default_config()

        return merged

    @staticmethod
    def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay ``override`` on ``base``, descending into nested sections."""
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                Config._merge(base[key], value)
            else:
                base[key] = value
        return base

    def _validate_config(self, config: Any) -> bool:
        """
        Validate configuration structure and required fields.

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            assert isinstance(config, dict)

            # Required: region section
            assert "region" in config
            region = config["region"]
            assert isinstance(region["latitude"], (float, int))
            assert isinstance(region["longitude"], (float, int))
            assert -90 <= region["latitude"] <= 90
            assert -180 <= region["longitude"] <= 180

            # Optional: clustering thresholds must be positive
            clustering = config.get("clustering", {})
            if "threshold_nm" in clustering:
                assert isinstance(clustering["threshold_nm"], (float, int))
                assert clustering["threshold_nm"] > 0

            # Optional: airports need coordinates
            for airport in config.get("airports", []):
                assert "code" in airport
                assert isinstance(airport["lat"], (float, int))
                assert isinstance(airport["lon"], (float, int))

            return True
        except (AssertionError, KeyError, TypeError):
            return False

    def _get_default_config(self) -> Dict[str, Any]:
        """
        Get default configuration.

        Returns:
            Default configuration dictionary
        """
        return {
            "region": {
                "latitude": 32.0,
                "longitude": 35.0,
                "name": "Eastern Mediterranean",
                # lat_min, lon_min, lat_max, lon_max
                "bounds": [-10.0, -30.0, 60.0, 100.0],
            },
            "clustering": {
                "threshold_nm": Settings.CLUSTER_THRESHOLD_NM,
                "buffer_points": Settings.BUFFER_POINTS,
                "min_buffer_radius_nm": Settings.MIN_BUFFER_RADIUS_NM,
                "single_buffer_radius_nm": Settings.SINGLE_BUFFER_RADIUS_NM,
            },
            "zones": {
                "zone_limit": Settings.ZONE_DISPLAY_LIMIT,
                "cluster_limit": Settings.CLUSTER_DISPLAY_LIMIT,
                "hotspot_limit": Settings.HOTSPOT_DISPLAY_LIMIT,
                "coverage_limit": Settings.COVERAGE_DISPLAY_LIMIT,
                "cell_size_deg": Settings.GRID_CELL_SIZE_DEG,
            },
            "prediction": {
                "match_radius_nm": Settings.ROUTE_MATCH_RADIUS_NM,
                "horizon_minutes": Settings.PREDICTION_HORIZON_MIN,
                "projection_nm": Settings.HEADING_PROJECTION_NM,
                "cruise_speed_kts": Settings.DEFAULT_CRUISE_SPEED_KTS,
            },
            "simulation": {
                "speed_multiplier": 1,
            },
            "airports": [dict(a) for a in DEFAULT_AIRPORTS],
            "palette": {
                "flight_colors": list(Colors.FLIGHT_COLORS),
                "planned_color": Colors.PLANNED_ROUTE_COLOR,
                "severity_colors": dict(Colors.SEVERITY_COLORS),
                "heatmap_gradient": dict(Colors.HEATMAP_GRADIENT),
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        }

    def save_config(self) -> None:
        """
        Save current configuration to YAML file.

        Raises:
            ValueError: If config_path is not set
        """
        if self.config_path is None:
            raise ValueError("Cannot save config: no config_path specified")

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self._config, f, default_flow_style=False)

    # --- Property Accessors ---

    @property
    def region_latitude(self) -> float:
        """Get region center latitude in degrees."""
        return float(self._config["region"]["latitude"])

    @property
    def region_longitude(self) -> float:
        """Get region center longitude in degrees."""
        return float(self._config["region"]["longitude"])

    @property
    def region_name(self) -> str:
        """Get descriptive region name."""
        return self._config["region"].get("name", "Unknown Region")

    @property
    def region_bounds(self) -> Optional[tuple]:
        """Get display bounds as (lat_min, lon_min, lat_max, lon_max)."""
        bounds = self._config["region"].get("bounds")
        return tuple(float(b) for b in bounds) if bounds else None

    @property
    def cluster_threshold_nm(self) -> float:
        """Get single-linkage clustering threshold in nautical miles."""
        return float(self._config["clustering"]["threshold_nm"])

    @property
    def prediction_horizon(self) -> float:
        """Get flight-path prediction horizon in minutes."""
        return float(self._config["prediction"]["horizon_minutes"])

    @property
    def cruise_speed_kts(self) -> float:
        """Get default cruise speed of the planned flight."""
        return float(self._config["prediction"]["cruise_speed_kts"])

    @property
    def speed_multiplier(self) -> int:
        """Get initial simulation speed multiplier."""
        return int(self._config["simulation"]["speed_multiplier"])

    @property
    def airports(self) -> List[Dict[str, Any]]:
        """Get reference airport records."""
        return self._config["airports"]

    @property
    def palette(self) -> Dict[str, Any]:
        """Get color palette settings."""
        return self._config["palette"]

    # --- Generic Accessors ---

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'clustering.threshold_nm')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('zones.zone_limit', 10)
            10
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'clustering.threshold_nm')
            value: Value to set

        Example:
            >>> config.set('clustering.threshold_nm', 25)
        """
        keys = key.split(".")
        config = self._config

        # Navigate to parent of target key
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        # Set final value
        config[keys[-1]] = value


def configure_logging(config: Config) -> None:
    """
    Apply the logging section of a configuration.

    Args:
        config: Runtime configuration
    """
    level_name = str(config.get("logging.level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=config.get(
            "logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
    )
