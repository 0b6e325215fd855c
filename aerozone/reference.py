"""
Reference Data
Airport directory and color palette injected into the engines.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .config import Colors, Config
from .utils import nearest_airport


@dataclass(frozen=True)
class Airport:
    """A reference airport used to resolve flight destinations."""

    code: str
    name: str
    latitude: float
    longitude: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Airport":
        """Build an airport from a ``{code, name, lat, lon}`` record."""
        return cls(
            code=data["code"],
            name=data.get("name", data["code"]),
            latitude=float(data.get("lat", data.get("latitude"))),
            longitude=float(data.get("lon", data.get("longitude"))),
        )


class AirportDirectory:
    """
    Small fixed table of reference airports.

    Example:
        >>> directory = AirportDirectory.from_config(Config())
        >>> airport, dist = directory.nearest(32.0, 34.9)
        >>> airport.code
        'LLBG'
    """

    def __init__(self, airports: Iterable[Airport]) -> None:
        self._airports: List[Airport] = list(airports)
        self._by_code: Dict[str, Airport] = {a.code: a for a in self._airports}

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "AirportDirectory":
        """Build a directory from plain airport records."""
        return cls(Airport.from_dict(r) for r in records)

    @classmethod
    def from_config(cls, config: Config) -> "AirportDirectory":
        """Build a directory from the ``airports`` config section."""
        return cls.from_records(config.airports)

    def nearest(self, lat: float, lon: float) -> Tuple[Optional[Airport], float]:
        """
        Find the airport closest to a point.

        Args:
            lat: Point latitude
            lon: Point longitude

        Returns:
            Tuple of (airport, distance_nm); (None, inf) if the directory is empty
        """
        return nearest_airport(lat, lon, self._airports)

    def get(self, code: str) -> Optional[Airport]:
        """Look up an airport by ICAO code."""
        return self._by_code.get(code)

    def __iter__(self) -> Iterator[Airport]:
        return iter(self._airports)

    def __len__(self) -> int:
        return len(self._airports)


class ColorPalette:
    """Display colors for flights, severity tiers and density heatmaps."""

    def __init__(
        self,
        flight_colors: List[str],
        planned_color: str,
        severity_colors: Dict[str, str],
        heatmap_gradient: Optional[Dict[float, str]] = None,
    ) -> None:
        if not flight_colors:
            raise ValueError("Palette needs at least one flight color")
        self.flight_colors = list(flight_colors)
        self.planned_color = planned_color
        self.severity_colors = dict(severity_colors)
        self.heatmap_gradient = {
            float(stop): color for stop, color in (heatmap_gradient or Colors.HEATMAP_GRADIENT).items()
        }

    @classmethod
    def from_config(cls, config: Config) -> "ColorPalette":
        """Build a palette from the ``palette`` config section."""
        palette = config.palette
        return cls(
            flight_colors=palette["flight_colors"],
            planned_color=palette["planned_color"],
            severity_colors=palette["severity_colors"],
            heatmap_gradient=palette.get("heatmap_gradient"),
        )

    def flight_color(self, index: int) -> str:
        """Round-robin traffic color for the n-th flight."""
        return self.flight_colors[index % len(self.flight_colors)]

    def severity_color(self, level: str) -> str:
        """
        Color of a severity tier.

        Raises:
            ValueError: If the tier has no color
        """
        try:
            return self.severity_colors[level]
        except KeyError:
            raise ValueError(f"No color for severity level: {level}") from None
