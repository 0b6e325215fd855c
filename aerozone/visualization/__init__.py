"""
AeroZone Visualization Component

Interactive map export for clustering and simulation results.

Main Classes:
    - MapGenerator: Folium map with zones, paths, positions and airports

Example:
    >>> from aerozone.visualization import MapGenerator
    >>> map_gen = MapGenerator(32.0, 35.0)
    >>> map_gen.add_zones(records)
    >>> map_gen.save('airspace.html')

Map Styles:
    - CartoDB.DarkMatter (default)
    - CartoDB.Positron
    - OpenStreetMap
"""

from .map_generator import MAP_TILE_URLS, MapGenerator

__all__ = [
    "MapGenerator",
    "MAP_TILE_URLS",
]
