"""
Map Generator
Creates interactive Folium maps of zones, predicted paths and flight states.
"""

import folium
from folium import plugins
from typing import Iterable, List, Optional

from aerozone.clustering import LocatedEvent, RenderableZone
from aerozone.config import Settings
from aerozone.reference import AirportDirectory, ColorPalette
from aerozone.simulation import FlightState, ProximityWarning, SimulatedFlight
from aerozone.utils import format_sim_time

MAP_TILE_URLS = {
    "CartoDB.DarkMatter": "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png",
    "CartoDB.Positron": "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png",
    "OpenStreetMap": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
}


class MapGenerator:
    """
    Generates interactive maps using Folium.

    Supports visualization of:
    - Congestion zones and event clusters (polygons with labels)
    - Event hotspots as a density heatmap
    - Predicted and planned flight paths
    - Interpolated flight positions and airports
    """

    def __init__(
        self,
        center_lat: float,
        center_lon: float,
        palette: ColorPalette,
        zoom: int = Settings.DEFAULT_ZOOM,
        style: str = Settings.DEFAULT_MAP_STYLE,
    ):
        """
        Initialize map generator.

        Args:
            center_lat: Center latitude
            center_lon: Center longitude
            palette: Heatmap and severity colors
            zoom: Initial zoom level (default: 6)
            style: Map style/theme (default: CartoDB.DarkMatter)
        """
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.palette = palette
        self.zoom = zoom
        self.style = style

        self.map = self._create_base_map()

    def _create_base_map(self) -> folium.Map:
        tiles = MAP_TILE_URLS.get(self.style, self.style)

        return folium.Map(
            location=[self.center_lat, self.center_lon],
            zoom_start=self.zoom,
            tiles=tiles,
            attr="AeroZone Airspace Visualization",
        )

    def add_zone(self, zone: RenderableZone):
        """
        Add a renderable zone to the map.

        Polygons are filled in the tier color with opacity scaled by the
        visual weight; the label, if any, is drawn at the marker.

        Args:
            zone: Display record from the zone renderer
        """
        marker = [zone.marker[1], zone.marker[0]]
        tooltip = f"{zone.kind.title()} #{zone.rank} ({zone.level})"

        if zone.polygon:
            folium.Polygon(
                locations=[[lat, lon] for lon, lat in zone.polygon],
                color=zone.color,
                weight=Settings.ZONE_BORDER_WEIGHT,
                fill=True,
                fill_color=zone.color,
                fill_opacity=Settings.ZONE_FILL_OPACITY * (0.5 + zone.weight / 2),
                popup=self._create_zone_popup(zone),
                tooltip=tooltip,
            ).add_to(self.map)
        else:
            folium.CircleMarker(
                location=marker,
                radius=4 + 8 * zone.intensity,
                color=zone.color,
                fill=True,
                fill_color=zone.color,
                fill_opacity=0.7,
                popup=self._create_zone_popup(zone),
                tooltip=tooltip,
            ).add_to(self.map)

        if zone.label:
            folium.Marker(
                marker,
                icon=folium.DivIcon(
                    html=(
                        "<div style='font-size: 11px; font-weight: bold; "
                        f"color: #ffffff; text-shadow: 0 0 3px #000;'>{zone.label}</div>"
                    )
                ),
            ).add_to(self.map)

    def add_zones(self, zones: Iterable[RenderableZone]):
        for zone in zones:
            self.add_zone(zone)

    def _create_zone_popup(self, zone: RenderableZone) -> str:
        rows = "".join(
            f"<tr><td><b>{key.replace('_', ' ').title()}:</b></td><td>{value}</td></tr>"
            for key, value in zone.properties.items()
        )
        html = f"""
        <div style='font-family: Arial; min-width: 180px;'>
            <h4 style='margin: 0 0 10px 0; color: {zone.color};'>
                {zone.kind.title()} #{zone.rank}
            </h4>
            <table style='width: 100%; border-collapse: collapse;'>
                <tr><td><b>Level:</b></td><td>{zone.level}</td></tr>
                <tr><td><b>Score:</b></td><td>{zone.score:.1f}</td></tr>
                {rows}
            </table>
        </div>
        """
        return html

    def add_event_heatmap(self, events: List[LocatedEvent]):
        """
        Add a density heatmap of raw events, weighted by count.

        Args:
            events: Located events
        """
        if not events:
            return

        max_count = max(e.count for e in events) or 1
        heat_data = [[e.latitude, e.longitude, e.count / max_count] for e in events]

        plugins.HeatMap(
            heat_data,
            min_opacity=0.3,
            radius=12,
            blur=20,
            gradient=self.palette.heatmap_gradient,
        ).add_to(self.map)

    def add_flight_path(self, flight: SimulatedFlight):
        """
        Add a predicted or planned path to the map.

        The path starts at the flight's current position. The planned flight
        is drawn solid and heavier; traffic paths are dashed.

        Args:
            flight: Simulated flight
        """
        coords = [[flight.latitude, flight.longitude]] + [
            [p.latitude, p.longitude] for p in flight.path
        ]
        if len(coords) < 2:
            return

        eta = format_sim_time(flight.eta_minutes)
        folium.PolyLine(
            coords,
            color=flight.color,
            weight=Settings.PLANNED_PATH_WEIGHT if flight.is_planned else Settings.FLIGHT_PATH_WEIGHT,
            opacity=Settings.PLANNED_PATH_OPACITY if flight.is_planned else Settings.FLIGHT_PATH_OPACITY,
            dash_array=None if flight.is_planned else "6, 6",
            popup=f"{flight.label} → {flight.destination_code or 'Unknown'} (ETA {eta})",
            tooltip=flight.label,
        ).add_to(self.map)

    def add_flight_state(
        self,
        state: FlightState,
        color: str,
        is_planned: bool = False,
    ):
        """
        Add an interpolated flight position. Landed flights are not drawn.

        Args:
            state: Flight state at the displayed time
            color: Flight color
            is_planned: Whether this is the planned flight
        """
        if state.landed:
            return

        folium.CircleMarker(
            location=[state.latitude, state.longitude],
            radius=10 if is_planned else 6,
            color="#ffffff",
            weight=2,
            fill=True,
            fill_color=color,
            fill_opacity=1.0,
            popup=(
                f"{state.callsign or state.flight_id}<br>"
                f"Alt: {state.altitude_ft:.0f} ft<br>"
                f"Hdg: {state.heading_deg:.0f}°"
            ),
            tooltip=state.callsign or state.flight_id[:6],
        ).add_to(self.map)

    def add_simulation(
        self,
        flights: List[SimulatedFlight],
        states: List[FlightState],
        warnings: Optional[List[ProximityWarning]] = None,
    ):
        """
        Add paths and positions of a simulation snapshot.

        Traffic involved in a proximity warning is ringed in the warning color.

        Args:
            flights: Simulated flights
            states: States at the displayed time, one per flight
            warnings: Proximity warnings at the displayed time
        """
        colors = {f.flight_id: f.color for f in flights}
        planned = {f.flight_id for f in flights if f.is_planned}

        for flight in flights:
            self.add_flight_path(flight)

        for state in states:
            self.add_flight_state(
                state, colors.get(state.flight_id, "#ffffff"), state.flight_id in planned
            )

        by_id = {s.flight_id: s for s in states}
        for warning in warnings or []:
            state = by_id.get(warning.other_flight_id)
            if state is None:
                continue
            folium.Circle(
                location=[state.latitude, state.longitude],
                radius=warning.lateral_distance_nm * 1852,
                color=self.palette.severity_color(warning.severity),
                weight=1,
                fill=False,
                tooltip=(
                    f"{warning.severity.upper()}: {warning.other_callsign or warning.other_flight_id} "
                    f"{warning.lateral_distance_nm:.1f} nm / {warning.altitude_diff_ft:.0f} ft"
                ),
            ).add_to(self.map)

    def add_airports(self, airports: AirportDirectory):
        """Add reference airport markers."""
        for airport in airports:
            folium.Marker(
                [airport.latitude, airport.longitude],
                popup=f"<b>{airport.code}</b><br>{airport.name}",
                tooltip=airport.code,
                icon=folium.Icon(color="gray", icon="plane", prefix="fa"),
            ).add_to(self.map)

    def save(self, filename: str):
        """
        Save map to HTML file.

        Args:
            filename: Output filename (should end in .html)
        """
        self.map.save(filename)

        with open(filename, "r", encoding="utf-8") as f:
            html_content = f.read()
        html_content = html_content.replace("<head>", "<head>\n    <title>AeroZone Map</title>", 1)
        with open(filename, "w", encoding="utf-8") as f:
            f.write(html_content)

        print(f"✅ Map saved to: {filename}")
