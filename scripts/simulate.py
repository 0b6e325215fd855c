#!/usr/bin/env python3
"""
AeroZone Scenario Simulation Script

Clusters the scenario's events, ranks its congestion and coverage-gap zones,
replays traffic against the planned flight and exports everything to an
interactive map.

Usage:
    python scripts/simulate.py --scenario FILE [OPTIONS]

Examples:
    # Run the bundled scenario
    python scripts/simulate.py --scenario docu/example/scenario.yaml

    # Replay 90 minutes in 1-minute frames with a custom config
    python scripts/simulate.py --scenario scenario.yaml --config config.yaml --minutes 90 --step 1
"""

import sys
import argparse
import json
from pathlib import Path

import yaml

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from aerozone.config import Config, configure_logging
from aerozone.clustering import (
    CongestionZone,
    CoverageZone,
    LocatedEvent,
    SpatialClusterer,
    ZoneRenderer,
)
from aerozone.reference import AirportDirectory, ColorPalette
from aerozone.simulation import (
    FlightPathPredictor,
    LearnedRoute,
    SimulationClock,
    TrackedAircraft,
    TrafficSimulation,
    Waypoint,
)
from aerozone.utils import format_sim_time
from aerozone.visualization import MapGenerator


def load_scenario(path: str) -> dict:
    """Load a YAML or JSON scenario file."""
    with open(path, "r", encoding="utf-8") as f:
        if path.endswith(".json"):
            return json.load(f)
        return yaml.safe_load(f) or {}


def resolve_waypoint(value, airports: AirportDirectory):
    """Turn a scenario origin/destination (airport code or mapping) into a Waypoint."""
    if not value:
        return None
    if isinstance(value, str):
        airport = airports.get(value)
        if airport is None:
            print(f"❌ Unknown airport code: {value}")
            sys.exit(1)
        return Waypoint.from_airport(airport)
    return Waypoint.from_dict(value)


def main():
    """Main entry point for scenario simulation."""
    parser = argparse.ArgumentParser(
        description="AeroZone Simulator - Cluster zones and replay traffic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scenario",
        type=str,
        required=True,
        help="Path to YAML/JSON scenario file",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="docu/example/config.yaml",
        help="Path to config file (default: docu/example/config.yaml)",
    )
    parser.add_argument(
        "--minutes",
        type=float,
        help="Simulated minutes to replay (default: full timeline)",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=5.0,
        help="Virtual minutes per frame (default: 5)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="aerozone_map.html",
        help="Output map filename (default: aerozone_map.html)",
    )
    args = parser.parse_args()

    config = Config(args.config)
    configure_logging(config)

    try:
        scenario = load_scenario(args.scenario)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Could not load scenario {args.scenario}: {e}")
        sys.exit(1)

    airports = AirportDirectory.from_config(config)
    palette = ColorPalette.from_config(config)

    # --- Clustering ---
    print(f"\n🗺️  Clustering events over {config.region_name}")
    print("=" * 70)

    clusterer = SpatialClusterer.from_config(config)
    renderer = ZoneRenderer.from_config(config, palette)

    events = [LocatedEvent.from_dict(e) for e in scenario.get("events") or []]
    clusters = clusterer.build(events, scenario.get("backend_clusters"))
    zones = [CongestionZone.from_dict(z) for z in scenario.get("zones") or []]
    coverage = [CoverageZone.from_dict(z) for z in scenario.get("coverage_zones") or []]

    zone_records = renderer.render_zones(zones)
    cluster_records = renderer.render_clusters(clusters)
    coverage_records = renderer.render_coverage_zones(coverage)

    print(f"  Events:   {len(events)}")
    print(f"  Clusters: {len(clusters)} ({len(cluster_records)} shown)")
    print(f"  Zones:    {len(zones)} ({len(zone_records)} shown)")
    print(f"  Coverage: {len(coverage)} ({len(coverage_records)} shown)")
    for record in zone_records[:5]:
        print(f"    #{record.rank} {record.level:<9} score {record.score:.1f}")

    # --- Simulation ---
    print("\n✈️  Simulating traffic")
    print("=" * 70)

    predictor = FlightPathPredictor.from_config(config, airports)
    simulation = TrafficSimulation(
        predictor,
        palette,
        clock=SimulationClock(speed_multiplier=config.speed_multiplier),
        cruise_speed_kts=config.cruise_speed_kts,
    )

    origin = resolve_waypoint(scenario.get("origin"), airports)
    destination = resolve_waypoint(scenario.get("destination"), airports)
    simulation.load(
        [TrackedAircraft.from_dict(t) for t in scenario.get("traffic") or []],
        [LearnedRoute.from_dict(r) for r in scenario.get("routes") or []],
        planned_route=scenario.get("planned_route"),
        origin=origin,
        destination=destination,
    )

    clock = simulation.clock
    end_time = min(args.minutes, clock.max_time) if args.minutes else clock.max_time
    # Wall-clock seconds that advance one frame at the current speed
    step_seconds = args.step * 60 / clock.speed_multiplier

    print(f"  Flights:  {len(simulation.flights)}")
    print(f"  Timeline: {format_sim_time(clock.max_time)}")

    clock.play()
    frame = simulation.tick(0)
    worst = {}
    while clock.is_playing and frame.time < end_time:
        frame = simulation.tick(step_seconds)
        for warning in frame.warnings:
            previous = worst.get(warning.other_flight_id)
            if previous is None or warning.lateral_distance_nm < previous.lateral_distance_nm:
                worst[warning.other_flight_id] = warning

        status = f"  T+{format_sim_time(frame.time):>7}  active {simulation.active_count:>3}  landed {simulation.landed_count:>3}"
        if frame.warnings:
            status += f"  ⚠️  {len(frame.warnings)} warning(s)"
        print(status)

    if worst:
        print("\n⚠️  Closest approaches to your flight:")
        for warning in sorted(worst.values(), key=lambda w: w.lateral_distance_nm):
            print(
                f"  {warning.severity.upper():<8} {warning.other_callsign or warning.other_flight_id:<10} "
                f"{warning.lateral_distance_nm:5.1f} nm  {warning.altitude_diff_ft:6.0f} ft"
            )
    else:
        print("\n✅ No proximity warnings")

    # --- Map export ---
    map_gen = MapGenerator(config.region_latitude, config.region_longitude, palette)
    map_gen.add_event_heatmap(events)
    map_gen.add_zones(zone_records)
    map_gen.add_zones(cluster_records)
    map_gen.add_zones(coverage_records)
    map_gen.add_airports(airports)
    map_gen.add_simulation(simulation.flights, frame.states, frame.warnings)
    map_gen.save(args.output)


if __name__ == "__main__":
    main()
