#!/usr/bin/env python3
"""
Parking Inspection Script

Loads a map and parking config, builds the parking state and reports on it.
Optionally parks demo cars, applies a live edit and saves a snapshot.

Usage:
    python scripts/inspect_parking.py
    python scripts/inspect_parking.py --park 10
    python scripts/inspect_parking.py --park 10 --edits configs/maps/ring_town_bike_lanes.edits.yaml
    python scripts/inspect_parking.py --park 5 --snapshot output/parking_snapshot.yaml
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parksim.logging_utils import LogLevel, SessionLogger
from parksim.parking import ParkedCar, ParkingConfig, ParkingSimState, Vehicle
from parksim.roadmap import MapEdits, RoadMap


def print_statistics(state: ParkingSimState) -> None:
    stats = state.get_statistics()
    print(f"  Map: {stats['map_name']} (version {stats['map_version']})")
    print(f"  Total spots: {stats['total_spots']}")
    for kind, counts in stats["by_kind"].items():
        print(
            f"    {kind:<10} total={counts['total']:<4} occupied={counts['occupied']:<4} "
            f"reserved={counts['reserved']:<4} free={counts['free']}"
        )
    print(f"  Occupied: {stats['occupied_spots']}  Reserved: {stats['reserved_spots']}  "
          f"Free: {stats['free_spots']}")


def park_demo_cars(state: ParkingSimState, count: int, start_lane: int) -> int:
    """Search, reserve and park cars one at a time. Returns how many parked."""
    parked = 0
    for car_id in range(count):
        vehicle = Vehicle(car_id=car_id, length=state.config.default_car_length, owner=car_id)
        path = state.path_to_free_parking_spot(start_lane, vehicle)
        if path is None:
            print(f"  ✗ Car {car_id}: no free spot reachable from lane {start_lane}")
            break
        state.reserve_spot(path.spot)
        state.add_parked_car(ParkedCar(vehicle, path.spot))
        parked += 1
        print(f"  ✓ Car {car_id} -> {path.spot} (cost {path.cost:.1f}, {len(path.steps)} steps)")

    events = state.collect_events()
    print(f"  {len(events)} parking events collected")
    return parked


def main():
    parser = argparse.ArgumentParser(description="Inspect parking on a map")
    parser.add_argument("--map", default=str(project_root / "configs" / "maps" / "ring_town.map.yaml"),
                        help="Map manifest (YAML or JSON)")
    parser.add_argument("--config", default=str(project_root / "configs" / "parking.yaml"),
                        help="Parking config YAML")
    parser.add_argument("--park", type=int, default=0, help="Number of demo cars to park")
    parser.add_argument("--start-lane", type=int, default=0, help="Driving lane demo cars start on")
    parser.add_argument("--edits", default=None, help="Map edits YAML to apply after parking")
    parser.add_argument("--snapshot", default=None, help="Write a snapshot to this path")
    parser.add_argument("--log-dir", default=None, help="Write JSONL logs and a session summary here")
    args = parser.parse_args()

    config = ParkingConfig.load(args.config)
    session = SessionLogger(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        console_output=config.console_logging,
        console_level=LogLevel.from_string(config.console_level),
    )

    print("=" * 60)
    print("ParkSim Parking Inspection")
    print("=" * 60)

    road_map = RoadMap.load_from_manifest(args.map)
    state = ParkingSimState(road_map, config=config, session=session)
    print_statistics(state)

    if args.park > 0:
        print("\n" + "=" * 60)
        print(f"PARKING {args.park} CARS")
        print("=" * 60)
        park_demo_cars(state, args.park, args.start_lane)
        print_statistics(state)

    if args.edits:
        print("\n" + "=" * 60)
        print("APPLYING MAP EDITS")
        print("=" * 60)
        evicted = state.handle_live_edits(MapEdits.load(args.edits))
        for parked_car in evicted:
            print(f"  ✗ Evicted car {parked_car.car_id} from {parked_car.spot}")
        print(f"  {len(evicted)} cars evicted")
        print_statistics(state)

    if args.snapshot:
        path = state.save_snapshot(args.snapshot)
        print(f"\nSnapshot written to {path}")

    summary_path = session.write_summary()
    if summary_path:
        print(f"Session summary written to {summary_path}")

    return 0 if not session.get_all_errors() else 1


if __name__ == "__main__":
    sys.exit(main())
