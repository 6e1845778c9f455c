"""
ParkSim Road Map

Minimal road network provider for the parking model.

Usage:
    from parksim.roadmap import RoadMap, MapEdits, LaneType

    road_map = RoadMap.load_from_manifest("configs/maps/ring_town.map.yaml")
    road_map.apply_edits(MapEdits(lane_types={3: LaneType.BIKING}))
"""

from .types import LaneType, LaneDirection, OffstreetParkingKind, Position, TurnID
from .data import Lane, Road, Turn, Building, LotSlot, ParkingLot, MapEdits
from .road_map import RoadMap, strongly_connected_components

__all__ = [
    # Types
    "LaneType",
    "LaneDirection",
    "OffstreetParkingKind",
    "Position",
    "TurnID",
    # Data structures
    "Lane",
    "Road",
    "Turn",
    "Building",
    "LotSlot",
    "ParkingLot",
    "MapEdits",
    # Provider
    "RoadMap",
    "strongly_connected_components",
]
