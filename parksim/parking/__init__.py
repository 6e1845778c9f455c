"""
ParkSim Parking Model

Parking-resource allocation for a microscopic traffic simulation.

Spots are DATA owned by one ledger:
- Every spot is derived from the map; none are invented at runtime
- A spot is reserved before a car drives to it, then committed on arrival
- Map edits rebuild the inventory and evict cars whose spot vanished

Spot kinds:
- ONSTREET: Curb spots along parking lanes
- OFFSTREET: Uncounted spots inside buildings
- LOT: Surface parking lot slots

Usage:
    from parksim.roadmap import RoadMap
    from parksim.parking import ParkingSimState, ParkedCar, Vehicle

    road_map = RoadMap.load_from_manifest("configs/maps/ring_town.map.yaml")
    state = ParkingSimState(road_map)

    car = Vehicle(car_id=1, length=4.5)
    path = state.path_to_free_parking_spot(start_lane=0, vehicle=car)
    state.reserve_spot(path.spot)
    state.add_parked_car(ParkedCar(car, path.spot))
"""

from ..errors import MapConfigurationError, ParkingInvariantError
from .spots import SpotKind, OnstreetSpot, OffstreetSpot, LotSpot, ParkingSpot, spot_from_dict
from .vehicle import VehicleType, Vehicle, ParkedCar
from .events import ParkingEventType, ParkingEvent
from .parking_config import ParkingConfig
from .inventory import ParkingLane, SpotInventory
from .ledger import OccupancyLedger
from .projection import (
    DrawCarInput,
    spot_to_driving_pos,
    spot_to_sidewalk_pos,
    get_draw_position,
    canonical_pt,
)
from .search import LaneStep, TurnStep, ParkingPath, get_all_free_spots, find_path_to_free_spot
from .state import ParkingSimState

__all__ = [
    # Errors
    "MapConfigurationError",
    "ParkingInvariantError",
    # Spots
    "SpotKind",
    "OnstreetSpot",
    "OffstreetSpot",
    "LotSpot",
    "ParkingSpot",
    "spot_from_dict",
    # Vehicles
    "VehicleType",
    "Vehicle",
    "ParkedCar",
    # Events
    "ParkingEventType",
    "ParkingEvent",
    # Config
    "ParkingConfig",
    # Inventory & ledger
    "ParkingLane",
    "SpotInventory",
    "OccupancyLedger",
    # Projection
    "DrawCarInput",
    "spot_to_driving_pos",
    "spot_to_sidewalk_pos",
    "get_draw_position",
    "canonical_pt",
    # Search
    "LaneStep",
    "TurnStep",
    "ParkingPath",
    "get_all_free_spots",
    "find_path_to_free_spot",
    # Facade
    "ParkingSimState",
]
