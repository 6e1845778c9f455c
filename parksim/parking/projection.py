"""
Position Projection

Turns abstract spots into concrete lane positions and drawable geometry.
"""

from dataclasses import dataclass
from typing import Optional

from ..errors import ParkingInvariantError
from ..geometry import Pt2D, PolyLine
from ..roadmap import Position, RoadMap
from .inventory import ParkingLane, SpotInventory
from .parking_config import ParkingConfig
from .spots import LotSpot, OffstreetSpot, OnstreetSpot, ParkingSpot
from .vehicle import ParkedCar, Vehicle


@dataclass(frozen=True)
class DrawCarInput:
    """What a renderer needs to draw one parked car."""
    car_id: int
    owner: Optional[int]
    spot: ParkingSpot
    body: PolyLine

    def to_dict(self) -> dict:
        return {
            "car_id": self.car_id,
            "owner": self.owner,
            "spot": self.spot.to_dict(),
            "body": self.body.to_dict(),
        }


def _parking_lane(spot: OnstreetSpot, inventory: SpotInventory) -> ParkingLane:
    parking_lane = inventory.get_parking_lane(spot.lane)
    if parking_lane is None or not inventory.contains(spot):
        raise ParkingInvariantError(f"{spot} does not exist in the current inventory")
    return parking_lane


def spot_to_driving_pos(
    spot: ParkingSpot,
    vehicle: Vehicle,
    inventory: SpotInventory,
    road_map: RoadMap,
) -> Position:
    """Where on the driving lane the car's front stops to enter the spot."""
    if isinstance(spot, OnstreetSpot):
        parking_lane = _parking_lane(spot, inventory)
        front = Position(spot.lane, parking_lane.dist_along_for_car(spot.idx, vehicle))
        return road_map.equiv_pos_for_long_object(
            front, parking_lane.driving_lane, vehicle.length
        )
    elif isinstance(spot, OffstreetSpot):
        connection = road_map.building_driving_connection(spot.building)
        if connection is None:
            raise ParkingInvariantError(f"Building {spot.building} has no driving connection")
        return connection[0]
    else:
        return road_map.get_pl(spot.lot).driving_pos


def spot_to_sidewalk_pos(
    spot: ParkingSpot,
    inventory: SpotInventory,
    road_map: RoadMap,
) -> Position:
    """Where the driver steps onto the sidewalk. Ignores vehicle length."""
    if isinstance(spot, OnstreetSpot):
        parking_lane = _parking_lane(spot, inventory)
        center = parking_lane.spot_fronts[spot.idx] - parking_lane.spot_length / 2.0
        return road_map.equiv_pos(Position(spot.lane, center), parking_lane.sidewalk)
    elif isinstance(spot, OffstreetSpot):
        return road_map.get_b(spot.building).sidewalk_pos
    else:
        return road_map.get_pl(spot.lot).sidewalk_pos


def get_draw_position(
    parked_car: ParkedCar,
    inventory: SpotInventory,
    road_map: RoadMap,
    config: Optional[ParkingConfig] = None,
) -> Optional[DrawCarInput]:
    """
    Car body geometry, or None when the spot has no drawable position
    (offstreet spots and lot capacity beyond the rendered slots).
    """
    config = config or inventory.config
    spot = parked_car.spot
    vehicle = parked_car.vehicle

    if isinstance(spot, OnstreetSpot):
        parking_lane = _parking_lane(spot, inventory)
        front = parking_lane.dist_along_for_car(spot.idx, vehicle)
        body = road_map.get_l(spot.lane).center_pts.exact_slice(front - vehicle.length, front)
    elif isinstance(spot, LotSpot):
        lot = road_map.get_pl(spot.lot)
        if spot.idx >= len(lot.spots):
            return None
        slot = lot.spots[spot.idx]
        body = PolyLine([
            slot.pt.project_away(config.lot_spot_buffer, slot.angle),
            slot.pt.project_away(config.lot_spot_length - config.lot_spot_buffer, slot.angle),
        ])
    else:
        return None

    return DrawCarInput(
        car_id=vehicle.car_id,
        owner=vehicle.owner,
        spot=spot,
        body=body,
    )


def canonical_pt(
    parked_car: ParkedCar,
    inventory: SpotInventory,
    road_map: RoadMap,
) -> Pt2D:
    """A single representative point for any parked car."""
    draw = get_draw_position(parked_car, inventory, road_map)
    if draw is not None:
        return draw.body.last_pt()
    spot = parked_car.spot
    if isinstance(spot, LotSpot):
        return road_map.get_pl(spot.lot).center()
    return road_map.get_b(spot.building).label_center
