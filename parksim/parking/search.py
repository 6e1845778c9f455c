"""
Free-Spot Search

Best-first search outward over the driving-lane graph for the nearest
reachable free spot.

Cost of leaving lane L through turn T is length(T) + length(L). The
frontier is a min-heap of (cost, lane_id), so equal costs expand the lower
lane id first and results reproduce exactly across runs.

The search reserves nothing. Two drivers can be sent to the same spot;
whoever arrives second has to search again.
"""

import heapq
from dataclasses import dataclass
from typing import Optional, Union

from ..logging_utils import SimLogger
from ..roadmap import Position, RoadMap, TurnID
from .inventory import SpotInventory
from .ledger import OccupancyLedger
from .projection import spot_to_driving_pos
from .spots import ParkingSpot
from .vehicle import Vehicle


@dataclass(frozen=True)
class LaneStep:
    lane: int

    def to_dict(self) -> dict:
        return {"lane": self.lane}


@dataclass(frozen=True)
class TurnStep:
    turn: TurnID

    def to_dict(self) -> dict:
        return {"turn": self.turn.to_dict()}


PathStep = Union[LaneStep, TurnStep]


@dataclass(frozen=True)
class ParkingPath:
    """
    Route to a free spot.

    steps starts with the first turn out of the start lane and ends on the
    lane the spot is reached from. The start lane itself is not included.
    """
    steps: tuple[PathStep, ...]
    spot: ParkingSpot
    driving_pos: Position
    cost: float

    def to_dict(self) -> dict:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "spot": self.spot.to_dict(),
            "driving_pos": self.driving_pos.to_dict(),
            "cost": self.cost,
        }


# ========================================
# CANDIDATES ON ONE LANE
# ========================================

def get_free_onstreet_spots(
    parking_lane: int,
    inventory: SpotInventory,
    ledger: OccupancyLedger,
) -> list[ParkingSpot]:
    return [s for s in inventory.onstreet_spots(parking_lane) if ledger.is_free(s)]


def get_free_offstreet_spots(
    building_id: int,
    inventory: SpotInventory,
    ledger: OccupancyLedger,
) -> list[ParkingSpot]:
    return [s for s in inventory.offstreet_spots(building_id) if ledger.is_free(s)]


def get_free_lot_spots(
    lot_id: int,
    inventory: SpotInventory,
    ledger: OccupancyLedger,
) -> list[ParkingSpot]:
    return [s for s in inventory.lot_spots(lot_id) if ledger.is_free(s)]


def get_all_free_spots(
    driving_pos: Position,
    vehicle: Vehicle,
    target_building: Optional[int],
    inventory: SpotInventory,
    ledger: OccupancyLedger,
    road_map: RoadMap,
) -> list[tuple[ParkingSpot, Position]]:
    """
    Free spots reachable from a driving lane, strictly ahead of driving_pos.

    Private building parking is only offered when the building is the
    trip's target.
    """
    lane = driving_pos.lane
    candidates: list[tuple[ParkingSpot, Position]] = []

    for parking_lane in inventory.driving_to_parking_lanes.get(lane, []):
        for spot in get_free_onstreet_spots(parking_lane, inventory, ledger):
            spot_pos = spot_to_driving_pos(spot, vehicle, inventory, road_map)
            if driving_pos.dist_along < spot_pos.dist_along:
                candidates.append((spot, spot_pos))

    for building_id, dist_along in inventory.driving_to_offstreet.get(lane, []):
        if road_map.get_b(building_id).is_private() and building_id != target_building:
            continue
        if not driving_pos.dist_along < dist_along:
            continue
        spot_pos = Position(lane, dist_along)
        for spot in get_free_offstreet_spots(building_id, inventory, ledger):
            candidates.append((spot, spot_pos))

    for lot_id in inventory.driving_to_lots.get(lane, []):
        spot_pos = road_map.get_pl(lot_id).driving_pos
        if not driving_pos.dist_along < spot_pos.dist_along:
            continue
        for spot in get_free_lot_spots(lot_id, inventory, ledger):
            candidates.append((spot, spot_pos))

    return candidates


# ========================================
# SEARCH
# ========================================

def _reconstruct_steps(
    start_lane: int,
    end_lane: int,
    backrefs: dict[int, TurnID],
) -> tuple[PathStep, ...]:
    steps: list[PathStep] = [LaneStep(end_lane)]
    current = end_lane
    while current != start_lane:
        turn = backrefs[current]
        steps.append(TurnStep(turn))
        steps.append(LaneStep(turn.src))
        current = turn.src
    # Drop the start lane
    steps.pop()
    steps.reverse()
    return tuple(steps)


def find_path_to_free_spot(
    start_lane: int,
    vehicle: Vehicle,
    target_building: Optional[int],
    inventory: SpotInventory,
    ledger: OccupancyLedger,
    road_map: RoadMap,
    logger: Optional[SimLogger] = None,
) -> Optional[ParkingPath]:
    """
    Nearest free spot by route cost, never on the start lane itself.

    Returns None when every reachable lane has been expanded without a
    free spot. That is a normal outcome, not an error. Vehicles that do
    not use parking spots get None without a search.
    """
    if not vehicle.vehicle_type.uses_parking_spots:
        if logger:
            logger.debug(
                "Vehicle does not park",
                car_id=vehicle.car_id,
                vehicle_type=vehicle.vehicle_type,
            )
        return None

    backrefs: dict[int, TurnID] = {}
    discovered = {start_lane}
    queue: list[tuple[float, int]] = [(0.0, start_lane)]
    expanded = 0

    while queue:
        cost, current = heapq.heappop(queue)
        expanded += 1

        if current != start_lane:
            spots = get_all_free_spots(
                Position.start(current), vehicle, target_building, inventory, ledger, road_map
            )
            if spots:
                spot, spot_pos = min(spots, key=lambda c: (c[1].dist_along, c[0].sort_key()))
                path = ParkingPath(
                    steps=_reconstruct_steps(start_lane, current, backrefs),
                    spot=spot,
                    driving_pos=spot_pos,
                    cost=cost,
                )
                if logger:
                    logger.log_output(
                        "free spot",
                        car_id=vehicle.car_id,
                        start_lane=start_lane,
                        spot=spot,
                        cost=cost,
                        lanes_expanded=expanded,
                    )
                return path

        lane_length = road_map.get_l(current).length()
        for turn in road_map.get_turns_for(current):
            if turn.dst in discovered:
                continue
            discovered.add(turn.dst)
            backrefs[turn.dst] = turn.turn_id
            heapq.heappush(queue, (cost + turn.length() + lane_length, turn.dst))

    if logger:
        logger.debug(
            "No free spot reachable",
            car_id=vehicle.car_id,
            start_lane=start_lane,
            lanes_expanded=expanded,
        )
    return None
