"""
Free-Spot Search Tests

Best-first search over the driving-lane graph.
"""

import logging

import pytest

from parksim.parking import (
    LaneStep,
    LotSpot,
    OffstreetSpot,
    OnstreetSpot,
    ParkedCar,
    ParkingSimState,
    TurnStep,
    Vehicle,
    VehicleType,
)
from parksim.roadmap import (
    LaneType,
    MapEdits,
    OffstreetParkingKind,
    Position,
    RoadMap,
    TurnID,
)

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)

TURN_LENGTH = 50 ** 0.5
LANE_LENGTH = 90.0


def test_nearest_spot_on_next_lane(state) -> None:
    """
    Validates:
        - The start lane is never searched
        - The closest spot on the first expanded lane wins
        - The path starts with the turn out of the start lane
    """
    path = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))

    assert path is not None
    assert path.spot == OnstreetSpot(4, 0)
    assert path.driving_pos == Position(3, pytest.approx(14.25))
    assert path.steps == (TurnStep(TurnID(0, 3)), LaneStep(3))
    assert path.cost == pytest.approx(TURN_LENGTH + LANE_LENGTH)
    logger.info("  PASS: nearest spot found one lane ahead")


def test_search_skips_full_lanes(state) -> None:
    for spot in state.inventory.onstreet_spots(4):
        state.reserve_spot(spot)

    path = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))

    assert path.spot == OffstreetSpot(0, 0), "Public building on lane 3 is next closest"
    assert path.driving_pos == Position(3, 45.0)
    logger.info("  PASS: full curb falls through to building parking")


def test_multi_hop_path(state) -> None:
    for lane in (4, 7):
        for spot in state.inventory.onstreet_spots(lane):
            state.reserve_spot(spot)
    for spot in state.inventory.offstreet_spots(0):
        state.reserve_spot(spot)

    path = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))

    assert path.spot == OnstreetSpot(10, 0)
    assert path.steps == (
        TurnStep(TurnID(0, 3)), LaneStep(3),
        TurnStep(TurnID(3, 6)), LaneStep(6),
        TurnStep(TurnID(6, 9)), LaneStep(9),
    )
    assert path.cost == pytest.approx(3 * (TURN_LENGTH + LANE_LENGTH))
    logger.info("  PASS: path crosses three turns")


def test_equal_costs_expand_lower_lane_first(ring_manifest, quiet_config) -> None:
    """Lanes 3 and 12 are both one turn away at identical cost."""
    ring_manifest["turns"].append([12, 3])
    state = ParkingSimState(RoadMap.from_dict(ring_manifest), config=quiet_config)
    assert state.inventory.onstreet_spots(13), "Spur parking is reachable once looped"

    first = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))
    second = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))

    assert first.spot == OnstreetSpot(4, 0), "Lane 3 pops before lane 12"
    assert first == second, "Search is deterministic"
    logger.info("  PASS: tie broken by lane id")


def test_strictly_ahead_filter(state) -> None:
    car = Vehicle(1, 4.5)

    spots = [s for s, _ in state.get_all_free_spots(Position(3, 30.0), car)]
    assert OnstreetSpot(4, 1) not in spots
    assert OnstreetSpot(4, 2) in spots, "Front at 30.25 is ahead of 30.0"
    assert OffstreetSpot(0, 0) in spots

    at_spot = [s for s, _ in state.get_all_free_spots(Position(3, 30.25), car)]
    assert OnstreetSpot(4, 2) not in at_spot, "A spot exactly at the position is behind"

    past_building = [s for s, _ in state.get_all_free_spots(Position(3, 45.0), car)]
    assert not any(isinstance(s, OffstreetSpot) for s in past_building)
    logger.info("  PASS: only spots strictly ahead are offered")


def test_private_parking_only_for_target(state) -> None:
    car = Vehicle(1, 4.5)

    public = [s for s, _ in state.get_all_free_spots(Position.start(6), car)]
    assert not any(isinstance(s, OffstreetSpot) for s in public)

    targeted = [s for s, _ in state.get_all_free_spots(Position.start(6), car, target_building=1)]
    assert OffstreetSpot(1, 0) in targeted and OffstreetSpot(1, 1) in targeted
    logger.info("  PASS: private building parking gated by target")


def test_lot_spots_offered(state) -> None:
    found = state.get_all_free_spots(Position.start(9), Vehicle(1, 4.5))
    lot_spots = [(s, pos) for s, pos in found if isinstance(s, LotSpot)]

    assert len(lot_spots) == 6
    assert all(pos == Position(9, 45.0) for _, pos in lot_spots)


def test_occupied_spots_not_offered(state) -> None:
    spot = OnstreetSpot(4, 0)
    state.reserve_spot(spot)
    state.add_parked_car(ParkedCar(Vehicle(9, 4.5), spot))

    path = state.path_to_free_parking_spot(0, Vehicle(1, 4.5))
    assert path.spot == OnstreetSpot(4, 1)


def test_no_free_spot_returns_none(state) -> None:
    _, available = state.get_all_parking_spots()
    for spot in available:
        state.reserve_spot(spot)

    assert state.path_to_free_parking_spot(0, Vehicle(1, 4.5)) is None
    logger.info("  PASS: exhausted frontier yields None")


def test_no_parking_anywhere(state) -> None:
    state.handle_live_edits(MapEdits(
        lane_types={lane: LaneType.BIKING for lane in (1, 4, 7, 10)},
        building_parking={b: (OffstreetParkingKind.NONE, 0) for b in (0, 1)},
        removed_lots={0},
    ))

    assert state.inventory.total_count == 0
    assert state.path_to_free_parking_spot(0, Vehicle(1, 4.5)) is None


def test_only_cars_search_for_parking(state) -> None:
    for vehicle_type in (VehicleType.BUS, VehicleType.BIKE):
        vehicle = Vehicle(1, 4.5, vehicle_type=vehicle_type)
        assert state.path_to_free_parking_spot(0, vehicle) is None, vehicle_type

    assert state.path_to_free_parking_spot(0, Vehicle(1, 4.5, vehicle_type=VehicleType.CAR))
    logger.info("  PASS: buses and bikes never get a parking path")
