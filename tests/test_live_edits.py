"""
Live Map Edit Tests

Replacing curb parking mid-simulation, evicting stranded cars and
trimming reservations.
"""

import logging

import pytest

from parksim.errors import MapConfigurationError, ParkingInvariantError
from parksim.logging_utils import LogLevel
from parksim.parking import LotSpot, OffstreetSpot, OnstreetSpot, ParkedCar, Vehicle
from parksim.roadmap import LaneType, MapEdits, OffstreetParkingKind

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def park(state, car_id: int, spot) -> None:
    state.reserve_spot(spot)
    state.add_parked_car(ParkedCar(Vehicle(car_id, 4.5), spot))


def test_bike_lane_replaces_curb_parking(state, project_root) -> None:
    """
    Validates:
        - Cars on removed spots are evicted and returned in spot order
        - Reservations on removed spots are dropped
        - Untouched cars and reservations survive
        - Evictions emit no events
    """
    park(state, 1, OnstreetSpot(4, 0))
    park(state, 2, LotSpot(0, 0))
    park(state, 3, OnstreetSpot(1, 0))
    state.reserve_spot(OnstreetSpot(4, 1))
    state.reserve_spot(OnstreetSpot(7, 0))
    state.collect_events()

    edits = MapEdits.load(project_root / "configs" / "maps" / "ring_town_bike_lanes.edits.yaml")
    evicted = state.handle_live_edits(edits)

    assert [(p.car_id, p.spot) for p in evicted] == [
        (1, OnstreetSpot(4, 0)),
        (2, LotSpot(0, 0)),
    ]
    assert state.lookup_parked_car(1) is None
    assert state.lookup_parked_car(3).spot == OnstreetSpot(1, 0)
    assert state.ledger.reserved_spots() == [OnstreetSpot(7, 0)]
    assert state.collect_events() == []

    stats = state.get_statistics()
    assert stats["total_spots"] == 49 - 9 - 6
    assert stats["occupied_spots"] == 1
    assert stats["reserved_spots"] == 1
    assert stats["map_version"] == 1
    logger.info("  PASS: curb replaced, cars evicted")


def test_eviction_logged_as_warning(state) -> None:
    park(state, 1, OnstreetSpot(4, 0))
    state.handle_live_edits(MapEdits(lane_types={4: LaneType.BIKING}))

    warnings = state.ledger.logger.get_entries(LogLevel.WARNING)
    assert warnings and warnings[-1]["car_ids"] == [1]


def test_edit_without_changes_keeps_everything(state) -> None:
    park(state, 1, OnstreetSpot(4, 0))
    state.reserve_spot(LotSpot(0, 2))

    evicted = state.handle_live_edits()

    assert evicted == []
    assert state.lookup_parked_car(1) is not None
    assert state.ledger.reserved_spots() == [LotSpot(0, 2)]


def test_shrinking_building_evicts_high_indexes(state) -> None:
    park(state, 1, OffstreetSpot(0, 0))
    park(state, 2, OffstreetSpot(0, 4))

    evicted = state.handle_live_edits(
        MapEdits(building_parking={0: (OffstreetParkingKind.PUBLIC, 2)})
    )

    assert [p.car_id for p in evicted] == [2]
    assert state.get_free_offstreet_spots(0) == [OffstreetSpot(0, 1)]


def test_stale_handle_rejected_after_edit(state) -> None:
    state.handle_live_edits(MapEdits(lane_types={4: LaneType.BIKING}))

    with pytest.raises(ParkingInvariantError):
        state.reserve_spot(OnstreetSpot(4, 0))


def test_edit_leaving_parking_without_driving_lane_is_fatal(state) -> None:
    """
    Validates:
        - The rebuild fault propagates
        - The rejected edit never reaches the live map
        - Inventory and ledger are left as they were
    """
    park(state, 1, OnstreetSpot(4, 0))
    before = state.get_statistics()

    with pytest.raises(MapConfigurationError):
        state.handle_live_edits(MapEdits(lane_types={3: LaneType.BIKING}))

    assert state.road_map.version == 0
    assert state.road_map.get_l(3).lane_type == LaneType.DRIVING
    assert state.get_statistics() == before
    assert state.lookup_parked_car(1).spot == OnstreetSpot(4, 0)

    state.reserve_spot(OnstreetSpot(4, 1))
    assert state.handle_live_edits(MapEdits(lane_types={4: LaneType.BIKING}))[0].car_id == 1
    logger.info("  PASS: orphaned parking lane rejected without side effects")
