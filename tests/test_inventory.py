"""
Spot Inventory Tests

Which spots exist for a given map, and which are deliberately left out.
"""

import logging

import pytest

from parksim.errors import MapConfigurationError
from parksim.logging_utils import LogLevel, SimLogger
from parksim.parking import (
    LotSpot,
    OffstreetSpot,
    OnstreetSpot,
    ParkingConfig,
    SpotInventory,
    Vehicle,
)
from parksim.parking.spots import _SpotOrdering
from parksim.roadmap import RoadMap

from conftest import find_lane

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def quiet_logger(name: str = "Inventory") -> SimLogger:
    return SimLogger(name, console_output=False, file_output=False)


def test_build_counts(road_map, quiet_config) -> None:
    """
    Validates:
        - Four usable parking lanes with 9 spots each
        - Public and private building parking both counted
        - Lot capacity includes extra unrendered spots
    """
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())

    assert sorted(inventory.onstreet_lanes) == [1, 4, 7, 10]
    assert inventory.onstreet_count == 36
    assert inventory.num_spots_per_offstreet == {0: 5, 1: 2}
    assert inventory.num_spots_per_lot == {0: 6}
    assert inventory.total_count == 49
    assert inventory.driving_to_parking_lanes == {0: [1], 3: [4], 6: [7], 9: [10]}
    assert inventory.driving_to_offstreet == {3: [(0, 45.0)], 6: [(1, 45.0)]}
    assert inventory.driving_to_lots == {9: [0]}
    logger.info("  PASS: Ring Town inventory counts")


def test_spot_fronts(road_map, quiet_config) -> None:
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())
    parking_lane = inventory.get_parking_lane(1)

    assert parking_lane.driving_lane == 0
    assert parking_lane.sidewalk == 2
    assert parking_lane.spot_fronts == pytest.approx([16.0 + 8.0 * i for i in range(9)]), \
        "Spot idx has its front at spot_length * (2 + idx)"
    assert parking_lane.dist_along_for_car(0, Vehicle(1, 4.5)) == pytest.approx(14.25)
    assert parking_lane.dist_along_for_car(0, Vehicle(1, 8.0)) == pytest.approx(16.0)
    logger.info("  PASS: spot fronts and car centering")


def test_blackhole_parking_omitted(road_map, quiet_config) -> None:
    """The spur's parking lane is unreachable and contributes nothing."""
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())

    assert inventory.get_parking_lane(13) is None
    assert inventory.onstreet_spots(13) == []
    assert not inventory.contains(OnstreetSpot(13, 0))


def test_missing_sidewalk_skips_lane_with_warning(ring_manifest, quiet_config) -> None:
    find_lane(ring_manifest, 2)["type"] = "biking"
    road_map = RoadMap.from_dict(ring_manifest)
    log = quiet_logger()

    inventory = SpotInventory.build(road_map, quiet_config, logger=log)

    assert inventory.get_parking_lane(1) is None
    warnings = log.get_entries(LogLevel.WARNING)
    assert len(warnings) == 1, f"Expected one warning, got {warnings}"
    assert warnings[0]["parking_lane"] == 1
    logger.info("  PASS: lane without sidewalk skipped and logged")


def test_parking_lane_without_driving_lane_is_fatal(ring_manifest, quiet_config) -> None:
    find_lane(ring_manifest, 0)["type"] = "biking"
    road_map = RoadMap.from_dict(ring_manifest)
    log = quiet_logger()

    with pytest.raises(MapConfigurationError):
        SpotInventory.build(road_map, quiet_config, logger=log)
    assert len(log.get_entries(LogLevel.CRITICAL)) == 1, "Critical entry logged before abort"
    logger.info("  PASS: missing driving lane aborts construction")


def test_zero_capacity_building_ignored(ring_manifest, quiet_config) -> None:
    ring_manifest["buildings"][0]["parking"]["spots"] = 0
    road_map = RoadMap.from_dict(ring_manifest)
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())

    assert 0 not in inventory.num_spots_per_offstreet
    assert inventory.offstreet_spots(0) == []


def test_all_spots_sorted_and_contains(road_map, quiet_config) -> None:
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())
    spots = inventory.all_spots()

    assert len(spots) == 49
    assert spots == sorted(spots), "all_spots should come out in spot order"
    assert spots[0] == OnstreetSpot(1, 0)
    assert spots[-1] == LotSpot(0, 5)
    assert inventory.contains(OffstreetSpot(1, 1))
    assert not inventory.contains(OffstreetSpot(1, 2))
    assert not inventory.contains(OnstreetSpot(1, 9))
    assert not inventory.contains(LotSpot(0, -1))
    logger.info("  PASS: ordered spots and capacity checks")


def test_spot_base_requires_owner() -> None:
    with pytest.raises(TypeError):
        _SpotOrdering()
    assert OnstreetSpot(4, 2).owner == 4
    assert OffstreetSpot(1, 0).owner == 1
    assert LotSpot(0, 3).owner == 0


def test_rebuild_keeps_config(road_map) -> None:
    config = ParkingConfig(parking_spot_length=10.0, console_logging=False)
    inventory = SpotInventory.build(road_map, config, logger=quiet_logger())
    rebuilt = inventory.rebuild(road_map, logger=quiet_logger())

    assert rebuilt.config is config
    assert rebuilt.onstreet_count == inventory.onstreet_count == 4 * 7, \
        "90 m lanes hold 7 spots of 10 m"


def test_inventory_round_trip(road_map, quiet_config) -> None:
    inventory = SpotInventory.build(road_map, quiet_config, logger=quiet_logger())
    restored = SpotInventory.from_dict(inventory.to_dict(), quiet_config)

    assert restored.all_spots() == inventory.all_spots()
    assert restored.onstreet_lanes == inventory.onstreet_lanes
    assert restored.driving_to_offstreet == inventory.driving_to_offstreet
