"""
Shared fixtures for the parking tests.

Every test gets a fresh copy of the Ring Town manifest so it can reshape
the map without affecting other tests.
"""

import copy
import sys
from pathlib import Path

import pytest
import yaml

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from parksim.parking import ParkingConfig, ParkingSimState
from parksim.roadmap import RoadMap

PROJECT_ROOT = Path(__file__).parent.parent
RING_TOWN_PATH = PROJECT_ROOT / "configs" / "maps" / "ring_town.map.yaml"

with open(RING_TOWN_PATH, encoding="utf-8") as _f:
    _RING_TOWN = yaml.safe_load(_f)


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def ring_manifest() -> dict:
    """Ring Town manifest as a dict, safe to modify."""
    return copy.deepcopy(_RING_TOWN)


@pytest.fixture
def quiet_config() -> ParkingConfig:
    return ParkingConfig(console_logging=False)


@pytest.fixture
def road_map(ring_manifest) -> RoadMap:
    return RoadMap.from_dict(ring_manifest)


@pytest.fixture
def state(road_map, quiet_config) -> ParkingSimState:
    return ParkingSimState(road_map, config=quiet_config)


def find_lane(manifest: dict, lane_id: int) -> dict:
    for lane in manifest["lanes"]:
        if lane["id"] == lane_id:
            return lane
    raise KeyError(lane_id)
