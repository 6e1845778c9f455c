"""
Spot Inventory

Canonical registry of every parking spot the map offers.

Built from map data in one pass and rebuilt wholesale after map edits.
Spots whose access lane is a blackhole are left out: a car that parked
there could never drive away.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..errors import MapConfigurationError
from ..logging_utils import SimLogger
from ..roadmap import LaneType, RoadMap
from .parking_config import ParkingConfig
from .spots import LotSpot, OffstreetSpot, OnstreetSpot, ParkingSpot
from .vehicle import Vehicle


@dataclass(frozen=True)
class ParkingLane:
    """
    A parking lane the model can use, bound to the driving lane cars
    enter from and the sidewalk drivers walk to.

    spot_fronts[idx] is the distance along the parking lane of the front
    edge of spot idx.
    """
    parking_lane: int
    driving_lane: int
    sidewalk: int
    spot_fronts: tuple[float, ...]
    spot_length: float

    @classmethod
    def from_lane(
        cls,
        lane_id: int,
        road_map: RoadMap,
        config: ParkingConfig,
        logger: SimLogger,
    ) -> Optional["ParkingLane"]:
        """
        None when the lane is unusable (blackhole access or no sidewalk).

        Raises:
            MapConfigurationError: If no driving lane serves the parking lane
        """
        driving_lane = road_map.parking_to_driving(lane_id)
        if driving_lane is None:
            logger.critical(
                "Parking lane has no driving lane on its side of the road",
                reason=f"parking lane {lane_id}",
                suggested_fix="Add a driving lane beside it or change its type in the manifest",
            )
            raise MapConfigurationError(
                f"Parking lane {lane_id} has no driving lane on its side of the road"
            )
        if road_map.is_blackhole(driving_lane):
            return None

        sidewalk = road_map.find_closest_lane(lane_id, LaneType.is_walkable)
        if sidewalk is None:
            logger.warning(
                "Parking lane skipped: no sidewalk on its side of the road",
                parking_lane=lane_id,
                driving_lane=driving_lane,
            )
            return None

        count = road_map.get_l(lane_id).number_parking_spots(config.parking_spot_length)
        return cls(
            parking_lane=lane_id,
            driving_lane=driving_lane,
            sidewalk=sidewalk,
            spot_fronts=tuple(config.parking_spot_length * (2 + idx) for idx in range(count)),
            spot_length=config.parking_spot_length,
        )

    def dist_along_for_car(self, idx: int, vehicle: Vehicle) -> float:
        """Front of a car centered in spot idx."""
        return self.spot_fronts[idx] - (self.spot_length - vehicle.length) / 2.0

    def spots(self) -> list[OnstreetSpot]:
        return [OnstreetSpot(self.parking_lane, idx) for idx in range(len(self.spot_fronts))]

    def to_dict(self) -> dict:
        return {
            "parking_lane": self.parking_lane,
            "driving_lane": self.driving_lane,
            "sidewalk": self.sidewalk,
            "spot_fronts": list(self.spot_fronts),
            "spot_length": self.spot_length,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParkingLane":
        return cls(
            parking_lane=int(data["parking_lane"]),
            driving_lane=int(data["driving_lane"]),
            sidewalk=int(data["sidewalk"]),
            spot_fronts=tuple(float(d) for d in data["spot_fronts"]),
            spot_length=float(data["spot_length"]),
        )


@dataclass
class SpotInventory:
    """
    Every usable spot, grouped by kind, plus indexes from driving lanes
    to the parking reachable from them.
    """
    config: ParkingConfig
    onstreet_lanes: dict[int, ParkingLane] = field(default_factory=dict)
    driving_to_parking_lanes: dict[int, list[int]] = field(default_factory=dict)
    num_spots_per_offstreet: dict[int, int] = field(default_factory=dict)
    driving_to_offstreet: dict[int, list[tuple[int, float]]] = field(default_factory=dict)
    num_spots_per_lot: dict[int, int] = field(default_factory=dict)
    driving_to_lots: dict[int, list[int]] = field(default_factory=dict)

    MODULE_NAME = "Inventory"

    # ========================================
    # CONSTRUCTION
    # ========================================

    @classmethod
    def build(
        cls,
        road_map: RoadMap,
        config: ParkingConfig,
        logger: Optional[SimLogger] = None,
    ) -> "SpotInventory":
        """
        Derive the inventory from map data.

        Raises:
            MapConfigurationError: If a parking lane has no driving lane
        """
        logger = logger or config.create_logger(cls.MODULE_NAME)
        inventory = cls(config=config)

        for lane in road_map.all_lanes():
            if lane.lane_type != LaneType.PARKING:
                continue
            parking_lane = ParkingLane.from_lane(lane.lane_id, road_map, config, logger)
            if parking_lane is None:
                continue
            inventory.onstreet_lanes[lane.lane_id] = parking_lane
            inventory.driving_to_parking_lanes.setdefault(
                parking_lane.driving_lane, []
            ).append(lane.lane_id)

        for building in road_map.all_buildings():
            if not building.has_parking():
                continue
            connection = road_map.building_driving_connection(building.building_id)
            if connection is None:
                continue
            driving_pos, _ = connection
            if road_map.is_blackhole(driving_pos.lane):
                continue
            inventory.num_spots_per_offstreet[building.building_id] = building.num_spots
            inventory.driving_to_offstreet.setdefault(driving_pos.lane, []).append(
                (building.building_id, driving_pos.dist_along)
            )

        for lot in road_map.all_parking_lots():
            if road_map.is_blackhole(lot.driving_pos.lane):
                continue
            inventory.num_spots_per_lot[lot.lot_id] = lot.capacity()
            inventory.driving_to_lots.setdefault(lot.driving_pos.lane, []).append(lot.lot_id)

        logger.info(
            "Spot inventory built",
            map_name=road_map.name,
            map_version=road_map.version,
            onstreet_lanes=len(inventory.onstreet_lanes),
            onstreet_spots=inventory.onstreet_count,
            offstreet_buildings=len(inventory.num_spots_per_offstreet),
            offstreet_spots=inventory.offstreet_count,
            lots=len(inventory.num_spots_per_lot),
            lot_spots=inventory.lot_count,
        )
        return inventory

    def rebuild(self, road_map: RoadMap, logger: Optional[SimLogger] = None) -> "SpotInventory":
        """Fresh inventory for the current map under the same configuration."""
        return SpotInventory.build(road_map, self.config, logger=logger)

    # ========================================
    # QUERIES
    # ========================================

    def get_parking_lane(self, lane_id: int) -> Optional[ParkingLane]:
        return self.onstreet_lanes.get(lane_id)

    def onstreet_spots(self, lane_id: int) -> list[OnstreetSpot]:
        parking_lane = self.onstreet_lanes.get(lane_id)
        return parking_lane.spots() if parking_lane else []

    def offstreet_spots(self, building_id: int) -> list[OffstreetSpot]:
        return [
            OffstreetSpot(building_id, idx)
            for idx in range(self.num_spots_per_offstreet.get(building_id, 0))
        ]

    def lot_spots(self, lot_id: int) -> list[LotSpot]:
        return [LotSpot(lot_id, idx) for idx in range(self.num_spots_per_lot.get(lot_id, 0))]

    def all_spots(self) -> list[ParkingSpot]:
        """Every spot, in spot order."""
        spots: list[ParkingSpot] = []
        for lane_id in sorted(self.onstreet_lanes):
            spots.extend(self.onstreet_spots(lane_id))
        for building_id in sorted(self.num_spots_per_offstreet):
            spots.extend(self.offstreet_spots(building_id))
        for lot_id in sorted(self.num_spots_per_lot):
            spots.extend(self.lot_spots(lot_id))
        return spots

    def contains(self, spot: ParkingSpot) -> bool:
        """True if the spot exists under the current map version."""
        if spot.idx < 0:
            return False
        if isinstance(spot, OnstreetSpot):
            parking_lane = self.onstreet_lanes.get(spot.lane)
            return parking_lane is not None and spot.idx < len(parking_lane.spot_fronts)
        elif isinstance(spot, OffstreetSpot):
            return spot.idx < self.num_spots_per_offstreet.get(spot.building, 0)
        elif isinstance(spot, LotSpot):
            return spot.idx < self.num_spots_per_lot.get(spot.lot, 0)
        return False

    @property
    def onstreet_count(self) -> int:
        return sum(len(pl.spot_fronts) for pl in self.onstreet_lanes.values())

    @property
    def offstreet_count(self) -> int:
        return sum(self.num_spots_per_offstreet.values())

    @property
    def lot_count(self) -> int:
        return sum(self.num_spots_per_lot.values())

    @property
    def total_count(self) -> int:
        return self.onstreet_count + self.offstreet_count + self.lot_count

    # ========================================
    # SERIALIZATION
    # ========================================

    def to_dict(self) -> dict:
        return {
            "onstreet_lanes": [
                self.onstreet_lanes[l].to_dict() for l in sorted(self.onstreet_lanes)
            ],
            "driving_to_parking_lanes": {
                l: sorted(lanes) for l, lanes in sorted(self.driving_to_parking_lanes.items())
            },
            "num_spots_per_offstreet": dict(sorted(self.num_spots_per_offstreet.items())),
            "driving_to_offstreet": {
                l: [[b, dist] for b, dist in sorted(entries)]
                for l, entries in sorted(self.driving_to_offstreet.items())
            },
            "num_spots_per_lot": dict(sorted(self.num_spots_per_lot.items())),
            "driving_to_lots": {
                l: sorted(lots) for l, lots in sorted(self.driving_to_lots.items())
            },
        }

    @classmethod
    def from_dict(cls, data: dict, config: ParkingConfig) -> "SpotInventory":
        onstreet = [ParkingLane.from_dict(pl) for pl in data.get("onstreet_lanes", [])]
        return cls(
            config=config,
            onstreet_lanes={pl.parking_lane: pl for pl in onstreet},
            driving_to_parking_lanes={
                int(l): [int(p) for p in lanes]
                for l, lanes in (data.get("driving_to_parking_lanes") or {}).items()
            },
            num_spots_per_offstreet={
                int(b): int(n) for b, n in (data.get("num_spots_per_offstreet") or {}).items()
            },
            driving_to_offstreet={
                int(l): [(int(b), float(dist)) for b, dist in entries]
                for l, entries in (data.get("driving_to_offstreet") or {}).items()
            },
            num_spots_per_lot={
                int(p): int(n) for p, n in (data.get("num_spots_per_lot") or {}).items()
            },
            driving_to_lots={
                int(l): [int(p) for p in lots]
                for l, lots in (data.get("driving_to_lots") or {}).items()
            },
        )
