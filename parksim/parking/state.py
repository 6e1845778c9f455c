"""
Parking Simulation State

Central authority for parking. Owns the spot inventory and the occupancy
ledger, and is the only object the trip scheduler and renderer talk to.

All parking mutation MUST go through this class.
"""

from pathlib import Path
from typing import Optional

import yaml

from ..errors import MapConfigurationError
from ..geometry import Pt2D
from ..logging_utils import SessionLogger, SimLogger
from ..roadmap import MapEdits, Position, RoadMap
from .events import ParkingEvent
from .inventory import SpotInventory
from .ledger import OccupancyLedger
from .parking_config import ParkingConfig
from .projection import (
    DrawCarInput,
    canonical_pt,
    get_draw_position,
    spot_to_driving_pos,
    spot_to_sidewalk_pos,
)
from .search import (
    ParkingPath,
    find_path_to_free_spot,
    get_all_free_spots,
    get_free_lot_spots,
    get_free_offstreet_spots,
    get_free_onstreet_spots,
)
from .spots import LotSpot, ParkingSpot
from .vehicle import ParkedCar, Vehicle


class ParkingSimState:
    """
    Parking state for one simulation.

    Responsibilities:
    - Build the spot inventory from the map
    - Route reserve / cancel / park / leave through the ledger
    - Answer free-spot and path queries
    - Re-sync with the map after live edits, evicting stranded cars
    - Produce draw data and statistics
    - Save and restore snapshots

    Thread Safety: NOT thread-safe. The simulation step loop serializes calls.
    """

    MODULE_NAME = "ParkingState"

    def __init__(
        self,
        road_map: RoadMap,
        config: Optional[ParkingConfig] = None,
        session: Optional[SessionLogger] = None,
        inventory: Optional[SpotInventory] = None,
        ledger: Optional[OccupancyLedger] = None,
    ):
        """
        Build parking state for a map.

        Raises:
            MapConfigurationError: If the map cannot support parking
            ValueError: If the config fails validation
        """
        self.road_map = road_map
        self.config = config or ParkingConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid parking config: {'; '.join(errors)}")
        self.session = session

        self.logger = self._make_logger(self.MODULE_NAME)
        self._inventory_logger = self._make_logger(SpotInventory.MODULE_NAME)
        self._search_logger = self._make_logger("FreeSpotSearch")

        if inventory is None:
            inventory = SpotInventory.build(road_map, self.config, logger=self._inventory_logger)
        if ledger is None:
            ledger = OccupancyLedger(logger=self._make_logger(OccupancyLedger.MODULE_NAME))
        self.inventory = inventory
        self.ledger = ledger
        # Cars dropped because a restored snapshot predates a map edit
        self.restore_evictions: list[ParkedCar] = []

        self.logger.log_init(
            map_name=road_map.name,
            total_spots=self.inventory.total_count,
            parked_cars=len(self.ledger),
        )

    def _make_logger(self, module_name: str) -> SimLogger:
        if self.session is not None:
            return self.session.get_logger(module_name)
        return self.config.create_logger(module_name)

    # ========================================
    # FREE SPOTS
    # ========================================

    def is_free(self, spot: ParkingSpot) -> bool:
        return self.ledger.is_free(spot)

    def get_free_onstreet_spots(self, lane_id: int) -> list[ParkingSpot]:
        return get_free_onstreet_spots(lane_id, self.inventory, self.ledger)

    def get_free_offstreet_spots(self, building_id: int) -> list[ParkingSpot]:
        return get_free_offstreet_spots(building_id, self.inventory, self.ledger)

    def get_free_lot_spots(self, lot_id: int) -> list[ParkingSpot]:
        return get_free_lot_spots(lot_id, self.inventory, self.ledger)

    def get_all_free_spots(
        self,
        driving_pos: Position,
        vehicle: Vehicle,
        target_building: Optional[int] = None,
    ) -> list[tuple[ParkingSpot, Position]]:
        return get_all_free_spots(
            driving_pos, vehicle, target_building, self.inventory, self.ledger, self.road_map
        )

    def path_to_free_parking_spot(
        self,
        start_lane: int,
        vehicle: Vehicle,
        target_building: Optional[int] = None,
    ) -> Optional[ParkingPath]:
        """Nearest reachable free spot and the route to it, or None."""
        return find_path_to_free_spot(
            start_lane,
            vehicle,
            target_building,
            self.inventory,
            self.ledger,
            self.road_map,
            logger=self._search_logger,
        )

    def get_all_parking_spots(self) -> tuple[list[ParkingSpot], list[ParkingSpot]]:
        """(filled, available) over the whole inventory; reserved counts as filled."""
        return self.ledger.partition(self.inventory.all_spots())

    # ========================================
    # LEDGER MUTATION
    # ========================================

    def reserve_spot(self, spot: ParkingSpot) -> None:
        self.ledger.reserve(spot, self.inventory)

    def cancel_reservation(self, spot: ParkingSpot) -> None:
        self.ledger.cancel_reservation(spot)

    def add_parked_car(self, parked_car: ParkedCar) -> None:
        self.ledger.add_parked(parked_car)

    def remove_parked_car(self, car_id: int) -> ParkedCar:
        return self.ledger.remove_parked(car_id)

    def collect_events(self) -> list[ParkingEvent]:
        return self.ledger.collect_events()

    # ========================================
    # LOOKUPS
    # ========================================

    def get_car_at_spot(self, spot: ParkingSpot) -> Optional[ParkedCar]:
        return self.ledger.get_car_at_spot(spot)

    def lookup_parked_car(self, car_id: int) -> Optional[ParkedCar]:
        return self.ledger.lookup_parked_car(car_id)

    def get_owner_of_car(self, car_id: int) -> Optional[int]:
        return self.ledger.get_owner_of_car(car_id)

    # ========================================
    # PROJECTION
    # ========================================

    def spot_to_driving_pos(self, spot: ParkingSpot, vehicle: Vehicle) -> Position:
        return spot_to_driving_pos(spot, vehicle, self.inventory, self.road_map)

    def spot_to_sidewalk_pos(self, spot: ParkingSpot) -> Position:
        return spot_to_sidewalk_pos(spot, self.inventory, self.road_map)

    # ========================================
    # RENDERING
    # ========================================

    def get_draw_car(self, car_id: int) -> Optional[DrawCarInput]:
        parked_car = self.ledger.lookup_parked_car(car_id)
        if parked_car is None:
            return None
        return get_draw_position(parked_car, self.inventory, self.road_map, self.config)

    def get_draw_cars(self, lane_id: int) -> list[DrawCarInput]:
        """Cars parked on one parking lane."""
        cars = []
        for spot in self.inventory.onstreet_spots(lane_id):
            parked_car = self.ledger.get_car_at_spot(spot)
            if parked_car is not None:
                cars.append(
                    get_draw_position(parked_car, self.inventory, self.road_map, self.config)
                )
        return cars

    def get_draw_cars_in_lots(self, driving_lane: int) -> list[DrawCarInput]:
        """Cars in the rendered slots of lots reached from a driving lane."""
        cars = []
        for lot_id in self.inventory.driving_to_lots.get(driving_lane, []):
            rendered = len(self.road_map.get_pl(lot_id).spots)
            for idx in range(rendered):
                parked_car = self.ledger.get_car_at_spot(LotSpot(lot_id, idx))
                if parked_car is not None:
                    cars.append(
                        get_draw_position(parked_car, self.inventory, self.road_map, self.config)
                    )
        return cars

    def get_all_draw_cars(self) -> list[DrawCarInput]:
        cars = []
        for parked_car in self.ledger.parked_cars():
            draw = get_draw_position(parked_car, self.inventory, self.road_map, self.config)
            if draw is not None:
                cars.append(draw)
        return cars

    def canonical_pt(self, car_id: int) -> Optional[Pt2D]:
        parked_car = self.ledger.lookup_parked_car(car_id)
        if parked_car is None:
            return None
        return canonical_pt(parked_car, self.inventory, self.road_map)

    # ========================================
    # LIVE EDITS
    # ========================================

    def handle_live_edits(self, edits: Optional[MapEdits] = None) -> list[ParkedCar]:
        """
        Re-sync with the map after it changed.

        If edits are given they are applied to the map first. Cars whose
        spot no longer exists are evicted and returned; the caller decides
        what happens to them. Reservations on vanished spots are dropped.

        Edits are tried on a copy of the map before the live map is touched,
        so a rejected edit leaves the map, inventory and ledger unchanged.

        Raises:
            MapConfigurationError: If the edited map cannot support parking
        """
        if edits is not None:
            self.logger.log_input("map edits", edits=edits)
            staged = RoadMap.from_dict(self.road_map.to_dict())
            staged.version = self.road_map.version
            staged.apply_edits(edits)
            new_inventory = self.inventory.rebuild(staged, logger=self._inventory_logger)
            self.road_map.apply_edits(edits)
        else:
            new_inventory = self.inventory.rebuild(self.road_map, logger=self._inventory_logger)

        filled_before, _ = self.get_all_parking_spots()
        available_after = set(new_inventory.all_spots())

        self.inventory = new_inventory
        evicted = self.ledger.reconcile_after_edit(filled_before, available_after)

        self.logger.info(
            "Live edits handled",
            map_version=self.road_map.version,
            total_spots=self.inventory.total_count,
            evicted=len(evicted),
        )
        return evicted

    # ========================================
    # STATISTICS
    # ========================================

    def get_statistics(self) -> dict:
        """Spot totals per kind and ledger counts."""
        occupied = self.ledger.occupied_spots()
        reserved = self.ledger.reserved_spots()
        by_kind = {
            "onstreet": {"total": self.inventory.onstreet_count, "occupied": 0, "reserved": 0},
            "offstreet": {"total": self.inventory.offstreet_count, "occupied": 0, "reserved": 0},
            "lot": {"total": self.inventory.lot_count, "occupied": 0, "reserved": 0},
        }
        for spot in occupied:
            by_kind[spot.kind.value]["occupied"] += 1
        for spot in reserved:
            by_kind[spot.kind.value]["reserved"] += 1
        for counts in by_kind.values():
            counts["free"] = counts["total"] - counts["occupied"] - counts["reserved"]

        total = self.inventory.total_count
        return {
            "map_name": self.road_map.name,
            "map_version": self.road_map.version,
            "onstreet_lanes": len(self.inventory.onstreet_lanes),
            "offstreet_buildings": len(self.inventory.num_spots_per_offstreet),
            "parking_lots": len(self.inventory.num_spots_per_lot),
            "total_spots": total,
            "occupied_spots": len(occupied),
            "reserved_spots": len(reserved),
            "free_spots": total - len(occupied) - len(reserved),
            "by_kind": by_kind,
        }

    # ========================================
    # SERIALIZATION
    # ========================================

    def to_dict(self) -> dict:
        return {
            "map": {"name": self.road_map.name, "version": self.road_map.version},
            "config": self.config.to_dict(),
            "inventory": self.inventory.to_dict(),
            "ledger": self.ledger.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        road_map: RoadMap,
        session: Optional[SessionLogger] = None,
    ) -> "ParkingSimState":
        """
        Restore state saved by to_dict onto a map.

        The inventory is rebuilt from the map as it is now, not taken from
        the snapshot. If the map changed since the snapshot was saved, cars
        on spots that no longer exist are evicted and dead reservations are
        dropped, exactly as after a live edit.

        Raises:
            MapConfigurationError: If the snapshot belongs to another map
            ParkingInvariantError: If the saved ledger is inconsistent
        """
        map_name = (data.get("map") or {}).get("name")
        if map_name != road_map.name:
            raise MapConfigurationError(
                f"Snapshot was taken on map '{map_name}', not '{road_map.name}'"
            )
        config = ParkingConfig.from_dict(data.get("config") or {})
        saved_inventory = SpotInventory.from_dict(data.get("inventory") or {}, config)
        ledger_logger = (
            session.get_logger(OccupancyLedger.MODULE_NAME) if session
            else config.create_logger(OccupancyLedger.MODULE_NAME)
        )
        ledger = OccupancyLedger.from_dict(data.get("ledger") or {}, logger=ledger_logger)
        state = cls(road_map, config=config, session=session, ledger=ledger)

        available = set(state.inventory.all_spots())
        if set(saved_inventory.all_spots()) != available:
            state.logger.warning(
                "Snapshot inventory does not match the map; reconciling",
                snapshot_version=(data.get("map") or {}).get("version"),
                map_version=road_map.version,
                snapshot_spots=saved_inventory.total_count,
                map_spots=state.inventory.total_count,
            )
            state.restore_evictions = ledger.reconcile_after_edit(
                ledger.occupied_spots(), available
            )
        return state

    def save_snapshot(self, path: Optional[str | Path] = None) -> Path:
        """Write state as YAML with every map sorted by key."""
        path = Path(path or self.config.snapshot_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=True)
        self.logger.info("Snapshot saved", path=str(path))
        return path

    @classmethod
    def load_snapshot(
        cls,
        path: str | Path,
        road_map: RoadMap,
        session: Optional[SessionLogger] = None,
    ) -> "ParkingSimState":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data, road_map, session=session)
