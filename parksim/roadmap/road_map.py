"""
Road Map

In-memory road network provider for the parking model.

Holds lanes, roads, turns, buildings and parking lots loaded from a
YAML/JSON manifest, and answers the queries the parking model needs:
lane lookups, the car turn graph, same-road lane matching, position
transfer between neighboring lanes, and blackhole detection.

A driving lane is a blackhole when it sits outside the largest strongly
connected component of the car turn graph: a car that enters it can never
get back to the rest of the network.
"""

import dataclasses
import json
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

import yaml

from ..errors import MapConfigurationError
from .data import Building, Lane, MapEdits, ParkingLot, Road, Turn, turn_geometry
from .types import LaneType, Position, TurnID

logger = logging.getLogger(__name__)


def strongly_connected_components(
    nodes: Iterable[int],
    edges: dict[int, list[int]],
) -> list[list[int]]:
    """
    Kosaraju's algorithm, iterative so long lane chains cannot hit the
    recursion limit. Each component is returned sorted.
    """
    nodes = list(nodes)
    visited: set[int] = set()
    finish_order: list[int] = []

    for root in nodes:
        if root in visited:
            continue
        visited.add(root)
        stack = [(root, iter(edges.get(root, [])))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if child not in visited:
                    visited.add(child)
                    stack.append((child, iter(edges.get(child, []))))
                    break
            else:
                stack.pop()
                finish_order.append(node)

    reverse: dict[int, list[int]] = {n: [] for n in nodes}
    for src in nodes:
        for dst in edges.get(src, []):
            reverse[dst].append(src)

    components = []
    assigned: set[int] = set()
    for root in reversed(finish_order):
        if root in assigned:
            continue
        assigned.add(root)
        component = []
        stack = [root]
        while stack:
            node = stack.pop()
            component.append(node)
            for parent in reverse[node]:
                if parent not in assigned:
                    assigned.add(parent)
                    stack.append(parent)
        components.append(sorted(component))
    return components


class RoadMap:
    """
    Road network consumed by the parking model.

    All map access goes through lookup methods that raise
    MapConfigurationError for unknown ids. Records are immutable;
    apply_edits swaps them and recomputes derived data.
    """

    def __init__(
        self,
        name: str,
        lanes: Iterable[Lane],
        roads: Iterable[Road],
        turns: Iterable[TurnID] = (),
        buildings: Iterable[Building] = (),
        parking_lots: Iterable[ParkingLot] = (),
        forced_blackholes: Iterable[int] = (),
    ):
        self.name = name
        self.version = 0

        self._lanes: dict[int, Lane] = self._index(lanes, "lane_id", "lane")
        self._roads: dict[int, Road] = self._index(roads, "road_id", "road")
        self._buildings: dict[int, Building] = self._index(buildings, "building_id", "building")
        self._lots: dict[int, ParkingLot] = self._index(parking_lots, "lot_id", "parking lot")
        self._turn_ids: list[TurnID] = sorted(set(turns))
        self._forced_blackholes: set[int] = set(forced_blackholes)
        self._blackholes: set[int] = set()

        self._validate_references()
        self._recompute_blackholes()

        logger.info(
            f"Road map '{name}' loaded: {len(self._lanes)} lanes, "
            f"{len(self._roads)} roads, {len(self._turn_ids)} turns, "
            f"{len(self._buildings)} buildings, {len(self._lots)} lots, "
            f"{len(self._blackholes)} blackhole lanes"
        )

    @staticmethod
    def _index(records: Iterable, key: str, kind: str) -> dict:
        result = {}
        for record in records:
            record_id = getattr(record, key)
            if record_id in result:
                raise MapConfigurationError(f"Duplicate {kind} id {record_id}")
            result[record_id] = record
        return result

    # ========================================
    # LOADING
    # ========================================

    @classmethod
    def load_from_manifest(cls, manifest_path: str | Path) -> "RoadMap":
        """
        Load a road map from a YAML/JSON manifest file.

        Raises:
            FileNotFoundError: If the manifest does not exist
            MapConfigurationError: If the manifest is malformed
        """
        path = Path(manifest_path)
        if not path.exists():
            raise FileNotFoundError(f"Map manifest not found: {path}")

        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise MapConfigurationError(f"Map manifest {path} is not a mapping")
        return cls.from_dict(data, source=str(path))

    @classmethod
    def from_dict(cls, data: dict, source: str = "dict") -> "RoadMap":
        """
        Build a road map from a dictionary.

        Expected format:
        {
            "name": "ring_town",
            "lanes": [{"id", "road", "type", "direction", "center"}, ...],
            "roads": [{"id", "lanes": [center outward]}, ...],
            "turns": [[src, dst], ...],
            "buildings": [{"id", "label_center", "sidewalk_pos", "parking"}, ...],
            "parking_lots": [{"id", "polygon", "driving_pos", "sidewalk_pos",
                              "spots", "extra_spots"}, ...],
            "blackholes": [lane ids forced to blackhole]
        }
        """
        try:
            return cls(
                name=data.get("name", "unnamed"),
                lanes=[Lane.from_dict(l) for l in data.get("lanes", [])],
                roads=[Road.from_dict(r) for r in data.get("roads", [])],
                turns=[TurnID.from_dict(t) for t in data.get("turns", [])],
                buildings=[Building.from_dict(b) for b in data.get("buildings", [])],
                parking_lots=[ParkingLot.from_dict(p) for p in data.get("parking_lots", [])],
                forced_blackholes=[int(l) for l in data.get("blackholes", [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MapConfigurationError(
                f"Malformed map manifest ({source}): {e}"
            ) from e

    def to_dict(self) -> dict:
        """Serialize to the manifest format accepted by from_dict."""
        return {
            "name": self.name,
            "lanes": [self._lanes[l].to_dict() for l in sorted(self._lanes)],
            "roads": [self._roads[r].to_dict() for r in sorted(self._roads)],
            "turns": [[t.src, t.dst] for t in self._turn_ids],
            "buildings": [self._buildings[b].to_dict() for b in sorted(self._buildings)],
            "parking_lots": [self._lots[p].to_dict() for p in sorted(self._lots)],
            "blackholes": sorted(self._forced_blackholes),
        }

    def save_to_file(self, path: str | Path) -> None:
        """Save map to a YAML manifest."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=None)
        logger.info(f"Road map saved to {path}")

    # ========================================
    # VALIDATION
    # ========================================

    def _validate_references(self) -> None:
        """Every id a record mentions must exist. Raises MapConfigurationError."""
        for lane in self._lanes.values():
            road = self._roads.get(lane.road_id)
            if road is None:
                raise MapConfigurationError(
                    f"Lane {lane.lane_id} references unknown road {lane.road_id}"
                )
            if lane.lane_id not in road.lanes:
                raise MapConfigurationError(
                    f"Lane {lane.lane_id} is not listed by its road {road.road_id}"
                )

        for road in self._roads.values():
            for lane_id in road.lanes:
                lane = self._lanes.get(lane_id)
                if lane is None:
                    raise MapConfigurationError(
                        f"Road {road.road_id} references unknown lane {lane_id}"
                    )
                if lane.road_id != road.road_id:
                    raise MapConfigurationError(
                        f"Road {road.road_id} lists lane {lane_id} owned by road {lane.road_id}"
                    )

        for turn in self._turn_ids:
            for lane_id in (turn.src, turn.dst):
                if lane_id not in self._lanes:
                    raise MapConfigurationError(
                        f"Turn {turn.src}->{turn.dst} references unknown lane {lane_id}"
                    )

        for building in self._buildings.values():
            if building.sidewalk_pos.lane not in self._lanes:
                raise MapConfigurationError(
                    f"Building {building.building_id} references unknown lane "
                    f"{building.sidewalk_pos.lane}"
                )

        for lot in self._lots.values():
            for pos in (lot.driving_pos, lot.sidewalk_pos):
                if pos.lane not in self._lanes:
                    raise MapConfigurationError(
                        f"Parking lot {lot.lot_id} references unknown lane {pos.lane}"
                    )

        for lane_id in self._forced_blackholes:
            if lane_id not in self._lanes:
                raise MapConfigurationError(f"Blackhole references unknown lane {lane_id}")

    # ========================================
    # LOOKUPS
    # ========================================

    def all_lanes(self) -> list[Lane]:
        return [self._lanes[l] for l in sorted(self._lanes)]

    def all_buildings(self) -> list[Building]:
        return [self._buildings[b] for b in sorted(self._buildings)]

    def all_parking_lots(self) -> list[ParkingLot]:
        return [self._lots[p] for p in sorted(self._lots)]

    def all_turns(self) -> list[Turn]:
        return [self.get_t(t) for t in self._turn_ids]

    def get_l(self, lane_id: int) -> Lane:
        lane = self._lanes.get(lane_id)
        if lane is None:
            raise MapConfigurationError(f"Unknown lane {lane_id}")
        return lane

    def get_r(self, road_id: int) -> Road:
        road = self._roads.get(road_id)
        if road is None:
            raise MapConfigurationError(f"Unknown road {road_id}")
        return road

    def get_b(self, building_id: int) -> Building:
        building = self._buildings.get(building_id)
        if building is None:
            raise MapConfigurationError(f"Unknown building {building_id}")
        return building

    def get_pl(self, lot_id: int) -> ParkingLot:
        lot = self._lots.get(lot_id)
        if lot is None:
            raise MapConfigurationError(f"Unknown parking lot {lot_id}")
        return lot

    def get_t(self, turn_id: TurnID) -> Turn:
        return Turn(
            turn_id=turn_id,
            geom=turn_geometry(self.get_l(turn_id.src), self.get_l(turn_id.dst)),
        )

    def get_turns_for(self, lane_id: int) -> list[Turn]:
        """Car turns leaving a driving lane, ordered by destination lane."""
        if not self.get_l(lane_id).lane_type.is_driving():
            return []
        return [
            self.get_t(t) for t in self._turn_ids
            if t.src == lane_id and self._lanes[t.dst].lane_type.is_driving()
        ]

    # ========================================
    # SAME-ROAD QUERIES
    # ========================================

    def _same_side_lanes(self, lane: Lane) -> list[int]:
        """Lanes on the same side of the road, from the center outward."""
        road = self.get_r(lane.road_id)
        return [l for l in road.lanes if self._lanes[l].direction == lane.direction]

    def find_closest_lane(
        self,
        lane_id: int,
        predicate: Callable[[LaneType], bool],
    ) -> Optional[int]:
        """
        Nearest other lane on the same side of the same road whose type
        satisfies predicate. Ties go to the lane nearer the center line.
        """
        lane = self.get_l(lane_id)
        side = self._same_side_lanes(lane)
        our_idx = side.index(lane_id)
        candidates = [
            (abs(idx - our_idx), idx, other)
            for idx, other in enumerate(side)
            if other != lane_id and predicate(self._lanes[other].lane_type)
        ]
        if not candidates:
            return None
        return min(candidates)[2]

    def parking_to_driving(self, parking_lane: int) -> Optional[int]:
        """Driving lane serving a parking lane, or None if its side has none."""
        return self.find_closest_lane(parking_lane, LaneType.is_driving)

    def building_driving_connection(
        self,
        building_id: int,
    ) -> Optional[tuple[Position, Position]]:
        """
        Where a car stops to use a building: (driving_pos, sidewalk_pos).
        None if the building's sidewalk has no driving lane beside it.
        """
        building = self.get_b(building_id)
        driving_lane = self.find_closest_lane(
            building.sidewalk_pos.lane, LaneType.is_driving
        )
        if driving_lane is None:
            return None
        return self.equiv_pos(building.sidewalk_pos, driving_lane), building.sidewalk_pos

    def equiv_pos(self, pos: Position, other_lane: int) -> Position:
        """Same point of the road expressed on a neighboring lane."""
        ours = self.get_l(pos.lane)
        theirs = self.get_l(other_lane)
        length = theirs.length()
        if ours.direction == theirs.direction:
            dist = pos.dist_along
        else:
            dist = ours.length() - pos.dist_along
        return Position(other_lane, min(max(dist, 0.0), length))

    def equiv_pos_for_long_object(
        self,
        pos: Position,
        other_lane: int,
        object_length: float,
    ) -> Position:
        """
        Like equiv_pos for an object whose front is at pos. The result is
        kept in [object_length, lane length] so the object's tail never
        hangs off the start of the lane.
        """
        ours = self.get_l(pos.lane)
        theirs = self.get_l(other_lane)
        length = theirs.length()
        if ours.direction == theirs.direction:
            dist = pos.dist_along
        else:
            dist = ours.length() - pos.dist_along + object_length
        return Position(other_lane, min(max(dist, min(object_length, length)), length))

    # ========================================
    # BLACKHOLES
    # ========================================

    def _recompute_blackholes(self) -> None:
        driving = [l for l in sorted(self._lanes) if self._lanes[l].lane_type.is_driving()]
        edges: dict[int, list[int]] = {l: [] for l in driving}
        for turn in self._turn_ids:
            if turn.src in edges and turn.dst in edges:
                edges[turn.src].append(turn.dst)

        blackholes = set(self._forced_blackholes)
        components = strongly_connected_components(driving, edges)
        if components:
            # Equal-size components resolve to the one holding the lowest lane id
            largest = max(components, key=lambda c: (len(c), -c[0]))
            keep = set(largest)
            blackholes.update(l for l in driving if l not in keep)
        self._blackholes = blackholes

    def is_blackhole(self, lane_id: int) -> bool:
        return lane_id in self._blackholes

    def blackhole_lanes(self) -> list[int]:
        return sorted(self._blackholes)

    # ========================================
    # EDITS
    # ========================================

    def apply_edits(self, edits: MapEdits) -> None:
        """
        Apply a batch of live edits, then recompute blackholes.

        Raises:
            MapConfigurationError: If an edit references an unknown id
        """
        for lane_id, lane_type in sorted(edits.lane_types.items()):
            lane = self.get_l(lane_id)
            self._lanes[lane_id] = dataclasses.replace(lane, lane_type=lane_type)

        for building_id, (kind, spots) in sorted(edits.building_parking.items()):
            building = self.get_b(building_id)
            self._buildings[building_id] = dataclasses.replace(
                building, parking_kind=kind, num_spots=spots
            )

        for lot_id in sorted(edits.removed_lots):
            self.get_pl(lot_id)
            del self._lots[lot_id]

        self._recompute_blackholes()
        self.version += 1
        logger.info(
            f"Applied map edits (version {self.version}): "
            f"{len(edits.lane_types)} lane changes, "
            f"{len(edits.building_parking)} building changes, "
            f"{len(edits.removed_lots)} lots removed"
        )
