"""
Road Map Data Structures

Immutable records for lanes, roads, turns, buildings and parking lots.
Edits replace records wholesale; nothing here is mutated in place.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ..geometry import Pt2D, PolyLine, Polygon
from .types import LaneType, LaneDirection, OffstreetParkingKind, Position, TurnID


@dataclass(frozen=True)
class Lane:
    """
    One lane of a road.

    center_pts runs in the lane's direction of travel, so dist_along 0 is
    always where traffic enters the lane.
    """
    lane_id: int
    road_id: int
    lane_type: LaneType
    direction: LaneDirection
    center_pts: PolyLine

    def length(self) -> float:
        return self.center_pts.length()

    def number_parking_spots(self, spot_length: float) -> int:
        """Curb spots that fit, leaving one spot length free at each end."""
        if self.lane_type != LaneType.PARKING:
            return 0
        return max(0, int(math.floor(self.length() / spot_length)) - 2)

    def to_dict(self) -> dict:
        return {
            "id": self.lane_id,
            "road": self.road_id,
            "type": self.lane_type.value,
            "direction": self.direction.value,
            "center": self.center_pts.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Lane":
        return cls(
            lane_id=int(data["id"]),
            road_id=int(data["road"]),
            lane_type=LaneType.from_string(data["type"]),
            direction=LaneDirection.from_string(data.get("direction", "forward")),
            center_pts=PolyLine.from_dict(data["center"]),
        )


@dataclass(frozen=True)
class Road:
    """A road and its lanes, ordered from the center line outward."""
    road_id: int
    lanes: tuple[int, ...]
    name: str = ""

    def to_dict(self) -> dict:
        return {"id": self.road_id, "lanes": list(self.lanes), "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "Road":
        return cls(
            road_id=int(data["id"]),
            lanes=tuple(int(l) for l in data.get("lanes", [])),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Turn:
    """A movement through an intersection."""
    turn_id: TurnID
    geom: PolyLine

    @property
    def src(self) -> int:
        return self.turn_id.src

    @property
    def dst(self) -> int:
        return self.turn_id.dst

    def length(self) -> float:
        return self.geom.length()


@dataclass(frozen=True)
class Building:
    """
    A building with a front door on a sidewalk.

    Offstreet spots have no geometry; only the count matters.
    """
    building_id: int
    label_center: Pt2D
    sidewalk_pos: Position
    parking_kind: OffstreetParkingKind = OffstreetParkingKind.NONE
    num_spots: int = 0

    def has_parking(self) -> bool:
        return self.parking_kind != OffstreetParkingKind.NONE and self.num_spots > 0

    def is_private(self) -> bool:
        return self.parking_kind == OffstreetParkingKind.PRIVATE

    def to_dict(self) -> dict:
        return {
            "id": self.building_id,
            "label_center": [self.label_center.x, self.label_center.y],
            "sidewalk_pos": self.sidewalk_pos.to_dict(),
            "parking": {"kind": self.parking_kind.value, "spots": self.num_spots},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Building":
        parking = data.get("parking") or {}
        return cls(
            building_id=int(data["id"]),
            label_center=Pt2D.from_dict(data["label_center"]),
            sidewalk_pos=Position.from_dict(data["sidewalk_pos"]),
            parking_kind=OffstreetParkingKind.from_string(parking.get("kind", "none")),
            num_spots=int(parking.get("spots", 0)),
        )


@dataclass(frozen=True)
class LotSlot:
    """A rendered slot inside a parking lot: where a car sits and its heading."""
    pt: Pt2D
    angle: float

    def to_dict(self) -> dict:
        return {"pt": [self.pt.x, self.pt.y], "angle": self.angle}

    @classmethod
    def from_dict(cls, data: dict) -> "LotSlot":
        return cls(pt=Pt2D.from_dict(data["pt"]), angle=float(data.get("angle", 0)))


@dataclass(frozen=True)
class ParkingLot:
    """
    Surface parking lot.

    Capacity is the rendered slots plus extra_spots, which exist for
    accounting only and have no drawable position.
    """
    lot_id: int
    polygon: Polygon
    driving_pos: Position
    sidewalk_pos: Position
    spots: tuple[LotSlot, ...] = field(default_factory=tuple)
    extra_spots: int = 0

    def capacity(self) -> int:
        return len(self.spots) + self.extra_spots

    def center(self) -> Pt2D:
        return self.polygon.center()

    def to_dict(self) -> dict:
        return {
            "id": self.lot_id,
            "polygon": self.polygon.to_dict(),
            "driving_pos": self.driving_pos.to_dict(),
            "sidewalk_pos": self.sidewalk_pos.to_dict(),
            "spots": [s.to_dict() for s in self.spots],
            "extra_spots": self.extra_spots,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParkingLot":
        return cls(
            lot_id=int(data["id"]),
            polygon=Polygon.from_dict(data["polygon"]),
            driving_pos=Position.from_dict(data["driving_pos"]),
            sidewalk_pos=Position.from_dict(data["sidewalk_pos"]),
            spots=tuple(LotSlot.from_dict(s) for s in data.get("spots", [])),
            extra_spots=int(data.get("extra_spots", 0)),
        )


@dataclass
class MapEdits:
    """
    A batch of live map changes.

    - lane_types: lane id -> new lane type (e.g. parking -> biking)
    - building_parking: building id -> (kind, spot count)
    - removed_lots: lots that no longer exist
    """
    lane_types: dict[int, LaneType] = field(default_factory=dict)
    building_parking: dict[int, tuple[OffstreetParkingKind, int]] = field(default_factory=dict)
    removed_lots: set[int] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not (self.lane_types or self.building_parking or self.removed_lots)

    def to_dict(self) -> dict:
        return {
            "lane_types": {l: t.value for l, t in sorted(self.lane_types.items())},
            "building_parking": {
                b: {"kind": kind.value, "spots": spots}
                for b, (kind, spots) in sorted(self.building_parking.items())
            },
            "removed_lots": sorted(self.removed_lots),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MapEdits":
        return cls(
            lane_types={
                int(l): LaneType.from_string(t)
                for l, t in (data.get("lane_types") or {}).items()
            },
            building_parking={
                int(b): (
                    OffstreetParkingKind.from_string(p.get("kind", "none")),
                    int(p.get("spots", 0)),
                )
                for b, p in (data.get("building_parking") or {}).items()
            },
            removed_lots={int(l) for l in data.get("removed_lots") or []},
        )

    @classmethod
    def load(cls, path: str | Path) -> "MapEdits":
        """Load an edit batch from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Map edits file not found: {path}")
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f) or {})


def turn_geometry(src: Lane, dst: Lane) -> PolyLine:
    """Straight connector from the end of src to the start of dst."""
    return PolyLine([src.center_pts.last_pt(), dst.center_pts.first_pt()])
