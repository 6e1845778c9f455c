"""
Road Map Type Definitions

Strict enumeration of lane types and directions, plus the small
identifier records shared by the map and the parking model.
"""

from dataclasses import dataclass
from enum import Enum


class LaneType(Enum):
    """
    Lane usage.

    - DRIVING: General traffic, part of the car turn graph
    - PARKING: Curb parking strip beside a driving lane
    - SIDEWALK: Pedestrian lane
    - BIKING: Bike lane
    - BUS: Bus-only lane
    """
    DRIVING = "driving"
    PARKING = "parking"
    SIDEWALK = "sidewalk"
    BIKING = "biking"
    BUS = "bus"

    @classmethod
    def from_string(cls, value: str) -> "LaneType":
        """Parse lane type from string (case-insensitive)."""
        normalized = value.lower().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid lane type: '{value}'. "
            f"Valid types: {[m.value for m in cls]}"
        )

    def is_walkable(self) -> bool:
        return self == LaneType.SIDEWALK

    def is_driving(self) -> bool:
        return self == LaneType.DRIVING

    def is_parking(self) -> bool:
        return self == LaneType.PARKING


class LaneDirection(Enum):
    """
    Side of the road a lane belongs to.

    FORWARD: Travels along the road's center line
    BACKWARD: Travels against it; distances are measured along the lane
    """
    FORWARD = "forward"
    BACKWARD = "backward"

    @classmethod
    def from_string(cls, value: str) -> "LaneDirection":
        """Parse lane direction from string (case-insensitive)."""
        normalized = value.lower().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid lane direction: '{value}'. "
            f"Valid directions: {[m.value for m in cls]}"
        )


class OffstreetParkingKind(Enum):
    """
    Parking inside a building.

    PRIVATE parking is only offered to trips headed to that building.
    """
    NONE = "none"
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def from_string(cls, value: str) -> "OffstreetParkingKind":
        """Parse offstreet parking kind from string (case-insensitive)."""
        normalized = value.lower().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid offstreet parking kind: '{value}'. "
            f"Valid kinds: {[m.value for m in cls]}"
        )


@dataclass(frozen=True, order=True)
class Position:
    """A distance along one lane."""
    lane: int
    dist_along: float

    @classmethod
    def start(cls, lane: int) -> "Position":
        return cls(lane=lane, dist_along=0.0)

    def to_dict(self) -> dict:
        return {"lane": self.lane, "dist_along": self.dist_along}

    @classmethod
    def from_dict(cls, data: dict) -> "Position":
        return cls(lane=int(data["lane"]), dist_along=float(data.get("dist_along", 0)))


@dataclass(frozen=True, order=True)
class TurnID:
    """Movement from the end of one lane to the start of another."""
    src: int
    dst: int

    def to_dict(self) -> dict:
        return {"src": self.src, "dst": self.dst}

    @classmethod
    def from_dict(cls, data) -> "TurnID":
        if isinstance(data, (list, tuple)):
            return cls(src=int(data[0]), dst=int(data[1]))
        return cls(src=int(data["src"]), dst=int(data["dst"]))
