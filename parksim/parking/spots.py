"""
Parking Spot Identifiers

A spot is one of three frozen records:
- OnstreetSpot: curb spot on a parking lane
- OffstreetSpot: uncounted position inside a building
- LotSpot: slot in a surface parking lot

Spots are hashable and totally ordered by (kind, owner id, idx) so every
ordered view and snapshot comes out the same on every run.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class SpotKind(Enum):
    """Spot variants, in sort order."""
    ONSTREET = "onstreet"
    OFFSTREET = "offstreet"
    LOT = "lot"

    @property
    def rank(self) -> int:
        return list(SpotKind).index(self)

    @classmethod
    def from_string(cls, value: str) -> "SpotKind":
        """Parse spot kind from string (case-insensitive)."""
        normalized = value.lower().strip()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(
            f"Invalid spot kind: '{value}'. "
            f"Valid kinds: {[m.value for m in cls]}"
        )


class _SpotOrdering(ABC):
    """Cross-variant ordering shared by every spot record."""
    kind: ClassVar[SpotKind]

    @property
    @abstractmethod
    def owner(self) -> int:
        """Id of the lane, building or lot the spot belongs to."""

    def sort_key(self) -> tuple[int, int, int]:
        return (self.kind.rank, self.owner, self.idx)

    def __lt__(self, other) -> bool:
        if not isinstance(other, _SpotOrdering):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other) -> bool:
        if not isinstance(other, _SpotOrdering):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other) -> bool:
        if not isinstance(other, _SpotOrdering):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other) -> bool:
        if not isinstance(other, _SpotOrdering):
            return NotImplemented
        return self.sort_key() >= other.sort_key()


@dataclass(frozen=True)
class OnstreetSpot(_SpotOrdering):
    """Spot idx on a parking lane; idx 0 is nearest the lane start."""
    kind: ClassVar[SpotKind] = SpotKind.ONSTREET
    lane: int
    idx: int

    @property
    def owner(self) -> int:
        return self.lane

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "lane": self.lane, "idx": self.idx}


@dataclass(frozen=True)
class OffstreetSpot(_SpotOrdering):
    kind: ClassVar[SpotKind] = SpotKind.OFFSTREET
    building: int
    idx: int

    @property
    def owner(self) -> int:
        return self.building

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "building": self.building, "idx": self.idx}


@dataclass(frozen=True)
class LotSpot(_SpotOrdering):
    kind: ClassVar[SpotKind] = SpotKind.LOT
    lot: int
    idx: int

    @property
    def owner(self) -> int:
        return self.lot

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "lot": self.lot, "idx": self.idx}


ParkingSpot = Union[OnstreetSpot, OffstreetSpot, LotSpot]


def spot_from_dict(data: dict) -> ParkingSpot:
    """Inverse of each variant's to_dict."""
    kind = SpotKind.from_string(data["kind"])
    idx = int(data["idx"])
    if kind == SpotKind.ONSTREET:
        return OnstreetSpot(lane=int(data["lane"]), idx=idx)
    elif kind == SpotKind.OFFSTREET:
        return OffstreetSpot(building=int(data["building"]), idx=idx)
    else:
        return LotSpot(lot=int(data["lot"]), idx=idx)
