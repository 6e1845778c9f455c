#==============================================================================
# ParkSim - Planar Geometry
#==============================================================================
# File: geometry.py
# Description: Immutable 2D points, polylines and polygons used for lane
#              center lines, parking lot slots and drawable car bodies
# Author: Evan Petersen
# Date: October 2026
#==============================================================================

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

# Distances closer than this are treated as equal when slicing
EPSILON_DIST = 1e-6


@dataclass(frozen=True)
class Pt2D:
    """Immutable 2D point in meters."""
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data) -> "Pt2D":
        # Manifests may write points as [x, y] pairs
        if isinstance(data, (list, tuple)):
            return cls(x=float(data[0]), y=float(data[1]))
        return cls(x=float(data.get("x", 0)), y=float(data.get("y", 0)))

    def project_away(self, dist: float, angle_degrees: float) -> "Pt2D":
        """Point reached by walking dist meters from here along a heading."""
        theta = math.radians(angle_degrees)
        return Pt2D(
            self.x + dist * math.cos(theta),
            self.y + dist * math.sin(theta),
        )

    def dist_to(self, other: "Pt2D") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def approx_eq(self, other: "Pt2D", tolerance: float = EPSILON_DIST) -> bool:
        return self.dist_to(other) <= tolerance


class PolyLine:
    """
    Ordered sequence of at least two points.

    Distances along the line are measured from the first point. Cumulative
    segment lengths are computed once with numpy and reused by every query.
    """

    def __init__(self, pts: Sequence[Pt2D]):
        if len(pts) < 2:
            raise ValueError(f"PolyLine needs at least 2 points, got {len(pts)}")
        self._pts = tuple(pts)
        coords = np.array([[p.x, p.y] for p in self._pts], dtype=float)
        seg_lengths = np.hypot(*np.diff(coords, axis=0).T)
        self._cumulative = np.concatenate(([0.0], np.cumsum(seg_lengths)))

    @property
    def points(self) -> tuple[Pt2D, ...]:
        return self._pts

    def length(self) -> float:
        return float(self._cumulative[-1])

    def first_pt(self) -> Pt2D:
        return self._pts[0]

    def last_pt(self) -> Pt2D:
        return self._pts[-1]

    def reversed(self) -> "PolyLine":
        return PolyLine(list(reversed(self._pts)))

    def _segment_index(self, dist: float) -> int:
        idx = int(np.searchsorted(self._cumulative, dist, side="right")) - 1
        return min(max(idx, 0), len(self._pts) - 2)

    def dist_along(self, dist: float) -> tuple[Pt2D, float]:
        """
        Point and heading (degrees) at a distance along the line.

        Raises:
            ValueError: If dist is outside [0, length]
        """
        if dist < -EPSILON_DIST or dist > self.length() + EPSILON_DIST:
            raise ValueError(
                f"dist_along({dist}) outside polyline of length {self.length()}"
            )
        dist = min(max(dist, 0.0), self.length())
        idx = self._segment_index(dist)
        start, end = self._pts[idx], self._pts[idx + 1]
        seg_len = self._cumulative[idx + 1] - self._cumulative[idx]
        angle = math.degrees(math.atan2(end.y - start.y, end.x - start.x))
        if seg_len <= 0.0:
            return start, angle
        t = (dist - self._cumulative[idx]) / seg_len
        pt = Pt2D(
            float(start.x + t * (end.x - start.x)),
            float(start.y + t * (end.y - start.y)),
        )
        return pt, angle

    def exact_slice(self, start: float, end: float) -> "PolyLine":
        """
        Sub-line between two distances, keeping every interior vertex.

        Raises:
            ValueError: If the range is inverted or leaves the line
        """
        if start > end + EPSILON_DIST:
            raise ValueError(f"exact_slice({start}, {end}) has start after end")
        if start < -EPSILON_DIST or end > self.length() + EPSILON_DIST:
            raise ValueError(
                f"exact_slice({start}, {end}) outside polyline of length {self.length()}"
            )
        start = max(start, 0.0)
        end = min(end, self.length())

        pts = [self.dist_along(start)[0]]
        for i in range(1, len(self._pts) - 1):
            if start < self._cumulative[i] < end:
                pts.append(self._pts[i])
        pts.append(self.dist_along(end)[0])
        return PolyLine(pts)

    def to_dict(self) -> list:
        return [[p.x, p.y] for p in self._pts]

    @classmethod
    def from_dict(cls, data: list) -> "PolyLine":
        return cls([Pt2D.from_dict(p) for p in data])

    def __eq__(self, other) -> bool:
        if not isinstance(other, PolyLine):
            return NotImplemented
        return self._pts == other._pts

    def __hash__(self) -> int:
        return hash(self._pts)

    def __repr__(self) -> str:
        return f"PolyLine({len(self._pts)} pts, length={self.length():.2f})"


@dataclass(frozen=True)
class Polygon:
    """Closed ring of vertices (first vertex is not repeated)."""
    vertices: tuple[Pt2D, ...]

    def center(self) -> Pt2D:
        """Mean of the vertices."""
        coords = np.array([[p.x, p.y] for p in self.vertices], dtype=float)
        cx, cy = coords.mean(axis=0)
        return Pt2D(float(cx), float(cy))

    def to_dict(self) -> list:
        return [[p.x, p.y] for p in self.vertices]

    @classmethod
    def from_dict(cls, data: list) -> "Polygon":
        if len(data) < 3:
            raise ValueError(f"Polygon needs at least 3 vertices, got {len(data)}")
        return cls(vertices=tuple(Pt2D.from_dict(p) for p in data))
