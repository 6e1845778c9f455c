"""
Geometry Tests

Points, polylines and polygons used for lanes and car bodies.
"""

import logging
import math

import pytest

from parksim.geometry import Polygon, PolyLine, Pt2D

logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)


def test_project_away() -> None:
    """Walking from a point along a heading in degrees."""
    pt = Pt2D(1.0, 2.0)
    east = pt.project_away(3.0, 0.0)
    north = pt.project_away(3.0, 90.0)

    assert east.approx_eq(Pt2D(4.0, 2.0)), f"Expected (4, 2), got {east}"
    assert north.approx_eq(Pt2D(1.0, 5.0)), f"Expected (1, 5), got {north}"
    logger.info("  PASS: project_away follows heading")


def test_polyline_length_and_dist_along() -> None:
    line = PolyLine([Pt2D(0, 0), Pt2D(10, 0), Pt2D(10, 5)])

    assert line.length() == pytest.approx(15.0), "L-shaped line should be 15 m"
    pt, angle = line.dist_along(12.0)
    assert pt.approx_eq(Pt2D(10, 2)), f"Expected (10, 2), got {pt}"
    assert angle == pytest.approx(90.0), "Second segment heads north"

    with pytest.raises(ValueError):
        line.dist_along(15.5)
    logger.info("  PASS: dist_along interpolates and rejects overshoot")


def test_exact_slice_keeps_interior_vertices() -> None:
    line = PolyLine([Pt2D(0, 0), Pt2D(10, 0), Pt2D(10, 10)])
    piece = line.exact_slice(5.0, 15.0)

    assert len(piece.points) == 3, "Corner vertex should be kept"
    assert piece.first_pt().approx_eq(Pt2D(5, 0))
    assert piece.points[1] == Pt2D(10, 0)
    assert piece.last_pt().approx_eq(Pt2D(10, 5))
    assert piece.length() == pytest.approx(10.0)
    logger.info("  PASS: exact_slice keeps corners")


def test_exact_slice_rejects_bad_ranges() -> None:
    line = PolyLine([Pt2D(0, 0), Pt2D(10, 0)])

    with pytest.raises(ValueError):
        line.exact_slice(-1.0, 5.0)
    with pytest.raises(ValueError):
        line.exact_slice(2.0, 10.5)
    with pytest.raises(ValueError):
        line.exact_slice(6.0, 4.0)
    logger.info("  PASS: exact_slice validates its range")


def test_polyline_needs_two_points() -> None:
    with pytest.raises(ValueError):
        PolyLine([Pt2D(0, 0)])


def test_polygon_center() -> None:
    square = Polygon.from_dict([[-30, 40], [-10, 40], [-10, 60], [-30, 60]])
    center = square.center()

    assert center.approx_eq(Pt2D(-20, 50)), f"Expected (-20, 50), got {center}"
    assert math.isclose(Pt2D(0, 0).dist_to(Pt2D(3, 4)), 5.0)
    logger.info("  PASS: polygon center is the vertex mean")
