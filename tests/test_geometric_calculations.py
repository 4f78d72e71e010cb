"""
This module tests ring winding and polygon ring classification.
"""

import pytest

from shpcodec import LLBox, Point, Polygon, Position
from shpcodec.geometric_calculations import (
    close_ring,
    ensure_ccw,
    ensure_cw,
    is_cw,
    organize_polygon_rings,
    ring_bbox,
    signed_area,
)

CCW_SQUARE = [(0, 0), (1, 0), (1, 1), (0, 1)]
CW_SQUARE = list(reversed(CCW_SQUARE))


@pytest.mark.parametrize(
    "ring,expected",
    [
        (CCW_SQUARE, 1.0),
        (CW_SQUARE, -1.0),
        (CCW_SQUARE + [(0, 0)], 1.0),
        ([(0, 0), (4, 0), (0, 3)], 6.0),
        ([(0, 0), (1, 1)], 0.0),
        ([], 0.0),
    ],
)
def test_signed_area(ring, expected):
    assert signed_area(ring) == expected


def test_signed_area_fast():
    assert signed_area(CCW_SQUARE, fast=True) == 2.0


def test_is_cw():
    assert is_cw(CW_SQUARE)
    assert not is_cw(CCW_SQUARE)
    # degenerate rings have no area, so are not clockwise
    assert not is_cw([(0, 0), (1, 1), (2, 2)])


def test_ensure_cw_and_ccw():
    """
    Assert that rings are reversed only when they run
    the wrong way, and that the input is never changed.
    """
    ring = [Position(*p) for p in CCW_SQUARE]
    original = list(ring)

    cw = ensure_cw(ring)
    assert is_cw(cw)
    assert cw == list(reversed(original))
    assert ensure_ccw(ring) == original
    assert ensure_ccw(ring) is not ring
    assert ensure_ccw(cw) == original
    assert ring == original


def test_close_ring():
    assert close_ring([(0, 0), (1, 0), (1, 1)]) == [(0, 0), (1, 0), (1, 1), (0, 0)]
    closed = [(0, 0), (1, 0), (1, 1), (0, 0)]
    assert close_ring(closed) == closed
    assert close_ring(closed) is not closed
    assert close_ring([]) == []


def test_organize_polygon_rings():
    """
    Assert that each clockwise ring starts a polygon and
    the counter-clockwise rings after it are its holes.
    """
    outer1 = [(0, 0), (0, 10), (10, 10), (10, 0), (0, 0)]
    hole1 = [(2, 2), (4, 2), (4, 4), (2, 4), (2, 2)]
    hole2 = [(6, 6), (8, 6), (8, 8), (6, 8), (6, 6)]
    outer2 = [(20, 20), (20, 30), (30, 30), (30, 20), (20, 20)]

    polys = organize_polygon_rings([outer1, hole1, hole2, outer2])
    assert polys == [(outer1, [hole1, hole2]), (outer2, [])]


def test_organize_polygon_rings_leading_hole_promoted():
    hole = [(2, 2), (4, 2), (4, 4), (2, 4), (2, 2)]
    other_hole = [(6, 6), (8, 6), (8, 8), (6, 8), (6, 6)]
    polys = organize_polygon_rings([hole, other_hole])
    assert polys == [(hole, [other_hole])]


def test_organize_polygon_rings_empty():
    assert organize_polygon_rings([]) == []


def test_ring_bbox():
    ring = [Position(3, -1), Position(-2, 5), Position(0, 0)]
    assert ring_bbox(ring) == LLBox(-2, -1, 3, 5)
    assert ring_bbox([]) == LLBox(0, 0, 0, 0)


def test_geometry_bbox():
    polygon = Polygon(CCW_SQUARE, [[(0.25, 0.25), (0.5, 0.25), (0.5, 0.5)]])
    assert polygon.bbox == LLBox(0, 0, 1, 1)
    assert len(polygon.rings) == 2
    assert Point(1, 2).bbox == LLBox(1, 2, 1, 2)
    polygon.outer_ring.append(Position(5, 5))
    assert polygon.calc_bbox() == LLBox(0, 0, 5, 5)


def test_llbox_union():
    assert LLBox(0, 0, 1, 1).union(LLBox(-1, 0.5, 0.5, 3)) == LLBox(-1, 0, 1, 3)
    assert LLBox.from_positions([]) is None
