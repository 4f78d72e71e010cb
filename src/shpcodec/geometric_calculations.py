from __future__ import annotations

from collections.abc import Iterable, Reversible, Sequence

from .geometry import LLBox, Position


def signed_area(coords: Sequence[Sequence[float]], fast: bool = False) -> float:
    """Return the signed area enclosed by a ring using the shoelace formula.
    A value >= 0 indicates a counter-clockwise oriented ring. Rings need not
    be closed, the last vertex is joined back to the first. Rings with fewer
    than three vertices have no area.
    A faster version is possible by setting 'fast' to True, which returns
    2x the area, e.g. if you're only interested in the sign of the area.
    """
    n = len(coords)
    if n < 3:
        return 0.0
    area2 = 0.0
    for i in range(n):
        x0, y0 = coords[i][0], coords[i][1]
        x1, y1 = coords[(i + 1) % n][0], coords[(i + 1) % n][1]
        area2 += x0 * y1 - x1 * y0
    if fast:
        return area2

    return area2 / 2.0


def is_cw(coords: Sequence[Sequence[float]]) -> bool:
    """Returns True if a polygon ring has clockwise orientation, determined
    by a negatively signed area.
    """
    area2 = signed_area(coords, fast=True)
    return area2 < 0


def rewind(coords: Reversible[Position]) -> list[Position]:
    """Returns the input coords in reversed order."""
    return list(reversed(coords))


def ensure_cw(coords: Sequence[Position]) -> list[Position]:
    """Returns a copy of the ring running clockwise, as required for the
    outer ring of a shapefile polygon."""
    if signed_area(coords, fast=True) > 0:
        return rewind(coords)
    return list(coords)


def ensure_ccw(coords: Sequence[Position]) -> list[Position]:
    """Returns a copy of the ring running counter-clockwise, as required
    for the holes of a shapefile polygon."""
    if signed_area(coords, fast=True) < 0:
        return rewind(coords)
    return list(coords)


def close_ring(coords: Sequence[Position]) -> list[Position]:
    """Returns a copy of the ring, with the first vertex repeated at the end
    if the ring is not already closed."""
    ring = list(coords)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def organize_polygon_rings(
    rings: Iterable[list[Position]],
) -> list[tuple[list[Position], list[list[Position]]]]:
    """Organize a sequence of shapefile rings into polygons with holes.
    Returns a list of (outer ring, holes) pairs.

    Rings are read in file order. A clockwise ring (negative area) starts a
    new polygon, any other ring is a hole of the most recent polygon. A hole
    that arrives before any clockwise ring has nothing to belong to, so it
    is kept as an outer ring of its own instead of being dropped.
    """
    polys: list[tuple[list[Position], list[list[Position]]]] = []
    for ring in rings:
        if is_cw(ring) or not polys:
            polys.append((ring, []))
        else:
            polys[-1][1].append(ring)
    return polys


def ring_bbox(coords: Sequence[Position]) -> LLBox:
    """Calculates and returns the bounding box of a ring. Empty rings give
    the all-zero box."""
    return LLBox.from_positions(coords) or LLBox.empty()
