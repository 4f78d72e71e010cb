"""
Geometry primitives consumed and produced by the codec.

Coordinates are longitude/latitude pairs. Point lists and ring lists are
plain mutable lists; after changing them call calc_bbox() to refresh the
bounding box.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import NamedTuple, Union


class Position(NamedTuple):
    lon: float
    lat: float

    @classmethod
    def coerce(cls, point: Iterable[float]) -> Position:
        """Accepts a Position, or any (x, y, ...) sequence, ignoring z and m."""
        if isinstance(point, Position):
            return point
        x, y = tuple(point)[:2]
        return cls(float(x), float(y))


class LLBox(NamedTuple):
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def from_positions(cls, positions: Iterable[Position]) -> LLBox | None:
        """Folds the min/max longitude and latitude over the positions.
        Returns None when there are no positions."""
        it = iter(positions)
        try:
            first = next(it)
        except StopIteration:
            return None
        min_lon = max_lon = first[0]
        min_lat = max_lat = first[1]
        for lon, lat in it:
            if lon < min_lon:
                min_lon = lon
            elif lon > max_lon:
                max_lon = lon
            if lat < min_lat:
                min_lat = lat
            elif lat > max_lat:
                max_lat = lat
        return cls(min_lon, min_lat, max_lon, max_lat)

    @classmethod
    def empty(cls) -> LLBox:
        return cls(0.0, 0.0, 0.0, 0.0)

    def union(self, other: LLBox) -> LLBox:
        return LLBox(
            min(self.min_lon, other.min_lon),
            min(self.min_lat, other.min_lat),
            max(self.max_lon, other.max_lon),
            max(self.max_lat, other.max_lat),
        )


def _positions(points: Iterable[Iterable[float]] | None) -> list[Position]:
    return [Position.coerce(p) for p in points or []]


class _Geometry:
    bbox: LLBox | None

    def positions(self) -> Iterator[Position]:
        raise NotImplementedError

    def calc_bbox(self) -> LLBox | None:
        """Recomputes and returns the bounding box from the coordinates."""
        self.bbox = LLBox.from_positions(self.positions())
        return self.bbox

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()  # type: ignore[attr-defined]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._key()!r})"

    def _key(self) -> object:
        raise NotImplementedError


class Point(_Geometry):
    def __init__(self, lon: float, lat: float):
        self.position = Position(float(lon), float(lat))
        self.calc_bbox()

    @property
    def lon(self) -> float:
        return self.position.lon

    @property
    def lat(self) -> float:
        return self.position.lat

    def positions(self) -> Iterator[Position]:
        yield self.position

    def _key(self) -> object:
        return self.position


class MultiPoint(_Geometry):
    def __init__(self, points: Iterable[Iterable[float]] | None = None):
        self.points: list[Position] = _positions(points)
        self.calc_bbox()

    def positions(self) -> Iterator[Position]:
        yield from self.points

    def _key(self) -> object:
        return self.points


class LineString(_Geometry):
    def __init__(self, points: Iterable[Iterable[float]] | None = None):
        self.points: list[Position] = _positions(points)
        self.calc_bbox()

    def positions(self) -> Iterator[Position]:
        yield from self.points

    def _key(self) -> object:
        return self.points


class MultiLineString(_Geometry):
    def __init__(self, lines: Iterable[Iterable[Iterable[float]]] | None = None):
        self.lines: list[list[Position]] = [_positions(line) for line in lines or []]
        self.calc_bbox()

    def positions(self) -> Iterator[Position]:
        for line in self.lines:
            yield from line

    def _key(self) -> object:
        return self.lines


class Polygon(_Geometry):
    """A single outer ring and zero or more holes."""

    def __init__(
        self,
        outer_ring: Iterable[Iterable[float]] | None = None,
        inner_rings: Iterable[Iterable[Iterable[float]]] | None = None,
    ):
        self.outer_ring: list[Position] = _positions(outer_ring)
        self.inner_rings: list[list[Position]] = [
            _positions(ring) for ring in inner_rings or []
        ]
        self.calc_bbox()

    @property
    def rings(self) -> list[list[Position]]:
        """The outer ring followed by the holes."""
        return [self.outer_ring] + self.inner_rings

    def positions(self) -> Iterator[Position]:
        for ring in self.rings:
            yield from ring

    def _key(self) -> object:
        return self.rings


class MultiPolygon(_Geometry):
    def __init__(self, polygons: Iterable[Polygon] | None = None):
        self.polygons: list[Polygon] = list(polygons or [])
        self.calc_bbox()

    def positions(self) -> Iterator[Position]:
        for polygon in self.polygons:
            yield from polygon.positions()

    def _key(self) -> object:
        return [polygon.rings for polygon in self.polygons]


# What the reader produces
Geometry = Union[Point, MultiPoint, MultiLineString, MultiPolygon]

# What the writer accepts
GeometryLike = Union[
    Point, MultiPoint, LineString, MultiLineString, Polygon, MultiPolygon
]
