from __future__ import annotations

from collections.abc import Sequence
from struct import error, pack, unpack
from typing import cast

from .constants import (
    MULTIPOINT,
    MULTIPOINTM,
    MULTIPOINTZ,
    NODATA,
    NULL,
    POINT,
    POINTM,
    POINTZ,
    POLYGON,
    POLYGONM,
    POLYGONZ,
    POLYLINE,
    POLYLINEM,
    POLYLINEZ,
)
from .exceptions import ShapefileException, ShapefileRecordError
from .geometric_calculations import organize_polygon_rings, ring_bbox
from .geometry import (
    Geometry,
    LLBox,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    Position,
)
from .types import ReadSeekableBinStream, WriteableBinStream

Point_shapeTypes = frozenset([POINT, POINTM, POINTZ])
MultiPoint_shapeTypes = frozenset([MULTIPOINT, MULTIPOINTM, MULTIPOINTZ])
Polyline_shapeTypes = frozenset([POLYLINE, POLYLINEM, POLYLINEZ])
Polygon_shapeTypes = frozenset([POLYGON, POLYGONM, POLYGONZ])

# Shape types whose records start with a bounding box
_CanHaveBBox_shapeTypes = MultiPoint_shapeTypes | Polyline_shapeTypes | Polygon_shapeTypes
_CanHaveParts_shapeTypes = Polyline_shapeTypes | Polygon_shapeTypes

# Z types carry measures as well
_HasZ_shapeTypes = frozenset([POINTZ, MULTIPOINTZ, POLYLINEZ, POLYGONZ])
_HasM_shapeTypes = frozenset(
    [POINTM, MULTIPOINTM, POLYLINEM, POLYGONM, POINTZ, MULTIPOINTZ, POLYLINEZ, POLYGONZ]
)

BASE_SHAPETYPE: dict[int, int] = {NULL: NULL}
for _base, _family in (
    (POINT, Point_shapeTypes),
    (MULTIPOINT, MultiPoint_shapeTypes),
    (POLYLINE, Polyline_shapeTypes),
    (POLYGON, Polygon_shapeTypes),
):
    for _shape_type in _family:
        BASE_SHAPETYPE[_shape_type] = _base


def shape_types_compatible(collection_type: int, shape_type: int) -> bool:
    """Null records fit any shapefile, other records must be of the same
    family as the shapefile, ignoring the M or Z suffix."""
    if shape_type == NULL:
        return True
    base = BASE_SHAPETYPE.get(shape_type)
    return base is not None and base == BASE_SHAPETYPE.get(collection_type)


def _read_exact(b_io: ReadSeekableBinStream, size: int, what: str) -> bytes:
    data = b_io.read(size)
    if len(data) != size:
        raise ShapefileRecordError(
            f"Record ended while reading {what}: needed {size} bytes, found {len(data)}."
        )
    return data


class _ShapeRecord:
    """Decodes and encodes the content of one .shp record, after the shape
    type. Decoding returns the geometry and the bounding box of the record."""

    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        raise NotImplementedError

    @staticmethod
    def write_to_byte_stream(
        b_io: WriteableBinStream,
        shapeType: int,
        parts: Sequence[Sequence[Position]],
        i: int,
    ) -> int:
        raise NotImplementedError


class NullRecord(_ShapeRecord):
    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        return None, None

    @staticmethod
    def write_to_byte_stream(
        b_io: WriteableBinStream,
        shapeType: int,
        parts: Sequence[Sequence[Position]],
        i: int,
    ) -> int:
        return 0


class _HasZ:
    @staticmethod
    def _skip_zs_in_byte_stream(b_io: ReadSeekableBinStream, nPoints: int) -> None:
        # z range and values are not kept
        _read_exact(b_io, 16 + 8 * nPoints, "elevation values")

    @staticmethod
    def _write_zs_to_byte_stream(b_io: WriteableBinStream, nPoints: int) -> int:
        # Note: z values are not part of the geometry model, so are written as 0.
        return b_io.write(pack(f"<{2 + nPoints}d", *([0.0] * (2 + nPoints))))


class _HasM:
    @staticmethod
    def _skip_ms_in_byte_stream(b_io: ReadSeekableBinStream, nPoints: int) -> None:
        # Measures are optional even in M type records, so only consume
        # whatever is present.
        b_io.read(16 + 8 * nPoints)

    @staticmethod
    def _write_ms_to_byte_stream(b_io: WriteableBinStream, nPoints: int) -> int:
        # Note: m values are not part of the geometry model, so are written as NODATA.
        return b_io.write(pack(f"<{2 + nPoints}d", *([NODATA] * (2 + nPoints))))


class _CanHaveBBox(_ShapeRecord):
    @staticmethod
    def _read_bbox_from_byte_stream(b_io: ReadSeekableBinStream) -> LLBox:
        return LLBox(*unpack("<4d", _read_exact(b_io, 32, "bounding box")))

    @staticmethod
    def _write_bbox_to_byte_stream(b_io: WriteableBinStream, i: int, bbox: LLBox) -> int:
        try:
            return b_io.write(pack("<4d", *bbox))
        except error:
            raise ShapefileException(
                f"Failed to write bounding box for record {i}. Expected floats."
            )

    @staticmethod
    def _read_count_from_byte_stream(b_io: ReadSeekableBinStream, what: str) -> int:
        (count,) = unpack("<i", _read_exact(b_io, 4, f"number of {what}"))
        if count < 0:
            raise ShapefileRecordError(f"Negative number of {what}: {count}.")
        return cast(int, count)

    @staticmethod
    def _read_points_from_byte_stream(
        b_io: ReadSeekableBinStream, nPoints: int
    ) -> list[Position]:
        flat = unpack(f"<{2 * nPoints}d", _read_exact(b_io, 16 * nPoints, "points"))
        return [Position(x, y) for x, y in zip(*(iter(flat),) * 2)]

    @staticmethod
    def _write_points_to_byte_stream(
        b_io: WriteableBinStream, points: Sequence[Position], i: int
    ) -> int:
        x_ys: list[float] = []
        for point in points:
            x_ys.extend(point[:2])
        try:
            return b_io.write(pack(f"<{len(x_ys)}d", *x_ys))
        except error:
            raise ShapefileException(
                f"Failed to write points for record {i}. Expected floats."
            )

    @staticmethod
    def _skip_z_and_m(
        shapeType: int, b_io: ReadSeekableBinStream, nPoints: int
    ) -> None:
        if shapeType in _HasZ_shapeTypes:
            _HasZ._skip_zs_in_byte_stream(b_io, nPoints)
        if shapeType in _HasM_shapeTypes:
            _HasM._skip_ms_in_byte_stream(b_io, nPoints)

    @staticmethod
    def _write_z_and_m(shapeType: int, b_io: WriteableBinStream, nPoints: int) -> int:
        n = 0
        if shapeType in _HasZ_shapeTypes:
            n += _HasZ._write_zs_to_byte_stream(b_io, nPoints)
        if shapeType in _HasM_shapeTypes:
            n += _HasM._write_ms_to_byte_stream(b_io, nPoints)
        return n


class _CanHaveParts(_CanHaveBBox):
    @staticmethod
    def _read_parts_from_byte_stream(
        b_io: ReadSeekableBinStream, shapeType: int
    ) -> tuple[LLBox, list[list[Position]]]:
        """Reads the bounding box, part indexes and points of a polyline or
        polygon record and returns the points split into their parts."""
        bbox = _CanHaveBBox._read_bbox_from_byte_stream(b_io)
        nParts = _CanHaveBBox._read_count_from_byte_stream(b_io, "parts")
        nPoints = _CanHaveBBox._read_count_from_byte_stream(b_io, "points")
        starts = list(
            unpack(f"<{nParts}i", _read_exact(b_io, 4 * nParts, "part indexes"))
        )
        points = _CanHaveBBox._read_points_from_byte_stream(b_io, nPoints)
        _CanHaveBBox._skip_z_and_m(shapeType, b_io, nPoints)

        ends = starts[1:] + [nPoints]
        parts = []
        for start, end in zip(starts, ends):
            if not 0 <= start <= end <= nPoints:
                raise ShapefileRecordError(
                    f"Invalid part index {start} for a record with {nPoints} points."
                )
            parts.append(points[start:end])
        return bbox, parts

    @staticmethod
    def write_to_byte_stream(
        b_io: WriteableBinStream,
        shapeType: int,
        parts: Sequence[Sequence[Position]],
        i: int,
    ) -> int:
        points = [point for part in parts for point in part]
        part_indexes = []
        index = 0
        for part in parts:
            part_indexes.append(index)
            index += len(part)

        n = _CanHaveBBox._write_bbox_to_byte_stream(b_io, i, ring_bbox(points))
        n += b_io.write(pack("<2i", len(parts), len(points)))
        n += b_io.write(pack(f"<{len(part_indexes)}i", *part_indexes))
        n += _CanHaveBBox._write_points_to_byte_stream(b_io, points, i)
        n += _CanHaveBBox._write_z_and_m(shapeType, b_io, len(points))
        return n


class PointRecord(_ShapeRecord):
    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        x, y = unpack("<2d", _read_exact(b_io, 16, "point"))
        if shapeType == POINTZ:
            _read_exact(b_io, 8, "elevation value")
        if shapeType in _HasM_shapeTypes:
            # optional
            b_io.read(8)
        return Point(x, y), LLBox(x, y, x, y)

    @staticmethod
    def write_to_byte_stream(
        b_io: WriteableBinStream,
        shapeType: int,
        parts: Sequence[Sequence[Position]],
        i: int,
    ) -> int:
        n = _CanHaveBBox._write_points_to_byte_stream(b_io, parts[0][:1], i)
        if shapeType == POINTZ:
            n += b_io.write(pack("<d", 0.0))
        if shapeType in _HasM_shapeTypes:
            n += b_io.write(pack("<d", NODATA))
        return n


class MultiPointRecord(_CanHaveBBox):
    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        bbox = _CanHaveBBox._read_bbox_from_byte_stream(b_io)
        nPoints = _CanHaveBBox._read_count_from_byte_stream(b_io, "points")
        points = _CanHaveBBox._read_points_from_byte_stream(b_io, nPoints)
        _CanHaveBBox._skip_z_and_m(shapeType, b_io, nPoints)
        return MultiPoint(points), bbox

    @staticmethod
    def write_to_byte_stream(
        b_io: WriteableBinStream,
        shapeType: int,
        parts: Sequence[Sequence[Position]],
        i: int,
    ) -> int:
        points = [point for part in parts for point in part]
        n = _CanHaveBBox._write_bbox_to_byte_stream(b_io, i, ring_bbox(points))
        n += b_io.write(pack("<i", len(points)))
        n += _CanHaveBBox._write_points_to_byte_stream(b_io, points, i)
        n += _CanHaveBBox._write_z_and_m(shapeType, b_io, len(points))
        return n


class PolylineRecord(_CanHaveParts):
    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        bbox, parts = _CanHaveParts._read_parts_from_byte_stream(b_io, shapeType)
        return MultiLineString(parts), bbox


class PolygonRecord(_CanHaveParts):
    @staticmethod
    def from_byte_stream(
        shapeType: int, b_io: ReadSeekableBinStream
    ) -> tuple[Geometry | None, LLBox | None]:
        bbox, rings = _CanHaveParts._read_parts_from_byte_stream(b_io, shapeType)
        polygons = [
            Polygon(outer, holes) for outer, holes in organize_polygon_rings(rings)
        ]
        return MultiPolygon(polygons), bbox


SHAPE_RECORD_FROM_SHAPETYPE: dict[int, type[_ShapeRecord]] = {
    NULL: NullRecord,
    POINT: PointRecord,
    POLYLINE: PolylineRecord,
    POLYGON: PolygonRecord,
    MULTIPOINT: MultiPointRecord,
    POINTZ: PointRecord,
    POLYLINEZ: PolylineRecord,
    POLYGONZ: PolygonRecord,
    MULTIPOINTZ: MultiPointRecord,
    POINTM: PointRecord,
    POLYLINEM: PolylineRecord,
    POLYGONM: PolygonRecord,
    MULTIPOINTM: MultiPointRecord,
}

# The shape family each kind of geometry is written as
SHAPETYPE_FROM_GEOMETRY: dict[type, int] = {
    Point: POINT,
    MultiPoint: MULTIPOINT,
    LineString: POLYLINE,
    MultiLineString: POLYLINE,
    Polygon: POLYGON,
    MultiPolygon: POLYGON,
}
