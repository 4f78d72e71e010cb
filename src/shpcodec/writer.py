from __future__ import annotations

import io
import logging
import os
from datetime import date
from struct import pack
from typing import Any, cast

from .classes import Feature, FeatureCollection
from .constants import (
    DBF_ACTIVE,
    DBF_EOF,
    DBF_FIELD_LENGTH,
    DBF_HEADER_LENGTH,
    DBF_HEADER_TERMINATOR,
    HEADER_LENGTH,
    MULTIPOINT,
    NODATA,
    NULL,
    POINT,
    POLYGON,
    POLYLINE,
    SHAPETYPE_LOOKUP,
    WGS84_WKT,
)
from .exceptions import ShapefileArgumentError, ShapefileException
from .geometric_calculations import close_ring, ensure_ccw, ensure_cw
from .geometry import (
    LineString,
    LLBox,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    Position,
)
from .headers import DbfHeader, ShapefileHeader, pack_index_entry, pack_record_header
from .helpers import shapefile_base_name
from .schema import FieldDescriptor, format_attribute, infer_fields
from .shapes import (
    BASE_SHAPETYPE,
    SHAPE_RECORD_FROM_SHAPETYPE,
    _HasM_shapeTypes,
    shape_types_compatible,
)
from .types import FieldType, PathT

logger = logging.getLogger(__name__)

# The geometries that can be written to each shape family
_GEOMETRIES_FOR_SHAPETYPE: dict[int, tuple[type, ...]] = {
    POINT: (Point,),
    MULTIPOINT: (Point, MultiPoint),
    POLYLINE: (LineString, MultiLineString),
    POLYGON: (Polygon, MultiPolygon),
}


def _normalised_rings(polygon: Polygon) -> list[list[Position]]:
    """Copies of the polygon's rings, closed, with the outer ring clockwise
    and the holes counter-clockwise."""
    rings = [ensure_cw(close_ring(polygon.outer_ring))]
    rings.extend(ensure_ccw(close_ring(ring)) for ring in polygon.inner_rings)
    return rings


def geometry_parts(
    geometry: Point | MultiPoint | LineString | MultiLineString | Polygon | MultiPolygon,
) -> list[list[Position]]:
    """Flattens a geometry into the parts of a shapefile record. Polygon
    rings are normalised for writing. The geometry itself is not changed."""
    if isinstance(geometry, Point):
        return [[geometry.position]]
    if isinstance(geometry, (MultiPoint, LineString)):
        return [list(geometry.points)]
    if isinstance(geometry, MultiLineString):
        return [list(line) for line in geometry.lines]
    if isinstance(geometry, Polygon):
        return _normalised_rings(geometry)
    if isinstance(geometry, MultiPolygon):
        return [
            ring for polygon in geometry.polygons for ring in _normalised_rings(polygon)
        ]
    raise TypeError(f"Cannot write geometry of type {type(geometry)}.")


class Writer:
    """Writes a FeatureCollection as the .shp, .shx, .dbf and .prj files
    of a shapefile. Any extension on the path is replaced."""

    def __init__(
        self,
        path: PathT,
        encoding: str = "utf-8",
        encodingErrors: str = "strict",
    ):
        self.base_name = shapefile_base_name(path)
        self.encoding = encoding
        self.encodingErrors = encodingErrors

    def __str__(self) -> str:
        return f"shapefile Writer for {self.base_name}"

    def write(self, collection: FeatureCollection) -> None:
        if collection is None:
            raise ShapefileArgumentError("Feature collection cannot be None.")
        if not isinstance(collection, FeatureCollection):
            raise TypeError(
                f"Can only write a FeatureCollection, not: {type(collection)}"
            )
        if collection.shape_type not in SHAPE_RECORD_FROM_SHAPETYPE:
            raise ShapefileException(
                f"Unsupported shape type for writing: {collection.shape_type}."
            )

        columns = self._columns(collection)
        bbox = collection.bbox or self._bbox(collection)

        # Everything is encoded before any file is touched
        shp, shx = self._encode_shapes(collection, bbox)
        dbf = self._encode_records(collection, columns)

        directory = os.path.dirname(self.base_name)
        if directory:
            os.makedirs(directory, exist_ok=True)
        for ext, content in (
            ("shp", shp),
            ("shx", shx),
            ("dbf", dbf),
            ("prj", WGS84_WKT.encode("ascii")),
        ):
            with open(f"{self.base_name}.{ext}", "wb") as f:
                f.write(content)

        logger.debug(
            "Wrote %d %s features to %s.shp",
            len(collection),
            collection.shape_type_name,
            self.base_name,
        )

    @staticmethod
    def _bbox(collection: FeatureCollection) -> LLBox:
        """Folds the bounding box over every coordinate of every feature."""
        bbox: LLBox | None = None
        for feature in collection.features:
            if feature.geometry is None:
                continue
            feature_bbox = LLBox.from_positions(feature.geometry.positions())
            if feature_bbox is None:
                continue
            bbox = feature_bbox if bbox is None else bbox.union(feature_bbox)
        return bbox or LLBox.empty()

    def _columns(
        self, collection: FeatureCollection
    ) -> list[tuple[str, FieldDescriptor]]:
        """The attribute key read for each dbf column, with the column.
        Given fields are looked up by their name, otherwise the fields are
        inferred from the attribute values."""
        if not collection.fields:
            fields = infer_fields(
                (feature.attributes for feature in collection.features),
                self.encoding,
                self.encodingErrors,
            )
            return list(fields.items())

        names = [field.name for field in collection.fields]
        if len(set(names)) != len(names):
            raise ShapefileArgumentError(f"Field names must be unique. Got: {names}")
        return [(field.name, field) for field in collection.fields]

    # Geometry

    def _encode_shapes(
        self, collection: FeatureCollection, bbox: LLBox
    ) -> tuple[bytes, bytes]:
        """Encodes the .shp and .shx files."""
        shapeType = collection.shape_type
        shp_body = io.BytesIO()
        shx_body = io.BytesIO()
        has_shapes = False
        for i, feature in enumerate(collection.features, start=1):
            offset = HEADER_LENGTH + shp_body.tell()
            content = self._shpRecord(shapeType, feature, i)
            has_shapes = has_shapes or feature.geometry is not None
            # Content length as 16-bit words
            length = len(content) // 2
            shp_body.write(pack_record_header(i, length))
            shp_body.write(content)
            shx_body.write(pack_index_entry(offset // 2, length))

        mbox = (0.0, 0.0)
        if has_shapes and shapeType in _HasM_shapeTypes:
            mbox = (NODATA, NODATA)

        shp_length = HEADER_LENGTH + shp_body.tell()
        shx_length = HEADER_LENGTH + shx_body.tell()
        if shp_length // 2 > 0x7FFFFFFF:
            raise ShapefileException(
                "The .shp file has reached its file size limit > 4294967294 bytes (4.29 GB). "
                "To fix this, break up your file into multiple smaller ones."
            )
        shp = ShapefileHeader(shp_length // 2, shapeType, bbox, mbox=mbox)
        shx = shp._replace(file_length=shx_length // 2)
        return (
            shp.to_bytes() + shp_body.getvalue(),
            shx.to_bytes() + shx_body.getvalue(),
        )

    def _shpRecord(self, shapeType: int, feature: Feature, i: int) -> bytes:
        """Encodes the content of one record, after the record header."""
        if feature.geometry is None:
            return pack("<i", NULL)

        if not shape_types_compatible(shapeType, feature.shape_type) or (
            feature.shape_type == NULL
        ):
            raise ShapefileException(
                f"The type of record {i} ({SHAPETYPE_LOOKUP.get(feature.shape_type, feature.shape_type)}) "
                f"must match the type of the shapefile ({SHAPETYPE_LOOKUP[shapeType]})."
            )
        allowed = _GEOMETRIES_FOR_SHAPETYPE[BASE_SHAPETYPE[shapeType]]
        if not isinstance(feature.geometry, allowed):
            raise ShapefileException(
                f"The geometry of record {i} ({type(feature.geometry).__name__}) "
                f"cannot be written to a {SHAPETYPE_LOOKUP[shapeType]} shapefile."
            )
        parts = geometry_parts(feature.geometry)

        # Create an in-memory binary buffer, so the content length
        # is known before the record header is written
        b_io = io.BytesIO()
        b_io.write(pack("<i", shapeType))
        SHAPE_RECORD_FROM_SHAPETYPE[shapeType].write_to_byte_stream(
            b_io, shapeType, parts, i
        )
        return b_io.getvalue()

    # Attributes

    def _encode_records(
        self,
        collection: FeatureCollection,
        columns: list[tuple[str, FieldDescriptor]],
    ) -> bytes:
        """Encodes the dbf file."""
        fields = [field for __key, field in columns]
        headerLength = DBF_HEADER_LENGTH + DBF_FIELD_LENGTH * len(fields) + 1
        if headerLength >= 65535:
            raise ShapefileException(
                "Shapefile dbf header length exceeds maximum length."
            )
        recordLength = sum(field.size for field in fields) + 1

        f = io.BytesIO()
        f.write(
            DbfHeader(
                num_records=len(collection.features),
                header_length=headerLength,
                record_length=recordLength,
            ).to_bytes()
        )
        for field in fields:
            f.write(field.to_bytes(self.encoding, self.encodingErrors))
        f.write(DBF_HEADER_TERMINATOR)

        for i, feature in enumerate(collection.features, start=1):
            # first byte of the record is deletion flag, always disabled
            f.write(DBF_ACTIVE)
            for key, field in columns:
                f.write(self._dbfValue(field, feature.attributes.get(key), i))
        f.write(DBF_EOF)
        return f.getvalue()

    def _dbfValue(self, field: FieldDescriptor, value: Any, i: int) -> bytes:
        """Encodes one value to exactly the size of its field."""
        fieldName, fieldType, size, deci = field
        str_val: str | None = None

        if value is None:
            # missing values are blank, whatever the type
            str_val = " " * size
        elif fieldType in ("N", "F"):
            # numeric or float: number stored as a string, right justified, and padded with blanks to the width of the field.
            try:
                if not deci:
                    try:
                        # first try to force directly to int.
                        # forcing a large int to float and back to int
                        # will lose information and result in wrong nr.
                        num_val = int(cast(int, value))
                    except ValueError:
                        # forcing directly to int failed, so was probably a float.
                        num_val = int(float(cast(float, value)))
                    str_val = format(num_val, "d").rjust(size)
                else:
                    num_text = format(float(cast(float, value)), f".{deci}f")
                    if len(num_text) > size:
                        # too wide for fixed point, exponent form still reads as a float
                        num_text = repr(float(cast(float, value)))
                    str_val = num_text.rjust(size)
            except (TypeError, ValueError, OverflowError):
                raise ShapefileException(
                    f"Record {i}: value {value!r} of field '{fieldName}' is not a number."
                )
        elif fieldType == FieldType.D:
            # date: 8 bytes - date stored as a string in the format YYYYMMDD.
            if isinstance(value, date):
                str_val = f"{value.year:04d}{value.month:02d}{value.day:02d}"
            elif isinstance(value, str) and len(value) == 8 and value.isdigit():
                pass  # value is already a date string
            else:
                raise ShapefileException(
                    f"Record {i}: date values must be either a datetime.date object, "
                    f"a YYYYMMDD string, or None, not {value!r}."
                )
        elif fieldType == FieldType.L:
            # logical: 1 byte - initialized to 0x20 (space) otherwise T or F.
            if value in (True, 1):
                str_val = "T"
            elif value in (False, 0):
                str_val = "F"
            else:
                str_val = " "  # unknown is set to space

        if str_val is None:
            # Character columns, and date strings: the text is encoded then
            # truncated and padded to the length of the field. A multi-byte
            # character cut by the truncation is dropped whole.
            encoded = format_attribute(value).encode(self.encoding, self.encodingErrors)
            if len(encoded) > size:
                encoded = (
                    encoded[:size]
                    .decode(self.encoding, "ignore")
                    .encode(self.encoding, self.encodingErrors)
                )
            encoded = encoded.ljust(size)
        else:
            # Numeric, logical, and date types are ascii already
            encoded = str_val.encode("ascii", self.encodingErrors)

        if len(encoded) != size:
            raise ShapefileException(
                f"Shapefile Writer unable to pack incorrect sized {value=}"
                f" (encoded as {len(encoded)}B) into field '{fieldName}' ({size}B) of record {i}."
            )
        return encoded


def write(path: PathT, collection: FeatureCollection, **options: Any) -> None:
    """Writes the collection as a shapefile at path. Options are passed on
    to Writer."""
    Writer(path, **options).write(collection)
