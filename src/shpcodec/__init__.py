"""
shpcodec
Provides read and write support for ESRI Shapefiles, as collections of
longitude/latitude features with typed attributes.
Compatible with Python versions >=3.9
"""

from __future__ import annotations

import logging

from .__version__ import __version__
from .classes import Feature, FeatureCollection, looks_like_wgs84
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
    SHAPETYPE_LOOKUP,
    SHAPETYPENUM_LOOKUP,
    WGS84_WKT,
)
from .exceptions import (
    GeoJSON_Error,
    ShapefileArgumentError,
    ShapefileException,
    ShapefileFormatError,
    ShapefileRecordError,
)
from .geometric_calculations import is_cw, signed_area
from .geometry import (
    Geometry,
    GeometryLike,
    LineString,
    LLBox,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    Position,
)
from .helpers import fsdecode_if_pathlike
from .reader import Reader, read
from .schema import FieldDescriptor, infer_fields
from .types import (
    FIELD_TYPE_ALIASES,
    AttributeType,
    AttributeTypeT,
    FieldType,
    FieldTypeT,
    RecordValue,
)
from .writer import Writer, write

__all__ = [
    "__version__",
    "NULL",
    "POINT",
    "POLYLINE",
    "POLYGON",
    "MULTIPOINT",
    "POINTZ",
    "POLYLINEZ",
    "POLYGONZ",
    "MULTIPOINTZ",
    "POINTM",
    "POLYLINEM",
    "POLYGONM",
    "MULTIPOINTM",
    "NODATA",
    "SHAPETYPE_LOOKUP",
    "SHAPETYPENUM_LOOKUP",
    "WGS84_WKT",
    "read",
    "write",
    "Reader",
    "Writer",
    "Feature",
    "FeatureCollection",
    "looks_like_wgs84",
    "FieldDescriptor",
    "infer_fields",
    "FieldType",
    "FieldTypeT",
    "FIELD_TYPE_ALIASES",
    "AttributeType",
    "AttributeTypeT",
    "RecordValue",
    "Position",
    "LLBox",
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "Geometry",
    "GeometryLike",
    "signed_area",
    "is_cw",
    "fsdecode_if_pathlike",
    "ShapefileException",
    "ShapefileFormatError",
    "ShapefileRecordError",
    "ShapefileArgumentError",
    "GeoJSON_Error",
]

logger = logging.getLogger(__name__)
