from __future__ import annotations

# Module settings
VERBOSE = True

# Constants for shape types
NULL = 0
POINT = 1
POLYLINE = 3
POLYGON = 5
MULTIPOINT = 8
POINTZ = 11
POLYLINEZ = 13
POLYGONZ = 15
MULTIPOINTZ = 18
POINTM = 21
POLYLINEM = 23
POLYGONM = 25
MULTIPOINTM = 28

SHAPETYPE_LOOKUP = {
    NULL: "NULL",
    POINT: "POINT",
    POLYLINE: "POLYLINE",
    POLYGON: "POLYGON",
    MULTIPOINT: "MULTIPOINT",
    POINTZ: "POINTZ",
    POLYLINEZ: "POLYLINEZ",
    POLYGONZ: "POLYGONZ",
    MULTIPOINTZ: "MULTIPOINTZ",
    POINTM: "POINTM",
    POLYLINEM: "POLYLINEM",
    POLYGONM: "POLYGONM",
    MULTIPOINTM: "MULTIPOINTM",
}

SHAPETYPENUM_LOOKUP = {name: code for code, name in SHAPETYPE_LOOKUP.items()}

# Main file header
FILE_CODE = 9994
VERSION = 1000
HEADER_LENGTH = 100
RECORD_HEADER_LENGTH = 8

NODATA = -10e38  # as per the ESRI shapefile spec, only used for m-values.

# dBASE III
DBF_VERSION = 0x03
DBF_HEADER_LENGTH = 32
DBF_FIELD_LENGTH = 32
DBF_HEADER_TERMINATOR = b"\r"
DBF_EOF = b"\x1a"
DBF_ACTIVE = b" "
DBF_DELETED = b"*"
DBF_MAX_NAME_LENGTH = 11
DBF_MAX_FIELD_SIZE = 254

# Projection
WGS84_WKT = (
    'GEOGCS["GCS_WGS_1984",DATUM["D_WGS_1984",'
    'SPHEROID["WGS_1984",6378137.0,298.257223563]],'
    'PRIMEM["Greenwich",0.0],UNIT["Degree",0.0174532925199433]]'
)
WGS84_MARKERS = ("WGS_1984", "WGS 84", "WGS84", "EPSG:4326", "4326")
