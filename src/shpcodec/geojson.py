from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal, Optional, TypedDict, Union, cast

from .constants import MULTIPOINT, NULL, POINT, POLYGON, POLYLINE
from .exceptions import GeoJSON_Error
from .geometry import (
    GeometryLike,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    Position,
)
from .types import Point2D, PointsT


class GeoJSONPoint(TypedDict):
    type: Literal["Point"]
    coordinates: Point2D


class GeoJSONMultiPoint(TypedDict):
    type: Literal["MultiPoint"]
    coordinates: PointsT


class GeoJSONLineString(TypedDict):
    type: Literal["LineString"]
    # "Two or more positions" not enforced by type checker
    # https://datatracker.ietf.org/doc/html/rfc7946#section-3.1.4
    coordinates: PointsT


class GeoJSONMultiLineString(TypedDict):
    type: Literal["MultiLineString"]
    coordinates: list[PointsT]


class GeoJSONPolygon(TypedDict):
    type: Literal["Polygon"]
    # Other requirements for Polygon not enforced by type checker
    # https://datatracker.ietf.org/doc/html/rfc7946#section-3.1.6
    coordinates: list[PointsT]


class GeoJSONMultiPolygon(TypedDict):
    type: Literal["MultiPolygon"]
    coordinates: list[list[PointsT]]


GeoJSONHomogeneousGeometryObject = Union[
    GeoJSONPoint,
    GeoJSONMultiPoint,
    GeoJSONLineString,
    GeoJSONMultiLineString,
    GeoJSONPolygon,
    GeoJSONMultiPolygon,
]

GEOJSON_TO_SHAPETYPE: dict[str, int] = {
    "Null": NULL,
    "Point": POINT,
    "LineString": POLYLINE,
    "Polygon": POLYGON,
    "MultiPoint": MULTIPOINT,
    "MultiLineString": POLYLINE,
    "MultiPolygon": POLYGON,
}


class GeoJSONFeature(TypedDict):
    type: Literal["Feature"]
    properties: (
        dict[str, Any] | None
    )  # RFC7946 3.2 "(any JSON object or a JSON null value)"
    geometry: Optional[GeoJSONHomogeneousGeometryObject]


class GeoJSONFeatureCollection(TypedDict):
    type: Literal["FeatureCollection"]
    features: list[GeoJSONFeature]


class GeoJSONFeatureCollectionWithBBox(GeoJSONFeatureCollection):
    bbox: list[float]


def _coords(points: Sequence[Position]) -> PointsT:
    return [(p.lon, p.lat) for p in points]


def geometry_to_geojson(geometry: GeometryLike) -> GeoJSONHomogeneousGeometryObject:
    """
    Converts a geometry to a GeoJSON geometry dict.

    Single part multi-geometries are simplified, as the shapefile format
    does not distinguish a LineString from a MultiLineString, nor a
    Polygon from a MultiPolygon.
    """
    if isinstance(geometry, Point):
        return {"type": "Point", "coordinates": (geometry.lon, geometry.lat)}

    if isinstance(geometry, MultiPoint):
        return {"type": "MultiPoint", "coordinates": _coords(geometry.points)}

    if isinstance(geometry, LineString):
        return {"type": "LineString", "coordinates": _coords(geometry.points)}

    if isinstance(geometry, MultiLineString):
        if len(geometry.lines) == 1:
            return {"type": "LineString", "coordinates": _coords(geometry.lines[0])}
        return {
            "type": "MultiLineString",
            "coordinates": [_coords(line) for line in geometry.lines],
        }

    if isinstance(geometry, Polygon):
        return {
            "type": "Polygon",
            "coordinates": [_coords(ring) for ring in geometry.rings],
        }

    if isinstance(geometry, MultiPolygon):
        polys = [[_coords(ring) for ring in poly.rings] for poly in geometry.polygons]
        if len(polys) == 1:
            return {"type": "Polygon", "coordinates": polys[0]}
        return {"type": "MultiPolygon", "coordinates": polys}

    raise GeoJSON_Error(
        f"Geometry of type {type(geometry).__name__} cannot be represented as GeoJSON."
    )


def geometry_from_geojson(geoj: Any) -> GeometryLike | None:
    """Creates a geometry from a GeoJSON geometry dict, or from any object
    implementing __geo_interface__. A missing geometry gives None."""
    if hasattr(geoj, "__geo_interface__"):
        geoj = geoj.__geo_interface__
    geojType = geoj["type"] if geoj else "Null"
    if geojType not in GEOJSON_TO_SHAPETYPE:
        raise GeoJSON_Error(f"Cannot create geometry from GeoJSON type '{geojType}'")
    if geojType == "Null":
        return None

    coordinates = geoj["coordinates"]
    if coordinates is None or (geojType == "Point" and len(coordinates) == 0):
        raise GeoJSON_Error(f"Cannot create {geojType} from: {coordinates=}")

    if geojType == "Point":
        return Point(*cast(Sequence[float], coordinates)[:2])
    if geojType == "MultiPoint":
        return MultiPoint(coordinates)
    if geojType == "LineString":
        return LineString(coordinates)
    if geojType == "MultiLineString":
        return MultiLineString(coordinates)
    if geojType == "Polygon":
        return _polygon_from_coordinates(coordinates)
    # MultiPolygon
    return MultiPolygon([_polygon_from_coordinates(poly) for poly in coordinates])


def _polygon_from_coordinates(coordinates: Sequence[PointsT]) -> Polygon:
    # GeoJSON puts the exterior first, as does the shapefile format.
    # Ring direction is left to the writer, which normalises it.
    if not coordinates:
        return Polygon()
    return Polygon(coordinates[0], coordinates[1:])
