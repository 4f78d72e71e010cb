"""
This module tests conversion between geometries and GeoJSON.
"""

import datetime

import pytest

import shpcodec
from shpcodec import (
    Feature,
    FeatureCollection,
    GeoJSON_Error,
    LineString,
    LLBox,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from shpcodec.geojson import geometry_from_geojson, geometry_to_geojson

SQUARE = [(0, 0), (0, 10), (10, 10), (10, 0), (0, 0)]
HOLE = [(2, 2), (4, 2), (4, 4), (2, 4), (2, 2)]

# (geometry, expected geo interface output)
geo_interface_tests = [
    (Point(1, 1), {"type": "Point", "coordinates": (1, 1)}),
    (
        MultiPoint([(1, 1), (2, 1), (2, 2)]),
        {"type": "MultiPoint", "coordinates": [(1, 1), (2, 1), (2, 2)]},
    ),
    (
        LineString([(1, 1), (2, 1)]),
        {"type": "LineString", "coordinates": [(1, 1), (2, 1)]},
    ),
    (
        MultiLineString([[(1, 1), (2, 1)]]),
        {"type": "LineString", "coordinates": [(1, 1), (2, 1)]},
    ),
    (
        MultiLineString([[(1, 1), (2, 1)], [(10, 10), (20, 10)]]),
        {
            "type": "MultiLineString",
            "coordinates": [[(1, 1), (2, 1)], [(10, 10), (20, 10)]],
        },
    ),
    (
        Polygon(SQUARE, [HOLE]),
        {"type": "Polygon", "coordinates": [SQUARE, HOLE]},
    ),
    (
        MultiPolygon([Polygon(SQUARE)]),
        {"type": "Polygon", "coordinates": [SQUARE]},
    ),
    (
        MultiPolygon([Polygon(SQUARE), Polygon(SQUARE, [HOLE])]),
        {"type": "MultiPolygon", "coordinates": [[SQUARE], [SQUARE, HOLE]]},
    ),
]


@pytest.mark.parametrize("geometry,expected", geo_interface_tests)
def test_geometry_to_geojson(geometry, expected):
    assert geometry_to_geojson(geometry) == expected


@pytest.mark.parametrize(
    "geoj,expected",
    [
        ({"type": "Point", "coordinates": [1, 2, 3]}, Point(1, 2)),
        ({"type": "LineString", "coordinates": [[1, 2], [3, 4]]}, LineString([(1, 2), (3, 4)])),
        (
            {"type": "Polygon", "coordinates": [SQUARE, HOLE]},
            Polygon(SQUARE, [HOLE]),
        ),
        (
            {"type": "MultiPolygon", "coordinates": [[SQUARE], [SQUARE, HOLE]]},
            MultiPolygon([Polygon(SQUARE), Polygon(SQUARE, [HOLE])]),
        ),
        (None, None),
    ],
)
def test_geometry_from_geojson(geoj, expected):
    assert geometry_from_geojson(geoj) == expected


@pytest.mark.parametrize(
    "geoj",
    [
        {"type": "GeometryCollection", "geometries": []},
        {"type": "Point", "coordinates": []},
    ],
)
def test_geometry_from_geojson_invalid(geoj):
    with pytest.raises(GeoJSON_Error):
        geometry_from_geojson(geoj)


def test_feature_geo_interface():
    """
    Assert that a feature gives a GeoJSON Feature,
    with dates as YYYYMMDD strings.
    """
    feature = Feature(
        Point(1, 2), {"name": "a", "when": datetime.date(2021, 3, 4), "n": None}
    )
    assert feature.__geo_interface__ == {
        "type": "Feature",
        "properties": {"name": "a", "when": "20210304", "n": None},
        "geometry": {"type": "Point", "coordinates": (1, 2)},
    }
    # the feature itself keeps its date
    assert feature.attributes["when"] == datetime.date(2021, 3, 4)


def test_null_feature_geo_interface():
    assert Feature(None, {"a": 1}).__geo_interface__["geometry"] is None


def test_feature_collection_from_geojson():
    geoj = {
        "type": "FeatureCollection",
        "bbox": [0, 0, 10, 10],
        "features": [
            {"type": "Feature", "properties": None, "geometry": None},
            {
                "type": "Feature",
                "properties": {"id": 2},
                "geometry": {"type": "LineString", "coordinates": [[0, 0], [10, 10]]},
            },
        ],
    }
    collection = FeatureCollection.from_geojson(geoj)
    assert collection.shape_type == shpcodec.POLYLINE
    assert collection.bbox == LLBox(0, 0, 10, 10)
    assert [f.record_number for f in collection] == [1, 2]
    assert collection.features[0].geometry is None
    assert collection.features[0].attributes == {}
    assert collection.features[1].attributes == {"id": 2}


def test_feature_collection_from_geo_interface():
    collection = FeatureCollection([Feature(Point(1, 2), {"id": 1})])
    copy = FeatureCollection.from_geojson(collection, shape_type=shpcodec.POINTM)
    assert copy.shape_type == shpcodec.POINTM
    assert copy.features[0].geometry == Point(1, 2)


def test_feature_collection_from_geojson_invalid():
    with pytest.raises(GeoJSON_Error):
        FeatureCollection.from_geojson({"type": "Point", "coordinates": [1, 2]})
