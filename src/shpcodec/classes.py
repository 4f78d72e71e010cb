from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from typing import Any, Optional

from .constants import NULL, SHAPETYPE_LOOKUP, WGS84_MARKERS
from .exceptions import GeoJSON_Error
from .geojson import (
    GeoJSONFeature,
    GeoJSONFeatureCollection,
    GeoJSONFeatureCollectionWithBBox,
    geometry_from_geojson,
    geometry_to_geojson,
)
from .geometry import GeometryLike, LLBox
from .schema import FieldDescriptor
from .shapes import SHAPETYPE_FROM_GEOMETRY
from .types import RecordValue


def looks_like_wgs84(projection_text: str | None) -> bool:
    """A heuristic check of projection WKT for WGS84. Never reprojects."""
    if not projection_text:
        return False
    return any(marker in projection_text for marker in WGS84_MARKERS)


class Feature:
    """A geometry along with its attribute values.
    Provides the GeoJSON __geo_interface__ to return a Feature dictionary."""

    def __init__(
        self,
        geometry: GeometryLike | None = None,
        attributes: dict[str, RecordValue] | None = None,
        shape_type: int | None = None,
        record_number: int = 0,
        bbox: LLBox | None = None,
    ):
        self.geometry = geometry
        self.attributes: dict[str, Any] = dict(attributes or {})
        if geometry is not None and type(geometry) not in SHAPETYPE_FROM_GEOMETRY:
            raise TypeError(
                f"Feature geometry must be one of the geometry primitives, not {type(geometry)}."
            )
        if shape_type is None:
            shape_type = (
                NULL if geometry is None else SHAPETYPE_FROM_GEOMETRY[type(geometry)]
            )
        self.shape_type = shape_type
        self.record_number = record_number
        if bbox is None and geometry is not None:
            bbox = geometry.bbox
        self.bbox = bbox

    @property
    def __geo_interface__(self) -> GeoJSONFeature:
        properties = dict(self.attributes)
        for k, v in properties.items():
            if isinstance(v, date):
                properties[k] = f"{v.year:04d}{v.month:02d}{v.day:02d}"
        return {
            "type": "Feature",
            "properties": properties,
            "geometry": None
            if self.geometry is None
            else geometry_to_geojson(self.geometry),
        }

    def __repr__(self) -> str:
        return f"Feature #{self.record_number}: {self.geometry!r} {self.attributes!r}"


class FeatureCollection:
    """
    An ordered collection of features sharing one shape type.

    The reader fills in the projection text, the dbf fields and any
    warnings raised while decoding. The writer only reads from a
    collection: when fields or bbox are left empty they are inferred
    from the features.
    """

    def __init__(
        self,
        features: Iterable[Feature] | None = None,
        shape_type: int | None = None,
        bbox: LLBox | None = None,
        projection_text: str | None = None,
        fields: Iterable[FieldDescriptor] | None = None,
        warnings: Iterable[str] | None = None,
    ):
        self.features: list[Feature] = list(features or [])
        if shape_type is None:
            # The first non-null feature decides
            shape_type = next(
                (f.shape_type for f in self.features if f.shape_type != NULL), NULL
            )
        self.shape_type = shape_type
        self.bbox = bbox
        self.projection_text = projection_text
        self.fields: list[FieldDescriptor] = list(fields or [])
        self.warnings: list[str] = list(warnings or [])

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __repr__(self) -> str:
        return (
            f"FeatureCollection({self.shape_type_name}, {len(self)} features, "
            f"{len(self.warnings)} warnings)"
        )

    @property
    def shape_type_name(self) -> str:
        return SHAPETYPE_LOOKUP.get(self.shape_type, str(self.shape_type))

    @property
    def is_wgs84(self) -> bool:
        """True if the projection text looks like WGS84 lon/lat."""
        return looks_like_wgs84(self.projection_text)

    @property
    def __geo_interface__(
        self,
    ) -> GeoJSONFeatureCollection | GeoJSONFeatureCollectionWithBBox:
        features = [feature.__geo_interface__ for feature in self.features]
        if self.bbox is None:
            return {"type": "FeatureCollection", "features": features}
        return {
            "type": "FeatureCollection",
            "features": features,
            "bbox": list(self.bbox),
        }

    @classmethod
    def from_geojson(
        cls, geoj: Any, shape_type: Optional[int] = None
    ) -> FeatureCollection:
        """Creates a collection from a GeoJSON FeatureCollection dict, or
        from any object implementing __geo_interface__."""
        if hasattr(geoj, "__geo_interface__"):
            geoj = geoj.__geo_interface__
        if not isinstance(geoj, dict) or geoj.get("type") != "FeatureCollection":
            raise GeoJSON_Error(
                "Can only create a FeatureCollection from a GeoJSON FeatureCollection."
            )

        features = []
        for i, feat in enumerate(geoj.get("features", []), start=1):
            geometry = geometry_from_geojson(feat.get("geometry"))
            features.append(
                Feature(geometry, feat.get("properties") or {}, record_number=i)
            )

        bbox = geoj.get("bbox")
        return cls(
            features,
            shape_type=shape_type,
            bbox=LLBox(*bbox) if bbox and len(bbox) == 4 else None,
        )
