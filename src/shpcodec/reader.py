from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator
from datetime import date
from struct import error, unpack
from typing import IO, Any, Optional

from . import constants
from .classes import Feature, FeatureCollection, looks_like_wgs84
from .constants import (
    DBF_DELETED,
    DBF_FIELD_LENGTH,
    DBF_HEADER_LENGTH,
    DBF_HEADER_TERMINATOR,
    HEADER_LENGTH,
    RECORD_HEADER_LENGTH,
    SHAPETYPE_LOOKUP,
)
from .exceptions import ShapefileException, ShapefileFormatError, ShapefileRecordError
from .headers import DbfHeader, ShapefileHeader, unpack_record_header
from .helpers import find_constituent_file, shapefile_base_name
from .schema import FieldDescriptor
from .shapes import SHAPE_RECORD_FROM_SHAPETYPE, shape_types_compatible
from .types import FieldType, PathT, RecordValue

logger = logging.getLogger(__name__)

AttributeRow = dict[str, RecordValue]
# A decoded feature, or a warning about a record that could not be decoded
Outcome = tuple[Optional[Feature], Optional[str]]


class Reader:
    """Reads a shapefile, i.e. the .shp, .dbf and .prj files sharing one
    base name, into a FeatureCollection.

    The path may name the .shp file, any other constituent file, or the
    bare base name. Extensions are matched case insensitively. Only the
    .shp file is required: without a .dbf the features have no attributes
    and without a .prj the projection is unknown. The .shx index is not
    needed, as records are read sequentially.

    Problems with single records do not stop the reader. Each is recorded
    as a warning on the returned collection, and also logged when
    constants.VERBOSE is set.
    """

    def __init__(
        self,
        path: PathT,
        encoding: str = "utf-8",
        encodingErrors: str = "strict",
    ):
        self.base_name = shapefile_base_name(path)
        self.encoding = encoding
        self.encodingErrors = encodingErrors
        self.warnings: list[str] = []

    def __str__(self) -> str:
        return f"shapefile Reader for {self.base_name}"

    def _warn(self, msg: str) -> None:
        self.warnings.append(msg)
        if constants.VERBOSE:
            logger.warning(msg)

    def read(self) -> FeatureCollection:
        """Reads all the features of the shapefile."""
        self.warnings = []
        shp_path = find_constituent_file(self.base_name, "shp")
        if shp_path is None:
            raise ShapefileFormatError(
                f"Unable to open {self.base_name}.shp or {self.base_name}.SHP."
            )

        projection_text = self._read_projection()
        fields, rows = self._read_attributes()

        with open(shp_path, "rb") as shp:
            header = ShapefileHeader.from_bytes(shp.read(HEADER_LENGTH))
            features = self._fold(self._iter_features(shp, header, rows))

        collection = FeatureCollection(
            features,
            shape_type=header.shape_type,
            bbox=header.bbox,
            projection_text=projection_text,
            fields=fields,
            warnings=self.warnings,
        )
        logger.debug(
            "Read %d %s features from %s with %d warnings",
            len(collection),
            collection.shape_type_name,
            shp_path,
            len(collection.warnings),
        )
        return collection

    def _fold(self, outcomes: Iterable[Outcome]) -> list[Feature]:
        features = []
        for feature, warning in outcomes:
            if warning is not None:
                self._warn(warning)
            if feature is not None:
                features.append(feature)
        return features

    # Projection

    def _read_projection(self) -> str | None:
        prj_path = find_constituent_file(self.base_name, "prj")
        if prj_path is None:
            return None
        try:
            with open(prj_path, "rb") as prj:
                text = prj.read().decode(self.encoding, self.encodingErrors).strip()
        except (OSError, UnicodeDecodeError) as e:
            self._warn(f"Failed to read projection file {prj_path}: {e}")
            return None
        if not text:
            return None
        if not looks_like_wgs84(text):
            self._warn(f"Projection does not appear to be WGS84: {text[:100]}")
        return text

    # Attributes

    def _read_attributes(self) -> tuple[list[FieldDescriptor], list[AttributeRow]]:
        """Reads the dbf fields and the attribute rows of the records that
        are not marked as deleted."""
        dbf_path = find_constituent_file(self.base_name, "dbf")
        if dbf_path is None:
            logger.debug("No dbf file found for %s", self.base_name)
            return [], []

        rows: list[AttributeRow] = []
        with open(dbf_path, "rb") as dbf:
            try:
                header = DbfHeader.from_bytes(dbf.read(DBF_HEADER_LENGTH))
                fields = self._read_field_descriptors(dbf, header)
            except (ShapefileException, error, UnicodeDecodeError) as e:
                self._warn(f"Failed to read dbf file {dbf_path}: {e}")
                return [], []

            dbf.seek(header.header_length)
            for i in range(header.num_records):
                try:
                    row = self._parse_record(
                        dbf.read(header.record_length), fields, header.record_length
                    )
                except ShapefileRecordError as e:
                    self._warn(f"Failed to read dbf record {i + 1}: {e}")
                    dbf.seek(header.header_length + (i + 1) * header.record_length)
                    rows.append({})
                    continue
                if row is not None:
                    rows.append(row)
        return fields, rows

    def _read_field_descriptors(
        self, dbf: IO[bytes], header: DbfHeader
    ) -> list[FieldDescriptor]:
        # Descriptors run up to the terminator, which should be the last
        # byte of the header
        fields = []
        while dbf.tell() < header.header_length:
            first = dbf.read(1)
            if first in (DBF_HEADER_TERMINATOR, b""):
                break
            data = first + dbf.read(DBF_FIELD_LENGTH - 1)
            if len(data) < DBF_FIELD_LENGTH:
                raise ShapefileException(
                    "Dbf field descriptor is truncated. (likely corrupt?)"
                )
            fields.append(
                FieldDescriptor.from_bytes(data, self.encoding, self.encodingErrors)
            )
        return fields

    def _parse_record(
        self, data: bytes, fields: list[FieldDescriptor], record_length: int
    ) -> AttributeRow | None:
        """Parses a dbf record into a dict of field name to value.
        Returns None for deleted records."""
        if len(data) < record_length:
            raise ShapefileRecordError(
                f"expected {record_length} bytes, found {len(data)}"
            )

        # deletion flag comes first
        if data[:1] == DBF_DELETED:
            return None

        row: AttributeRow = {}
        pos = 1
        for field in fields:
            value = data[pos : pos + field.size]
            pos += field.size
            try:
                row[field.name] = self._parse_value(field, value)
            except (ValueError, error) as e:
                raise ShapefileRecordError(
                    f"field {field.name!r} could not be read: {e}"
                ) from e
        return row

    def _parse_value(self, field: FieldDescriptor, value: bytes) -> RecordValue:
        typ = field.field_type
        if typ is FieldType.N or typ is FieldType.F:
            # numeric or float: number stored as a string, right justified, and padded with blanks to the width of the field.
            value = value.split(b"\0")[0].strip()
            if not value.strip(b"*"):
                # blank, or QGIS NULL which is all '*' chars
                return None
            if field.decimal or typ is FieldType.F:
                try:
                    return float(value)
                except ValueError:
                    return None
            try:
                # first try to force directly to int.
                # forcing a large int to float and back to int
                # will lose information and result in wrong nr.
                return int(value)
            except ValueError:
                # forcing directly to int failed, so was probably a float.
                try:
                    return int(float(value))
                except (ValueError, OverflowError):
                    return None

        if typ is FieldType.D:
            # date: 8 bytes - date stored as a string in the format YYYYMMDD.
            value = value.strip()
            if len(value) != 8 or not value.isdigit():
                return None
            try:
                return date(int(value[:4]), int(value[4:6]), int(value[6:8]))
            except ValueError:
                return None

        if typ is FieldType.L:
            # logical: 1 byte - initialized to 0x20 (space) otherwise T or F.
            value = value.strip().upper()
            if value in (b"T", b"Y", b"1"):
                return True
            if value in (b"F", b"N", b"0"):
                return False
            return None

        text = value.decode(self.encoding, self.encodingErrors)
        text = text.replace("\x00", "").strip()
        return text or None

    # Geometry

    def _iter_features(
        self, shp: IO[bytes], header: ShapefileHeader, rows: list[AttributeRow]
    ) -> Iterator[Outcome]:
        """Yields each geometry record of the .shp file as a feature, or as
        a warning when the record cannot be decoded. Attribute rows are
        matched to records by position."""
        file_length = header.file_length_bytes
        index = 0
        while shp.tell() < file_length:
            try:
                recNum, recLength = unpack_record_header(
                    shp.read(RECORD_HEADER_LENGTH)
                )
            except EOFError:
                break

            # Convert from num of 16 bit words, to 8 bit bytes
            recLength_bytes = 2 * recLength
            if recLength_bytes < 0:
                yield None, f"Record {index + 1} has a negative content length."
                break

            # Read entire record into memory to avoid having to call
            # seek on the file afterwards
            content = shp.read(recLength_bytes)
            if len(content) < recLength_bytes:
                yield None, (
                    f"Record {index + 1} is truncated: expected {recLength_bytes} "
                    f"bytes, found {len(content)}."
                )
                break

            try:
                feature = self._decode_record(recNum, content, header.shape_type)
            except ShapefileRecordError as e:
                yield None, f"Failed to read record {index + 1}: {e}"
            else:
                if index < len(rows):
                    feature.attributes = dict(rows[index])
                yield feature, None
            index += 1

        if len(rows) > index:
            yield None, (
                f"The dbf file has {len(rows)} attribute records "
                f"but only {index} geometry records were found."
            )

    @staticmethod
    def _decode_record(recNum: int, content: bytes, collectionType: int) -> Feature:
        b_io = io.BytesIO(content)
        try:
            (shapeType,) = unpack("<i", b_io.read(4))
        except error:
            raise ShapefileRecordError("record is too short to hold a shape type.")

        ShapeRecord = SHAPE_RECORD_FROM_SHAPETYPE.get(shapeType)
        if ShapeRecord is None:
            raise ShapefileRecordError(f"Unsupported shape type {shapeType}.")
        if not shape_types_compatible(collectionType, shapeType):
            raise ShapefileRecordError(
                f"Shape type {SHAPETYPE_LOOKUP[shapeType]} does not match the "
                f"shapefile's type {SHAPETYPE_LOOKUP.get(collectionType, collectionType)}."
            )

        try:
            geometry, bbox = ShapeRecord.from_byte_stream(shapeType, b_io)
        except (error, ValueError) as e:
            raise ShapefileRecordError(str(e)) from e

        return Feature(geometry, shape_type=shapeType, record_number=recNum, bbox=bbox)


def read(path: PathT, **options: Any) -> FeatureCollection:
    """Reads the shapefile at path. Options are passed on to Reader."""
    return Reader(path, **options).read()
