"""
Fixed-size headers of the shapefile constituent files.

The .shp and .shx files share one 100 byte header whose integers are
partly big-endian and partly little-endian, while the record headers of
the .shp file and the entries of the .shx file are big-endian. The byte
order of every field follows the ESRI specification exactly.
"""

from __future__ import annotations

import datetime
from struct import Struct, error
from typing import NamedTuple

from .constants import (
    DBF_HEADER_LENGTH,
    DBF_VERSION,
    FILE_CODE,
    HEADER_LENGTH,
    RECORD_HEADER_LENGTH,
    VERSION,
)
from .exceptions import ShapefileException, ShapefileFormatError
from .geometry import LLBox
from .helpers import pack_2_int32_be, unpack_2_int32_be

# File code, 5 unused ints, file length
_FILE_CODE_AND_LENGTH = Struct(">7i")
# Version, shape type, xmin, ymin, xmax, ymax, zmin, zmax, mmin, mmax
_VERSION_TYPE_AND_BOXES = Struct("<2i8d")

_DBF_HEADER = Struct("<BBBBIHH20x")


class ShapefileHeader(NamedTuple):
    """The main file header of a .shp or .shx file."""

    file_length: int  # in 16-bit words, including the header itself
    shape_type: int
    bbox: LLBox
    zbox: tuple[float, float] = (0.0, 0.0)
    mbox: tuple[float, float] = (0.0, 0.0)
    version: int = VERSION

    @property
    def file_length_bytes(self) -> int:
        return self.file_length * 2

    def to_bytes(self) -> bytes:
        try:
            return _FILE_CODE_AND_LENGTH.pack(
                FILE_CODE, 0, 0, 0, 0, 0, self.file_length
            ) + _VERSION_TYPE_AND_BOXES.pack(
                self.version, self.shape_type, *self.bbox, *self.zbox, *self.mbox
            )
        except error as e:
            raise ShapefileException(
                f"Failed to write shapefile header. Floats required. ({e})"
            )

    @classmethod
    def from_bytes(cls, data: bytes) -> ShapefileHeader:
        if len(data) < HEADER_LENGTH:
            raise ShapefileFormatError(
                f"Shapefile header is {len(data)} bytes long, expected {HEADER_LENGTH}."
            )
        file_code, *__unused, file_length = _FILE_CODE_AND_LENGTH.unpack(data[:28])
        if file_code != FILE_CODE:
            raise ShapefileFormatError(
                f"Invalid shapefile: expected file code {FILE_CODE}, got {file_code}."
            )
        version, shape_type, *boxes = _VERSION_TYPE_AND_BOXES.unpack(
            data[28:HEADER_LENGTH]
        )
        return cls(
            file_length=file_length,
            shape_type=shape_type,
            bbox=LLBox(*boxes[:4]),
            zbox=(boxes[4], boxes[5]),
            mbox=(boxes[6], boxes[7]),
            version=version,
        )


def pack_record_header(record_number: int, content_length: int) -> bytes:
    """Record number and content length (in 16-bit words), both big-endian."""
    return pack_2_int32_be(record_number, content_length)


def unpack_record_header(data: bytes) -> tuple[int, int]:
    if len(data) < RECORD_HEADER_LENGTH:
        raise EOFError("End of file reached inside a record header.")
    return unpack_2_int32_be(data)


def pack_index_entry(offset: int, content_length: int) -> bytes:
    """An .shx entry: the record offset and content length, in 16-bit words."""
    try:
        return pack_2_int32_be(offset, content_length)
    except error:
        raise ShapefileException(
            "The .shp file has reached its file size limit > 4294967294 bytes (4.29 GB). "
            "To fix this, break up your file into multiple smaller ones."
        )


class DbfHeader(NamedTuple):
    """The leading 32 bytes of a dBASE III file."""

    num_records: int
    header_length: int
    record_length: int
    last_update: datetime.date | None = None
    version: int = DBF_VERSION

    def to_bytes(self) -> bytes:
        last_update = self.last_update or datetime.date.today()
        return _DBF_HEADER.pack(
            self.version,
            last_update.year - 1900,
            last_update.month,
            last_update.day,
            self.num_records,
            self.header_length,
            self.record_length,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> DbfHeader:
        if len(data) < DBF_HEADER_LENGTH:
            raise ShapefileException(
                f"Dbf header is {len(data)} bytes long, expected {DBF_HEADER_LENGTH}."
            )
        version, year, month, day, num_records, header_length, record_length = (
            _DBF_HEADER.unpack(data[:DBF_HEADER_LENGTH])
        )
        try:
            last_update: datetime.date | None = datetime.date(1900 + year, month, day)
        except ValueError:
            last_update = None
        return cls(
            num_records=num_records,
            header_length=header_length,
            record_length=record_length,
            last_update=last_update,
            version=version,
        )
