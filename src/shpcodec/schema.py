from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from struct import Struct
from typing import Any, NamedTuple

from .constants import DBF_MAX_FIELD_SIZE, DBF_MAX_NAME_LENGTH
from .exceptions import ShapefileException
from .types import (
    ATTRIBUTE_TYPE_TO_PYTHON,
    FIELD_TYPE_ALIASES,
    AttributeType,
    AttributeTypeT,
    FieldType,
    FieldTypeT,
)

_FIELD_DESCRIPTOR = Struct("<11sc4xBB14x")

# Default sizes of inferred numeric columns
INTEGER_SIZE = 11
DOUBLE_SIZE = 19
DOUBLE_DECIMAL = 11


def truncate_field_name(name: str) -> str:
    """Truncates a field name to the dbf maximum of 11 characters.
    An empty name becomes 'FIELD'."""
    if not name:
        return "FIELD"
    return name[:DBF_MAX_NAME_LENGTH]


class FieldDescriptor(NamedTuple):
    """A column of the dbf file."""

    name: str
    field_type: FieldTypeT
    size: int
    decimal: int

    @classmethod
    def from_unchecked(
        cls,
        name: str,
        field_type: str | bytes | FieldTypeT = "C",
        size: int = 50,
        decimal: int = 0,
    ) -> FieldDescriptor:
        try:
            type_ = FIELD_TYPE_ALIASES[field_type]
        except KeyError:
            raise ShapefileException(
                f"field_type must be in {sorted(FieldType.__members__)}. Got: {field_type=}. "
            )

        size = int(size)
        decimal = int(decimal)
        if type_ is FieldType.D:
            size = 8
            decimal = 0
        elif type_ is FieldType.L:
            size = 1
            decimal = 0
        elif type_ is FieldType.C:
            decimal = 0

        if not 1 <= size <= DBF_MAX_FIELD_SIZE:
            raise ShapefileException(
                f"Field {name!r} size must be between 1 and {DBF_MAX_FIELD_SIZE}. Got: {size}"
            )
        if decimal < 0 or (decimal and decimal >= size):
            raise ShapefileException(
                f"Field {name!r} decimal count must be less than its size. Got: {decimal=}, {size=}"
            )

        return cls(
            name=truncate_field_name(str(name)),
            field_type=type_,
            size=size,
            decimal=decimal,
        )

    @classmethod
    def from_python_type(
        cls, name: str, type_: type, max_length: int = DBF_MAX_FIELD_SIZE
    ) -> FieldDescriptor:
        """Infers the dbf column for values of a python type."""
        # bool first, it subclasses int
        if issubclass(type_, bool):
            return cls(truncate_field_name(name), FieldType.L, 1, 0)
        if issubclass(type_, int):
            return cls(truncate_field_name(name), FieldType.N, INTEGER_SIZE, 0)
        if issubclass(type_, float):
            return cls(truncate_field_name(name), FieldType.N, DOUBLE_SIZE, DOUBLE_DECIMAL)
        if issubclass(type_, date):
            return cls(truncate_field_name(name), FieldType.D, 8, 0)
        size = max(1, min(max_length, DBF_MAX_FIELD_SIZE))
        return cls(truncate_field_name(name), FieldType.C, size, 0)

    @property
    def python_type(self) -> type:
        """The python type of the values read from this column."""
        if self.field_type == FieldType.N:
            return float if self.decimal > 0 else int
        if self.field_type == FieldType.F:
            return float
        if self.field_type == FieldType.L:
            return bool
        if self.field_type == FieldType.D:
            return date
        return str

    def to_bytes(self, encoding: str = "ascii", encodingErrors: str = "strict") -> bytes:
        encoded_name = self.name.encode(encoding, encodingErrors)
        encoded_name = encoded_name.replace(b" ", b"_")
        encoded_name = encoded_name[:DBF_MAX_NAME_LENGTH].ljust(
            DBF_MAX_NAME_LENGTH, b"\x00"
        )
        return _FIELD_DESCRIPTOR.pack(
            encoded_name,
            self.field_type.encode("ascii"),
            self.size,
            self.decimal,
        )

    @classmethod
    def from_bytes(
        cls, data: bytes, encoding: str = "ascii", encodingErrors: str = "strict"
    ) -> FieldDescriptor:
        encoded_name, encoded_type_char, size, decimal = _FIELD_DESCRIPTOR.unpack(data)
        if b"\x00" in encoded_name:
            encoded_name = encoded_name[: encoded_name.index(b"\x00")]
        name = encoded_name.decode(encoding, encodingErrors).strip()
        # Unsupported column types (e.g. memo) are read as character data
        field_type = FIELD_TYPE_ALIASES.get(encoded_type_char, FieldType.C)
        return cls(name, field_type, size, decimal)

    def __repr__(self) -> str:
        return f'FieldDescriptor(name="{self.name}", field_type=FieldType.{self.field_type}, size={self.size}, decimal={self.decimal})'


def format_attribute(value: Any) -> str:
    """The general text form of a value: dates as YYYYMMDD,
    booleans as T or F, numbers in their shortest round-trip form."""
    if value is None:
        return ""
    kind = AttributeType.of(value)
    if kind == AttributeType.DATE:
        return f"{value.year:04d}{value.month:02d}{value.day:02d}"
    if kind == AttributeType.BOOLEAN:
        return "T" if value else "F"
    if kind == AttributeType.DOUBLE:
        return repr(float(value))
    return str(value)


def promote(existing: AttributeTypeT, new: AttributeTypeT) -> AttributeTypeT:
    """The type a column takes when it holds values of both types."""
    if existing == new:
        return existing
    if existing in AttributeType.NUMERIC and new in AttributeType.NUMERIC:
        return AttributeType.DOUBLE
    return AttributeType.STRING


class _ColumnStats:
    """Running type and width of one attribute key."""

    __slots__ = ("kind", "width", "integer_width", "double_width")

    def __init__(self) -> None:
        self.kind: AttributeTypeT | None = None
        self.width = 1
        self.integer_width = 0
        self.double_width = 0

    def add(self, value: Any, encoding: str, encodingErrors: str) -> None:
        kind = AttributeType.of(value)
        if kind is None:
            return
        self.kind = kind if self.kind is None else promote(self.kind, kind)
        text = format_attribute(value).encode(encoding, encodingErrors)
        self.width = max(self.width, len(text))
        if kind == AttributeType.INTEGER:
            self.integer_width = max(self.integer_width, len(str(int(value))))
        if kind in AttributeType.NUMERIC:
            text = format(float(value), f".{DOUBLE_DECIMAL}f")
            if len(text) > DBF_MAX_FIELD_SIZE:
                # written in exponent form instead
                text = repr(float(value))
            self.double_width = max(self.double_width, len(text))

    def descriptor(self, name: str) -> FieldDescriptor:
        if self.kind is None:
            # Only ever None
            return FieldDescriptor(name, FieldType.C, 1, 0)
        field = FieldDescriptor.from_python_type(
            name, ATTRIBUTE_TYPE_TO_PYTHON[self.kind], self.width
        )
        if self.kind == AttributeType.INTEGER:
            size = max(field.size, self.integer_width)
        elif self.kind == AttributeType.DOUBLE:
            size = max(field.size, self.double_width)
        else:
            return field
        return field._replace(size=min(size, DBF_MAX_FIELD_SIZE))


def infer_fields(
    attribute_rows: Iterable[Mapping[str, Any]],
    encoding: str = "utf-8",
    encodingErrors: str = "strict",
) -> dict[str, FieldDescriptor]:
    """
    Infers the dbf columns for a sequence of attribute dicts.

    Returns an ordered dict mapping each attribute key (in first seen
    order) to its column. The type of a column is seeded by its first
    non-null value: integers mixed with doubles become doubles, any other
    mix becomes a string column. Columns are sized to their widest value.
    Keys that become equal when truncated to the dbf name limit are made
    unique with a numeric suffix.
    """
    stats: dict[str, _ColumnStats] = {}
    for row in attribute_rows:
        for key, value in row.items():
            column = stats.get(key)
            if column is None:
                column = stats[key] = _ColumnStats()
            column.add(value, encoding, encodingErrors)

    fields: dict[str, FieldDescriptor] = {}
    used_names: set[str] = set()
    for key, column in stats.items():
        name = _unique_name(truncate_field_name(key), used_names)
        used_names.add(name)
        fields[key] = column.descriptor(name)
    return fields


def _unique_name(name: str, used_names: set[str]) -> str:
    if name not in used_names:
        return name
    n = 1
    while True:
        suffix = str(n)
        candidate = name[: DBF_MAX_NAME_LENGTH - len(suffix)] + suffix
        if candidate not in used_names:
            return candidate
        n += 1
