from __future__ import annotations

import numbers
from datetime import date
from decimal import Decimal
from os import PathLike
from typing import Any, Final, Literal, Optional, Protocol, Union

## Custom type variables

Point2D = tuple[float, float]
PointsT = list[Point2D]

PathT = Union[str, PathLike[Any]]


class WriteableBinStream(Protocol):
    def write(self, b: bytes) -> int: ...


class ReadSeekableBinStream(Protocol):
    def seek(self, offset: int, whence: int = 0) -> int: ...
    def tell(self) -> int: ...
    def read(self, size: int = -1) -> bytes: ...


FieldTypeT = Literal["C", "D", "F", "L", "N"]


# https://en.wikipedia.org/wiki/.dbf#Database_records
class FieldType:
    """A bare bones 'enum', as the enum library noticeably slows performance."""

    C: Final = "C"  # "Character"  # (str)
    D: Final = "D"  # "Date"
    F: Final = "F"  # "Floating point"
    L: Final = "L"  # "Logical"  # (bool)
    N: Final = "N"  # "Numeric"  # (int, or float when decimal > 0)
    __members__: set[FieldTypeT] = {
        "C",
        "D",
        "F",
        "L",
        "N",
    }


FIELD_TYPE_ALIASES: dict[str | bytes, FieldTypeT] = {}
for c in FieldType.__members__:
    FIELD_TYPE_ALIASES[c.upper()] = c
    FIELD_TYPE_ALIASES[c.lower()] = c
    FIELD_TYPE_ALIASES[c.encode("ascii").lower()] = c
    FIELD_TYPE_ALIASES[c.encode("ascii").upper()] = c


AttributeTypeT = Literal["Integer", "Double", "Boolean", "Date", "String"]


class AttributeType:
    """The closed set of value kinds an attribute can carry. A missing
    value (None) has no kind."""

    INTEGER: Final = "Integer"
    DOUBLE: Final = "Double"
    BOOLEAN: Final = "Boolean"
    DATE: Final = "Date"
    STRING: Final = "String"
    __members__: set[AttributeTypeT] = {
        "Integer",
        "Double",
        "Boolean",
        "Date",
        "String",
    }

    NUMERIC: Final = frozenset(["Integer", "Double"])

    @staticmethod
    def of(value: Any) -> AttributeTypeT | None:
        """Classifies a python value. bool is tested before int, as bool
        subclasses int, and datetime counts as a Date. Anything outside
        the closed set is treated as a String and stringified on write."""
        if value is None:
            return None
        if isinstance(value, bool):
            return AttributeType.BOOLEAN
        if isinstance(value, numbers.Integral):
            return AttributeType.INTEGER
        if isinstance(value, (numbers.Real, Decimal)):
            return AttributeType.DOUBLE
        if isinstance(value, date):
            return AttributeType.DATE
        return AttributeType.STRING


ATTRIBUTE_TYPE_TO_PYTHON: dict[str, type] = {
    AttributeType.INTEGER: int,
    AttributeType.DOUBLE: float,
    AttributeType.BOOLEAN: bool,
    AttributeType.DATE: date,
    AttributeType.STRING: str,
}

# A possible value in a dbf record, i.e. N, F, L, C, or D types
RecordValueNotDate = Union[bool, int, float, str]
RecordValue = Optional[Union[RecordValueNotDate, date]]
