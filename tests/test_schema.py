"""
This module tests dbf field descriptors and attribute type inference.
"""

import datetime
from decimal import Decimal

import pytest

from shpcodec import AttributeType, FieldDescriptor, ShapefileException
from shpcodec.schema import (
    format_attribute,
    infer_fields,
    promote,
    truncate_field_name,
)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("short", "short"),
        ("exactly_11c", "exactly_11c"),
        ("a_very_long_name", "a_very_long"),
        ("", "FIELD"),
    ],
)
def test_truncate_field_name(name, expected):
    assert truncate_field_name(name) == expected


@pytest.mark.parametrize(
    "args,expected",
    [
        (("WHEN", "D", 20, 3), ("WHEN", "D", 8, 0)),
        (("OK", "L", 20, 3), ("OK", "L", 1, 0)),
        (("TEXT", "C", 20, 3), ("TEXT", "C", 20, 0)),
        (("VALUE", "n", 10, 2), ("VALUE", "N", 10, 2)),
        (("VALUE", b"F", 19, 11), ("VALUE", "F", 19, 11)),
        (("a_very_long_name", "C", 5, 0), ("a_very_long", "C", 5, 0)),
    ],
)
def test_field_from_unchecked(args, expected):
    assert FieldDescriptor.from_unchecked(*args) == expected


@pytest.mark.parametrize(
    "args",
    [
        ("X", "X", 10, 0),  # unknown type
        ("C", "C", 0, 0),  # too small
        ("C", "C", 255, 0),  # too large
        ("N", "N", 5, 5),  # no room for the integer part
        ("N", "N", 5, -1),
    ],
)
def test_field_from_unchecked_invalid(args):
    with pytest.raises(ShapefileException):
        FieldDescriptor.from_unchecked(*args)


@pytest.mark.parametrize(
    "type_,expected",
    [
        (int, ("F", "N", 11, 0)),
        (float, ("F", "N", 19, 11)),
        (bool, ("F", "L", 1, 0)),
        (datetime.date, ("F", "D", 8, 0)),
        (datetime.datetime, ("F", "D", 8, 0)),
        (str, ("F", "C", 254, 0)),
    ],
)
def test_field_from_python_type(type_, expected):
    assert FieldDescriptor.from_python_type("F", type_) == expected


def test_field_from_python_type_sized_string():
    assert FieldDescriptor.from_python_type("F", str, 10).size == 10
    assert FieldDescriptor.from_python_type("F", str, 1000).size == 254


@pytest.mark.parametrize(
    "field_type,decimal,expected",
    [
        ("C", 0, str),
        ("N", 0, int),
        ("N", 2, float),
        ("F", 0, float),
        ("L", 0, bool),
        ("D", 0, datetime.date),
    ],
)
def test_field_python_type(field_type, decimal, expected):
    field = FieldDescriptor.from_unchecked("F", field_type, 10, decimal)
    assert field.python_type is expected


def test_field_descriptor_bytes():
    """
    Assert that a field descriptor is packed into
    32 bytes with a nul padded name, and unpacked again.
    """
    field = FieldDescriptor.from_unchecked("NAME", "N", 12, 3)
    data = field.to_bytes()
    assert len(data) == 32
    assert data[:11] == b"NAME\x00\x00\x00\x00\x00\x00\x00"
    assert data[11:12] == b"N"
    assert data[16] == 12
    assert data[17] == 3
    assert FieldDescriptor.from_bytes(data) == field


def test_field_descriptor_unknown_type_read_as_character():
    data = FieldDescriptor.from_unchecked("MEMO", "C", 10).to_bytes()
    data = data[:11] + b"M" + data[12:]
    assert FieldDescriptor.from_bytes(data).field_type == "C"


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, AttributeType.BOOLEAN),
        (False, AttributeType.BOOLEAN),
        (1, AttributeType.INTEGER),
        (1.5, AttributeType.DOUBLE),
        (Decimal("1.5"), AttributeType.DOUBLE),
        (datetime.date(2024, 1, 1), AttributeType.DATE),
        (datetime.datetime(2024, 1, 1, 12, 30), AttributeType.DATE),
        ("x", AttributeType.STRING),
        ([1, 2], AttributeType.STRING),
        (None, None),
    ],
)
def test_attribute_type_of(value, expected):
    assert AttributeType.of(value) == expected


@pytest.mark.parametrize(
    "existing,new,expected",
    [
        (AttributeType.INTEGER, AttributeType.INTEGER, AttributeType.INTEGER),
        (AttributeType.INTEGER, AttributeType.DOUBLE, AttributeType.DOUBLE),
        (AttributeType.DOUBLE, AttributeType.INTEGER, AttributeType.DOUBLE),
        (AttributeType.INTEGER, AttributeType.STRING, AttributeType.STRING),
        (AttributeType.BOOLEAN, AttributeType.INTEGER, AttributeType.STRING),
        (AttributeType.DATE, AttributeType.DOUBLE, AttributeType.STRING),
        (AttributeType.DATE, AttributeType.DATE, AttributeType.DATE),
    ],
)
def test_promote(existing, new, expected):
    assert promote(existing, new) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (datetime.date(2024, 1, 31), "20240131"),
        (True, "T"),
        (False, "F"),
        (0.1, "0.1"),
        (42, "42"),
        ("text", "text"),
        (None, ""),
    ],
)
def test_format_attribute(value, expected):
    assert format_attribute(value) == expected


def test_infer_fields():
    """
    Assert that columns are inferred in first seen key order,
    with their type seeded by the first value and promoted
    by later ones.
    """
    rows = [
        {"a": 1, "b": "hello"},
        {"a": 2.5, "b": None, "c": True},
        {"d": datetime.date(2024, 1, 1)},
    ]
    fields = infer_fields(rows)
    assert list(fields) == ["a", "b", "c", "d"]
    assert fields["a"] == ("a", "N", 19, 11)
    assert fields["b"] == ("b", "C", 5, 0)
    assert fields["c"] == ("c", "L", 1, 0)
    assert fields["d"] == ("d", "D", 8, 0)


def test_infer_fields_mixed_types_become_strings():
    fields = infer_fields([{"v": 12}, {"v": "abc"}, {"v": True}])
    assert fields["v"] == ("v", "C", 3, 0)


def test_infer_fields_only_none():
    assert infer_fields([{"x": None}, {"x": None}])["x"] == ("x", "C", 1, 0)


def test_infer_fields_widens_numbers():
    fields = infer_fields([{"big": 10**15, "huge": 1e12}])
    assert fields["big"] == ("big", "N", 16, 0)
    # 13 integer digits, the point, and 11 decimals
    assert fields["huge"] == ("huge", "N", 25, 11)


def test_infer_fields_huge_double_fits():
    """
    Assert that a double too wide for fixed point
    is sized by its exponent form.
    """
    fields = infer_fields([{"x": 1e250}, {"x": 1.5}])
    assert fields["x"] == ("x", "N", 19, 11)


def test_infer_fields_width_in_encoded_bytes():
    assert infer_fields([{"s": "héllo"}])["s"].size == 6
    assert infer_fields([{"s": "héllo"}], encoding="latin-1")["s"].size == 5


def test_infer_fields_unique_names():
    fields = infer_fields(
        [{"temperature_min": 1, "temperature_max": 2, "temperature_avg": 3}]
    )
    assert [field.name for field in fields.values()] == [
        "temperature",
        "temperatur1",
        "temperatur2",
    ]
