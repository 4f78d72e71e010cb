from __future__ import annotations

import os
from os import PathLike
from struct import Struct
from typing import Any, overload

from .exceptions import ShapefileArgumentError
from .types import PathT

# Helpers

unpack_2_int32_be = Struct(">2i").unpack
pack_2_int32_be = Struct(">2i").pack


@overload
def fsdecode_if_pathlike(path: PathLike[Any]) -> str: ...
@overload
def fsdecode_if_pathlike(path: Any) -> Any: ...
def fsdecode_if_pathlike(path: Any) -> Any:
    if isinstance(path, PathLike):
        return os.fsdecode(path)  # str

    return path


def shapefile_base_name(path: PathT | None) -> str:
    """Returns the path with any extension removed, which is the name
    shared by all constituent files of a shapefile."""
    if path is None:
        raise ShapefileArgumentError("Path cannot be None.")
    path = fsdecode_if_pathlike(path)
    if not isinstance(path, str):
        raise TypeError(
            f"The shapefile path {path!r} must be of type str or path-like, not {type(path)}."
        )
    if not path.strip():
        raise ShapefileArgumentError("Path cannot be empty.")
    return os.path.splitext(path)[0]


def find_constituent_file(base_name: str, ext: str) -> str | None:
    """
    Finds the .shp, .shx, .dbf or .prj file belonging to base_name, with
    the extension matched case-insensitively: lower case first, then upper
    case, then any other casing found in the directory.
    Returns None if no such file exists.
    """
    for cased_ext in (ext.lower(), ext.upper()):
        candidate = f"{base_name}.{cased_ext}"
        if os.path.isfile(candidate):
            return candidate

    directory, stem = os.path.split(base_name)
    try:
        names = os.listdir(directory or ".")
    except OSError:
        return None
    wanted = f"{stem}.{ext}".lower()
    for name in sorted(names):
        if name.startswith(stem) and name.lower() == wanted:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                return candidate
    return None
