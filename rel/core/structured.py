"""Helpers for reading untyped TOML/JSON structures.

Action declarations arrive as loosely typed tables. These helpers narrow
them at the boundary so the rest of the code works with real types.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], *keys: str) -> str | None:
    """Get the first non-empty string found under any of ``keys``.

    Whitespace is stripped; empty strings count as missing. Passing several
    keys lets callers accept both the snake_case and camelCase spellings.
    """
    for key in keys:
        value = table.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def get_bool(table: Mapping[str, object], *keys: str, default: bool = False) -> bool:
    """Get the first boolean found under any of ``keys``."""
    for key in keys:
        value = table.get(key)
        if isinstance(value, bool):
            return value
    return default


def get_table(table: Mapping[str, object], *keys: str) -> StrDict | None:
    for key in keys:
        value = as_str_dict(table.get(key))
        if value is not None:
            return value
    return None


def get_list(table: Mapping[str, object], *keys: str) -> ObjList | None:
    for key in keys:
        value = as_obj_list(table.get(key))
        if value is not None:
            return value
    return None
