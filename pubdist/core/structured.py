"""Helpers for safely working with dynamic (untyped) structures.

Use these at the boundaries where pubspec YAML or the remote package index
JSON is ingested. They validate at runtime and narrow types statically.
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


def get_nonempty_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value from a mapping exactly as written.

    Returns None if missing, not a str, or empty. The value is not stripped,
    so a folded YAML block keeps its trailing newline. Numbers are not
    coerced; ``sdk: 2`` in YAML is not a version constraint.
    """
    value = table.get(key)
    if not isinstance(value, str) or not value:
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Get a nested mapping with string keys."""
    return as_str_dict(table.get(key))
