"""Package index (``/{name}/package.json``) parsing and merging."""

from __future__ import annotations

import json

from pubdist.core.structured import ObjList, StrDict, as_obj_list, as_str_dict
from pubdist.services.deploy.entry import PublishedEntry

__all__ = ["load_index", "parse_index", "merge_entry", "dump_index"]


def load_index(text: str) -> StrDict | None:
    """Decode index JSON; None if it is not a JSON object."""
    try:
        data_obj: object = json.loads(text)
    except json.JSONDecodeError:
        return None
    return as_str_dict(data_obj)


def parse_index(text: str | None) -> StrDict:
    """Parse an existing index, falling back to ``{}``.

    Missing content, invalid JSON and non-object roots all yield an empty
    index; the caller rebuilds it from the new entry.
    """
    if text is None:
        return {}
    return load_index(text) or {}


def _entry_version(item: object) -> object:
    entry = as_str_dict(item)
    if entry is None:
        return None
    return entry.get("version")


def merge_entry(index: StrDict, entry: PublishedEntry, *, name: str, set_latest: bool) -> StrDict:
    """Return a copy of ``index`` with ``entry`` recorded.

    The first ``versions`` item with the same version string is replaced;
    otherwise the entry is appended. Unknown top-level keys are kept.
    """
    merged: StrDict = dict(index)
    record = entry.to_dict()

    merged["name"] = name
    if set_latest:
        merged["latest"] = record

    versions: ObjList = list(as_obj_list(merged.get("versions")) or [])
    for i, item in enumerate(versions):
        if _entry_version(item) == entry.version:
            versions[i] = record
            break
    else:
        versions.append(record)
    merged["versions"] = versions
    return merged


def dump_index(index: StrDict) -> str:
    return json.dumps(index, ensure_ascii=False, separators=(",", ":"), default=str)
