from __future__ import annotations

import json

import pytest

from pubdist.services.deploy.entry import PublishedEntry
from pubdist.services.deploy.index import dump_index, load_index, merge_entry, parse_index


def _entry(version: str, published: str = "2026-01-01T00:00:00.000Z") -> PublishedEntry:
    return PublishedEntry(
        version=version,
        pubspec={"version": version, "name": "foo"},
        archive_url=f"https://dist.mpflutter.com/foo/versions/{version}.tar.gz",
        published=published,
    )


class TestParseIndex:
    @pytest.mark.parametrize("text", [None, "", "not json", "[1, 2]", '"str"', "null"])
    def test_falls_back_to_empty(self, text: str | None) -> None:
        assert parse_index(text) == {}

    def test_object(self) -> None:
        assert parse_index('{"name": "foo"}') == {"name": "foo"}

    def test_load_index_distinguishes_malformed(self) -> None:
        assert load_index("{}") == {}
        assert load_index("{oops") is None


class TestMergeEntry:
    def test_empty_index(self) -> None:
        merged = merge_entry({}, _entry("1.0.0"), name="foo", set_latest=True)
        assert merged["name"] == "foo"
        assert merged["latest"] == _entry("1.0.0").to_dict()
        assert merged["versions"] == [_entry("1.0.0").to_dict()]

    def test_same_version_is_replaced(self) -> None:
        index = {"name": "foo", "versions": [_entry("1.0.0").to_dict()]}
        newer = _entry("1.0.0", published="2026-02-02T00:00:00.000Z")

        merged = merge_entry(index, newer, name="foo", set_latest=True)

        assert merged["versions"] == [newer.to_dict()]

    def test_new_version_is_appended(self) -> None:
        old = _entry("1.0.0").to_dict()
        index = {"name": "foo", "versions": [old]}

        merged = merge_entry(index, _entry("1.1.0"), name="foo", set_latest=True)

        assert merged["versions"] == [old, _entry("1.1.0").to_dict()]
        assert merged["latest"]["version"] == "1.1.0"  # type: ignore[index]

    def test_only_first_duplicate_is_replaced(self) -> None:
        dup = {"version": "1.0.0", "archive_url": "old"}
        index = {"versions": [dup, dict(dup)]}

        merged = merge_entry(index, _entry("1.0.0"), name="foo", set_latest=True)

        assert merged["versions"] == [_entry("1.0.0").to_dict(), dup]

    def test_without_latest_keeps_previous_latest(self) -> None:
        previous = _entry("1.0.0").to_dict()
        index = {"name": "foo", "latest": previous, "versions": [previous]}

        merged = merge_entry(index, _entry("0.0.1-master"), name="foo", set_latest=False)

        assert merged["latest"] == previous
        assert [v["version"] for v in merged["versions"]] == ["1.0.0", "0.0.1-master"]  # type: ignore[index, union-attr]

    def test_without_latest_on_empty_index(self) -> None:
        merged = merge_entry({}, _entry("0.0.1-master"), name="foo", set_latest=False)
        assert "latest" not in merged

    def test_non_list_versions_is_reset(self) -> None:
        merged = merge_entry({"versions": "junk"}, _entry("1.0.0"), name="foo", set_latest=True)
        assert merged["versions"] == [_entry("1.0.0").to_dict()]

    def test_unknown_keys_and_foreign_items_are_kept(self) -> None:
        index = {"name": "old", "extra": 1, "versions": ["weird", {"no_version": True}]}
        merged = merge_entry(index, _entry("1.0.0"), name="foo", set_latest=True)
        assert merged["extra"] == 1
        assert merged["name"] == "foo"
        assert merged["versions"] == ["weird", {"no_version": True}, _entry("1.0.0").to_dict()]

    def test_input_not_mutated(self) -> None:
        versions = [_entry("1.0.0").to_dict()]
        index = {"versions": versions}
        merge_entry(index, _entry("1.1.0"), name="foo", set_latest=True)
        assert len(versions) == 1
        assert "name" not in index


def test_dump_index_is_compact_json() -> None:
    text = dump_index({"name": "föo", "versions": []})
    assert text == '{"name":"föo","versions":[]}'
    assert json.loads(text) == {"name": "föo", "versions": []}
