from __future__ import annotations

import json
import tarfile
from datetime import UTC, datetime
from pathlib import Path

import pytest
import yaml

from pubdist.core.config import DEV_VERSION, CosConfig, DeployConfig
from pubdist.core.result import Err, Ok
from pubdist.output.console import MockConsole
from pubdist.services.deploy.deployer import PackageDeployer
from pubdist.storage.cos import MockObjectStore

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


def _package(tmp_path: Path, version: str = "0.0.1") -> Path:
    pkg = tmp_path / "pkg"
    (pkg / "lib").mkdir(parents=True)
    (pkg / "pubspec.yaml").write_text(
        f"name: foo\nversion: {version}\nenvironment:\n  sdk: '>=2.12.0 <3.0.0'\n",
        encoding="utf-8",
    )
    (pkg / "lib" / "foo.dart").write_text("library foo;\n", encoding="utf-8")
    return pkg


def _config(tmp_path: Path, pkg: Path, version: str = "2.0.0") -> DeployConfig:
    return DeployConfig(
        cos=CosConfig(secret_id="id", secret_key="key", bucket="dist-1", region="ap-guangzhou"),
        package_name="foo",
        package_path=pkg,
        version=version,
        work_dir=tmp_path / "work",
    )


def _deployer(
    tmp_path: Path,
    *,
    version: str = "2.0.0",
    store: MockObjectStore | None = None,
) -> tuple[PackageDeployer, MockObjectStore, MockConsole]:
    pkg = _package(tmp_path)
    store = store or MockObjectStore()
    console = MockConsole()
    deployer = PackageDeployer(
        _config(tmp_path, pkg, version=version),
        store=store,
        console=console,
        clock=lambda: NOW,
    )
    return deployer, store, console


def _index(store: MockObjectStore) -> dict[str, object]:
    return json.loads(store.objects["/foo/package.json"].decode("utf-8"))


def test_end_to_end_tag_release(tmp_path: Path) -> None:
    deployer, store, console = _deployer(tmp_path)

    result = deployer.deploy()

    assert isinstance(result, Ok)
    url = "https://dist.mpflutter.com/foo/versions/2.0.0.tar.gz"
    assert result.value.archive_url == url

    # pubspec rewritten on disk
    pubspec = yaml.safe_load((tmp_path / "pkg" / "pubspec.yaml").read_text(encoding="utf-8"))
    assert pubspec["version"] == "2.0.0"

    # archive uploaded at the version key, carrying the rewritten pubspec
    assert store.calls[0] == ("put", "/foo/versions/2.0.0.tar.gz")
    assert store.storage_classes["/foo/versions/2.0.0.tar.gz"] == "STANDARD"
    archive = tmp_path / "work" / "2.0.0.tar.gz"
    assert archive.read_bytes() == store.objects["/foo/versions/2.0.0.tar.gz"]
    with tarfile.open(archive, "r:gz") as tar:
        member = tar.extractfile("pubspec.yaml")
        assert member is not None
        assert yaml.safe_load(member.read())["version"] == "2.0.0"

    # index fetched, then written back
    assert store.calls[1:] == [("get", "/foo/package.json"), ("put", "/foo/package.json")]
    index = _index(store)
    assert index["name"] == "foo"
    latest = index["latest"]
    assert isinstance(latest, dict)
    assert latest["version"] == "2.0.0"
    assert latest["archive_url"] == url
    assert latest["published"] == "2026-03-01T12:00:00.000Z"
    assert latest["pubspec"]["environment"] == {"sdk": ">=2.12.0 <3.0.0"}
    assert index["versions"] == [latest]

    assert console.find(f"OK {url}")
    assert not console.has_error()


def test_republish_replaces_existing_entry(tmp_path: Path) -> None:
    store = MockObjectStore()
    old = {"version": "2.0.0", "archive_url": "stale"}
    store.set_object(
        "/foo/package.json",
        json.dumps({"name": "foo", "latest": old, "versions": [old]}).encode("utf-8"),
    )
    deployer, _, _ = _deployer(tmp_path, store=store)

    assert isinstance(deployer.deploy(), Ok)

    versions = _index(store)["versions"]
    assert isinstance(versions, list)
    assert len(versions) == 1
    assert versions[0]["archive_url"].endswith("/foo/versions/2.0.0.tar.gz")


def test_new_version_appends_and_keeps_old_entry(tmp_path: Path) -> None:
    store = MockObjectStore()
    old = {"version": "1.0.0", "archive_url": "https://dist.mpflutter.com/foo/versions/1.0.0.tar.gz"}
    store.set_object("/foo/package.json", json.dumps({"versions": [old]}).encode("utf-8"))
    deployer, _, _ = _deployer(tmp_path, version="1.1.0", store=store)

    assert isinstance(deployer.deploy(), Ok)

    index = _index(store)
    versions = index["versions"]
    assert isinstance(versions, list)
    assert versions[0] == old
    assert versions[1]["version"] == "1.1.0"


def test_dev_build_never_becomes_latest(tmp_path: Path) -> None:
    store = MockObjectStore()
    released = {"version": "1.0.0"}
    store.set_object(
        "/foo/package.json",
        json.dumps({"name": "foo", "latest": released, "versions": [released]}).encode("utf-8"),
    )
    deployer, _, console = _deployer(tmp_path, version=DEV_VERSION, store=store)

    assert isinstance(deployer.deploy(), Ok)

    index = _index(store)
    assert index["latest"] == released
    assert "/foo/versions/0.0.1-master.tar.gz" in store.objects
    assert console.find("dev build")


def test_dev_build_on_fresh_index_has_no_latest(tmp_path: Path) -> None:
    deployer, store, _ = _deployer(tmp_path, version=DEV_VERSION)
    assert isinstance(deployer.deploy(), Ok)
    index = _index(store)
    assert "latest" not in index
    assert index["name"] == "foo"


@pytest.mark.parametrize("body", [b"<html>502</html>", b"", b"[]", b"\xff\xfe"])
def test_malformed_index_starts_fresh(tmp_path: Path, body: bytes) -> None:
    store = MockObjectStore()
    store.set_object("/foo/package.json", body)
    deployer, _, console = _deployer(tmp_path, store=store)

    assert isinstance(deployer.deploy(), Ok)

    index = _index(store)
    assert set(index) == {"name", "latest", "versions"}
    assert console.has_warning()


def test_index_fetch_failure_starts_fresh(tmp_path: Path) -> None:
    store = MockObjectStore()
    store.fail_get("/foo/package.json")
    deployer, _, console = _deployer(tmp_path, store=store)

    assert isinstance(deployer.deploy(), Ok)

    index = _index(store)
    versions = index["versions"]
    assert isinstance(versions, list)
    assert [v["version"] for v in versions] == ["2.0.0"]
    assert console.find("cannot fetch /foo/package.json")


def test_stale_downloaded_index_is_ignored_when_fetch_fails(tmp_path: Path) -> None:
    deployer, store, _ = _deployer(tmp_path)
    deployer.index_path.parent.mkdir(parents=True)
    deployer.index_path.write_text('{"versions": [{"version": "9.9.9"}]}', encoding="utf-8")

    assert isinstance(deployer.deploy(), Ok)

    versions = _index(store)["versions"]
    assert isinstance(versions, list)
    assert [v["version"] for v in versions] == ["2.0.0"]


def test_manifest_error_stops_before_any_upload(tmp_path: Path) -> None:
    deployer, store, _ = _deployer(tmp_path)
    (tmp_path / "pkg" / "pubspec.yaml").write_text("name: [broken\n", encoding="utf-8")

    result = deployer.deploy()

    assert isinstance(result, Err)
    assert result.error.kind == "manifest_invalid"
    assert store.calls == []


def test_archive_upload_failure_aborts(tmp_path: Path) -> None:
    store = MockObjectStore()
    store.fail_put("/foo/versions/2.0.0.tar.gz")
    deployer, _, _ = _deployer(tmp_path, store=store)

    result = deployer.deploy()

    assert isinstance(result, Err)
    assert result.error.kind == "upload_failed"
    assert "AccessDenied" in result.error.message
    assert ("get", "/foo/package.json") not in store.calls
    assert "/foo/package.json" not in store.objects


def test_index_upload_failure_leaves_archive_orphaned(tmp_path: Path) -> None:
    store = MockObjectStore()
    store.fail_put("/foo/package.json")
    deployer, _, console = _deployer(tmp_path, store=store)

    result = deployer.deploy()

    assert isinstance(result, Err)
    assert result.error.kind == "index_upload_failed"
    assert "/foo/versions/2.0.0.tar.gz" in store.objects
    assert console.find("was uploaded but is not listed")


def test_upload_archive_returns_distribution_url(tmp_path: Path) -> None:
    deployer, _, _ = _deployer(tmp_path, version="3.1.4-beta.1")
    assert isinstance(deployer.rewrite_pubspec(), Ok)
    assert isinstance(deployer.make_archive(), Ok)
    assert deployer.upload_archive() == Ok(
        "https://dist.mpflutter.com/foo/versions/3.1.4-beta.1.tar.gz"
    )
