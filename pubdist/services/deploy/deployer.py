"""One publish cycle for one package version.

Steps run strictly in order and the first failure stops the run:

1. rewrite pubspec.yaml with the release version
2. archive the package directory
3. upload the archive
4. build the published entry
5. fetch, merge and re-upload the package index

Nothing is rolled back. If step 5 fails after step 3 succeeded, the archive
stays in the bucket unlisted; re-running the same version overwrites both
objects deterministically.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pubdist.core.config import DeployConfig
from pubdist.core.result import Err, Ok, Result
from pubdist.output.console import ConsoleProtocol
from pubdist.services.deploy.archive import make_archive
from pubdist.services.deploy.entry import PublishedEntry, make_pubspec
from pubdist.services.deploy.errors import DeployError
from pubdist.services.deploy.index import dump_index, load_index, merge_entry, parse_index
from pubdist.services.deploy.manifest import Pubspec, rewrite_pubspec
from pubdist.storage.cos import STORAGE_CLASS_STANDARD, ObjectStore

__all__ = ["PackageDeployer"]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PackageDeployer:
    def __init__(
        self,
        config: DeployConfig,
        *,
        store: ObjectStore,
        console: ConsoleProtocol,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config
        self.name = config.package_name
        self._store = store
        self._console = console
        self._clock = clock

    @property
    def archive_path(self) -> Path:
        return self.config.work_dir / self.config.archive_filename

    @property
    def index_path(self) -> Path:
        return self.config.work_dir / f"{self.name}.package.json"

    def deploy(self) -> Result[PublishedEntry, DeployError]:
        """Run the full publish cycle."""
        cfg = self.config
        self._console.header(f"Publishing {self.name} {cfg.version}")

        pubspec = self.rewrite_pubspec()
        if isinstance(pubspec, Err):
            return pubspec

        archive = self.make_archive()
        if isinstance(archive, Err):
            return archive

        archive_url = self.upload_archive()
        if isinstance(archive_url, Err):
            return archive_url

        entry = self.make_pubspec(pubspec.value, archive_url.value)

        updated = self.update_package(entry)
        if isinstance(updated, Err):
            self._console.warning(f"archive {cfg.archive_key} was uploaded but is not listed")
            return updated

        self._console.success(entry.archive_url)
        return Ok(entry)

    def rewrite_pubspec(self) -> Result[Pubspec, DeployError]:
        path = self.config.pubspec_path
        self._console.info(f"set version {self.config.version} in {path}")
        return rewrite_pubspec(path, self.config.version)

    def make_archive(self) -> Result[Path, DeployError]:
        self._console.info(f"archive {self.config.package_path} -> {self.archive_path}")
        return make_archive(self.config.package_path, self.archive_path)

    def upload_archive(self) -> Result[str, DeployError]:
        """Upload the archive; returns its public distribution URL."""
        key = self.config.archive_key
        self._console.info(f"upload {key}")
        result = self._store.put_file(key, self.archive_path, storage_class=STORAGE_CLASS_STANDARD)
        if isinstance(result, Err):
            return Err(
                DeployError(
                    kind="upload_failed",
                    message=f"archive upload failed: {result.error}",
                    hint="check secret_id/secret_key and bucket permissions",
                )
            )
        return Ok(self.config.archive_url)

    def make_pubspec(self, pubspec: Pubspec, archive_url: str) -> PublishedEntry:
        return make_pubspec(
            pubspec,
            name=self.name,
            version=self.config.version,
            archive_url=archive_url,
            now=self._clock(),
        )

    def _fetch_index_text(self) -> str | None:
        key = self.config.index_key
        fetched = self._store.get_to_file(key, self.index_path)
        if isinstance(fetched, Err):
            if fetched.error.is_not_found:
                self._console.info(f"no index at {key}, starting a new one")
            else:
                self._console.warning(f"cannot fetch {key} ({fetched.error}), starting a new one")
            return None
        try:
            return fetched.value.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._console.warning(f"cannot read {fetched.value} ({e}), starting a new one")
            return None

    def update_package(self, entry: PublishedEntry) -> Result[None, DeployError]:
        """Merge ``entry`` into the remote index and upload it back."""
        cfg = self.config
        key = cfg.index_key

        text = self._fetch_index_text()
        if text is not None and load_index(text) is None:
            self._console.warning(f"{key} is malformed, starting a new one")
        index = parse_index(text)

        set_latest = not cfg.is_dev_build
        if not set_latest:
            self._console.info(f"{cfg.version} is a dev build, latest left unchanged")
        merged = merge_entry(index, entry, name=self.name, set_latest=set_latest)

        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            self.index_path.write_text(dump_index(merged), encoding="utf-8")
        except OSError as e:
            return Err(
                DeployError(
                    kind="index_upload_failed",
                    message=f"cannot write {self.index_path}: {e}",
                )
            )

        self._console.info(f"upload {key}")
        result = self._store.put_file(key, self.index_path, storage_class=STORAGE_CLASS_STANDARD)
        if isinstance(result, Err):
            return Err(
                DeployError(
                    kind="index_upload_failed",
                    message=f"index upload failed: {result.error}",
                )
            )
        return Ok(None)
