"""Package archive creation.

Archives are gzip-compressed tarballs named ``{version}.tar.gz``. Member
paths are relative to the package root (``pubspec.yaml``, ``lib/...``);
consumers of the distribution URL extract them straight into a package
directory, so the layout must not gain a leading folder.
"""

from __future__ import annotations

import os
import tarfile
from pathlib import Path

from pubdist.core.result import Err, Ok, Result
from pubdist.services.deploy.errors import DeployError

__all__ = ["make_archive", "archive_members"]


def archive_members(package_path: Path) -> list[Path]:
    """Top-level entries to archive, sorted.

    Dot-entries at the top level (``.git``, ``.dart_tool``) are skipped;
    nested ones are kept.
    """
    return sorted(p for p in package_path.iterdir() if not p.name.startswith("."))


def make_archive(package_path: Path, dest: Path) -> Result[Path, DeployError]:
    """Write a tar.gz of ``package_path`` to ``dest``.

    Returns:
        Ok(dest) on success, Err(DeployError) if the package cannot be read or
        the archive cannot be written.
    """
    tmp = Path(f"{dest}.tmp")
    # Compared lexically; members may be dangling or looping symlinks.
    own_files = {os.path.abspath(dest), os.path.abspath(tmp)}

    def _skip_self(info: tarfile.TarInfo) -> tarfile.TarInfo | None:
        if os.path.abspath(package_path / info.name) in own_files:
            return None
        return info

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        members = archive_members(package_path)
        with tarfile.open(tmp, "w:gz") as tar:
            for member in members:
                tar.add(member, arcname=member.name, recursive=True, filter=_skip_self)
        os.replace(tmp, dest)
    except (OSError, tarfile.TarError) as e:
        tmp.unlink(missing_ok=True)
        return Err(
            DeployError(
                kind="archive_failed",
                message=f"cannot archive {package_path}: {e}",
            )
        )
    return Ok(dest)
