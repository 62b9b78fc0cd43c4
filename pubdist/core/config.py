"""Typed deploy configuration.

The action inputs (``INPUT_*`` variables on a GitHub runner) and the
triggering ref are validated once into a frozen :class:`DeployConfig`, which
is then handed to the deployer. Nothing else reads the environment.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "ConfigError",
    "CosConfig",
    "DeployConfig",
    "load_config",
    "resolve_release_version",
    "DEFAULT_DIST_BASE_URL",
    "DEV_VERSION",
    "TAG_REF_PREFIX",
]

DEFAULT_DIST_BASE_URL = "https://dist.mpflutter.com"

# Continuous builds publish under this version; it never becomes "latest".
DEV_VERSION = "0.0.1-master"

TAG_REF_PREFIX = "refs/tags/"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the action inputs are missing or invalid."""

    message: str
    field: str | None = None


@dataclass(frozen=True, slots=True)
class CosConfig:
    """Object storage location and credentials."""

    secret_id: str
    secret_key: str = field(repr=False)
    bucket: str
    region: str
    accelerate: bool = True


@dataclass(frozen=True, slots=True)
class DeployConfig:
    """Everything one publish run needs, resolved up front."""

    cos: CosConfig
    package_name: str
    package_path: Path
    version: str
    dist_base_url: str = DEFAULT_DIST_BASE_URL
    work_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))

    @property
    def is_dev_build(self) -> bool:
        return self.version == DEV_VERSION

    @property
    def pubspec_path(self) -> Path:
        return self.package_path / "pubspec.yaml"

    @property
    def archive_filename(self) -> str:
        return f"{self.version}.tar.gz"

    @property
    def archive_key(self) -> str:
        return f"/{self.package_name}/versions/{self.archive_filename}"

    @property
    def archive_url(self) -> str:
        return f"{self.dist_base_url}/{self.package_name}/versions/{self.archive_filename}"

    @property
    def index_key(self) -> str:
        return f"/{self.package_name}/package.json"


def resolve_release_version(*, ref: str | None, version: str | None = None) -> str | None:
    """Return the release version for this run.

    An explicit ``version`` wins; otherwise the ``refs/tags/`` prefix is
    stripped from ``ref``. Returns None when neither yields a value.
    """
    if version and version.strip():
        return version.strip()
    if not ref or not ref.strip():
        return None
    resolved = ref.strip().removeprefix(TAG_REF_PREFIX)
    return resolved or None


def _require(value: str | None, name: str) -> Result[str, ConfigError]:
    if value is None or not value.strip():
        return Err(ConfigError(f"missing required input: {name}", field=name))
    return Ok(value.strip())


def load_config(
    *,
    secret_id: str | None,
    secret_key: str | None,
    cos_bucket: str | None,
    cos_region: str | None,
    package_name: str | None,
    package_path: str | Path | None,
    ref: str | None = None,
    version: str | None = None,
    dist_base_url: str | None = None,
    work_dir: Path | None = None,
    accelerate: bool = True,
) -> Result[DeployConfig, ConfigError]:
    """Validate raw inputs into a DeployConfig.

    Returns:
        Ok(DeployConfig) on success, Err(ConfigError) naming the first bad input.
    """
    required = {
        "secret_id": secret_id,
        "secret_key": secret_key,
        "cos_bucket": cos_bucket,
        "cos_region": cos_region,
        "package_name": package_name,
        "package_path": str(package_path) if package_path is not None else None,
    }
    values: dict[str, str] = {}
    for name, raw in required.items():
        checked = _require(raw, name)
        if isinstance(checked, Err):
            return checked
        values[name] = checked.value

    name = values["package_name"]
    if "/" in name or name in {".", ".."}:
        return Err(ConfigError(f"invalid package_name: {name!r}", field="package_name"))

    path = Path(values["package_path"]).expanduser()
    if not path.is_dir():
        return Err(ConfigError(f"package_path is not a directory: {path}", field="package_path"))

    resolved = resolve_release_version(ref=ref, version=version)
    if resolved is None:
        return Err(
            ConfigError(
                "cannot determine release version (no version input and no GITHUB_REF)",
                field="version",
            )
        )
    if "/" in resolved:
        return Err(ConfigError(f"invalid release version: {resolved!r}", field="version"))

    base_url = (dist_base_url or "").strip().rstrip("/") or DEFAULT_DIST_BASE_URL

    return Ok(
        DeployConfig(
            cos=CosConfig(
                secret_id=values["secret_id"],
                secret_key=values["secret_key"],
                bucket=values["cos_bucket"],
                region=values["cos_region"],
                accelerate=accelerate,
            ),
            package_name=name,
            package_path=path,
            version=resolved,
            dist_base_url=base_url,
            work_dir=work_dir if work_dir is not None else Path(tempfile.gettempdir()),
        )
    )
