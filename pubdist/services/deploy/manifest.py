"""pubspec.yaml loading and version rewriting.

The manifest keeps the raw mapping in file order so rewriting only changes
the ``version`` field; the optional fields the published entry needs are
exposed as explicit attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pubdist.core.result import Err, Ok, Result
from pubdist.core.structured import StrDict, as_str_dict, get_nonempty_str, get_table
from pubdist.services.deploy.errors import DeployError

__all__ = ["Pubspec", "load_pubspec", "rewrite_pubspec", "dump_pubspec"]


def _empty_table() -> StrDict:
    return {}


@dataclass(frozen=True, slots=True)
class Pubspec:
    """Semantic view of a pubspec.yaml."""

    raw: StrDict
    version: str | None = None
    author: str | None = None
    description: str | None = None
    homepage: str | None = None
    sdk: str | None = None
    flutter: str | None = None
    dependencies: StrDict = field(default_factory=_empty_table)
    dev_dependencies: StrDict = field(default_factory=_empty_table)

    @classmethod
    def from_dict(cls, data: StrDict) -> Pubspec:
        environment: StrDict = get_table(data, "environment") or {}
        raw_version = data.get("version")
        return cls(
            raw=data,
            # YAML reads "1.0" as a float; keep whatever was written as text.
            version=str(raw_version) if raw_version is not None else None,
            author=get_nonempty_str(data, "author"),
            description=get_nonempty_str(data, "description"),
            homepage=get_nonempty_str(data, "homepage"),
            sdk=get_nonempty_str(environment, "sdk"),
            flutter=get_nonempty_str(environment, "flutter"),
            dependencies=get_table(data, "dependencies") or {},
            dev_dependencies=get_table(data, "dev_dependencies") or {},
        )

    def with_version(self, version: str) -> Pubspec:
        """Return a copy whose ``version`` key is set, keeping key order."""
        raw = dict(self.raw)
        raw["version"] = version
        return Pubspec.from_dict(raw)


def load_pubspec(path: Path) -> Result[Pubspec, DeployError]:
    """Read and parse a pubspec.yaml."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            DeployError(
                kind="manifest_invalid",
                message=f"pubspec not found: {path}",
                hint="check the package_path input",
            )
        )
    except (OSError, UnicodeDecodeError) as e:
        return Err(DeployError(kind="manifest_invalid", message=f"cannot read {path}: {e}"))

    try:
        data_obj: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(DeployError(kind="manifest_invalid", message=f"invalid YAML in {path}: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(
            DeployError(kind="manifest_invalid", message=f"pubspec root must be a mapping: {path}")
        )
    return Ok(Pubspec.from_dict(data))


def dump_pubspec(pubspec: Pubspec) -> str:
    return yaml.safe_dump(
        pubspec.raw,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def rewrite_pubspec(path: Path, version: str) -> Result[Pubspec, DeployError]:
    """Set ``version`` in the pubspec at ``path`` and write it back in place.

    Must run before archiving so the archive carries the released version.
    """
    loaded = load_pubspec(path)
    if isinstance(loaded, Err):
        return loaded

    updated = loaded.value.with_version(version)
    try:
        path.write_text(dump_pubspec(updated), encoding="utf-8")
    except OSError as e:
        return Err(DeployError(kind="manifest_invalid", message=f"cannot write {path}: {e}"))
    return Ok(updated)
