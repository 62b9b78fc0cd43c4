"""Published entry construction.

One entry per released version, stored in the package index under
``versions`` (and ``latest``). The ``pubspec`` snapshot is a normalised
projection of the manifest that package tooling reads without fetching the
archive.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from pubdist.core.structured import StrDict
from pubdist.services.deploy.manifest import Pubspec

__all__ = ["PublishedEntry", "make_pubspec", "format_published", "DEFAULT_AUTHOR"]

DEFAULT_AUTHOR = "MPFlutter"

# Placeholder for description/homepage when the pubspec leaves them out.
MISSING_FIELD = "/"


@dataclass(frozen=True, slots=True)
class PublishedEntry:
    version: str
    pubspec: StrDict
    archive_url: str
    published: str

    def to_dict(self) -> StrDict:
        return {
            "version": self.version,
            "pubspec": self.pubspec,
            "archive_url": self.archive_url,
            "published": self.published,
        }


def format_published(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_pubspec(
    pubspec: Pubspec,
    *,
    name: str,
    version: str,
    archive_url: str,
    now: datetime,
) -> PublishedEntry:
    """Build the index entry for ``version`` from the rewritten pubspec."""
    environment: StrDict = {}
    if pubspec.sdk is not None:
        environment["sdk"] = pubspec.sdk
    if pubspec.flutter is not None:
        environment["flutter"] = pubspec.flutter

    snapshot: StrDict = {
        "version": version,
        "name": name,
        "author": pubspec.author or DEFAULT_AUTHOR,
        "description": pubspec.description or MISSING_FIELD,
        "homepage": pubspec.homepage or MISSING_FIELD,
        "environment": environment,
        "dependencies": pubspec.dependencies,
        "dev_dependencies": pubspec.dev_dependencies,
    }
    return PublishedEntry(
        version=version,
        pubspec=snapshot,
        archive_url=archive_url,
        published=format_published(now),
    )
