"""Publish pipeline: pubspec rewrite, archive, upload, index update."""

from .deployer import PackageDeployer
from .entry import PublishedEntry
from .errors import DeployError

__all__ = [
    "DeployError",
    "PackageDeployer",
    "PublishedEntry",
]
