"""pubdist - publish versioned Dart packages to object storage."""

__version__ = "0.1.0"
