"""Remote object storage."""

from .cos import CosObjectStore, MockObjectStore, ObjectStore, StorageError

__all__ = [
    "CosObjectStore",
    "MockObjectStore",
    "ObjectStore",
    "StorageError",
]
