"""Object storage abstraction for published archives and package indexes.

This module provides:
- ObjectStore: Protocol for put/get-by-key (injectable for tests)
- CosObjectStore: Tencent Cloud COS implementation (cos-python-sdk-v5)
- MockObjectStore: in-memory implementation for testing
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pubdist.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from qcloud_cos.cos_exception import CosServiceError

    from pubdist.core.config import CosConfig

__all__ = [
    "ObjectStore",
    "CosObjectStore",
    "MockObjectStore",
    "StorageError",
    "STORAGE_CLASS_STANDARD",
]

STORAGE_CLASS_STANDARD = "STANDARD"

ACCELERATE_ENDPOINT = "cos.accelerate.myqcloud.com"


@dataclass(frozen=True, slots=True)
class StorageError:
    """Object storage error details.

    Attributes:
        key: Object key the operation targeted
        code: Service error code ("NoSuchKey", ...) or "client" for local/network failures
        message: Human-readable error message
        status: HTTP status code (0 when no response was received)
    """

    key: str
    code: str
    message: str
    status: int = 0

    @property
    def is_not_found(self) -> bool:
        return self.status == 404 or self.code == "NoSuchKey"

    def __str__(self) -> str:
        if self.status:
            return f"{self.code} (HTTP {self.status}): {self.message} ({self.key})"
        return f"{self.code}: {self.message} ({self.key})"


@runtime_checkable
class ObjectStore(Protocol):
    """Put/get-by-key contract of the remote bucket."""

    def put_file(
        self, key: str, src: Path, *, storage_class: str = STORAGE_CLASS_STANDARD
    ) -> Result[None, StorageError]:
        """Upload ``src`` to ``key``."""
        ...

    def get_to_file(self, key: str, dest: Path) -> Result[Path, StorageError]:
        """Download ``key`` into ``dest``; returns ``dest``."""
        ...


class CosObjectStore:
    """ObjectStore backed by a COS bucket.

    The global acceleration endpoint is used by default, since CI runners are
    usually far from the bucket region.
    """

    def __init__(self, config: CosConfig) -> None:
        from qcloud_cos import CosConfig as SdkConfig
        from qcloud_cos import CosS3Client

        sdk_config = SdkConfig(
            Region=config.region,
            SecretId=config.secret_id,
            SecretKey=config.secret_key,
            Scheme="https",
            Endpoint=ACCELERATE_ENDPOINT if config.accelerate else None,
        )
        self.bucket = config.bucket
        self._client = CosS3Client(sdk_config)

    def put_file(
        self, key: str, src: Path, *, storage_class: str = STORAGE_CLASS_STANDARD
    ) -> Result[None, StorageError]:
        from qcloud_cos.cos_exception import CosClientError, CosServiceError

        try:
            with src.open("rb") as body:
                self._client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    StorageClass=storage_class,
                )
        except CosServiceError as e:
            return Err(_service_error(key, e))
        except CosClientError as e:
            return Err(StorageError(key=key, code="client", message=str(e)))
        except OSError as e:
            return Err(StorageError(key=key, code="client", message=str(e)))
        return Ok(None)

    def get_to_file(self, key: str, dest: Path) -> Result[Path, StorageError]:
        from qcloud_cos.cos_exception import CosClientError, CosServiceError

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            dest.parent.mkdir(parents=True, exist_ok=True)
            response["Body"].get_stream_to_file(str(dest))
        except CosServiceError as e:
            return Err(_service_error(key, e))
        except CosClientError as e:
            return Err(StorageError(key=key, code="client", message=str(e)))
        except OSError as e:
            return Err(StorageError(key=key, code="client", message=str(e)))
        return Ok(dest)


def _service_error(key: str, e: CosServiceError) -> StorageError:
    # CosServiceError exposes accessors rather than attributes.
    code = str(e.get_error_code() or "service")
    message = str(e.get_error_msg() or "request failed")
    status = int(e.get_status_code() or 0)
    return StorageError(key=key, code=code, message=message, status=status)


class MockObjectStore:
    """In-memory ObjectStore for testing.

    Usage:
        store = MockObjectStore()
        store.set_object("/foo/package.json", b"{}")
        store.fail_put("/foo/versions/1.0.0.tar.gz")
    """

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.storage_classes: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self._put_failures: dict[str, StorageError] = {}
        self._get_failures: dict[str, StorageError] = {}

    def set_object(self, key: str, data: bytes) -> None:
        self.objects[key] = data

    def fail_put(self, key: str, error: StorageError | None = None) -> None:
        self._put_failures[key] = error or StorageError(
            key=key, code="AccessDenied", message="Access Denied", status=403
        )

    def fail_get(self, key: str, error: StorageError | None = None) -> None:
        self._get_failures[key] = error or StorageError(
            key=key, code="client", message="connection reset"
        )

    def put_file(
        self, key: str, src: Path, *, storage_class: str = STORAGE_CLASS_STANDARD
    ) -> Result[None, StorageError]:
        self.calls.append(("put", key))
        if key in self._put_failures:
            return Err(self._put_failures[key])
        self.objects[key] = src.read_bytes()
        self.storage_classes[key] = storage_class
        return Ok(None)

    def get_to_file(self, key: str, dest: Path) -> Result[Path, StorageError]:
        self.calls.append(("get", key))
        if key in self._get_failures:
            return Err(self._get_failures[key])
        if key not in self.objects:
            return Err(
                StorageError(
                    key=key,
                    code="NoSuchKey",
                    message="The specified key does not exist.",
                    status=404,
                )
            )
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.objects[key])
        return Ok(dest)
