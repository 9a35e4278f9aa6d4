"""Object-store contract and storage URI parsing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol, runtime_checkable
from urllib.parse import urlparse

from catexplorer.errors import StorageBackendError

SEPARATOR = "/"


@dataclass(frozen=True)
class ObjectRecord:
    """One stored object as reported by a listing."""

    key: str
    size: int
    last_modified: datetime | None = None

    @property
    def name(self) -> str:
        """Key part after the last separator."""
        return self.key.rsplit(SEPARATOR, 1)[-1]

    @property
    def prefix(self) -> str:
        """Key part up to and including the last separator ("" at the root)."""
        cut = self.key.rfind(SEPARATOR)
        return self.key[: cut + 1] if cut >= 0 else ""


@runtime_checkable
class ObjectStore(Protocol):
    """Flat key-space operations used by the navigator and archive streamer."""

    def list_objects(self, prefix: str) -> list[ObjectRecord]: ...

    def list_immediate_children(self, prefix: str) -> list[str]: ...

    def get_object_stream(self, key: str) -> BinaryIO: ...

    def presigned_read_url(self, key: str, ttl_seconds: int) -> str: ...


@dataclass(frozen=True)
class StorageTarget:
    """Resolved ``s3://bucket/prefix`` binding."""

    uri: str
    bucket: str
    prefix: str = ""


def parse_storage_uri(storage_uri: str) -> StorageTarget:
    """Resolve an ``s3://bucket[/prefix]`` URI; the prefix keeps a trailing separator."""
    parsed = urlparse(storage_uri)
    if parsed.scheme != "s3":
        raise StorageBackendError(
            "parse_storage_uri",
            f"Unsupported storage URI scheme '{parsed.scheme}' for '{storage_uri}'",
        )
    bucket = parsed.netloc
    if not bucket:
        raise StorageBackendError("parse_storage_uri", f"Invalid s3 URI: {storage_uri}")
    prefix = parsed.path.lstrip(SEPARATOR)
    if prefix and not prefix.endswith(SEPARATOR):
        prefix += SEPARATOR
    return StorageTarget(uri=storage_uri, bucket=bucket, prefix=prefix)


def separator_depth(prefix: str) -> int:
    """Number of separators in ``prefix``; ``batch/2024/`` has depth 2."""
    return prefix.count(SEPARATOR)


def normalize_prefix(prefix: str) -> str:
    """Ensure a non-empty prefix ends with the separator."""
    if prefix and not prefix.endswith(SEPARATOR):
        return prefix + SEPARATOR
    return prefix
