"""Configuration for the catexplorer services."""

from __future__ import annotations

import os
from dataclasses import dataclass

from catexplorer.errors import ConfigurationError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError([f"{name} (not an integer: {raw!r})"]) from None


@dataclass
class ExplorerConfig:
    """Configuration for the object-store navigator and the search compiler."""

    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_endpoint_url: str | None = None
    s3_request_timeout_s: float = 10.0
    query_service_url: str | None = None
    query_timeout_s: float = 30.0
    max_workers: int = 16
    archive_chunk_size: int = 64 * 1024
    archive_queue_depth: int = 16
    archive_compress_level: int = 9
    archive_spool_max_bytes: int = 8 * 1024 * 1024
    presign_ttl_s: int = 300
    results_per_page: int = 5
    leaf_depth: int = 5
    store_root_marker: str = "batch/"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> ExplorerConfig:
        """Build config from the process environment."""
        return cls(
            s3_bucket=os.getenv("S3_BUCKET_NAME") or None,
            s3_region=os.getenv("AWS_REGION") or None,
            s3_endpoint_url=os.getenv("AWS_S3_ENDPOINT") or None,
            query_service_url=os.getenv("QLEVER_API_URL") or None,
            max_workers=_env_int("CATEXPLORER_MAX_WORKERS", 16),
            results_per_page=_env_int("CATEXPLORER_RESULTS_PER_PAGE", 5),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
        )

    def validate(self, *, require_store: bool = True, require_query: bool = True) -> None:
        """Raise ConfigurationError naming every missing required setting."""
        missing: list[str] = []
        if require_query and not self.query_service_url:
            missing.append("QLEVER_API_URL")
        if require_store and not self.s3_bucket:
            missing.append("S3_BUCKET_NAME")
        if self.max_workers < 1:
            missing.append("CATEXPLORER_MAX_WORKERS (must be >= 1)")
        if missing:
            raise ConfigurationError(missing)
