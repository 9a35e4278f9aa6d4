"""S3 object store backed by boto3."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from catexplorer.config import ExplorerConfig
from catexplorer.errors import ConfigurationError, ObjectNotFoundError, StorageBackendError
from catexplorer.storage import SEPARATOR, ObjectRecord

logger = logging.getLogger(__name__)


def _error_code(err: Exception) -> str:
    if isinstance(err, ClientError):
        return str(err.response.get("Error", {}).get("Code", ""))
    return ""


class S3ObjectStore:
    """Read-only view of one bucket."""

    def __init__(
        self,
        *,
        bucket: str,
        config: ExplorerConfig,
        client: Any | None = None,
    ) -> None:
        self.bucket = bucket
        self._config = config
        if client is None:
            session = boto3.Session(region_name=config.s3_region)
            client = session.client(
                "s3",
                region_name=config.s3_region,
                endpoint_url=config.s3_endpoint_url,
                config=BotoConfig(
                    connect_timeout=config.s3_request_timeout_s,
                    read_timeout=config.s3_request_timeout_s,
                    retries={"max_attempts": 5, "mode": "standard"},
                    max_pool_connections=max(10, config.max_workers),
                ),
            )
        self._s3 = client

    @classmethod
    def from_config(cls, config: ExplorerConfig) -> S3ObjectStore:
        if not config.s3_bucket:
            raise ConfigurationError(["S3_BUCKET_NAME"])
        return cls(bucket=config.s3_bucket, config=config)

    def _is_not_found(self, err: Exception) -> bool:
        return _error_code(err) in {"NoSuchKey", "404", "NotFound"}

    def _paginate(self, **kwargs: Any) -> Any:
        paginator = self._s3.get_paginator("list_objects_v2")
        return paginator.paginate(Bucket=self.bucket, **kwargs)

    def list_objects(self, prefix: str) -> list[ObjectRecord]:
        """Every object under ``prefix``, across all listing pages."""
        records: list[ObjectRecord] = []
        try:
            for page in self._paginate(Prefix=prefix):
                for item in page.get("Contents", []):
                    key = item.get("Key")
                    if not key:
                        continue
                    records.append(
                        ObjectRecord(
                            key=key,
                            size=int(item.get("Size", 0)),
                            last_modified=item.get("LastModified"),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise StorageBackendError("list_objects", f"prefix '{prefix}': {e}") from e
        logger.debug("Listed %d objects under '%s'", len(records), prefix)
        return records

    def list_immediate_children(self, prefix: str) -> list[str]:
        """Common prefixes one level below ``prefix`` (delimiter-bounded)."""
        children: list[str] = []
        try:
            for page in self._paginate(Prefix=prefix, Delimiter=SEPARATOR):
                for common in page.get("CommonPrefixes", []):
                    child = common.get("Prefix")
                    if child:
                        children.append(child)
        except (ClientError, BotoCoreError) as e:
            raise StorageBackendError("list_immediate_children", f"prefix '{prefix}': {e}") from e
        return children

    def get_object_stream(self, key: str) -> BinaryIO:
        """Streaming body of ``key``; missing keys raise ObjectNotFoundError."""
        try:
            resp = self._s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if self._is_not_found(e):
                raise ObjectNotFoundError(key) from e
            raise StorageBackendError("get_object", f"key '{key}': {e}") from e
        except BotoCoreError as e:
            raise StorageBackendError("get_object", f"key '{key}': {e}") from e
        return resp["Body"]

    def presigned_read_url(self, key: str, ttl_seconds: int) -> str:
        try:
            return self._s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageBackendError("presign", f"key '{key}': {e}") from e
