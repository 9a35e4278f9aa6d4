"""Tests for object records and storage URI parsing."""

from __future__ import annotations

import pytest

from catexplorer.errors import StorageBackendError
from catexplorer.storage import (
    ObjectRecord,
    ObjectStore,
    normalize_prefix,
    parse_storage_uri,
    separator_depth,
)


def test_object_record_name_and_prefix() -> None:
    record = ObjectRecord(key="batch/2024/05/16/24/results.json", size=10)
    assert record.name == "results.json"
    assert record.prefix == "batch/2024/05/16/24/"


def test_object_record_at_root_and_folder_marker() -> None:
    assert ObjectRecord(key="readme.txt", size=1).prefix == ""
    marker = ObjectRecord(key="batch/2024/", size=0)
    assert marker.name == ""
    assert marker.prefix == "batch/2024/"


def test_parse_storage_uri_with_prefix() -> None:
    target = parse_storage_uri("s3://lab-bucket/batch/2024")
    assert target.bucket == "lab-bucket"
    assert target.prefix == "batch/2024/"


def test_parse_storage_uri_bucket_only() -> None:
    target = parse_storage_uri("s3://lab-bucket")
    assert target.bucket == "lab-bucket"
    assert target.prefix == ""


@pytest.mark.parametrize("uri", ["gs://lab-bucket", "lab-bucket", "s3:///batch"])
def test_parse_storage_uri_rejects(uri: str) -> None:
    with pytest.raises(StorageBackendError):
        parse_storage_uri(uri)


def test_separator_depth_and_normalize() -> None:
    assert separator_depth("") == 0
    assert separator_depth("batch/") == 1
    assert separator_depth("batch/2024/05/16/24/") == 5
    assert normalize_prefix("batch/2024") == "batch/2024/"
    assert normalize_prefix("batch/") == "batch/"
    assert normalize_prefix("") == ""


def test_memory_store_satisfies_protocol(batch_store) -> None:
    assert isinstance(batch_store, ObjectStore)
