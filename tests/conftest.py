"""Shared test fixtures for catexplorer tests."""

from __future__ import annotations

import io
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator

import pytest

from catexplorer.errors import ObjectNotFoundError, StorageBackendError, UpstreamFailure
from catexplorer.facets import LIST_SEPARATOR
from catexplorer.storage import SEPARATOR, ObjectRecord

# --- In-memory object store ---


class MemoryStore:
    """ObjectStore over a dict of key -> bytes, with failure injection and call tracking."""

    def __init__(
        self,
        objects: dict[str, bytes] | None = None,
        *,
        fail_reads: tuple[str, ...] = (),
        fail_presign: tuple[str, ...] = (),
        fail_listing: bool = False,
        delay_s: float = 0.0,
    ) -> None:
        self.objects = dict(objects or {})
        self.fail_reads = set(fail_reads)
        self.fail_presign = set(fail_presign)
        self.fail_listing = fail_listing
        self.delay_s = delay_s
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0
        self.child_calls: list[str] = []
        self.read_calls: list[str] = []

    @contextmanager
    def _call(self) -> Iterator[None]:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay_s:
                time.sleep(self.delay_s)
            yield
        finally:
            with self._lock:
                self.in_flight -= 1

    def list_objects(self, prefix: str) -> list[ObjectRecord]:
        if self.fail_listing:
            raise StorageBackendError("list_objects", "listing disabled")
        return [
            ObjectRecord(key=k, size=len(v))
            for k, v in sorted(self.objects.items())
            if k.startswith(prefix)
        ]

    def list_immediate_children(self, prefix: str) -> list[str]:
        with self._lock:
            self.child_calls.append(prefix)
        with self._call():
            if self.fail_listing:
                raise StorageBackendError("list_immediate_children", "listing disabled")
            children: dict[str, None] = {}
            for key in sorted(self.objects):
                if not key.startswith(prefix):
                    continue
                rest = key[len(prefix) :]
                if SEPARATOR in rest:
                    children.setdefault(prefix + rest.split(SEPARATOR, 1)[0] + SEPARATOR, None)
            return list(children)

    def get_object_stream(self, key: str) -> io.BytesIO:
        with self._lock:
            self.read_calls.append(key)
        with self._call():
            if key in self.fail_reads:
                raise StorageBackendError("get_object", f"key '{key}': read refused")
            if key not in self.objects:
                raise ObjectNotFoundError(key)
            return io.BytesIO(self.objects[key])

    def presigned_read_url(self, key: str, ttl_seconds: int) -> str:
        with self._call():
            if key in self.fail_presign:
                raise StorageBackendError("presign", f"key '{key}': signing refused")
            return f"https://store.test/{key}?expires={ttl_seconds}"


# --- Fake query executor ---


class FakeExecutor:
    """QueryExecutor that answers count, results and picklist queries from canned data."""

    def __init__(
        self,
        rows: list[dict[str, str]] | None = None,
        *,
        count: int | str = 0,
        options: dict[str, list[str]] | None = None,
        fail_count: bool = False,
    ) -> None:
        self.rows = list(rows or [])
        self.count = count
        self.options = dict(options or {})
        self.fail_count = fail_count
        self.queries: list[str] = []
        self._lock = threading.Lock()

    def fetch_rows(self, query: str) -> list[dict[str, str]]:
        with self._lock:
            self.queries.append(query)
        if "COUNT(" in query:
            if self.fail_count:
                raise UpstreamFailure("Query failed: 500 Internal Server Error", 500)
            return [{"count": str(self.count)}]
        if "GROUP BY" in query:
            return list(self.rows)
        for variable, values in self.options.items():
            if f"SELECT DISTINCT ?{variable} WHERE" in query:
                return [{variable: v} for v in values]
        return []


BATCH_OBJECTS: dict[str, bytes] = {
    "batch/2024/05/16/24/": b"",
    "batch/2024/05/16/24/results.json": b'{"yield": 0.91}',
    "batch/2024/05/16/24/raw/spectrum.csv": b"wavelength,abs\n254,0.12\n",
    "batch/2024/05/16/25/results.json": b'{"yield": 0.42}',
    "batch/2024/06/01/01/results.json": b'{"yield": 0.77}',
}


@pytest.fixture(autouse=True)
def _restore_log_handlers() -> Iterator[None]:
    """Drop handlers a test attached to captured streams."""
    logger = logging.getLogger("catexplorer")
    saved = list(logger.handlers)
    yield
    logger.handlers[:] = saved


@pytest.fixture
def make_store() -> Callable[..., MemoryStore]:
    return MemoryStore


@pytest.fixture
def batch_store() -> MemoryStore:
    """Store holding three campaign folders under batch/."""
    return MemoryStore(BATCH_OBJECTS)


@pytest.fixture
def make_executor() -> Callable[..., FakeExecutor]:
    return FakeExecutor


def result_row(subject: str, url: str, **columns: Any) -> dict[str, str]:
    row = {"s": subject, "contentUrl": url}
    row.update({k: str(v) for k, v in columns.items()})
    return row


@pytest.fixture
def campaign_rows() -> list[dict[str, str]]:
    """Raw rows for two campaigns; the first spans two files and two chemicals."""
    return [
        result_row(
            "urn:cmp:1",
            "s3://lab-bucket/batch/2024/05/16/24/results.json",
            campaignName="Suzuki screen",
            chemicalName_list=f"Toluene{LIST_SEPARATOR}Palladium acetate",
        ),
        result_row(
            "urn:cmp:1",
            "s3://lab-bucket/batch/2024/05/16/24/summary.json",
            campaignName="Suzuki screen",
            chemicalName_list="Toluene",
        ),
        result_row(
            "urn:cmp:2",
            "s3://lab-bucket/batch/2024/05/16/25/results.json",
            campaignName="Heck follow-up",
            chemicalName_list="Acetonitrile",
        ),
    ]
