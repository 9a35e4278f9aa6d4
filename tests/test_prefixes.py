"""Tests for breadth-first leaf prefix discovery."""

from __future__ import annotations

import pytest

from catexplorer.errors import StorageBackendError, ValidationError
from catexplorer.prefixes import discover_leaf_prefixes
from catexplorer.storage import separator_depth

LEAVES = [
    "batch/2024/05/16/24/",
    "batch/2024/05/16/25/",
    "batch/2024/06/01/01/",
]


def test_discovers_leaf_folders_sorted(batch_store) -> None:
    found = discover_leaf_prefixes(batch_store, "batch/", 5)
    assert list(found.prefixes) == LEAVES
    assert found.count == 3


def test_every_result_has_target_depth(batch_store) -> None:
    found = discover_leaf_prefixes(batch_store, "batch/", 4)
    assert list(found.prefixes) == ["batch/2024/05/16/", "batch/2024/06/01/"]
    assert all(separator_depth(p) == 4 for p in found.prefixes)


def test_stops_early_when_a_level_is_empty(batch_store) -> None:
    # Leaves hold only files; the walk keeps the last non-empty level.
    found = discover_leaf_prefixes(batch_store, "batch/2024/05/16/24/", 8)
    assert list(found.prefixes) == ["batch/2024/05/16/24/raw/"]

    found = discover_leaf_prefixes(batch_store, "batch/2024/06/01/01/", 8)
    assert list(found.prefixes) == ["batch/2024/06/01/01/"]


def test_start_at_target_returns_start(batch_store) -> None:
    found = discover_leaf_prefixes(batch_store, "batch/2024/05/", 3)
    assert list(found.prefixes) == ["batch/2024/05/"]
    assert batch_store.child_calls == []


def test_start_deeper_than_target_is_rejected(batch_store) -> None:
    with pytest.raises(ValidationError, match="deeper than target_depth 2"):
        discover_leaf_prefixes(batch_store, "batch/2024/05/16/24/", 2)
    assert batch_store.child_calls == []


def test_negative_depth_is_rejected(batch_store) -> None:
    with pytest.raises(ValidationError):
        discover_leaf_prefixes(batch_store, "batch/", -1)


def test_levels_are_listed_in_order(make_store) -> None:
    objects = {
        f"batch/{year}/{month:02d}/{day:02d}/01/r.json": b"x"
        for year in (2023, 2024)
        for month in (1, 2, 3)
        for day in (1, 2)
    }
    store = make_store(objects, delay_s=0.005)
    found = discover_leaf_prefixes(store, "batch/", 5, max_workers=4)

    assert found.count == len(objects)
    depths = [separator_depth(p) for p in store.child_calls]
    assert depths == sorted(depths)


def test_listing_concurrency_is_bounded(make_store) -> None:
    objects = {f"batch/2024/{m:02d}/{d:02d}/01/r.json": b"x" for m in range(1, 13) for d in (1, 15)}
    store = make_store(objects, delay_s=0.01)
    discover_leaf_prefixes(store, "batch/", 5, max_workers=3)
    assert 1 <= store.max_in_flight <= 3


def test_listing_failure_propagates(make_store) -> None:
    store = make_store({"batch/a/b.json": b"x"}, fail_listing=True)
    with pytest.raises(StorageBackendError):
        discover_leaf_prefixes(store, "batch/", 3)


def test_dates_without_runs_are_not_leaves(make_store) -> None:
    store = make_store(
        {
            "batch/2024/05/16/24/results.json": b"x",
            "batch/2024/05/16/25/results.json": b"x",
            "batch/2024/05/17/notes.txt": b"x",
        }
    )
    found = discover_leaf_prefixes(store, "batch/", 5)
    assert list(found.prefixes) == ["batch/2024/05/16/24/", "batch/2024/05/16/25/"]
    assert found.count == len(found.prefixes)
    assert all(separator_depth(p) <= 5 for p in found.prefixes)
