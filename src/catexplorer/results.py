"""Consolidation of raw query-service rows into one display row per campaign folder."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union

from catexplorer.facets import LIST_SEPARATOR, LOCATION_VARIABLE, FilterCategory, facet_for
from catexplorer.query import normalize_columns

logger = logging.getLogger(__name__)

RawResultRow = Mapping[str, str]
ColumnValue = Union[str, tuple[str, ...]]

DEFAULT_ROOT_MARKER = "batch/"


@dataclass(frozen=True)
class ConsolidatedRow:
    """All rows sharing one folder prefix, merged.

    A column holds a plain string when a single distinct value was observed,
    a tuple of unique values (first-seen order) when several were, and an
    empty tuple when none was.
    """

    group_key: str
    columns: Mapping[FilterCategory, ColumnValue] = field(default_factory=dict)

    def values(self, category: FilterCategory | str) -> tuple[str, ...]:
        """Column values as a tuple regardless of scalar/multi classification."""
        value = self.columns.get(FilterCategory.parse(category), ())
        if isinstance(value, str):
            return (value,)
        return value

    def is_multi(self, category: FilterCategory | str) -> bool:
        return len(self.values(category)) > 1

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"prefix": self.group_key}
        for category, value in self.columns.items():
            out[category.value] = value if isinstance(value, str) else list(value)
        return out


def location_prefix(location: str, root_marker: str = DEFAULT_ROOT_MARKER) -> str:
    """Turn an absolute content URL into its folder prefix within the store.

    ``s3://bucket/batch/2024/05/16/24/file.json`` -> ``batch/2024/05/16/24/``.
    Without the root marker the scheme and bucket are dropped instead.
    """
    path = location.strip()
    if root_marker and path.startswith(root_marker):
        pass
    elif root_marker and f"/{root_marker}" in path:
        path = path[path.index(f"/{root_marker}") + 1 :]
    elif "://" in path:
        remainder = path.split("://", 1)[1]
        path = remainder.split("/", 1)[1] if "/" in remainder else ""
    cut = path.rfind("/")
    return path[: cut + 1] if cut >= 0 else ""


def _split_values(raw: str, aggregated: bool) -> list[str]:
    if aggregated:
        parts = raw.split(LIST_SEPARATOR)
    else:
        parts = [raw]
    return [p.strip() for p in parts if p.strip()]


def consolidate(
    rows: Iterable[RawResultRow],
    output_columns: Sequence[FilterCategory | str] | None,
    *,
    root_marker: str = DEFAULT_ROOT_MARKER,
) -> list[ConsolidatedRow]:
    """Group raw rows by folder prefix and merge their column values."""
    columns = normalize_columns(output_columns)
    facet_map = {c: facet_for(c) for c in columns}

    groups: dict[str, dict[FilterCategory, list[str]]] = {}
    for row in rows:
        location = row.get(LOCATION_VARIABLE)
        if not location:
            logger.warning("Skipping result row without %s: %r", LOCATION_VARIABLE, dict(row))
            continue
        collected = groups.setdefault(
            location_prefix(location, root_marker), {c: [] for c in columns}
        )
        for category, facet in facet_map.items():
            raw = row.get(facet.output_variable)
            if not raw:
                continue
            bucket = collected[category]
            for value in _split_values(raw, aggregated=not facet.is_group_key):
                if value not in bucket:
                    bucket.append(value)

    consolidated: list[ConsolidatedRow] = []
    for key, collected in groups.items():
        merged: dict[FilterCategory, ColumnValue] = {}
        for category in columns:
            values = collected[category]
            merged[category] = values[0] if len(values) == 1 else tuple(values)
        consolidated.append(ConsolidatedRow(group_key=key, columns=merged))
    return consolidated
