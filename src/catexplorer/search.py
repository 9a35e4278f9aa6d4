"""Search service: compile once, run results + count, consolidate."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from catexplorer.errors import UpstreamFailure
from catexplorer.facets import FilterCategory, all_categories, picklist_query
from catexplorer.query import CompiledSearch, Filters, Pagination, compile_search
from catexplorer.results import DEFAULT_ROOT_MARKER, ConsolidatedRow, consolidate

logger = logging.getLogger(__name__)


@runtime_checkable
class QueryExecutor(Protocol):
    """Anything that can run SPARQL text and hand back header-keyed rows."""

    def fetch_rows(self, query: str) -> list[dict[str, str]]: ...


@dataclass(frozen=True)
class SearchPage:
    """One page of consolidated results plus the unpaginated total."""

    rows: list[ConsolidatedRow]
    total: int
    result_columns: tuple[FilterCategory, ...]
    pagination: Pagination
    query: CompiledSearch

    @property
    def has_more(self) -> bool:
        return self.pagination.offset + self.pagination.limit < self.total


def parse_count(rows: list[dict[str, str]]) -> int:
    """Read the single ``count`` binding of a count query response."""
    if not rows:
        return 0
    raw = rows[0].get("count")
    if raw is None:
        raw = next(iter(rows[0].values()), "0")
    try:
        return int(float(raw))
    except ValueError:
        raise UpstreamFailure(f"Count query returned a non-numeric value: {raw!r}") from None


class SearchService:
    """Runs faceted searches against a query executor."""

    def __init__(
        self,
        executor: QueryExecutor,
        *,
        max_workers: int = 8,
        root_marker: str = DEFAULT_ROOT_MARKER,
    ) -> None:
        self._executor = executor
        self._max_workers = max(1, max_workers)
        self._root_marker = root_marker

    def search(
        self,
        filters: Filters | None,
        output_columns: Sequence[FilterCategory | str] | None,
        pagination: Pagination,
    ) -> SearchPage:
        """Compile, execute and consolidate one page of results.

        Both round trips use the same compiled snapshot, so the total always
        counts the result set the page was cut from.
        """
        compiled = compile_search(filters, output_columns, pagination)
        with ThreadPoolExecutor(max_workers=2) as pool:
            results_future = pool.submit(self._executor.fetch_rows, compiled.results_query)
            count_future = pool.submit(self._executor.fetch_rows, compiled.count_query)
            raw_rows = results_future.result()
            total = parse_count(count_future.result())

        rows = consolidate(raw_rows, compiled.result_columns, root_marker=self._root_marker)
        logger.info(
            "Search returned %d rows (%d raw) of %d total at offset %d",
            len(rows),
            len(raw_rows),
            total,
            pagination.offset,
        )
        return SearchPage(
            rows=rows,
            total=total,
            result_columns=compiled.result_columns,
            pagination=pagination,
            query=compiled,
        )

    def picklist(self, category: FilterCategory | str) -> list[str]:
        """Distinct option values of one category."""
        rows = self._executor.fetch_rows(picklist_query(category))
        return [value for row in rows for value in list(row.values())[:1] if value]

    def picklists(
        self, categories: Sequence[FilterCategory | str] | None = None
    ) -> dict[FilterCategory, list[str]]:
        """Option values of several categories, fetched concurrently."""
        wanted = [FilterCategory.parse(c) for c in categories] if categories else all_categories()
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            options = list(pool.map(self.picklist, wanted))
        logger.info("Fetched %d picklists", len(options))
        return dict(zip(wanted, options))
