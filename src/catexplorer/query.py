"""Faceted search compiler: filters + output columns + page -> SPARQL text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Iterable, Mapping, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from catexplorer.errors import ValidationError
from catexplorer.facets import (
    BASE_PATTERN,
    KEY_VARIABLE,
    LOCATION_PATTERN,
    LOCATION_VARIABLE,
    SPARQL_PREFIXES,
    FilterCategory,
    MatchMode,
    all_categories,
    facet_for,
)

logger = logging.getLogger(__name__)

Filters = Mapping[Union[FilterCategory, str], Iterable[str]]


class Pagination(BaseModel):
    """Page window over the distinct top-level keys."""

    model_config = ConfigDict(frozen=True)

    limit: Annotated[int, Field(ge=0)]
    offset: Annotated[int, Field(ge=0)] = 0

    @classmethod
    def of(cls, limit: object, offset: object = 0) -> Pagination:
        """Validate raw (possibly string) values; bad input raises ValidationError."""
        try:
            return cls(limit=limit, offset=offset)  # type: ignore[arg-type]
        except PydanticValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid pagination: {details}") from e

    @classmethod
    def for_page(cls, page: int, per_page: int) -> Pagination:
        """Window for a 1-based page number."""
        if page < 1:
            raise ValidationError(f"Invalid page number: {page}")
        return cls.of(per_page, (page - 1) * per_page)


@dataclass(frozen=True)
class CompiledSearch:
    """Results and count queries compiled from one filter snapshot."""

    results_query: str
    count_query: str
    result_columns: tuple[FilterCategory, ...]
    restriction: str
    pagination: Pagination


_LITERAL_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_literal(value: str) -> str:
    """Render ``value`` as a double-quoted SPARQL string literal."""
    return '"' + "".join(_LITERAL_ESCAPES.get(ch, ch) for ch in value) + '"'


def normalize_filters(filters: Filters | None) -> dict[FilterCategory, tuple[str, ...]]:
    """Resolve category names and drop empty selections.

    Categories come back in catalog order so that equal selections compile to
    equal text regardless of mapping order. Duplicate values are dropped.
    """
    if not filters:
        return {}
    resolved: dict[FilterCategory, list[str]] = {}
    for raw_category, raw_values in filters.items():
        category = FilterCategory.parse(raw_category)
        if isinstance(raw_values, str):
            raise ValidationError(
                f"Filter values for {category.value} must be a list of strings, not a string"
            )
        bucket = resolved.setdefault(category, [])
        for value in raw_values:
            if not isinstance(value, str):
                raise ValidationError(
                    f"Filter value for {category.value} must be a string: {value!r}"
                )
            if value and value not in bucket:
                bucket.append(value)
    return {c: tuple(resolved[c]) for c in all_categories() if resolved.get(c)}


def normalize_columns(columns: Sequence[FilterCategory | str] | None) -> tuple[FilterCategory, ...]:
    """Resolve output column names, keeping first occurrence order."""
    if not columns:
        return ()
    out: list[FilterCategory] = []
    for raw in columns:
        category = FilterCategory.parse(raw)
        if category not in out:
            out.append(category)
    return tuple(out)


def _filter_clause(category: FilterCategory, values: Sequence[str]) -> str:
    facet = facet_for(category)
    var = f"?{facet.variable}"
    if facet.match is MatchMode.CONTAINS:
        conditions = [f"CONTAINS({var}, {escape_literal(v)})" for v in values]
    else:
        conditions = [f"{var} = {escape_literal(v)}" for v in values]
    return f"FILTER({' || '.join(conditions)})"


def _indent(text: str, depth: int) -> str:
    pad = "  " * depth
    return "\n".join(f"{pad}{line}" for line in text.splitlines())


def _distinct_keys_block(restriction: str, pagination: Pagination | None) -> str:
    lines = [
        "{",
        f"  SELECT DISTINCT ?{KEY_VARIABLE} WHERE {{",
        _indent(restriction, 2),
        "  }",
    ]
    if pagination is not None:
        lines.append(f"  ORDER BY ASC(?{KEY_VARIABLE})")
        lines.append(f"  LIMIT {pagination.limit}")
        lines.append(f"  OFFSET {pagination.offset}")
    lines.append("}")
    return "\n".join(lines)


def compile_search(
    filters: Filters | None,
    output_columns: Sequence[FilterCategory | str] | None,
    pagination: Pagination,
) -> CompiledSearch:
    """Compile a paginated results query and its matching count query.

    Pagination is applied only inside the distinct-key subquery; the outer
    query groups over the page of keys it selects. The count query reuses the
    same restriction without LIMIT/OFFSET.

    The restriction requires a location, so a campaign without one is neither
    counted nor returned. Output-column triples are joined only in the outer
    query: a campaign that lacks a requested column is still counted but has
    no row on its page.
    """
    selected = normalize_filters(filters)
    columns = normalize_columns(output_columns)

    # Triples are deduplicated; dicts keep first-seen order for stable text.
    inner_patterns: dict[str, None] = {}
    clauses: list[str] = []
    for category, values in selected.items():
        for triple in facet_for(category).patterns:
            inner_patterns.setdefault(triple, None)
        clauses.append(_filter_clause(category, values))

    restriction = "\n".join([BASE_PATTERN, LOCATION_PATTERN, *inner_patterns, *clauses])

    outer_patterns: dict[str, None] = {LOCATION_PATTERN: None}
    select_terms = [f"?{KEY_VARIABLE}", f"?{LOCATION_VARIABLE}"]
    group_terms = [f"?{KEY_VARIABLE}", f"?{LOCATION_VARIABLE}"]
    for category in columns:
        facet = facet_for(category)
        for triple in facet.patterns:
            outer_patterns.setdefault(triple, None)
        select_terms.append(facet.select_expression())
        if facet.is_group_key:
            group_terms.append(f"?{facet.variable}")

    outer_body = "\n".join(outer_patterns)
    results_query = (
        f"{SPARQL_PREFIXES}"
        f"SELECT {' '.join(select_terms)} WHERE {{\n"
        f"{_indent(outer_body, 1)}\n"
        f"{_indent(_distinct_keys_block(restriction, pagination), 1)}\n"
        "}\n"
        f"GROUP BY {' '.join(group_terms)}\n"
        f"ORDER BY ASC(?{KEY_VARIABLE})"
    )
    count_query = (
        f"{SPARQL_PREFIXES}"
        f"SELECT (COUNT(?{KEY_VARIABLE}) AS ?count) WHERE {{\n"
        f"{_indent(_distinct_keys_block(restriction, None), 1)}\n"
        "}"
    )
    logger.debug("Compiled search query:\n%s", results_query)
    return CompiledSearch(
        results_query=results_query,
        count_query=count_query,
        result_columns=columns,
        restriction=restriction,
        pagination=pagination,
    )
