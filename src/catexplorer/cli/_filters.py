"""CLI filter token parser: CATEGORY=VALUE options to a filters mapping."""

from __future__ import annotations

from catexplorer.errors import ValidationError
from catexplorer.facets import FilterCategory


def parse_cli_filters(tokens: list[str] | None) -> dict[FilterCategory, list[str]]:
    """Parse ``CATEGORY=VALUE`` tokens; repeated categories accumulate values.

    A value containing commas is split into several values, the way the
    search form submits multi-selects.
    """
    filters: dict[FilterCategory, list[str]] = {}
    for token in tokens or []:
        if "=" not in token:
            raise ValidationError(f"Invalid filter (expected CATEGORY=VALUE): {token}")
        name, raw_value = token.split("=", 1)
        category = FilterCategory.parse(name)
        values = [v.strip() for v in raw_value.split(",")] if "," in raw_value else [raw_value]
        bucket = filters.setdefault(category, [])
        bucket.extend(v for v in values if v)
    return filters


def parse_cli_columns(tokens: list[str] | None) -> list[FilterCategory]:
    """Parse ``--column`` values; each may itself be a comma-separated list."""
    columns: list[FilterCategory] = []
    for token in tokens or []:
        for name in token.split(","):
            if name.strip():
                columns.append(FilterCategory.parse(name))
    return columns
