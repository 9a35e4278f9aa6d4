"""catx search / picklist: run faceted searches against the catalog."""

from __future__ import annotations

from typing import Any, Optional

import typer

from catexplorer.cli import _exitcodes as ec
from catexplorer.cli._filters import parse_cli_columns, parse_cli_filters
from catexplorer.cli._output import print_error, print_object, print_table
from catexplorer.cli._storage import open_search, resolve_config
from catexplorer.errors import CatExplorerError
from catexplorer.query import Pagination
from catexplorer.search import SearchPage


def _output_format(fmt: str) -> str:
    from catexplorer.cli import state

    if state.json_output:
        return "json"
    if fmt not in ("text", "json", "yaml"):
        raise typer.BadParameter(f"Unknown format '{fmt}' (expected text, json or yaml)")
    return fmt


def _page_payload(page: SearchPage) -> dict[str, Any]:
    return {
        "total": page.total,
        "limit": page.pagination.limit,
        "offset": page.pagination.offset,
        "has_more": page.has_more,
        "columns": [c.value for c in page.result_columns],
        "rows": [row.to_dict() for row in page.rows],
    }


def search_cmd(
    filter_args: Optional[list[str]] = typer.Option(
        None, "--filter", "-f", help="CATEGORY=VALUE (repeatable)"
    ),
    column_args: Optional[list[str]] = typer.Option(
        None, "--column", "-c", help="Output column category (repeatable or comma-separated)"
    ),
    limit: Optional[str] = typer.Option(None, "--limit", help="Results per page"),
    offset: str = typer.Option("0", "--offset", help="Skip first N campaigns"),
    page: Optional[int] = typer.Option(None, "--page", help="1-based page number"),
    show_query: bool = typer.Option(False, "--show-query", help="Print the compiled queries"),
    fmt: str = typer.Option("text", "--format", help="Output format: text, json or yaml"),
) -> None:
    """Search campaigns by facet and show one page of consolidated results."""
    output = _output_format(fmt)
    try:
        filters = parse_cli_filters(filter_args)
        columns = parse_cli_columns(column_args)
        per_page = limit if limit is not None else resolve_config().results_per_page
        if page is not None:
            pagination = Pagination.for_page(page, Pagination.of(per_page).limit)
        else:
            pagination = Pagination.of(per_page, offset)
        service = open_search()
        result = service.search(filters, columns, pagination)
    except CatExplorerError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    if show_query and output == "text":
        print(result.query.results_query)
        print()
        print(result.query.count_query)
        print()

    if output != "text":
        print_object(_page_payload(result), fmt=output)
        return

    headers = ["prefix", *[c.value for c in result.result_columns]]
    rows = [[row.group_key, *[row.columns.get(c, "") for c in result.result_columns]] for row in result.rows]
    print_table(headers, rows)
    first = result.pagination.offset + 1 if result.rows else 0
    last = result.pagination.offset + len(result.rows)
    more = " (more available)" if result.has_more else ""
    print(f"Showing {first}-{last} of {result.total}{more}")


def picklist_cmd(
    category: str = typer.Argument(..., help="Filter category, e.g. CAMPAIGN_NAME"),
    fmt: str = typer.Option("text", "--format", help="Output format: text, json or yaml"),
) -> None:
    """List the selectable values of one filter category."""
    output = _output_format(fmt)
    try:
        service = open_search()
        options = service.picklist(category)
    except CatExplorerError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    if output != "text":
        print_object(options, fmt=output)
        return
    for option in options:
        print(option)
