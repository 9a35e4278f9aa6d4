"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
import sys
from typing import Any

import yaml


def _format_cell(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)


def print_table(headers: list[str], rows: list[list[Any]], *, json_mode: bool = False) -> None:
    """Print data as a table (text) or JSON array."""
    if json_mode:
        data = [dict(zip(headers, row)) for row in rows]
        print(json.dumps(data, indent=2, default=str))
        return

    if not rows:
        return

    widths = [len(h) for h in headers]
    str_rows = [[_format_cell(v) for v in row] for row in rows]
    for row in str_rows:
        for i, val in enumerate(row):
            if i < len(widths):
                widths[i] = max(widths[i], len(val))

    print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    print("  ".join("-" * w for w in widths))
    for row in str_rows:
        print(
            "  ".join(val.ljust(widths[i]) if i < len(widths) else val for i, val in enumerate(row))
        )


def print_object(data: dict[str, Any] | list[Any], *, fmt: str = "text") -> None:
    """Print a single object or list as JSON, YAML or key-value pairs."""
    if fmt == "json":
        print(json.dumps(data, indent=2, default=str))
        return
    if fmt == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), end="")
        return

    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                for k, v in item.items():
                    print(f"  {k}: {_format_cell(v)}")
                print()
            else:
                print(f"  {item}")
        return

    for k, v in data.items():
        print(f"{k}: {_format_cell(v)}")


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    print(f"Error: {msg}", file=sys.stderr)
