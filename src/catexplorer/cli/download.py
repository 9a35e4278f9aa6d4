"""catx zip: download a campaign folder as one zip archive."""

from __future__ import annotations

import os
from typing import Optional

import typer

from catexplorer.archive import archive_filename, stream_prefix_archive
from catexplorer.cli import _exitcodes as ec
from catexplorer.cli._output import print_error, print_object
from catexplorer.cli._storage import open_store, resolve_config
from catexplorer.errors import CatExplorerError
from catexplorer.storage import normalize_prefix


def zip_cmd(
    prefix: str = typer.Argument(..., help="Folder prefix to archive"),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output file (default: derived from the prefix)"
    ),
) -> None:
    """Stream every file under PREFIX into a zip archive on disk."""
    from catexplorer.cli import state

    normalized = normalize_prefix(prefix)
    path = output or archive_filename(normalized)
    opened = False
    try:
        config = resolve_config()
        store = open_store()
        stream = stream_prefix_archive(store, normalized, config=config)
        with open(path, "wb") as f:
            opened = True
            written = stream.write_to(f)
    except CatExplorerError as e:
        if opened and os.path.exists(path):
            os.remove(path)
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    summary = {
        "path": path,
        "bytes": written,
        "entries": len(stream.entries),
        "failed": list(stream.failed_keys),
    }
    if state.json_output:
        print_object(summary, fmt="json")
    else:
        print(f"Wrote {path} ({written} bytes, {len(stream.entries)} entries)")
        for key in stream.failed_keys:
            print(f"  could not fetch: {key}")
