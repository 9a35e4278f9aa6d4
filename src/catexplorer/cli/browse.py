"""catx prefixes / folders / urls: navigate the batch store."""

from __future__ import annotations

from typing import Optional

import typer

from catexplorer.cli import _exitcodes as ec
from catexplorer.cli._output import print_error, print_object, print_table
from catexplorer.cli._storage import open_store, resolve_config
from catexplorer.errors import CatExplorerError, NotFoundError
from catexplorer.folders import attach_download_urls, campaigns_from_prefixes, group_by_folder
from catexplorer.prefixes import discover_leaf_prefixes
from catexplorer.storage import normalize_prefix


def prefixes_cmd(
    start: Optional[str] = typer.Argument(None, help="Prefix to start from (default: batch/)"),
    depth: Optional[int] = typer.Option(
        None, "--depth", help="Separator depth of leaf folders (default: 5)"
    ),
) -> None:
    """List leaf campaign folders below a prefix."""
    from catexplorer.cli import state

    try:
        config = resolve_config()
        store = open_store()
        discovered = discover_leaf_prefixes(
            store,
            normalize_prefix(start or config.store_root_marker),
            depth if depth is not None else config.leaf_depth,
            max_workers=config.max_workers,
        )
    except CatExplorerError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    campaigns = campaigns_from_prefixes(discovered.prefixes)
    if state.json_output:
        print_object(
            {
                "count": discovered.count,
                "campaigns": [{"prefix": c.prefix, "date": c.date} for c in campaigns],
            },
            fmt="json",
        )
        return
    print_table(["prefix", "date"], [[c.prefix, c.date] for c in campaigns])
    print(f"{discovered.count} campaign folder(s)")


def folders_cmd(
    prefix: str = typer.Argument(..., help="Prefix whose objects are grouped by folder"),
) -> None:
    """Group the objects under a prefix by their folder."""
    from catexplorer.cli import state

    try:
        store = open_store()
        groups = group_by_folder(store.list_objects(normalize_prefix(prefix)))
        if not groups:
            raise NotFoundError(f"No files found under prefix: {normalize_prefix(prefix)}")
    except CatExplorerError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    if state.json_output:
        print_object(
            [
                {
                    "prefix": g.prefix,
                    "files": [{"name": f.name, "key": f.key, "size": f.size} for f in g.files],
                }
                for g in groups
            ],
            fmt="json",
        )
        return
    for group in groups:
        print(f"{group.prefix} ({len(group.files)} file(s))")
        for record in group.files:
            print(f"  {record.name}  {record.size}")


def urls_cmd(
    prefix: str = typer.Argument(..., help="Prefix whose objects get download URLs"),
    ttl: Optional[int] = typer.Option(None, "--ttl", min=1, help="URL lifetime in seconds"),
) -> None:
    """Print a presigned download URL for every file under a prefix."""
    from catexplorer.cli import state

    try:
        config = resolve_config()
        store = open_store()
        records = [f for g in group_by_folder(store.list_objects(normalize_prefix(prefix))) for f in g.files]
        if not records:
            raise NotFoundError(f"No files found under prefix: {normalize_prefix(prefix)}")
        entries = attach_download_urls(
            store,
            records,
            ttl if ttl is not None else config.presign_ttl_s,
            max_workers=config.max_workers,
        )
    except CatExplorerError as e:
        print_error(str(e))
        raise typer.Exit(ec.for_error(e))

    rows = [[e.record.key, e.url or "", e.error or ""] for e in entries]
    print_table(["key", "url", "error"], rows, json_mode=state.json_output)
    if any(e.error for e in entries):
        raise typer.Exit(ec.STORAGE_ERROR)
