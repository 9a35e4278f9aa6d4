"""catexplorer CLI: operator console for the batch store and the campaign catalog."""

from __future__ import annotations

from typing import Optional

import typer

from catexplorer.cli import browse, download, search
from catexplorer.logs import configure_logging
from catexplorer.storage import parse_storage_uri

app = typer.Typer(
    name="catx",
    help="catexplorer CLI: search the campaign catalog and browse batch folders.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    storage_uri: str | None = None
    endpoint_url: str | None = None
    query_url: str | None = None
    max_workers: int | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("catexplorer")
        except Exception:
            v = "unknown"
        print(f"catx {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="CATEXPLORER_STORAGE_URI",
        help="Object store bucket URI (s3://bucket); defaults to S3_BUCKET_NAME",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None, "--endpoint-url", help="S3 endpoint URL (defaults to AWS_S3_ENDPOINT)"
    ),
    query_url: Optional[str] = typer.Option(
        None, "--query-url", help="SPARQL endpoint URL (defaults to QLEVER_API_URL)"
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", min=1, help="Cap on concurrent remote calls"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", envvar="LOG_LEVEL", help="Log level"),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all catx commands."""
    if storage_uri:
        try:
            target = parse_storage_uri(storage_uri)
        except Exception as e:
            raise typer.BadParameter(str(e))
        if target.prefix:
            raise typer.BadParameter(
                f"--storage-uri names a bucket only; pass the prefix '{target.prefix}' to the command"
            )

    configure_logging(log_level)
    state.storage_uri = storage_uri
    state.endpoint_url = endpoint_url
    state.query_url = query_url
    state.max_workers = max_workers
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="search")(search.search_cmd)
app.command(name="picklist")(search.picklist_cmd)
app.command(name="prefixes")(browse.prefixes_cmd)
app.command(name="folders")(browse.folders_cmd)
app.command(name="urls")(browse.urls_cmd)
app.command(name="zip")(download.zip_cmd)


def main() -> None:
    """Entry point for the catx CLI."""
    app()
