"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from catexplorer.cli import app
from catexplorer.search import SearchService

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner(monkeypatch):
    """Create a CLI test runner; log output stays at the CLI default level."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return CliRunner()


@pytest.fixture
def cli_store(monkeypatch, batch_store):
    """Route every storage command to the in-memory batch store."""
    monkeypatch.setattr("catexplorer.cli.browse.open_store", lambda: batch_store)
    monkeypatch.setattr("catexplorer.cli.download.open_store", lambda: batch_store)
    return batch_store


@pytest.fixture
def cli_executor(monkeypatch, make_executor, campaign_rows):
    """Route search commands to a fake query executor."""
    executor = make_executor(
        campaign_rows,
        count=7,
        options={"campaignName": ["Heck follow-up", "Suzuki screen"]},
    )
    monkeypatch.setattr(
        "catexplorer.cli.search.open_search", lambda: SearchService(executor, max_workers=2)
    )
    return executor


def invoke(runner: CliRunner, args: list[str]) -> "Result":
    """Invoke the CLI."""
    return runner.invoke(app, args, catch_exceptions=False)
