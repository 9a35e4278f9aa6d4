"""CLI helpers for building services from global CLI state."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from catexplorer.config import ExplorerConfig
from catexplorer.errors import ValidationError
from catexplorer.query_service import QueryServiceClient
from catexplorer.search import SearchService
from catexplorer.storage import ObjectStore, parse_storage_uri
from catexplorer.storage_s3 import S3ObjectStore


def resolve_config() -> ExplorerConfig:
    """Environment defaults overlaid with explicit CLI options."""
    from catexplorer.cli import state

    config = ExplorerConfig.from_env()
    overrides: dict[str, Any] = {}
    if state.storage_uri:
        target = parse_storage_uri(state.storage_uri)
        if target.prefix:
            raise ValidationError(f"Storage URI must name a bucket only: {state.storage_uri}")
        overrides["s3_bucket"] = target.bucket
    if state.endpoint_url:
        overrides["s3_endpoint_url"] = state.endpoint_url
    if state.query_url:
        overrides["query_service_url"] = state.query_url
    if state.max_workers is not None:
        overrides["max_workers"] = state.max_workers
    return replace(config, **overrides)


def open_store() -> ObjectStore:
    """Object store for the configured bucket."""
    config = resolve_config()
    config.validate(require_query=False)
    return S3ObjectStore.from_config(config)


def open_search() -> SearchService:
    """Search service for the configured query endpoint."""
    config = resolve_config()
    config.validate(require_store=False)
    return SearchService(
        QueryServiceClient.from_config(config),
        max_workers=config.max_workers,
        root_marker=config.store_root_marker,
    )
