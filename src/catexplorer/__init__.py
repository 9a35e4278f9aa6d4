"""catexplorer: faceted search and batch-store navigation for campaign data."""

__version__ = "0.1.0"

from catexplorer.archive import ArchiveStream, archive_filename, stream_archive, stream_prefix_archive
from catexplorer.config import ExplorerConfig
from catexplorer.errors import (
    ArchiveWriterError,
    CatExplorerError,
    ConfigurationError,
    NotFoundError,
    ObjectNotFoundError,
    QueryFailedError,
    ServiceConnectionError,
    StorageBackendError,
    UnknownCategoryError,
    UpstreamFailure,
    ValidationError,
)
from catexplorer.facets import FilterCategory
from catexplorer.folders import attach_download_urls, group_by_folder
from catexplorer.prefixes import discover_leaf_prefixes
from catexplorer.query import CompiledSearch, Pagination, compile_search
from catexplorer.query_service import QueryResult, QueryServiceClient
from catexplorer.results import ConsolidatedRow, consolidate
from catexplorer.search import SearchPage, SearchService
from catexplorer.storage import ObjectRecord, ObjectStore

__all__ = [
    "__version__",
    "ExplorerConfig",
    "FilterCategory",
    "Pagination",
    "CompiledSearch",
    "compile_search",
    "ConsolidatedRow",
    "consolidate",
    "QueryResult",
    "QueryServiceClient",
    "SearchPage",
    "SearchService",
    "ObjectRecord",
    "ObjectStore",
    "discover_leaf_prefixes",
    "group_by_folder",
    "attach_download_urls",
    "ArchiveStream",
    "stream_archive",
    "stream_prefix_archive",
    "archive_filename",
    "CatExplorerError",
    "ValidationError",
    "UnknownCategoryError",
    "UpstreamFailure",
    "QueryFailedError",
    "ServiceConnectionError",
    "NotFoundError",
    "ObjectNotFoundError",
    "StorageBackendError",
    "ArchiveWriterError",
    "ConfigurationError",
]
