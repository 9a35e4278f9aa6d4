"""Process exit codes for the catx CLI."""

from __future__ import annotations

from catexplorer.errors import (
    ConfigurationError,
    NotFoundError,
    StorageBackendError,
    UpstreamFailure,
    ValidationError,
)

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
NOT_FOUND = 3
UPSTREAM_ERROR = 4
STORAGE_ERROR = 5
CONFIG_ERROR = 6


def for_error(error: Exception) -> int:
    """Exit code for an exception raised by a command."""
    if isinstance(error, ValidationError):
        return USAGE_ERROR
    if isinstance(error, NotFoundError):
        return NOT_FOUND
    if isinstance(error, UpstreamFailure):
        return UPSTREAM_ERROR
    if isinstance(error, StorageBackendError):
        return STORAGE_ERROR
    if isinstance(error, ConfigurationError):
        return CONFIG_ERROR
    return GENERAL_ERROR
