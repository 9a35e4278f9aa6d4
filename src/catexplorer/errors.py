"""Structured error types for catexplorer."""

from __future__ import annotations


class CatExplorerError(Exception):
    """Base error for all catexplorer errors."""


class ValidationError(CatExplorerError):
    """Raised when caller input is rejected before any remote call is made."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class UnknownCategoryError(ValidationError):
    """Raised when a filter category name is not part of the facet catalog."""

    def __init__(self, name: object) -> None:
        self.name = name
        super().__init__(f"Unknown filter category: {name!r}")


class UpstreamFailure(CatExplorerError):
    """Raised when the query service fails; status code and message are preserved."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} (status {status_code})")


class QueryFailedError(UpstreamFailure):
    """Raised when the query service answers with a non-OK HTTP status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code)


class ServiceConnectionError(UpstreamFailure):
    """Raised on a network-level failure talking to the query service."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(CatExplorerError):
    """Raised when there is no data to serve (empty prefix, no archive keys)."""


class ObjectNotFoundError(NotFoundError):
    """Raised when a single object key does not exist in the store."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Object not found: {key}")


class StorageBackendError(CatExplorerError):
    """Raised when object-store operations fail."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage backend error during {operation}: {detail}")


class ArchiveWriterError(CatExplorerError):
    """Raised to the archive consumer when the writer pipeline itself fails."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Archive stream aborted: {detail}")


class ConfigurationError(CatExplorerError):
    """Raised when required settings are missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required configuration: {', '.join(missing)}. "
            "Set the corresponding environment variables or CLI options."
        )
