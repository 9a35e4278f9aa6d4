"""HTTP client for the SPARQL query service (QLever), CSV response format."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field

import requests

from catexplorer.config import ExplorerConfig
from catexplorer.errors import ConfigurationError, QueryFailedError, ServiceConnectionError

logger = logging.getLogger(__name__)

_BODY_SNIPPET = 500


@dataclass
class QueryResult:
    """Outcome of one query-service round trip."""

    success: bool
    rows: list[dict[str, str]] = field(default_factory=list)
    message: str = ""
    status_code: int | None = None

    def raise_for_failure(self) -> None:
        if self.success:
            return
        if self.status_code is None:
            raise ServiceConnectionError(self.message)
        raise QueryFailedError(self.message, self.status_code)


def parse_csv_rows(text: str | None) -> list[dict[str, str]]:
    """Parse a CSV body whose first row is the header into one dict per row.

    Rows whose width differs from the header are skipped with a warning.
    """
    if not text or not text.strip():
        return []
    reader = csv.reader(io.StringIO(text.strip()))
    try:
        header = [h.strip().lstrip("?") for h in next(reader)]
    except StopIteration:
        return []

    rows: list[dict[str, str]] = []
    for line_no, values in enumerate(reader, start=2):
        if not values or all(not v.strip() for v in values):
            continue
        if len(values) != len(header):
            logger.warning(
                "Skipping CSV line %d: %d values for %d columns", line_no, len(values), len(header)
            )
            continue
        rows.append(dict(zip(header, values)))
    return rows


class QueryServiceClient:
    """Executes SPARQL text against the query service. No retries are attempted."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: ExplorerConfig) -> QueryServiceClient:
        if not config.query_service_url:
            raise ConfigurationError(["QLEVER_API_URL"])
        return cls(config.query_service_url, timeout_s=config.query_timeout_s)

    def close(self) -> None:
        self._session.close()

    def execute(self, query: str) -> QueryResult:
        """Run ``query`` and return a QueryResult; transport errors become failures."""
        try:
            response = self._session.get(
                self.base_url,
                params={"query": query},
                headers={"Accept": "text/csv"},
                timeout=self.timeout_s,
            )
        except requests.exceptions.Timeout as e:
            logger.error("Query service timed out after %ss", self.timeout_s)
            return QueryResult(success=False, message=f"Query service timed out: {e}")
        except requests.exceptions.RequestException as e:
            logger.error("Query service unreachable: %s", e)
            return QueryResult(success=False, message=f"Failed to reach query service: {e}")

        if not response.ok:
            body = response.text[:_BODY_SNIPPET]
            logger.error("Query service returned %s: %s", response.status_code, body)
            return QueryResult(
                success=False,
                message=f"Query failed: {response.status_code} {response.reason}. Body: {body}",
                status_code=response.status_code,
            )
        return QueryResult(success=True, rows=parse_csv_rows(response.text))

    def fetch_rows(self, query: str) -> list[dict[str, str]]:
        """Run ``query`` and return its rows, raising UpstreamFailure on failure."""
        result = self.execute(query)
        result.raise_for_failure()
        return result.rows
