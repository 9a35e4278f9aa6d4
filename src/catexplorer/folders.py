"""Folder view over flat object listings."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from catexplorer.errors import CatExplorerError
from catexplorer.storage import ObjectRecord, ObjectStore

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^batch/(\d{4})/(\d{2})/(\d{2})/", re.IGNORECASE)


@dataclass
class FolderGroup:
    """Files listed directly under one folder prefix."""

    prefix: str
    files: list[ObjectRecord] = field(default_factory=list)


@dataclass(frozen=True)
class CampaignFolder:
    """A leaf folder and the batch date encoded in its path."""

    prefix: str
    date: str


@dataclass(frozen=True)
class DownloadEntry:
    """A file with its presigned URL, or the reason presigning failed."""

    record: ObjectRecord
    url: str | None = None
    error: str | None = None


def group_by_folder(records: Iterable[ObjectRecord]) -> list[FolderGroup]:
    """Group records by their folder prefix, sorted by prefix.

    Records with an empty name (keys ending in ``/``) or a size of zero are
    folder placeholders and are left out.
    """
    by_prefix: dict[str, list[ObjectRecord]] = {}
    for record in records:
        if not record.key:
            continue
        if not record.name or record.size == 0:
            continue
        by_prefix.setdefault(record.prefix, []).append(record)
    return [FolderGroup(prefix=p, files=by_prefix[p]) for p in sorted(by_prefix)]


def extract_date(prefix: str | None) -> str | None:
    """``batch/2024/05/16/24/`` -> ``2024/05/16``; None if the path has no date."""
    if not prefix:
        return None
    match = _DATE_RE.match(prefix)
    if match is None:
        return None
    return "/".join(match.groups())


def campaigns_from_prefixes(prefixes: Iterable[str]) -> list[CampaignFolder]:
    return [CampaignFolder(prefix=p, date=extract_date(p) or "") for p in prefixes]


def campaigns_from_records(records: Iterable[ObjectRecord]) -> list[CampaignFolder]:
    """Unique folder prefixes of ``records`` in first-seen order, with dates."""
    seen: dict[str, None] = {}
    for record in records:
        if record.key:
            seen.setdefault(record.prefix, None)
    return campaigns_from_prefixes(seen)


def attach_download_urls(
    store: ObjectStore,
    records: Sequence[ObjectRecord],
    ttl_seconds: int = 300,
    *,
    max_workers: int = 8,
) -> list[DownloadEntry]:
    """Presign a GET URL for every record concurrently, keeping input order.

    A failure for one record is reported on its entry and does not affect
    the others.
    """
    if not records:
        return []

    def _presign(record: ObjectRecord) -> DownloadEntry:
        try:
            return DownloadEntry(record=record, url=store.presigned_read_url(record.key, ttl_seconds))
        except CatExplorerError as e:
            logger.warning("Could not presign %s: %s", record.key, e)
            return DownloadEntry(record=record, error=str(e))

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        return list(pool.map(_presign, records))
