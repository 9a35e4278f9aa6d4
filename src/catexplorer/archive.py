"""Streaming zip archives assembled from many object reads.

The archive is produced by a writer thread into a bounded channel and pulled
by the consumer chunk by chunk, so the consumer's read rate gates the writer
and the archive is never held in memory as a whole.
"""

from __future__ import annotations

import logging
import queue
import shutil
import threading
import zipfile
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from itertools import islice
from tempfile import SpooledTemporaryFile
from typing import IO, Iterator, Sequence

from catexplorer.config import ExplorerConfig
from catexplorer.errors import ArchiveWriterError, NotFoundError
from catexplorer.storage import SEPARATOR, ObjectStore, normalize_prefix

logger = logging.getLogger(__name__)

PLACEHOLDER_SUFFIX = ".error.txt"

_POLL_S = 0.1


class _Cancelled(Exception):
    """The consumer stopped reading; the writer should wind down."""


class _EndOfArchive:
    pass


_EOF = _EndOfArchive()


@dataclass
class _Failure:
    error: BaseException


@dataclass
class _Fetched:
    key: str
    name: str
    spool: IO[bytes] | None = None
    size: int = 0
    error: str | None = None

    def close(self) -> None:
        if self.spool is not None:
            self.spool.close()
            self.spool = None


class _ChunkChannel:
    """File-like sink for ``zipfile`` that hands fixed-size chunks to a bounded queue.

    It exposes no ``tell``/``seek`` so ``zipfile`` writes in streaming mode
    (data descriptors after each entry).
    """

    def __init__(self, chunk_size: int, depth: int) -> None:
        self._queue: queue.Queue[object] = queue.Queue(maxsize=max(1, depth))
        self._buffer = bytearray()
        self._chunk_size = max(1, chunk_size)
        self.cancelled = threading.Event()

    def write(self, data: bytes) -> int:
        self._buffer += data
        while len(self._buffer) >= self._chunk_size:
            chunk = bytes(self._buffer[: self._chunk_size])
            del self._buffer[: self._chunk_size]
            self._put(chunk)
        return len(data)

    def flush(self) -> None:
        pass

    def finish(self) -> None:
        if self._buffer:
            self._put(bytes(self._buffer))
            self._buffer.clear()
        self._put(_EOF)

    def fail(self, error: BaseException) -> None:
        try:
            self._put(_Failure(error))
        except _Cancelled:
            pass

    def get(self) -> object:
        return self._queue.get()

    def _put(self, item: object) -> None:
        while True:
            if self.cancelled.is_set():
                raise _Cancelled()
            try:
                self._queue.put(item, timeout=_POLL_S)
                return
            except queue.Full:
                continue


def relative_name(key: str, base_prefix: str) -> str:
    """Archive path of ``key``: the key with ``base_prefix`` removed."""
    if base_prefix and key.startswith(base_prefix):
        return key[len(base_prefix) :].lstrip(SEPARATOR)
    return key.lstrip(SEPARATOR)


def placeholder_text(key: str) -> str:
    return f"Could not fetch {key}\n"


class ArchiveStream:
    """Iterable of zip bytes for a fixed set of keys. Iterate once."""

    def __init__(
        self,
        store: ObjectStore,
        keys: Sequence[str],
        base_prefix: str = "",
        *,
        config: ExplorerConfig | None = None,
    ) -> None:
        cfg = config or ExplorerConfig()
        self._store = store
        self._keys = list(keys)
        self._base_prefix = base_prefix
        self._max_workers = max(1, cfg.max_workers)
        self._chunk_size = cfg.archive_chunk_size
        self._compress_level = cfg.archive_compress_level
        self._spool_max = cfg.archive_spool_max_bytes
        self._channel = _ChunkChannel(cfg.archive_chunk_size, cfg.archive_queue_depth)
        self._thread = threading.Thread(target=self._produce, name="archive-writer", daemon=True)
        self._started = False
        self.entries: list[str] = []
        self.failed_keys: list[str] = []

    @property
    def keys(self) -> list[str]:
        return list(self._keys)

    def __iter__(self) -> Iterator[bytes]:
        if self._started:
            raise RuntimeError("ArchiveStream can only be iterated once")
        self._started = True
        return self._chunks()

    def write_to(self, fileobj: IO[bytes]) -> int:
        """Drain the stream into ``fileobj``; returns the number of bytes written."""
        written = 0
        for chunk in self:
            fileobj.write(chunk)
            written += len(chunk)
        return written

    # --- Consumer side ---

    def _chunks(self) -> Iterator[bytes]:
        self._thread.start()
        finished = False
        try:
            while True:
                item = self._channel.get()
                if item is _EOF:
                    finished = True
                    return
                if isinstance(item, _Failure):
                    finished = True
                    raise ArchiveWriterError(str(item.error)) from item.error
                assert isinstance(item, bytes)
                yield item
        finally:
            if finished:
                self._thread.join()
            else:
                self._channel.cancelled.set()

    # --- Writer side ---

    def _fetch(self, key: str) -> _Fetched:
        name = relative_name(key, self._base_prefix)
        if not name:
            return _Fetched(key=key, name=name)
        spool: IO[bytes] = SpooledTemporaryFile(max_size=self._spool_max)
        try:
            body = self._store.get_object_stream(key)
            try:
                shutil.copyfileobj(body, spool, self._chunk_size)
            finally:
                close = getattr(body, "close", None)
                if close is not None:
                    close()
        except Exception as e:
            spool.close()
            logger.warning("Could not fetch %s for archive: %s", key, e)
            return _Fetched(key=key, name=name, error=str(e) or type(e).__name__)
        size = spool.tell()
        spool.seek(0)
        return _Fetched(key=key, name=name, spool=spool, size=size)

    def _append(self, zf: zipfile.ZipFile, fetched: _Fetched) -> None:
        if not fetched.name:
            return
        if fetched.spool is None:
            placeholder = f"{fetched.name}{PLACEHOLDER_SUFFIX}"
            zf.writestr(placeholder, placeholder_text(fetched.key))
            self.entries.append(placeholder)
            self.failed_keys.append(fetched.key)
            return
        force_zip64 = fetched.size * 1.05 > zipfile.ZIP64_LIMIT
        with zf.open(fetched.name, mode="w", force_zip64=force_zip64) as dest:
            shutil.copyfileobj(fetched.spool, dest, self._chunk_size)
        self.entries.append(fetched.name)

    def _produce(self) -> None:
        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="archive-fetch")
        # At most max_workers keys are fetching or spooled and waiting to be written.
        pending: set[Future[_Fetched]] = set()
        done: set[Future[_Fetched]] = set()
        remaining = iter(self._keys)
        try:
            with zipfile.ZipFile(
                self._channel,  # type: ignore[arg-type]
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self._compress_level,
            ) as zf:
                pending = {pool.submit(self._fetch, key) for key in islice(remaining, self._max_workers)}
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        fetched = future.result()
                        try:
                            self._append(zf, fetched)
                        finally:
                            fetched.close()
                        for key in islice(remaining, 1):
                            pending.add(pool.submit(self._fetch, key))
                # Leaving the block writes the central directory, after every fetch is done.
            self._channel.finish()
            logger.info(
                "Archive complete: %d entries, %d placeholders",
                len(self.entries),
                len(self.failed_keys),
            )
        except _Cancelled:
            logger.info("Archive consumer stopped reading; writer cancelled")
        except Exception as e:
            logger.error("Archive writer failed: %s", e)
            self._channel.fail(e)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
            for future in pending | done:
                if future.done() and not future.cancelled() and future.exception() is None:
                    future.result().close()


def stream_archive(
    store: ObjectStore,
    keys: Sequence[str],
    base_prefix: str = "",
    *,
    config: ExplorerConfig | None = None,
) -> ArchiveStream:
    """Archive stream for ``keys``; raises NotFoundError when there is nothing to archive."""
    if not keys:
        raise NotFoundError("No keys supplied for archive")
    return ArchiveStream(store, keys, base_prefix, config=config)


def stream_prefix_archive(
    store: ObjectStore,
    prefix: str,
    *,
    config: ExplorerConfig | None = None,
) -> ArchiveStream:
    """Archive every object under ``prefix``; entries are named relative to it."""
    normalized = normalize_prefix(prefix)
    keys = [r.key for r in store.list_objects(normalized) if r.key]
    if not keys:
        raise NotFoundError(f"No files found under prefix: {normalized}")
    return stream_archive(store, keys, normalized, config=config)


def archive_filename(prefix: str) -> str:
    """``batch/2024/05/16/24/`` -> ``batch-2024-05-16-24.zip``."""
    parts = [p for p in prefix.split(SEPARATOR) if p]
    if not parts:
        return "archive.zip"
    return f"{'-'.join(parts)}.zip"


def archive_headers(prefix: str) -> dict[str, str]:
    """Response headers for serving a prefix archive as a download."""
    return {
        "Content-Type": "application/zip",
        "Content-Disposition": f'attachment; filename="{archive_filename(prefix)}"',
        "Cache-Control": "private, no-cache, no-store, must-revalidate",
    }
