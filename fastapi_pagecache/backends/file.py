"""Disk-backed page cache.

Each page is stored in its own file, ``<cache_dir>/<key>.page``. The file
starts with one line of JSON metadata (:class:`EntryInfo`) followed by the raw
body, so a body can never be paired with metadata written for another body.

Writes go to a uniquely named temporary file in the same directory that is
then renamed over the target, which is atomic on POSIX and Windows. Readers in
any process therefore see either the previous entry or the new one.
"""

import os
import tempfile
import time
from collections.abc import Callable
from functools import partial
from logging import getLogger
from pathlib import Path
from typing import Optional

import anyio.to_thread
from pydantic import ValidationError

from fastapi_pagecache.exceptions import CacheError
from fastapi_pagecache.exceptions import CacheReadError
from fastapi_pagecache.exceptions import CacheWriteError
from fastapi_pagecache.headers import compute_etag
from fastapi_pagecache.types import PAGE_CACHE_TTL
from fastapi_pagecache.types import CachedEntry
from fastapi_pagecache.types import CacheKey
from fastapi_pagecache.types import EntryInfo
from fastapi_pagecache.types import HeaderList

from .base import BaseCacheBackend

ENTRY_SUFFIX = ".page"
TEMP_PREFIX = ".tmp-"

logger = getLogger(__name__)


class FileBackend(BaseCacheBackend):
    """Page cache stored as one file per key under ``cache_dir``."""

    def __init__(
        self,
        cache_dir: str | os.PathLike[str],
        ttl: int = PAGE_CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl = ttl
        self.clock = clock

    def path_for(self, key: CacheKey) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            msg = f"Invalid cache key: {key!r}"
            raise CacheError(msg)
        return self.cache_dir / f"{key}{ENTRY_SUFFIX}"

    async def get(self, key: CacheKey) -> Optional[CachedEntry]:
        entry = await anyio.to_thread.run_sync(self._read_entry, self.path_for(key))
        if entry is None:
            return None

        if not entry.is_fresh(self.clock(), self.ttl):
            logger.debug("Cache entry %s is stale", key)
            return None

        return entry

    async def put(
        self,
        key: CacheKey,
        body: bytes,
        content_type: Optional[str] = None,
        source: str = "",
        headers: Optional[HeaderList] = None,
    ) -> CachedEntry:
        entry = CachedEntry(
            body=body,
            etag=compute_etag(body),
            created_at=self.clock(),
            size=len(body),
            content_type=content_type,
            source=source,
            headers=list(headers or []),
        )
        info = EntryInfo(
            key=key,
            etag=entry.etag,
            created_at=entry.created_at,
            size=entry.size,
            content_type=entry.content_type,
            source=entry.source,
            headers=entry.headers,
        )
        await anyio.to_thread.run_sync(
            partial(self._write_entry, self.path_for(key), info, body)
        )
        return entry

    async def delete(self, key: CacheKey) -> None:
        await anyio.to_thread.run_sync(self._unlink, self.path_for(key))

    async def purge_all(self) -> int:
        return await anyio.to_thread.run_sync(self._purge)

    async def list_entries(self) -> list[EntryInfo]:
        return await anyio.to_thread.run_sync(self._scan)

    def _read_entry(self, path: Path) -> Optional[CachedEntry]:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"Unable to read cache entry {path.name}: {e}"
            raise CacheReadError(msg) from e

        header, separator, body = data.partition(b"\n")
        if not separator:
            msg = f"Cache entry {path.name} has no metadata header"
            raise CacheReadError(msg)

        try:
            info = EntryInfo.model_validate_json(header)
        except ValidationError as e:
            msg = f"Cache entry {path.name} has corrupt metadata"
            raise CacheReadError(msg) from e

        if len(body) != info.size or compute_etag(body) != info.etag:
            msg = f"Cache entry {path.name} does not match its metadata"
            raise CacheReadError(msg)

        return CachedEntry(
            body=body,
            etag=info.etag,
            created_at=info.created_at,
            size=info.size,
            content_type=info.content_type,
            source=info.source,
            headers=info.headers,
        )

    def _write_entry(self, path: Path, info: EntryInfo, body: bytes) -> None:
        temp_name = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=TEMP_PREFIX, suffix=ENTRY_SUFFIX, dir=self.cache_dir
            )
            with os.fdopen(fd, "wb") as f:
                f.write(info.model_dump_json().encode("utf-8"))
                f.write(b"\n")
                f.write(body)

            # Atomic rename
            Path(temp_name).replace(path)
        except OSError as e:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            msg = f"Unable to write cache entry {path.name}: {e}"
            raise CacheWriteError(msg) from e

    def _unlink(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            msg = f"Unable to delete cache entry {path.name}: {e}"
            raise CacheError(msg) from e

    def _entry_paths(self, include_temporary: bool = False) -> list[Path]:
        if not self.cache_dir.is_dir():
            return []
        return [
            path
            for path in self.cache_dir.glob(f"*{ENTRY_SUFFIX}")
            if include_temporary or not path.name.startswith(TEMP_PREFIX)
        ]

    def _purge(self) -> int:
        removed = 0
        try:
            # Temporary files left by interrupted writes go too, uncounted
            for path in self._entry_paths(include_temporary=True):
                try:
                    path.unlink()
                except FileNotFoundError:
                    continue
                if not path.name.startswith(TEMP_PREFIX):
                    removed += 1
        except OSError as e:
            msg = f"Unable to purge cache directory {self.cache_dir}: {e}"
            raise CacheError(msg) from e

        logger.info("Purged %d cached pages from %s", removed, self.cache_dir)
        return removed

    def _scan(self) -> list[EntryInfo]:
        entries = []
        for path in self._entry_paths():
            try:
                with path.open("rb") as f:
                    header = f.readline()
                entries.append(EntryInfo.model_validate_json(header))
            except FileNotFoundError:
                continue
            except (OSError, ValidationError):
                logger.warning("Skipping unreadable cache entry %s", path.name)
        return entries
