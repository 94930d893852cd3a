# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""File-backed cache engine."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from flycache.cache.locks import KeyLockTable
from flycache.cache.refresh import RefreshQueue, RefreshWorker
from flycache.cache.storage import FileStorage
from flycache.cache.sweeper import ExpirationSweeper, SweepResult
from flycache.cache.types import CacheEntryOptions, utcnow
from flycache.kernel.exceptions import ConfigurationException
from flycache.logging.error_log import ErrorLog

if TYPE_CHECKING:
    from flycache.config.properties.cache import FileCacheProperties

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL = timedelta(minutes=30)


class FileCache:
    """Process-local cache persisting every entry as two files on disk.

    ``get``, ``set`` and ``remove`` run on the caller's thread under the
    key's lock. ``refresh`` only queues the key; a background worker
    extends sliding entries later. A second background thread sweeps
    expired entries every ``cleanup_interval``. Both threads start on
    construction and stop on :meth:`close`.

    The cache is best-effort: storage and decoding failures are logged to
    the application logger and to ``<path>/<YYYYMMDD>_ERR.log``, and the
    operation degrades to "absent" (``get``) or "did nothing" (mutations).

    Usage::

        with FileCache("/var/cache/app") as cache:
            cache.set("user:1", b"...", CacheEntryOptions(sliding_expiration=timedelta(minutes=20)))
            data = cache.get("user:1")
    """

    def __init__(
        self,
        path: str | Path,
        cleanup_interval: float | timedelta = DEFAULT_CLEANUP_INTERVAL,
        *,
        locks: KeyLockTable | None = None,
        refresh_queue: RefreshQueue | None = None,
        error_log: ErrorLog | None = None,
        clock: Callable[[], datetime] = utcnow,
        refresh_idle_backoff: float = 1.0,
        refresh_yield: float = 0.01,
        auto_start: bool = True,
    ) -> None:
        if not str(path).strip():
            raise ConfigurationException("FileCache requires a cache path", code="CONFIG_001")
        interval = (
            cleanup_interval.total_seconds() if isinstance(cleanup_interval, timedelta) else float(cleanup_interval)
        )
        if interval <= 0:
            raise ConfigurationException(
                f"Cleanup interval must be positive, got {cleanup_interval}",
                code="CONFIG_002",
                context={"cleanup_interval": interval},
            )
        if refresh_idle_backoff <= 0:
            raise ConfigurationException(
                f"Refresh idle backoff must be positive, got {refresh_idle_backoff}",
                code="CONFIG_004",
                context={"refresh_idle_backoff": refresh_idle_backoff},
            )

        self._storage = FileStorage(path)
        self._locks = locks if locks is not None else KeyLockTable()
        self._refresh_queue = refresh_queue if refresh_queue is not None else RefreshQueue()
        self._error_log = error_log if error_log is not None else ErrorLog(self._storage.root)
        self._clock = clock
        self._worker = RefreshWorker(
            self._refresh_queue,
            self._locks,
            self._storage,
            on_error=self._report,
            idle_backoff=refresh_idle_backoff,
            yield_interval=refresh_yield,
            clock=clock,
        )
        self._sweeper = ExpirationSweeper(
            self._locks,
            self._storage,
            on_error=self._report,
            interval=interval,
            clock=clock,
        )
        self._closed = True
        if auto_start:
            self._start_workers()

    @classmethod
    def from_properties(cls, props: FileCacheProperties, **kwargs: object) -> FileCache:
        """Build a cache from bound ``flycache.cache.*`` properties."""
        return cls(
            props.path,
            cleanup_interval=props.cleanup_interval,
            refresh_idle_backoff=props.refresh_idle_backoff,
            refresh_yield=props.refresh_yield,
            **kwargs,  # type: ignore[arg-type]
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._storage.root

    @property
    def storage(self) -> FileStorage:
        return self._storage

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_refreshes(self) -> int:
        return len(self._refresh_queue)

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding a lock handle."""
        return len(self._locks)

    # ------------------------------------------------------------------
    # Cache operations
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        """Return the payload stored under *key*, or None if absent or expired.

        An expired entry is deleted before returning.
        """
        try:
            self._storage.validate_key(key)
            with self._locks.acquire(key):
                record = self._storage.read_record(key)
                if record is None:
                    self._locks.release_if_present(key)
                    return None
                if record.is_expired(self._clock()):
                    self._discard(key)
                    return None
                payload = self._storage.read_payload(key)
                if payload is None:
                    # Record without payload: drop the half-written pair.
                    self._discard(key)
                return payload
        except Exception as exc:
            self._report("get", key, exc)
            return None

    def set(self, key: str, value: bytes, options: CacheEntryOptions | None = None) -> None:
        """Store *value* under *key*, replacing any previous entry.

        The write-time expiry follows ``CacheEntryOptions`` precedence, except
        that a sliding window given together with an absolute policy still
        slides and only uses the absolute instant as its ceiling. If either
        file cannot be written, the key is deleted rather than left with a
        mismatched record and payload.
        """
        try:
            self._storage.validate_key(key)
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError(f"Cache values must be bytes, got {type(value).__name__}")
            data = bytes(value)
            record = (options or CacheEntryOptions()).to_record(self._clock())
            with self._locks.acquire(key):
                try:
                    self._storage.write_record(key, record)
                    self._storage.write_payload(key, data)
                except Exception:
                    self._discard(key)
                    raise
        except Exception as exc:
            self._report("set", key, exc)

    def refresh(self, key: str) -> None:
        """Queue *key* for a sliding-expiration extension. Never blocks on I/O."""
        try:
            self._storage.validate_key(key)
            if self._closed:
                logger.debug("Refresh of '%s' ignored: cache is closed", key)
                return
            self._refresh_queue.enqueue(key)
        except Exception as exc:
            self._report("refresh", key, exc)

    def remove(self, key: str) -> None:
        """Delete *key*. Removing an absent key does nothing."""
        try:
            self._storage.validate_key(key)
            with self._locks.acquire(key):
                self._discard(key)
        except Exception as exc:
            self._report("remove", key, exc)

    async def get_async(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self.get, key)

    async def set_async(self, key: str, value: bytes, options: CacheEntryOptions | None = None) -> None:
        await asyncio.to_thread(self.set, key, value, options)

    async def refresh_async(self, key: str) -> None:
        self.refresh(key)

    async def remove_async(self, key: str) -> None:
        await asyncio.to_thread(self.remove, key)

    def sweep(self) -> SweepResult:
        """Run an expiration sweep now instead of waiting for the timer."""
        return self._sweeper.sweep()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._start_workers()

    async def stop(self) -> None:
        await asyncio.to_thread(self.close)

    def close(self) -> None:
        """Stop the refresh worker and the sweeper. Pending refreshes are dropped."""
        if self._closed:
            return
        self._closed = True
        self._worker.stop()
        self._sweeper.stop()
        self._refresh_queue.clear()
        logger.info("File cache at '%s' closed", self._storage.root)

    def __enter__(self) -> FileCache:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _start_workers(self) -> None:
        if not self._closed:
            return
        self._closed = False
        self._worker.start()
        self._sweeper.start()
        logger.info(
            "File cache at '%s' started (cleanup_interval=%ss)", self._storage.root, self._sweeper.interval
        )

    def _discard(self, key: str) -> None:
        # Caller holds the key's lock.
        self._storage.delete(key)
        self._locks.release_if_present(key)

    def _report(self, operation: str, key: str, error: Exception) -> None:
        logger.warning("Cache %s failed for key '%s': %s", operation, key, error, exc_info=error)
        self._error_log.write(operation, error, key=key)
