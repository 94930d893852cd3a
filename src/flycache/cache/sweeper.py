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
"""Periodic sweep that deletes expired entries from disk."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from flycache.cache.locks import KeyLockTable
from flycache.cache.refresh import ErrorReporter
from flycache.cache.storage import FileStorage
from flycache.cache.types import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one sweep."""

    scanned: int = 0
    removed: int = 0
    failed: int = 0
    skipped: bool = False


class ExpirationSweeper:
    """Background thread that scans every record on a fixed interval.

    The first scan runs as soon as the sweeper starts. Each key is handled
    under its own lock and no lock is held across keys. Scans never
    overlap: a scan requested while another one is running is skipped.
    """

    def __init__(
        self,
        locks: KeyLockTable,
        storage: FileStorage,
        on_error: ErrorReporter,
        interval: float = 1800.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self._locks = locks
        self._storage = storage
        self._on_error = on_error
        self._interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._scan_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="flycache-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def sweep(self) -> SweepResult:
        """Run one scan now, unless a scan is already in progress."""
        if not self._scan_lock.acquire(blocking=False):
            return SweepResult(skipped=True)
        try:
            return self._scan()
        finally:
            self._scan_lock.release()

    def _scan(self) -> SweepResult:
        try:
            keys = self._storage.keys()
        except Exception as exc:
            self._on_error("sweep", "*", exc)
            return SweepResult(failed=1)

        removed = failed = 0
        for key in keys:
            if self._stop.is_set():
                break
            try:
                if self._remove_if_expired(key):
                    removed += 1
            except Exception as exc:
                failed += 1
                self._on_error("sweep", key, exc)

        if removed or failed:
            logger.info("Sweep finished: scanned=%d removed=%d failed=%d", len(keys), removed, failed)
        return SweepResult(scanned=len(keys), removed=removed, failed=failed)

    def _remove_if_expired(self, key: str) -> bool:
        with self._locks.acquire(key):
            record = self._storage.read_record(key)
            if record is not None and not record.is_expired(self._clock()):
                return False
            self._storage.delete(key)
            self._locks.release_if_present(key)
            return record is not None

    def _run(self) -> None:
        logger.debug("Sweeper started (interval=%ss)", self._interval)
        while not self._stop.is_set():
            self.sweep()
            self._stop.wait(self._interval)
        logger.debug("Sweeper stopped")
