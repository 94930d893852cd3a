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
"""Refresh queue and the background worker that extends sliding entries."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from datetime import datetime

from flycache.cache.locks import KeyLockTable
from flycache.cache.storage import FileStorage
from flycache.cache.types import utcnow

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[str, str, Exception], None]


class RefreshQueue:
    """Multi-producer, single-consumer FIFO of keys awaiting a refresh.

    A key already waiting in the queue is not enqueued again. The check is
    best-effort: a key taken by the worker may be queued once more while
    its refresh is in progress, which is harmless.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[str] = queue.Queue()
        self._pending: set[str] = set()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return self._queue.qsize()

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def enqueue(self, key: str) -> bool:
        """Queue *key*. Returns False when it was already pending."""
        with self._guard:
            if key in self._pending:
                return False
            self._pending.add(key)
        self._queue.put(key)
        return True

    def dequeue(self, timeout: float | None = None) -> str | None:
        """Take the next key, waiting up to *timeout* seconds. None if empty."""
        try:
            key = self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return None
        with self._guard:
            self._pending.discard(key)
        return key

    def clear(self) -> None:
        while self.dequeue() is not None:
            pass


class RefreshWorker:
    """Single background thread draining a :class:`RefreshQueue`.

    For every dequeued key the worker takes the key's lock, re-reads its
    record and pushes ``expire_at`` forward by the sliding window (never
    past the absolute ceiling). Keys that are gone, expired or not sliding
    are skipped. A failure on one key is reported and the loop continues.
    """

    def __init__(
        self,
        refresh_queue: RefreshQueue,
        locks: KeyLockTable,
        storage: FileStorage,
        on_error: ErrorReporter,
        idle_backoff: float = 1.0,
        yield_interval: float = 0.01,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if idle_backoff <= 0:
            raise ValueError(f"Idle backoff must be positive, got {idle_backoff}")
        self._queue = refresh_queue
        self._locks = locks
        self._storage = storage
        self._on_error = on_error
        self._idle_backoff = idle_backoff
        self._yield_interval = yield_interval
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="flycache-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def refresh_key(self, key: str) -> bool:
        """Apply one refresh to *key*. Returns True if the record was rewritten."""
        with self._locks.acquire(key):
            record = self._storage.read_record(key)
            if record is None:
                self._locks.release_if_present(key)
                return False
            now = self._clock()
            if not record.is_sliding or record.is_expired(now):
                return False
            self._storage.write_record(key, record.refreshed(now))
            return True

    def _run(self) -> None:
        logger.debug("Refresh worker started")
        while not self._stop.is_set():
            key = self._queue.dequeue(timeout=self._idle_backoff)
            if key is None:
                continue
            try:
                self.refresh_key(key)
            except Exception as exc:
                self._on_error("refresh_worker", key, exc)
            self._stop.wait(self._yield_interval)
        logger.debug("Refresh worker stopped")
