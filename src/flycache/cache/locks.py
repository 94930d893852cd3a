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
"""Per-key lock table."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class KeyLockTable:
    """Concurrent map from cache key to an exclusive lock.

    Handles are created lazily by a single winning insert, so two callers
    can never serialize on different locks for the same key. Entries are
    dropped with :meth:`release_if_present` once a key's files are gone.
    The table is an optimization only: a missing entry says nothing about
    whether the key exists on disk.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, key: object) -> bool:
        return key in self._locks

    def get(self, key: str) -> threading.Lock | None:
        """Return the key's current lock without creating one."""
        return self._locks.get(key)

    def get_or_create(self, key: str) -> threading.Lock:
        """Return the key's lock, installing a new one if absent."""
        lock = self._locks.get(key)
        if lock is not None:
            return lock
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def release_if_present(self, key: str) -> None:
        """Drop the key's table entry. Call while holding its lock."""
        with self._guard:
            self._locks.pop(key, None)

    @contextmanager
    def acquire(self, key: str) -> Iterator[None]:
        """Hold the key's lock for the duration of the block.

        After acquiring, the handle is checked against the table; if another
        thread released or replaced the entry while we waited, we retry on
        the current handle.
        """
        while True:
            lock = self.get_or_create(key)
            lock.acquire()
            if self._locks.get(key) is lock:
                break
            lock.release()
        try:
            yield
        finally:
            lock.release()
