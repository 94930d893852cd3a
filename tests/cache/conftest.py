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
"""Shared fixtures for cache tests."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest

from flycache.cache.adapters.file import FileCache
from flycache.cache.storage import FileStorage


class FakeClock:
    """Manually advanced, thread-safe clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += timedelta(seconds=seconds)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    return FileStorage(tmp_path / "store")


@pytest.fixture
def cache(tmp_path, clock) -> Iterator[FileCache]:
    c = FileCache(
        tmp_path / "cache",
        cleanup_interval=3600,
        clock=clock,
        refresh_idle_backoff=0.05,
        refresh_yield=0.001,
    )
    yield c
    c.close()


@pytest.fixture
def idle_cache(tmp_path, clock) -> Iterator[FileCache]:
    """A cache whose refresh worker and sweeper are not running."""
    c = FileCache(tmp_path / "cache", cleanup_interval=3600, clock=clock, auto_start=False)
    yield c
    c.close()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    return wait_until
