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
"""Tests for RefreshQueue and RefreshWorker."""

from datetime import timedelta

import pytest

from flycache.cache.locks import KeyLockTable
from flycache.cache.refresh import RefreshQueue, RefreshWorker
from flycache.cache.types import CacheEntryOptions
from flycache.kernel.exceptions import EntryDeserializationException


class TestRefreshQueue:
    def test_fifo_order(self):
        q = RefreshQueue()
        for key in ("a", "b", "c"):
            q.enqueue(key)
        assert [q.dequeue(), q.dequeue(), q.dequeue()] == ["a", "b", "c"]

    def test_duplicate_pending_key_not_enqueued(self):
        q = RefreshQueue()
        assert q.enqueue("a") is True
        assert q.enqueue("a") is False
        assert len(q) == 1

    def test_key_can_be_requeued_after_dequeue(self):
        q = RefreshQueue()
        q.enqueue("a")
        assert q.dequeue() == "a"
        assert "a" not in q
        assert q.enqueue("a") is True

    def test_dequeue_empty_returns_none(self):
        q = RefreshQueue()
        assert q.dequeue() is None
        assert q.dequeue(timeout=0.01) is None

    def test_clear(self):
        q = RefreshQueue()
        q.enqueue("a")
        q.enqueue("b")
        q.clear()
        assert len(q) == 0
        assert "a" not in q


class _Errors:
    def __init__(self):
        self.calls: list[tuple[str, str, Exception]] = []

    def __call__(self, operation, key, exc):
        self.calls.append((operation, key, exc))


@pytest.fixture
def errors():
    return _Errors()


@pytest.fixture
def worker(storage, clock, errors):
    return RefreshWorker(RefreshQueue(), KeyLockTable(), storage, on_error=errors, clock=clock)


class TestRefreshKey:
    def test_sliding_entry_is_extended(self, worker, storage, clock):
        storage.write_record("k", CacheEntryOptions(sliding_expiration=timedelta(seconds=10)).to_record(clock()))
        clock.advance(6)
        assert worker.refresh_key("k") is True
        record = storage.read_record("k")
        assert record.expire_at == clock() + timedelta(seconds=10)
        assert record.last_refreshed_at == clock()

    def test_extension_respects_ceiling(self, worker, storage, clock):
        options = CacheEntryOptions(
            absolute_expiration_relative_to_now=timedelta(seconds=15),
            sliding_expiration=timedelta(seconds=10),
        )
        start = clock()
        storage.write_record("k", options.to_record(start))
        clock.advance(8)
        worker.refresh_key("k")
        assert storage.read_record("k").expire_at == start + timedelta(seconds=15)

    def test_absolute_entry_untouched(self, worker, storage, clock):
        record = CacheEntryOptions(absolute_expiration_relative_to_now=timedelta(seconds=10)).to_record(clock())
        storage.write_record("k", record)
        clock.advance(5)
        assert worker.refresh_key("k") is False
        assert storage.read_record("k") == record

    def test_expired_entry_not_revived(self, worker, storage, clock):
        record = CacheEntryOptions(sliding_expiration=timedelta(seconds=2)).to_record(clock())
        storage.write_record("k", record)
        clock.advance(3)
        assert worker.refresh_key("k") is False
        assert storage.read_record("k") == record

    def test_missing_entry_dropped(self, worker, storage):
        assert worker.refresh_key("gone") is False
        assert storage.read_record("gone") is None
        assert worker._locks.get("gone") is None

    def test_entry_on_disk_without_lock_handle_is_refreshed(self, worker, storage, clock):
        storage.write_record("cold", CacheEntryOptions(sliding_expiration=timedelta(seconds=10)).to_record(clock()))
        assert worker._locks.get("cold") is None
        clock.advance(1)
        assert worker.refresh_key("cold") is True

    def test_corrupt_record_raises_to_loop(self, worker, storage):
        (storage.records_dir / "bad.cache").write_text("garbage")
        with pytest.raises(EntryDeserializationException):
            worker.refresh_key("bad")


class TestRefreshLoop:
    def test_worker_drains_queue(self, storage, clock, errors, wait_for):
        q = RefreshQueue()
        worker = RefreshWorker(q, KeyLockTable(), storage, on_error=errors, idle_backoff=0.05, clock=clock)
        storage.write_record("k", CacheEntryOptions(sliding_expiration=timedelta(seconds=10)).to_record(clock()))
        clock.advance(4)
        worker.start()
        try:
            q.enqueue("k")
            assert wait_for(lambda: storage.read_record("k").last_refreshed_at == clock())
        finally:
            worker.stop()

    def test_failure_on_one_key_does_not_stop_loop(self, storage, clock, errors, wait_for):
        q = RefreshQueue()
        worker = RefreshWorker(q, KeyLockTable(), storage, on_error=errors, idle_backoff=0.05, clock=clock)
        (storage.records_dir / "bad.cache").write_text("garbage")
        storage.write_record("good", CacheEntryOptions(sliding_expiration=timedelta(seconds=10)).to_record(clock()))
        clock.advance(4)
        worker.start()
        try:
            q.enqueue("bad")
            q.enqueue("good")
            assert wait_for(lambda: storage.read_record("good").last_refreshed_at == clock())
        finally:
            worker.stop()
        assert [(op, key) for op, key, _ in errors.calls] == [("refresh_worker", "bad")]

    def test_stop_is_prompt(self, storage, errors):
        worker = RefreshWorker(RefreshQueue(), KeyLockTable(), storage, on_error=errors, idle_backoff=0.1)
        worker.start()
        assert worker.running
        worker.stop(timeout=1.0)
        assert not worker.running

    def test_rejects_non_positive_idle_backoff(self, storage, errors):
        with pytest.raises(ValueError):
            RefreshWorker(RefreshQueue(), KeyLockTable(), storage, on_error=errors, idle_backoff=0)

    def test_start_twice_keeps_one_thread(self, storage, errors):
        worker = RefreshWorker(RefreshQueue(), KeyLockTable(), storage, on_error=errors, idle_backoff=0.05)
        worker.start()
        thread = worker._thread
        worker.start()
        assert worker._thread is thread
        worker.stop()
