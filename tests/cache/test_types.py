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
"""Tests for EntryRecord and CacheEntryOptions."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from flycache.cache.types import CacheEntryOptions, EntryRecord
from flycache.kernel.exceptions import EntryDeserializationException

NOW = datetime(2026, 3, 1, 8, 30, tzinfo=UTC)


class TestEntryRecordExpiry:
    def test_not_expired_at_deadline(self):
        record = EntryRecord(expire_at=NOW, last_refreshed_at=NOW)
        assert record.is_expired(NOW) is False

    def test_expired_strictly_after_deadline(self):
        record = EntryRecord(expire_at=NOW, last_refreshed_at=NOW)
        assert record.is_expired(NOW + timedelta(microseconds=1)) is True

    def test_is_sliding(self):
        assert EntryRecord(NOW, NOW, sliding_seconds=5).is_sliding is True
        assert EntryRecord(NOW, NOW).is_sliding is False


class TestEntryRecordRefresh:
    def test_refresh_extends_from_now(self):
        record = EntryRecord(expire_at=NOW + timedelta(seconds=10), last_refreshed_at=NOW, sliding_seconds=10)
        later = NOW + timedelta(seconds=7)
        refreshed = record.refreshed(later)
        assert refreshed.expire_at == later + timedelta(seconds=10)
        assert refreshed.last_refreshed_at == later

    def test_refresh_clamped_to_ceiling(self):
        ceiling = NOW + timedelta(seconds=15)
        record = EntryRecord(
            expire_at=NOW + timedelta(seconds=10),
            last_refreshed_at=NOW,
            absolute_expire_at=ceiling,
            sliding_seconds=10,
        )
        refreshed = record.refreshed(NOW + timedelta(seconds=9))
        assert refreshed.expire_at == ceiling

    def test_refresh_non_sliding_is_noop(self):
        record = EntryRecord(expire_at=NOW + timedelta(seconds=10), last_refreshed_at=NOW)
        assert record.refreshed(NOW + timedelta(seconds=5)) is record


class TestEntryRecordSerialization:
    def test_json_round_trip_preserves_fields(self):
        record = EntryRecord(
            expire_at=NOW + timedelta(seconds=30),
            last_refreshed_at=NOW,
            absolute_expire_at=NOW + timedelta(hours=1),
            sliding_seconds=30,
        )
        assert EntryRecord.from_json(record.to_json()) == record

    def test_to_dict_uses_iso_timestamps(self):
        data = EntryRecord(expire_at=NOW, last_refreshed_at=NOW).to_dict()
        assert data == {
            "expire_at": "2026-03-01T08:30:00+00:00",
            "last_refreshed_at": "2026-03-01T08:30:00+00:00",
            "absolute_expire_at": None,
            "sliding_seconds": 0.0,
        }

    def test_from_dict_normalizes_offsets_to_utc(self):
        record = EntryRecord.from_dict(
            {
                "expire_at": "2026-03-01T10:30:00+02:00",
                "last_refreshed_at": "2026-03-01T10:30:00+02:00",
                "sliding_seconds": 0,
            }
        )
        assert record.expire_at == NOW
        assert record.expire_at.tzinfo == UTC

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "[1, 2]",
            '{"last_refreshed_at": "2026-03-01T08:30:00+00:00"}',
            '{"expire_at": "yesterday", "last_refreshed_at": "2026-03-01T08:30:00+00:00"}',
            '{"expire_at": "2026-03-01T08:30:00+00:00", "last_refreshed_at": '
            '"2026-03-01T08:30:00+00:00", "sliding_seconds": -1}',
        ],
    )
    def test_malformed_records_raise(self, text):
        with pytest.raises(EntryDeserializationException):
            EntryRecord.from_json(text)


class TestCacheEntryOptions:
    def test_absolute_timestamp(self):
        at = NOW + timedelta(seconds=10)
        record = CacheEntryOptions(absolute_expiration=at).to_record(NOW)
        assert record.expire_at == at
        assert record.absolute_expire_at == at
        assert record.sliding_seconds == 0

    def test_absolute_timestamp_in_other_timezone(self):
        at = datetime(2026, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=1)))
        record = CacheEntryOptions(absolute_expiration=at).to_record(NOW)
        assert record.expire_at == NOW

    def test_relative_duration(self):
        record = CacheEntryOptions(absolute_expiration_relative_to_now=timedelta(minutes=5)).to_record(NOW)
        assert record.expire_at == NOW + timedelta(minutes=5)
        assert record.sliding_seconds == 0

    def test_sliding_duration(self):
        record = CacheEntryOptions(sliding_expiration=timedelta(seconds=2)).to_record(NOW)
        assert record.expire_at == NOW + timedelta(seconds=2)
        assert record.sliding_seconds == 2
        assert record.absolute_expire_at is None

    def test_absolute_timestamp_wins_over_relative(self):
        at = NOW + timedelta(seconds=10)
        options = CacheEntryOptions(
            absolute_expiration=at,
            absolute_expiration_relative_to_now=timedelta(hours=1),
        )
        assert options.to_record(NOW).expire_at == at

    def test_absolute_caps_sliding(self):
        options = CacheEntryOptions(
            absolute_expiration_relative_to_now=timedelta(seconds=5),
            sliding_expiration=timedelta(seconds=20),
        )
        record = options.to_record(NOW)
        assert record.expire_at == NOW + timedelta(seconds=5)
        assert record.absolute_expire_at == NOW + timedelta(seconds=5)
        assert record.sliding_seconds == 20

    def test_no_policy_expires_immediately(self):
        record = CacheEntryOptions().to_record(NOW)
        assert record.expire_at == NOW
        assert record.is_expired(NOW + timedelta(microseconds=1))

    @pytest.mark.parametrize("bad", [timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_durations_rejected(self, bad):
        with pytest.raises(ValueError):
            CacheEntryOptions(sliding_expiration=bad)
        with pytest.raises(ValueError):
            CacheEntryOptions(absolute_expiration_relative_to_now=bad)
