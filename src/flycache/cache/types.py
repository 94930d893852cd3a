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
"""Entry record and expiration options for the file cache."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from flycache.kernel.exceptions import EntryDeserializationException


def utcnow() -> datetime:
    """Timezone-aware current time; the default clock for cache components."""
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are interpreted as local time.
    return value.astimezone(UTC)


@dataclass(frozen=True)
class EntryRecord:
    """Persisted metadata for one cache key.

    ``sliding_seconds == 0`` marks a non-sliding entry. When
    ``absolute_expire_at`` is set, refreshing never moves ``expire_at``
    past it.
    """

    expire_at: datetime
    last_refreshed_at: datetime
    absolute_expire_at: datetime | None = None
    sliding_seconds: float = 0.0

    @property
    def is_sliding(self) -> bool:
        return self.sliding_seconds > 0

    def is_expired(self, now: datetime) -> bool:
        """An entry is gone once *now* is strictly past ``expire_at``."""
        return now > self.expire_at

    def refreshed(self, now: datetime) -> EntryRecord:
        """Return the record extended by its sliding window from *now*.

        Non-sliding records come back unchanged.
        """
        if not self.is_sliding:
            return self
        expire_at = now + timedelta(seconds=self.sliding_seconds)
        if self.absolute_expire_at is not None and expire_at > self.absolute_expire_at:
            expire_at = self.absolute_expire_at
        return replace(self, expire_at=expire_at, last_refreshed_at=now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "expire_at": self.expire_at.isoformat(),
            "last_refreshed_at": self.last_refreshed_at.isoformat(),
            "absolute_expire_at": (
                self.absolute_expire_at.isoformat() if self.absolute_expire_at is not None else None
            ),
            "sliding_seconds": self.sliding_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntryRecord:
        try:
            absolute = data.get("absolute_expire_at")
            sliding = float(data.get("sliding_seconds", 0))
            if sliding < 0:
                raise ValueError(f"sliding_seconds must be non-negative, got {sliding}")
            return cls(
                expire_at=_as_utc(datetime.fromisoformat(data["expire_at"])),
                last_refreshed_at=_as_utc(datetime.fromisoformat(data["last_refreshed_at"])),
                absolute_expire_at=_as_utc(datetime.fromisoformat(absolute)) if absolute else None,
                sliding_seconds=sliding,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise EntryDeserializationException(
                f"Malformed entry record: {exc}",
                code="ENTRY_001",
                context={"data": data},
            ) from exc

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> EntryRecord:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise EntryDeserializationException(
                f"Entry record is not valid JSON: {exc}", code="ENTRY_002"
            ) from exc
        if not isinstance(data, dict):
            raise EntryDeserializationException(
                "Entry record must be a JSON object", code="ENTRY_003", context={"data": data}
            )
        return cls.from_dict(data)


@dataclass(frozen=True)
class CacheEntryOptions:
    """Expiration policy supplied to ``set``.

    Precedence when more than one is given: ``absolute_expiration`` over
    ``absolute_expiration_relative_to_now`` over ``sliding_expiration``.
    A sliding window combined with an absolute policy keeps sliding, with
    the absolute instant acting as its ceiling. With no policy at all the
    entry expires immediately.
    """

    absolute_expiration: datetime | None = None
    absolute_expiration_relative_to_now: timedelta | None = None
    sliding_expiration: timedelta | None = None

    def __post_init__(self) -> None:
        for name in ("absolute_expiration_relative_to_now", "sliding_expiration"):
            value = getattr(self, name)
            if value is not None and value <= timedelta(0):
                raise ValueError(f"{name} must be positive, got {value}")

    def to_record(self, now: datetime) -> EntryRecord:
        """Resolve this policy into an entry record written at *now*."""
        ceiling: datetime | None = None
        if self.absolute_expiration is not None:
            ceiling = _as_utc(self.absolute_expiration)
        elif self.absolute_expiration_relative_to_now is not None:
            ceiling = now + self.absolute_expiration_relative_to_now

        sliding = self.sliding_expiration.total_seconds() if self.sliding_expiration else 0.0
        if sliding:
            expire_at = now + timedelta(seconds=sliding)
            if ceiling is not None and expire_at > ceiling:
                expire_at = ceiling
        else:
            expire_at = ceiling if ceiling is not None else now

        return EntryRecord(
            expire_at=expire_at,
            last_refreshed_at=now,
            absolute_expire_at=ceiling,
            sliding_seconds=sliding,
        )
