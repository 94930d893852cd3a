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
"""File storage backend: one record file and one payload file per key."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from flycache.cache.types import EntryRecord
from flycache.kernel.exceptions import InvalidCacheKeyException, StorageException

RECORDS_DIR = "cache"
PAYLOADS_DIR = "meta"
RECORD_SUFFIX = ".cache"
PAYLOAD_SUFFIX = ".meta"

_FORBIDDEN_CHARS = frozenset("/\\\x00")


class FileStorage:
    """Reads and writes cache entries under a root directory.

    Layout::

        <root>/cache/<key>.cache   JSON-encoded EntryRecord
        <root>/meta/<key>.meta     raw payload bytes

    Methods are plain I/O with no locking; callers must hold the key's lock.
    Files are written to a temporary sibling and moved into place, so a
    reader never observes a partially written file.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._records = self._root / RECORDS_DIR
        self._payloads = self._root / PAYLOADS_DIR
        try:
            self._records.mkdir(parents=True, exist_ok=True)
            self._payloads.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageException(
                f"Cannot create cache directories under '{self._root}': {exc}",
                code="STORAGE_001",
                context={"root": str(self._root)},
            ) from exc

    @property
    def root(self) -> Path:
        return self._root

    @property
    def records_dir(self) -> Path:
        return self._records

    @property
    def payloads_dir(self) -> Path:
        return self._payloads

    @staticmethod
    def validate_key(key: str) -> str:
        if not isinstance(key, str) or not key:
            raise InvalidCacheKeyException("Cache key must be a non-empty string", code="KEY_001")
        if key in (".", "..") or any(ch in _FORBIDDEN_CHARS for ch in key):
            raise InvalidCacheKeyException(
                f"Cache key '{key}' cannot be used as a file name",
                code="KEY_002",
                context={"key": key},
            )
        return key

    def record_path(self, key: str) -> Path:
        return self._records / f"{self.validate_key(key)}{RECORD_SUFFIX}"

    def payload_path(self, key: str) -> Path:
        return self._payloads / f"{self.validate_key(key)}{PAYLOAD_SUFFIX}"

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def write_record(self, key: str, record: EntryRecord) -> None:
        self._write_atomic(self.record_path(key), record.to_json().encode("utf-8"))

    def read_record(self, key: str) -> EntryRecord | None:
        """Return the key's record, or None when no record file exists."""
        data = self._read(self.record_path(key))
        if data is None:
            return None
        return EntryRecord.from_json(data.decode("utf-8"))

    def keys(self) -> list[str]:
        """Keys of every record file currently on disk."""
        try:
            return sorted(p.name[: -len(RECORD_SUFFIX)] for p in self._records.glob(f"*{RECORD_SUFFIX}"))
        except OSError as exc:
            raise StorageException(
                f"Cannot list '{self._records}': {exc}", code="STORAGE_002"
            ) from exc

    # ------------------------------------------------------------------
    # Payloads
    # ------------------------------------------------------------------

    def write_payload(self, key: str, value: bytes) -> None:
        self._write_atomic(self.payload_path(key), bytes(value))

    def read_payload(self, key: str) -> bytes | None:
        """Return the key's payload, or None when no payload file exists."""
        return self._read(self.payload_path(key))

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete(self, key: str) -> bool:
        """Delete both files for *key*. Returns True if anything was removed."""
        removed = False
        for path in (self.record_path(key), self.payload_path(key)):
            try:
                path.unlink()
                removed = True
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageException(
                    f"Cannot delete '{path}': {exc}", code="STORAGE_003", context={"key": key}
                ) from exc
        return removed

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read(path: Path) -> bytes | None:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageException(f"Cannot read '{path}': {exc}", code="STORAGE_004") from exc

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageException(f"Cannot write '{path}': {exc}", code="STORAGE_005") from exc
