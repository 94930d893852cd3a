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
"""Distributed-cache port."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from flycache.cache.types import CacheEntryOptions


@runtime_checkable
class DistributedCache(Protocol):
    """Byte-blob cache keyed by string.

    Implementations are best-effort: none of these methods raises on
    storage failures. ``get`` returns None for missing or expired keys.
    """

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes, options: CacheEntryOptions) -> None: ...

    def refresh(self, key: str) -> None: ...

    def remove(self, key: str) -> None: ...

    async def get_async(self, key: str) -> bytes | None: ...

    async def set_async(self, key: str, value: bytes, options: CacheEntryOptions) -> None: ...

    async def refresh_async(self, key: str) -> None: ...

    async def remove_async(self, key: str) -> None: ...
