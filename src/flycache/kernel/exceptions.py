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
"""Unified exception hierarchy for FlyCache.

All cache exceptions inherit from FlyCacheException so callers that opt out
of the best-effort facade (e.g. by driving FileStorage directly) can catch a
single base type.

Categories:
- ConfigurationException: invalid or missing settings at construction time
- InvalidCacheKeyException: keys that cannot be mapped to file names
- InfrastructureException: disk and serialization failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlyCacheException(Exception):
    """Base exception for all FlyCache errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "STORAGE_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Usage Exceptions
# =============================================================================


class ConfigurationException(FlyCacheException):
    """Cache settings are missing or invalid."""


class InvalidCacheKeyException(FlyCacheException):
    """Key cannot be mapped onto a file name inside the cache directories."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FlyCacheException):
    """Infrastructure failures: disk access, serialization."""


class StorageException(InfrastructureException):
    """Reading, writing or deleting a cache file failed."""


class EntryDeserializationException(InfrastructureException):
    """A persisted entry record could not be decoded."""
