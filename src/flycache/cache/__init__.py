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
"""FlyCache Cache — file-backed distributed-cache engine."""

from flycache.cache.adapters.file import FileCache
from flycache.cache.locks import KeyLockTable
from flycache.cache.ports.outbound import DistributedCache
from flycache.cache.refresh import RefreshQueue, RefreshWorker
from flycache.cache.storage import FileStorage
from flycache.cache.sweeper import ExpirationSweeper, SweepResult
from flycache.cache.types import CacheEntryOptions, EntryRecord

__all__ = [
    "CacheEntryOptions",
    "DistributedCache",
    "EntryRecord",
    "ExpirationSweeper",
    "FileCache",
    "FileStorage",
    "KeyLockTable",
    "RefreshQueue",
    "RefreshWorker",
    "SweepResult",
]
