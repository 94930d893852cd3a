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
"""Cache subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flycache.core.config import config_properties


@config_properties(prefix="flycache.cache")
@dataclass
class FileCacheProperties:
    """Configuration for the file-backed cache (flycache.cache.*).

    ``path`` is the cache root and is required when the cache is enabled.
    Intervals are expressed in seconds.
    """

    enabled: bool = True
    path: str = ""
    cleanup_interval: float = 1800.0
    refresh_idle_backoff: float = 1.0
    refresh_yield: float = 0.01
