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
"""Unified lifecycle protocol for components that own background workers.

Hosts call start() during startup and stop() during shutdown -- in
registration order and reverse order respectively.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Lifecycle(Protocol):
    """Standard lifecycle for components owning threads or files."""

    async def start(self) -> None:
        """Start background work. Must be safe to call when already running."""
        ...

    async def stop(self) -> None:
        """Stop background work and release resources.

        Best-effort cleanup -- in-flight operations are allowed to finish.
        """
        ...
