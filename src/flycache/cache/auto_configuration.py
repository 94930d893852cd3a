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
"""Cache subsystem auto-configuration."""

from __future__ import annotations

from pathlib import Path

import structlog

from flycache.cache.adapters.file import FileCache
from flycache.config.properties.cache import FileCacheProperties
from flycache.core.config import Config
from flycache.kernel.exceptions import ConfigurationException
from flycache.logging.port import LoggingPort
from flycache.logging.structlog_adapter import StructlogAdapter

logger = structlog.get_logger("flycache.cache.auto_configuration")


class FileCacheAutoConfiguration:
    """Builds a configured :class:`FileCache` from ``flycache.*`` settings.

    Usage::

        config = Config.from_sources(".", active_profiles=["prod"])
        cache = FileCacheAutoConfiguration().file_cache(config)
    """

    def __init__(self, logging_port: LoggingPort | None = None) -> None:
        self._logging = logging_port or StructlogAdapter()

    def properties(self, config: Config) -> FileCacheProperties:
        return config.bind(FileCacheProperties)

    def file_cache(self, config: Config) -> FileCache | None:
        """Configure logging and return the cache, or None when disabled."""
        self._logging.configure(config)
        props = self.properties(config)
        if not props.enabled:
            logger.info("file_cache_disabled")
            return None
        if not props.path:
            raise ConfigurationException(
                "flycache.cache.path must be set when the file cache is enabled",
                code="CONFIG_003",
            )
        logger.info("file_cache_configured", path=props.path, cleanup_interval=props.cleanup_interval)
        return FileCache.from_properties(props)

    @classmethod
    def with_path(cls, path: str | Path, cleanup_minutes: float = 30) -> FileCache:
        """Shortcut for the common case: a root directory and a sweep period in minutes."""
        config = Config(
            {"flycache": {"cache": {"enabled": True, "path": str(path), "cleanup_interval": cleanup_minutes * 60}}}
        )
        cache = cls().file_cache(config)
        if cache is None:
            raise ConfigurationException(
                "File cache is disabled by configuration (flycache.cache.enabled)",
                code="CONFIG_005",
                context={"path": str(path)},
            )
        return cache
