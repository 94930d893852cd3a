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
"""Daily error log file written under the cache root."""

from __future__ import annotations

import threading
import traceback
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

_FILE_SUFFIX = "_ERR.log"


class ErrorLog:
    """Appends one line per cache failure to ``<root>/<YYYYMMDD>_ERR.log``.

    Each line is ``HH:MM:SS<TAB>operation<TAB>detail``; multi-line
    tracebacks are flattened so that one failure stays on one line. A
    failure to write the file itself is raised to the caller because there
    is nowhere left to report it.
    """

    def __init__(self, root: str | Path, clock: Callable[[], datetime] = datetime.now) -> None:
        self._root = Path(root)
        self._clock = clock
        self._lock = threading.Lock()

    def path_for(self, when: datetime) -> Path:
        """Return the log file that receives entries written at *when*."""
        return self._root / f"{when:%Y%m%d}{_FILE_SUFFIX}"

    def write(self, operation: str, error: BaseException, key: str | None = None) -> None:
        now = self._clock()
        detail = "".join(traceback.format_exception(error)).strip()
        detail = detail.replace("\r", "").replace("\n", " | ")
        if key is not None:
            detail = f"key={key} {detail}"
        line = f"{now:%H:%M:%S}\t{operation}\t{detail}\n"
        with self._lock, open(self.path_for(now), "a", encoding="utf-8") as f:
            f.write(line)

    def files(self) -> list[Path]:
        """Error log files currently present, oldest first."""
        return sorted(self._root.glob(f"*{_FILE_SUFFIX}"))
