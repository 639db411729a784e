# MIT License © 2025 Motohiro Suzuki
"""
nload_core/cleanup.py

Exit-time deletion of extracted libraries.

One atexit hook is installed on first use; it unlinks every registered path.
Registration is best-effort: a failure is retried once after yielding the
scheduler, and a second failure only leaves a stray file behind.
"""

from __future__ import annotations

import atexit
import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


class ExitCleanup:
    def __init__(self, *, install_hook: Optional[Callable[[Callable[[], None]], object]] = None) -> None:
        self._install_hook = atexit.register if install_hook is None else install_hook
        self._lock = threading.Lock()
        self._paths: List[Path] = []
        self._hooked = False

    def register(self, path: Path) -> None:
        try:
            self._register(path)
        except Exception:
            log.info("%s exit deletion denied, retrying", path)
            try:
                time.sleep(0)
                self._register(path)
            except Exception:
                log.warning("%s exit deletion denied a second time", path, exc_info=True)

    def _register(self, path: Path) -> None:
        p = Path(path).absolute()
        with self._lock:
            if not self._hooked:
                self._install_hook(self.run)
                self._hooked = True
            if p not in self._paths:
                self._paths.append(p)

    def pending(self) -> List[Path]:
        with self._lock:
            return list(self._paths)

    def run(self) -> None:
        with self._lock:
            paths, self._paths = self._paths, []

        for p in paths:
            try:
                p.unlink(missing_ok=True)
                log.debug("deleted %s", p)
            except OSError as e:
                log.info("failed to delete %s: %s", p, e)
