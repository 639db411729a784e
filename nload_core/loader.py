# MIT License © 2025 Motohiro Suzuki
"""
nload_core/loader.py

Single-file dlopen with a three-way outcome.

dlopen reports every failure as OSError, so the message decides between
"incompatible binary" and "permission denied":
  - PermissionError / EACCES / EPERM / "Permission denied" -> SKIPPED (PERMISSION)
  - any other OSError (bad ELF header, wrong arch, undefined symbol) -> SKIPPED (INCOMPATIBLE)
  - anything else -> FATAL
"""

from __future__ import annotations

import ctypes
import errno
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

log = logging.getLogger(__name__)

LinkFunc = Callable[..., Any]

_PERMISSION_MARKERS = ("Permission denied", "Operation not permitted", "Access is denied")


class LoadOutcome(Enum):
    LOADED = "loaded"
    SKIPPED = "skipped"
    FATAL = "fatal"


class SkipReason(Enum):
    INCOMPATIBLE = "incompatible"
    PERMISSION = "permission"


@dataclass(frozen=True)
class LoadResult:
    outcome: LoadOutcome
    file: Path
    handle: Any = None
    reason: Optional[SkipReason] = None
    error: Optional[BaseException] = None

    @property
    def loaded(self) -> bool:
        return self.outcome is LoadOutcome.LOADED


def _is_permission_error(e: OSError) -> bool:
    if isinstance(e, PermissionError):
        return True
    if e.errno in (errno.EACCES, errno.EPERM):
        return True
    s = str(e)
    return any(m in s for m in _PERMISSION_MARKERS)


class Loader:
    def __init__(self, *, link: Optional[LinkFunc] = None, mode: Optional[int] = None) -> None:
        self._link = ctypes.CDLL if link is None else link
        self._mode = mode

    def _open(self, path: str) -> Any:
        if self._mode is None:
            return self._link(path)
        return self._link(path, mode=self._mode)

    def attempt(self, file: Path, key: str, *, owned: bool = False) -> LoadResult:
        """
        Link `file` into the process.

        owned=True marks a file created by the extractor; such a file is
        deleted right away when it turns out to be incompatible.
        """
        p = Path(file).absolute()
        log.debug("attempting to load %s (%s)", p, key)
        try:
            handle = self._open(str(p))
        except OSError as e:
            if _is_permission_error(e):
                log.info("skipping load of %s: %s", p, e)
                return LoadResult(LoadOutcome.SKIPPED, p, reason=SkipReason.PERMISSION, error=e)

            log.debug("skipping load of %s: %s", p, e)
            if owned:
                _discard(p)
            return LoadResult(LoadOutcome.SKIPPED, p, reason=SkipReason.INCOMPATIBLE, error=e)
        except Exception as e:
            log.error("unexpected failure loading %s: %r", p, e)
            return LoadResult(LoadOutcome.FATAL, p, error=e)

        log.info("successfully loaded %s", p)
        return LoadResult(LoadOutcome.LOADED, p, handle=handle)


def _discard(p: Path) -> None:
    log.debug("deleting %s", p)
    try:
        p.unlink(missing_ok=True)
    except OSError as e:
        log.info("failed to delete %s: %s", p, e)
