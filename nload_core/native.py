# MIT License © 2025 Motohiro Suzuki
"""
Canonical native loader entrypoint

Purpose:
- Provide a stable import path: `from nload_core.native import load_library`
- Internally delegate to one process-wide LoadCoordinator, created on first
  use and never reset

Safe to call from module import time:

    _lib = load_library("linux-x86_64/libfoo.so", "darwin/libfoo.dylib")
"""

from __future__ import annotations

import threading
from ctypes import CDLL
from typing import Optional

from nload_core.coordinator import Candidate, LoadCoordinator

_coordinator: Optional[LoadCoordinator] = None
_coordinator_lock = threading.Lock()


def get_coordinator() -> LoadCoordinator:
    global _coordinator
    with _coordinator_lock:
        if _coordinator is None:
            _coordinator = LoadCoordinator()
        return _coordinator


def load_library(*candidates: Candidate) -> CDLL:
    """
    Load the first working candidate and return its ctypes.CDLL.

    Args:
        candidates: alternative relative paths of the library, tried in order
            on the library search path and then as bundled resources.

    Raises:
        NativeLoadError: bad request, or every candidate failed.
    """
    return get_coordinator().load(candidates)


def is_loaded(candidate: Candidate) -> bool:
    return get_coordinator().is_loaded(candidate)
