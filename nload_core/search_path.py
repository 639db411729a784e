# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Optional, Tuple

ENV_LIBRARY_PATH = "NLOAD_LIBRARY_PATH"


def platform_library_path_var(platform: Optional[str] = None) -> str:
    p = sys.platform if platform is None else platform
    if p == "darwin":
        return "DYLD_LIBRARY_PATH"
    if p.startswith("win") or p == "cygwin":
        return "PATH"
    return "LD_LIBRARY_PATH"


def search_path(environ: Optional[Mapping[str, str]] = None, platform: Optional[str] = None) -> Tuple[Path, ...]:
    """
    Directories to probe for native libraries, in priority order.

    NLOAD_LIBRARY_PATH wins when set and non-blank; otherwise the platform's own library
    path variable is used. Re-read on every call.
    """
    env = os.environ if environ is None else environ
    raw = env.get(ENV_LIBRARY_PATH, "").strip() or env.get(platform_library_path_var(platform), "")

    return tuple(Path(entry).expanduser() for entry in raw.split(os.pathsep) if entry.strip())
