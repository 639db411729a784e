# MIT License © 2025 Motohiro Suzuki
"""
nload_core/config.py

Environment-driven loader settings.

- NLOAD_EXTRACT_DIR:      directory for extracted libraries (unset -> temp dir)
- NLOAD_RESOURCE_PACKAGE: package holding bundled libraries
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_EXTRACT_DIR = "NLOAD_EXTRACT_DIR"
ENV_RESOURCE_PACKAGE = "NLOAD_RESOURCE_PACKAGE"

DEFAULT_RESOURCE_PACKAGE = "nload_core.native_libs"


def get_env_value(env_key: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    v = env.get(env_key, "")
    v = v.strip()
    return v or None


@dataclass(frozen=True)
class LoaderConfig:
    extract_dir: Optional[str] = None
    resource_package: str = DEFAULT_RESOURCE_PACKAGE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoaderConfig":
        return cls(
            extract_dir=get_env_value(ENV_EXTRACT_DIR, environ),
            resource_package=get_env_value(ENV_RESOURCE_PACKAGE, environ) or DEFAULT_RESOURCE_PACKAGE,
        )
