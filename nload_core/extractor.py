# MIT License © 2025 Motohiro Suzuki
"""
nload_core/extractor.py

Copies a library bundled as package data onto the filesystem so it can be
dlopen'ed.

Destination:
  - extract_dir configured -> {extract_dir}/{basename} (overwritten)
  - otherwise              -> unique temp file, basename kept as suffix

Every destination is handed to ExitCleanup before any bytes are written.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import shutil
import tempfile
import time
from importlib import resources
from pathlib import Path
from typing import Any, List, Optional

from nload_core.cleanup import ExitCleanup
from nload_core.config import DEFAULT_RESOURCE_PACKAGE
from nload_core.errors import LoadErrorKind, NativeLoadError

log = logging.getLogger(__name__)

TEMP_PREFIX = "nload"


def resource_parts(logical_path: str) -> list:
    return [p for p in str(logical_path).replace("\\", "/").split("/") if p and p != "."]


class ResourceExtractor:
    def __init__(
        self,
        cleanup: ExitCleanup,
        *,
        extract_dir: Optional[str] = None,
        resource_package: str = DEFAULT_RESOURCE_PACKAGE,
        root: Any = None,
    ) -> None:
        # root: any importlib Traversable (a pathlib.Path works too)
        self._cleanup = cleanup
        self._extract_dir = extract_dir
        self._resource_package = resource_package
        self._root = root

    def _resource_roots(self) -> List[Any]:
        if self._root is not None:
            return [self._root]
        try:
            spec = importlib.util.find_spec(self._resource_package)
        except (ModuleNotFoundError, ValueError):
            spec = None
        if spec is None or not spec.submodule_search_locations:
            log.debug("resource package %s not found", self._resource_package)
            return []

        # editable installs put finder hooks on __path__ next to the real dirs
        dirs = [Path(p) for p in spec.submodule_search_locations if os.path.isdir(p)]
        if dirs:
            return dirs
        try:
            return [resources.files(self._resource_package)]
        except (OSError, TypeError) as e:
            log.debug("resource package %s not readable: %s", self._resource_package, e)
            return []

    def locate(self, logical_path: str) -> Any:
        parts = resource_parts(logical_path)
        if not parts or ".." in parts:
            log.debug("refusing resource path %r", logical_path)
            return None

        for root in self._resource_roots():
            node = root
            for part in parts:
                node = node.joinpath(part)
            if node.is_file():
                return node
        return None

    def destination(self, name: str) -> Path:
        if self._extract_dir is None:
            fd, tmp = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix="-" + name)
            os.close(fd)
            return Path(tmp)

        d = Path(self._extract_dir).expanduser()
        f = (d / name).absolute()
        if f.exists() and not f.is_file():
            raise NativeLoadError(f"{f} is not a file.", kind=LoadErrorKind.CONFIGURATION, candidates=(name,))
        d.mkdir(parents=True, exist_ok=True)
        f.touch(exist_ok=True)
        return f

    def extract(self, logical_path: str) -> Optional[Path]:
        """
        Extract `logical_path` and return the new file, or None when the
        resource is missing or access is denied.
        """
        start = time.perf_counter()
        try:
            resource = self.locate(logical_path)
            if resource is None:
                return None

            log.debug("attempting to extract %s", logical_path)
            dest = self.destination(resource_parts(logical_path)[-1])
            self._cleanup.register(dest)

            log.info("extracting %s to %s", logical_path, dest)
            with resource.open("rb") as src, open(dest, "wb") as out:
                shutil.copyfileobj(src, out)
        except NativeLoadError:
            raise
        except (FileNotFoundError, PermissionError) as e:
            log.info("skipping extraction of %s: %s", logical_path, e)
            return None
        except Exception as e:
            raise NativeLoadError(
                f"failed to extract {logical_path}: {e}",
                kind=LoadErrorKind.FATAL,
                candidates=(str(logical_path),),
            ) from e

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        log.debug("extracted %s in %.1f ms", logical_path, elapsed_ms)
        return dest
