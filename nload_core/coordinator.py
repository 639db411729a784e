# MIT License © 2025 Motohiro Suzuki
"""
nload_core/coordinator.py

Resolve and load one native library out of several candidates.

Order of work for a request ["linux-x86_64/libfoo.so", "libfoo.so", ...]:
1) any candidate key already loaded      -> return its handle, no I/O
2) per candidate: every search-path dir  -> dlopen the first file that works
3) per candidate: bundled resource       -> extract, dlopen
4) nothing worked                        -> NativeLoadError(EXHAUSTED)

The whole body runs under one lock, so the registry check and update cannot
interleave between threads.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Union

from nload_core.cleanup import ExitCleanup
from nload_core.config import LoaderConfig
from nload_core.errors import LoadErrorKind, NativeLoadError
from nload_core.extractor import ResourceExtractor, resource_parts
from nload_core.loader import LoadOutcome, LoadResult, Loader
from nload_core.search_path import search_path

log = logging.getLogger(__name__)

Candidate = Union[str, "os.PathLike[str]"]


def canonical_key(candidate: Candidate) -> str:
    parts = resource_parts(os.fspath(candidate))
    if not parts:
        raise NativeLoadError(f"invalid candidate: {candidate!r}", kind=LoadErrorKind.CONFIGURATION)
    return parts[-1]


@dataclass(frozen=True)
class LoadedLibrary:
    key: str
    path: Path
    handle: Any


class LoadedRegistry:
    """Append-only record of libraries loaded by one coordinator."""

    def __init__(self) -> None:
        self._items: Dict[str, LoadedLibrary] = {}

    def add(self, lib: LoadedLibrary) -> None:
        self._items.setdefault(lib.key, lib)

    def get(self, key: str) -> Optional[LoadedLibrary]:
        return self._items.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def snapshot(self) -> Dict[str, Path]:
        return {k: v.path for k, v in self._items.items()}

    def __len__(self) -> int:
        return len(self._items)


def _normalize_request(candidates: Any) -> Tuple[str, ...]:
    if candidates is None:
        raise NativeLoadError("invalid parameters: no candidates", kind=LoadErrorKind.CONFIGURATION)
    if isinstance(candidates, (str, os.PathLike)):
        candidates = [candidates]

    try:
        items = list(candidates)
    except TypeError as e:
        raise NativeLoadError(
            f"invalid parameters: {type(candidates).__name__} is not a sequence of paths",
            kind=LoadErrorKind.CONFIGURATION,
        ) from e

    if not items:
        raise NativeLoadError("invalid parameters: no candidates", kind=LoadErrorKind.CONFIGURATION)

    names = []
    for c in items:
        if not isinstance(c, (str, os.PathLike)) or not os.fspath(c).strip():
            raise NativeLoadError(f"invalid candidate: {c!r}", kind=LoadErrorKind.CONFIGURATION)
        names.append(os.fspath(c))
    return tuple(names)


class LoadCoordinator:
    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        *,
        loader: Optional[Loader] = None,
        extractor: Optional[ResourceExtractor] = None,
        cleanup: Optional[ExitCleanup] = None,
        search_dirs: Optional[Callable[[], Sequence[Path]]] = None,
    ) -> None:
        cfg = LoaderConfig.from_env() if config is None else config
        self.config = cfg
        self.cleanup = ExitCleanup() if cleanup is None else cleanup
        self.loader = Loader() if loader is None else loader
        self.extractor = extractor if extractor is not None else ResourceExtractor(
            self.cleanup,
            extract_dir=cfg.extract_dir,
            resource_package=cfg.resource_package,
        )
        self._search_dirs = search_path if search_dirs is None else search_dirs
        self._registry = LoadedRegistry()
        self._lock = threading.Lock()

    def load(self, candidates: Any) -> Any:
        """
        Load the first working candidate and return its ctypes handle.

        Raises NativeLoadError: CONFIGURATION for a bad request, EXHAUSTED when
        no candidate could be loaded, FATAL on an unexpected failure.
        """
        names = _normalize_request(candidates)
        keys = [canonical_key(n) for n in names]

        with self._lock:
            for name, key in zip(names, keys):
                lib = self._registry.get(key)
                if lib is not None:
                    log.info("already loaded %s", name)
                    return lib.handle

            dirs = tuple(self._search_dirs())
            for name, key in zip(names, keys):
                log.debug("native lib = %s", name)
                parts = resource_parts(name)

                for d in dirs:
                    f = Path(d).joinpath(*parts).absolute()
                    log.debug("checking %s", f)
                    try:
                        if not f.is_file():
                            continue
                    except OSError as e:
                        log.debug("skipping %s: %s", f, e)
                        continue
                    res = self._check(self.loader.attempt(f, key), names)
                    if res is not None:
                        return self._record(key, res)

                try:
                    extracted = self.extractor.extract(name)
                except NativeLoadError as e:
                    raise NativeLoadError(str(e), kind=e.kind, candidates=names) from e
                if extracted is None:
                    continue
                res = self._check(self.loader.attempt(extracted, key, owned=True), names)
                if res is not None:
                    return self._record(key, res)

        raise NativeLoadError(
            f"unable to load from {list(names)}",
            kind=LoadErrorKind.EXHAUSTED,
            candidates=names,
        )

    def _check(self, res: LoadResult, names: Tuple[str, ...]) -> Optional[LoadResult]:
        if res.outcome is LoadOutcome.FATAL:
            raise NativeLoadError(
                f"fatal error loading {res.file} (tried {list(names)}): {res.error!r}",
                kind=LoadErrorKind.FATAL,
                candidates=names,
            ) from res.error
        return res if res.outcome is LoadOutcome.LOADED else None

    def _record(self, key: str, res: LoadResult) -> Any:
        self._registry.add(LoadedLibrary(key=key, path=res.file, handle=res.handle))
        return res.handle

    def is_loaded(self, candidate: Candidate) -> bool:
        key = canonical_key(candidate)
        with self._lock:
            return key in self._registry

    def handle(self, candidate: Candidate) -> Any:
        key = canonical_key(candidate)
        with self._lock:
            lib = self._registry.get(key)
        return None if lib is None else lib.handle

    def loaded(self) -> Dict[str, Path]:
        with self._lock:
            return self._registry.snapshot()
