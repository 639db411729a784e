# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from nload_core.cleanup import ExitCleanup
from nload_core.config import LoaderConfig
from nload_core.coordinator import LoadCoordinator
from nload_core.extractor import ResourceExtractor
from nload_core.loader import Loader


class FakeLink:
    """
    Stand-in for ctypes.CDLL.

    failures maps a library key to the exception raised when a file with that
    name (or an extracted temp file ending in "-<key>") is opened.
    """

    def __init__(self, failures: Optional[Dict[str, BaseException]] = None,
                 before: Optional[Callable[[str], None]] = None) -> None:
        self.failures = dict(failures or {})
        self.before = before
        self.calls: List[str] = []

    def _failure_for(self, path: str) -> Optional[BaseException]:
        name = Path(path).name
        for key, exc in self.failures.items():
            if name == key or name.endswith("-" + key):
                return exc
        return None

    def __call__(self, path: str, mode: Optional[int] = None) -> object:
        if self.before is not None:
            self.before(path)
        self.calls.append(path)
        exc = self._failure_for(path)
        if exc is not None:
            raise exc
        return ("handle", path)

    @staticmethod
    def incompatible(name: str) -> OSError:
        return OSError(f"{name}: invalid ELF header")

    @staticmethod
    def permission_denied(name: str) -> OSError:
        return OSError(f"{name}: cannot open shared object file: Permission denied")


@pytest.fixture
def fake_link() -> type:
    return FakeLink


@pytest.fixture
def cleanup() -> ExitCleanup:
    hooks: List[object] = []
    c = ExitCleanup(install_hook=hooks.append)
    yield c
    c.run()


@pytest.fixture
def resource_root(tmp_path: Path) -> Path:
    root = tmp_path / "bundled"
    root.mkdir()
    return root


@pytest.fixture
def search_dir(tmp_path: Path) -> Path:
    d = tmp_path / "libpath"
    d.mkdir()
    return d


@pytest.fixture
def make_coordinator(cleanup: ExitCleanup, resource_root: Path, search_dir: Path):
    def _make(link: FakeLink, *, extract_dir: Optional[str] = None, dirs: Optional[List[Path]] = None) -> LoadCoordinator:
        cfg = LoaderConfig(extract_dir=extract_dir)
        extractor = ResourceExtractor(cleanup, extract_dir=extract_dir, root=resource_root)
        search = [search_dir] if dirs is None else dirs
        return LoadCoordinator(
            cfg,
            loader=Loader(link=link),
            extractor=extractor,
            cleanup=cleanup,
            search_dirs=lambda: search,
        )

    return _make
