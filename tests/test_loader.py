# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

import errno
import sys
from pathlib import Path

import pytest

from nload_core.loader import LoadOutcome, Loader, SkipReason


def _lib(tmp_path: Path, name: str = "libfoo.so") -> Path:
    f = tmp_path / name
    f.write_bytes(b"\x7fELF-not-really")
    return f


def test_success_returns_handle(tmp_path: Path, fake_link) -> None:
    f = _lib(tmp_path)
    link = fake_link()
    res = Loader(link=link).attempt(f, "libfoo.so")

    assert res.outcome is LoadOutcome.LOADED
    assert res.loaded
    assert res.handle == ("handle", str(f.absolute()))
    assert link.calls == [str(f.absolute())]


def test_mode_is_forwarded(tmp_path: Path) -> None:
    f = _lib(tmp_path)
    seen = {}

    def link(path: str, mode: int = 0) -> object:
        seen["mode"] = mode
        return object()

    Loader(link=link, mode=0x100).attempt(f, "libfoo.so")
    assert seen["mode"] == 0x100


def test_incompatible_search_path_file_is_kept(tmp_path: Path, fake_link) -> None:
    f = _lib(tmp_path)
    link = fake_link({"libfoo.so": fake_link.incompatible("libfoo.so")})
    res = Loader(link=link).attempt(f, "libfoo.so")

    assert res.outcome is LoadOutcome.SKIPPED
    assert res.reason is SkipReason.INCOMPATIBLE
    assert f.exists()


def test_incompatible_owned_file_is_deleted(tmp_path: Path, fake_link) -> None:
    f = _lib(tmp_path)
    link = fake_link({"libfoo.so": fake_link.incompatible("libfoo.so")})
    res = Loader(link=link).attempt(f, "libfoo.so", owned=True)

    assert res.reason is SkipReason.INCOMPATIBLE
    assert not f.exists()


@pytest.mark.parametrize(
    "exc",
    [
        OSError("libfoo.so: cannot open shared object file: Permission denied"),
        PermissionError(errno.EACCES, "denied"),
        OSError(errno.EPERM, "nope"),
    ],
)
def test_permission_denied_is_skipped_without_delete(tmp_path: Path, fake_link, exc: OSError) -> None:
    f = _lib(tmp_path)
    res = Loader(link=fake_link({"libfoo.so": exc})).attempt(f, "libfoo.so", owned=True)

    assert res.outcome is LoadOutcome.SKIPPED
    assert res.reason is SkipReason.PERMISSION
    assert f.exists()


def test_unexpected_error_is_fatal(tmp_path: Path, fake_link) -> None:
    f = _lib(tmp_path)
    boom = ValueError("embedded null byte")
    res = Loader(link=fake_link({"libfoo.so": boom})).attempt(f, "libfoo.so", owned=True)

    assert res.outcome is LoadOutcome.FATAL
    assert res.error is boom
    assert f.exists()


@pytest.mark.skipif(sys.platform.startswith("win"), reason="dlopen message format")
def test_real_dlopen_rejects_garbage(tmp_path: Path) -> None:
    f = tmp_path / "libgarbage.so"
    f.write_bytes(b"definitely not a shared object" * 16)

    res = Loader().attempt(f, "libgarbage.so", owned=True)

    assert res.outcome is LoadOutcome.SKIPPED
    assert res.reason is SkipReason.INCOMPATIBLE
    assert not f.exists()
