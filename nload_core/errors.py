# MIT License © 2025 Motohiro Suzuki
from __future__ import annotations

from enum import Enum
from typing import Sequence, Tuple


class LoadErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    EXHAUSTED = "exhausted"
    FATAL = "fatal"


class NativeLoadError(RuntimeError):
    """
    Raised by the coordinator when a request cannot be satisfied.

    kind tells bad input (CONFIGURATION) apart from a request that ran out of
    candidates (EXHAUSTED) or hit an unexpected failure (FATAL).
    """

    def __init__(self, message: str, *, kind: LoadErrorKind, candidates: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.kind = kind
        self.candidates: Tuple[str, ...] = tuple(candidates)
