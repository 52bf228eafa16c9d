"""Backend package - expansion results to target source code."""

from __future__ import annotations

from typing import Callable

from ..ir import TargetProfile
from .python import PYTHON_PROFILE, emit_python
from .rust import RUST_PROFILE, emit_rust
from .util import Expansion

TARGETS: dict[str, TargetProfile] = {
    "python": PYTHON_PROFILE,
    "rust": RUST_PROFILE,
}

EMITTERS: dict[str, Callable[[Expansion], str]] = {
    "python": emit_python,
    "rust": emit_rust,
}

__all__ = ["EMITTERS", "Expansion", "TARGETS", "emit_python", "emit_rust"]
