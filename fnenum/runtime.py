"""Runtime support imported by generated Python modules.

Python has no keyword for constant-evaluable or unsafe functions, so the
generated shims carry these markers. They only tag the function object.
"""

from __future__ import annotations

import inspect
from typing import Callable, TypeVar

F = TypeVar("F", bound=Callable[..., object])

MARKER_ATTR = "__fnenum_modifiers__"


def _mark(func: F, modifier: str) -> F:
    existing = getattr(func, MARKER_ATTR, frozenset())
    setattr(func, MARKER_ATTR, existing | {modifier})
    return func


def const_fn(func: F) -> F:
    """Mark func as constant-evaluable."""
    return _mark(func, "const")


def unsafe_fn(func: F) -> F:
    """Mark func as unsafe to call."""
    return _mark(func, "unsafe")


def modifiers_of(func: Callable[..., object]) -> frozenset[str]:
    """Modifiers carried by func: its markers plus async for coroutine functions."""
    mods = set(getattr(func, MARKER_ATTR, frozenset()))
    if inspect.iscoroutinefunction(func):
        mods.add("async")
    return frozenset(mods)
