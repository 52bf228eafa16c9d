"""Name conversions shared by the classifier, synthesizer, and backends."""

from __future__ import annotations


def _upper_first(s: str) -> str:
    """Uppercase the first character of a string."""
    return (s[0].upper() + s[1:]) if s else ""


def to_pascal(name: str) -> str:
    """Convert snake_case or camelCase to PascalCase.

    Leading underscores are dropped, so `_run` and `run` map to the same name.
    """
    parts = name.strip("_").split("_")
    result = "".join(_upper_first(p) for p in parts if p)
    # All-underscore names have nothing to capitalize
    return result or name


def variant_name(function_name: str) -> str:
    """Union variant name for a function."""
    return to_pascal(function_name)


def fresh_name(base: str, taken: set[str]) -> str:
    """Return base, or base with trailing underscores, not in taken."""
    name = base
    while name in taken:
        name += "_"
    return name
