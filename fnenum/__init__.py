"""fnenum - generate a discriminated union from a block of functions."""

from .diagnostics import Diagnostic, Diagnostics, InternalError
from .frontend.items import ItemLoadError, load_block, load_block_json
from .pipeline import ExpandResult, expand, expand_block, make_context


def generate(source: str, target: str = "python", **options: object) -> ExpandResult:
    """JSON block description -> ExpandResult."""
    block = load_block_json(source)
    return expand_block(block, target, **options)  # type: ignore[arg-type]


__all__ = [
    "Diagnostic",
    "Diagnostics",
    "ExpandResult",
    "InternalError",
    "ItemLoadError",
    "expand",
    "expand_block",
    "generate",
    "load_block",
    "load_block_json",
    "make_context",
]
