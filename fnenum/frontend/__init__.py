"""Frontend package - item descriptions to validated function signatures."""

from .collection import collect_functions
from .items import ItemLoadError, load_block, load_block_json, load_item
from .signatures import aggregate_modifiers, classify, format_modifiers

__all__ = [
    "ItemLoadError",
    "aggregate_modifiers",
    "classify",
    "collect_functions",
    "format_modifiers",
    "load_block",
    "load_block_json",
    "load_item",
]
