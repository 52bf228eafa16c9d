"""Input boundary: JSON-shaped block descriptions -> Block.

The front-end that reads real source text lives outside fnenum. It hands
over one dict per block:

    {"name": "Ops", "attributes": [...], "items": [
        {"kind": "fn", "name": "a", "modifiers": ["async"], "receiver": "ref",
         "params": [{"name": "x", "type": "i32"}], "returns": "i32",
         "line": 3, "col": 4},
        {"kind": "const", "name": "FOO"}]}
"""

from __future__ import annotations

import json

from ..ir import (
    MODIFIERS,
    RECEIVER_KINDS,
    Block,
    FunctionItem,
    Item,
    Loc,
    OtherItem,
    Param,
)

# Type alias for description dict nodes
ItemNode = dict[str, object]

FUNCTION_KINDS: frozenset[str] = frozenset({"fn", "function"})


class ItemLoadError(Exception):
    """Malformed block description, with location info."""

    def __init__(self, msg: str, lineno: int = 0, col: int = 0):
        self.msg: str = msg
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)

    def __str__(self) -> str:
        return "error:" + str(self.lineno) + ":" + str(self.col) + ": " + self.msg


def _loc(node: ItemNode) -> Loc:
    line = node.get("line", 0)
    col = node.get("col", 0)
    if not isinstance(line, int) or not isinstance(col, int):
        raise ItemLoadError("'line' and 'col' must be integers")
    return Loc(line, col)


def _require_str(node: ItemNode, key: str, loc: Loc) -> str:
    value = node.get(key)
    if not isinstance(value, str) or not value:
        raise ItemLoadError(f"missing or empty '{key}'", loc.line, loc.col)
    return value


def _require_list(node: ItemNode, key: str, loc: Loc) -> list:
    value = node.get(key, [])
    if not isinstance(value, list):
        raise ItemLoadError(f"'{key}' must be a list", loc.line, loc.col)
    return value


def _load_params(node: ItemNode, loc: Loc) -> list[Param]:
    params: list[Param] = []
    for raw in _require_list(node, "params", loc):
        if not isinstance(raw, dict):
            raise ItemLoadError("parameter must be an object", loc.line, loc.col)
        params.append(Param(_require_str(raw, "name", loc), _require_str(raw, "type", loc)))
    return params


def _load_function(node: ItemNode, loc: Loc) -> FunctionItem:
    name = _require_str(node, "name", loc)
    modifiers: set[str] = set()
    for m in _require_list(node, "modifiers", loc):
        if m not in MODIFIERS:
            raise ItemLoadError(f"unknown modifier {m!r} on '{name}'", loc.line, loc.col)
        modifiers.add(m)
    receiver = node.get("receiver", "none")
    if receiver is None:
        receiver = "none"
    if receiver not in RECEIVER_KINDS:
        raise ItemLoadError(f"unknown receiver {receiver!r} on '{name}'", loc.line, loc.col)
    returns = node.get("returns")
    if returns is not None and (not isinstance(returns, str) or not returns.strip()):
        raise ItemLoadError(f"'returns' of '{name}' must be a type or null", loc.line, loc.col)
    return FunctionItem(
        name=name,
        modifiers=frozenset(modifiers),
        receiver=receiver,
        params=_load_params(node, loc),
        returns=returns,
        loc=loc,
    )


def load_item(node: object) -> Item:
    """Classify one item node as FunctionItem or OtherItem."""
    if not isinstance(node, dict):
        raise ItemLoadError("item must be an object")
    loc = _loc(node)
    kind = _require_str(node, "kind", loc)
    if kind in FUNCTION_KINDS:
        return _load_function(node, loc)
    name = node.get("name")
    return OtherItem(kind=kind, name=name if isinstance(name, str) else None, loc=loc)


def load_block(node: object) -> Block:
    """Build a Block from its description dict."""
    if not isinstance(node, dict):
        raise ItemLoadError("block description must be an object")
    loc = _loc(node)
    name = _require_str(node, "name", loc)
    attributes: list[str] = []
    for attr in _require_list(node, "attributes", loc):
        if not isinstance(attr, str):
            raise ItemLoadError("attributes must be strings", loc.line, loc.col)
        attributes.append(attr)
    items = [load_item(raw) for raw in _require_list(node, "items", loc)]
    return Block(name=name, items=items, attributes=attributes, loc=loc)


def load_block_json(source: str) -> Block:
    """Parse JSON text into a Block."""
    try:
        node = json.loads(source)
    except json.JSONDecodeError as e:
        raise ItemLoadError("invalid JSON: " + e.msg, e.lineno, e.colno - 1) from e
    return load_block(node)
