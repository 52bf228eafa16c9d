"""fnenum IR - descriptors flowing through the expansion pipeline.

Architecture:
    Items -> Collector -> Classifier -> Synthesizer -> Backend -> Source

Every structure here is built fresh per invocation. Cross references are
positions into the descriptor list, never object links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


# ============================================================
# SOURCE LOCATIONS
# ============================================================


@dataclass(unsafe_hash=True)
class Loc:
    """Source location for diagnostics.

    Invariants:
    - line >= 1 for valid locations (0 indicates unknown)
    - col >= 0 (0-indexed within line)
    """

    line: int  # 1-indexed, 0 = unknown
    col: int  # 0-indexed


def loc_unknown() -> Loc:
    """Factory for unknown source location."""
    return Loc(0, 0)


# ============================================================
# SIGNATURE VOCABULARY
# ============================================================

Modifier = Literal["async", "const", "unsafe"]
"""Function modifiers. Independent per function, freely mixed across a block."""

# Keyword order used when rendering modifier sets
MODIFIERS: tuple[Modifier, ...] = ("const", "async", "unsafe")

ReceiverKind = Literal["none", "value", "ref", "mut_ref"]
"""How a function takes its implicit first parameter.

| Kind    | Rust        | Python               |
|---------|-------------|----------------------|
| none    | (absent)    | staticmethod         |
| value   | self        | self                 |
| ref     | &self       | self                 |
| mut_ref | &mut self   | self                 |
"""

RECEIVER_KINDS: tuple[ReceiverKind, ...] = ("none", "value", "ref", "mut_ref")


@dataclass(unsafe_hash=True)
class Param:
    """Explicit parameter. typ is target-language type text, kept verbatim."""

    name: str
    typ: str


# ============================================================
# ITEMS
#
# Closed set produced by the front-end: FunctionItem | OtherItem.
# ============================================================


@dataclass
class FunctionItem:
    """A function declared in the block."""

    name: str
    modifiers: frozenset[str] = frozenset()
    receiver: ReceiverKind = "none"
    params: list[Param] = field(default_factory=list)
    returns: str | None = None  # None = produces nothing
    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class OtherItem:
    """Any non-function item (constant, type alias, macro call, ...)."""

    kind: str
    name: str | None = None
    loc: Loc = field(default_factory=loc_unknown)


Item = FunctionItem | OtherItem


@dataclass
class Block:
    """One declared block: the unit an invocation expands."""

    name: str
    items: list[Item] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)
    loc: Loc = field(default_factory=loc_unknown)


# ============================================================
# DESCRIPTORS
# ============================================================


@dataclass
class FunctionDescriptor:
    """Signature of one declared function.

    Invariants:
    - index is the position in the descriptor list (= declaration order)
    - params exclude the receiver
    """

    index: int
    name: str
    modifiers: frozenset[str]
    receiver: ReceiverKind
    params: list[Param]
    return_type: str | None
    loc: Loc = field(default_factory=loc_unknown)

    @property
    def is_async(self) -> bool:
        return "async" in self.modifiers

    def param_types(self) -> tuple[str, ...]:
        return tuple(p.typ for p in self.params)


@dataclass
class Variant:
    """One union case. payload is the source function's return type, verbatim."""

    name: str
    payload: str | None
    source: int  # descriptor index


@dataclass
class EnumDescriptor:
    """The synthesized union.

    Invariants:
    - variant names are unique
    - variants follow declaration order of their source functions
    - may be empty; an empty union still emits a complete definition
    """

    name: str
    variants: list[Variant] = field(default_factory=list)

    def is_empty(self) -> bool:
        return len(self.variants) == 0


# ============================================================
# DISPATCH PLAN
# ============================================================

AggregateMode = Literal["auto", "off", "select", "all"]
"""Requested aggregate surface.

- auto: select dispatcher when formable, silently omitted otherwise
- off: never emit one
- select / all: required; failing to form one is an error
"""

AGGREGATE_MODES: tuple[AggregateMode, ...] = ("auto", "off", "select", "all")

AggregateForm = Literal["select", "all"]


@dataclass
class ShimPlan:
    """Per-function wrapper: one function in, one union value out."""

    function: int  # descriptor index
    name: str
    modifiers: frozenset[str]


@dataclass
class AggregatePlan:
    """A single call site over every surviving function.

    Invariants:
    - all members share receiver kind and parameter types
    - members are in declaration order
    """

    form: AggregateForm
    name: str
    receiver: ReceiverKind
    params: list[Param]
    members: list[int]
    modifiers: frozenset[str]

    @property
    def is_async(self) -> bool:
        return "async" in self.modifiers


@dataclass
class DispatchPlan:
    shims: list[ShimPlan] = field(default_factory=list)
    aggregate: AggregatePlan | None = None
    formable: bool = False
    blocker: str | None = None  # why no aggregate can be formed


@dataclass
class Classified:
    """Classifier output: surviving descriptor indices plus the dispatch plan."""

    survivors: list[int] = field(default_factory=list)
    plan: DispatchPlan = field(default_factory=DispatchPlan)


# ============================================================
# INVOCATION CONTEXT
# ============================================================


@dataclass(frozen=True)
class TargetProfile:
    """Host-language rules a target imposes on expansion.

    - forbidden_modifiers: combinations the language rejects on one function
    - variants_share_module_scope: variant types are top-level names
    - shims_share_block_scope: shims are added to the block's own namespace
    - reserved: names the emitted module binds besides generated ones
    - keywords: words the language will not accept as type names
    """

    name: str
    forbidden_modifiers: tuple[frozenset[str], ...] = ()
    variants_share_module_scope: bool = False
    shims_share_block_scope: bool = False
    reserved: frozenset[str] = frozenset()
    keywords: frozenset[str] = frozenset()


SHIM_PREFIX = "wrap_"
SELECT_NAME = "dispatch"
CALL_ALL_NAME = "call_all"


@dataclass
class InvocationContext:
    """Options for one expansion, built once and passed through every stage."""

    block_name: str
    target: TargetProfile
    enum_name: str = ""
    public: bool = False
    attributes: list[str] = field(default_factory=list)
    aggregate: AggregateMode = "auto"
    source_module: str | None = None

    def __post_init__(self) -> None:
        if not self.enum_name:
            self.enum_name = self.block_name + "Outcome"

    @property
    def tag_name(self) -> str:
        return self.enum_name + "Tag"

    def shim_name(self, function_name: str) -> str:
        return SHIM_PREFIX + function_name

    def aggregate_name(self, form: AggregateForm) -> str:
        if form == "select":
            return SELECT_NAME
        return CALL_ALL_NAME
