"""Expansion pipeline: items in, generated code or diagnostics out.

Collector -> Classifier -> Synthesizer -> Generator, one Diagnostics value
threaded through all of them. Output is all-or-nothing: any error-severity
diagnostic discards the generated code.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .backend import EMITTERS, TARGETS, Expansion
from .diagnostics import INTERNAL_ERROR, Diagnostics, InternalError
from .frontend.collection import collect_functions
from .frontend.signatures import classify
from .ir import (
    AggregateMode,
    Block,
    Classified,
    EnumDescriptor,
    FunctionDescriptor,
    InvocationContext,
    Item,
)
from .middleend.synthesis import synthesize_enum

PHASES: list[str] = ["collect", "classify", "synthesize"]


@dataclass
class ExpandResult:
    """Outcome of one invocation. code is None whenever errors exist."""

    diagnostics: Diagnostics
    code: str | None = None
    descriptors: list[FunctionDescriptor] = field(default_factory=list)
    classified: Classified | None = None
    union: EnumDescriptor | None = None

    def ok(self) -> bool:
        return self.diagnostics.ok()


def make_context(
    block: Block,
    target: str = "python",
    enum_name: str = "",
    public: bool = False,
    aggregate: AggregateMode = "auto",
    source_module: str | None = None,
) -> InvocationContext:
    """Build the one context value for expanding block."""
    if target not in TARGETS:
        raise ValueError(f"unknown target {target!r}")
    return InvocationContext(
        block_name=block.name,
        target=TARGETS[target],
        enum_name=enum_name,
        public=public,
        attributes=list(block.attributes),
        aggregate=aggregate,
        source_module=source_module,
    )


def expand(items: list[Item], ctx: InvocationContext, stop_at: str | None = None) -> ExpandResult:
    """Run every stage over items. Stops after stop_at when given."""
    diags = Diagnostics()
    result = ExpandResult(diagnostics=diags)
    try:
        result.descriptors = collect_functions(items, ctx, diags)
        if stop_at == "collect":
            return result
        result.classified = classify(result.descriptors, ctx, diags)
        if stop_at == "classify":
            return result
        result.union = synthesize_enum(result.descriptors, result.classified, ctx, diags)
        if stop_at == "synthesize" or not diags.ok():
            return result
        exp = Expansion(ctx, result.descriptors, result.union, result.classified.plan)
        code = EMITTERS[ctx.target.name](exp)
    except InternalError as e:
        diags.add_error(INTERNAL_ERROR, str(e))
        return result
    if diags.ok():
        result.code = code
    return result


def expand_block(
    block: Block,
    target: str = "python",
    enum_name: str = "",
    public: bool = False,
    aggregate: AggregateMode = "auto",
    source_module: str | None = None,
) -> ExpandResult:
    """Expand a whole Block with the given options."""
    ctx = make_context(block, target, enum_name, public, aggregate, source_module)
    return expand(block.items, ctx)
