"""Shared utilities for backend code emitters."""

from __future__ import annotations

from dataclasses import dataclass

from ..diagnostics import InternalError
from ..ir import (
    DispatchPlan,
    EnumDescriptor,
    FunctionDescriptor,
    InvocationContext,
    ShimPlan,
    Variant,
)


class Emitter:
    """Base class for code emitters with indentation tracking."""

    def __init__(self, indent_str: str = "    ") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        """Emit a line with current indentation."""
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def output(self) -> str:
        """Return the accumulated output as a string."""
        return "\n".join(self.lines)


@dataclass
class Expansion:
    """Everything a backend needs to render one block."""

    ctx: InvocationContext
    descriptors: list[FunctionDescriptor]
    union: EnumDescriptor
    plan: DispatchPlan

    def pairs(self) -> list[tuple[ShimPlan, Variant, FunctionDescriptor]]:
        """Shims zipped with their variants and source functions."""
        return [
            (shim, variant, self.descriptors[variant.source])
            for shim, variant in zip(self.plan.shims, self.union.variants)
        ]

    def variant_for(self, index: int) -> Variant:
        for variant in self.union.variants:
            if variant.source == index:
                return variant
        raise InternalError(f"no variant for function #{index}")


def check_plan(exp: Expansion) -> None:
    """Verify the plan and the union line up before anything is rendered."""
    shims = exp.plan.shims
    variants = exp.union.variants
    if len(shims) != len(variants):
        raise InternalError(f"{len(shims)} shims for {len(variants)} variants")
    for shim, variant in zip(shims, variants):
        if shim.function != variant.source:
            raise InternalError(
                f"shim {shim.name!r} wraps function #{shim.function}"
                f" but variant {variant.name!r} comes from #{variant.source}"
            )
        if not 0 <= variant.source < len(exp.descriptors):
            raise InternalError(f"variant {variant.name!r} points past the descriptors")
    aggregate = exp.plan.aggregate
    if aggregate is not None:
        if not variants:
            raise InternalError(f"{aggregate.name!r} planned for an empty union")
        sources = [v.source for v in variants]
        if aggregate.members != sources:
            raise InternalError(
                f"{aggregate.name!r} members {aggregate.members} differ from variants {sources}"
            )


def order_modifiers(modifiers: frozenset[str], order: tuple[str, ...]) -> list[str]:
    """Modifiers as keywords in the target's required order."""
    return [m for m in order if m in modifiers]
