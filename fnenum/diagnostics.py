"""Diagnostics accumulated across every expansion stage.

Stages append; nothing aborts on the first problem. The pipeline decides at
the end whether generated code may be surfaced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .ir import Loc, loc_unknown

Severity = Literal["error", "warning"]

# Diagnostic kinds
DUPLICATE_VARIANT_NAME = "DuplicateVariantName"
UNSUPPORTED_ITEM_KIND = "UnsupportedItemKind"
RECEIVER_MISMATCH = "ReceiverMismatch"
MODIFIER_CONFLICT = "ModifierConflict"
GENERATED_NAME_COLLISION = "GeneratedNameCollision"
INTERNAL_ERROR = "InternalError"


class InternalError(Exception):
    """Broken invariant inside the generator; never user-facing code."""


@dataclass
class Diagnostic:
    """A problem found while expanding, with location and severity."""

    kind: str
    message: str
    severity: Severity = "error"
    loc: Loc = field(default_factory=loc_unknown)

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def __str__(self) -> str:
        return (
            self.severity
            + ":"
            + str(self.loc.line)
            + ":"
            + str(self.loc.col)
            + ": ["
            + self.kind
            + "] "
            + self.message
        )


class Diagnostics:
    """Accumulator threaded through Collector, Classifier, Synthesizer, Generator."""

    def __init__(self) -> None:
        self.items: list[Diagnostic] = []

    def add_error(self, kind: str, message: str, loc: Loc | None = None) -> None:
        self.items.append(Diagnostic(kind, message, "error", loc or loc_unknown()))

    def add_warning(self, kind: str, message: str, loc: Loc | None = None) -> None:
        self.items.append(Diagnostic(kind, message, "warning", loc or loc_unknown()))

    def errors(self) -> list[Diagnostic]:
        return [d for d in self.items if d.is_error]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.items if not d.is_error]

    def kinds(self) -> list[str]:
        return [d.kind for d in self.items]

    def ok(self) -> bool:
        return len(self.errors()) == 0
