"""RustBackend: union enum plus an inherent impl holding shims and dispatcher.

The user's own impl block stays as written; this output goes next to it.
Shims and dispatchers are associated functions of the block type, so their
names share its namespace (see GeneratedNameCollision).
"""

from __future__ import annotations

from ..ir import AggregatePlan, FunctionDescriptor, Param, TargetProfile, Variant
from ..naming import fresh_name
from .util import Emitter, Expansion, check_plan, order_modifiers

RUST_RESERVED = frozenset({
    "as", "async", "await", "break", "const", "continue", "crate", "dyn",
    "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in",
    "let", "loop", "match", "mod", "move", "mut", "pub", "ref", "return",
    "self", "Self", "static", "struct", "super", "trait", "true", "type",
    "union", "unsafe", "use", "where", "while", "abstract", "become", "box",
    "do", "final", "macro", "override", "priv", "try", "typeof", "unsized",
    "virtual", "yield",
})

RUST_PROFILE = TargetProfile(
    name="rust",
    forbidden_modifiers=(frozenset({"async", "const"}),),
    shims_share_block_scope=True,
    keywords=RUST_RESERVED,
)

# Rust requires `const async unsafe fn` ordering
RUST_MODIFIER_ORDER: tuple[str, ...] = ("const", "async", "unsafe")

RECEIVERS: dict[str, str] = {
    "value": "self",
    "ref": "&self",
    "mut_ref": "&mut self",
}

TAG_DERIVES = "#[derive(Clone, Copy, Debug, PartialEq, Eq, Hash)]"


class RustBackend(Emitter):
    """Emit Rust code from an Expansion."""

    def __init__(self) -> None:
        super().__init__()
        self.exp: Expansion | None = None

    def emit(self, exp: Expansion) -> str:
        check_plan(exp)
        self.exp = exp
        self.lines = []
        self.indent = 0
        self._emit_enum()
        plan = exp.plan
        if plan.aggregate is not None and plan.aggregate.form == "select":
            self.line()
            self._emit_tag()
        if plan.shims:
            self.line()
            self.line(f"impl {exp.ctx.block_name} {{")
            self.indent += 1
            first = True
            for shim, variant, fn in exp.pairs():
                if not first:
                    self.line()
                first = False
                self._emit_shim(shim.name, shim.modifiers, variant, fn)
            if plan.aggregate is not None:
                self.line()
                if plan.aggregate.form == "select":
                    self._emit_select(plan.aggregate)
                else:
                    self._emit_call_all(plan.aggregate)
            self.indent -= 1
            self.line("}")
        self.exp = None
        return self.output() + "\n"

    # ── helpers ──────────────────────────────────────────────

    def _vis(self) -> str:
        assert self.exp is not None
        return "pub " if self.exp.ctx.public else ""

    def _fn_head(
        self,
        name: str,
        modifiers: frozenset[str],
        receiver: str,
        params: list[str],
        ret: str,
    ) -> str:
        parts: list[str] = []
        if receiver != "none":
            parts.append(RECEIVERS[receiver])
        parts.extend(params)
        keywords = "".join(m + " " for m in order_modifiers(modifiers, RUST_MODIFIER_ORDER))
        return f"{self._vis()}{keywords}fn {name}({', '.join(parts)}) -> {ret} {{"

    def _params(self, params: list[Param]) -> list[str]:
        return [f"{p.name}: {p.typ}" for p in params]

    def _call(self, fn: FunctionDescriptor, args: list[str], receiver: str = "self") -> str:
        """`Self::f(self, args)`, awaited when async, in an unsafe block when unsafe."""
        all_args = list(args)
        if fn.receiver != "none":
            all_args.insert(0, receiver)
        call = f"Self::{fn.name}({', '.join(all_args)})"
        if fn.is_async:
            call += ".await"
        if "unsafe" in fn.modifiers:
            call = f"unsafe {{ {call} }}"
        return call

    def _wrapped(
        self, fn: FunctionDescriptor, variant: Variant, args: list[str], receiver: str = "self"
    ) -> list[str]:
        """Lines of an expression that calls fn and yields the variant."""
        assert self.exp is not None
        union = self.exp.union.name
        call = self._call(fn, args, receiver)
        if variant.payload is None:
            return [f"{call};", f"{union}::{variant.name}"]
        return [f"{union}::{variant.name}({call})"]

    # ── items ────────────────────────────────────────────────

    def _emit_enum(self) -> None:
        assert self.exp is not None
        for attr in self.exp.ctx.attributes:
            self.line(attr)
        union = self.exp.union
        if union.is_empty():
            self.line(f"{self._vis()}enum {union.name} {{}}")
            return
        self.line(f"{self._vis()}enum {union.name} {{")
        self.indent += 1
        for variant in union.variants:
            if variant.payload is None:
                self.line(f"{variant.name},")
            else:
                self.line(f"{variant.name}({variant.payload}),")
        self.indent -= 1
        self.line("}")

    def _emit_tag(self) -> None:
        assert self.exp is not None
        self.line(TAG_DERIVES)
        self.line(f"{self._vis()}enum {self.exp.ctx.tag_name} {{")
        self.indent += 1
        for variant in self.exp.union.variants:
            self.line(f"{variant.name},")
        self.indent -= 1
        self.line("}")

    def _emit_shim(
        self, name: str, modifiers: frozenset[str], variant: Variant, fn: FunctionDescriptor
    ) -> None:
        assert self.exp is not None
        head = self._fn_head(
            name, modifiers, fn.receiver, self._params(fn.params), self.exp.union.name
        )
        self.line(head)
        self.indent += 1
        for text in self._wrapped(fn, variant, [p.name for p in fn.params]):
            self.line(text)
        self.indent -= 1
        self.line("}")

    def _emit_select(self, agg: AggregatePlan) -> None:
        assert self.exp is not None
        ctx = self.exp.ctx
        taken = {p.name for p in agg.params}
        taken.add("self")
        tag = fresh_name("tag", taken)
        params = [f"{tag}: {ctx.tag_name}"] + self._params(agg.params)
        self.line(self._fn_head(agg.name, agg.modifiers, agg.receiver, params, self.exp.union.name))
        self.indent += 1
        self.line(f"match {tag} {{")
        self.indent += 1
        args = [p.name for p in agg.params]
        for index in agg.members:
            variant = self.exp.variant_for(index)
            body = self._wrapped(self.exp.descriptors[index], variant, args)
            arm = f"{ctx.tag_name}::{variant.name} =>"
            if len(body) == 1:
                self.line(f"{arm} {body[0]},")
                continue
            self.line(arm + " {")
            self.indent += 1
            for text in body:
                self.line(text)
            self.indent -= 1
            self.line("}")
        self.indent -= 1
        self.line("}")
        self.indent -= 1
        self.line("}")

    def _emit_call_all(self, agg: AggregatePlan) -> None:
        """Array of every member's outcome, evaluated left to right.

        Every call but the last gets clones of by-value receivers and of the
        arguments; a const dispatcher cannot clone, so const is dropped then.
        """
        assert self.exp is not None
        union = self.exp.union.name
        count = len(agg.members)
        needs_clone = count > 1 and (agg.receiver == "value" or len(agg.params) > 0)
        modifiers = agg.modifiers
        if needs_clone:
            modifiers = modifiers - {"const"}
        ret = f"[{union}; {count}]"
        self.line(self._fn_head(agg.name, modifiers, agg.receiver, self._params(agg.params), ret))
        self.indent += 1
        self.line("[")
        self.indent += 1
        for position, index in enumerate(agg.members):
            last = position == count - 1
            fn = self.exp.descriptors[index]
            args = [p.name if last else p.name + ".clone()" for p in agg.params]
            receiver = "self.clone()" if not last and agg.receiver == "value" else "self"
            body = self._wrapped(fn, self.exp.variant_for(index), args, receiver)
            if len(body) == 1:
                self.line(body[0] + ",")
                continue
            self.line("{")
            self.indent += 1
            for text in body:
                self.line(text)
            self.indent -= 1
            self.line("},")
        self.indent -= 1
        self.line("]")
        self.indent -= 1
        self.line("}")


def emit_rust(exp: Expansion) -> str:
    """Emit Rust code for one expanded block."""
    return RustBackend().emit(exp)
