"""Python backend: union, shims, and dispatcher as a Python module.

Layout of the emitted module:
- base class named after the union, one frozen dataclass per variant
  (payload in `value`, unit variants carry nothing)
- `wrap_<fn>` shim per function, `async def` when the function is async
- `dispatch` (select by `<Union>Tag`) or `call_all`, when planned

The block class is referenced by name; `source_module` makes the module
import it. Constant-evaluable and unsafe functions have no Python keyword,
so their shims carry the `fnenum.runtime` markers instead.
"""

from __future__ import annotations

import keyword

from ..ir import AggregatePlan, FunctionDescriptor, Param, TargetProfile, Variant
from ..naming import fresh_name
from .util import Emitter, Expansion, check_plan, order_modifiers

PYTHON_PROFILE = TargetProfile(
    name="python",
    variants_share_module_scope=True,
    # Module-level names the dispatcher body refers to
    reserved=frozenset({"ValueError"}),
    keywords=frozenset(keyword.kwlist),
)

RUNTIME_MODULE = "fnenum.runtime"
RECEIVER_PARAM = "self"
PAYLOAD_FIELD = "value"

# Markers for modifiers Python has no keyword for
_DECORATORS: dict[str, str] = {"const": "const_fn", "unsafe": "unsafe_fn"}


class PythonBackend(Emitter):
    """Emit a Python module from an Expansion."""

    def __init__(self) -> None:
        super().__init__()
        self.exp: Expansion | None = None

    def emit(self, exp: Expansion) -> str:
        check_plan(exp)
        self.exp = exp
        self.indent = 0
        self.lines = []
        self._emit_module(exp)
        self.exp = None
        return self.output() + "\n"

    # ── module ───────────────────────────────────────────────

    def _emit_module(self, exp: Expansion) -> None:
        ctx = exp.ctx
        union = exp.union
        plan = exp.plan
        has_tag = plan.aggregate is not None and plan.aggregate.form == "select"
        markers: set[str] = set()
        for shim in plan.shims:
            markers.update(_DECORATORS[m] for m in shim.modifiers if m in _DECORATORS)
        if plan.aggregate is not None:
            markers.update(_DECORATORS[m] for m in plan.aggregate.modifiers if m in _DECORATORS)

        self.line(f'"""{union.name} union generated for {ctx.block_name}."""')
        self.line()
        self.line("from __future__ import annotations")
        self.line()
        std_imports: list[str] = []
        if has_tag:
            std_imports.append("import enum")
        if not union.is_empty():
            std_imports.append("from dataclasses import dataclass")
        local_imports: list[str] = []
        if markers:
            local_imports.append(f"from {RUNTIME_MODULE} import {', '.join(sorted(markers))}")
        if ctx.source_module and not union.is_empty():
            local_imports.append(f"from {ctx.source_module} import {ctx.block_name}")
        for text in std_imports:
            self.line(text)
        if std_imports and local_imports:
            self.line()
        for text in local_imports:
            self.line(text)
        if std_imports or local_imports:
            self.line()
        if ctx.public:
            self._emit_all(exp, has_tag)
        self.line()
        for attr in ctx.attributes:
            self.line(attr)
        self.line(f"class {union.name}:")
        self.indent += 1
        self.line(f'"""Result of calling one of the functions declared on {ctx.block_name}."""')
        self.line()
        self.line("__slots__ = ()")
        self.indent -= 1
        for variant in union.variants:
            self._blank()
            self._emit_variant(variant)
        if has_tag:
            self._blank()
            self._emit_tag()
        for shim, variant, fn in exp.pairs():
            self._blank()
            self._emit_shim(shim.name, shim.modifiers, variant, fn)
        if plan.aggregate is not None:
            self._blank()
            if plan.aggregate.form == "select":
                self._emit_select(plan.aggregate)
            else:
                self._emit_call_all(plan.aggregate)

    def _blank(self) -> None:
        self.line()
        self.line()

    def _emit_all(self, exp: Expansion, has_tag: bool) -> None:
        names = [exp.union.name]
        names.extend(v.name for v in exp.union.variants)
        if has_tag:
            names.append(exp.ctx.tag_name)
        names.extend(s.name for s in exp.plan.shims)
        if exp.plan.aggregate is not None:
            names.append(exp.plan.aggregate.name)
        self.line("__all__ = [")
        self.indent += 1
        for name in names:
            self.line(f'"{name}",')
        self.indent -= 1
        self.line("]")
        self.line()

    def _emit_variant(self, variant: Variant) -> None:
        assert self.exp is not None
        self.line("@dataclass(frozen=True)")
        self.line(f"class {variant.name}({self.exp.union.name}):")
        self.indent += 1
        if variant.payload is None:
            self.line("pass")
        else:
            self.line(f"{PAYLOAD_FIELD}: {variant.payload}")
        self.indent -= 1

    def _emit_tag(self) -> None:
        assert self.exp is not None
        self.line(f"class {self.exp.ctx.tag_name}(enum.Enum):")
        self.indent += 1
        for variant in self.exp.union.variants:
            fn = self.exp.descriptors[variant.source]
            self.line(f'{variant.name} = "{fn.name}"')
        self.indent -= 1

    # ── callables ────────────────────────────────────────────

    def _def_line(
        self, name: str, modifiers: frozenset[str], params: list[str], ret: str
    ) -> None:
        for m in order_modifiers(modifiers, ("const", "unsafe")):
            self.line("@" + _DECORATORS[m])
        prefix = "async def" if "async" in modifiers else "def"
        self.line(f"{prefix} {name}({', '.join(params)}) -> {ret}:")

    def _signature(self, has_receiver: bool, params: list[Param]) -> list[str]:
        assert self.exp is not None
        parts: list[str] = []
        if has_receiver:
            parts.append(f"{RECEIVER_PARAM}: {self.exp.ctx.block_name}")
        parts.extend(f"{p.name}: {p.typ}" for p in params)
        return parts

    def _call(self, fn: FunctionDescriptor, arg_names: list[str]) -> str:
        """Invocation of the original function, awaited when async."""
        assert self.exp is not None
        args = list(arg_names)
        if fn.receiver != "none":
            args.insert(0, RECEIVER_PARAM)
        call = f"{self.exp.ctx.block_name}.{fn.name}({', '.join(args)})"
        if fn.is_async:
            call = "await " + call
        return call

    def _emit_wrap(
        self, fn: FunctionDescriptor, variant: Variant, arg_names: list[str], sink: str | None
    ) -> None:
        """Call fn and hand the wrapped value to sink (None means return it)."""
        call = self._call(fn, arg_names)
        if variant.payload is None:
            self.line(call)
            value = f"{variant.name}()"
        else:
            value = f"{variant.name}({call})"
        if sink is None:
            self.line(f"return {value}")
        else:
            self.line(f"{sink}.append({value})")

    def _emit_shim(
        self, name: str, modifiers: frozenset[str], variant: Variant, fn: FunctionDescriptor
    ) -> None:
        assert self.exp is not None
        params = self._signature(fn.receiver != "none", fn.params)
        self._def_line(name, modifiers, params, self.exp.union.name)
        self.indent += 1
        self._emit_wrap(fn, variant, [p.name for p in fn.params], None)
        self.indent -= 1

    def _taken(self, agg: AggregatePlan) -> set[str]:
        taken = {p.name for p in agg.params}
        taken.add(RECEIVER_PARAM)
        return taken

    def _emit_select(self, agg: AggregatePlan) -> None:
        assert self.exp is not None
        ctx = self.exp.ctx
        tag = fresh_name("tag", self._taken(agg))
        params = self._signature(agg.receiver != "none", agg.params)
        params.insert(1 if agg.receiver != "none" else 0, f"{tag}: {ctx.tag_name}")
        self._def_line(agg.name, agg.modifiers, params, self.exp.union.name)
        self.indent += 1
        self.line(f"match {tag}:")
        self.indent += 1
        arg_names = [p.name for p in agg.params]
        for index in agg.members:
            variant = self.exp.variant_for(index)
            self.line(f"case {ctx.tag_name}.{variant.name}:")
            self.indent += 1
            self._emit_wrap(self.exp.descriptors[index], variant, arg_names, None)
            self.indent -= 1
        self.indent -= 1
        self.line(f'raise ValueError(f"unknown {ctx.tag_name}: {{{tag}!r}}")')
        self.indent -= 1

    def _emit_call_all(self, agg: AggregatePlan) -> None:
        assert self.exp is not None
        union = self.exp.union.name
        results = fresh_name("results", self._taken(agg))
        params = self._signature(agg.receiver != "none", agg.params)
        self._def_line(agg.name, agg.modifiers, params, f"list[{union}]")
        self.indent += 1
        self.line(f"{results}: list[{union}] = []")
        arg_names = [p.name for p in agg.params]
        for index in agg.members:
            variant = self.exp.variant_for(index)
            self._emit_wrap(self.exp.descriptors[index], variant, arg_names, results)
        self.line(f"return {results}")
        self.indent -= 1


def emit_python(exp: Expansion) -> str:
    """Emit Python code for one expanded block."""
    return PythonBackend().emit(exp)
