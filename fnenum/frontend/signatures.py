"""Phase 2: Validate descriptors against each other and plan dispatch.

Checks run over the whole set and accumulate; a failing function is dropped
from the survivors while the rest keep being validated. The aggregate
dispatcher is planned over the survivors only.
"""

from __future__ import annotations

from ..diagnostics import (
    DUPLICATE_VARIANT_NAME,
    GENERATED_NAME_COLLISION,
    MODIFIER_CONFLICT,
    RECEIVER_MISMATCH,
    Diagnostics,
)
from ..ir import (
    MODIFIERS,
    AggregateForm,
    AggregatePlan,
    CALL_ALL_NAME,
    Classified,
    DispatchPlan,
    FunctionDescriptor,
    InvocationContext,
    SELECT_NAME,
    ShimPlan,
)
from ..naming import variant_name


def format_modifiers(modifiers: frozenset[str]) -> str:
    """Render a modifier set in keyword order, e.g. 'const unsafe'."""
    return " ".join(m for m in MODIFIERS if m in modifiers)


def _check_modifiers(
    fn: FunctionDescriptor, ctx: InvocationContext, diags: Diagnostics
) -> bool:
    """Reject combinations the target language itself forbids."""
    for forbidden in ctx.target.forbidden_modifiers:
        if forbidden <= fn.modifiers:
            diags.add_error(
                MODIFIER_CONFLICT,
                f"'{fn.name}' cannot be both {' and '.join(m for m in MODIFIERS if m in forbidden)}"
                f" in {ctx.target.name}",
                fn.loc,
            )
            return False
    return True


def _reserved_names(ctx: InvocationContext) -> set[str]:
    """Module-level names a variant or a shim parameter may not take."""
    names = {ctx.enum_name, ctx.tag_name, ctx.block_name}
    names.update(ctx.target.reserved)
    return names


def _check_context_names(ctx: InvocationContext, diags: Diagnostics) -> None:
    """The union and tag types sit next to the block, so neither may reuse its name."""
    for kind, name in (("union", ctx.enum_name), ("tag", ctx.tag_name)):
        if name == ctx.block_name:
            diags.add_error(
                GENERATED_NAME_COLLISION,
                f"{kind} '{name}' has the same name as block '{ctx.block_name}'",
            )
        elif name in ctx.target.keywords:
            diags.add_error(
                GENERATED_NAME_COLLISION,
                f"{kind} name '{name}' is a keyword in {ctx.target.name}",
            )


def _check_param_names(
    descriptors: list[FunctionDescriptor],
    ctx: InvocationContext,
    diags: Diagnostics,
) -> set[int]:
    """Flag parameters that would shadow module-level names inside generated bodies."""
    shadowed = _reserved_names(ctx)
    shadowed.update(variant_name(fn.name) for fn in descriptors)
    failed: set[int] = set()
    for fn in descriptors:
        for p in fn.params:
            if p.name in shadowed:
                diags.add_error(
                    GENERATED_NAME_COLLISION,
                    f"parameter '{p.name}' of '{fn.name}' shadows the generated name '{p.name}'",
                    fn.loc,
                )
                failed.add(fn.index)
                break
    return failed


def _check_generated_names(
    descriptors: list[FunctionDescriptor], ctx: InvocationContext, diags: Diagnostics
) -> set[int]:
    """Flag declared functions that a generated callable would shadow."""
    generated: dict[str, str] = {}
    for fn in descriptors:
        generated[ctx.shim_name(fn.name)] = f"shim for '{fn.name}'"
    if ctx.aggregate != "off":
        generated[SELECT_NAME] = "select dispatcher"
        generated[CALL_ALL_NAME] = "call-all dispatcher"
    failed: set[int] = set()
    for fn in descriptors:
        if fn.name in generated:
            diags.add_error(
                GENERATED_NAME_COLLISION,
                f"'{fn.name}' collides with the generated {generated[fn.name]}"
                f" in '{ctx.block_name}'",
                fn.loc,
            )
            failed.add(fn.index)
    return failed


def _aggregate_blocker(fns: list[FunctionDescriptor]) -> str | None:
    """Why these functions cannot share one call site, or None."""
    first = fns[0]
    for fn in fns[1:]:
        if fn.receiver != first.receiver:
            return (
                f"'{first.name}' takes receiver '{first.receiver}'"
                f" but '{fn.name}' takes '{fn.receiver}'"
            )
    for fn in fns[1:]:
        if fn.param_types() != first.param_types():
            return (
                f"'{first.name}' takes ({', '.join(first.param_types())})"
                f" but '{fn.name}' takes ({', '.join(fn.param_types())})"
            )
    return None


def aggregate_modifiers(
    fns: list[FunctionDescriptor], ctx: InvocationContext
) -> frozenset[str]:
    """Modifiers of a callable invoking every fn.

    async or unsafe when any member is; const only when every member is.
    Combinations the target forbids are dropped, never reported.
    """
    mods: set[str] = set()
    if any("async" in fn.modifiers for fn in fns):
        mods.add("async")
    if any("unsafe" in fn.modifiers for fn in fns):
        mods.add("unsafe")
    if fns and all("const" in fn.modifiers for fn in fns):
        mods.add("const")
    for forbidden in ctx.target.forbidden_modifiers:
        if forbidden <= mods:
            mods.discard("const")
    return frozenset(mods)


def _plan_aggregate(
    fns: list[FunctionDescriptor],
    ctx: InvocationContext,
    plan: DispatchPlan,
    diags: Diagnostics,
) -> None:
    if not fns:
        plan.blocker = "no functions"
        return
    plan.blocker = _aggregate_blocker(fns)
    plan.formable = plan.blocker is None
    if ctx.aggregate == "off":
        return
    if not plan.formable:
        if ctx.aggregate != "auto":
            diags.add_error(
                RECEIVER_MISMATCH,
                f"cannot form '{ctx.aggregate_name(ctx.aggregate)}' for '{ctx.block_name}': "
                + str(plan.blocker),
                fns[0].loc,
            )
        return
    form: AggregateForm = "all" if ctx.aggregate == "all" else "select"
    plan.aggregate = AggregatePlan(
        form=form,
        name=ctx.aggregate_name(form),
        receiver=fns[0].receiver,
        params=list(fns[0].params),
        members=[fn.index for fn in fns],
        modifiers=aggregate_modifiers(fns, ctx),
    )


def classify(
    descriptors: list[FunctionDescriptor], ctx: InvocationContext, diags: Diagnostics
) -> Classified:
    """Validate the descriptor set and compute the dispatch plan."""
    _check_context_names(ctx, diags)
    failed: set[int] = set()
    for fn in descriptors:
        if not _check_modifiers(fn, ctx, diags):
            failed.add(fn.index)
    # Duplicate function names, then variant names that coincide after case conversion
    seen_names: dict[str, FunctionDescriptor] = {}
    seen_variants: dict[str, FunctionDescriptor] = {}
    reserved = _reserved_names(ctx) if ctx.target.variants_share_module_scope else set()
    for fn in descriptors:
        if fn.name in seen_names:
            diags.add_error(
                DUPLICATE_VARIANT_NAME,
                f"function '{fn.name}' is declared more than once in '{ctx.block_name}'",
                fn.loc,
            )
            failed.add(fn.index)
            continue
        seen_names[fn.name] = fn
        vname = variant_name(fn.name)
        if vname in seen_variants:
            other = seen_variants[vname]
            diags.add_error(
                DUPLICATE_VARIANT_NAME,
                f"'{fn.name}' and '{other.name}' both map to variant '{vname}'",
                fn.loc,
            )
            failed.add(fn.index)
            continue
        if vname in ctx.target.keywords:
            diags.add_error(
                DUPLICATE_VARIANT_NAME,
                f"variant '{vname}' from '{fn.name}' is a keyword in {ctx.target.name}",
                fn.loc,
            )
            failed.add(fn.index)
            continue
        if vname in reserved:
            diags.add_error(
                DUPLICATE_VARIANT_NAME,
                f"variant '{vname}' from '{fn.name}' collides with a generated name",
                fn.loc,
            )
            failed.add(fn.index)
            continue
        seen_variants[vname] = fn
    if ctx.target.shims_share_block_scope:
        failed |= _check_generated_names(descriptors, ctx, diags)
    if ctx.target.variants_share_module_scope:
        failed |= _check_param_names(descriptors, ctx, diags)
    survivors = [fn for fn in descriptors if fn.index not in failed]
    plan = DispatchPlan()
    for fn in survivors:
        plan.shims.append(
            ShimPlan(function=fn.index, name=ctx.shim_name(fn.name), modifiers=fn.modifiers)
        )
    _plan_aggregate(survivors, ctx, plan, diags)
    return Classified(survivors=[fn.index for fn in survivors], plan=plan)
