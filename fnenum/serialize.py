"""Serialization of pipeline structures to JSON-compatible dicts."""

from __future__ import annotations

from .ir import (
    MODIFIERS,
    AggregatePlan,
    Classified,
    EnumDescriptor,
    FunctionDescriptor,
    Loc,
    Param,
)


def _loc_to_dict(loc: Loc) -> dict[str, object]:
    return {"line": loc.line, "col": loc.col}


def _modifiers_to_list(modifiers: frozenset[str]) -> list[str]:
    return [m for m in MODIFIERS if m in modifiers]


def _params_to_list(params: list[Param]) -> list[dict[str, object]]:
    return [{"name": p.name, "type": p.typ} for p in params]


def descriptor_to_dict(fn: FunctionDescriptor) -> dict[str, object]:
    return {
        "index": fn.index,
        "name": fn.name,
        "modifiers": _modifiers_to_list(fn.modifiers),
        "receiver": fn.receiver,
        "params": _params_to_list(fn.params),
        "returns": fn.return_type,
        "loc": _loc_to_dict(fn.loc),
    }


def _aggregate_to_dict(agg: AggregatePlan) -> dict[str, object]:
    return {
        "form": agg.form,
        "name": agg.name,
        "receiver": agg.receiver,
        "params": _params_to_list(agg.params),
        "members": list(agg.members),
        "modifiers": _modifiers_to_list(agg.modifiers),
    }


def classified_to_dict(classified: Classified) -> dict[str, object]:
    plan = classified.plan
    return {
        "survivors": list(classified.survivors),
        "shims": [
            {
                "function": s.function,
                "name": s.name,
                "modifiers": _modifiers_to_list(s.modifiers),
            }
            for s in plan.shims
        ],
        "aggregate": _aggregate_to_dict(plan.aggregate) if plan.aggregate else None,
        "formable": plan.formable,
        "blocker": plan.blocker,
    }


def enum_to_dict(union: EnumDescriptor) -> dict[str, object]:
    return {
        "name": union.name,
        "variants": [
            {"name": v.name, "payload": v.payload, "source": v.source} for v in union.variants
        ],
    }

