"""Tests for the signature classifier and dispatch planning."""

from fnenum.backend import TARGETS
from fnenum.diagnostics import (
    DUPLICATE_VARIANT_NAME,
    GENERATED_NAME_COLLISION,
    MODIFIER_CONFLICT,
    RECEIVER_MISMATCH,
    Diagnostics,
)
from fnenum.frontend.signatures import aggregate_modifiers, classify, format_modifiers
from fnenum.ir import FunctionDescriptor, InvocationContext, Param


def _fn(index, name, mods=(), receiver="none", params=(), returns="int"):
    return FunctionDescriptor(
        index=index,
        name=name,
        modifiers=frozenset(mods),
        receiver=receiver,
        params=[Param(n, t) for n, t in params],
        return_type=returns,
    )


def _run(fns, target="python", aggregate="auto", enum_name=""):
    ctx = InvocationContext(
        block_name="Ops", target=TARGETS[target], aggregate=aggregate, enum_name=enum_name
    )
    diags = Diagnostics()
    classified = classify(fns, ctx, diags)
    return classified, diags


# ============================================================
# names
# ============================================================


def test_unique_names_all_survive():
    classified, diags = _run([_fn(0, "a"), _fn(1, "b")])
    assert diags.ok()
    assert classified.survivors == [0, 1]
    assert [s.name for s in classified.plan.shims] == ["wrap_a", "wrap_b"]


def test_duplicate_name():
    classified, diags = _run([_fn(0, "run"), _fn(1, "run")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]
    assert diags.errors()[0].message == "function 'run' is declared more than once in 'Ops'"
    assert classified.survivors == [0]


def test_pascal_case_collision():
    _, diags = _run([_fn(0, "do_it"), _fn(1, "doIt")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]
    assert "both map to variant 'DoIt'" in diags.errors()[0].message


def test_leading_underscore_collision():
    _, diags = _run([_fn(0, "run"), _fn(1, "_run")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]


def test_variant_collides_with_union_name():
    # OpsOutcome is the default union name
    _, diags = _run([_fn(0, "ops_outcome")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]


def test_variant_shadowing_dispatcher_builtin():
    # ValueError is raised by the select dispatcher
    _, diags = _run([_fn(0, "value_error")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]
    _, diags = _run([_fn(0, "dataclass"), _fn(1, "enum")])
    assert diags.ok()


def test_reserved_names_ignored_on_rust():
    _, diags = _run([_fn(0, "ops_outcome")], target="rust")
    assert diags.ok()


def test_keyword_variant_python():
    classified, diags = _run([_fn(0, "none"), _fn(1, "true"), _fn(2, "get")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME, DUPLICATE_VARIANT_NAME]
    assert diags.errors()[0].message == "variant 'None' from 'none' is a keyword in python"
    assert classified.survivors == [2]


def test_keyword_variant_rust():
    _, diags = _run([_fn(0, "self_")], target="rust")
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME]
    assert "variant 'Self' from 'self_' is a keyword in rust" in diags.errors()[0].message


def test_python_keywords_allowed_on_rust():
    _, diags = _run([_fn(0, "none")], target="rust")
    assert diags.ok()


def test_errors_accumulate():
    _, diags = _run([_fn(0, "a"), _fn(1, "a"), _fn(2, "b"), _fn(3, "b")])
    assert diags.kinds() == [DUPLICATE_VARIANT_NAME, DUPLICATE_VARIANT_NAME]


# ============================================================
# modifiers
# ============================================================


def test_format_modifiers_order():
    assert format_modifiers(frozenset({"unsafe", "async", "const"})) == "const async unsafe"


def test_async_const_rejected_on_rust():
    classified, diags = _run([_fn(0, "f", mods=("async", "const"))], target="rust")
    assert diags.kinds() == [MODIFIER_CONFLICT]
    assert diags.errors()[0].message == "'f' cannot be both const and async in rust"
    assert classified.survivors == []


def test_async_const_allowed_on_python():
    classified, diags = _run([_fn(0, "f", mods=("async", "const"))])
    assert diags.ok()
    assert classified.plan.shims[0].modifiers == frozenset({"async", "const"})


def test_shim_modifiers_copied():
    classified, _ = _run([_fn(0, "f", mods=("const", "unsafe"))], target="rust")
    assert classified.plan.shims[0].modifiers == frozenset({"const", "unsafe"})


def test_aggregate_modifiers_rules():
    ctx = InvocationContext(block_name="Ops", target=TARGETS["python"])
    fns = [_fn(0, "a", mods=("const",)), _fn(1, "b", mods=("const", "unsafe"))]
    assert aggregate_modifiers(fns, ctx) == frozenset({"const", "unsafe"})
    fns.append(_fn(2, "c", mods=("async",)))
    assert aggregate_modifiers(fns, ctx) == frozenset({"async", "unsafe"})


def test_aggregate_modifiers_drop_forbidden():
    ctx = InvocationContext(block_name="Ops", target=TARGETS["rust"])
    fns = [_fn(0, "a", mods=("const",)), _fn(1, "b", mods=("const",))]
    assert aggregate_modifiers(fns, ctx) == frozenset({"const"})


# ============================================================
# generated names
# ============================================================


def test_shim_name_collision_on_rust():
    _, diags = _run([_fn(0, "a"), _fn(1, "wrap_a")], target="rust")
    assert GENERATED_NAME_COLLISION in diags.kinds()


def test_dispatcher_name_collision_on_rust():
    _, diags = _run([_fn(0, "dispatch")], target="rust")
    assert diags.kinds() == [GENERATED_NAME_COLLISION]


def test_dispatcher_name_free_when_aggregate_off():
    _, diags = _run([_fn(0, "dispatch")], target="rust", aggregate="off")
    assert diags.ok()


def test_union_named_like_block():
    for target in ("python", "rust"):
        _, diags = _run([_fn(0, "a")], target=target, enum_name="Ops")
        assert diags.kinds() == [GENERATED_NAME_COLLISION]
        assert diags.errors()[0].message == "union 'Ops' has the same name as block 'Ops'"


def test_tag_named_like_block():
    ctx = InvocationContext(block_name="OpsTag", target=TARGETS["rust"], enum_name="Ops")
    diags = Diagnostics()
    classify([_fn(0, "a")], ctx, diags)
    assert diags.kinds() == [GENERATED_NAME_COLLISION]
    assert "tag 'OpsTag'" in diags.errors()[0].message


def test_union_named_like_keyword():
    _, diags = _run([], target="rust", enum_name="Self")
    assert diags.kinds() == [GENERATED_NAME_COLLISION]


def test_param_shadowing_variant_python():
    classified, diags = _run([_fn(0, "a", params=[("A", "int")]), _fn(1, "b")])
    assert diags.kinds() == [GENERATED_NAME_COLLISION]
    assert diags.errors()[0].message == "parameter 'A' of 'a' shadows the generated name 'A'"
    assert classified.survivors == [1]


def test_param_shadowing_block_python():
    _, diags = _run([_fn(0, "a", params=[("Ops", "int")])])
    assert diags.kinds() == [GENERATED_NAME_COLLISION]


def test_param_shadowing_tag_python():
    _, diags = _run([_fn(0, "a", params=[("OpsOutcomeTag", "int")])])
    assert diags.kinds() == [GENERATED_NAME_COLLISION]


def test_param_names_unchecked_on_rust():
    _, diags = _run([_fn(0, "a", params=[("A", "i32")])], target="rust")
    assert diags.ok()


# ============================================================
# aggregate planning
# ============================================================


def test_auto_plans_select():
    classified, diags = _run([_fn(0, "a"), _fn(1, "b")])
    agg = classified.plan.aggregate
    assert diags.ok()
    assert agg is not None
    assert agg.form == "select"
    assert agg.name == "dispatch"
    assert agg.members == [0, 1]


def test_all_plans_call_all():
    classified, _ = _run([_fn(0, "a"), _fn(1, "b")], aggregate="all")
    assert classified.plan.aggregate.form == "all"
    assert classified.plan.aggregate.name == "call_all"


def test_off_plans_nothing():
    classified, diags = _run([_fn(0, "a"), _fn(1, "b")], aggregate="off")
    assert diags.ok()
    assert classified.plan.aggregate is None
    assert classified.plan.formable


def test_receiver_mismatch_required():
    fns = [_fn(0, "a", receiver="value"), _fn(1, "b", receiver="ref")]
    classified, diags = _run(fns, aggregate="select")
    assert diags.kinds() == [RECEIVER_MISMATCH]
    assert "cannot form 'dispatch' for 'Ops'" in diags.errors()[0].message
    assert classified.plan.aggregate is None


def test_receiver_mismatch_auto_omits():
    fns = [_fn(0, "a", receiver="value"), _fn(1, "b", receiver="ref")]
    classified, diags = _run(fns)
    assert diags.ok()
    assert classified.plan.aggregate is None
    assert not classified.plan.formable
    assert len(classified.plan.shims) == 2


def test_param_type_mismatch_required():
    fns = [_fn(0, "a", params=[("x", "int")]), _fn(1, "b", params=[("x", "str")])]
    _, diags = _run(fns, aggregate="all")
    assert diags.kinds() == [RECEIVER_MISMATCH]
    assert "takes (int) but 'b' takes (str)" in diags.errors()[0].message


def test_param_names_may_differ():
    fns = [_fn(0, "a", params=[("x", "int")]), _fn(1, "b", params=[("y", "int")])]
    classified, diags = _run(fns, aggregate="select")
    assert diags.ok()
    assert [p.name for p in classified.plan.aggregate.params] == ["x"]


def test_no_functions_no_aggregate():
    classified, diags = _run([], aggregate="select")
    assert diags.ok()
    assert classified.plan.aggregate is None
    assert classified.plan.blocker == "no functions"


def test_aggregate_over_survivors_only():
    fns = [_fn(0, "a"), _fn(1, "a"), _fn(2, "b")]
    classified, _ = _run(fns)
    assert classified.plan.aggregate.members == [0, 2]
