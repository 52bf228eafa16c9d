"""Phase 1: Collect function descriptors from the block's items.

Declaration order is preserved exactly; it fixes variant order downstream.
Non-function items are skipped (they stay in the user's block untouched)
and each skip is reported as a warning.
"""

from __future__ import annotations

from ..diagnostics import UNSUPPORTED_ITEM_KIND, Diagnostics, InternalError
from ..ir import FunctionDescriptor, FunctionItem, InvocationContext, Item, OtherItem


def _describe(item: OtherItem) -> str:
    if item.name:
        return f"{item.kind} '{item.name}'"
    return item.kind


def collect_functions(
    items: list[Item], ctx: InvocationContext, diags: Diagnostics
) -> list[FunctionDescriptor]:
    """Walk the block and extract one descriptor per function, in order."""
    result: list[FunctionDescriptor] = []
    for item in items:
        match item:
            case FunctionItem():
                result.append(
                    FunctionDescriptor(
                        index=len(result),
                        name=item.name,
                        modifiers=frozenset(item.modifiers),
                        receiver=item.receiver,
                        params=list(item.params),
                        return_type=item.returns,
                        loc=item.loc,
                    )
                )
            case OtherItem():
                diags.add_warning(
                    UNSUPPORTED_ITEM_KIND,
                    f"{_describe(item)} in '{ctx.block_name}' is not a function; skipped",
                    item.loc,
                )
            case _:
                raise InternalError(f"unexpected item {item!r}")
    return result
