"""Phase 3: Build the union from the surviving descriptors."""

from __future__ import annotations

from ..diagnostics import Diagnostics, InternalError
from ..ir import Classified, EnumDescriptor, FunctionDescriptor, InvocationContext, Variant
from ..naming import variant_name


def synthesize_enum(
    descriptors: list[FunctionDescriptor],
    classified: Classified,
    ctx: InvocationContext,
    diags: Diagnostics,
) -> EnumDescriptor:
    """One variant per survivor, in declaration order, payload copied verbatim."""
    result = EnumDescriptor(name=ctx.enum_name)
    names: set[str] = set()
    for index in classified.survivors:
        fn = descriptors[index]
        if fn.index != index:
            raise InternalError(f"descriptor {fn.name!r} sits at {index}, claims {fn.index}")
        name = variant_name(fn.name)
        if name in names:
            # The classifier drops every function whose variant name repeats
            raise InternalError(f"variant {name!r} survived classification twice")
        names.add(name)
        result.variants.append(Variant(name=name, payload=fn.return_type, source=index))
    return result
