"""The logic extension: boolean operations over `BOOL_T`.

`And` and `Or` take the number of inputs as a static argument; `Not` has a
fixed signature.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hugr_core._errors import SignatureError
from hugr_core._ops import ExtensionOp, SumValue
from hugr_core._types import BoundedNatArg, BoundedNatParam, FunctionType, PolyFuncType, TypeParam, TypeRow

from ._registry import Extension, ExtensionRegistry
from .prelude import BOOL_T, PRELUDE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hugr_core._types import TypeArg

LOGIC_ID = "logic"
FALSE_NAME = "FALSE"
TRUE_NAME = "TRUE"


class NaryLogicSignature:
    """Signature rule of `And`/`Or`: `n` booleans in, one boolean out."""

    @property
    def static_params(self) -> tuple[TypeParam, ...]:
        return (BoundedNatParam(),)

    def compute_signature(self, args: Sequence[TypeArg]) -> PolyFuncType:
        match args:
            case [BoundedNatArg(n=n)]:
                return PolyFuncType.mono(FunctionType(TypeRow((BOOL_T,) * n), TypeRow((BOOL_T,))))
            case _:
                msg = f"Invalid type arguments for logic operation: {[str(a) for a in args]}"
                raise SignatureError(msg)


def _extension() -> Extension:
    ext = Extension(LOGIC_ID, version="0.1.0", description="Basic logical operations")
    ext.add_op("And", NaryLogicSignature(), "logical 'and'")
    ext.add_op("Or", NaryLogicSignature(), "logical 'or'")
    ext.add_op("Not", PolyFuncType.mono(FunctionType.endo([BOOL_T])), "logical 'not'")
    ext.add_value(FALSE_NAME, SumValue(0), BOOL_T)
    ext.add_value(TRUE_NAME, SumValue(1), BOOL_T)
    return ext


LOGIC_EXTENSION = _extension()

LOGIC_REGISTRY = ExtensionRegistry([PRELUDE, LOGIC_EXTENSION])


def and_op(n: int = 2) -> ExtensionOp:
    """`And` over `n` inputs."""
    return LOGIC_EXTENSION.instantiate_op("And", [BoundedNatArg(n)])


def or_op(n: int = 2) -> ExtensionOp:
    """`Or` over `n` inputs."""
    return LOGIC_EXTENSION.instantiate_op("Or", [BoundedNatArg(n)])


def not_op() -> ExtensionOp:
    return LOGIC_EXTENSION.instantiate_op("Not", [])
