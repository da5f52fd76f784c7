"""The prelude extension: types every program may rely on.

Defines `usize` (copyable machine integers), `qubit` (linear) and `error`.
`BOOL_T` is not an extension type; it is the unit sum of two variants.
"""

from hugr_core._errors import SignatureError
from hugr_core._ops import ExtensionValue
from hugr_core._types import SumType, TypeBound

from ._registry import Extension, ExtensionRegistry

PRELUDE_ID = "prelude"

PRELUDE = Extension(PRELUDE_ID, version="0.1.0", description="Types shared by all programs")

USIZE_DEF = PRELUDE.add_type("usize", description="Non-negative machine integer", bound=TypeBound.COPYABLE)
QUBIT_DEF = PRELUDE.add_type("qubit", description="A quantum bit", bound=TypeBound.LINEAR)
ERROR_DEF = PRELUDE.add_type("error", description="Simple opaque error type", bound=TypeBound.COPYABLE)

USIZE_T = USIZE_DEF.instantiate()
QB_T = QUBIT_DEF.instantiate()
ERROR_T = ERROR_DEF.instantiate()
BOOL_T = SumType.unit(2)

PRELUDE_REGISTRY = ExtensionRegistry([PRELUDE])


def const_usize(value: int) -> ExtensionValue:
    """A `usize` constant.

    Raises:
        SignatureError: If `value` is negative.

    """
    if value < 0:
        msg = f"usize constants must be non-negative, got {value}"
        raise SignatureError(msg)
    return ExtensionValue(USIZE_T, value)
