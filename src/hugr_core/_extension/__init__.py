"""Extensions: registries, standard extensions and requirement inference.

This module contains:
- Extension, TypeDef, OpDef, NamedValue: extension definitions
- ExtensionRegistry: the explicit lookup table passed to signature
  computation, validation and decoding
- infer_extensions / ExtensionSolution: bottom-up requirement inference
- prelude and logic: the standard extensions
"""

from ._infer import ExtensionSolution, compute_requirements, infer_extensions
from ._registry import (
    CustomSignatureFunc,
    Extension,
    ExtensionRegistry,
    FromParams,
    NamedValue,
    OpDef,
    SignatureFunc,
    TypeDef,
    is_valid_extension_name,
)

__all__ = [
    "CustomSignatureFunc",
    "Extension",
    "ExtensionRegistry",
    "ExtensionSolution",
    "FromParams",
    "NamedValue",
    "OpDef",
    "SignatureFunc",
    "TypeDef",
    "compute_requirements",
    "infer_extensions",
    "is_valid_extension_name",
]
