"""Type system.

This module contains:
- Type and its variants (Opaque, SumType, TupleType, FunctionType, Variable)
- TypeRow: ordered sequences of types
- PolyFuncType: function types generalized over type parameters
- TypeBound: the copyable/linear lattice
- ExtensionSet: extension requirements with extension-set variables
- Type parameters, type arguments and Substitution
"""

from ._bound import TypeBound
from ._extension_set import ExtensionSet
from ._type_param import (
    BoundedNatArg,
    BoundedNatParam,
    ExtensionsArg,
    ExtensionsParam,
    ListParam,
    SequenceArg,
    StringArg,
    StringParam,
    Substitution,
    TypeArg,
    TypeParam,
    TypeTypeArg,
    TypeTypeParam,
    VariableArg,
    check_type_arg,
    check_type_args,
    check_typevar_decl,
)
from ._types import FunctionType, Opaque, PolyFuncType, SumType, TupleType, Type, TypeRow, Variable

__all__ = [
    "BoundedNatArg",
    "BoundedNatParam",
    "ExtensionSet",
    "ExtensionsArg",
    "ExtensionsParam",
    "FunctionType",
    "ListParam",
    "Opaque",
    "PolyFuncType",
    "SequenceArg",
    "StringArg",
    "StringParam",
    "Substitution",
    "SumType",
    "TupleType",
    "Type",
    "TypeArg",
    "TypeBound",
    "TypeParam",
    "TypeRow",
    "TypeTypeArg",
    "TypeTypeParam",
    "Variable",
    "VariableArg",
    "check_type_arg",
    "check_type_args",
    "check_typevar_decl",
]
