"""Type parameters, type arguments and substitution.

Polymorphic function types and extension definitions declare a sequence of
`TypeParam`s; call sites supply matching `TypeArg`s. Variables refer to a
declaration by its index in the nearest enclosing parameter list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hugr_core._errors import SignatureError

from ._bound import TypeBound
from ._extension_set import ExtensionSet

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hugr_core._extension import ExtensionRegistry

    from ._types import Type


# =============================================================================
# Parameters
# =============================================================================


class TypeParam:
    """Base class for the kinds of static argument a definition may take."""

    def contains(self, other: TypeParam) -> bool:
        """Whether every argument accepted by `other` is accepted by `self`."""
        return self == other


@dataclass(frozen=True, slots=True)
class TypeTypeParam(TypeParam):
    """A type argument whose bound is contained in `bound`."""

    bound: TypeBound = TypeBound.LINEAR

    def contains(self, other: TypeParam) -> bool:
        return isinstance(other, TypeTypeParam) and self.bound.contains(other.bound)

    def __str__(self) -> str:
        return f"Type({self.bound})"


@dataclass(frozen=True, slots=True)
class BoundedNatParam(TypeParam):
    """A natural number, strictly below `upper_bound` when one is given."""

    upper_bound: int | None = None

    def contains(self, other: TypeParam) -> bool:
        if not isinstance(other, BoundedNatParam):
            return False
        if self.upper_bound is None:
            return True
        return other.upper_bound is not None and other.upper_bound <= self.upper_bound

    def __str__(self) -> str:
        return "Nat" if self.upper_bound is None else f"Nat(<{self.upper_bound})"


@dataclass(frozen=True, slots=True)
class StringParam(TypeParam):
    """An arbitrary string."""

    def __str__(self) -> str:
        return "String"


@dataclass(frozen=True, slots=True)
class ExtensionsParam(TypeParam):
    """A set of extensions."""

    def __str__(self) -> str:
        return "Extensions"


@dataclass(frozen=True, slots=True)
class ListParam(TypeParam):
    """A sequence of arguments, each accepted by `param`."""

    param: TypeParam

    def contains(self, other: TypeParam) -> bool:
        return isinstance(other, ListParam) and self.param.contains(other.param)

    def __str__(self) -> str:
        return f"List({self.param})"


# =============================================================================
# Arguments
# =============================================================================


class TypeArg:
    """Base class for static arguments."""

    def substitute(self, subst: Substitution) -> TypeArg:  # noqa: ARG002
        """Apply a substitution to any variables in the argument."""
        return self

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam]) -> None:
        """Check the argument is well formed in the given variable scope."""

    def as_type(self) -> Type:
        """The type carried by a type argument."""
        msg = f"Expected a type argument, got {self}"
        raise SignatureError(msg)

    def as_extension_set(self) -> ExtensionSet:
        """The extension set carried by an extensions argument."""
        msg = f"Expected an extension set argument, got {self}"
        raise SignatureError(msg)


@dataclass(frozen=True, slots=True)
class TypeTypeArg(TypeArg):
    """A type supplied for a `TypeTypeParam`."""

    ty: Type

    def substitute(self, subst: Substitution) -> TypeArg:
        return TypeTypeArg(self.ty.substitute(subst))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam]) -> None:
        self.ty.validate(registry, var_decls)

    def as_type(self) -> Type:
        return self.ty

    def __str__(self) -> str:
        return str(self.ty)


@dataclass(frozen=True, slots=True)
class BoundedNatArg(TypeArg):
    """A natural number."""

    n: int

    def __str__(self) -> str:
        return str(self.n)


@dataclass(frozen=True, slots=True)
class StringArg(TypeArg):
    """A string."""

    value: str

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True, slots=True)
class ExtensionsArg(TypeArg):
    """An extension set."""

    extensions: ExtensionSet = field(default_factory=ExtensionSet)

    def substitute(self, subst: Substitution) -> TypeArg:
        return ExtensionsArg(self.extensions.substitute(subst))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam]) -> None:  # noqa: ARG002
        self.extensions.validate(var_decls)

    def as_extension_set(self) -> ExtensionSet:
        return self.extensions

    def __str__(self) -> str:
        return str(self.extensions)


@dataclass(frozen=True, slots=True)
class SequenceArg(TypeArg):
    """A sequence of arguments for a `ListParam`."""

    elems: tuple[TypeArg, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elems", tuple(self.elems))

    def substitute(self, subst: Substitution) -> TypeArg:
        return SequenceArg(tuple(e.substitute(subst) for e in self.elems))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam]) -> None:
        for elem in self.elems:
            elem.validate(registry, var_decls)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elems) + "]"


@dataclass(frozen=True, slots=True)
class VariableArg(TypeArg):
    """Use of a variable declared with a non-type parameter.

    Type variables are passed as `TypeTypeArg(Variable(...))` instead, so the
    variable is usable as a type.
    """

    idx: int
    param: TypeParam

    def substitute(self, subst: Substitution) -> TypeArg:
        return subst.apply_var(self.idx, self.param)

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam]) -> None:  # noqa: ARG002
        check_typevar_decl(var_decls, self.idx, self.param)

    def as_extension_set(self) -> ExtensionSet:
        if isinstance(self.param, ExtensionsParam):
            return ExtensionSet.type_var(self.idx)
        return TypeArg.as_extension_set(self)

    def __str__(self) -> str:
        return f"?{self.idx}"


# =============================================================================
# Checking and substitution
# =============================================================================


def check_type_arg(arg: TypeArg, param: TypeParam) -> None:  # noqa: C901
    """Check that `arg` is acceptable for `param`.

    Raises:
        SignatureError: If the argument does not fit the parameter.

    """
    match (arg, param):
        case (VariableArg(param=declared), _) if param.contains(declared):
            return
        case (TypeTypeArg(ty=ty), TypeTypeParam(bound=bound)) if bound.contains(ty.bound):
            return
        case (BoundedNatArg(n=n), BoundedNatParam(upper_bound=upper)):
            if n < 0 or (upper is not None and n >= upper):
                msg = f"Natural {n} out of range for {param}"
                raise SignatureError(msg)
            return
        case (StringArg(), StringParam()) | (ExtensionsArg(), ExtensionsParam()):
            return
        case (SequenceArg(elems=elems), ListParam(param=elem_param)):
            for elem in elems:
                check_type_arg(elem, elem_param)
            return
        case _:
            msg = f"Type argument {arg} does not fit parameter {param}"
            raise SignatureError(msg)


def check_type_args(args: Sequence[TypeArg], params: Sequence[TypeParam]) -> None:
    """Check a full argument list against a parameter list.

    Raises:
        SignatureError: On a length mismatch or any ill-fitting argument.

    """
    if len(args) != len(params):
        msg = f"Wrong number of type arguments: expected {len(params)}, got {len(args)}"
        raise SignatureError(msg)
    for arg, param in zip(args, params, strict=True):
        check_type_arg(arg, param)


def check_typevar_decl(var_decls: Sequence[TypeParam], idx: int, cached: TypeParam) -> None:
    """Check variable `idx` is declared, and declared as `cached`.

    Raises:
        SignatureError: If the variable is free or its declaration differs.

    """
    if idx < 0 or idx >= len(var_decls):
        msg = f"Type variable {idx} was not declared ({len(var_decls)} in scope)"
        raise SignatureError(msg)
    if var_decls[idx] != cached:
        msg = f"Type variable {idx} claims to be {cached} but is declared as {var_decls[idx]}"
        raise SignatureError(msg)


@dataclass(frozen=True, slots=True)
class Substitution:
    """Binding of the variables of one parameter list to arguments.

    The arguments are assumed to have been checked against the parameter
    list (see `check_type_args`); `apply_var` re-checks each use against the
    kind recorded at the variable occurrence.
    """

    args: tuple[TypeArg, ...]

    def apply_var(self, idx: int, decl: TypeParam) -> TypeArg:
        """The argument bound to variable `idx`.

        Raises:
            SignatureError: If no argument exists for `idx` or it does not fit `decl`.

        """
        if idx < 0 or idx >= len(self.args):
            msg = f"Type variable {idx} was not declared ({len(self.args)} in scope)"
            raise SignatureError(msg)
        arg = self.args[idx]
        check_type_arg(arg, decl)
        return arg

    def apply_typevar(self, idx: int, bound: TypeBound) -> Type:
        """The type bound to type variable `idx`."""
        return self.apply_var(idx, TypeTypeParam(bound)).as_type()
