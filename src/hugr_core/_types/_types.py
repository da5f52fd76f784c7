"""Value types, rows and polymorphic function types.

Types are immutable and compared structurally: two types are compatible
across an edge exactly when they are equal.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, overload

from hugr_core._errors import SignatureError

from ._bound import TypeBound
from ._extension_set import ExtensionSet
from ._type_param import (
    Substitution,
    TypeArg,
    TypeParam,
    TypeTypeParam,
    check_type_args,
    check_typevar_decl,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from hugr_core._extension import ExtensionRegistry


class Type(ABC):
    """Base class of all value types."""

    @property
    @abstractmethod
    def bound(self) -> TypeBound:
        """The linearity bound of the type."""

    def is_linear(self) -> bool:
        """Whether values of this type must be consumed exactly once."""
        return self.bound is TypeBound.LINEAR

    def substitute(self, subst: Substitution) -> Type:  # noqa: ARG002
        """Replace the type variables of this type using `subst`."""
        return self

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        """Check the type against `registry` with `var_decls` in scope.

        Raises:
            ExtensionNotFound: If an opaque type names an unregistered extension.
            SignatureError: If a type definition is missing, arguments are
                ill-formed, a bound disagrees or a variable is undeclared.

        """


# =============================================================================
# Rows
# =============================================================================


@dataclass(frozen=True, slots=True)
class TypeRow:
    """An ordered sequence of types (the types of a group of ports).

    Example:
        >>> unit = SumType.unit(1)
        >>> len(TypeRow([unit]) + TypeRow([unit, unit]))
        3

    """

    types: tuple[Type, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "types", tuple(self.types))

    @staticmethod
    def concat(*rows: Iterable[Type]) -> TypeRow:
        """Concatenate several rows (or plain sequences of types)."""
        return TypeRow(tuple(ty for row in rows for ty in row))

    def substitute(self, subst: Substitution) -> TypeRow:
        return TypeRow(tuple(ty.substitute(subst) for ty in self.types))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        for ty in self.types:
            ty.validate(registry, var_decls)

    @property
    def bound(self) -> TypeBound:
        """Join of the bounds of the row's types."""
        return TypeBound.join(ty.bound for ty in self.types)

    def __add__(self, other: Iterable[Type]) -> TypeRow:
        return TypeRow.concat(self, other)

    def __iter__(self) -> Iterator[Type]:
        return iter(self.types)

    def __len__(self) -> int:
        return len(self.types)

    @overload
    def __getitem__(self, index: int) -> Type: ...
    @overload
    def __getitem__(self, index: slice) -> TypeRow: ...
    def __getitem__(self, index: int | slice) -> Type | TypeRow:
        if isinstance(index, slice):
            return TypeRow(self.types[index])
        return self.types[index]

    def __str__(self) -> str:
        return "[" + ", ".join(str(ty) for ty in self.types) + "]"


def _as_row(row: TypeRow | Iterable[Type]) -> TypeRow:
    return row if isinstance(row, TypeRow) else TypeRow(tuple(row))


# =============================================================================
# Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class Opaque(Type):
    """An instance of a type defined by an extension.

    The bound is cached from the type definition. When the definition derives
    its bound from some type arguments, their indices are kept in
    `bound_from_params` and the bound is recomputed whenever the arguments
    change, e.g. by substitution. `validate` checks the bound still agrees
    with the registered definition.
    """

    extension: str
    name: str
    args: tuple[TypeArg, ...] = ()
    cached_bound: TypeBound = TypeBound.COPYABLE
    bound_from_params: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        if self.bound_from_params is not None:
            object.__setattr__(self, "bound_from_params", tuple(self.bound_from_params))
            bound = TypeBound.join(
                self.args[i].as_type().bound for i in self.bound_from_params if i < len(self.args)
            )
            object.__setattr__(self, "cached_bound", bound)

    @property
    def bound(self) -> TypeBound:
        return self.cached_bound

    def substitute(self, subst: Substitution) -> Type:
        if not self.args:
            return self
        return replace(self, args=tuple(arg.substitute(subst) for arg in self.args))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        type_def = registry.get_type(self.extension, self.name)
        for arg in self.args:
            arg.validate(registry, var_decls)
        check_type_args(self.args, type_def.params)
        expected = type_def.bound_for(self.args)
        if expected is not self.cached_bound or type_def.bound_from_params != self.bound_from_params:
            msg = f"Bound of {self} is {self.cached_bound} but its definition gives {expected}"
            raise SignatureError(msg)

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}(" + ", ".join(str(a) for a in self.args) + ")"


@dataclass(frozen=True, slots=True)
class SumType(Type):
    """A tagged union; each variant carries a row of values.

    Example:
        >>> bool_t = SumType.unit(2)
        >>> bool_t.num_variants
        2

    """

    variants: tuple[TypeRow, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", tuple(_as_row(v) for v in self.variants))

    @classmethod
    def unit(cls, size: int) -> SumType:
        """A sum of `size` empty variants."""
        return cls(tuple(TypeRow() for _ in range(size)))

    @property
    def num_variants(self) -> int:
        return len(self.variants)

    def is_unit_sum(self) -> bool:
        return all(len(v) == 0 for v in self.variants)

    @property
    def bound(self) -> TypeBound:
        return TypeBound.join(v.bound for v in self.variants)

    def substitute(self, subst: Substitution) -> Type:
        return SumType(tuple(v.substitute(subst) for v in self.variants))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        for variant in self.variants:
            variant.validate(registry, var_decls)

    def __str__(self) -> str:
        if self.is_unit_sum():
            return f"Sum(#{self.num_variants})"
        return "Sum(" + ", ".join(str(v) for v in self.variants) + ")"


@dataclass(frozen=True, slots=True)
class TupleType(Type):
    """A product of the types of a row."""

    row: TypeRow = field(default_factory=TypeRow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "row", _as_row(self.row))

    @property
    def bound(self) -> TypeBound:
        return self.row.bound

    def substitute(self, subst: Substitution) -> Type:
        return TupleType(self.row.substitute(subst))

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        self.row.validate(registry, var_decls)

    def __str__(self) -> str:
        return "Tuple(" + ", ".join(str(ty) for ty in self.row) + ")"


@dataclass(frozen=True, slots=True)
class FunctionType(Type):
    """A monomorphic signature; also the type of function values.

    Attributes:
        input: Types consumed.
        output: Types produced.
        extension_reqs: Extensions required to run the function.

    """

    input: TypeRow = field(default_factory=TypeRow)
    output: TypeRow = field(default_factory=TypeRow)
    extension_reqs: ExtensionSet = field(default_factory=ExtensionSet)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input", _as_row(self.input))
        object.__setattr__(self, "output", _as_row(self.output))

    @classmethod
    def endo(cls, row: TypeRow | Iterable[Type], extension_reqs: ExtensionSet | None = None) -> FunctionType:
        """A signature with the same input and output row."""
        row = _as_row(row)
        return cls(row, row, extension_reqs or ExtensionSet())

    def with_extension_reqs(self, extension_reqs: ExtensionSet) -> FunctionType:
        return replace(self, extension_reqs=extension_reqs)

    @property
    def bound(self) -> TypeBound:
        return TypeBound.COPYABLE

    def substitute(self, subst: Substitution) -> FunctionType:
        return FunctionType(
            self.input.substitute(subst),
            self.output.substitute(subst),
            self.extension_reqs.substitute(subst),
        )

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:
        self.input.validate(registry, var_decls)
        self.output.validate(registry, var_decls)
        self.extension_reqs.validate(var_decls)

    def __str__(self) -> str:
        reqs = "" if self.extension_reqs.is_empty() else f" {self.extension_reqs}"
        return f"{self.input} -> {self.output}{reqs}"


@dataclass(frozen=True, slots=True)
class Variable(Type):
    """Use of a type variable declared by an enclosing `PolyFuncType`."""

    idx: int
    cached_bound: TypeBound = TypeBound.LINEAR

    @property
    def bound(self) -> TypeBound:
        return self.cached_bound

    def substitute(self, subst: Substitution) -> Type:
        return subst.apply_typevar(self.idx, self.cached_bound)

    def validate(self, registry: ExtensionRegistry, var_decls: Sequence[TypeParam] = ()) -> None:  # noqa: ARG002
        check_typevar_decl(var_decls, self.idx, TypeTypeParam(self.cached_bound))

    def __str__(self) -> str:
        return f"#{self.idx}"


# =============================================================================
# Polymorphic signatures
# =============================================================================


@dataclass(frozen=True, slots=True)
class PolyFuncType:
    """A `FunctionType` body generalized over `params`.

    Variables in the body (types, args and extension sets) index into
    `params`. A polymorphic type is not itself a value type; `instantiate`
    produces the concrete signature for a call site.
    """

    params: tuple[TypeParam, ...] = ()
    body: FunctionType = field(default_factory=FunctionType)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))

    @classmethod
    def mono(cls, body: FunctionType) -> PolyFuncType:
        """A polymorphic type with no parameters."""
        return cls((), body)

    def is_polymorphic(self) -> bool:
        return bool(self.params)

    def instantiate(self, args: Sequence[TypeArg]) -> FunctionType:
        """Substitute `args` for the parameters.

        The substitution reaches every part of the body, including its
        extension requirements.

        Raises:
            SignatureError: If `args` do not match `params`.

        """
        check_type_args(args, self.params)
        if not self.params:
            return self.body
        return self.body.substitute(Substitution(tuple(args)))

    def validate(self, registry: ExtensionRegistry) -> None:
        """Validate the body with this type's parameters in scope."""
        self.body.validate(registry, self.params)

    def __str__(self) -> str:
        if not self.params:
            return str(self.body)
        return "forall " + ", ".join(str(p) for p in self.params) + f". {self.body}"
