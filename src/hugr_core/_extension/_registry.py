"""Extensions, their type and operation definitions, and registries of them.

A registry is always passed explicitly to the code that needs one (signature
computation, validation, decoding); there is no process-wide registry.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from hugr_core._errors import ExtensionBuildError, ExtensionNotFound, OperationNotFound, SignatureError
from hugr_core._ops import Const, ExtensionOp, typecheck_value
from hugr_core._types import (
    ExtensionSet,
    FunctionType,
    Opaque,
    PolyFuncType,
    TypeArg,
    TypeBound,
    TypeParam,
    check_type_args,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from hugr_core._ops import Value
    from hugr_core._types import Type

logger = logging.getLogger(__name__)

# Dot-separated identifiers, e.g. "prelude" or "quantum.gates"
_EXTENSION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def is_valid_extension_name(name: str) -> bool:
    """Whether `name` is a dot-separated list of identifiers."""
    return _EXTENSION_NAME.match(name) is not None


# =============================================================================
# Type definitions
# =============================================================================


@dataclass(frozen=True, slots=True)
class FromParams:
    """Bound of a type definition computed from some of its type arguments.

    The bound is the join of the bounds of the type arguments at `indices`.
    """

    indices: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class TypeDef:
    """A (possibly parameterized) opaque type provided by an extension."""

    extension: str
    name: str
    params: tuple[TypeParam, ...] = ()
    description: str = ""
    bound: TypeBound | FromParams = TypeBound.COPYABLE

    @property
    def bound_from_params(self) -> tuple[int, ...] | None:
        """Indices of the arguments the bound is computed from, if any."""
        return self.bound.indices if isinstance(self.bound, FromParams) else None

    def bound_for(self, args: Sequence[TypeArg]) -> TypeBound:
        """The bound of the instance of this definition at `args`."""
        if isinstance(self.bound, TypeBound):
            return self.bound
        return TypeBound.join(args[i].as_type().bound for i in self.bound.indices if i < len(args))

    def instantiate(self, args: Sequence[TypeArg] = ()) -> Opaque:
        """Build the type at `args`.

        Raises:
            SignatureError: If `args` do not fit `params`.

        """
        check_type_args(args, self.params)
        return Opaque(self.extension, self.name, tuple(args), self.bound_for(args), self.bound_from_params)


# =============================================================================
# Operation definitions
# =============================================================================


class CustomSignatureFunc(Protocol):
    """A rule computing an operation's signature from static arguments.

    `compute_signature` receives arguments already checked against
    `static_params`; it may return a polymorphic type, whose own parameters
    are filled by any remaining arguments.
    """

    @property
    def static_params(self) -> tuple[TypeParam, ...]: ...

    def compute_signature(self, args: Sequence[TypeArg]) -> PolyFuncType: ...


type SignatureFunc = PolyFuncType | CustomSignatureFunc


@dataclass(frozen=True, slots=True)
class OpDef:
    """An operation provided by an extension.

    Attributes:
        extension: Name of the defining extension.
        name: Name of the operation, unique within the extension.
        signature_func: Fixed polymorphic signature or custom rule. None for
            definitions decoded from a descriptor whose rule lives in code.
        description: Human readable description.
        misc: Free-form JSON-compatible data.

    """

    extension: str
    name: str
    signature_func: SignatureFunc | None
    description: str = ""
    misc: dict[str, Any] = field(default_factory=dict)

    def params(self) -> tuple[TypeParam, ...]:
        """The parameters of the operation, as far as they are known up front."""
        match self.signature_func:
            case PolyFuncType(params=params):
                return params
            case None:
                return ()
            case custom:
                return tuple(custom.static_params)

    def compute_signature(self, args: Sequence[TypeArg]) -> FunctionType:
        """Signature of the operation at `args`.

        The defining extension is always added to the requirements.

        Raises:
            SignatureError: If the arguments are malformed or the definition
                has no signature rule.

        """
        match self.signature_func:
            case None:
                msg = f"Operation {self.extension}.{self.name} has no signature rule; register it from code"
                raise SignatureError(msg)
            case PolyFuncType() as poly:
                sig = poly.instantiate(args)
            case custom:
                static_params = tuple(custom.static_params)
                n = len(static_params)
                if len(args) < n:
                    msg = f"Expected at least {n} arguments for {self.extension}.{self.name}, got {len(args)}"
                    raise SignatureError(msg)
                check_type_args(args[:n], static_params)
                sig = custom.compute_signature(args[:n]).instantiate(args[n:])
        return sig.with_extension_reqs(sig.extension_reqs.insert(self.extension))

    def instantiate(self, args: Sequence[TypeArg] = ()) -> ExtensionOp:
        """Build an `ExtensionOp` for this definition at `args`."""
        return ExtensionOp(self.extension, self.name, tuple(args), self.compute_signature(args))

    def validate(self, registry: ExtensionRegistry) -> None:
        """Check a fixed signature against `registry`."""
        if isinstance(self.signature_func, PolyFuncType):
            self.signature_func.validate(registry)


@dataclass(frozen=True, slots=True)
class NamedValue:
    """A named constant provided by an extension."""

    extension: str
    name: str
    value: Value
    typ: Type

    def as_const(self) -> Const:
        return Const(self.value, self.typ)


# =============================================================================
# Extensions
# =============================================================================


class Extension:
    """A named, versioned bundle of type, operation and value definitions.

    Example:
        >>> ext = Extension("quantum.gates")
        >>> qb = ext.add_type("qubit", bound=TypeBound.LINEAR).instantiate()
        >>> h = ext.add_op("H", PolyFuncType.mono(FunctionType.endo([qb])))
        >>> h.instantiate().signature.extension_reqs
        ExtensionSet(extensions=frozenset({'quantum.gates'}), variables=frozenset())

    """

    def __init__(
        self,
        name: str,
        version: str = "0.1.0",
        extension_reqs: ExtensionSet | None = None,
        description: str = "",
    ) -> None:
        if not is_valid_extension_name(name):
            msg = f"Invalid extension name {name!r}: expected dot-separated identifiers"
            raise ExtensionBuildError(msg)
        self.name = name
        self.version = version
        self.extension_reqs = extension_reqs or ExtensionSet()
        self.description = description
        self.types: dict[str, TypeDef] = {}
        self.operations: dict[str, OpDef] = {}
        self.values: dict[str, NamedValue] = {}

    def __repr__(self) -> str:
        return f"Extension({self.name!r}, version={self.version!r})"

    def add_type(
        self,
        name: str,
        params: Sequence[TypeParam] = (),
        description: str = "",
        bound: TypeBound | FromParams = TypeBound.COPYABLE,
    ) -> TypeDef:
        """Define a new opaque type.

        Raises:
            ExtensionBuildError: If the name is taken or not an identifier.

        """
        self._check_new_name(name, self.types, "type")
        type_def = TypeDef(self.name, name, tuple(params), description, bound)
        self.types[name] = type_def
        return type_def

    def add_op(
        self,
        name: str,
        signature: SignatureFunc | None,
        description: str = "",
        misc: dict[str, Any] | None = None,
    ) -> OpDef:
        """Define a new operation.

        Raises:
            ExtensionBuildError: If the name is taken or not an identifier.

        """
        self._check_new_name(name, self.operations, "operation")
        op_def = OpDef(self.name, name, signature, description, dict(misc or {}))
        self.operations[name] = op_def
        return op_def

    def add_value(self, name: str, value: Value, typ: Type) -> NamedValue:
        """Define a named constant.

        Raises:
            ExtensionBuildError: If the name is taken.
            TypeMismatch: If `value` does not inhabit `typ`.

        """
        self._check_new_name(name, self.values, "value")
        typecheck_value(typ, value)
        named = NamedValue(self.name, name, value, typ)
        self.values[name] = named
        return named

    def get_type(self, name: str) -> TypeDef | None:
        return self.types.get(name)

    def get_op(self, name: str) -> OpDef | None:
        return self.operations.get(name)

    def get_value(self, name: str) -> NamedValue | None:
        return self.values.get(name)

    def instantiate_op(self, op_name: str, args: Sequence[TypeArg] = ()) -> ExtensionOp:
        """Instantiate one of this extension's operations.

        Raises:
            OperationNotFound: If no such operation is defined.
            SignatureError: If `args` are malformed.

        """
        op_def = self.get_op(op_name)
        if op_def is None:
            raise OperationNotFound(self.name, op_name)
        return op_def.instantiate(args)

    def validate(self, registry: ExtensionRegistry) -> None:
        """Check the extension's requirements and fixed signatures against `registry`."""
        for req in self.extension_reqs:
            if req not in registry:
                raise ExtensionNotFound(req)
        for op_def in self.operations.values():
            op_def.validate(registry)

    def _check_new_name(self, name: str, table: dict[str, Any], what: str) -> None:
        if not name.isidentifier():
            msg = f"Invalid {what} name {name!r} in extension {self.name}"
            raise ExtensionBuildError(msg)
        if name in table:
            msg = f"Extension {self.name} already has a {what} called {name}"
            raise ExtensionBuildError(msg)


# =============================================================================
# Registry
# =============================================================================


class ExtensionRegistry:
    """Extensions available to a piece of code, keyed by name."""

    def __init__(self, extensions: Iterable[Extension] = ()) -> None:
        self._extensions: dict[str, Extension] = {}
        for ext in extensions:
            self.register(ext)

    @classmethod
    def try_new(cls, extensions: Iterable[Extension]) -> ExtensionRegistry:
        """Build a registry and validate every extension in it.

        Raises:
            ExtensionBuildError: If two extensions share a name.
            ExtensionNotFound: If an extension needs one that is not included.
            SignatureError: If a fixed operation signature is ill-formed.

        """
        registry = cls(extensions)
        registry.validate()
        return registry

    def register(self, extension: Extension) -> None:
        """Add an extension.

        Raises:
            ExtensionBuildError: If an extension with the same name is registered.

        """
        if extension.name in self._extensions:
            msg = f"Extension {extension.name} is already registered"
            raise ExtensionBuildError(msg)
        self._extensions[extension.name] = extension
        logger.debug(
            "Registered extension %s %s (%d types, %d ops)",
            extension.name,
            extension.version,
            len(extension.types),
            len(extension.operations),
        )

    def union(self, other: ExtensionRegistry) -> ExtensionRegistry:
        """A new registry with the extensions of both registries."""
        return ExtensionRegistry([*self, *other])

    def get(self, name: str) -> Extension:
        """Look up an extension by name.

        Raises:
            ExtensionNotFound: If it is not registered.

        """
        try:
            return self._extensions[name]
        except KeyError:
            raise ExtensionNotFound(name) from None

    def get_op(self, extension: str, op_name: str) -> OpDef:
        """Look up an operation definition.

        Raises:
            ExtensionNotFound: If the extension is not registered.
            OperationNotFound: If the extension does not define the operation.

        """
        op_def = self.get(extension).get_op(op_name)
        if op_def is None:
            raise OperationNotFound(extension, op_name)
        return op_def

    def get_type(self, extension: str, name: str) -> TypeDef:
        """Look up a type definition.

        Raises:
            ExtensionNotFound: If the extension is not registered.
            SignatureError: If the extension does not define the type.

        """
        type_def = self.get(extension).get_type(name)
        if type_def is None:
            msg = f"Extension '{extension}' did not contain expected TypeDef '{name}'"
            raise SignatureError(msg)
        return type_def

    def instantiate_op(self, extension: str, op_name: str, args: Sequence[TypeArg] = ()) -> ExtensionOp:
        """Instantiate an operation of a registered extension."""
        return self.get_op(extension, op_name).instantiate(args)

    def validate(self) -> None:
        """Validate every extension against this registry."""
        for ext in self:
            ext.validate(self)

    @property
    def names(self) -> list[str]:
        return sorted(self._extensions)

    def __contains__(self, name: object) -> bool:
        return name in self._extensions

    def __iter__(self) -> Iterator[Extension]:
        return iter([self._extensions[name] for name in sorted(self._extensions)])

    def __len__(self) -> int:
        return len(self._extensions)

    def __repr__(self) -> str:
        return f"ExtensionRegistry({self.names})"
