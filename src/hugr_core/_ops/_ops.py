"""Operation descriptors.

The set of structural operations is closed; domain operations plug in through
the single `ExtensionOp` case, which names an operation of a registered
extension. Every operation derives its port layout from its parameters:

    [value ports] [static port, if any] [other ports]

"Other" ports carry ORDER edges on dataflow operations and CONTROL_FLOW edges
on basic blocks. Each node has one port numbering space per direction.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, ClassVar

from hugr_core._errors import SignatureError
from hugr_core._graph import Direction, EdgeKind
from hugr_core._types import (
    ExtensionSet,
    FunctionType,
    PolyFuncType,
    SumType,
    TupleType,
    Type,
    TypeArg,
    TypeRow,
)

from ._tag import OpTag

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._values import Value


def _row(types: TypeRow | Iterable[Type]) -> TypeRow:
    return types if isinstance(types, TypeRow) else TypeRow(tuple(types))


def _set_rows(op: object, *names: str) -> None:
    for name in names:
        object.__setattr__(op, name, _row(getattr(op, name)))


@dataclass(frozen=True, slots=True)
class PortKind:
    """What a port carries: its edge kind and, for value and static ports, a type."""

    edge_kind: EdgeKind
    type: Type | PolyFuncType | None = None


@dataclass(frozen=True, slots=True)
class OpValidity:
    """Child-shape rules of a container operation.

    Attributes:
        allowed_children: Tag every child must fall under.
        requires_children: Whether an empty container is invalid.
        allowed_first_child: Tag of the first child.
        allowed_second_child: Tag of the second child.
        requires_dag: Whether the children must be acyclic along value and
            order edges.

    """

    allowed_children: OpTag = OpTag.NONE
    requires_children: bool = False
    allowed_first_child: OpTag = OpTag.ANY
    allowed_second_child: OpTag = OpTag.ANY
    requires_dag: bool = False


_LEAF = OpValidity()
_DATAFLOW_REGION = OpValidity(
    allowed_children=OpTag.DATAFLOW_CHILD,
    requires_children=True,
    allowed_first_child=OpTag.INPUT,
    allowed_second_child=OpTag.OUTPUT,
    requires_dag=True,
)


# =============================================================================
# Base classes
# =============================================================================


class Op:
    """Base class of operation descriptors."""

    TAG: ClassVar[OpTag] = OpTag.ANY
    # Whether inference may fill in an unannotated `delta`
    ANNOTATABLE: ClassVar[bool] = False

    def display_name(self) -> str:
        return type(self).__name__

    def dataflow_signature(self) -> FunctionType | None:
        """Signature of the value ports, for dataflow operations."""
        return None

    def inner_signature(self) -> FunctionType | None:
        """Signature of the Input/Output children, for dataflow parents."""
        return None

    def value_types(self, direction: Direction) -> TypeRow:
        sig = self.dataflow_signature()
        if sig is None:
            return TypeRow()
        return sig.input if direction is Direction.INCOMING else sig.output

    def static_type(self, direction: Direction) -> Type | PolyFuncType | None:  # noqa: ARG002
        """Type of the static port in `direction`, if the operation has one."""
        return None

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:  # noqa: ARG002
        """Edge kind and number of the non-value, non-static ports."""
        return (None, 0)

    def port_count(self, direction: Direction) -> int:
        count = len(self.value_types(direction))
        if self.static_type(direction) is not None:
            count += 1
        return count + self.other_ports(direction)[1]

    def static_port(self, direction: Direction) -> int | None:
        """Offset of the static port in `direction`, if any."""
        if self.static_type(direction) is None:
            return None
        return len(self.value_types(direction))

    def other_port(self, direction: Direction) -> int | None:
        """Offset of the first "other" port in `direction`, if any."""
        kind, count = self.other_ports(direction)
        if kind is None or count == 0:
            return None
        return self.port_count(direction) - count

    def port_kind(self, direction: Direction, offset: int) -> PortKind | None:
        """Kind of the port at `offset`, or None if there is no such port."""
        if offset < 0:
            return None
        values = self.value_types(direction)
        if offset < len(values):
            return PortKind(EdgeKind.VALUE, values[offset])
        offset -= len(values)
        static = self.static_type(direction)
        if static is not None:
            if offset == 0:
                return PortKind(EdgeKind.STATIC, static)
            offset -= 1
        kind, count = self.other_ports(direction)
        if kind is not None and offset < count:
            return PortKind(kind)
        return None

    def extension_delta(self) -> ExtensionSet | None:
        """Extensions this operation requires; None for an unannotated region."""
        return ExtensionSet()

    def with_extension_delta(self, delta: ExtensionSet) -> Op:
        """Copy of this operation declaring `delta`."""
        msg = f"{self.display_name()} does not declare extension requirements"
        raise SignatureError(msg)

    def validity(self) -> OpValidity:
        return _LEAF

    def __str__(self) -> str:
        return self.display_name()


class DataflowOp(Op):
    """Operation living in a dataflow region, with ORDER ports on both sides."""

    TAG: ClassVar[OpTag] = OpTag.DATAFLOW_OP

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:  # noqa: ARG002
        return (EdgeKind.ORDER, 1)


class _RegionDelta:
    """Mixin for containers whose declared requirement set is a `delta` field."""

    ANNOTATABLE: ClassVar[bool] = True

    def extension_delta(self) -> ExtensionSet | None:
        return self.delta  # type: ignore[attr-defined]

    def with_extension_delta(self, delta: ExtensionSet) -> Op:
        return replace(self, delta=delta)  # type: ignore[type-var]

    def _delta_or_empty(self) -> ExtensionSet:
        return self.delta or ExtensionSet()  # type: ignore[attr-defined]


# =============================================================================
# Module level
# =============================================================================


@dataclass(frozen=True, slots=True)
class Module(Op):
    """Root of a module: a container of definitions."""

    TAG: ClassVar[OpTag] = OpTag.MODULE_ROOT

    def extension_delta(self) -> ExtensionSet | None:
        return None

    def validity(self) -> OpValidity:
        return OpValidity(allowed_children=OpTag.MODULE_OP)


@dataclass(frozen=True, slots=True)
class FuncDefn(Op):
    """A function definition; its children form the body."""

    TAG: ClassVar[OpTag] = OpTag.FUNC_DEFN

    name: str
    signature: PolyFuncType

    def inner_signature(self) -> FunctionType:
        return self.signature.body

    def static_type(self, direction: Direction) -> PolyFuncType | None:
        return self.signature if direction is Direction.OUTGOING else None

    def extension_delta(self) -> ExtensionSet:
        return self.signature.body.extension_reqs

    def validity(self) -> OpValidity:
        return _DATAFLOW_REGION

    def display_name(self) -> str:
        return f"FuncDefn({self.name})"


@dataclass(frozen=True, slots=True)
class FuncDecl(Op):
    """An external function declaration."""

    TAG: ClassVar[OpTag] = OpTag.FUNCTION

    name: str
    signature: PolyFuncType

    def static_type(self, direction: Direction) -> PolyFuncType | None:
        return self.signature if direction is Direction.OUTGOING else None

    def extension_delta(self) -> ExtensionSet:
        return ExtensionSet()

    def display_name(self) -> str:
        return f"FuncDecl({self.name})"


@dataclass(frozen=True, slots=True)
class Const(Op):
    """A constant value, used through static edges."""

    TAG: ClassVar[OpTag] = OpTag.CONST

    value: Value
    typ: Type

    def static_type(self, direction: Direction) -> Type | None:
        return self.typ if direction is Direction.OUTGOING else None

    def display_name(self) -> str:
        return f"Const({self.value})"


# =============================================================================
# Dataflow region boundaries
# =============================================================================


@dataclass(frozen=True, slots=True)
class Input(DataflowOp):
    """First child of a dataflow region; produces the region's inputs."""

    TAG: ClassVar[OpTag] = OpTag.INPUT

    types: TypeRow = field(default_factory=TypeRow)

    def __post_init__(self) -> None:
        _set_rows(self, "types")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(TypeRow(), self.types)

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:
        return (EdgeKind.ORDER, 1) if direction is Direction.OUTGOING else (None, 0)


@dataclass(frozen=True, slots=True)
class Output(DataflowOp):
    """Second child of a dataflow region; consumes the region's outputs."""

    TAG: ClassVar[OpTag] = OpTag.OUTPUT

    types: TypeRow = field(default_factory=TypeRow)

    def __post_init__(self) -> None:
        _set_rows(self, "types")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(self.types, TypeRow())

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:
        return (EdgeKind.ORDER, 1) if direction is Direction.INCOMING else (None, 0)


# =============================================================================
# Dataflow containers
# =============================================================================


@dataclass(frozen=True, slots=True)
class DFG(_RegionDelta, DataflowOp):
    """A nested dataflow region."""

    TAG: ClassVar[OpTag] = OpTag.DFG

    inputs: TypeRow = field(default_factory=TypeRow)
    outputs: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        _set_rows(self, "inputs", "outputs")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(self.inputs, self.outputs, self._delta_or_empty())

    def inner_signature(self) -> FunctionType:
        return self.dataflow_signature()

    def validity(self) -> OpValidity:
        return _DATAFLOW_REGION


@dataclass(frozen=True, slots=True)
class Conditional(_RegionDelta, DataflowOp):
    """Branch on a sum value: one `Case` child per variant.

    The first input is the sum whose variant selects the case; the payload of
    that variant followed by `other_inputs` feeds the chosen case.
    """

    TAG: ClassVar[OpTag] = OpTag.CONDITIONAL

    sum_rows: tuple[TypeRow, ...] = ()
    other_inputs: TypeRow = field(default_factory=TypeRow)
    outputs: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sum_rows", tuple(_row(r) for r in self.sum_rows))
        _set_rows(self, "other_inputs", "outputs")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(
            TypeRow((SumType(self.sum_rows),)) + self.other_inputs,
            self.outputs,
            self._delta_or_empty(),
        )

    def case_signature(self, index: int) -> FunctionType:
        """Inner signature the case for variant `index` must have."""
        return FunctionType(self.sum_rows[index] + self.other_inputs, self.outputs)

    def validity(self) -> OpValidity:
        return OpValidity(allowed_children=OpTag.CASE, requires_children=True)


@dataclass(frozen=True, slots=True)
class Case(_RegionDelta, Op):
    """One branch of a `Conditional`."""

    TAG: ClassVar[OpTag] = OpTag.CASE

    inputs: TypeRow = field(default_factory=TypeRow)
    outputs: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        _set_rows(self, "inputs", "outputs")

    def inner_signature(self) -> FunctionType:
        return FunctionType(self.inputs, self.outputs, self._delta_or_empty())

    def validity(self) -> OpValidity:
        return _DATAFLOW_REGION


@dataclass(frozen=True, slots=True)
class TailLoop(_RegionDelta, DataflowOp):
    """A loop whose body decides, through a sum, whether to iterate again.

    The body's first output is `Sum(just_inputs, just_outputs)`: variant 0
    continues with new `just_inputs`, variant 1 exits with `just_outputs`.
    The `rest` values are threaded through every iteration.
    """

    TAG: ClassVar[OpTag] = OpTag.TAIL_LOOP

    just_inputs: TypeRow = field(default_factory=TypeRow)
    just_outputs: TypeRow = field(default_factory=TypeRow)
    rest: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        _set_rows(self, "just_inputs", "just_outputs", "rest")

    def control_type(self) -> SumType:
        return SumType((self.just_inputs, self.just_outputs))

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(
            self.just_inputs + self.rest,
            self.just_outputs + self.rest,
            self._delta_or_empty(),
        )

    def inner_signature(self) -> FunctionType:
        return FunctionType(
            self.just_inputs + self.rest,
            TypeRow((self.control_type(),)) + self.rest,
            self._delta_or_empty(),
        )

    def validity(self) -> OpValidity:
        return _DATAFLOW_REGION


# =============================================================================
# Control flow
# =============================================================================


@dataclass(frozen=True, slots=True)
class CFG(_RegionDelta, DataflowOp):
    """A control-flow region: basic blocks joined by control-flow edges.

    The first child is the entry block; exit blocks have no successors.
    """

    TAG: ClassVar[OpTag] = OpTag.CFG

    inputs: TypeRow = field(default_factory=TypeRow)
    outputs: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        _set_rows(self, "inputs", "outputs")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(self.inputs, self.outputs, self._delta_or_empty())

    def validity(self) -> OpValidity:
        return OpValidity(
            allowed_children=OpTag.CONTROL_FLOW_CHILD,
            requires_children=True,
            allowed_first_child=OpTag.DATAFLOW_BLOCK,
        )


@dataclass(frozen=True, slots=True)
class DataflowBlock(_RegionDelta, Op):
    """A basic block whose body computes a branching sum.

    Outgoing control-flow port `i` leads to the successor taken when the sum
    has variant `i`; that successor receives `sum_rows[i] + other_outputs`.
    """

    TAG: ClassVar[OpTag] = OpTag.DATAFLOW_BLOCK

    inputs: TypeRow = field(default_factory=TypeRow)
    sum_rows: tuple[TypeRow, ...] = ()
    other_outputs: TypeRow = field(default_factory=TypeRow)
    delta: ExtensionSet | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sum_rows", tuple(_row(r) for r in self.sum_rows))
        _set_rows(self, "inputs", "other_outputs")

    @property
    def num_successors(self) -> int:
        return len(self.sum_rows)

    def successor_input(self, index: int) -> TypeRow:
        """Values passed to the successor at discriminant `index`."""
        return self.sum_rows[index] + self.other_outputs

    def inner_signature(self) -> FunctionType:
        return FunctionType(
            self.inputs,
            TypeRow((SumType(self.sum_rows),)) + self.other_outputs,
            self._delta_or_empty(),
        )

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:
        if direction is Direction.INCOMING:
            return (EdgeKind.CONTROL_FLOW, 1)
        return (EdgeKind.CONTROL_FLOW, self.num_successors)

    def validity(self) -> OpValidity:
        return _DATAFLOW_REGION


@dataclass(frozen=True, slots=True)
class ExitBlock(Op):
    """The exit of a CFG; receives the CFG's outputs and has no successors."""

    TAG: ClassVar[OpTag] = OpTag.EXIT_BLOCK

    cfg_outputs: TypeRow = field(default_factory=TypeRow)

    def __post_init__(self) -> None:
        _set_rows(self, "cfg_outputs")

    def other_ports(self, direction: Direction) -> tuple[EdgeKind | None, int]:
        if direction is Direction.INCOMING:
            return (EdgeKind.CONTROL_FLOW, 1)
        return (None, 0)


# =============================================================================
# Dataflow leaves
# =============================================================================


@dataclass(frozen=True, slots=True)
class Call(DataflowOp):
    """Call a function given through a static edge, at a given instantiation."""

    TAG: ClassVar[OpTag] = OpTag.FN_CALL

    func_sig: PolyFuncType
    type_args: tuple[TypeArg, ...]
    instantiation: FunctionType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_args", tuple(self.type_args))

    @classmethod
    def try_new(
        cls,
        func_sig: PolyFuncType,
        type_args: Sequence[TypeArg] = (),
    ) -> Call:
        """Instantiate `func_sig` at `type_args`.

        Raises:
            SignatureError: If the arguments do not fit the parameters.

        """
        return cls(func_sig, tuple(type_args), func_sig.instantiate(type_args))

    def dataflow_signature(self) -> FunctionType:
        return self.instantiation

    def static_type(self, direction: Direction) -> PolyFuncType | None:
        return self.func_sig if direction is Direction.INCOMING else None

    def extension_delta(self) -> ExtensionSet:
        return self.instantiation.extension_reqs


@dataclass(frozen=True, slots=True)
class CallIndirect(DataflowOp):
    """Call a function value received on the first input."""

    signature: FunctionType

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(
            TypeRow((self.signature,)) + self.signature.input,
            self.signature.output,
            self.signature.extension_reqs,
        )

    def extension_delta(self) -> ExtensionSet:
        return self.signature.extension_reqs


@dataclass(frozen=True, slots=True)
class LoadConstant(DataflowOp):
    """Turn a static constant into a dataflow value."""

    TAG: ClassVar[OpTag] = OpTag.LOAD_CONST

    datatype: Type

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(TypeRow(), TypeRow((self.datatype,)))

    def static_type(self, direction: Direction) -> Type | None:
        return self.datatype if direction is Direction.INCOMING else None


@dataclass(frozen=True, slots=True)
class LoadFunction(DataflowOp):
    """Turn a static function, instantiated at `type_args`, into a function value."""

    TAG: ClassVar[OpTag] = OpTag.LOAD_FUNC

    func_sig: PolyFuncType
    type_args: tuple[TypeArg, ...]
    signature: FunctionType

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_args", tuple(self.type_args))

    @classmethod
    def try_new(
        cls,
        func_sig: PolyFuncType,
        type_args: Sequence[TypeArg] = (),
    ) -> LoadFunction:
        return cls(func_sig, tuple(type_args), func_sig.instantiate(type_args))

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(TypeRow(), TypeRow((self.signature,)))

    def static_type(self, direction: Direction) -> PolyFuncType | None:
        return self.func_sig if direction is Direction.INCOMING else None


@dataclass(frozen=True, slots=True)
class Tag(DataflowOp):
    """Build variant `tag` of a sum from that variant's values."""

    TAG: ClassVar[OpTag] = OpTag.LEAF

    tag: int
    variants: tuple[TypeRow, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", tuple(_row(r) for r in self.variants))
        if self.tag < 0 or self.tag >= len(self.variants):
            msg = f"Tag {self.tag} out of range for {len(self.variants)} variants"
            raise SignatureError(msg)

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(self.variants[self.tag], TypeRow((SumType(self.variants),)))


@dataclass(frozen=True, slots=True)
class Lift(DataflowOp):
    """Pass values through unchanged while adding an extension requirement."""

    TAG: ClassVar[OpTag] = OpTag.LEAF

    type_row: TypeRow
    new_extension: str

    def __post_init__(self) -> None:
        _set_rows(self, "type_row")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType.endo(self.type_row, ExtensionSet.of(self.new_extension))

    def extension_delta(self) -> ExtensionSet:
        return ExtensionSet.of(self.new_extension)


@dataclass(frozen=True, slots=True)
class MakeTuple(DataflowOp):
    """Pack values into a tuple."""

    TAG: ClassVar[OpTag] = OpTag.LEAF

    tys: TypeRow

    def __post_init__(self) -> None:
        _set_rows(self, "tys")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(self.tys, TypeRow((TupleType(self.tys),)))


@dataclass(frozen=True, slots=True)
class UnpackTuple(DataflowOp):
    """Unpack a tuple into its elements."""

    TAG: ClassVar[OpTag] = OpTag.LEAF

    tys: TypeRow

    def __post_init__(self) -> None:
        _set_rows(self, "tys")

    def dataflow_signature(self) -> FunctionType:
        return FunctionType(TypeRow((TupleType(self.tys),)), self.tys)


@dataclass(frozen=True, slots=True)
class Noop(DataflowOp):
    """Identity on a single value."""

    TAG: ClassVar[OpTag] = OpTag.LEAF

    ty: Type

    def dataflow_signature(self) -> FunctionType:
        return FunctionType.endo(TypeRow((self.ty,)))


@dataclass(frozen=True, slots=True)
class ExtensionOp(DataflowOp):
    """An operation defined by an extension.

    Only `extension`, `op_name` and `args` identify the operation; the
    signature is computed by the extension's rule when the op is instantiated
    (see `OpDef.instantiate`) and recomputed by the validator.
    """

    TAG: ClassVar[OpTag] = OpTag.LEAF

    extension: str
    op_name: str
    args: tuple[TypeArg, ...]
    signature: FunctionType

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))

    def dataflow_signature(self) -> FunctionType:
        return self.signature

    def extension_delta(self) -> ExtensionSet:
        return self.signature.extension_reqs

    def display_name(self) -> str:
        return f"{self.extension}.{self.op_name}"
