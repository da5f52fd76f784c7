"""Pydantic models of the versioned external representation.

Every tagged union uses a literal discriminator field (`t` for types, `tya`
for type arguments, `tp` for type parameters, `v` for values and `op` for
operations). Optional fields default to None so documents may omit them.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from hugr_core._graph import EdgeKind
from hugr_core._types import TypeBound

SERIAL_VERSION = "v1"


class SerialModel(BaseModel):
    """Base class of all encoded models."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Type parameters
# =============================================================================


class TypeTypeParamModel(SerialModel):
    tp: Literal["Type"] = "Type"
    b: TypeBound = TypeBound.LINEAR


class BoundedNatParamModel(SerialModel):
    tp: Literal["BoundedNat"] = "BoundedNat"
    bound: int | None = None


class StringParamModel(SerialModel):
    tp: Literal["String"] = "String"


class ExtensionsParamModel(SerialModel):
    tp: Literal["Extensions"] = "Extensions"


class ListParamModel(SerialModel):
    tp: Literal["List"] = "List"
    param: SerialTypeParam


SerialTypeParam = Annotated[
    TypeTypeParamModel | BoundedNatParamModel | StringParamModel | ExtensionsParamModel | ListParamModel,
    Field(discriminator="tp"),
]


# =============================================================================
# Type arguments
# =============================================================================


class TypeTypeArgModel(SerialModel):
    tya: Literal["Type"] = "Type"
    ty: SerialType


class BoundedNatArgModel(SerialModel):
    tya: Literal["BoundedNat"] = "BoundedNat"
    n: int


class StringArgModel(SerialModel):
    tya: Literal["String"] = "String"
    arg: str


class ExtensionsArgModel(SerialModel):
    tya: Literal["Extensions"] = "Extensions"
    es: list[str] = Field(default_factory=list)


class SequenceArgModel(SerialModel):
    tya: Literal["Sequence"] = "Sequence"
    elems: list[SerialTypeArg] = Field(default_factory=list)


class VariableArgModel(SerialModel):
    tya: Literal["Variable"] = "Variable"
    idx: int
    cached_decl: SerialTypeParam


SerialTypeArg = Annotated[
    TypeTypeArgModel | BoundedNatArgModel | StringArgModel | ExtensionsArgModel | SequenceArgModel | VariableArgModel,
    Field(discriminator="tya"),
]


# =============================================================================
# Types
# =============================================================================


class OpaqueModel(SerialModel):
    t: Literal["Opaque"] = "Opaque"
    extension: str
    id: str
    args: list[SerialTypeArg] = Field(default_factory=list)
    bound: TypeBound = TypeBound.COPYABLE


class SumModel(SerialModel):
    t: Literal["Sum"] = "Sum"
    variants: list[list[SerialType]] = Field(default_factory=list)


class TupleModel(SerialModel):
    t: Literal["Tuple"] = "Tuple"
    row: list[SerialType] = Field(default_factory=list)


class FunctionModel(SerialModel):
    t: Literal["Function"] = "Function"
    input: list[SerialType] = Field(default_factory=list)
    output: list[SerialType] = Field(default_factory=list)
    extension_reqs: list[str] = Field(default_factory=list)


class VariableModel(SerialModel):
    t: Literal["V"] = "V"
    i: int
    b: TypeBound = TypeBound.LINEAR


SerialType = Annotated[
    OpaqueModel | SumModel | TupleModel | FunctionModel | VariableModel,
    Field(discriminator="t"),
]


class PolyFuncTypeModel(SerialModel):
    params: list[SerialTypeParam] = Field(default_factory=list)
    body: FunctionModel


# =============================================================================
# Values
# =============================================================================


class SumValueModel(SerialModel):
    v: Literal["Sum"] = "Sum"
    tag: int
    vs: list[SerialValue] = Field(default_factory=list)


class TupleValueModel(SerialModel):
    v: Literal["Tuple"] = "Tuple"
    vs: list[SerialValue] = Field(default_factory=list)


class ExtensionValueModel(SerialModel):
    v: Literal["Extension"] = "Extension"
    typ: SerialType
    value: Any = None


SerialValue = Annotated[
    SumValueModel | TupleValueModel | ExtensionValueModel,
    Field(discriminator="v"),
]


# =============================================================================
# Operations
# =============================================================================


class ModuleModel(SerialModel):
    op: Literal["Module"] = "Module"


class FuncDefnModel(SerialModel):
    op: Literal["FuncDefn"] = "FuncDefn"
    name: str
    signature: PolyFuncTypeModel


class FuncDeclModel(SerialModel):
    op: Literal["FuncDecl"] = "FuncDecl"
    name: str
    signature: PolyFuncTypeModel


class ConstModel(SerialModel):
    op: Literal["Const"] = "Const"
    value: SerialValue
    typ: SerialType


class InputModel(SerialModel):
    op: Literal["Input"] = "Input"
    types: list[SerialType] = Field(default_factory=list)


class OutputModel(SerialModel):
    op: Literal["Output"] = "Output"
    types: list[SerialType] = Field(default_factory=list)


class DFGModel(SerialModel):
    op: Literal["DFG"] = "DFG"
    inputs: list[SerialType] = Field(default_factory=list)
    outputs: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class ConditionalModel(SerialModel):
    op: Literal["Conditional"] = "Conditional"
    sum_rows: list[list[SerialType]] = Field(default_factory=list)
    other_inputs: list[SerialType] = Field(default_factory=list)
    outputs: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class CaseModel(SerialModel):
    op: Literal["Case"] = "Case"
    inputs: list[SerialType] = Field(default_factory=list)
    outputs: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class TailLoopModel(SerialModel):
    op: Literal["TailLoop"] = "TailLoop"
    just_inputs: list[SerialType] = Field(default_factory=list)
    just_outputs: list[SerialType] = Field(default_factory=list)
    rest: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class CFGModel(SerialModel):
    op: Literal["CFG"] = "CFG"
    inputs: list[SerialType] = Field(default_factory=list)
    outputs: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class DataflowBlockModel(SerialModel):
    op: Literal["DataflowBlock"] = "DataflowBlock"
    inputs: list[SerialType] = Field(default_factory=list)
    sum_rows: list[list[SerialType]] = Field(default_factory=list)
    other_outputs: list[SerialType] = Field(default_factory=list)
    delta: list[str] | None = None


class ExitBlockModel(SerialModel):
    op: Literal["ExitBlock"] = "ExitBlock"
    cfg_outputs: list[SerialType] = Field(default_factory=list)


class CallModel(SerialModel):
    op: Literal["Call"] = "Call"
    func_sig: PolyFuncTypeModel
    type_args: list[SerialTypeArg] = Field(default_factory=list)
    instantiation: FunctionModel


class CallIndirectModel(SerialModel):
    op: Literal["CallIndirect"] = "CallIndirect"
    signature: FunctionModel


class LoadConstantModel(SerialModel):
    op: Literal["LoadConstant"] = "LoadConstant"
    datatype: SerialType


class LoadFunctionModel(SerialModel):
    op: Literal["LoadFunction"] = "LoadFunction"
    func_sig: PolyFuncTypeModel
    type_args: list[SerialTypeArg] = Field(default_factory=list)
    signature: FunctionModel


class TagModel(SerialModel):
    op: Literal["Tag"] = "Tag"
    tag: int
    variants: list[list[SerialType]] = Field(default_factory=list)


class LiftModel(SerialModel):
    op: Literal["Lift"] = "Lift"
    type_row: list[SerialType] = Field(default_factory=list)
    new_extension: str


class MakeTupleModel(SerialModel):
    op: Literal["MakeTuple"] = "MakeTuple"
    tys: list[SerialType] = Field(default_factory=list)


class UnpackTupleModel(SerialModel):
    op: Literal["UnpackTuple"] = "UnpackTuple"
    tys: list[SerialType] = Field(default_factory=list)


class NoopModel(SerialModel):
    op: Literal["Noop"] = "Noop"
    ty: SerialType


class ExtensionOpModel(SerialModel):
    """A custom operation: only its name and static arguments are stored."""

    op: Literal["ExtensionOp"] = "ExtensionOp"
    extension: str
    name: str
    args: list[SerialTypeArg] = Field(default_factory=list)


SerialOp = Annotated[
    ModuleModel
    | FuncDefnModel
    | FuncDeclModel
    | ConstModel
    | InputModel
    | OutputModel
    | DFGModel
    | ConditionalModel
    | CaseModel
    | TailLoopModel
    | CFGModel
    | DataflowBlockModel
    | ExitBlockModel
    | CallModel
    | CallIndirectModel
    | LoadConstantModel
    | LoadFunctionModel
    | TagModel
    | LiftModel
    | MakeTupleModel
    | UnpackTupleModel
    | NoopModel
    | ExtensionOpModel,
    Field(discriminator="op"),
]


# =============================================================================
# Graph
# =============================================================================


class SerialNode(SerialModel):
    """A node: its parent's index in the node list (None for tops) and its operation."""

    parent: int | None = None
    op: SerialOp
    metadata: dict[str, Any] | None = None


class SerialEdge(SerialModel):
    """An edge between `(node index, port offset)` pairs."""

    src: tuple[int, int]
    tgt: tuple[int, int]
    kind: EdgeKind = EdgeKind.VALUE


class SerialHugr(SerialModel):
    """A whole Hugr. Node 0 is the root; nodes follow in hierarchy pre-order."""

    version: Literal["v1"] = SERIAL_VERSION
    nodes: list[SerialNode] = Field(default_factory=list)
    edges: list[SerialEdge] = Field(default_factory=list)


# =============================================================================
# Extensions
# =============================================================================


class TypeDefModel(SerialModel):
    name: str
    params: list[SerialTypeParam] = Field(default_factory=list)
    description: str = ""
    bound: TypeBound | None = None
    bound_from_params: list[int] | None = None


class OpDefModel(SerialModel):
    """An operation definition; custom signature rules are not encoded."""

    name: str
    description: str = ""
    misc: dict[str, Any] = Field(default_factory=dict)
    signature: PolyFuncTypeModel | None = None


class NamedValueModel(SerialModel):
    name: str
    value: SerialValue
    typ: SerialType


class SerialExtension(SerialModel):
    name: str
    version: str = "0.1.0"
    description: str = ""
    extension_reqs: list[str] = Field(default_factory=list)
    types: list[TypeDefModel] = Field(default_factory=list)
    operations: list[OpDefModel] = Field(default_factory=list)
    values: list[NamedValueModel] = Field(default_factory=list)


for _model in (
    ListParamModel,
    TypeTypeArgModel,
    SequenceArgModel,
    VariableArgModel,
    OpaqueModel,
    SumModel,
    TupleModel,
    FunctionModel,
    PolyFuncTypeModel,
    SumValueModel,
    TupleValueModel,
    ExtensionValueModel,
    FuncDefnModel,
    FuncDeclModel,
    ConstModel,
    InputModel,
    OutputModel,
    DFGModel,
    ConditionalModel,
    CaseModel,
    TailLoopModel,
    CFGModel,
    DataflowBlockModel,
    ExitBlockModel,
    CallModel,
    CallIndirectModel,
    LoadConstantModel,
    LoadFunctionModel,
    TagModel,
    LiftModel,
    MakeTupleModel,
    UnpackTupleModel,
    NoopModel,
    ExtensionOpModel,
    SerialNode,
    SerialHugr,
    TypeDefModel,
    OpDefModel,
    NamedValueModel,
    SerialExtension,
):
    _model.model_rebuild()
