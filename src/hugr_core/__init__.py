"""Hierarchical dataflow/control-flow program graphs."""

__all__ = [
    "BOOL_T",
    "CFG",
    "DFG",
    "ERROR_T",
    "LOGIC_EXTENSION",
    "LOGIC_REGISTRY",
    "PRELUDE",
    "PRELUDE_REGISTRY",
    "QB_T",
    "SERIAL_VERSION",
    "USIZE_T",
    "BoundedNatArg",
    "BoundedNatParam",
    "Call",
    "CallIndirect",
    "Case",
    "Conditional",
    "ConfigError",
    "Const",
    "DataflowBlock",
    "DeserializationError",
    "Direction",
    "Edge",
    "EdgeKind",
    "ExitBlock",
    "Extension",
    "ExtensionBuildError",
    "ExtensionInferenceError",
    "ExtensionNotFound",
    "ExtensionOp",
    "ExtensionRegistry",
    "ExtensionSet",
    "ExtensionSolution",
    "ExtensionValue",
    "ExtensionsArg",
    "ExtensionsParam",
    "FromParams",
    "FuncDecl",
    "FuncDefn",
    "FunctionType",
    "Hugr",
    "HugrConfig",
    "HugrError",
    "HugrValidator",
    "Input",
    "InvalidSubgraph",
    "Lift",
    "LinearityViolation",
    "ListParam",
    "LoadConstant",
    "LoadFunction",
    "MakeTuple",
    "Module",
    "NamedValue",
    "Node",
    "Noop",
    "Op",
    "OpDef",
    "OpTag",
    "Opaque",
    "OperationNotFound",
    "Output",
    "PolyFuncType",
    "Port",
    "SequenceArg",
    "SerialHugr",
    "SiblingSubgraph",
    "SignatureError",
    "StringArg",
    "StringParam",
    "StructuralError",
    "Substitution",
    "SumType",
    "SumValue",
    "Tag",
    "TailLoop",
    "TupleType",
    "TupleValue",
    "Type",
    "TypeArg",
    "TypeBound",
    "TypeDef",
    "TypeMismatch",
    "TypeParam",
    "TypeRow",
    "TypeTypeArg",
    "TypeTypeParam",
    "UnpackTuple",
    "UnsupportedVersion",
    "Value",
    "Variable",
    "VariableArg",
    "and_op",
    "const_usize",
    "extension_from_serial",
    "extension_to_serial",
    "finalize",
    "from_dict",
    "from_json",
    "from_serial",
    "get_config",
    "hugr_json_schema",
    "infer_extensions",
    "load_config",
    "load_hugr",
    "not_op",
    "or_op",
    "render_hierarchy",
    "render_violations",
    "save_hugr",
    "to_dict",
    "to_json",
    "to_serial",
    "typecheck_value",
    "validate",
    "validate_or_raise",
]

from ._config import ConfigError, HugrConfig, get_config, load_config
from ._errors import (
    DeserializationError,
    ExtensionBuildError,
    ExtensionInferenceError,
    ExtensionNotFound,
    HugrError,
    InvalidSubgraph,
    LinearityViolation,
    OperationNotFound,
    SignatureError,
    StructuralError,
    TypeMismatch,
    UnsupportedVersion,
)
from ._extension import (
    Extension,
    ExtensionRegistry,
    ExtensionSolution,
    FromParams,
    NamedValue,
    OpDef,
    TypeDef,
    infer_extensions,
)
from ._extension.logic import LOGIC_EXTENSION, LOGIC_REGISTRY, and_op, not_op, or_op
from ._extension.prelude import BOOL_T, ERROR_T, PRELUDE, PRELUDE_REGISTRY, QB_T, USIZE_T, const_usize
from ._graph import Direction, Edge, EdgeKind, Node, Port
from ._hugr import Hugr
from ._io import load_hugr, save_hugr
from ._ops import (
    CFG,
    DFG,
    Call,
    CallIndirect,
    Case,
    Conditional,
    Const,
    DataflowBlock,
    ExitBlock,
    ExtensionOp,
    ExtensionValue,
    FuncDecl,
    FuncDefn,
    Input,
    Lift,
    LoadConstant,
    LoadFunction,
    MakeTuple,
    Module,
    Noop,
    Op,
    OpTag,
    Output,
    SumValue,
    Tag,
    TailLoop,
    TupleValue,
    UnpackTuple,
    Value,
    typecheck_value,
)
from ._render import render_hierarchy, render_violations
from ._serialization import (
    SERIAL_VERSION,
    SerialHugr,
    extension_from_serial,
    extension_to_serial,
    from_dict,
    from_json,
    from_serial,
    hugr_json_schema,
    to_dict,
    to_json,
    to_serial,
)
from ._subgraph import SiblingSubgraph
from ._types import (
    BoundedNatArg,
    BoundedNatParam,
    ExtensionsArg,
    ExtensionSet,
    ExtensionsParam,
    FunctionType,
    ListParam,
    Opaque,
    PolyFuncType,
    SequenceArg,
    StringArg,
    StringParam,
    Substitution,
    SumType,
    TupleType,
    Type,
    TypeArg,
    TypeBound,
    TypeParam,
    TypeRow,
    TypeTypeArg,
    TypeTypeParam,
    Variable,
    VariableArg,
)
from ._validate import HugrValidator, finalize, validate, validate_or_raise
