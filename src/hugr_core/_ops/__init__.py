"""Operation taxonomy.

This module contains:
- Op and the closed set of structural operations, plus ExtensionOp
- OpTag: the classification lattice used by structural checks
- PortKind / OpValidity: port layout and child-shape rules
- Constant values and typecheck_value
"""

from ._ops import (
    CFG,
    DFG,
    Call,
    CallIndirect,
    Case,
    Conditional,
    Const,
    DataflowBlock,
    DataflowOp,
    ExitBlock,
    ExtensionOp,
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
    OpValidity,
    Output,
    PortKind,
    Tag,
    TailLoop,
    UnpackTuple,
)
from ._tag import OpTag
from ._values import ExtensionValue, SumValue, TupleValue, Value, typecheck_value, unit_sum_value

__all__ = [
    "CFG",
    "DFG",
    "Call",
    "CallIndirect",
    "Case",
    "Conditional",
    "Const",
    "DataflowBlock",
    "DataflowOp",
    "ExitBlock",
    "ExtensionOp",
    "ExtensionValue",
    "FuncDecl",
    "FuncDefn",
    "Input",
    "Lift",
    "LoadConstant",
    "LoadFunction",
    "MakeTuple",
    "Module",
    "Noop",
    "Op",
    "OpTag",
    "OpValidity",
    "Output",
    "PortKind",
    "SumValue",
    "Tag",
    "TailLoop",
    "TupleValue",
    "UnpackTuple",
    "Value",
    "typecheck_value",
    "unit_sum_value",
]
