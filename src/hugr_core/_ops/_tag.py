"""Tags classifying operations, arranged in a subset lattice.

Containers state which children they admit as a tag; a child is admitted if
the container's tag is a superset of the child's.
"""

from __future__ import annotations

from enum import StrEnum


class OpTag(StrEnum):
    """Classification of operations used by structural checks."""

    ANY = "Any"
    NONE = "None"  # Admits nothing; used for "no children allowed"
    MODULE_ROOT = "ModuleRoot"
    MODULE_OP = "ModuleOp"
    FUNCTION = "Function"
    SCOPED_DEFN = "ScopedDefn"
    CONST = "Const"
    FUNC_DEFN = "FuncDefn"
    DATAFLOW_CHILD = "DataflowChild"
    INPUT = "Input"
    OUTPUT = "Output"
    DATAFLOW_OP = "DataflowOp"
    DATAFLOW_PARENT = "DataflowParent"
    CFG = "Cfg"
    CONDITIONAL = "Conditional"
    TAIL_LOOP = "TailLoop"
    DFG = "Dfg"
    FN_CALL = "FnCall"
    LOAD_CONST = "LoadConst"
    LOAD_FUNC = "LoadFunc"
    LEAF = "Leaf"
    CASE = "Case"
    CONTROL_FLOW_CHILD = "ControlFlowChild"
    DATAFLOW_BLOCK = "DataflowBlock"
    EXIT_BLOCK = "ExitBlock"

    @property
    def immediate_supersets(self) -> tuple[OpTag, ...]:
        """Tags directly above this one in the lattice."""
        return _PARENTS[self]

    def is_superset(self, other: OpTag) -> bool:
        """Whether every operation tagged `other` is also tagged `self`.

        Example:
            >>> OpTag.DATAFLOW_CHILD.is_superset(OpTag.LEAF)
            True
            >>> OpTag.NONE.is_superset(OpTag.LEAF)
            False

        """
        if self is other or self is OpTag.ANY:
            return True
        return any(self.is_superset(parent) for parent in _PARENTS[other])


_PARENTS: dict[OpTag, tuple[OpTag, ...]] = {
    OpTag.ANY: (),
    OpTag.NONE: (OpTag.ANY,),
    OpTag.MODULE_ROOT: (OpTag.ANY,),
    OpTag.MODULE_OP: (OpTag.ANY,),
    OpTag.DATAFLOW_CHILD: (OpTag.ANY,),
    OpTag.DATAFLOW_PARENT: (OpTag.ANY,),
    OpTag.CONTROL_FLOW_CHILD: (OpTag.ANY,),
    OpTag.FUNCTION: (OpTag.MODULE_OP,),
    OpTag.SCOPED_DEFN: (OpTag.DATAFLOW_CHILD, OpTag.MODULE_OP),
    OpTag.CONST: (OpTag.SCOPED_DEFN,),
    OpTag.FUNC_DEFN: (OpTag.FUNCTION, OpTag.SCOPED_DEFN, OpTag.DATAFLOW_PARENT),
    OpTag.INPUT: (OpTag.DATAFLOW_CHILD,),
    OpTag.OUTPUT: (OpTag.DATAFLOW_CHILD,),
    OpTag.DATAFLOW_OP: (OpTag.DATAFLOW_CHILD,),
    OpTag.CFG: (OpTag.DATAFLOW_OP,),
    OpTag.CONDITIONAL: (OpTag.DATAFLOW_OP,),
    OpTag.TAIL_LOOP: (OpTag.DATAFLOW_OP, OpTag.DATAFLOW_PARENT),
    OpTag.DFG: (OpTag.DATAFLOW_OP, OpTag.DATAFLOW_PARENT),
    OpTag.FN_CALL: (OpTag.DATAFLOW_OP,),
    OpTag.LOAD_CONST: (OpTag.DATAFLOW_OP,),
    OpTag.LOAD_FUNC: (OpTag.DATAFLOW_OP,),
    OpTag.LEAF: (OpTag.DATAFLOW_OP,),
    OpTag.CASE: (OpTag.DATAFLOW_PARENT,),
    OpTag.DATAFLOW_BLOCK: (OpTag.CONTROL_FLOW_CHILD, OpTag.DATAFLOW_PARENT),
    OpTag.EXIT_BLOCK: (OpTag.CONTROL_FLOW_CHILD,),
}
