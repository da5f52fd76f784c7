"""Whole-graph validation.

The validator walks the Hugr once and collects every violation it finds
instead of stopping at the first. It never mutates the Hugr, so it is safe to
run speculatively or repeatedly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._config import HugrConfig
from ._errors import (
    ExtensionInferenceError,
    HugrError,
    LinearityViolation,
    SignatureError,
    StructuralError,
    TypeMismatch,
)
from ._extension import compute_requirements
from ._graph import Direction, Edge, EdgeKind, Node
from ._ops import (
    CFG,
    Call,
    Case,
    Conditional,
    Const,
    DataflowBlock,
    ExitBlock,
    ExtensionOp,
    FuncDefn,
    Input,
    LoadFunction,
    Op,
    OpTag,
    Output,
    typecheck_value,
)
from ._types import PolyFuncType, Type, TypeParam

if TYPE_CHECKING:
    from ._extension import ExtensionRegistry
    from ._hugr import Hugr

logger = logging.getLogger(__name__)


def _attach(err: HugrError, node: Node) -> HugrError:
    if err.node is None:
        err.node = node
    return err


class HugrValidator:
    """Collects the violations of a Hugr against a registry.

    Args:
        hugr: The Hugr to check.
        registry: Extensions used to resolve types and operations.
        check_extensions: Whether to check declared extension requirements.

    """

    def __init__(self, hugr: Hugr, registry: ExtensionRegistry, *, check_extensions: bool = True) -> None:
        self.hugr = hugr
        self.registry = registry
        self.check_extensions = check_extensions
        self.errors: list[HugrError] = []

    def run(self) -> list[HugrError]:
        """Validate the whole Hugr and return the violations found."""
        self.errors = []
        self._validate_integrity()
        self._validate_root()
        self._validate_dangling()
        tree = self.hugr.descendants(self.hugr.root)
        for node in tree:
            self._validate_node(node)
        for node in tree:
            self._validate_edges(node)
            self._validate_ports_linked(node)
        if self.check_extensions:
            self._validate_extensions()
        logger.debug("Validation found %d violations in %d nodes", len(self.errors), len(tree))
        return list(self.errors)

    # =========================================================================
    # Global checks
    # =========================================================================

    def _validate_integrity(self) -> None:
        for problem in self.hugr.graph.check_integrity():
            self.errors.append(StructuralError(problem))

    def _validate_root(self) -> None:
        root = self.hugr.root
        if self.hugr.get_parent(root) is not None:
            self.errors.append(StructuralError("The root node has a parent", node=root))
        if self.hugr.edges(root):
            self.errors.append(StructuralError("The root node has edges", node=root))

    def _validate_dangling(self) -> None:
        for node in self.hugr.nodes():
            if node != self.hugr.root and self.hugr.get_parent(node) is None:
                self.errors.append(StructuralError("Node has no parent", node=node))

    # =========================================================================
    # Per-node checks
    # =========================================================================

    def _validate_node(self, node: Node) -> None:
        op = self.hugr.get_op(node)
        for direction in Direction:
            expected = op.port_count(direction)
            actual = self.hugr.num_ports(node, direction)
            if expected != actual:
                msg = f"{op} should have {expected} {direction} ports, found {actual}"
                self.errors.append(StructuralError(msg, node=node))

        parent = self.hugr.get_parent(node)
        if parent is not None:
            parent_op = self.hugr.get_op(parent)
            allowed = parent_op.validity().allowed_children
            if not allowed.is_superset(op.TAG):
                msg = f"{op} ({op.TAG}) is not allowed as a child of {parent_op} (allows {allowed})"
                self.errors.append(StructuralError(msg, node=node))

        self._validate_children(node, op)
        self._validate_op(node, op)
        self._validate_types(node, op)

    def _validate_children(self, node: Node, op: Op) -> None:  # noqa: C901
        validity = op.validity()
        children = self.hugr.children(node)
        if not children:
            if validity.requires_children:
                self.errors.append(StructuralError(f"{op} must have children", node=node))
            return
        if validity.allowed_children is OpTag.NONE:
            # Each child is already reported by the parent tag check
            return

        first_tag = self.hugr.get_op(children[0]).TAG
        if not validity.allowed_first_child.is_superset(first_tag):
            msg = f"First child of {op} must be {validity.allowed_first_child}, found {first_tag}"
            self.errors.append(StructuralError(msg, node=node))
        if len(children) > 1:
            second_tag = self.hugr.get_op(children[1]).TAG
            if not validity.allowed_second_child.is_superset(second_tag):
                msg = f"Second child of {op} must be {validity.allowed_second_child}, found {second_tag}"
                self.errors.append(StructuralError(msg, node=node))
        elif validity.allowed_second_child is not OpTag.ANY:
            msg = f"{op} must have a second child of kind {validity.allowed_second_child}"
            self.errors.append(StructuralError(msg, node=node))

        if validity.allowed_first_child is OpTag.INPUT:
            self._validate_io_children(node, op, children)
        if validity.requires_dag and self.hugr.sibling_dependency_graph(node).has_cycle():
            self.errors.append(StructuralError(f"Children of {op} contain a dataflow cycle", node=node))

        match op:
            case Conditional():
                self._validate_cases(node, op, children)
            case CFG():
                self._validate_cfg(node, op, children)

    def _validate_io_children(self, node: Node, op: Op, children: list[Node]) -> None:
        inner = op.inner_signature()
        if inner is None:
            return
        io = (children[0], inner.input, Input), (children[1] if len(children) > 1 else None, inner.output, Output)
        for child, row, kind in io:
            if child is None:
                continue
            child_op = self.hugr.get_op(child)
            if isinstance(child_op, kind) and child_op.types != row:
                msg = f"{kind.__name__} of {op} has types {child_op.types}, expected {row}"
                self.errors.append(TypeMismatch(msg, node=child, expected=row, actual=child_op.types))
        for child in children[2:]:
            if isinstance(self.hugr.get_op(child), Input | Output):
                msg = f"{op} may only have Input and Output as its first two children"
                self.errors.append(StructuralError(msg, node=child))

    def _validate_cases(self, node: Node, op: Conditional, children: list[Node]) -> None:
        if len(children) != len(op.sum_rows):
            msg = f"Conditional has {len(children)} cases, expected {len(op.sum_rows)}"
            self.errors.append(StructuralError(msg, node=node))
        for index, child in enumerate(children[: len(op.sum_rows)]):
            case = self.hugr.get_op(child)
            if not isinstance(case, Case):
                continue
            expected = op.case_signature(index)
            if (case.inputs, case.outputs) != (expected.input, expected.output):
                msg = f"Case {index} has signature {case.inputs} -> {case.outputs}, expected {expected}"
                self.errors.append(TypeMismatch(msg, node=child, expected=expected, actual=case.inner_signature()))

    def _validate_cfg(self, node: Node, op: CFG, children: list[Node]) -> None:
        entry = self.hugr.get_op(children[0])
        if isinstance(entry, DataflowBlock) and entry.inputs != op.inputs:
            msg = f"Entry block inputs {entry.inputs} differ from CFG inputs {op.inputs}"
            self.errors.append(TypeMismatch(msg, node=children[0], expected=op.inputs, actual=entry.inputs))
        exits = [child for child in children if isinstance(self.hugr.get_op(child), ExitBlock)]
        if not exits:
            self.errors.append(StructuralError("CFG has no exit block", node=node))
        for child in exits:
            exit_op = self.hugr.get_op(child)
            if exit_op.cfg_outputs != op.outputs:  # type: ignore[attr-defined]
                msg = f"Exit block outputs {exit_op.cfg_outputs} differ from CFG outputs {op.outputs}"  # type: ignore[attr-defined]
                self.errors.append(
                    TypeMismatch(msg, node=child, expected=op.outputs, actual=exit_op.cfg_outputs),  # type: ignore[attr-defined]
                )
        for child in children:
            if isinstance(self.hugr.get_op(child), DataflowBlock):
                self._validate_discriminants(child)

    def _validate_discriminants(self, block: Node) -> None:
        """Each successor port must drive exactly one control-flow edge."""
        op = self.hugr.get_op(block)
        if not isinstance(op, DataflowBlock):
            return
        for index in range(op.num_successors):
            if index >= self.hugr.num_ports(block, Direction.OUTGOING):
                break
            edges = [
                e for e in self.hugr.port_edges(block, Direction.OUTGOING, index) if e.kind is EdgeKind.CONTROL_FLOW
            ]
            if not edges:
                msg = f"Discriminant {index} of {op.num_successors} has no successor (non-exhaustive branching)"
                self.errors.append(StructuralError(msg, node=block))
            elif len(edges) > 1:
                msg = f"Discriminant {index} has {len(edges)} successors (duplicate discriminant)"
                self.errors.append(StructuralError(msg, node=block))
            expected = op.successor_input(index)
            for edge in edges:
                succ = self.hugr.get_op(edge.target.node)
                actual = (
                    succ.inputs
                    if isinstance(succ, DataflowBlock)
                    else succ.cfg_outputs
                    if isinstance(succ, ExitBlock)
                    else None
                )
                if actual is not None and actual != expected:
                    msg = f"Successor {edge.target.node} of discriminant {index} expects {actual}, block gives {expected}"
                    self.errors.append(TypeMismatch(msg, node=block, expected=expected, actual=actual))

    def _validate_op(self, node: Node, op: Op) -> None:
        try:
            match op:
                case ExtensionOp(extension=ext, op_name=name, args=args, signature=cached):
                    computed = self.registry.get_op(ext, name).compute_signature(args)
                    if computed != cached:
                        msg = f"Cached signature {cached} of {op} differs from computed {computed}"
                        raise SignatureError(msg)
                case Call(func_sig=func_sig, type_args=args, instantiation=cached) | LoadFunction(
                    func_sig=func_sig, type_args=args, signature=cached
                ):
                    computed = func_sig.instantiate(args)
                    if computed != cached:
                        msg = f"Cached instantiation {cached} of {op} differs from computed {computed}"
                        raise SignatureError(msg)
                case Const(value=value, typ=typ):
                    typecheck_value(typ, value)
        except HugrError as e:
            self.errors.append(_attach(e, node))

    def _validate_types(self, node: Node, op: Op) -> None:
        var_decls = self._type_vars_in_scope(node)
        to_check: list[Type | PolyFuncType] = []
        for direction in Direction:
            for offset in range(op.port_count(direction)):
                kind = op.port_kind(direction, offset)
                if kind is not None and kind.type is not None:
                    to_check.append(kind.type)
        if isinstance(op, ExitBlock):
            to_check.extend(op.cfg_outputs)
        for ty in to_check:
            try:
                if isinstance(ty, PolyFuncType):
                    ty.validate(self.registry)
                else:
                    ty.validate(self.registry, var_decls)
            except HugrError as e:
                self.errors.append(_attach(e, node))

    def _type_vars_in_scope(self, node: Node) -> tuple[TypeParam, ...]:
        for ancestor in self.hugr.ancestors(node):
            op = self.hugr.get_op(ancestor)
            if isinstance(op, FuncDefn):
                return op.signature.params
        return ()

    # =========================================================================
    # Edge checks
    # =========================================================================

    def _validate_edges(self, node: Node) -> None:
        for edge in self.hugr.edges(node, Direction.OUTGOING):
            if not self.hugr.contains_node(edge.target.node):
                continue
            self._validate_edge(edge)

    def _validate_edge(self, edge: Edge) -> None:
        src, dst = edge.source.node, edge.target.node
        src_kind = self.hugr.port_kind(src, Direction.OUTGOING, edge.source.offset)
        dst_kind = self.hugr.port_kind(dst, Direction.INCOMING, edge.target.offset)
        if src_kind is None or dst_kind is None:
            self.errors.append(StructuralError(f"Edge {edge} is attached to a port its op does not have", node=src))
            return
        if not (src_kind.edge_kind is dst_kind.edge_kind is edge.kind):
            msg = f"Edge {edge} joins {src_kind.edge_kind} and {dst_kind.edge_kind} ports"
            self.errors.append(StructuralError(msg, node=src))
            return
        if edge.kind in (EdgeKind.VALUE, EdgeKind.STATIC) and src_kind.type != dst_kind.type:
            msg = f"Edge {edge} carries {src_kind.type} into a port of type {dst_kind.type}"
            self.errors.append(TypeMismatch(msg, node=dst, expected=dst_kind.type, actual=src_kind.type))
        self._validate_locality(edge, src_kind.type)

    def _validate_locality(self, edge: Edge, ty: Type | PolyFuncType | None) -> None:
        src, dst = edge.source.node, edge.target.node
        src_parent = self.hugr.get_parent(src)
        dst_parent = self.hugr.get_parent(dst)
        match edge.kind:
            case EdgeKind.VALUE | EdgeKind.ORDER:
                if src_parent is not None and src_parent == dst_parent:
                    return
                copyable_value = edge.kind is EdgeKind.VALUE and isinstance(ty, Type) and not ty.is_linear()
                if copyable_value and src_parent is not None and self.hugr.is_ancestor(src_parent, dst):
                    return
                msg = f"{edge.kind} edge {edge} does not join siblings"
            case EdgeKind.STATIC:
                if src_parent is not None and self.hugr.is_ancestor(src_parent, dst):
                    return
                msg = f"Static edge {edge} leaves the scope of its source"
            case EdgeKind.CONTROL_FLOW:
                if (
                    src_parent is not None
                    and src_parent == dst_parent
                    and isinstance(self.hugr.get_op(src_parent), CFG)
                ):
                    return
                msg = f"Control-flow edge {edge} does not join blocks of the same CFG"
        self.errors.append(StructuralError(msg, node=edge.source.node))

    def _validate_ports_linked(self, node: Node) -> None:
        """Linearity on outputs, single links on value and static inputs."""
        if node == self.hugr.root:
            return
        op = self.hugr.get_op(node)
        for direction in Direction:
            for offset in range(min(op.port_count(direction), self.hugr.num_ports(node, direction))):
                kind = op.port_kind(direction, offset)
                if kind is None or kind.edge_kind not in (EdgeKind.VALUE, EdgeKind.STATIC):
                    continue
                count = len(self.hugr.port_edges(node, direction, offset))
                if direction is Direction.INCOMING:
                    if count != 1:
                        what = "unconnected" if count == 0 else f"linked {count} times"
                        msg = f"{kind.edge_kind} input {offset} of {op} is {what}"
                        self.errors.append(StructuralError(msg, node=node))
                elif kind.edge_kind is EdgeKind.VALUE and isinstance(kind.type, Type) and kind.type.is_linear():
                    if count == 0:
                        msg = f"Linear output {offset} of {op} ({kind.type}) is never consumed"
                        self.errors.append(LinearityViolation(msg, node=node))
                    elif count > 1:
                        msg = f"Linear output {offset} of {op} ({kind.type}) is used {count} times"
                        self.errors.append(LinearityViolation(msg, node=node))

    # =========================================================================
    # Extensions
    # =========================================================================

    def _validate_extensions(self) -> None:
        _, errors = compute_requirements(self.hugr)
        self.errors.extend(errors)


# =============================================================================
# Entry points
# =============================================================================


def validate(hugr: Hugr, registry: ExtensionRegistry, *, check_extensions: bool = True) -> list[HugrError]:
    """Return every violation in `hugr` (empty if it is well formed)."""
    return HugrValidator(hugr, registry, check_extensions=check_extensions).run()


def validate_or_raise(hugr: Hugr, registry: ExtensionRegistry, *, check_extensions: bool = True) -> None:
    """Validate and raise the first violation, if any."""
    errors = validate(hugr, registry, check_extensions=check_extensions)
    if errors:
        raise errors[0]


def finalize(hugr: Hugr, registry: ExtensionRegistry, config: HugrConfig | None = None) -> list[HugrError]:
    """Run inference (when enabled) and then validate.

    Inference failures are not raised. They are returned with the other
    violations, also when `config.check_extensions` is off.

    Returns:
        The violations found.

    """
    config = config or HugrConfig()
    inference_errors: list[HugrError] = []
    if config.extension_inference:
        try:
            hugr.infer_extensions()
        except ExtensionInferenceError as e:
            logger.debug("Extension inference failed: %s", e)
            if not config.check_extensions:
                _, failures = compute_requirements(hugr)
                inference_errors.extend(failures)
    return validate(hugr, registry, check_extensions=config.check_extensions) + inference_errors
