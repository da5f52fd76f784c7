"""The `Hugr` container: a port graph, a hierarchy and an operation per node.

Every mutation checks its preconditions before touching any state, so a
raised error leaves the Hugr unchanged. Whole-graph well-formedness is only
established by the validator.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ._errors import LinearityViolation, StructuralError, TypeMismatch
from ._graph import DependencyGraph, Direction, Edge, EdgeKind, Node, Port, PortGraph
from ._hierarchy import Hierarchy
from ._ops import Input, Module, Op, OpTag, Output, PortKind

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._extension import ExtensionSolution
    from ._types import FunctionType

logger = logging.getLogger(__name__)


class Hugr:
    """A hierarchical dataflow/control-flow graph.

    Example:
        >>> from hugr_core import DFG, USIZE_T, Hugr, Input, Output
        >>> hugr = Hugr(DFG([USIZE_T], [USIZE_T]))
        >>> inp = hugr.add_node_with_parent(hugr.root, Input([USIZE_T]))
        >>> out = hugr.add_node_with_parent(hugr.root, Output([USIZE_T]))
        >>> hugr.connect(inp, 0, out, 0).kind
        <EdgeKind.VALUE: 'value'>

    """

    def __init__(self, root_op: Op | None = None) -> None:
        self._graph = PortGraph()
        self._hierarchy = Hierarchy()
        self._ops: dict[Node, Op] = {}
        self._metadata: dict[Node, dict[str, Any]] = {}
        self._root = self._insert(root_op if root_op is not None else Module())

    # =========================================================================
    # Nodes and hierarchy
    # =========================================================================

    @property
    def root(self) -> Node:
        return self._root

    def add_node(self, op: Op) -> Node:
        """Add a node with no parent (to be attached later)."""
        return self._insert(op)

    def add_node_with_parent(self, parent: Node, op: Op) -> Node:
        """Add a node as the last child of `parent`."""
        self._check_node(parent)
        node = self._insert(op)
        self._hierarchy.push_child(node, parent)
        return node

    def add_node_before(self, sibling: Node, op: Op) -> Node:
        """Add a node immediately before `sibling`, under the same parent.

        Raises:
            StructuralError: If `sibling` has no parent.

        """
        self._check_node(sibling)
        if self._hierarchy.parent(sibling) is None:
            msg = f"Cannot insert before {sibling}: it has no parent"
            raise StructuralError(msg, node=sibling)
        node = self._insert(op)
        self._hierarchy.insert_before(node, sibling)
        return node

    def set_parent(self, node: Node, parent: Node) -> None:
        """Attach a parentless node as the last child of `parent`.

        Raises:
            StructuralError: If `node` is the root, already attached, or an
                ancestor of `parent`.

        """
        self._check_node(node)
        self._check_node(parent)
        self._check_not_root(node)
        self._hierarchy.push_child(node, parent)

    def move_before(self, node: Node, sibling: Node) -> None:
        """Move `node` (and its subtree) to just before `sibling`."""
        self._check_node(node)
        self._check_node(sibling)
        self._check_not_root(node)
        new_parent = self._hierarchy.parent(sibling)
        if new_parent is None:
            msg = f"Cannot move before {sibling}: it has no parent"
            raise StructuralError(msg, node=sibling)
        if node == sibling or self._hierarchy.contains(node, new_parent):
            msg = f"Moving {node} before {sibling} would create a cycle"
            raise StructuralError(msg, node=node)
        self._hierarchy.detach(node)
        self._hierarchy.insert_before(node, sibling)

    def detach(self, node: Node) -> Node | None:
        """Detach `node` from its parent, returning the former parent."""
        self._check_node(node)
        return self._hierarchy.detach(node)

    def replace_op(self, node: Node, op: Op) -> Op:
        """Replace the operation of a node, resizing its ports to match.

        Edges on ports that survive are kept; their types are only checked by
        the validator.

        Raises:
            StructuralError: If a port that would disappear is still linked.

        """
        self._check_node(node)
        self._graph.set_num_ports(node, op.port_count(Direction.INCOMING), op.port_count(Direction.OUTGOING))
        old = self._ops[node]
        self._ops[node] = op
        logger.debug("Replaced op of %s: %s -> %s", node, old, op)
        return old

    def remove_node(self, node: Node) -> Op:
        """Remove a childless node and every edge touching it.

        Raises:
            StructuralError: If the node is the root or still has children.

        """
        self._check_node(node)
        self._check_not_root(node)
        if self._hierarchy.has_children(node):
            msg = f"Cannot remove {node}: it still has children (use remove_subtree)"
            raise StructuralError(msg, node=node)
        self._hierarchy.forget(node)
        removed = self._graph.remove_node(node)
        self._metadata.pop(node, None)
        op = self._ops.pop(node)
        logger.debug("Removed %s (%s) and %d edges", node, op, len(removed))
        return op

    def remove_subtree(self, node: Node) -> None:
        """Remove `node`, all of its descendants and every edge touching them."""
        self._check_node(node)
        self._check_not_root(node)
        for descendant in reversed(list(self._hierarchy.descendants(node))):
            self.remove_node(descendant)

    # =========================================================================
    # Edges
    # =========================================================================

    def connect(self, src: Node, src_port: int, dst: Node, dst_port: int) -> Edge:
        """Connect an output port to an input port.

        The edge kind is taken from the ports, which must agree.

        Raises:
            StructuralError: If a port does not exist, the port kinds differ,
                or a value/static input is already linked.
            TypeMismatch: If the types at the two ends differ.
            LinearityViolation: If a linear output already drives a value edge.

        """
        self._check_node(src)
        self._check_node(dst)
        src_kind = self._existing_port_kind(src, Direction.OUTGOING, src_port)
        dst_kind = self._existing_port_kind(dst, Direction.INCOMING, dst_port)
        if src_kind.edge_kind is not dst_kind.edge_kind:
            msg = (
                f"Cannot connect {src_kind.edge_kind} port {src.out(src_port)} "
                f"to {dst_kind.edge_kind} port {dst.inp(dst_port)}"
            )
            raise StructuralError(msg, node=src)
        kind = src_kind.edge_kind
        if kind in (EdgeKind.VALUE, EdgeKind.STATIC):
            if src_kind.type != dst_kind.type:
                msg = f"Type mismatch on {src.out(src_port)} -> {dst.inp(dst_port)}: {src_kind.type} != {dst_kind.type}"
                raise TypeMismatch(msg, node=dst, expected=dst_kind.type, actual=src_kind.type)
            if self._graph.port_edges(dst.inp(dst_port)):
                msg = f"Input {dst.inp(dst_port)} is already linked"
                raise StructuralError(msg, node=dst)
        if kind is EdgeKind.VALUE and src_kind.type.is_linear() and self._graph.port_edges(src.out(src_port)):  # type: ignore[union-attr]
            msg = f"Linear output {src.out(src_port)} of type {src_kind.type} already drives a value edge"
            raise LinearityViolation(msg, node=src)
        edge = self._graph.connect(src.out(src_port), dst.inp(dst_port), kind)
        logger.debug("Connected %s", edge)
        return edge

    def add_other_edge(self, src: Node, dst: Node) -> Edge:
        """Add an ORDER edge between the order ports of two dataflow nodes.

        Raises:
            StructuralError: If either node has no order port in the needed direction.

        """
        self._check_node(src)
        self._check_node(dst)
        src_offset = self._order_port(src, Direction.OUTGOING)
        dst_offset = self._order_port(dst, Direction.INCOMING)
        return self.connect(src, src_offset, dst, dst_offset)

    def disconnect(self, edge: Edge | int) -> Edge:
        """Remove an edge, returning its last snapshot."""
        removed = self._graph.disconnect(edge)
        logger.debug("Disconnected %s", removed)
        return removed

    # =========================================================================
    # Metadata
    # =========================================================================

    def set_metadata(self, node: Node, key: str, value: Any) -> None:
        """Attach JSON-compatible metadata to a node."""
        self._check_node(node)
        self._metadata.setdefault(node, {})[key] = value

    def get_metadata(self, node: Node, key: str, default: Any = None) -> Any:
        self._check_node(node)
        return self._metadata.get(node, {}).get(key, default)

    def metadata(self, node: Node) -> dict[str, Any]:
        """A copy of all metadata of a node."""
        self._check_node(node)
        return dict(self._metadata.get(node, {}))

    # =========================================================================
    # Queries
    # =========================================================================

    def contains_node(self, node: Node) -> bool:
        return node in self._ops and self._graph.contains_node(node)

    def nodes(self) -> Iterator[Node]:
        """All nodes, in arena order."""
        return self._graph.nodes()

    @property
    def node_count(self) -> int:
        return self._graph.node_count

    @property
    def edge_count(self) -> int:
        return self._graph.edge_count

    @property
    def graph(self) -> PortGraph:
        """The underlying port graph (read it; mutate through the Hugr)."""
        return self._graph

    def get_op(self, node: Node) -> Op:
        self._check_node(node)
        return self._ops[node]

    def __getitem__(self, node: Node) -> Op:
        return self.get_op(node)

    def get_parent(self, node: Node) -> Node | None:
        self._check_node(node)
        return self._hierarchy.parent(node)

    def children(self, node: Node) -> list[Node]:
        self._check_node(node)
        return list(self._hierarchy.children(node))

    def first_child(self, node: Node) -> Node | None:
        return self._hierarchy.first_child(node)

    def num_children(self, node: Node) -> int:
        return self._hierarchy.num_children(node)

    def is_ancestor(self, ancestor: Node, node: Node) -> bool:
        """Whether `ancestor` strictly contains `node`."""
        return self._hierarchy.is_ancestor(ancestor, node)

    def descendants(self, node: Node) -> list[Node]:
        """`node` and everything below it, in pre-order."""
        self._check_node(node)
        return list(self._hierarchy.descendants(node))

    def ancestors(self, node: Node) -> list[Node]:
        return list(self._hierarchy.ancestors(node))

    @property
    def hierarchy(self) -> Hierarchy:
        return self._hierarchy

    def num_ports(self, node: Node, direction: Direction) -> int:
        return self._graph.num_ports(node, direction)

    def port_kind(self, node: Node, direction: Direction, offset: int) -> PortKind | None:
        """Kind of a port as declared by the node's operation."""
        return self.get_op(node).port_kind(direction, offset)

    def linked_ports(self, node: Node, direction: Direction, offset: int) -> list[Port]:
        """Ports at the other end of each edge on a port."""
        self._check_node(node)
        return self._graph.linked_ports(Port(node, direction, offset))

    def port_edges(self, node: Node, direction: Direction, offset: int) -> list[Edge]:
        self._check_node(node)
        return self._graph.port_edges(Port(node, direction, offset))

    def edges(self, node: Node, direction: Direction | None = None, kind: EdgeKind | None = None) -> list[Edge]:
        return self._graph.edges(node, direction, kind)

    def all_edges(self) -> Iterator[Edge]:
        return self._graph.all_edges()

    def neighbours(self, node: Node, direction: Direction | None = None, kind: EdgeKind | None = None) -> list[Node]:
        return self._graph.neighbours(node, direction, kind)

    def signature(self, node: Node) -> FunctionType | None:
        """Dataflow signature of a node's operation, if it has one."""
        return self.get_op(node).dataflow_signature()

    def get_io(self, node: Node) -> tuple[Node, Node] | None:
        """The Input and Output children of a dataflow parent, if present."""
        children = self.children(node)
        if len(children) < 2:  # noqa: PLR2004
            return None
        inp, out = children[0], children[1]
        if isinstance(self._ops[inp], Input) and isinstance(self._ops[out], Output):
            return (inp, out)
        return None

    def sibling_dependency_graph(self, parent: Node) -> DependencyGraph[Node]:
        """Value and order dependencies between the children of `parent`."""
        children = self.children(parent)
        members = set(children)
        pairs: list[tuple[Node, Node]] = []
        for child in children:
            for edge in self._graph.edges(child, Direction.OUTGOING):
                if edge.kind in (EdgeKind.VALUE, EdgeKind.ORDER) and edge.target.node in members:
                    pairs.append((child, edge.target.node))
        return DependencyGraph.from_edges(pairs, nodes=children)

    def topological_children(self, parent: Node) -> list[Node]:
        """Children of `parent` ordered along value and order edges.

        Raises:
            StructuralError: If the children contain a cycle.

        """
        try:
            return self.sibling_dependency_graph(parent).topological_order()
        except ValueError as e:
            msg = f"Children of {parent} contain a dataflow cycle"
            raise StructuralError(msg, node=parent) from e

    def tag(self, node: Node) -> OpTag:
        return self.get_op(node).TAG

    # =========================================================================
    # Extension inference
    # =========================================================================

    def infer_extensions(self) -> ExtensionSolution:
        """Infer and annotate the requirements of unannotated regions.

        Nothing is changed if inference fails.

        Raises:
            ExtensionInferenceError: If a declared requirement set is too small.

        """
        from ._extension import infer_extensions  # noqa: PLC0415

        solution = infer_extensions(self)
        for node, delta in solution.annotations.items():
            self._ops[node] = self._ops[node].with_extension_delta(delta)
        logger.debug("Annotated %d regions with inferred extensions", len(solution.annotations))
        return solution

    # =========================================================================
    # Raw construction (used by the decoder)
    # =========================================================================

    def _connect_raw(self, source: Port, target: Port, kind: EdgeKind) -> Edge:
        """Add an edge without kind, type or linearity checks."""
        return self._graph.connect(source, target, kind)

    # =========================================================================
    # Internals
    # =========================================================================

    def _insert(self, op: Op) -> Node:
        node = self._graph.add_node(op.port_count(Direction.INCOMING), op.port_count(Direction.OUTGOING))
        self._ops[node] = op
        logger.debug("Added %s (%s)", node, op)
        return node

    def _check_node(self, node: Node) -> None:
        if not self.contains_node(node):
            msg = f"{node} is not in this Hugr (removed or from another Hugr)"
            raise StructuralError(msg, node=node)

    def _check_not_root(self, node: Node) -> None:
        if node == self._root:
            msg = "The root node cannot be moved or removed"
            raise StructuralError(msg, node=node)

    def _existing_port_kind(self, node: Node, direction: Direction, offset: int) -> PortKind:
        kind = self._ops[node].port_kind(direction, offset)
        if kind is None:
            msg = f"{self._ops[node]} has no {direction} port {offset}"
            raise StructuralError(msg, node=node)
        return kind

    def _order_port(self, node: Node, direction: Direction) -> int:
        op = self._ops[node]
        offset = op.other_port(direction)
        if offset is None or op.other_ports(direction)[0] is not EdgeKind.ORDER:
            msg = f"{op} has no {direction} order port"
            raise StructuralError(msg, node=node)
        return offset
