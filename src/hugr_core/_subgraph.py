"""Convex subgraphs of a sibling region."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ._errors import InvalidSubgraph
from ._graph import Direction, EdgeKind, Port, reachable
from ._types import FunctionType, Type, TypeRow

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ._graph import Node
    from ._hugr import Hugr

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SiblingSubgraph:
    """A non-empty convex set of nodes sharing one parent.

    The subgraph is induced: it holds every edge between its nodes. Its
    incoming boundary is the set of value input ports fed from outside,
    grouped by the subgraph input they correspond to. Its outgoing boundary is
    the list of value output ports consumed outside. No reference to the Hugr
    is kept, so most methods take it as an argument.

    Static edges into the subgraph (constants and function references) are
    not part of the boundary. Order edges may not cross it.

    Attributes:
        nodes: The nodes, in the order that defines the boundary ordering.
        inputs: Incoming boundary, one group of input ports per subgraph input.
        outputs: Outgoing boundary, one output port per subgraph output.

    """

    nodes: tuple[Node, ...]
    inputs: tuple[tuple[Port, ...], ...]
    outputs: tuple[Port, ...]

    @classmethod
    def try_from_nodes(cls, nodes: Iterable[Node], hugr: Hugr) -> SiblingSubgraph:
        """Build the subgraph induced by `nodes`.

        Every value edge entering the set becomes its own input; every value
        output with a consumer outside the set becomes an output. Boundary
        order follows `nodes`, then port offsets.

        Raises:
            InvalidSubgraph: If the set is empty, not all siblings, not convex,
                or an order edge crosses its boundary.

        """
        nodes = tuple(nodes)
        members = set(nodes)
        inputs: list[tuple[Port, ...]] = []
        outputs: list[Port] = []
        for node in nodes:
            for offset in range(hugr.num_ports(node, Direction.INCOMING)):
                port = node.inp(offset)
                if _edge_kind(hugr, port) is EdgeKind.STATIC:
                    continue
                if any(p.node not in members for p in hugr.linked_ports(node, Direction.INCOMING, offset)):
                    inputs.append((port,))
            for offset in range(hugr.num_ports(node, Direction.OUTGOING)):
                port = node.out(offset)
                if _edge_kind(hugr, port) is EdgeKind.STATIC:
                    continue
                if any(p.node not in members for p in hugr.linked_ports(node, Direction.OUTGOING, offset)):
                    outputs.append(port)
        return cls._checked(hugr, nodes, inputs, outputs)

    @classmethod
    def try_new_dataflow_subgraph(cls, hugr: Hugr, parent: Node | None = None) -> SiblingSubgraph:
        """The subgraph of everything between the Input and Output of a dataflow region.

        Args:
            hugr: The Hugr holding the region.
            parent: The dataflow parent. Defaults to the root.

        Raises:
            InvalidSubgraph: If the region has no Input/Output pair, nothing
                between them, order edges on its Input or Output, or an input
                wired straight to the Output.

        """
        parent = hugr.root if parent is None else parent
        io = hugr.get_io(parent)
        if io is None:
            msg = f"{parent} is not a dataflow region with Input and Output children"
            raise InvalidSubgraph(msg, node=parent)
        inp, out = io
        if _has_order_edge(hugr, inp, Direction.OUTGOING) or _has_order_edge(hugr, out, Direction.INCOMING):
            msg = "Order edges on the region's Input or Output are not supported at the boundary"
            raise InvalidSubgraph(msg, node=parent)

        nodes = tuple(hugr.children(parent)[2:])
        inp_op, out_op = hugr.get_op(inp), hugr.get_op(out)
        inputs = [
            tuple(hugr.linked_ports(inp, Direction.OUTGOING, offset))
            for offset in range(len(inp_op.value_types(Direction.OUTGOING)))
        ]
        outputs: list[Port] = []
        for offset in range(len(out_op.value_types(Direction.INCOMING))):
            linked = hugr.linked_ports(out, Direction.INCOMING, offset)
            if len(linked) != 1:
                msg = f"Output port {offset} of {out} is not linked exactly once"
                raise InvalidSubgraph(msg, node=out)
            outputs.append(linked[0])
        return cls._checked(hugr, nodes, inputs, outputs)

    @classmethod
    def _checked(
        cls,
        hugr: Hugr,
        nodes: Sequence[Node],
        inputs: Sequence[tuple[Port, ...]],
        outputs: Sequence[Port],
    ) -> SiblingSubgraph:
        _validate_boundary(hugr, nodes, inputs, outputs)
        _check_convex(hugr, nodes)
        subgraph = cls(tuple(nodes), tuple(inputs), tuple(outputs))
        logger.debug(
            "Built subgraph of %d nodes with %d inputs and %d outputs",
            len(nodes),
            len(inputs),
            len(outputs),
        )
        return subgraph

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def get_parent(self, hugr: Hugr) -> Node | None:
        return hugr.get_parent(self.nodes[0])

    def signature(self, hugr: Hugr) -> FunctionType:
        """Types of the boundary ports, inputs then outputs, in boundary order."""
        input_types = TypeRow(tuple(_port_type(hugr, group[0]) for group in self.inputs))
        output_types = TypeRow(tuple(_port_type(hugr, port) for port in self.outputs))
        return FunctionType(input_types, output_types)


# =============================================================================
# Checks
# =============================================================================


def _port_type(hugr: Hugr, port: Port) -> Type:
    kind = hugr.port_kind(port.node, port.direction, port.offset)
    if kind is None or kind.edge_kind is not EdgeKind.VALUE or not isinstance(kind.type, Type):
        msg = f"{port} is not a value port"
        raise InvalidSubgraph(msg, node=port.node)
    return kind.type


def _edge_kind(hugr: Hugr, port: Port) -> EdgeKind | None:
    kind = hugr.port_kind(port.node, port.direction, port.offset)
    return None if kind is None else kind.edge_kind


def _has_order_edge(hugr: Hugr, node: Node, direction: Direction) -> bool:
    op = hugr.get_op(node)
    offset = op.other_port(direction)
    if offset is None or op.other_ports(direction)[0] is not EdgeKind.ORDER:
        return False
    return bool(hugr.linked_ports(node, direction, offset))


def _validate_boundary(  # noqa: C901
    hugr: Hugr,
    nodes: Sequence[Node],
    inputs: Sequence[tuple[Port, ...]],
    outputs: Sequence[Port],
) -> None:
    if not nodes:
        msg = "Subgraph is empty"
        raise InvalidSubgraph(msg)
    parents = {hugr.get_parent(n) for n in nodes}
    if None in parents:
        msg = "Subgraph nodes must be children of a region"
        raise InvalidSubgraph(msg, node=nodes[0])
    if len(parents) != 1:
        msg = "Subgraph nodes do not share a parent"
        raise InvalidSubgraph(msg, node=nodes[0])

    boundary = [port for group in inputs for port in group] + list(outputs)
    for port in boundary:
        if _edge_kind(hugr, port) is EdgeKind.ORDER:
            msg = f"Order edge on the subgraph boundary at {port}"
            raise InvalidSubgraph(msg, node=port.node)

    members = set(nodes)
    for group in inputs:
        if not group:
            msg = "Subgraph input is not consumed by any port"
            raise InvalidSubgraph(msg)
        for port in group:
            if port.direction is not Direction.INCOMING or port.node not in members:
                msg = f"Invalid incoming boundary port {port}"
                raise InvalidSubgraph(msg, node=port.node)
            sources = hugr.linked_ports(port.node, port.direction, port.offset)
            if any(src.node in members for src in sources):
                msg = f"Boundary port {port} is fed from inside the subgraph"
                raise InvalidSubgraph(msg, node=port.node)
        types = {_port_type(hugr, port) for port in group}
        if len(types) != 1:
            msg = "Ports of one subgraph input disagree on their type"
            raise InvalidSubgraph(msg, node=group[0].node)
        if len(group) > 1 and types.pop().is_linear():
            msg = "Linear subgraph input is consumed more than once"
            raise InvalidSubgraph(msg, node=group[0].node)

    incoming = [port for group in inputs for port in group]
    if len(set(incoming)) != len(incoming):
        msg = "Incoming boundary ports are not unique"
        raise InvalidSubgraph(msg)

    for port in outputs:
        if port.direction is not Direction.OUTGOING or port.node not in members:
            msg = f"Invalid outgoing boundary port {port}"
            raise InvalidSubgraph(msg, node=port.node)


def _check_convex(hugr: Hugr, nodes: Sequence[Node]) -> None:
    """No path may leave the subgraph and come back into it."""
    members = set(nodes)
    parent = hugr.get_parent(nodes[0])
    if parent is None:
        return
    deps = hugr.sibling_dependency_graph(parent)
    successors = {n: deps.successors(n) for n in deps.nodes}
    escaping = {succ for n in members for succ in successors.get(n, ()) if succ not in members}
    if reachable(successors, escaping) & members:
        msg = "Subgraph is not convex"
        raise InvalidSubgraph(msg, node=nodes[0])
