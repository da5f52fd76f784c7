"""Mutable multigraph of nodes with ordered, directed ports.

Nodes live in an arena of slots. A `Node` is a `(index, generation)` pair;
removing a node bumps the generation of its slot, so identities held by
callers become detectably stale instead of silently aliasing a new node.
Edges are stored once and indexed from both of their ports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from hugr_core._errors import StructuralError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


class Direction(StrEnum):
    """Direction of a port relative to its node."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"

    def reverse(self) -> Direction:
        """Return the opposite direction."""
        return Direction.OUTGOING if self is Direction.INCOMING else Direction.INCOMING


class EdgeKind(StrEnum):
    """The kind of dataflow an edge carries."""

    VALUE = "value"  # Typed data dependency
    ORDER = "order"  # Untyped sequencing
    STATIC = "static"  # Constant or function definition to a user
    CONTROL_FLOW = "control_flow"  # Basic block to successor


@dataclass(frozen=True, slots=True, order=True)
class Node:
    """Stable identity of a node in a `PortGraph`."""

    index: int
    generation: int = 0

    def __str__(self) -> str:
        return f"Node({self.index})"

    def out(self, offset: int) -> Port:
        """The outgoing port of this node at `offset`."""
        return Port(self, Direction.OUTGOING, offset)

    def inp(self, offset: int) -> Port:
        """The incoming port of this node at `offset`."""
        return Port(self, Direction.INCOMING, offset)


@dataclass(frozen=True, slots=True)
class Port:
    """A numbered attachment point on a node."""

    node: Node
    direction: Direction
    offset: int

    def __str__(self) -> str:
        arrow = "in" if self.direction is Direction.INCOMING else "out"
        return f"{self.node}.{arrow}{self.offset}"


@dataclass(frozen=True, slots=True)
class Edge:
    """A snapshot of an edge between an outgoing and an incoming port.

    Port offsets may shift when ports are inserted or removed; the `id` stays
    the same, so use it (through `PortGraph.get_edge`) to refresh a snapshot.
    """

    id: int
    source: Port
    target: Port
    kind: EdgeKind

    def __str__(self) -> str:
        return f"{self.source} -> {self.target} ({self.kind})"


@dataclass(slots=True)
class _Slot:
    generation: int = 0
    alive: bool = False
    inputs: list[list[int]] = field(default_factory=list)
    outputs: list[list[int]] = field(default_factory=list)

    def ports(self, direction: Direction) -> list[list[int]]:
        return self.inputs if direction is Direction.INCOMING else self.outputs


@dataclass(slots=True)
class _EdgeEntry:
    source: Node
    source_offset: int
    target: Node
    target_offset: int
    kind: EdgeKind


class PortGraph:
    """Arena-backed port multigraph.

    All mutations validate their arguments before changing anything, so a
    raised `StructuralError` leaves the graph untouched.
    """

    def __init__(self) -> None:
        self._slots: list[_Slot] = []
        self._free: list[int] = []
        self._edges: dict[int, _EdgeEntry] = {}
        self._next_edge_id = 0
        self._node_count = 0

    # =========================================================================
    # Nodes
    # =========================================================================

    def add_node(self, num_inputs: int = 0, num_outputs: int = 0) -> Node:
        """Allocate a node with the requested number of ports.

        Args:
            num_inputs: Number of incoming ports.
            num_outputs: Number of outgoing ports.

        Returns:
            The new node identity.

        """
        if num_inputs < 0 or num_outputs < 0:
            msg = f"Port counts must be non-negative, got ({num_inputs}, {num_outputs})"
            raise StructuralError(msg)
        if self._free:
            index = self._free.pop()
            slot = self._slots[index]
        else:
            index = len(self._slots)
            slot = _Slot()
            self._slots.append(slot)
        slot.alive = True
        slot.inputs = [[] for _ in range(num_inputs)]
        slot.outputs = [[] for _ in range(num_outputs)]
        self._node_count += 1
        return Node(index, slot.generation)

    def remove_node(self, node: Node) -> list[Edge]:
        """Remove a node and every edge touching it.

        Returns:
            Snapshots of the edges that were removed.

        """
        slot = self._slot(node)
        edge_ids = {eid for port_edges in (*slot.inputs, *slot.outputs) for eid in port_edges}
        removed = [self._snapshot(eid) for eid in sorted(edge_ids)]
        for eid in sorted(edge_ids):
            self._unlink(eid)
        slot.alive = False
        slot.generation += 1
        slot.inputs = []
        slot.outputs = []
        self._free.append(node.index)
        self._node_count -= 1
        return removed

    def contains_node(self, node: Node) -> bool:
        """Check whether `node` is a live identity of this graph."""
        if node.index < 0 or node.index >= len(self._slots):
            return False
        slot = self._slots[node.index]
        return slot.alive and slot.generation == node.generation

    def nodes(self) -> Iterator[Node]:
        """Iterate over live nodes in arena order."""
        for index, slot in enumerate(self._slots):
            if slot.alive:
                yield Node(index, slot.generation)

    @property
    def node_count(self) -> int:
        """Number of live nodes."""
        return self._node_count

    @property
    def edge_count(self) -> int:
        """Number of edges."""
        return len(self._edges)

    # =========================================================================
    # Ports
    # =========================================================================

    def num_ports(self, node: Node, direction: Direction) -> int:
        """Number of ports of `node` in `direction`."""
        return len(self._slot(node).ports(direction))

    def ports(self, node: Node, direction: Direction) -> list[Port]:
        """All ports of `node` in `direction`, in offset order."""
        return [Port(node, direction, i) for i in range(self.num_ports(node, direction))]

    def set_num_ports(self, node: Node, num_inputs: int, num_outputs: int) -> None:
        """Grow or shrink the port lists of a node.

        Ports are added or dropped at the end. Dropping a linked port fails.

        Raises:
            StructuralError: If a port that would be dropped still has edges.

        """
        slot = self._slot(node)
        for direction, new_count in ((Direction.INCOMING, num_inputs), (Direction.OUTGOING, num_outputs)):
            if new_count < 0:
                msg = f"Port counts must be non-negative, got {new_count}"
                raise StructuralError(msg, node=node)
            for offset, port_edges in enumerate(slot.ports(direction)[new_count:], start=new_count):
                if port_edges:
                    msg = f"Cannot drop linked {direction} port {offset}"
                    raise StructuralError(msg, node=node)
        for direction, new_count in ((Direction.INCOMING, num_inputs), (Direction.OUTGOING, num_outputs)):
            port_list = slot.ports(direction)
            del port_list[new_count:]
            port_list.extend([] for _ in range(new_count - len(port_list)))

    def insert_port(self, node: Node, direction: Direction, offset: int) -> Port:
        """Insert an unlinked port at `offset`, shifting higher ports up by one."""
        slot = self._slot(node)
        port_list = slot.ports(direction)
        if offset < 0 or offset > len(port_list):
            msg = f"Cannot insert {direction} port at offset {offset} (node has {len(port_list)})"
            raise StructuralError(msg, node=node)
        port_list.insert(offset, [])
        for higher in port_list[offset + 1 :]:
            for eid in higher:
                self._shift(eid, node, direction, +1)
        return Port(node, direction, offset)

    def remove_port(self, node: Node, direction: Direction, offset: int) -> None:
        """Remove an unlinked port, shifting higher ports down by one.

        Raises:
            StructuralError: If the port is out of range or still linked.

        """
        slot = self._slot(node)
        port_list = slot.ports(direction)
        self._check_offset(node, direction, offset)
        if port_list[offset]:
            msg = f"Cannot remove linked {direction} port {offset}"
            raise StructuralError(msg, node=node)
        del port_list[offset]
        for higher in port_list[offset:]:
            for eid in higher:
                self._shift(eid, node, direction, -1)

    # =========================================================================
    # Edges
    # =========================================================================

    def connect(self, source: Port, target: Port, kind: EdgeKind) -> Edge:
        """Add an edge from an outgoing port to an incoming port.

        Args:
            source: The outgoing port.
            target: The incoming port.
            kind: The kind of the new edge.

        Returns:
            Snapshot of the new edge.

        Raises:
            StructuralError: If the directions are incompatible or a port does not exist.

        """
        if source.direction is not Direction.OUTGOING or target.direction is not Direction.INCOMING:
            msg = f"Edges must go from an outgoing to an incoming port, got {source} -> {target}"
            raise StructuralError(msg, node=source.node)
        self._check_offset(source.node, source.direction, source.offset)
        self._check_offset(target.node, target.direction, target.offset)

        eid = self._next_edge_id
        self._next_edge_id += 1
        self._edges[eid] = _EdgeEntry(source.node, source.offset, target.node, target.offset, kind)
        self._slots[source.node.index].outputs[source.offset].append(eid)
        self._slots[target.node.index].inputs[target.offset].append(eid)
        return Edge(eid, source, target, kind)

    def disconnect(self, edge: Edge | int) -> Edge:
        """Remove an edge.

        Returns:
            Snapshot of the edge as it was before removal.

        Raises:
            StructuralError: If the edge does not exist.

        """
        eid = edge if isinstance(edge, int) else edge.id
        if eid not in self._edges:
            msg = f"Edge {eid} does not exist"
            raise StructuralError(msg)
        snapshot = self._snapshot(eid)
        self._unlink(eid)
        return snapshot

    def get_edge(self, edge_id: int) -> Edge:
        """Current snapshot of an edge."""
        if edge_id not in self._edges:
            msg = f"Edge {edge_id} does not exist"
            raise StructuralError(msg)
        return self._snapshot(edge_id)

    def port_edges(self, port: Port) -> list[Edge]:
        """Edges attached to a port, in insertion order."""
        self._check_offset(port.node, port.direction, port.offset)
        slot = self._slots[port.node.index]
        return [self._snapshot(eid) for eid in slot.ports(port.direction)[port.offset]]

    def linked_ports(self, port: Port) -> list[Port]:
        """The ports at the other end of each edge attached to `port`."""
        if port.direction is Direction.OUTGOING:
            return [edge.target for edge in self.port_edges(port)]
        return [edge.source for edge in self.port_edges(port)]

    def edges(
        self,
        node: Node,
        direction: Direction | None = None,
        kind: EdgeKind | None = None,
    ) -> list[Edge]:
        """Edges incident to `node`, optionally filtered.

        Incoming edges come first (when both directions are requested), each
        direction ordered by port offset and then insertion order. A self-loop
        shows up once per direction.
        """
        slot = self._slot(node)
        directions = (Direction.INCOMING, Direction.OUTGOING) if direction is None else (direction,)
        result: list[Edge] = []
        for d in directions:
            for port_edges in slot.ports(d):
                for eid in port_edges:
                    entry = self._edges[eid]
                    if kind is None or entry.kind is kind:
                        result.append(self._snapshot(eid))
        return result

    def all_edges(self) -> Iterator[Edge]:
        """Iterate over every edge in creation order."""
        for eid in list(self._edges):
            yield self._snapshot(eid)

    def neighbours(
        self,
        node: Node,
        direction: Direction | None = None,
        kind: EdgeKind | None = None,
    ) -> list[Node]:
        """Nodes adjacent to `node` (with repetition for parallel edges)."""
        result: list[Node] = []
        for edge in self.edges(node, direction, kind):
            if direction is Direction.INCOMING:
                result.append(edge.source.node)
            elif direction is Direction.OUTGOING:
                result.append(edge.target.node)
            else:
                result.append(edge.source.node if edge.target.node == node else edge.target.node)
        return result

    def check_integrity(self) -> list[str]:
        """Report edges that reference dead nodes or missing ports.

        Mutations through this class cannot produce such edges; the check exists
        so consumers can verify structures assembled by other means.
        """
        problems: list[str] = []
        for eid, entry in self._edges.items():
            for node, direction, offset in (
                (entry.source, Direction.OUTGOING, entry.source_offset),
                (entry.target, Direction.INCOMING, entry.target_offset),
            ):
                if not self.contains_node(node):
                    problems.append(f"Edge {eid} references removed node {node}")
                elif offset >= self.num_ports(node, direction) or eid not in self._slot(node).ports(direction)[offset]:
                    problems.append(f"Edge {eid} is not attached to {direction} port {offset} of {node}")
        return problems

    # =========================================================================
    # Internals
    # =========================================================================

    def _slot(self, node: Node) -> _Slot:
        if not self.contains_node(node):
            msg = f"{node} is not in the graph (removed or from another graph)"
            raise StructuralError(msg, node=node)
        return self._slots[node.index]

    def _check_offset(self, node: Node, direction: Direction, offset: int) -> None:
        count = self.num_ports(node, direction)
        if offset < 0 or offset >= count:
            msg = f"No {direction} port {offset} (node has {count})"
            raise StructuralError(msg, node=node)

    def _snapshot(self, eid: int) -> Edge:
        entry = self._edges[eid]
        return Edge(
            eid,
            Port(entry.source, Direction.OUTGOING, entry.source_offset),
            Port(entry.target, Direction.INCOMING, entry.target_offset),
            entry.kind,
        )

    def _unlink(self, eid: int) -> None:
        entry = self._edges.pop(eid)
        self._slots[entry.source.index].outputs[entry.source_offset].remove(eid)
        self._slots[entry.target.index].inputs[entry.target_offset].remove(eid)

    def _shift(self, eid: int, node: Node, direction: Direction, delta: int) -> None:
        entry = self._edges[eid]
        if direction is Direction.OUTGOING and entry.source == node:
            entry.source_offset += delta
        if direction is Direction.INCOMING and entry.target == node:
            entry.target_offset += delta
