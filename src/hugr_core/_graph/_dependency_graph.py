"""Immutable dependency view over a set of sibling nodes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ._algorithms import reachable, topological_sort


@dataclass(frozen=True, slots=True)
class DependencyGraph[T]:
    """A snapshot of "must run before" relations between nodes.

    Built from the value and order edges between the children of one region,
    it answers the ordering questions the validator and subgraph views need
    without touching the mutable substrate.

    - successors[a] = {b} means "a feeds b" (b must come after a)
    - predecessors[b] = {a} is the reverse relation

    Node order is the insertion order passed to `from_edges`, which keeps
    `topological_order` deterministic.

    Attributes:
        _successors: Mapping from node to the nodes it feeds.
        _predecessors: Mapping from node to the nodes feeding it.

    """

    _successors: dict[T, tuple[T, ...]] = field(default_factory=dict)
    _predecessors: dict[T, tuple[T, ...]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[T, T]], nodes: Iterable[T] = ()) -> DependencyGraph[T]:
        """Build a graph from `(source, target)` pairs.

        Args:
            edges: Pairs meaning "source feeds target". Duplicates are merged.
            nodes: Extra nodes to include even if no edge touches them.

        Returns:
            A new DependencyGraph instance.

        Example:
            >>> graph = DependencyGraph.from_edges([("a", "b"), ("b", "c")])
            >>> graph.predecessors("b")
            ('a',)

        """
        successors: dict[T, dict[T, None]] = {}
        predecessors: dict[T, dict[T, None]] = {}
        for node in nodes:
            successors.setdefault(node, {})
            predecessors.setdefault(node, {})
        for src, dst in edges:
            successors.setdefault(src, {})[dst] = None
            predecessors.setdefault(dst, {})[src] = None
            successors.setdefault(dst, {})
            predecessors.setdefault(src, {})

        return cls(
            _successors={k: tuple(v) for k, v in successors.items()},
            _predecessors={k: tuple(v) for k, v in predecessors.items()},
        )

    @property
    def nodes(self) -> tuple[T, ...]:
        """All nodes in insertion order."""
        return tuple(self._successors)

    def successors(self, node: T) -> tuple[T, ...]:
        """Nodes fed directly by `node`."""
        return self._successors.get(node, ())

    def predecessors(self, node: T) -> tuple[T, ...]:
        """Nodes feeding `node` directly."""
        return self._predecessors.get(node, ())

    def descendants(self, node: T) -> frozenset[T]:
        """All nodes transitively fed by `node`."""
        return frozenset(reachable(self._successors, [node]))

    def ancestors(self, node: T) -> frozenset[T]:
        """All nodes transitively feeding `node`."""
        return frozenset(reachable(self._predecessors, [node]))

    def topological_order(self) -> list[T]:
        """Return nodes with every source before the nodes it feeds.

        Raises:
            ValueError: If the graph contains a cycle.

        """
        return topological_sort(self._successors)

    def has_cycle(self) -> bool:
        """Check if the graph contains a cycle."""
        try:
            self.topological_order()
        except ValueError:
            return True
        return False

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._successors)

    def __contains__(self, node: object) -> bool:
        """Check if a node is in the graph."""
        return node in self._successors
