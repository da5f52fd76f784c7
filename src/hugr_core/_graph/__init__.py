"""Graph substrate.

This module contains:
- PortGraph: the mutable node/port/edge arena underlying a Hugr
- Node, Port, Edge, Direction, EdgeKind: identities and edge metadata
- DependencyGraph[T]: an immutable ordering view used for traversals
- topological_sort: Kahn's algorithm over a successor mapping
"""

from ._algorithms import reachable, topological_sort
from ._dependency_graph import DependencyGraph
from ._port_graph import Direction, Edge, EdgeKind, Node, Port, PortGraph

__all__ = [
    "DependencyGraph",
    "Direction",
    "Edge",
    "EdgeKind",
    "Node",
    "Port",
    "PortGraph",
    "reachable",
    "topological_sort",
]
