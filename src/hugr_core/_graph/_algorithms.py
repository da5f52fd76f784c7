"""Graph algorithms shared by the substrate, validator and subgraph views."""

from collections import deque
from collections.abc import Collection, Hashable, Iterable, Mapping


def topological_sort[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T]:
    """Sort a graph topologically (sources before the nodes they feed).

    Ties are broken by the iteration order of `successors`, so the result is
    deterministic for a deterministic input mapping.

    Args:
        successors: Mapping from node to the nodes it has edges into.
            Every node must appear as a key, even if it has no successors.

    Returns:
        List of nodes in topological order.

    Raises:
        ValueError: If the graph contains a cycle.

    Example:
        >>> topological_sort({"in": ["op"], "op": ["out"], "out": []})
        ['in', 'op', 'out']

    """
    indegree: dict[T, int] = dict.fromkeys(successors, 0)
    for targets in successors.values():
        for target in targets:
            indegree[target] = indegree.get(target, 0) + 1

    queue = deque(node for node, deg in indegree.items() if deg == 0)
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for target in successors.get(node, ()):
            indegree[target] -= 1
            if indegree[target] == 0:
                queue.append(target)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise ValueError(msg)

    return order


def reachable[T: Hashable](successors: Mapping[T, Collection[T]], starts: Iterable[T]) -> set[T]:
    """Collect every node reachable from `starts` (excluding the starts themselves unless revisited)."""
    visited: set[T] = set()
    stack = [target for start in starts for target in successors.get(start, ())]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        stack.extend(successors.get(current, ()))
    return visited

