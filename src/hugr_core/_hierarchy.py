"""Containment tree over the nodes of a port graph.

Children of a node are kept in an intrusive doubly linked list (first/last
child per parent, next/prev per sibling), so attaching, inserting before a
sibling and detaching are all constant time. The hierarchy only stores node
identities; the port graph owns the nodes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._errors import StructuralError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._graph import Node


class Hierarchy:
    """Parent/child relation with ordered children."""

    def __init__(self) -> None:
        self._parent: dict[Node, Node] = {}
        self._first_child: dict[Node, Node] = {}
        self._last_child: dict[Node, Node] = {}
        self._next: dict[Node, Node] = {}
        self._prev: dict[Node, Node] = {}
        self._num_children: dict[Node, int] = {}

    # =========================================================================
    # Mutation
    # =========================================================================

    def push_child(self, node: Node, parent: Node) -> None:
        """Attach `node` as the last child of `parent`.

        Raises:
            StructuralError: If `node` already has a parent or the attachment
                would create a cycle.

        """
        self._check_attachable(node, parent)
        last = self._last_child.get(parent)
        if last is None:
            self._first_child[parent] = node
        else:
            self._next[last] = node
            self._prev[node] = last
        self._last_child[parent] = node
        self._parent[node] = parent
        self._num_children[parent] = self._num_children.get(parent, 0) + 1

    def push_front_child(self, node: Node, parent: Node) -> None:
        """Attach `node` as the first child of `parent`."""
        first = self._first_child.get(parent)
        if first is None:
            self.push_child(node, parent)
        else:
            self.insert_before(node, first)

    def insert_before(self, node: Node, sibling: Node) -> None:
        """Attach `node` immediately before `sibling`, under the same parent.

        Raises:
            StructuralError: If `sibling` has no parent, `node` is already
                attached, or the attachment would create a cycle.

        """
        parent = self._parent.get(sibling)
        if parent is None:
            msg = f"Cannot insert before {sibling}: it has no parent"
            raise StructuralError(msg, node=sibling)
        self._check_attachable(node, parent)
        prev = self._prev.get(sibling)
        if prev is None:
            self._first_child[parent] = node
        else:
            self._next[prev] = node
            self._prev[node] = prev
        self._next[node] = sibling
        self._prev[sibling] = node
        self._parent[node] = parent
        self._num_children[parent] += 1

    def insert_after(self, node: Node, sibling: Node) -> None:
        """Attach `node` immediately after `sibling`, under the same parent."""
        nxt = self._next.get(sibling)
        if nxt is not None:
            self.insert_before(node, nxt)
            return
        parent = self._parent.get(sibling)
        if parent is None:
            msg = f"Cannot insert after {sibling}: it has no parent"
            raise StructuralError(msg, node=sibling)
        self.push_child(node, parent)

    def detach(self, node: Node) -> Node | None:
        """Detach `node` (with its subtree) from its parent.

        Returns:
            The former parent, or None if the node had none.

        """
        parent = self._parent.pop(node, None)
        if parent is None:
            return None
        prev = self._prev.pop(node, None)
        nxt = self._next.pop(node, None)
        if prev is None:
            if nxt is None:
                del self._first_child[parent]
            else:
                self._first_child[parent] = nxt
        else:
            if nxt is None:
                del self._next[prev]
            else:
                self._next[prev] = nxt
        if nxt is None:
            if prev is None:
                del self._last_child[parent]
            else:
                self._last_child[parent] = prev
        else:
            if prev is None:
                del self._prev[nxt]
            else:
                self._prev[nxt] = prev
        self._num_children[parent] -= 1
        if self._num_children[parent] == 0:
            del self._num_children[parent]
        return parent

    def forget(self, node: Node) -> None:
        """Drop every trace of a childless node (used when the node is removed)."""
        if self.has_children(node):
            msg = f"Cannot forget {node}: it still has children"
            raise StructuralError(msg, node=node)
        self.detach(node)

    # =========================================================================
    # Queries
    # =========================================================================

    def parent(self, node: Node) -> Node | None:
        """The parent of `node`, or None."""
        return self._parent.get(node)

    def children(self, node: Node) -> Iterator[Node]:
        """Iterate over the children of `node` in order."""
        child = self._first_child.get(node)
        while child is not None:
            yield child
            child = self._next.get(child)

    def first_child(self, node: Node) -> Node | None:
        """First child of `node`, or None."""
        return self._first_child.get(node)

    def last_child(self, node: Node) -> Node | None:
        """Last child of `node`, or None."""
        return self._last_child.get(node)

    def next_sibling(self, node: Node) -> Node | None:
        """Sibling following `node`, or None."""
        return self._next.get(node)

    def prev_sibling(self, node: Node) -> Node | None:
        """Sibling preceding `node`, or None."""
        return self._prev.get(node)

    def num_children(self, node: Node) -> int:
        """Number of direct children of `node`."""
        return self._num_children.get(node, 0)

    def has_children(self, node: Node) -> bool:
        """Whether `node` has at least one child."""
        return node in self._first_child

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Iterate from the parent of `node` up to the top of its tree."""
        current = self._parent.get(node)
        while current is not None:
            yield current
            current = self._parent.get(current)

    def is_ancestor(self, ancestor: Node, node: Node) -> bool:
        """Whether `ancestor` strictly contains `node`."""
        return any(a == ancestor for a in self.ancestors(node))

    def contains(self, ancestor: Node, node: Node) -> bool:
        """Whether `ancestor` is `node` or strictly contains it."""
        return ancestor == node or self.is_ancestor(ancestor, node)

    def descendants(self, node: Node) -> Iterator[Node]:
        """Iterate over `node` and everything below it, in pre-order."""
        stack = [node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(self.children(current))))

    def top(self, node: Node) -> Node:
        """The topmost ancestor of `node` (the node itself if it has no parent)."""
        current = node
        while (parent := self._parent.get(current)) is not None:
            current = parent
        return current

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_attachable(self, node: Node, parent: Node) -> None:
        if node in self._parent:
            msg = f"{node} already has parent {self._parent[node]}"
            raise StructuralError(msg, node=node)
        if node == parent or self.is_ancestor(node, parent):
            msg = f"Attaching {node} under {parent} would create a cycle"
            raise StructuralError(msg, node=node)
