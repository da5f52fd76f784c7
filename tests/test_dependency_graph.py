"""Tests for DependencyGraph and graph algorithms."""

import pytest

from hugr_core._graph import DependencyGraph, reachable, topological_sort


class TestTopologicalSort:
    """Tests for the topological_sort algorithm."""

    def test_empty_graph(self) -> None:
        assert topological_sort({}) == []

    def test_linear_chain(self) -> None:
        # a feeds b feeds c
        result = topological_sort({"a": ["b"], "b": ["c"], "c": []})
        assert result == ["a", "b", "c"]

    def test_diamond_dependency(self) -> None:
        result = topological_sort({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})
        assert result[0] == "a"
        assert result[-1] == "d"

    def test_ties_follow_mapping_order(self) -> None:
        assert topological_sort({"x": [], "a": [], "m": []}) == ["x", "a", "m"]

    def test_cycle_detection(self) -> None:
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["b"], "b": ["c"], "c": ["a"]})

    def test_self_loop_detection(self) -> None:
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["a"]})


class TestReachable:
    """Tests for the reachable helper."""

    def test_excludes_starts(self) -> None:
        assert reachable({"a": ["b"], "b": ["c"], "c": []}, ["a"]) == {"b", "c"}

    def test_start_revisited_through_cycle(self) -> None:
        assert reachable({"a": ["b"], "b": ["a"]}, ["a"]) == {"a", "b"}

    def test_unknown_start(self) -> None:
        assert reachable({"a": []}, ["z"]) == set()


class TestDependencyGraphConstruction:
    """Tests for DependencyGraph construction."""

    def test_empty_graph(self) -> None:
        graph = DependencyGraph.from_edges([])
        assert graph.nodes == ()
        assert len(graph) == 0

    def test_nodes_keep_insertion_order(self) -> None:
        graph = DependencyGraph.from_edges([("b", "a")], nodes=["c"])
        assert graph.nodes == ("c", "b", "a")

    def test_duplicate_edges_are_merged(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b"), ("a", "b")])
        assert graph.successors("a") == ("b",)

    def test_contains(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b")])
        assert "a" in graph
        assert "c" not in graph


class TestDependencyGraphQueries:
    """Tests for DependencyGraph query methods."""

    def test_predecessors_and_successors(self) -> None:
        graph = DependencyGraph.from_edges([("a", "c"), ("b", "c")])
        assert graph.predecessors("c") == ("a", "b")
        assert graph.successors("a") == ("c",)
        assert graph.successors("c") == ()

    def test_nonexistent_node(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b")])
        assert graph.predecessors("nonexistent") == ()

    def test_ancestors_and_descendants(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
        assert graph.ancestors("d") == frozenset({"a", "b", "c"})
        assert graph.descendants("a") == frozenset({"b", "c", "d"})
        assert graph.descendants("d") == frozenset()


class TestDependencyGraphTopologicalOrder:
    """Tests for topological ordering of the graph."""

    def test_topological_order_respects_dependencies(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
        order = graph.topological_order()
        assert order.index("a") < order.index("b") < order.index("d")
        assert order.index("c") < order.index("d")

    def test_has_cycle(self) -> None:
        assert DependencyGraph.from_edges([("a", "b")]).has_cycle() is False
        assert DependencyGraph.from_edges([("a", "b"), ("b", "a")]).has_cycle() is True
