"""Tests for building and editing a Hugr."""

from collections.abc import Callable, Sequence

import pytest

from hugr_core import (
    BOOL_T,
    DFG,
    QB_T,
    USIZE_T,
    Const,
    Direction,
    EdgeKind,
    ExtensionRegistry,
    FuncDefn,
    FunctionType,
    Hugr,
    Input,
    LinearityViolation,
    LoadConstant,
    Module,
    Node,
    Noop,
    Output,
    PolyFuncType,
    StructuralError,
    Type,
    TypeMismatch,
    const_usize,
)

type DfgFactory = Callable[[Sequence[Type], Sequence[Type]], tuple[Hugr, Node, Node]]


class TestHugrNodes:
    """Tests for adding, moving and removing nodes."""

    def test_default_root_is_module(self) -> None:
        hugr = Hugr()
        assert isinstance(hugr.get_op(hugr.root), Module)
        assert hugr.node_count == 1

    def test_ports_follow_op(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T, QB_T], [QB_T])
        assert hugr.num_ports(inp, Direction.OUTGOING) == 3
        assert hugr.num_ports(out, Direction.INCOMING) == 2
        assert hugr.children(hugr.root) == [inp, out]
        assert hugr.get_io(hugr.root) == (inp, out)

    def test_add_node_before(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T])
        noop = hugr.add_node_before(out, Noop(USIZE_T))
        assert hugr.children(hugr.root) == [inp, noop, out]

    def test_add_node_before_detached(self) -> None:
        hugr = Hugr()
        loose = hugr.add_node(Noop(USIZE_T))
        with pytest.raises(StructuralError, match="no parent"):
            hugr.add_node_before(loose, Noop(USIZE_T))

    def test_set_parent_and_detach(self) -> None:
        hugr = Hugr()
        func = hugr.add_node(FuncDefn("f", PolyFuncType.mono(FunctionType.endo([USIZE_T]))))
        assert hugr.get_parent(func) is None

        hugr.set_parent(func, hugr.root)
        assert hugr.get_parent(func) == hugr.root

        assert hugr.detach(func) == hugr.root
        assert hugr.get_parent(func) is None

    def test_root_cannot_be_reparented(self) -> None:
        hugr = Hugr()
        other = hugr.add_node(Module())
        with pytest.raises(StructuralError, match="root"):
            hugr.set_parent(hugr.root, other)

    def test_move_before(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([], [])
        a = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        b = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        hugr.move_before(b, a)
        assert hugr.children(hugr.root) == [inp, out, b, a]

    def test_move_into_own_subtree(self) -> None:
        hugr = Hugr()
        outer = hugr.add_node_with_parent(hugr.root, FuncDefn("f", PolyFuncType.mono(FunctionType())))
        inner = hugr.add_node_with_parent(outer, Input([]))
        nested = hugr.add_node_with_parent(outer, DFG())
        deep = hugr.add_node_with_parent(nested, Input([]))
        with pytest.raises(StructuralError, match="cycle"):
            hugr.move_before(outer, deep)
        assert hugr.children(outer) == [inner, nested]

    def test_remove_node_with_children(self) -> None:
        hugr = Hugr()
        func = hugr.add_node_with_parent(hugr.root, FuncDefn("f", PolyFuncType.mono(FunctionType())))
        hugr.add_node_with_parent(func, Input([]))
        with pytest.raises(StructuralError, match="still has children"):
            hugr.remove_node(func)

    def test_remove_subtree(self) -> None:
        hugr = Hugr()
        func = hugr.add_node_with_parent(hugr.root, FuncDefn("f", PolyFuncType.mono(FunctionType.endo([USIZE_T]))))
        inp = hugr.add_node_with_parent(func, Input([USIZE_T]))
        out = hugr.add_node_with_parent(func, Output([USIZE_T]))
        hugr.connect(inp, 0, out, 0)

        hugr.remove_subtree(func)

        assert hugr.node_count == 1
        assert hugr.edge_count == 0
        assert not hugr.contains_node(inp)

    def test_removed_node_is_rejected(self, make_dfg: DfgFactory) -> None:
        hugr, _, out = make_dfg([], [])
        noop = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        hugr.remove_node(noop)
        replacement = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        assert replacement.index == noop.index
        with pytest.raises(StructuralError, match="not in this Hugr"):
            hugr.connect(noop, 0, out, 0)

    def test_replace_op_resizes_ports(self, make_dfg: DfgFactory) -> None:
        hugr, inp, _ = make_dfg([USIZE_T], [USIZE_T])
        old = hugr.replace_op(inp, Input([USIZE_T, BOOL_T]))
        assert old == Input([USIZE_T])
        assert hugr.num_ports(inp, Direction.OUTGOING) == 3

    def test_replace_op_refuses_to_drop_linked_port(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T, BOOL_T], [BOOL_T])
        hugr.connect(inp, 1, out, 0)
        with pytest.raises(StructuralError):
            hugr.replace_op(inp, Input([]))

    def test_metadata(self) -> None:
        hugr = Hugr()
        hugr.set_metadata(hugr.root, "name", "main")
        assert hugr.get_metadata(hugr.root, "name") == "main"
        assert hugr.get_metadata(hugr.root, "missing", 7) == 7
        assert hugr.metadata(hugr.root) == {"name": "main"}


class TestHugrConnect:
    """Tests for the checks performed when connecting ports."""

    def test_value_edge(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T])
        edge = hugr.connect(inp, 0, out, 0)
        assert edge.kind is EdgeKind.VALUE
        assert hugr.linked_ports(out, Direction.INCOMING, 0) == [inp.out(0)]

    def test_missing_port(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T])
        with pytest.raises(StructuralError, match="has no incoming port 5"):
            hugr.connect(inp, 0, out, 5)

    def test_kind_mismatch(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T])
        # Port 1 of the Input is its order port
        with pytest.raises(StructuralError, match="Cannot connect order port"):
            hugr.connect(inp, 1, out, 0)

    def test_type_mismatch(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [BOOL_T])
        with pytest.raises(TypeMismatch) as exc_info:
            hugr.connect(inp, 0, out, 0)
        assert exc_info.value.expected == BOOL_T
        assert exc_info.value.actual == USIZE_T
        assert hugr.edge_count == 0

    def test_input_already_linked(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T, USIZE_T], [USIZE_T])
        hugr.connect(inp, 0, out, 0)
        with pytest.raises(StructuralError, match="already linked"):
            hugr.connect(inp, 1, out, 0)

    def test_copyable_output_fans_out(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T, USIZE_T])
        hugr.connect(inp, 0, out, 0)
        hugr.connect(inp, 0, out, 1)
        assert len(hugr.linked_ports(inp, Direction.OUTGOING, 0)) == 2

    def test_linear_output_used_twice(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([QB_T], [QB_T, QB_T])
        hugr.connect(inp, 0, out, 0)
        with pytest.raises(LinearityViolation):
            hugr.connect(inp, 0, out, 1)
        assert hugr.edge_count == 1

    def test_order_edges(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([], [])
        a = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        edge = hugr.add_other_edge(inp, a)
        hugr.add_other_edge(a, out)
        assert edge.kind is EdgeKind.ORDER
        assert edge.source == inp.out(0)
        assert edge.target == a.inp(1)

    def test_order_edge_into_input(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([], [])
        with pytest.raises(StructuralError, match="no outgoing order port"):
            hugr.add_other_edge(out, inp)

    def test_static_edge(self) -> None:
        hugr = Hugr(DFG([], [USIZE_T]))
        hugr.add_node_with_parent(hugr.root, Input([]))
        out = hugr.add_node_with_parent(hugr.root, Output([USIZE_T]))
        const = hugr.add_node_with_parent(hugr.root, Const(const_usize(1), USIZE_T))
        load = hugr.add_node_with_parent(hugr.root, LoadConstant(USIZE_T))

        edge = hugr.connect(const, 0, load, 0)
        hugr.connect(load, 0, out, 0)

        assert edge.kind is EdgeKind.STATIC
        with pytest.raises(StructuralError, match="already linked"):
            hugr.connect(const, 0, load, 0)

    def test_disconnect(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([QB_T], [QB_T])
        edge = hugr.connect(inp, 0, out, 0)
        hugr.disconnect(edge)
        assert hugr.edge_count == 0
        hugr.connect(inp, 0, out, 0)


class TestHugrQueries:
    """Tests for traversal helpers."""

    def test_descendants_and_ancestors(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([], [])
        inner = hugr.add_node_with_parent(hugr.root, DFG())
        inner_in = hugr.add_node_with_parent(inner, Input([]))
        assert hugr.descendants(hugr.root) == [hugr.root, inp, out, inner, inner_in]
        assert hugr.ancestors(inner_in) == [inner, hugr.root]
        assert hugr.is_ancestor(hugr.root, inner_in)

    def test_topological_children(self, make_dfg: DfgFactory) -> None:
        hugr, inp, out = make_dfg([USIZE_T], [USIZE_T])
        second = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        first = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        hugr.connect(inp, 0, first, 0)
        hugr.connect(first, 0, second, 0)
        hugr.connect(second, 0, out, 0)

        order = hugr.topological_children(hugr.root)

        assert order.index(inp) < order.index(first) < order.index(second) < order.index(out)

    def test_topological_children_cycle(self, make_dfg: DfgFactory) -> None:
        hugr, _, _ = make_dfg([], [])
        a = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        b = hugr.add_node_with_parent(hugr.root, Noop(USIZE_T))
        hugr.connect(a, 0, b, 0)
        hugr.connect(b, 0, a, 0)
        with pytest.raises(StructuralError, match="cycle"):
            hugr.topological_children(hugr.root)

    def test_signature(self, make_dfg: DfgFactory, registry: ExtensionRegistry) -> None:
        hugr, _, _ = make_dfg([USIZE_T], [BOOL_T])
        node = hugr.add_node_with_parent(hugr.root, registry.instantiate_op("arith.conv", "IsZero"))
        assert hugr.signature(node).input == FunctionType([USIZE_T], [BOOL_T]).input
        assert hugr.signature(hugr.root) == FunctionType([USIZE_T], [BOOL_T])
