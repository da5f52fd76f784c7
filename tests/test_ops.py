"""Tests for operation port layouts, tags and constant values."""

import pytest

from hugr_core import (
    BOOL_T,
    CFG,
    DFG,
    QB_T,
    USIZE_T,
    Call,
    Conditional,
    Const,
    DataflowBlock,
    Direction,
    EdgeKind,
    ExitBlock,
    ExtensionSet,
    ExtensionValue,
    FuncDefn,
    FunctionType,
    Input,
    Lift,
    LoadConstant,
    Module,
    Noop,
    OpTag,
    Output,
    PolyFuncType,
    SignatureError,
    SumType,
    SumValue,
    Tag,
    TailLoop,
    TupleType,
    TupleValue,
    TypeMismatch,
    TypeRow,
    TypeTypeArg,
    TypeTypeParam,
    Variable,
    const_usize,
    typecheck_value,
)


class TestPortLayout:
    """Tests for the [values][static][other] port layout."""

    def test_dataflow_leaf(self) -> None:
        op = Noop(USIZE_T)
        assert op.port_count(Direction.INCOMING) == 2
        assert op.port_kind(Direction.INCOMING, 0).edge_kind is EdgeKind.VALUE
        assert op.port_kind(Direction.INCOMING, 1).edge_kind is EdgeKind.ORDER
        assert op.port_kind(Direction.INCOMING, 2) is None
        assert op.other_port(Direction.OUTGOING) == 1

    def test_input_has_only_outgoing_order(self) -> None:
        op = Input([USIZE_T, QB_T])
        assert op.port_count(Direction.INCOMING) == 0
        assert op.port_count(Direction.OUTGOING) == 3
        assert op.port_kind(Direction.OUTGOING, 1).type == QB_T
        assert op.port_kind(Direction.OUTGOING, 2).edge_kind is EdgeKind.ORDER

    def test_output_has_only_incoming_order(self) -> None:
        op = Output([BOOL_T])
        assert op.port_count(Direction.INCOMING) == 2
        assert op.port_count(Direction.OUTGOING) == 0

    def test_static_port_follows_values(self) -> None:
        op = LoadConstant(USIZE_T)
        assert op.static_port(Direction.INCOMING) == 0
        kind = op.port_kind(Direction.INCOMING, 0)
        assert kind.edge_kind is EdgeKind.STATIC
        assert kind.type == USIZE_T
        assert op.port_kind(Direction.OUTGOING, 0).type == USIZE_T

    def test_const_and_function_static_outputs(self) -> None:
        const = Const(const_usize(3), USIZE_T)
        assert const.port_count(Direction.OUTGOING) == 1
        assert const.port_kind(Direction.OUTGOING, 0).edge_kind is EdgeKind.STATIC
        func = FuncDefn("main", PolyFuncType.mono(FunctionType.endo([USIZE_T])))
        assert func.port_kind(Direction.OUTGOING, 0).type == func.signature

    def test_call_static_input_after_values(self) -> None:
        poly = PolyFuncType((TypeTypeParam(),), FunctionType.endo([Variable(0)]))
        call = Call.try_new(poly, [TypeTypeArg(QB_T)])
        assert call.instantiation == FunctionType.endo([QB_T])
        assert call.static_port(Direction.INCOMING) == 1
        assert call.port_kind(Direction.INCOMING, 1).type == poly
        assert call.port_kind(Direction.INCOMING, 2).edge_kind is EdgeKind.ORDER

    def test_call_with_bad_arguments(self) -> None:
        poly = PolyFuncType((TypeTypeParam(),), FunctionType.endo([Variable(0)]))
        with pytest.raises(SignatureError):
            Call.try_new(poly, [])

    def test_dataflow_block_successor_ports(self) -> None:
        block = DataflowBlock([USIZE_T], [[], [BOOL_T], []], [USIZE_T])
        assert block.port_count(Direction.INCOMING) == 1
        assert block.port_count(Direction.OUTGOING) == 3
        assert block.port_kind(Direction.OUTGOING, 2).edge_kind is EdgeKind.CONTROL_FLOW
        assert block.successor_input(1) == TypeRow([BOOL_T, USIZE_T])

    def test_exit_block_has_no_successors(self) -> None:
        exit_block = ExitBlock([USIZE_T])
        assert exit_block.port_count(Direction.INCOMING) == 1
        assert exit_block.port_count(Direction.OUTGOING) == 0


class TestSignatures:
    """Tests for dataflow and inner signatures of containers."""

    def test_conditional(self) -> None:
        cond = Conditional([[USIZE_T], []], [BOOL_T], [USIZE_T])
        sig = cond.dataflow_signature()
        assert sig.input == TypeRow([SumType([[USIZE_T], []]), BOOL_T])
        assert cond.case_signature(0).input == TypeRow([USIZE_T, BOOL_T])
        assert cond.case_signature(1).input == TypeRow([BOOL_T])

    def test_tail_loop(self) -> None:
        loop = TailLoop([USIZE_T], [BOOL_T], [QB_T])
        assert loop.dataflow_signature() == FunctionType([USIZE_T, QB_T], [BOOL_T, QB_T])
        assert loop.inner_signature().output == TypeRow([SumType([[USIZE_T], [BOOL_T]]), QB_T])

    def test_dataflow_block_inner(self) -> None:
        block = DataflowBlock([USIZE_T], [[], []], [USIZE_T])
        assert block.inner_signature().output == TypeRow([BOOL_T, USIZE_T])

    def test_tag(self) -> None:
        tag = Tag(1, [[USIZE_T], [QB_T]])
        assert tag.dataflow_signature() == FunctionType([QB_T], [SumType([[USIZE_T], [QB_T]])])

    def test_tag_out_of_range(self) -> None:
        with pytest.raises(SignatureError, match="out of range"):
            Tag(2, [[], []])

    def test_lift_adds_extension(self) -> None:
        lift = Lift([USIZE_T], "logic")
        assert lift.extension_delta() == ExtensionSet.of("logic")
        assert lift.dataflow_signature().extension_reqs == ExtensionSet.of("logic")


class TestExtensionDeltas:
    """Tests for declared and unannotated requirement sets."""

    def test_unannotated_region(self) -> None:
        dfg = DFG([USIZE_T], [USIZE_T])
        assert dfg.extension_delta() is None
        assert dfg.dataflow_signature().extension_reqs == ExtensionSet()

    def test_with_extension_delta(self) -> None:
        cfg = CFG([USIZE_T], [USIZE_T]).with_extension_delta(ExtensionSet.of("logic"))
        assert cfg.extension_delta() == ExtensionSet.of("logic")

    def test_leaf_cannot_be_annotated(self) -> None:
        with pytest.raises(SignatureError, match="does not declare"):
            Noop(USIZE_T).with_extension_delta(ExtensionSet.of("logic"))


class TestOpTag:
    """Tests for the tag lattice."""

    def test_dataflow_children(self) -> None:
        assert OpTag.DATAFLOW_CHILD.is_superset(OpTag.INPUT)
        assert OpTag.DATAFLOW_CHILD.is_superset(OpTag.CONST)
        assert not OpTag.DATAFLOW_CHILD.is_superset(OpTag.CASE)

    def test_module_children(self) -> None:
        allowed = Module().validity().allowed_children
        assert allowed.is_superset(OpTag.FUNC_DEFN)
        assert not allowed.is_superset(OpTag.LEAF)

    def test_block_tags(self) -> None:
        assert OpTag.CONTROL_FLOW_CHILD.is_superset(DataflowBlock.TAG)
        assert OpTag.CONTROL_FLOW_CHILD.is_superset(ExitBlock.TAG)
        assert OpTag.DATAFLOW_PARENT.is_superset(DataflowBlock.TAG)


class TestTypecheckValue:
    """Tests for constant value checking."""

    def test_sum_value(self) -> None:
        typecheck_value(BOOL_T, SumValue(1))
        with pytest.raises(TypeMismatch, match="out of range"):
            typecheck_value(BOOL_T, SumValue(2))

    def test_sum_payload(self) -> None:
        ty = SumType([[USIZE_T], []])
        typecheck_value(ty, SumValue(0, [const_usize(4)]))
        with pytest.raises(TypeMismatch, match="Expected 1 elements"):
            typecheck_value(ty, SumValue(0))

    def test_tuple_value(self) -> None:
        ty = TupleType([USIZE_T, BOOL_T])
        typecheck_value(ty, TupleValue([const_usize(1), SumValue(0)]))
        with pytest.raises(TypeMismatch):
            typecheck_value(ty, TupleValue([SumValue(0), const_usize(1)]))

    def test_extension_value(self) -> None:
        with pytest.raises(TypeMismatch):
            typecheck_value(QB_T, ExtensionValue(USIZE_T, 3))

    def test_negative_usize(self) -> None:
        with pytest.raises(SignatureError):
            const_usize(-1)
