"""Tests for types, rows, extension sets and polymorphic signatures."""

import pytest

from hugr_core import (
    BOOL_T,
    PRELUDE_REGISTRY,
    QB_T,
    USIZE_T,
    BoundedNatArg,
    BoundedNatParam,
    ExtensionNotFound,
    ExtensionsArg,
    ExtensionSet,
    ExtensionsParam,
    FunctionType,
    ListParam,
    Opaque,
    PolyFuncType,
    SequenceArg,
    SignatureError,
    StringArg,
    SumType,
    TupleType,
    Type,
    TypeBound,
    TypeRow,
    TypeTypeArg,
    TypeTypeParam,
    Variable,
    VariableArg,
)
from hugr_core._types import check_type_arg


class TestTypeBound:
    """Tests for the copyable/linear lattice."""

    def test_linear_contains_everything(self) -> None:
        assert TypeBound.LINEAR.contains(TypeBound.COPYABLE)
        assert TypeBound.LINEAR.contains(TypeBound.LINEAR)

    def test_copyable_excludes_linear(self) -> None:
        assert TypeBound.COPYABLE.contains(TypeBound.COPYABLE)
        assert not TypeBound.COPYABLE.contains(TypeBound.LINEAR)

    def test_join(self) -> None:
        assert TypeBound.join([]) is TypeBound.COPYABLE
        assert TypeBound.join([TypeBound.COPYABLE, TypeBound.LINEAR]) is TypeBound.LINEAR


class TestTypeBounds:
    """Tests for bounds of composite types."""

    def test_prelude_types(self) -> None:
        assert USIZE_T.bound is TypeBound.COPYABLE
        assert QB_T.bound is TypeBound.LINEAR
        assert QB_T.is_linear()

    def test_sum_is_linear_if_any_variant_is(self) -> None:
        assert BOOL_T.bound is TypeBound.COPYABLE
        assert SumType([[USIZE_T], [QB_T]]).bound is TypeBound.LINEAR

    def test_tuple_bound(self) -> None:
        assert TupleType([USIZE_T, BOOL_T]).bound is TypeBound.COPYABLE
        assert TupleType([USIZE_T, QB_T]).bound is TypeBound.LINEAR

    def test_function_values_are_copyable(self) -> None:
        assert FunctionType.endo([QB_T]).bound is TypeBound.COPYABLE

    def test_equality_is_structural(self) -> None:
        assert SumType.unit(2) == BOOL_T
        assert TypeRow([USIZE_T, QB_T]) == TypeRow((USIZE_T, QB_T))
        assert FunctionType([USIZE_T], [BOOL_T]) != FunctionType([USIZE_T], [USIZE_T])

    def test_bound_is_abstract(self) -> None:
        class Unbounded(Type):
            pass

        with pytest.raises(TypeError):
            Unbounded()  # type: ignore[abstract]

    def test_substitution_recomputes_derived_bound(self) -> None:
        array = Opaque("collections", "Array", (TypeTypeArg(Variable(0)),), TypeBound.LINEAR, (0,))
        sig = PolyFuncType((TypeTypeParam(),), FunctionType.endo([array]))

        assert sig.instantiate([TypeTypeArg(USIZE_T)]).input[0].bound is TypeBound.COPYABLE
        assert sig.instantiate([TypeTypeArg(QB_T)]).input[0].bound is TypeBound.LINEAR


class TestTypeValidation:
    """Tests for validating types against a registry."""

    def test_registered_type(self) -> None:
        USIZE_T.validate(PRELUDE_REGISTRY)

    def test_unknown_extension(self) -> None:
        with pytest.raises(ExtensionNotFound, match="quantum.gates"):
            Opaque("quantum.gates", "angle").validate(PRELUDE_REGISTRY)

    def test_unknown_type_name(self) -> None:
        with pytest.raises(SignatureError, match="did not contain expected TypeDef"):
            Opaque("prelude", "float").validate(PRELUDE_REGISTRY)

    def test_cached_bound_must_agree(self) -> None:
        with pytest.raises(SignatureError, match="Bound"):
            Opaque("prelude", "qubit", cached_bound=TypeBound.COPYABLE).validate(PRELUDE_REGISTRY)

    def test_free_variable(self) -> None:
        with pytest.raises(SignatureError, match="not declared"):
            Variable(0).validate(PRELUDE_REGISTRY)

    def test_variable_declared_with_other_bound(self) -> None:
        with pytest.raises(SignatureError, match="claims to be"):
            Variable(0, TypeBound.LINEAR).validate(PRELUDE_REGISTRY, [TypeTypeParam(TypeBound.COPYABLE)])


class TestExtensionSet:
    """Tests for extension requirement sets."""

    def test_union_and_membership(self) -> None:
        reqs = ExtensionSet.of("logic").union(ExtensionSet.of("prelude"), ExtensionSet.type_var(1))
        assert "logic" in reqs
        assert 1 in reqs.variables
        assert len(reqs) == 3

    def test_superset(self) -> None:
        big = ExtensionSet.of("a", "b")
        assert big.is_superset(ExtensionSet.of("a"))
        assert not ExtensionSet.of("a").is_superset(big)
        assert ExtensionSet.of("a").missing_from(big) == ExtensionSet.of("b")

    def test_string_encoding(self) -> None:
        reqs = ExtensionSet.of("logic", "arith.int").union(ExtensionSet.type_var(2))
        assert reqs.to_strings() == ["arith.int", "logic", "2"]
        assert ExtensionSet.from_strings(reqs.to_strings()) == reqs

    def test_invalid_string_entry(self) -> None:
        with pytest.raises(SignatureError):
            ExtensionSet.from_strings(["1x"])

    def test_str(self) -> None:
        assert str(ExtensionSet()) == "[]"
        assert str(ExtensionSet.of("b", "a").union(ExtensionSet.type_var(0))) == "[a, b, ?0]"


class TestTypeArgs:
    """Tests for checking arguments against parameters."""

    def test_type_arg_within_bound(self) -> None:
        check_type_arg(TypeTypeArg(USIZE_T), TypeTypeParam(TypeBound.COPYABLE))
        check_type_arg(TypeTypeArg(QB_T), TypeTypeParam(TypeBound.LINEAR))

    def test_linear_type_for_copyable_param(self) -> None:
        with pytest.raises(SignatureError, match="does not fit"):
            check_type_arg(TypeTypeArg(QB_T), TypeTypeParam(TypeBound.COPYABLE))

    def test_bounded_nat(self) -> None:
        check_type_arg(BoundedNatArg(3), BoundedNatParam(4))
        with pytest.raises(SignatureError, match="out of range"):
            check_type_arg(BoundedNatArg(4), BoundedNatParam(4))

    def test_sequence(self) -> None:
        param = ListParam(BoundedNatParam())
        check_type_arg(SequenceArg([BoundedNatArg(1), BoundedNatArg(2)]), param)
        with pytest.raises(SignatureError):
            check_type_arg(SequenceArg([StringArg("x")]), param)

    def test_variable_with_narrower_declaration(self) -> None:
        check_type_arg(VariableArg(0, BoundedNatParam(3)), BoundedNatParam(5))
        with pytest.raises(SignatureError):
            check_type_arg(VariableArg(0, BoundedNatParam()), BoundedNatParam(5))


class TestPolyFuncType:
    """Tests for instantiation of polymorphic signatures."""

    def test_identity_instantiation(self) -> None:
        poly = PolyFuncType((TypeTypeParam(),), FunctionType.endo([Variable(0)]))
        assert poly.instantiate([TypeTypeArg(QB_T)]) == FunctionType.endo([QB_T])

    def test_substitution_reaches_nested_types(self) -> None:
        var = Variable(0, TypeBound.COPYABLE)
        poly = PolyFuncType(
            (TypeTypeParam(TypeBound.COPYABLE),),
            FunctionType([TupleType([var, var])], [SumType([[var], []])]),
        )
        sig = poly.instantiate([TypeTypeArg(USIZE_T)])
        assert sig.input == TypeRow([TupleType([USIZE_T, USIZE_T])])
        assert sig.output == TypeRow([SumType([[USIZE_T], []])])

    def test_extension_variables_are_substituted(self) -> None:
        poly = PolyFuncType(
            (ExtensionsParam(),),
            FunctionType([USIZE_T], [USIZE_T], ExtensionSet.of("prelude").union(ExtensionSet.type_var(0))),
        )
        sig = poly.instantiate([ExtensionsArg(ExtensionSet.of("logic"))])
        assert sig.extension_reqs == ExtensionSet.of("logic", "prelude")

    def test_wrong_argument_count(self) -> None:
        poly = PolyFuncType((TypeTypeParam(),), FunctionType.endo([Variable(0)]))
        with pytest.raises(SignatureError, match="Wrong number"):
            poly.instantiate([])

    def test_argument_outside_bound(self) -> None:
        poly = PolyFuncType((TypeTypeParam(TypeBound.COPYABLE),), FunctionType.endo([Variable(0, TypeBound.COPYABLE)]))
        with pytest.raises(SignatureError):
            poly.instantiate([TypeTypeArg(QB_T)])

    def test_validate_checks_declarations(self) -> None:
        good = PolyFuncType((TypeTypeParam(),), FunctionType.endo([Variable(0)]))
        good.validate(PRELUDE_REGISTRY)
        bad = PolyFuncType((), FunctionType.endo([Variable(0)]))
        with pytest.raises(SignatureError):
            bad.validate(PRELUDE_REGISTRY)
