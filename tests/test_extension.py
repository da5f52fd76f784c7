"""Tests for extensions, the registry and the bundled prelude/logic extensions."""

from collections.abc import Sequence

import pytest

from hugr_core import (
    BOOL_T,
    LOGIC_EXTENSION,
    LOGIC_REGISTRY,
    PRELUDE,
    PRELUDE_REGISTRY,
    QB_T,
    USIZE_T,
    BoundedNatArg,
    BoundedNatParam,
    Extension,
    ExtensionBuildError,
    ExtensionNotFound,
    ExtensionRegistry,
    ExtensionSet,
    FromParams,
    FunctionType,
    OperationNotFound,
    PolyFuncType,
    SignatureError,
    StringArg,
    SumValue,
    TypeArg,
    TypeBound,
    TypeMismatch,
    TypeParam,
    TypeRow,
    TypeTypeArg,
    TypeTypeParam,
    Variable,
    and_op,
    not_op,
    or_op,
)


class RepeatSignature:
    """Custom rule: `n` copies of a type in, one out, polymorphic in the type."""

    @property
    def static_params(self) -> tuple[TypeParam, ...]:
        return (BoundedNatParam(),)

    def compute_signature(self, args: Sequence[TypeArg]) -> PolyFuncType:
        (n,) = args
        assert isinstance(n, BoundedNatArg)
        var = Variable(0, TypeBound.COPYABLE)
        return PolyFuncType((TypeTypeParam(TypeBound.COPYABLE),), FunctionType([var] * n.n, [var]))


class TestExtensionBuilding:
    """Tests for defining types, operations and values."""

    def test_invalid_extension_name(self) -> None:
        with pytest.raises(ExtensionBuildError, match="Invalid extension name"):
            Extension("not a name")

    def test_dotted_name(self) -> None:
        assert Extension("quantum.gates.v2").name == "quantum.gates.v2"

    def test_duplicate_operation(self, gates: Extension) -> None:
        with pytest.raises(ExtensionBuildError, match="already has a operation called H"):
            gates.add_op("H", PolyFuncType.mono(FunctionType.endo([QB_T])))

    def test_invalid_operation_name(self) -> None:
        ext = Extension("test.ext")
        with pytest.raises(ExtensionBuildError):
            ext.add_op("bad-name", None)

    def test_value_must_match_type(self) -> None:
        ext = Extension("test.ext")
        with pytest.raises(TypeMismatch):
            ext.add_value("FIVE", SumValue(5), BOOL_T)

    def test_bound_from_params(self) -> None:
        ext = Extension("test.collections")
        list_def = ext.add_type("List", [TypeTypeParam()], bound=FromParams((0,)))
        assert list_def.instantiate([TypeTypeArg(USIZE_T)]).bound is TypeBound.COPYABLE
        assert list_def.instantiate([TypeTypeArg(QB_T)]).bound is TypeBound.LINEAR

    def test_type_instantiation_checks_args(self) -> None:
        ext = Extension("test.collections")
        list_def = ext.add_type("List", [TypeTypeParam()])
        with pytest.raises(SignatureError):
            list_def.instantiate([StringArg("x")])


class TestOpDefSignatures:
    """Tests for computing operation signatures."""

    def test_fixed_signature_adds_own_extension(self, gates: Extension) -> None:
        op = gates.instantiate_op("H")
        assert op.signature.input == TypeRow([QB_T])
        assert op.signature.extension_reqs == ExtensionSet.of("quantum.gates")
        assert op.display_name() == "quantum.gates.H"

    def test_custom_signature(self) -> None:
        ext = Extension("test.repeat")
        op_def = ext.add_op("Repeat", RepeatSignature())
        sig = op_def.compute_signature([BoundedNatArg(3), TypeTypeArg(USIZE_T)])
        assert sig.input == TypeRow([USIZE_T] * 3)
        assert sig.output == TypeRow([USIZE_T])
        assert "test.repeat" in sig.extension_reqs

    def test_custom_signature_checks_static_args(self) -> None:
        ext = Extension("test.repeat")
        op_def = ext.add_op("Repeat", RepeatSignature())
        with pytest.raises(SignatureError):
            op_def.compute_signature([StringArg("three"), TypeTypeArg(USIZE_T)])
        with pytest.raises(SignatureError, match="at least 1"):
            op_def.compute_signature([])

    def test_custom_signature_checks_remaining_args(self) -> None:
        ext = Extension("test.repeat")
        op_def = ext.add_op("Repeat", RepeatSignature())
        with pytest.raises(SignatureError):
            op_def.compute_signature([BoundedNatArg(2), TypeTypeArg(QB_T)])

    def test_missing_signature_rule(self) -> None:
        ext = Extension("test.opaque")
        op_def = ext.add_op("Mystery", None)
        with pytest.raises(SignatureError, match="no signature rule"):
            op_def.compute_signature([])

    def test_unknown_operation(self, gates: Extension) -> None:
        with pytest.raises(OperationNotFound, match="CNOT"):
            gates.instantiate_op("CNOT")


class TestExtensionRegistry:
    """Tests for registering and resolving extensions."""

    def test_lookup(self, registry: ExtensionRegistry) -> None:
        assert registry.get("quantum.gates").name == "quantum.gates"
        assert registry.get_op("logic", "Not").name == "Not"
        assert registry.get_type("prelude", "usize").bound is TypeBound.COPYABLE

    def test_missing_extension(self) -> None:
        with pytest.raises(ExtensionNotFound) as exc_info:
            PRELUDE_REGISTRY.get("quantum.gates")
        assert exc_info.value.extension == "quantum.gates"

    def test_missing_operation(self, registry: ExtensionRegistry) -> None:
        with pytest.raises(OperationNotFound):
            registry.get_op("quantum.gates", "CNOT")

    def test_duplicate_registration(self) -> None:
        with pytest.raises(ExtensionBuildError, match="already registered"):
            ExtensionRegistry([PRELUDE, PRELUDE])

    def test_try_new_checks_requirements(self, gates: Extension) -> None:
        with pytest.raises(ExtensionNotFound, match="prelude"):
            ExtensionRegistry.try_new([gates])
        assert len(ExtensionRegistry.try_new([PRELUDE, gates])) == 2

    def test_names_are_sorted(self, registry: ExtensionRegistry) -> None:
        assert registry.names == ["arith.conv", "logic", "prelude", "quantum.gates"]
        assert [ext.name for ext in registry] == registry.names

    def test_union(self, gates: Extension) -> None:
        merged = PRELUDE_REGISTRY.union(ExtensionRegistry([gates]))
        assert "quantum.gates" in merged
        assert "prelude" in merged


class TestLogicExtension:
    """Tests for the bundled logic extension."""

    def test_nary_and(self) -> None:
        op = and_op(3)
        assert op.signature.input == TypeRow([BOOL_T] * 3)
        assert op.signature.output == TypeRow([BOOL_T])
        assert op.signature.extension_reqs == ExtensionSet.of("logic")

    def test_or_and_not(self) -> None:
        assert or_op().signature.input == TypeRow([BOOL_T, BOOL_T])
        assert not_op().signature == FunctionType.endo([BOOL_T], ExtensionSet.of("logic"))

    def test_invalid_arity_argument(self) -> None:
        with pytest.raises(SignatureError):
            LOGIC_EXTENSION.instantiate_op("And", [StringArg("two")])

    def test_named_values(self) -> None:
        true = LOGIC_EXTENSION.get_value("TRUE")
        assert true is not None
        assert true.as_const().value == SumValue(1)

    def test_registry_validates(self) -> None:
        LOGIC_REGISTRY.validate()
