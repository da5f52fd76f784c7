"""Shared fixtures: small test extensions and registries built on them."""

from collections.abc import Callable, Sequence

import pytest

from hugr_core import (
    BOOL_T,
    DFG,
    LOGIC_EXTENSION,
    PRELUDE,
    QB_T,
    USIZE_T,
    Extension,
    ExtensionRegistry,
    ExtensionSet,
    FunctionType,
    Hugr,
    Input,
    Node,
    Output,
    PolyFuncType,
    Type,
)

type DfgFactory = Callable[[Sequence[Type], Sequence[Type]], tuple[Hugr, Node, Node]]


@pytest.fixture
def gates() -> Extension:
    """A `quantum.gates` extension with a Hadamard and a measurement."""
    ext = Extension("quantum.gates", extension_reqs=ExtensionSet.of("prelude"), description="Test gates")
    ext.add_op("H", PolyFuncType.mono(FunctionType.endo([QB_T])), "Hadamard")
    ext.add_op("Measure", PolyFuncType.mono(FunctionType([QB_T], [QB_T, BOOL_T])), "Measure in Z")
    return ext


@pytest.fixture
def conv() -> Extension:
    """An `arith.conv` extension with a usize -> bool test."""
    ext = Extension("arith.conv", extension_reqs=ExtensionSet.of("prelude"))
    ext.add_op("IsZero", PolyFuncType.mono(FunctionType([USIZE_T], [BOOL_T])), "Compare with zero")
    return ext


@pytest.fixture
def registry(gates: Extension, conv: Extension) -> ExtensionRegistry:
    return ExtensionRegistry([PRELUDE, LOGIC_EXTENSION, gates, conv])


@pytest.fixture
def make_dfg() -> DfgFactory:
    """Factory for a DFG-rooted Hugr with its Input and Output already in place."""

    def _make(inputs: Sequence[Type], outputs: Sequence[Type]) -> tuple[Hugr, Node, Node]:
        hugr = Hugr(DFG(list(inputs), list(outputs)))
        inp = hugr.add_node_with_parent(hugr.root, Input(list(inputs)))
        out = hugr.add_node_with_parent(hugr.root, Output(list(outputs)))
        return hugr, inp, out

    return _make
