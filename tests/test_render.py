"""Tests for Rich rendering of hierarchies and validation reports."""

from collections.abc import Callable, Sequence
from io import StringIO

from rich.console import Console

from hugr_core import (
    BOOL_T,
    QB_T,
    ExtensionRegistry,
    Hugr,
    Module,
    Node,
    Type,
    render_hierarchy,
    render_violations,
    validate,
)

type DfgFactory = Callable[[Sequence[Type], Sequence[Type]], tuple[Hugr, Node, Node]]


def _console() -> tuple[Console, StringIO]:
    buffer = StringIO()
    return Console(file=buffer, force_terminal=False, color_system=None, width=200), buffer


class TestRenderHierarchy:
    """Tests for render_hierarchy."""

    def test_shows_every_node(self, make_dfg: DfgFactory, registry: ExtensionRegistry) -> None:
        hugr, inp, out = make_dfg([QB_T], [QB_T, BOOL_T])
        measure = hugr.add_node_with_parent(hugr.root, registry.instantiate_op("quantum.gates", "Measure"))
        hugr.connect(inp, 0, measure, 0)
        hugr.connect(measure, 0, out, 0)
        hugr.connect(measure, 1, out, 1)
        console, buffer = _console()

        render_hierarchy(hugr, console)

        text = buffer.getvalue()
        for name in ("DFG", "Input", "Output", "quantum.gates.Measure"):
            assert name in text
        assert text.index("DFG") < text.index("Input") < text.index("quantum.gates.Measure")

    def test_detached_nodes_are_hidden(self) -> None:
        hugr = Hugr()
        hugr.add_node(Module())
        console, buffer = _console()

        render_hierarchy(hugr, console)

        assert buffer.getvalue().count("Module") == 1


class TestRenderViolations:
    """Tests for render_violations."""

    def test_no_violations(self) -> None:
        console, buffer = _console()
        render_violations([], console)
        assert "No violations" in buffer.getvalue()

    def test_table_lists_errors(self, make_dfg: DfgFactory, registry: ExtensionRegistry) -> None:
        hugr, _, out = make_dfg([QB_T], [QB_T])
        violations = validate(hugr, registry)
        assert violations
        console, buffer = _console()

        render_violations(violations, console)

        text = buffer.getvalue()
        assert type(violations[0]).__name__ in text
        assert str(out) in text
        assert f"Total: {len(violations)} violations" in text
