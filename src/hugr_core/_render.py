"""Rich rendering of Hugr hierarchies and validation reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from ._ops import OpTag

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from ._errors import HugrError
    from ._graph import Node
    from ._hugr import Hugr


def render_hierarchy(hugr: Hugr, console: Console) -> None:
    """Render the hierarchy under the root as a Rich tree.

    Each node shows its index, operation and dataflow signature (if any).
    Detached trees are not shown.

    Args:
        hugr: The Hugr to render.
        console: Rich Console to output to.

    """
    rich_tree = Tree(_node_label(hugr, hugr.root, bold=True))
    _add_children(rich_tree, hugr, hugr.root)
    console.print(rich_tree)


def _add_children(parent: Tree, hugr: Hugr, node: Node) -> None:
    for child in hugr.children(node):
        child_tree = parent.add(_node_label(hugr, child))
        _add_children(child_tree, hugr, child)


def _node_label(hugr: Hugr, node: Node, *, bold: bool = False) -> str:
    op = hugr.get_op(node)
    style = _get_tag_style(op.TAG)
    name = escape(op.display_name())
    label = f"[dim]{node.index}[/dim] [{style}]{name}[/{style}]"
    if bold:
        label = f"[bold]{label}[/bold]"
    signature = op.dataflow_signature()
    if signature is not None:
        label += f" [dim]{escape(str(signature))}[/dim]"
    return label


def _get_tag_style(tag: OpTag) -> str:
    if OpTag.FUNCTION.is_superset(tag) or OpTag.SCOPED_DEFN.is_superset(tag):
        return "magenta"
    if OpTag.CONTROL_FLOW_CHILD.is_superset(tag):
        return "yellow"
    if OpTag.DATAFLOW_PARENT.is_superset(tag):
        return "blue"
    if OpTag.DATAFLOW_OP.is_superset(tag):
        return "green"
    return "cyan"


def render_violations(violations: Sequence[HugrError], console: Console) -> None:
    """Render validation errors as a Rich table.

    Args:
        violations: Errors returned by the validator.
        console: Rich Console to output to.

    """
    if not violations:
        console.print("[green]✓ No violations[/green]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Node", justify="right")
    table.add_column("Error", style="bold red")
    table.add_column("Message")

    for violation in violations:
        node = violation.node
        node_str = "-" if node is None else str(node)
        table.add_row(node_str, type(violation).__name__, escape(violation.message))

    console.print(table)
    console.print(f"\n[dim]Total: {len(violations)} violations[/dim]")
