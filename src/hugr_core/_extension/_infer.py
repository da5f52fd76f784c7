"""Extension requirement inference.

Requirements flow bottom-up through the hierarchy. The minimal requirement
set of a container is the union of what its direct children contribute:

- definitions (FuncDefn, FuncDecl, Const) contribute nothing, since defining
  a function does not run it;
- annotated containers contribute their declared set;
- unannotated containers contribute their own inferred set;
- leaf operations contribute the extensions they use.

A declared set must contain the inferred one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hugr_core._errors import ExtensionInferenceError
from hugr_core._ops import Op, OpTag
from hugr_core._types import ExtensionSet

if TYPE_CHECKING:
    from hugr_core._graph import Node
    from hugr_core._hugr import Hugr

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtensionSolution:
    """Result of inference.

    Attributes:
        requirements: Minimal requirement set of every container node.
        annotations: The subset of `requirements` for unannotated regions,
            i.e. what `Hugr.infer_extensions` writes back.

    """

    requirements: dict[Node, ExtensionSet] = field(default_factory=dict)
    annotations: dict[Node, ExtensionSet] = field(default_factory=dict)


def _is_definition(op: Op) -> bool:
    return OpTag.SCOPED_DEFN.is_superset(op.TAG) or OpTag.FUNCTION.is_superset(op.TAG)


def _is_container(op: Op) -> bool:
    return op.validity().allowed_children is not OpTag.NONE


def compute_requirements(hugr: Hugr) -> tuple[ExtensionSolution, list[ExtensionInferenceError]]:
    """Infer requirements for the tree under the root, collecting every mismatch.

    Returns:
        The solution and the list of declared sets that are too small.

    """
    requirements: dict[Node, ExtensionSet] = {}
    annotations: dict[Node, ExtensionSet] = {}
    errors: list[ExtensionInferenceError] = []

    # Reversed pre-order visits every child before its parent
    for node in reversed(hugr.descendants(hugr.root)):
        op = hugr.get_op(node)
        if not _is_container(op):
            continue
        required = ExtensionSet.union_over(_contribution(hugr, child, requirements) for child in hugr.children(node))
        requirements[node] = required
        declared = op.extension_delta()
        if declared is None:
            if op.ANNOTATABLE:
                annotations[node] = required
            continue
        if not declared.is_superset(required):
            errors.append(ExtensionInferenceError(node, declared.missing_from(required)))

    return ExtensionSolution(requirements, annotations), errors


def _contribution(hugr: Hugr, child: Node, requirements: dict[Node, ExtensionSet]) -> ExtensionSet:
    op = hugr.get_op(child)
    if _is_definition(op):
        return ExtensionSet()
    declared = op.extension_delta()
    if declared is not None:
        return declared
    return requirements.get(child, ExtensionSet())


def infer_extensions(hugr: Hugr) -> ExtensionSolution:
    """Infer the requirements of every region of `hugr` without changing it.

    Raises:
        ExtensionInferenceError: For the first (innermost) region whose
            declared set lacks something its contents need.

    """
    solution, errors = compute_requirements(hugr)
    if errors:
        logger.debug("Extension inference failed with %d mismatches", len(errors))
        raise errors[0]
    logger.debug(
        "Inferred requirements for %d regions (%d unannotated)",
        len(solution.requirements),
        len(solution.annotations),
    )
    return solution
