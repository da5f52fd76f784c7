"""Error taxonomy for hugr_core.

Every failure in this package is an instance of `HugrError`. Local failures
(an illegal edge, a malformed op argument) are raised at the call site and
leave the structure unchanged. Whole-graph failures are returned by the
validator as a list of these same exception instances, so they can be
reported together.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._graph import Node
    from ._types import ExtensionSet


class HugrError(Exception):
    """Base class for all hugr_core errors.

    Attributes:
        message: Human readable description.
        node: The offending node, if any. Decoding errors carry the index of
            the node in the encoded document instead of a live `Node`.

    """

    def __init__(self, message: str, *, node: Node | int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.node = node

    def __str__(self) -> str:
        if self.node is None:
            return self.message
        return f"{self.node}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HugrError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message and self.node == other.node

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.node))


class StructuralError(HugrError):
    """Illegal hierarchy shape, cycles, dangling nodes or illegal edges."""


class InvalidSubgraph(StructuralError):
    """A set of nodes does not form a valid sibling subgraph."""


class SignatureError(HugrError):
    """Malformed static arguments or an inconsistent signature."""


class TypeMismatch(HugrError):
    """The two ends of an edge (or a constant and its type) disagree."""

    def __init__(
        self,
        message: str,
        *,
        node: Node | int | None = None,
        expected: object = None,
        actual: object = None,
    ) -> None:
        super().__init__(message, node=node)
        self.expected = expected
        self.actual = actual


class LinearityViolation(HugrError):
    """A linear value is duplicated or discarded."""


class ExtensionNotFound(HugrError):
    """An extension name is not registered."""

    def __init__(self, extension: str, *, node: Node | int | None = None) -> None:
        super().__init__(f"Extension '{extension}' not found", node=node)
        self.extension = extension


class OperationNotFound(HugrError):
    """An extension is registered but does not define the requested operation."""

    def __init__(self, extension: str, op_name: str, *, node: Node | int | None = None) -> None:
        super().__init__(f"Extension '{extension}' has no operation '{op_name}'", node=node)
        self.extension = extension
        self.op_name = op_name


class ExtensionBuildError(HugrError):
    """An extension definition is malformed (duplicate names, bad identifiers)."""


class ExtensionInferenceError(HugrError):
    """A region declares fewer extensions than its contents require."""

    def __init__(self, node: Node, missing: ExtensionSet) -> None:
        super().__init__(f"Missing required extensions {missing}", node=node)
        self.missing = missing


class DeserializationError(HugrError):
    """An encoded document could not be turned back into a Hugr."""


class UnsupportedVersion(DeserializationError):
    """The encoded document carries a format version we do not understand."""

    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported serialization version: {version!r}")
        self.version = version
