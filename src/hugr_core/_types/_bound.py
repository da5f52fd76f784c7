"""Linearity bounds carried by every type."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class TypeBound(StrEnum):
    """Whether values of a type may be implicitly copied and discarded.

    LINEAR is the top of the lattice: a linear bound admits every type, a
    copyable bound admits only copyable types.
    """

    COPYABLE = "C"  # May be duplicated or dropped
    LINEAR = "A"  # Must be consumed exactly once

    def contains(self, other: TypeBound) -> bool:
        """Whether a type with bound `other` may be used where `self` is required."""
        return self is TypeBound.LINEAR or other is TypeBound.COPYABLE

    @staticmethod
    def join(bounds: Iterable[TypeBound]) -> TypeBound:
        """Least bound containing all of `bounds` (COPYABLE for none)."""
        return TypeBound.LINEAR if any(b is TypeBound.LINEAR for b in bounds) else TypeBound.COPYABLE
