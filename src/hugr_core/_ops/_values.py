"""Constant values held by `Const` nodes and extension value tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hugr_core._errors import TypeMismatch
from hugr_core._types import SumType, TupleType, Type, TypeRow


class Value:
    """Base class of constant values."""


@dataclass(frozen=True, slots=True)
class SumValue(Value):
    """Variant `tag` of a sum, carrying one value per type of that variant's row."""

    tag: int
    values: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def __str__(self) -> str:
        if not self.values:
            return f"Tag({self.tag})"
        return f"Tag({self.tag}, " + ", ".join(str(v) for v in self.values) + ")"


@dataclass(frozen=True, slots=True)
class TupleValue(Value):
    """A tuple of values."""

    values: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))

    def __str__(self) -> str:
        return "(" + ", ".join(str(v) for v in self.values) + ")"


@dataclass(frozen=True, slots=True)
class ExtensionValue(Value):
    """An extension-defined constant: its type plus a JSON-compatible payload."""

    typ: Type
    value: Any

    def __str__(self) -> str:
        return f"{self.typ}({self.value!r})"


def unit_sum_value(tag: int) -> SumValue:
    """A value of a unit sum type (a plain tag with no payload)."""
    return SumValue(tag)


def typecheck_value(ty: Type, value: Value) -> None:
    """Check that `value` inhabits `ty`.

    Raises:
        TypeMismatch: If the value does not inhabit the type.

    """
    match value:
        case SumValue(tag=tag, values=values):
            if not isinstance(ty, SumType):
                msg = f"Sum value {value} cannot have type {ty}"
                raise TypeMismatch(msg, expected=ty, actual=value)
            if tag < 0 or tag >= ty.num_variants:
                msg = f"Tag {tag} out of range for {ty} ({ty.num_variants} variants)"
                raise TypeMismatch(msg, expected=ty, actual=value)
            _typecheck_row(ty.variants[tag], values, value)
        case TupleValue(values=values):
            if not isinstance(ty, TupleType):
                msg = f"Tuple value {value} cannot have type {ty}"
                raise TypeMismatch(msg, expected=ty, actual=value)
            _typecheck_row(ty.row, values, value)
        case ExtensionValue(typ=typ):
            if typ != ty:
                msg = f"Extension value of type {typ} cannot have type {ty}"
                raise TypeMismatch(msg, expected=ty, actual=typ)
        case _:
            msg = f"Unknown constant value {value!r}"
            raise TypeMismatch(msg, expected=ty, actual=value)


def _typecheck_row(row: TypeRow, values: tuple[Value, ...], whole: Value) -> None:
    if len(row) != len(values):
        msg = f"Expected {len(row)} elements for {row}, {whole} has {len(values)}"
        raise TypeMismatch(msg, expected=row, actual=whole)
    for elem_ty, elem in zip(row, values, strict=True):
        typecheck_value(elem_ty, elem)
