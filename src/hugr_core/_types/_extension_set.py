"""Sets of extension names required by a region or function."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from hugr_core._errors import SignatureError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from ._type_param import Substitution, TypeParam


@dataclass(frozen=True, slots=True)
class ExtensionSet:
    """A set of extension names, plus extension-set type variables.

    Variables refer (by index) to `ExtensionsParam` declarations of an
    enclosing polymorphic function type and are replaced by `substitute`.

    Attributes:
        extensions: Concrete extension names.
        variables: Indices of extension-set type variables.

    Example:
        >>> reqs = ExtensionSet.of("logic", "prelude")
        >>> "logic" in reqs
        True
        >>> str(reqs.union(ExtensionSet.type_var(0)))
        '[logic, prelude, ?0]'

    """

    extensions: frozenset[str] = frozenset()
    variables: frozenset[int] = frozenset()

    @classmethod
    def of(cls, *names: str) -> ExtensionSet:
        """Create a set of concrete extension names."""
        return cls(frozenset(names))

    @classmethod
    def type_var(cls, idx: int) -> ExtensionSet:
        """A set holding only the extension-set variable `idx`."""
        return cls(variables=frozenset({idx}))

    @classmethod
    def union_over(cls, sets: Iterable[ExtensionSet]) -> ExtensionSet:
        """Union of an arbitrary collection of sets."""
        extensions: set[str] = set()
        variables: set[int] = set()
        for s in sets:
            extensions |= s.extensions
            variables |= s.variables
        return cls(frozenset(extensions), frozenset(variables))

    def union(self, *others: ExtensionSet) -> ExtensionSet:
        """Union of this set with `others`."""
        return ExtensionSet.union_over((self, *others))

    def insert(self, name: str) -> ExtensionSet:
        """A copy of this set with `name` added."""
        return ExtensionSet(self.extensions | {name}, self.variables)

    def missing_from(self, other: ExtensionSet) -> ExtensionSet:
        """The members of `other` that are not in this set."""
        return ExtensionSet(other.extensions - self.extensions, other.variables - self.variables)

    def is_subset(self, other: ExtensionSet) -> bool:
        """Whether every member of this set is in `other`."""
        return self.extensions <= other.extensions and self.variables <= other.variables

    def is_superset(self, other: ExtensionSet) -> bool:
        """Whether every member of `other` is in this set."""
        return other.is_subset(self)

    def is_empty(self) -> bool:
        """Whether the set has no members at all."""
        return not self.extensions and not self.variables

    def substitute(self, subst: Substitution) -> ExtensionSet:
        """Replace each variable by the extension set it is bound to."""
        if not self.variables:
            return self
        from ._type_param import ExtensionsParam  # noqa: PLC0415

        parts = [ExtensionSet(self.extensions)]
        for idx in sorted(self.variables):
            parts.append(subst.apply_var(idx, ExtensionsParam()).as_extension_set())
        return ExtensionSet.union_over(parts)

    def validate(self, var_decls: Sequence[TypeParam]) -> None:
        """Check every variable is declared as an extension-set parameter.

        Raises:
            SignatureError: If a variable is undeclared or declared with another kind.

        """
        from ._type_param import ExtensionsParam, check_typevar_decl  # noqa: PLC0415

        for idx in sorted(self.variables):
            check_typevar_decl(var_decls, idx, ExtensionsParam())

    def to_strings(self) -> list[str]:
        """Encode as a sorted list; variables become their decimal index.

        Decimal strings are not valid extension names, so the encoding is
        unambiguous.
        """
        return sorted(self.extensions) + [str(idx) for idx in sorted(self.variables)]

    @classmethod
    def from_strings(cls, items: Iterable[str]) -> ExtensionSet:
        """Inverse of `to_strings`."""
        extensions: set[str] = set()
        variables: set[int] = set()
        for item in items:
            if item[:1].isdigit():
                if not item.isdigit():
                    msg = f"Invalid extension set entry: {item!r}"
                    raise SignatureError(msg)
                variables.add(int(item))
            else:
                extensions.add(item)
        return cls(frozenset(extensions), frozenset(variables))

    def __contains__(self, name: object) -> bool:
        return name in self.extensions

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.extensions))

    def __len__(self) -> int:
        return len(self.extensions) + len(self.variables)

    def __str__(self) -> str:
        items = [*sorted(self.extensions), *(f"?{idx}" for idx in sorted(self.variables))]
        return "[" + ", ".join(items) + "]"
