"""Term and type names."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Name:
    """A name in one of the two namespaces.

    Names from different namespaces never compare equal: ``TermName("x")``
    and ``TypeName("x")`` denote different things.
    """

    value: str

    def __str__(self) -> str:
        return self.value

    @property
    def is_type_name(self) -> bool:
        """Return True if this name lives in the type namespace."""
        return False

    @property
    def is_term_name(self) -> bool:
        """Return True if this name lives in the term namespace."""
        return not self.is_type_name

    def to_term_name(self) -> TermName:
        """Return the same name in the term namespace."""
        return TermName(self.value)

    def to_type_name(self) -> TypeName:
        """Return the same name in the type namespace."""
        return TypeName(self.value)


class TermName(Name):
    """Name of a value, method, module or package."""


class TypeName(Name):
    """Name of a class, trait, type member or type parameter."""

    @property
    def is_type_name(self) -> bool:
        return True


EMPTY_TYPE_NAME = TypeName("")
