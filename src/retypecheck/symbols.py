"""Symbols as produced by the external checker.

The core never allocates symbols. It reads them, re-attaches them to
rebuilt trees, or clears them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from retypecheck.flags import NO_FLAGS, Flag

if TYPE_CHECKING:
    from retypecheck.names import Name
    from retypecheck.trees import Tree
    from retypecheck.types import Type


class SymbolKind(Enum):
    """What a symbol denotes."""

    TERM = auto()
    METHOD = auto()
    MODULE = auto()
    PACKAGE = auto()
    TYPE = auto()
    ALIAS = auto()
    CLASS = auto()
    MODULE_CLASS = auto()
    PACKAGE_CLASS = auto()


_TERM_KINDS = frozenset(
    {SymbolKind.TERM, SymbolKind.METHOD, SymbolKind.MODULE, SymbolKind.PACKAGE},
)
_CLASS_KINDS = frozenset(
    {SymbolKind.CLASS, SymbolKind.MODULE_CLASS, SymbolKind.PACKAGE_CLASS},
)


@dataclass(eq=False)
class Symbol:
    """Identity of a declaration.

    Symbols compare and hash by identity. Links to related symbols
    (getter, setter, module class) are filled in by the checker.

    Attributes:
        name: Declared name
        kind: What the symbol denotes
        owner: Enclosing symbol, None for the root
        flags: Checker flags
        info: Type signature
        annotations: Annotation trees recorded on the declaration
        private_within: Symbol named by the visibility qualifier
        getter: Getter of a field
        setter: Setter of a mutable field
        module_class: Class of a module (singleton object)
        type_params: Type parameters of a method or type
        param_lists: Parameter lists of a method
        members: All members of a class, inherited ones included

    """

    name: Name
    kind: SymbolKind
    owner: Symbol | None = None
    flags: Flag = NO_FLAGS
    info: Type | None = None
    annotations: tuple[Tree, ...] = ()
    private_within: Symbol | None = None
    getter: Symbol | None = None
    setter: Symbol | None = None
    module_class: Symbol | None = None
    type_params: tuple[Symbol, ...] = ()
    param_lists: tuple[tuple[Symbol, ...], ...] = ()
    members: tuple[Symbol, ...] = ()

    def __repr__(self) -> str:
        return f"Symbol({self.kind.name.lower()} {self.full_name})"

    def owner_chain(self) -> Iterator[Symbol]:
        """Yield this symbol and all its owners, innermost first."""
        symbol: Symbol | None = self
        while symbol is not None:
            yield symbol
            symbol = symbol.owner

    @property
    def full_name(self) -> str:
        """Dotted path from the outermost owner."""
        return ".".join(str(s.name) for s in reversed(list(self.owner_chain())))

    def has_flag(self, flag: Flag) -> bool:
        """Return True if any of the given flag bits is set."""
        return bool(self.flags & flag)

    @property
    def is_term(self) -> bool:
        return self.kind in _TERM_KINDS

    @property
    def is_type(self) -> bool:
        return not self.is_term

    @property
    def is_method(self) -> bool:
        return self.kind is SymbolKind.METHOD

    @property
    def is_module(self) -> bool:
        return self.kind is SymbolKind.MODULE

    @property
    def is_package(self) -> bool:
        return self.kind is SymbolKind.PACKAGE

    @property
    def is_class(self) -> bool:
        return self.kind in _CLASS_KINDS

    @property
    def is_module_class(self) -> bool:
        return self.kind is SymbolKind.MODULE_CLASS

    @property
    def is_package_class(self) -> bool:
        return self.kind is SymbolKind.PACKAGE_CLASS

    @property
    def is_alias(self) -> bool:
        return self.kind is SymbolKind.ALIAS

    @property
    def is_lazy(self) -> bool:
        return self.has_flag(Flag.LAZY)

    @property
    def is_getter(self) -> bool:
        return self.is_method and self.has_flag(Flag.GETTER)

    @property
    def is_setter(self) -> bool:
        return self.is_method and self.has_flag(Flag.SETTER)

    @property
    def is_var(self) -> bool:
        return self.has_flag(Flag.MUTABLE)

    @property
    def is_synthetic(self) -> bool:
        return self.has_flag(Flag.SYNTHETIC)

    @property
    def is_implementation_artifact(self) -> bool:
        return self.has_flag(Flag.ARTIFACT)

    @property
    def is_implicit(self) -> bool:
        return self.has_flag(Flag.IMPLICIT)

    @property
    def is_stable(self) -> bool:
        return self.has_flag(Flag.STABLE)

    @property
    def is_private_this(self) -> bool:
        return self.has_flag(Flag.PRIVATE) and self.has_flag(Flag.LOCAL)
