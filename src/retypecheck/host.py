"""Boundary to the external type checker.

The core does not type-check anything itself. A `Host` wraps whatever checker
is being integrated against and exposes the few operations the pipeline
needs. Implementations subclass `Host`:

    class MyHost(Host):
        def check(self, tree):
            ...  # raise TypecheckError(pos, message) on rejection

        def reset(self, tree):
            ...

        def reset_all(self, tree):
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn

from retypecheck.errors import AbortError

if TYPE_CHECKING:
    from retypecheck.symbols import Symbol
    from retypecheck.trees import Position, Tree
    from retypecheck.types import Type


@dataclass(frozen=True)
class Universe:
    """Well-known symbols and types of the checker's symbol table.

    Attributes:
        root_class: Root package class that owns all top-level packages
        nothing_type: Bottom type
        any_type: Top type
        anyref_type: Default parent of classes and objects

    """

    root_class: Symbol
    nothing_type: Type
    any_type: Type
    anyref_type: Type


class Host(ABC):
    """External checker the pipeline runs against.

    The host owns the typing context. `check` type-checks in that context;
    `enclosing_owner` is the symbol of the declaration the trees are being
    produced for, if any.
    """

    def __init__(self, universe: Universe, enclosing_owner: Symbol | None = None) -> None:
        self.universe = universe
        self.enclosing_owner = enclosing_owner

    @abstractmethod
    def check(self, tree: Tree) -> Tree:
        """Type-check a tree.

        Raises:
            TypecheckError: If the checker rejects the tree

        """
        ...

    @abstractmethod
    def reset(self, tree: Tree) -> Tree:
        """Strip all resolved symbols and types from a tree."""
        ...

    @abstractmethod
    def reset_all(self, tree: Tree) -> Tree:
        """Like `reset`, also clearing cached cross-references."""
        ...

    def abort(self, pos: Position, message: str) -> NoReturn:
        """Surface an unrecoverable failure tied to a source position.

        Raises:
            AbortError: Always

        """
        raise AbortError(pos, message)
