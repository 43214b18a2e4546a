"""Shared symbols, builders and a recording host for the tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

import pytest

from retypecheck.errors import TypecheckError
from retypecheck.flags import NO_FLAGS, Flag
from retypecheck.host import Host, Universe
from retypecheck.names import TermName, TypeName
from retypecheck.symbols import Symbol, SymbolKind
from retypecheck.traverse import Transformer
from retypecheck.trees import Tree, TypeTree
from retypecheck.types import NO_PREFIX, ThisType, Type, TypeRef


@dataclass
class World:
    """A small symbol table: the root package, ``scala`` and its top types."""

    root: Symbol
    scala: Symbol
    scala_class: Symbol
    nothing: Symbol
    any: Symbol
    anyref: Symbol
    universe: Universe

    def package(self, name: str, owner: Symbol | None = None) -> tuple[Symbol, Symbol]:
        """Create a package and its package class."""
        owner = owner or self.root
        package_class = Symbol(TypeName(name), SymbolKind.PACKAGE_CLASS, owner)
        package = Symbol(
            TermName(name),
            SymbolKind.PACKAGE,
            owner,
            module_class=package_class,
        )
        return package, package_class

    def class_symbol(
        self,
        name: str,
        owner: Symbol | None = None,
        flags: Flag = NO_FLAGS,
        members: tuple[Symbol, ...] = (),
    ) -> Symbol:
        return Symbol(
            TypeName(name),
            SymbolKind.CLASS,
            owner or self.root,
            flags,
            members=members,
        )

    def module_symbol(
        self,
        name: str,
        owner: Symbol | None = None,
        flags: Flag = NO_FLAGS,
    ) -> tuple[Symbol, Symbol]:
        """Create a module and its module class."""
        owner = owner or self.root
        module_class = Symbol(TypeName(name), SymbolKind.MODULE_CLASS, owner, flags)
        module = Symbol(
            TermName(name),
            SymbolKind.MODULE,
            owner,
            flags,
            module_class=module_class,
        )
        return module, module_class

    def term(
        self,
        name: str,
        owner: Symbol | None = None,
        flags: Flag = NO_FLAGS,
        kind: SymbolKind = SymbolKind.TERM,
        **kwargs: object,
    ) -> Symbol:
        return Symbol(TermName(name), kind, owner or self.root, flags, **kwargs)  # type: ignore[arg-type]

    def method(
        self,
        name: str,
        owner: Symbol | None = None,
        flags: Flag = NO_FLAGS,
        **kwargs: object,
    ) -> Symbol:
        return self.term(name, owner, flags | Flag.METHOD, SymbolKind.METHOD, **kwargs)

    def type_ref(self, sym: Symbol, *args: Type) -> Type:
        """Reference a class through its owner's self-type."""
        pre = ThisType(sym.owner) if sym.owner is not None else NO_PREFIX
        return TypeRef(pre, sym, args)


@pytest.fixture
def world() -> World:
    """Fresh symbol table for one test."""
    root = Symbol(TypeName("<root>"), SymbolKind.PACKAGE_CLASS)
    scala_class = Symbol(TypeName("scala"), SymbolKind.PACKAGE_CLASS, root)
    scala = Symbol(TermName("scala"), SymbolKind.PACKAGE, root, module_class=scala_class)
    nothing = Symbol(TypeName("Nothing"), SymbolKind.CLASS, scala_class)
    any_ = Symbol(TypeName("Any"), SymbolKind.CLASS, scala_class)
    anyref = Symbol(TypeName("AnyRef"), SymbolKind.CLASS, scala_class)
    universe = Universe(
        root_class=root,
        nothing_type=TypeRef(ThisType(scala_class), nothing),
        any_type=TypeRef(ThisType(scala_class), any_),
        anyref_type=TypeRef(ThisType(scala_class), anyref),
    )
    return World(root, scala, scala_class, nothing, any_, anyref, universe)


@pytest.fixture
def universe(world: World) -> Universe:
    return world.universe


class _Reset(Transformer):
    """Strip symbols and types the way a checker's reset does."""

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case TypeTree(original=original):
                if original is not None:
                    return self.transform(original)
                return TypeTree()
            case _:
                tree = super().transform(tree)
                return replace(tree, symbol=None, tpe=None)


class RecordingHost(Host):
    """Host that records every call.

    `check` returns the tree produced by `checker` (the input itself by
    default) or raises `failure` if one is set.
    """

    def __init__(
        self,
        universe: Universe,
        enclosing_owner: Symbol | None = None,
        checker: Callable[[Tree], Tree] | None = None,
    ) -> None:
        super().__init__(universe, enclosing_owner)
        self.checker = checker
        self.failure: TypecheckError | None = None
        self.calls: list[tuple[str, Tree]] = []

    def check(self, tree: Tree) -> Tree:
        self.calls.append(("check", tree))
        if self.failure is not None:
            raise self.failure
        return self.checker(tree) if self.checker is not None else tree

    def reset(self, tree: Tree) -> Tree:
        self.calls.append(("reset", tree))
        return _Reset().transform(tree)

    def reset_all(self, tree: Tree) -> Tree:
        self.calls.append(("reset_all", tree))
        return _Reset().transform(tree)

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class Desugarer:
    """Checker that always produces the same checked form.

    The first tree it checks is taken as the written form. A later tree that
    differs from it is rejected, since its checked form would differ too.
    """

    def __init__(self, checked: Tree) -> None:
        self.checked = checked
        self.written: Tree | None = None

    def __call__(self, tree: Tree) -> Tree:
        if self.written is None:
            self.written = tree
        elif tree != self.written:
            raise TypecheckError(tree.pos, "written form changed between checks")
        return self.checked


@pytest.fixture
def host(universe: Universe) -> RecordingHost:
    return RecordingHost(universe)


@pytest.fixture
def make_host(universe: Universe) -> Callable[..., RecordingHost]:
    """Factory for hosts with a custom checker or enclosing owner."""

    def make(
        checker: Callable[[Tree], Tree] | None = None,
        enclosing_owner: Symbol | None = None,
    ) -> RecordingHost:
        return RecordingHost(universe, enclosing_owner, checker)

    return make


@pytest.fixture
def desugaring_host(universe: Universe) -> Callable[[Tree], RecordingHost]:
    """Factory for hosts whose checker produces a given checked form."""

    def make(checked: Tree) -> RecordingHost:
        return RecordingHost(universe, checker=Desugarer(checked))

    return make
