"""Reconstruction of surface type syntax from resolved types.

The checker produces opaque type nodes and it is possible to insert trees
that carry type information, but there is no direct way back from a type to
the syntax denoting it. `TypeReconstructor` builds that syntax so that it
survives another round of un-type-checking and type-checking.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.flags import NO_MODIFIERS, Flag, Modifiers
from retypecheck.names import TermName, TypeName
from retypecheck.traverse import Transformer
from retypecheck.trees import (
    EMPTY,
    AppliedTypeTree,
    CompoundTypeTree,
    DefDef,
    ExistentialTypeTree,
    Ident,
    Select,
    SelectFromTypeTree,
    SingletonTypeTree,
    Template,
    This,
    Tree,
    TypeBoundsTree,
    TypeDef,
    TypeTree,
    ValDef,
)
from retypecheck.types import (
    ExistentialType,
    NoPrefix,
    RefinedType,
    SingleType,
    ThisType,
    TypeBounds,
    TypeRef,
    dealias,
    final_result_type,
    type_name,
    type_symbol,
)

if TYPE_CHECKING:
    from retypecheck.host import Universe
    from retypecheck.symbols import Symbol
    from retypecheck.types import Type

logger = logging.getLogger(__name__)


def is_class(symbol: Symbol | None) -> bool:
    """Return True for classes and traits, False for modules and packages."""
    return (
        symbol is not None
        and symbol.is_class
        and not symbol.is_module_class
        and not symbol.is_package_class
    )


def expand_symbol(symbol: Symbol, root_class: Symbol, root_name: str) -> Tree:
    """Build the fully qualified path of a symbol from its owner chain.

    Args:
        symbol: Symbol to refer to
        root_class: Root package class; the path is anchored there
        root_name: Name of the root package in surface syntax

    Returns:
        A chain of selections starting at the root package

    """
    if symbol is root_class:
        return Ident(TermName(root_name))
    if symbol.owner is None:
        return Ident(symbol.name.to_term_name())
    return Select(
        expand_symbol(symbol.owner, root_class, root_name),
        symbol.name.to_term_name(),
    )


class _SingletonNameFixer(Transformer):
    """Turn singleton-erasure type identifiers back into term identifiers."""

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case Ident(name=TypeName(value=name)) if name.endswith(self.suffix):
                return Ident(TermName(name.removesuffix(self.suffix)))
            case _:
                return super().transform(tree)


class TypeReconstructor:
    """Builds surface type syntax for resolved types.

    Reconstruction is pure: the same type always yields a structurally equal
    tree. Types without a surface representation fall back to an opaque
    `TypeTree` carrying the type itself.
    """

    def __init__(
        self,
        universe: Universe,
        conventions: Conventions = DEFAULT_CONVENTIONS,
    ) -> None:
        self.universe = universe
        self.conventions = conventions

    def __call__(self, tpe: Type) -> Tree:
        return self.reconstruct(tpe)

    def expand_symbol(self, symbol: Symbol) -> Tree:
        """Build the fully qualified path of a symbol."""
        return expand_symbol(
            symbol,
            self.universe.root_class,
            self.conventions.root_package_name,
        )

    def reconstruct(self, tpe: Type) -> Tree:  # noqa: C901, PLR0911
        """Create a type tree denoting the given type.

        Args:
            tpe: The resolved type

        Returns:
            Surface syntax for the type, or an opaque `TypeTree` if the type
            cannot be expressed

        """
        match dealias(tpe):
            case ThisType(sym=sym) if is_class(sym):
                return This(sym.name.to_type_name())

            case ThisType(sym=sym):
                return self.expand_symbol(sym)

            case TypeRef(pre=NoPrefix(), sym=sym, args=()) if sym.is_module_class:
                return SingletonTypeTree(Ident(sym.name.to_type_name()))

            case TypeRef(pre=NoPrefix(), sym=sym, args=args):
                return self._applied(Ident(sym.name.to_type_name()), args)

            case TypeRef(pre=pre, sym=sym, args=args):
                return self._applied(self._member_type(pre, sym), args)

            case SingleType(pre=NoPrefix(), sym=sym):
                return SingletonTypeTree(Ident(sym.name.to_term_name()))

            case SingleType(pre=pre, sym=sym):
                pre_tree = self.reconstruct(pre)
                if isinstance(pre_tree, SingletonTypeTree):
                    pre_tree = pre_tree.ref
                return SingletonTypeTree(Select(pre_tree, sym.name.to_term_name()))

            case TypeBounds(lo=lo, hi=hi):
                return TypeBoundsTree(
                    EMPTY if lo == self.universe.nothing_type else self.reconstruct(lo),
                    EMPTY if hi == self.universe.any_type else self.reconstruct(hi),
                )

            case ExistentialType(quantified=quantified, underlying=underlying):
                clauses = [self._where_clause(q) for q in quantified]
                if any(clause is None for clause in clauses):
                    return self._opaque(tpe)
                fixer = _SingletonNameFixer(self.conventions.singleton_suffix)
                return ExistentialTypeTree(
                    fixer.transform(self.reconstruct(underlying)),
                    tuple(c for c in clauses if c is not None),
                )

            case RefinedType(parents=parents, decls=decls):
                members = [self._refinement_member(d) for d in decls]
                if any(member is None for member in members):
                    return self._opaque(tpe)
                return CompoundTypeTree(
                    Template(
                        tuple(self.reconstruct(p) for p in parents),
                        EMPTY,
                        tuple(m for m in members if m is not None),
                    ),
                )

            case _:
                return self._opaque(tpe)

    def _applied(self, tpt: Tree, args: tuple[Type, ...]) -> Tree:
        if not args:
            return tpt
        return AppliedTypeTree(tpt, tuple(self.reconstruct(a) for a in args))

    def _member_type(self, pre: Type, sym: Symbol) -> Tree:
        pre_tree = self.reconstruct(pre)
        projection = not isinstance(pre_tree, This) and is_class(type_symbol(pre))

        if projection:
            if isinstance(pre_tree, SingletonTypeTree):
                return Select(pre_tree.ref, sym.name.to_type_name())
            return SelectFromTypeTree(pre_tree, sym.name.to_type_name())
        if is_class(sym):
            return Select(pre_tree, sym.name.to_type_name())
        return Select(pre_tree, sym.name.to_term_name())

    def _where_clause(self, quantified: Symbol) -> Tree | None:
        suffix = self.conventions.singleton_suffix
        name = str(quantified.name)

        match quantified.info:
            case TypeBounds(lo=lo, hi=hi) as bounds:
                if not name.endswith(suffix):
                    return TypeDef(
                        Modifiers(Flag.DEFERRED | Flag.SYNTHETIC),
                        TypeName(name),
                        (),
                        self.reconstruct(bounds),
                    )
                if lo == self.universe.nothing_type:
                    return ValDef(
                        Modifiers(Flag.DEFERRED),
                        TermName(name.removesuffix(suffix)),
                        self.reconstruct(hi),
                        EMPTY,
                    )
        return None

    def _refinement_member(self, symbol: Symbol) -> Tree | None:
        if symbol.info is None:
            return None
        if symbol.is_method:
            if symbol.is_stable:
                return self._refining_val(symbol)
            return self._refining_def(symbol)
        if symbol.is_type:
            return self._refining_type(symbol)
        return None

    def _refining_type(self, symbol: Symbol) -> TypeDef:
        return TypeDef(
            NO_MODIFIERS,
            symbol.name.to_type_name(),
            tuple(self._refining_type(p) for p in symbol.type_params),
            self._result_type(symbol),
        )

    def _refining_val(self, symbol: Symbol) -> ValDef:
        return ValDef(
            Modifiers(Flag.DEFERRED),
            symbol.name.to_term_name(),
            self._result_type(symbol),
            EMPTY,
        )

    def _refining_def(self, symbol: Symbol) -> DefDef:
        return DefDef(
            Modifiers(Flag.DEFERRED),
            symbol.name.to_term_name(),
            tuple(self._refining_type(p) for p in symbol.type_params),
            tuple(
                tuple(self._refining_val(p) for p in params)
                for params in symbol.param_lists
            ),
            self._result_type(symbol),
            EMPTY,
        )

    def _result_type(self, symbol: Symbol) -> Tree:
        if symbol.info is None:
            return TypeTree()
        return self.reconstruct(final_result_type(symbol.info))

    def _opaque(self, tpe: Type) -> TypeTree:
        logger.debug("No surface syntax for %s, keeping it opaque", type_name(tpe))
        return TypeTree(tpe=tpe)
