"""Cleanup of type syntax before a tree is reset.

Inferred type arguments and types of values are dropped or rebuilt so that
the checker infers them again. Types that mention classes or type members
declared in the tree itself (or an anonymous class) are rebuilt from their
surface syntax, since the resolved types would refer to symbols that do not
survive the reset.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.flags import Flag
from retypecheck.names import TermName
from retypecheck.reconstruct import TypeReconstructor
from retypecheck.traverse import Transformer, walk
from retypecheck.trees import (
    ClassDef,
    DefDef,
    Ident,
    Select,
    This,
    Tree,
    TypeApply,
    TypeDef,
    TypeTree,
    ValDef,
)
from retypecheck.types import NoPrefix, ThisType, TypeRef, exists, type_symbol

if TYPE_CHECKING:
    from retypecheck.host import Universe
    from retypecheck.symbols import Symbol
    from retypecheck.types import Type


def defined_type_symbols(tree: Tree) -> frozenset[Symbol]:
    """Collect the symbols of the classes and type members a tree declares."""
    return frozenset(
        node.symbol
        for node in walk(tree)
        if isinstance(node, TypeDef | ClassDef) and node.symbol is not None
    )


class TypeApplicationCleaner(Transformer):
    """Drop inferred type syntax and rebuild types under expansion.

    Args:
        defined: Symbols of the types declared in the tree being cleaned
        reconstruct: Builder of surface syntax for resolved types
        conventions: Checker conventions

    """

    def __init__(
        self,
        defined: frozenset[Symbol],
        reconstruct: TypeReconstructor,
        conventions: Conventions = DEFAULT_CONVENTIONS,
    ) -> None:
        self.defined = defined
        self.reconstruct = reconstruct
        self.conventions = conventions

    def prepend_root_package(self, tree: Tree) -> Tree:
        """Anchor a path at the root package if it starts at a top-level package."""
        match tree:
            case Ident(name=name) if (
                tree.symbol is not None
                and tree.symbol.owner is self.reconstruct.universe.root_class
            ):
                root = Ident(TermName(self.conventions.root_package_name))
                return Select(root, name, pos=tree.pos)
            case Select(qualifier=qualifier):
                return replace(tree, qualifier=self.prepend_root_package(qualifier))
            case _:
                return tree

    def is_type_under_expansion(self, tpe: Type) -> bool:
        """Return True if the type mentions a type declared in the tree."""

        def under_expansion(component: Type) -> bool:
            match component:
                case ThisType(sym=sym):
                    return str(sym.name).startswith(self.conventions.anonymous_prefix)
                case _:
                    return type_symbol(component) in self.defined

        return exists(tpe, under_expansion)

    def is_singleton_erasure(self, tpe: Type) -> bool:
        """Return True if the type mentions a name the checker erased a singleton to."""
        suffix = self.conventions.singleton_suffix
        return exists(
            tpe,
            lambda t: (
                isinstance(t, TypeRef)
                and isinstance(t.pre, NoPrefix)
                and not t.args
                and str(t.sym.name).endswith(suffix)
            ),
        )

    def transform(self, tree: Tree) -> Tree:  # noqa: PLR0911
        match tree:
            case TypeTree(original=original):
                if original is not None:
                    return self.transform(self.prepend_root_package(original))
                if tree.tpe is not None and self.is_type_under_expansion(tree.tpe):
                    return self.reconstruct(tree.tpe)
                return tree

            case DefDef(
                mods=mods,
                name=TermName(value=name),
                tparams=tparams,
                vparamss=vparamss,
                rhs=rhs,
            ) if name == self.conventions.constructor_name:
                return replace(
                    tree,
                    mods=self.transform_modifiers(mods),
                    tparams=self.transform_trees(tparams),
                    vparamss=tuple(self.transform_trees(vparams) for vparams in vparamss),
                    rhs=self.transform(rhs),
                )

            case ValDef(mods=mods, tpt=tpt, rhs=rhs):
                return replace(
                    tree,
                    mods=self.transform_modifiers(mods),
                    tpt=self._value_type(mods.flags, tpt, rhs),
                    rhs=self.transform(rhs),
                )

            case TypeApply(fun=fun, args=args) if any(
                arg.tpe is not None and self.is_singleton_erasure(arg.tpe) for arg in args
            ):
                return self.transform(fun)

            case Select() | Ident() | This() if (
                tree.tpe is not None and self.is_type_under_expansion(tree.tpe)
            ):
                return super().transform(tree.with_symbol(None))

            case _:
                return super().transform(tree)

    def _value_type(self, flags: Flag, tpt: Tree, rhs: Tree) -> Tree:
        if flags & Flag.ARTIFACT:
            return tpt
        if flags & Flag.SYNTHETIC:
            return self.transform(tpt)
        if isinstance(tpt, TypeTree) and tpt.original is None and not rhs.is_empty:
            return TypeTree()
        return self.transform(tpt)


def clean_type_applications(
    tree: Tree,
    universe: Universe,
    conventions: Conventions = DEFAULT_CONVENTIONS,
) -> Tree:
    """Clean the type syntax of a tree about to be reset."""
    cleaner = TypeApplicationCleaner(
        defined_type_symbols(tree),
        TypeReconstructor(universe, conventions),
        conventions,
    )
    return cleaner.transform(tree)

