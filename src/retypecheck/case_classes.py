"""Removal of members the checker generates for record declarations.

For a case class the checker adds equality, printing, copying and iteration
methods to the class and a companion object holding the factory and the
extractor. Checked again, these members would clash with the ones generated
anew, so they are stripped before the tree is reset. A companion object that
the checker synthesized is dropped as a whole. References elsewhere in the
tree to the affected symbols lose their symbol (or, for type trees, are
rebuilt from their type) so that they are resolved afresh.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from retypecheck.attachments import Marker, has, mark, unmark
from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.errors import UnfixableTreeError
from retypecheck.flags import Flag
from retypecheck.reconstruct import TypeReconstructor
from retypecheck.traverse import Transformer
from retypecheck.trees import (
    EMPTY,
    Block,
    ClassDef,
    DefDef,
    ImplDef,
    ModuleDef,
    PackageDef,
    Template,
    Tree,
    TypeTree,
)
from retypecheck.types import type_symbol

if TYPE_CHECKING:
    from retypecheck.host import Universe
    from retypecheck.names import Name
    from retypecheck.symbols import Symbol

logger = logging.getLogger(__name__)


class CaseClassFixer(Transformer):
    """Strip generated members from case classes and their companions.

    Case classes and objects are handled where they occur in a statement list
    (a template body, a block or a package). Their symbols, and the module
    classes of their companions, are collected in `symbols`.
    """

    def __init__(self, conventions: Conventions = DEFAULT_CONVENTIONS) -> None:
        self.conventions = conventions
        self.symbols: set[Symbol] = set()

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case Template(body=body):
                return super().transform(replace(tree, body=self.fix_case_classes(body)))
            case PackageDef(stats=stats):
                return super().transform(replace(tree, stats=self.fix_case_classes(stats)))
            case Block(stats=stats, expr=expr):
                expr, *rest = self.fix_case_classes((expr, *stats))
                return super().transform(replace(tree, stats=tuple(rest), expr=expr))
            case ClassDef(mods=mods) | ModuleDef(mods=mods) if (
                mods.has_flag(Flag.CASE) and not has(tree, Marker.CASE_CLASS)
            ):
                return self._unfixable(tree)
            case _:
                return super().transform(tree)

    def fix_case_classes(self, trees: tuple[Tree, ...]) -> tuple[Tree, ...]:
        """Clean the case classes and companions declared in one statement list."""
        names: set[Name] = {
            tree.name.to_term_name()
            for tree in trees
            if isinstance(tree, ClassDef) and tree.mods.has_flag(Flag.CASE)
        }

        for tree in trees:
            match tree:
                case ClassDef(mods=mods) if tree.symbol is not None and mods.has_flag(
                    Flag.CASE,
                ):
                    self.symbols.add(tree.symbol)
                case ModuleDef(mods=mods, name=name) if tree.symbol is not None and (
                    mods.has_flag(Flag.CASE) or name in names
                ):
                    self.symbols.add(tree.symbol)
                    if tree.symbol.module_class is not None:
                        self.symbols.add(tree.symbol.module_class)

        return tuple(self._fix(tree, names) for tree in trees)

    def _fix(self, tree: Tree, names: set[Name]) -> Tree:
        match tree:
            case ModuleDef(mods=mods, name=name) if name in names:
                if mods.has_flag(Flag.SYNTHETIC):
                    logger.debug("Dropping synthetic companion %s", name)
                    return EMPTY
                return self._reset_case_impl(tree)
            case ModuleDef(mods=mods) | ClassDef(mods=mods) if mods.has_flag(Flag.CASE):
                return self._reset_case_impl(tree)
            case _:
                return tree

    def _reset_case_impl(self, impl_def: ImplDef) -> ImplDef:
        impl = impl_def.impl
        body = tuple(
            stat
            for stat in impl.body
            if not (
                isinstance(stat, DefDef)
                and stat.mods.has_flag(Flag.SYNTHETIC)
                and self.conventions.is_synthetic_method_name(str(stat.name))
            )
        )
        return mark(replace(impl_def, impl=replace(impl, body=body)), Marker.CASE_CLASS)

    def _unfixable(self, tree: ClassDef | ModuleDef) -> Tree:
        message = (
            f"case class or object {tree.name} is nested outside a statement list; "
            "its generated members cannot be removed"
        )
        if self.conventions.abort_on_unfixable:
            raise UnfixableTreeError(tree.pos, message)
        logger.warning("%s: %s, leaving it unchanged", tree.pos, message)
        return super().transform(tree)


class _MarkerSweeper(Transformer):
    def transform(self, tree: Tree) -> Tree:
        return super().transform(unmark(tree, Marker.CASE_CLASS))


class CaseClassReferenceFixer(Transformer):
    """Detach references to symbols of cleaned case classes.

    Also removes the markers `CaseClassFixer` left on the cleaned declarations.
    Symbols inside a cleaned declaration are kept, but markers of case classes
    nested in it are removed as well.
    """

    def __init__(self, symbols: set[Symbol], reconstruct: TypeReconstructor) -> None:
        self.symbols = symbols
        self.reconstruct = reconstruct

    def refers_to_case_class(self, symbol: Symbol | None) -> bool:
        """Return True if the symbol or one of its owners was collected."""
        if symbol is None:
            return False
        return any(owner in self.symbols for owner in symbol.owner_chain())

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case _ if has(tree, Marker.CASE_CLASS):
                return _MarkerSweeper().transform(tree)
            case TypeTree() if tree.tpe is not None and self.refers_to_case_class(
                tree.symbol or type_symbol(tree.tpe),
            ):
                return self.reconstruct(tree.tpe)
            case _ if self.refers_to_case_class(tree.symbol):
                return super().transform(tree.with_symbol(None))
            case _:
                return super().transform(tree)


def fix_case_classes(
    tree: Tree,
    universe: Universe,
    conventions: Conventions = DEFAULT_CONVENTIONS,
) -> Tree:
    """Clean case classes and detach references to their generated members.

    Raises:
        UnfixableTreeError: If a case class is nested where it cannot be
            cleaned and the conventions ask to abort

    """
    fixer = CaseClassFixer(conventions)
    # the tree itself is a statement of the context it is spliced into
    (fixed,) = fixer.fix_case_classes((tree,))
    fixed = fixer.transform(fixed)
    reference_fixer = CaseClassReferenceFixer(
        fixer.symbols,
        TypeReconstructor(universe, conventions),
    )
    return reference_fixer.transform(fixed)
