"""Normalization of self-qualified member accesses.

A tree produced by the checker qualifies members of enclosing classes
explicitly (``C.this.x``). Once the tree is moved elsewhere, that qualifier
may no longer name an enclosing class. `SelfReferenceFixer` drops the
qualifier where the plain name resolves to the same member, and turns it
into a path to the object where the enclosing object is gone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.traverse import Transformer
from retypecheck.trees import DefTree, Ident, ImplDef, Select, This, Tree

if TYPE_CHECKING:
    from retypecheck.names import Name, TypeName


class SelfReferenceFixer(Transformer):
    """Rewrite ``C.this.x`` accesses that are no longer valid where they are.

    Keeps a stack of the enclosing classes and objects with the names of
    their members. Use one instance per traversal.
    """

    def __init__(self, conventions: Conventions = DEFAULT_CONVENTIONS) -> None:
        self.conventions = conventions
        self.stack: list[tuple[TypeName, frozenset[Name]]] = []

    def member_names(self, impl_def: ImplDef) -> frozenset[Name]:
        """Names of the members inherited or declared by a class or object."""
        inherited = (
            member.name
            for parent in impl_def.impl.parents
            if parent.symbol is not None and parent.symbol.is_type
            for member in parent.symbol.members
        )
        declared = (stat.name for stat in impl_def.impl.body if isinstance(stat, DefTree))
        return frozenset((*inherited, *declared))

    def lookup(self, this_name: TypeName, selected: Name) -> bool | None:
        """Whether the innermost frame named `this_name` declares `selected`.

        Returns:
            None if no enclosing frame has that name

        """
        if str(this_name).startswith(self.conventions.anonymous_prefix):
            return False
        for name, names in reversed(self.stack):
            if name == this_name:
                return selected in names
        return None

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case ImplDef():
                self.stack.append((tree.name.to_type_name(), self.member_names(tree)))
                try:
                    return super().transform(tree)
                finally:
                    self.stack.pop()

            case Select(qualifier=This(qual=this_name) as this, name=selected):
                match self.lookup(this_name, selected):
                    case False:
                        pos = tree.pos if tree.pos.is_defined else this.pos
                        return Ident(selected, tpe=tree.tpe, pos=pos)
                    case True:
                        return tree
                    case None if (
                        this.symbol is not None
                        and this.symbol.is_module_class
                        and not this.symbol.is_package
                        and not this.symbol.is_package_class
                    ):
                        return Select(Ident(this_name.to_term_name()), selected)
                    case _:
                        return tree

            case _:
                return super().transform(tree)
