"""Cleanup of a tree after its symbols and types were reset."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.flags import Flag
from retypecheck.names import TermName
from retypecheck.traverse import Transformer
from retypecheck.trees import (
    EMPTY,
    Annotated,
    Apply,
    DefDef,
    Function,
    Ident,
    ModuleDef,
    Tree,
    Typed,
    TypeTree,
)

if TYPE_CHECKING:
    from retypecheck.host import Universe


class UntypecheckRepair(Transformer):
    """Remove leftovers of the checker that the reset does not remove."""

    def __init__(
        self,
        universe: Universe,
        conventions: Conventions = DEFAULT_CONVENTIONS,
    ) -> None:
        self.universe = universe
        self.conventions = conventions

    def transform(self, tree: Tree) -> Tree:  # noqa: C901, PLR0911
        match tree:
            case TypeTree(original=original):
                if original is not None:
                    return replace(tree, original=self.transform(original))
                return tree

            # applications of objects are resolved to their apply method again
            case Apply(fun=fun) if fun.symbol is not None and fun.symbol.is_module:
                return super().transform(replace(tree, fun=fun.with_symbol(None)))

            case Typed(expr=expr, tpt=tpt):
                match tpt:
                    # eta-expansion marker
                    case Function(vparams=(), body=body) if body.is_empty:
                        return super().transform(tree)
                    case Annotated(arg=arg) if arg == expr:
                        return super().transform(tpt)
                    case TypeTree(original=Annotated() as original):
                        return super().transform(original)
                    case _ if not tpt.is_type:
                        return super().transform(expr)
                    case _:
                        return super().transform(tree)

            case Ident() if (
                tree.symbol is not None and tree.symbol.is_term and tree.symbol.is_lazy
            ):
                return tree.with_symbol(None)

            case DefDef(mods=mods, name=name) if (
                mods.has_flag(Flag.SYNTHETIC | Flag.DEFAULTPARAM)
                and self.conventions.default_getter_marker in str(name)
            ):
                return EMPTY

            case ModuleDef():
                module = super().transform(tree)
                if isinstance(module, ModuleDef) and self.is_empty_synthetic_module(module):
                    return EMPTY
                return module

            case _:
                return super().transform(tree)

    def is_empty_synthetic_module(self, module: ModuleDef) -> bool:
        """Return True for a synthetic object with neither members nor parents of note."""
        if not module.mods.has_flag(Flag.SYNTHETIC):
            return False
        if not module.impl.self_type.is_empty:
            return False

        parents, body = module.impl.parents, module.impl.body
        constructor = TermName(self.conventions.constructor_name)
        match body:
            case ():
                pass
            case (DefDef(name=name, tparams=(), vparamss=((),)),) if name == constructor:
                pass
            case _:
                return False

        match parents:
            case ():
                return True
            case (parent,):
                return parent.tpe is not None and parent.tpe == self.universe.anyref_type
            case _:
                return False


def fix_untypecheck(
    tree: Tree,
    universe: Universe,
    conventions: Conventions = DEFAULT_CONVENTIONS,
) -> Tree:
    """Clean a tree after its symbols and types were reset."""
    return UntypecheckRepair(universe, conventions).transform(tree)
