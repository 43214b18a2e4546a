"""Classification of checker-inserted implicit argument lists.

Before the checker runs, every application is marked as written by the user.
Afterwards, an application of a method whose last parameter list is implicit
and that does not carry that mark was inserted by the checker: it is marked
synthetic and can later be removed again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from retypecheck.attachments import Marker, has, mark, unmark
from retypecheck.traverse import Transformer
from retypecheck.trees import Apply, Tree

if TYPE_CHECKING:
    from retypecheck.symbols import Symbol


def has_implicit_param_list(symbol: Symbol | None) -> bool:
    """Return True if the method's last parameter list is implicit."""
    if symbol is None or not symbol.is_method or not symbol.param_lists:
        return False
    last = symbol.param_lists[-1]
    return bool(last) and last[0].is_implicit


class NonSyntheticTreeMarker(Transformer):
    """Mark every application as user-written and drop stale markers."""

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case Apply():
                tree = unmark(mark(tree, Marker.NON_SYNTHETIC), Marker.SYNTHETIC)
            case _:
                tree = unmark(unmark(tree, Marker.SYNTHETIC), Marker.NON_SYNTHETIC)
        return super().transform(tree)


class SyntheticTreeMarker(Transformer):
    """Mark applications whose implicit argument list the checker inserted.

    The function part of a marked application is recorded as processed: if it
    is itself an application (of the explicit argument lists), it is not
    classified again.
    """

    def __init__(self) -> None:
        self._processed: set[int] = set()

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case Apply(fun=fun):
                processed = id(tree) in self._processed
                written = has(tree, Marker.NON_SYNTHETIC)
                tree = unmark(tree, Marker.NON_SYNTHETIC)
                if processed:
                    self._processed.add(id(fun))
                elif has_implicit_param_list(tree.symbol) and not written:
                    tree = mark(tree, Marker.SYNTHETIC)
                    self._processed.add(id(fun))
                return super().transform(tree)
            case _:
                return super().transform(tree)


class SyntheticImplicitParamListCleaner(Transformer):
    """Remove applications marked synthetic, keeping their function part."""

    def transform(self, tree: Tree) -> Tree:
        match tree:
            case Apply(fun=fun) if has(tree, Marker.SYNTHETIC):
                return self.transform(fun)
            case _:
                return super().transform(tree)
