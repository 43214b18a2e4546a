"""Generic tree traversal."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any

from retypecheck.flags import Modifiers
from retypecheck.trees import Tree, TypeTree

if TYPE_CHECKING:
    from collections.abc import Iterator

_METADATA = frozenset({"symbol", "tpe", "pos", "attachments"})


class Transformer:
    """Base class for rebuilding tree transformations.

    Subclass and override `transform` with pattern matching on node kinds,
    delegating to `transform_children` (or ``super().transform``) for the
    kinds that need no special treatment:

        class Renamer(Transformer):
            def transform(self, tree):
                match tree:
                    case Ident(name=TermName("x")):
                        return replace(tree, name=TermName("y"))
                    case _:
                        return super().transform(tree)

    A node none of whose children changed is returned as is, so identity
    survives a transformation wherever nothing was rewritten. The original
    syntax of a `TypeTree` is not visited; passes that care about it handle
    `TypeTree` explicitly.
    """

    def transform(self, tree: Tree) -> Tree:
        """Transform a tree. The default rebuilds it from transformed children."""
        return self.transform_children(tree)

    def transform_children(self, tree: Tree) -> Tree:
        """Rebuild a node from its transformed children, keeping its metadata."""
        if isinstance(tree, TypeTree):
            return tree

        changes: dict[str, Any] = {}
        for f in fields(tree):
            if f.name in _METADATA:
                continue
            value = getattr(tree, f.name)
            transformed = self._transform_value(value)
            if transformed is not value:
                changes[f.name] = transformed

        return replace(tree, **changes) if changes else tree

    def transform_trees(self, trees: tuple[Tree, ...]) -> tuple[Tree, ...]:
        """Transform a statement or argument list."""
        return self._transform_value(trees)

    def transform_modifiers(self, mods: Modifiers) -> Modifiers:
        """Transform the annotations of a modifier set."""
        annotations = self.transform_trees(mods.annotations)
        if annotations is mods.annotations:
            return mods
        return replace(mods, annotations=annotations)

    def _transform_value(self, value: Any) -> Any:
        match value:
            case Tree():
                return self.transform(value)
            case Modifiers():
                return self.transform_modifiers(value)
            case tuple():
                items = tuple(self._transform_value(item) for item in value)
                if all(a is b for a, b in zip(items, value, strict=True)):
                    return value
                return items
            case _:
                return value


def children(tree: Tree) -> Iterator[Tree]:
    """Yield the direct subtrees of a tree in field order."""
    if isinstance(tree, TypeTree):
        return
    for f in fields(tree):
        if f.name not in _METADATA:
            yield from _subtrees(getattr(tree, f.name))


def _subtrees(value: Any) -> Iterator[Tree]:
    match value:
        case Tree():
            yield value
        case Modifiers(annotations=annotations):
            yield from annotations
        case tuple():
            for item in value:
                yield from _subtrees(item)


def walk(tree: Tree) -> Iterator[Tree]:
    """Yield a tree and all of its subtrees in pre-order."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(children(node))))
