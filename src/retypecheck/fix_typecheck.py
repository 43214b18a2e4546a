"""Repair of trees the checker distorted.

Type-checking rewrites certain constructs (extractor patterns, fields with
accessors, lazy values, default arguments, identifiers injected from the
checker's own library) into forms that cannot be type-checked a second time.
`TypecheckRepair` restores their surface form while keeping the symbols and
types the checker resolved.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.flags import NO_MODIFIERS, Flag, Modifiers, clean_modifiers
from retypecheck.names import TermName
from retypecheck.reconstruct import expand_symbol
from retypecheck.traverse import Transformer, walk
from retypecheck.trees import (
    EMPTY,
    Apply,
    Assign,
    Block,
    DefDef,
    Ident,
    PackageDef,
    Select,
    Template,
    Tree,
    TypeTree,
    UnApply,
    ValDef,
    ValOrDefDef,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from retypecheck.host import Universe
    from retypecheck.names import Name
    from retypecheck.symbols import Symbol

logger = logging.getLogger(__name__)


def merge_annotations(
    declared: tuple[Tree, ...],
    *recorded: Iterable[Tree],
) -> tuple[Tree, ...]:
    """Append recorded annotations to the declared ones without duplicates.

    An annotation structurally equal to one already included is dropped.

    Args:
        declared: Annotations written in the modifiers, kept as they are
        recorded: Further annotation sources, in priority order

    Returns:
        The merged annotations

    """
    merged = list(declared)
    for source in recorded:
        for annotation in source:
            if annotation not in merged:
                merged.append(annotation)
    return tuple(merged)


class TypecheckRepair(Transformer):
    """Transformer restoring surface forms in a checked tree.

    Construct one per tree: the constructor indexes fields by accessor and
    default-argument helpers by use.

    Args:
        tree: The checked tree to be repaired
        universe: Well-known symbols of the checker
        enclosing_owner: Symbol of the declaration the tree is produced for
        conventions: Checker conventions

    """

    def __init__(
        self,
        tree: Tree,
        universe: Universe,
        enclosing_owner: Symbol | None = None,
        conventions: Conventions = DEFAULT_CONVENTIONS,
    ) -> None:
        self.universe = universe
        self.conventions = conventions

        # accessor symbol -> field declaration
        self.fields: dict[Symbol, ValDef] = {}
        for node in walk(tree):
            if isinstance(node, ValDef) and node.symbol is not None and node.symbol.is_term:
                for accessor in (node.symbol.getter, node.symbol.setter):
                    if accessor is not None:
                        self.fields[accessor] = node

        self.expanding_in_injected_package = self.in_injected_package(enclosing_owner)

        defined_default_args = {
            node.symbol
            for node in walk(tree)
            if isinstance(node, DefDef) and self.is_default_arg_def(node)
        }
        self.accessed_default_args = {
            node.symbol
            for node in walk(tree)
            if isinstance(node, Select) and node.symbol in defined_default_args
        }

    def in_injected_package(self, symbol: Symbol | None) -> bool:
        """Return True if the symbol lives in the checker's injected package."""
        root = self.universe.root_class
        for owner in symbol.owner_chain() if symbol is not None else ():
            if owner is root:
                return False
            if str(owner.name) == self.conventions.injected_package and owner.owner is root:
                return True
        return False

    def is_default_arg_def(self, defdef: DefDef) -> bool:
        """Return True for default-argument helper methods."""
        if defdef.symbol is None or defdef.symbol.owner is None:
            return False
        name = str(defdef.name)
        owner = defdef.symbol.owner.owner
        conventions = self.conventions

        is_default_arg = conventions.default_getter_marker in name and (
            name.endswith(conventions.relocated_suffix)
            or defdef.mods.has_flag(Flag.SYNTHETIC | Flag.DEFAULTPARAM)
        )
        is_constructor_inside_expression = name.startswith(
            conventions.constructor_encoded_name,
        ) and not (
            owner is not None
            and (owner.is_class or owner.is_module or owner.is_module_class)
        )
        return owner is not None and is_default_arg and not is_constructor_inside_expression

    def process_default_args(self, stats: tuple[Tree, ...]) -> tuple[Tree, ...]:
        """Reconcile the two forms of default-argument helpers in a statement list.

        The marker-suffixed form is dropped. If either form is referenced, a
        marker-suffixed copy of the canonical form is appended; references are
        renamed to that copy by `transform`.
        """
        suffix = self.conventions.relocated_suffix
        relocated: list[Tree] = []
        pending: dict[str, DefDef | None] = {}
        processed: list[Tree] = []

        for stat in stats:
            if not (isinstance(stat, DefDef) and self.is_default_arg_def(stat)):
                processed.append(stat)
                continue

            name = str(stat.name)
            if name.endswith(suffix):
                if stat.symbol in self.accessed_default_args:
                    canonical = pending.setdefault(name.removesuffix(suffix), None)
                    if canonical is not None:
                        relocated.append(canonical)
                processed.append(EMPTY)
                continue

            copy = DefDef(
                NO_MODIFIERS,
                TermName(name + suffix),
                stat.tparams,
                stat.vparamss,
                stat.tpt,
                stat.rhs,
                pos=stat.pos,
            )
            if stat.symbol in self.accessed_default_args or name in pending:
                relocated.append(copy)
            else:
                pending[name] = copy
            processed.append(stat)

        if relocated:
            logger.debug(
                "Relocated default-argument helpers: %s",
                ", ".join(str(r.name) for r in relocated if isinstance(r, DefDef)),
            )
        return (*processed, *relocated)

    def _private_within(self, symbol: Symbol, mods: Modifiers) -> Name:
        if symbol.private_within is not None:
            return symbol.private_within.name.to_type_name()
        return mods.private_within

    def _annotations(self, mods: Modifiers, *symbols: Symbol | None) -> tuple[Tree, ...]:
        return merge_annotations(
            mods.annotations,
            *(
                [self.transform(a) for a in symbol.annotations]
                for symbol in symbols
                if symbol is not None
            ),
        )

    def transform(self, tree: Tree) -> Tree:  # noqa: C901, PLR0911, PLR0912
        symbol = tree.symbol
        match tree:
            case TypeTree(original=original):
                if original is not None:
                    return replace(tree, original=self.transform(original))
                return tree

            # workaround for default arguments
            case Template(body=body):
                return super().transform(replace(tree, body=self.process_default_args(body)))

            case PackageDef(stats=stats):
                return super().transform(replace(tree, stats=self.process_default_args(stats)))

            case Block(stats=stats, expr=expr):
                expr, *rest = self.process_default_args((expr, *stats))
                return super().transform(replace(tree, stats=tuple(rest), expr=expr))

            case Select(qualifier=qualifier, name=name) if (
                symbol is not None and symbol in self.accessed_default_args
            ):
                suffix = self.conventions.relocated_suffix
                if not str(name).endswith(suffix):
                    name = TermName(str(name) + suffix)
                return super().transform(Select(qualifier, name, pos=tree.pos))

            # names of values injected from the checker's own library
            case Ident() if symbol is not None and symbol.is_term:
                if self.in_injected_package(symbol) and not self.expanding_in_injected_package:
                    return expand_symbol(
                        symbol,
                        self.universe.root_class,
                        self.conventions.root_package_name,
                    ).with_meta_of(tree)
                return tree

            # renamed imports
            case Select(qualifier=qualifier) if symbol is not None:
                return super().transform(
                    Select(qualifier, symbol.name).with_meta_of(tree),
                )

            # extractors
            case UnApply(
                fun=Apply(fun=fun, args=(Ident(name=TermName(value=selector)),)),
                args=args,
            ) if selector == self.conventions.unapply_selector_name:
                extractors = [
                    node.qualifier
                    for node in walk(fun)
                    if isinstance(node, Select)
                    and str(node.name) in self.conventions.extractor_method_names
                ]
                if len(extractors) == 1:
                    (extractor,) = extractors
                    return self.transform(Apply(extractor, args).with_meta_of(extractor))
                return super().transform(tree)

            # backing fields of vals and vars, and lazy value storage
            case ValDef(tpt=TypeTree(), rhs=rhs) if (
                symbol is not None
                and symbol.is_term
                and (
                    (symbol.is_lazy and symbol.is_implementation_artifact and rhs.is_empty)
                    or (symbol.is_private_this and symbol.getter in self.fields)
                )
            ):
                return EMPTY

            case DefDef() if symbol is not None and symbol.is_setter:
                return EMPTY

            # getters of vals and vars
            case DefDef(mods=mods, name=name) if (
                symbol is not None
                and symbol.is_term
                and not symbol.is_lazy
                and symbol.is_getter
                and symbol in self.fields
            ):
                return self._field_from_getter(tree, mods, name, symbol)

            # lazy vals
            case ValOrDefDef() if (
                symbol is not None and symbol.is_term and symbol.is_lazy and symbol.is_getter
            ):
                return self._lazy_field(tree, symbol)

            # defs
            case DefDef(
                mods=mods,
                name=name,
                tparams=tparams,
                vparamss=vparamss,
                tpt=tpt,
                rhs=rhs,
            ) if symbol is not None and symbol.is_term:
                flags = clean_modifiers(mods, self.conventions.round_trip_flags).flags
                method = DefDef(
                    Modifiers(
                        flags,
                        self._private_within(symbol, mods),
                        self._annotations(mods, symbol),
                    ),
                    name,
                    self.transform_trees(tparams),
                    tuple(self.transform_trees(vparams) for vparams in vparamss),
                    self.transform(tpt),
                    self.transform(rhs),
                    tpe=tree.tpe,
                    pos=tree.pos,
                )
                if str(name) != self.conventions.trait_init_name:
                    return method.with_symbol(symbol)
                return method

            case _:
                return super().transform(tree)

    def _field_from_getter(
        self,
        getter: DefDef,
        mods: Modifiers,
        name: TermName,
        symbol: Symbol,
    ) -> ValDef:
        field = self.fields[symbol]
        flags = clean_modifiers(mods, self.conventions.round_trip_flags).flags
        if field.symbol is not None and field.symbol.is_var:
            flags |= Flag.MUTABLE
        logger.debug("Rejoining accessors of %s into one field", name)
        return ValDef(
            Modifiers(
                flags,
                self._private_within(symbol, mods),
                self._annotations(mods, symbol, field.symbol),
            ),
            name,
            self.transform(field.tpt),
            self.transform(field.rhs),
            symbol=getter.symbol,
            tpe=field.tpe,
            pos=field.pos,
        )

    def _lazy_field(self, tree: DefDef | ValDef, symbol: Symbol) -> ValDef:
        mods = tree.mods
        initializer = next(
            (node.rhs for node in walk(tree.rhs) if isinstance(node, Assign)),
            tree.rhs,
        )
        field = self.fields.get(symbol)
        tpt = field.tpt if field is not None else tree.tpt
        meta = field if field is not None else tree
        flags = clean_modifiers(mods, self.conventions.round_trip_flags).flags
        return ValDef(
            Modifiers(
                flags,
                self._private_within(symbol, mods),
                self._annotations(mods, symbol, field.symbol if field is not None else None),
            ),
            tree.name,
            self.transform(tpt),
            self.transform(initializer),
            symbol=symbol,
            tpe=meta.tpe,
            pos=meta.pos,
        )


def fix_typecheck(
    tree: Tree,
    universe: Universe,
    enclosing_owner: Symbol | None = None,
    conventions: Conventions = DEFAULT_CONVENTIONS,
) -> Tree:
    """Repair a freshly checked tree so that it can be checked again."""
    return TypecheckRepair(tree, universe, enclosing_owner, conventions).transform(tree)

