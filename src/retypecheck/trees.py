"""Abstract syntax trees with checker metadata.

Every node kind is a frozen dataclass. The positional fields are the node's
structure. The keyword-only metadata fields (``symbol``, ``tpe``, ``pos`` and
``attachments``) are attached by the checker or by a repair pass and do not
take part in equality, so ``a == b`` compares trees by structure.

Example:
    tree = Apply(Ident(TermName("f")), (Literal(1),), pos=Position("a.scala", 3, 7))
    tree == Apply(Ident(TermName("f")), (Literal(1),))  # True

"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Self, dataclass_transform

if TYPE_CHECKING:
    from retypecheck.attachments import Marker
    from retypecheck.flags import Modifiers
    from retypecheck.names import Name, TermName, TypeName
    from retypecheck.symbols import Symbol
    from retypecheck.types import Type


@dataclass(frozen=True)
class Position:
    """Source location of a tree."""

    source: str = ""
    line: int = 0
    column: int = 0

    @property
    def is_defined(self) -> bool:
        return self.line > 0

    def __str__(self) -> str:
        if not self.is_defined:
            return "<no position>"
        return f"{self.source or '<unknown>'}:{self.line}:{self.column}"


NO_POSITION = Position()


@dataclass(frozen=True)
@dataclass_transform(frozen_default=True)
class Tree:
    """Base for AST nodes."""

    symbol: Symbol | None = field(default=None, compare=False, repr=False, kw_only=True)
    tpe: Type | None = field(default=None, compare=False, repr=False, kw_only=True)
    pos: Position = field(
        default=NO_POSITION,
        compare=False,
        repr=False,
        kw_only=True,
    )
    attachments: frozenset[Marker] = field(
        default=frozenset(),
        compare=False,
        repr=False,
        kw_only=True,
    )

    def __init_subclass__(cls) -> None:
        """Turn every node kind into a frozen dataclass."""
        dataclass(frozen=True)(cls)

    @property
    def is_empty(self) -> bool:
        return False

    @property
    def is_type(self) -> bool:
        """Return True if the tree occupies a type position."""
        return False

    def with_symbol(self, symbol: Symbol | None) -> Self:
        return replace(self, symbol=symbol)

    def with_type(self, tpe: Type | None) -> Self:
        return replace(self, tpe=tpe)

    def with_pos(self, pos: Position) -> Self:
        return replace(self, pos=pos)

    def with_meta_of(self, other: Tree) -> Self:
        """Take position, type and (if set) symbol from another tree."""
        symbol = other.symbol if other.symbol is not None else self.symbol
        return replace(self, symbol=symbol, tpe=other.tpe, pos=other.pos)


# =============================================================================
# Grouping bases
# =============================================================================


class TypTree(Tree):
    """Tree in a type position."""

    @property
    def is_type(self) -> bool:
        return True


class DefTree(Tree):
    """Tree that introduces a name."""


class MemberDef(DefTree):
    """Declaration carrying modifiers."""


class ValOrDefDef(MemberDef):
    """Value or method declaration."""


class ImplDef(MemberDef):
    """Class or module declaration with a template body."""


# =============================================================================
# Terms
# =============================================================================


class EmptyTree(Tree):
    """Absent tree; also the placeholder for deleted declarations."""

    @property
    def is_empty(self) -> bool:
        return True


EMPTY = EmptyTree()


class Ident(Tree):
    """Unqualified reference: ``name``."""

    name: Name

    @property
    def is_type(self) -> bool:
        return self.name.is_type_name


class Select(Tree):
    """Member selection: ``qualifier.name``."""

    qualifier: Tree
    name: Name

    @property
    def is_type(self) -> bool:
        return self.name.is_type_name


class This(Tree):
    """Self reference: ``qual.this``."""

    qual: TypeName


class Literal(Tree):
    """Literal constant."""

    value: Any


class Apply(Tree):
    """Application: ``fun(args)``."""

    fun: Tree
    args: tuple[Tree, ...] = ()


class TypeApply(Tree):
    """Type application: ``fun[args]``."""

    fun: Tree
    args: tuple[Tree, ...] = ()


class UnApply(Tree):
    """Extractor pattern as rewritten by the checker."""

    fun: Tree
    args: tuple[Tree, ...] = ()


class Typed(Tree):
    """Type ascription: ``expr: tpt``."""

    expr: Tree
    tpt: Tree


class Assign(Tree):
    """Assignment: ``lhs = rhs``."""

    lhs: Tree
    rhs: Tree


class Annotated(Tree):
    """Annotated expression or type: ``arg: @annot``."""

    annot: Tree
    arg: Tree

    @property
    def is_type(self) -> bool:
        return self.arg.is_type


class Function(Tree):
    """Anonymous function: ``(vparams) => body``."""

    vparams: tuple[Tree, ...]
    body: Tree


class Block(Tree):
    """Block of statements ending in an expression."""

    stats: tuple[Tree, ...]
    expr: Tree


class If(Tree):
    """Conditional expression."""

    cond: Tree
    thenp: Tree
    elsep: Tree


class CaseDef(Tree):
    """Case clause: ``case pat if guard => body``."""

    pat: Tree
    guard: Tree
    body: Tree


class Match(Tree):
    """Pattern match: ``selector match { cases }``."""

    selector: Tree
    cases: tuple[Tree, ...]


class Bind(DefTree):
    """Pattern binder: ``name @ body``."""

    name: Name
    body: Tree


class New(Tree):
    """Instance creation: ``new tpt``."""

    tpt: Tree


class Template(Tree):
    """Body of a class, module or compound type."""

    parents: tuple[Tree, ...]
    self_type: Tree
    body: tuple[Tree, ...]


class PackageDef(Tree):
    """Package clause with its statements."""

    pid: Tree
    stats: tuple[Tree, ...]


# =============================================================================
# Declarations
# =============================================================================


class ValDef(ValOrDefDef):
    """Value, variable, lazy value or parameter declaration."""

    mods: Modifiers
    name: TermName
    tpt: Tree
    rhs: Tree


class DefDef(ValOrDefDef):
    """Method declaration."""

    mods: Modifiers
    name: TermName
    tparams: tuple[Tree, ...]
    vparamss: tuple[tuple[Tree, ...], ...]
    tpt: Tree
    rhs: Tree


class TypeDef(MemberDef):
    """Type member, type alias or type parameter declaration."""

    mods: Modifiers
    name: TypeName
    tparams: tuple[Tree, ...]
    rhs: Tree


class ClassDef(ImplDef):
    """Class or trait declaration."""

    mods: Modifiers
    name: TypeName
    tparams: tuple[Tree, ...]
    impl: Template


class ModuleDef(ImplDef):
    """Singleton object declaration."""

    mods: Modifiers
    name: TermName
    impl: Template


# =============================================================================
# Types
# =============================================================================


class TypeTree(TypTree):
    """Opaque type node carrying a resolved type in ``tpe``.

    ``original`` is the surface type syntax the checker resolved, if any.
    """

    original: Tree | None = None


class SingletonTypeTree(TypTree):
    """Singleton type: ``ref.type``."""

    ref: Tree


class SelectFromTypeTree(TypTree):
    """Type projection: ``qualifier#name``."""

    qualifier: Tree
    name: TypeName


class AppliedTypeTree(TypTree):
    """Applied type constructor: ``tpt[args]``."""

    tpt: Tree
    args: tuple[Tree, ...]


class TypeBoundsTree(TypTree):
    """Bounds: ``>: lo <: hi``; an empty side is unbounded."""

    lo: Tree
    hi: Tree


class ExistentialTypeTree(TypTree):
    """Existential type: ``tpt forSome { where_clauses }``."""

    tpt: Tree
    where_clauses: tuple[Tree, ...]


class CompoundTypeTree(TypTree):
    """Compound type: ``P1 with P2 { decls }``."""

    templ: Template
