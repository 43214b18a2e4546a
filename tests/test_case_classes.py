"""Tests for cleaning case classes and references to them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from retypecheck.attachments import Marker, has
from retypecheck.case_classes import fix_case_classes
from retypecheck.config import Conventions
from retypecheck.errors import UnfixableTreeError
from retypecheck.flags import NO_MODIFIERS, Flag, Modifiers
from retypecheck.names import TermName, TypeName
from retypecheck.traverse import walk
from retypecheck.trees import (
    EMPTY,
    Apply,
    Block,
    ClassDef,
    DefDef,
    Ident,
    Literal,
    ModuleDef,
    PackageDef,
    Position,
    Select,
    Template,
    Tree,
    TypeTree,
    ValDef,
)
from retypecheck.types import NO_PREFIX, TypeRef

if TYPE_CHECKING:
    from conftest import World


def method(name: str, flags: Flag = Flag.SYNTHETIC) -> DefDef:
    return DefDef(Modifiers(flags), TermName(name), (), ((),), TypeTree(), Literal(0))


def template(*body: Tree) -> Template:
    return Template((), EMPTY, body)


class Point:
    """``case class P(x: Int) { def area = 0 }`` and its synthetic companion, checked."""

    def __init__(self, world: World) -> None:
        self.cls = world.class_symbol("P", flags=Flag.CASE)
        self.module, self.module_class = world.module_symbol("P", flags=Flag.SYNTHETIC)
        self.apply = world.method("apply", self.module_class)
        self.field = ValDef(Modifiers(Flag.CASEACCESSOR), TermName("x"), TypeTree(), EMPTY)
        self.area = method("area", Flag.FINAL)

    def class_def(self) -> ClassDef:
        return ClassDef(
            Modifiers(Flag.CASE),
            TypeName("P"),
            (),
            template(
                self.field,
                method("copy"),
                method("copy$default$1"),
                method("productArity"),
                method("hashCode"),
                self.area,
            ),
            symbol=self.cls,
        )

    def companion(self, flags: Flag = Flag.SYNTHETIC, *extra: Tree) -> ModuleDef:
        return ModuleDef(
            Modifiers(flags),
            TermName("P"),
            template(method("apply"), method("unapply"), method("toString"), *extra),
            symbol=self.module,
        )

    def use(self) -> ValDef:
        """``val p: P = P.apply(1)``."""
        return ValDef(
            NO_MODIFIERS,
            TermName("p"),
            TypeTree(tpe=TypeRef(NO_PREFIX, self.cls)),
            Apply(
                Select(Ident(TermName("P"), symbol=self.module), TermName("apply"), symbol=self.apply),
                (Literal(1),),
            ),
        )


@pytest.fixture
def point(world: World) -> Point:
    return Point(world)


def stats_of(tree: Tree) -> tuple[Tree, ...]:
    assert isinstance(tree, PackageDef)
    return tree.stats


class TestCaseClasses:
    """Generated members are stripped from case classes."""

    def test_generated_members_removed(self, world: World, point: Point) -> None:
        """Generated members go, written ones and the symbol stay."""
        tree = PackageDef(Ident(TermName("app")), (point.class_def(),))
        (cls,) = stats_of(fix_case_classes(tree, world.universe))
        assert isinstance(cls, ClassDef)
        assert cls.impl.body == (point.field, point.area)
        assert cls.symbol is point.cls

    def test_markers_removed(self, world: World, point: Point) -> None:
        """No cleaned declaration keeps its marker."""
        tree = PackageDef(Ident(TermName("app")), (point.class_def(), point.companion(NO_MODIFIERS.flags)))
        result = fix_case_classes(tree, world.universe)
        assert not any(has(node, Marker.CASE_CLASS) for node in walk(result))

    def test_user_written_member_with_generated_name_kept(self, world: World, point: Point) -> None:
        """Only members the checker generated are removed."""
        user_copy = method("copy", Flag.FINAL)
        cls = ClassDef(Modifiers(Flag.CASE), TypeName("P"), (), template(user_copy), symbol=point.cls)
        (result,) = stats_of(fix_case_classes(PackageDef(Ident(TermName("app")), (cls,)), world.universe))
        assert isinstance(result, ClassDef)
        assert result.impl.body == (user_copy,)

    def test_case_object(self, world: World) -> None:
        """Case objects lose their generated members as well."""
        module, _ = world.module_symbol("Red", flags=Flag.CASE)
        tree = Block(
            (
                ModuleDef(
                    Modifiers(Flag.CASE),
                    TermName("Red"),
                    template(method("toString"), method("readResolve"), method("shade", NO_MODIFIERS.flags)),
                    symbol=module,
                ),
            ),
            Literal(()),
        )
        result = fix_case_classes(tree, world.universe)
        assert isinstance(result, Block)
        (obj,) = result.stats
        assert isinstance(obj, ModuleDef)
        assert [str(s.name) for s in obj.impl.body if isinstance(s, DefDef)] == ["shade"]

    def test_root_case_class(self, world: World, point: Point) -> None:
        """The tree itself is cleaned like a statement."""
        result = fix_case_classes(point.class_def(), world.universe)
        assert isinstance(result, ClassDef)
        assert result.impl.body == (point.field, point.area)

    def test_configured_names(self, world: World, point: Point) -> None:
        """The conventions decide which names are generated."""
        conventions = Conventions(
            synthetic_method_names=frozenset({"hashCode"}),
            synthetic_method_prefixes=(),
        )
        tree = PackageDef(Ident(TermName("app")), (point.class_def(),))
        (cls,) = stats_of(fix_case_classes(tree, world.universe, conventions))
        assert isinstance(cls, ClassDef)
        names = [str(s.name) for s in cls.impl.body if isinstance(s, DefDef)]
        assert names == ["copy", "copy$default$1", "productArity", "area"]


class TestCompanions:
    """Companion objects of case classes."""

    def test_synthetic_companion_dropped(self, world: World, point: Point) -> None:
        """A companion the checker generated is removed entirely."""
        tree = PackageDef(Ident(TermName("app")), (point.class_def(), point.companion()))
        _, companion = stats_of(fix_case_classes(tree, world.universe))
        assert companion is EMPTY

    def test_written_companion_cleaned(self, world: World, point: Point) -> None:
        """A companion the user wrote keeps its own members."""
        helper = method("helper", NO_MODIFIERS.flags)
        tree = PackageDef(
            Ident(TermName("app")),
            (point.class_def(), point.companion(NO_MODIFIERS.flags, helper)),
        )
        _, companion = stats_of(fix_case_classes(tree, world.universe))
        assert isinstance(companion, ModuleDef)
        assert companion.impl.body == (helper,)


class TestReferences:
    """References to cleaned declarations are detached."""

    def test_references_desymbolized(self, world: World, point: Point) -> None:
        """References to the companion lose their symbols."""
        tree = PackageDef(Ident(TermName("app")), (point.class_def(), point.companion(), point.use()))
        _, _, use = stats_of(fix_case_classes(tree, world.universe))
        assert isinstance(use, ValDef)
        assert use.rhs == point.use().rhs
        assert all(node.symbol is None for node in walk(use.rhs))

    def test_type_trees_reconstructed(self, world: World, point: Point) -> None:
        """Resolved types of the case class become written syntax."""
        tree = PackageDef(Ident(TermName("app")), (point.class_def(), point.use()))
        _, use = stats_of(fix_case_classes(tree, world.universe))
        assert isinstance(use, ValDef)
        assert use.tpt == Ident(TypeName("P"))

    def test_unrelated_symbols_kept(self, world: World, point: Point) -> None:
        """References to other declarations are untouched."""
        other = world.method("other")
        reference = Ident(TermName("other"), symbol=other)
        tree = PackageDef(Ident(TermName("app")), (point.class_def(), reference))
        _, result = stats_of(fix_case_classes(tree, world.universe))
        assert result is reference


class TestUnfixable:
    """Case classes nested where they cannot be cleaned."""

    def nested(self, point: Point) -> DefDef:
        cls = point.class_def().with_pos(Position("a.scala", 7, 3))
        return DefDef(NO_MODIFIERS, TermName("make"), (), (), TypeTree(), cls)

    def test_aborts(self, world: World, point: Point) -> None:
        """The position and name of the declaration are reported."""
        with pytest.raises(UnfixableTreeError) as info:
            fix_case_classes(self.nested(point), world.universe)
        assert info.value.pos == Position("a.scala", 7, 3)
        assert "P" in info.value.message

    def test_left_in_place(
        self,
        world: World,
        point: Point,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """With aborting disabled the declaration is kept and a warning is logged."""
        tree = self.nested(point)
        with caplog.at_level(logging.WARNING, logger="retypecheck.case_classes"):
            result = fix_case_classes(tree, world.universe, Conventions(abort_on_unfixable=False))
        assert result == tree
        assert "a.scala:7:3" in caplog.text

    def test_block_statement_is_cleaned(self, world: World, point: Point) -> None:
        """A block is a statement list too."""
        tree = Block((point.class_def(),), Literal(0))
        result = fix_case_classes(tree, world.universe)
        assert isinstance(result, Block)
        (cls,) = result.stats
        assert isinstance(cls, ClassDef)
        assert cls.impl.body == (point.field, point.area)


class TestNestedCaseClasses:
    """Case classes declared inside other case classes."""

    def outer(self, world: World) -> ClassDef:
        outer = world.class_symbol("Outer", flags=Flag.CASE)
        inner = world.class_symbol("Inner", outer, flags=Flag.CASE)
        inner_def = ClassDef(
            Modifiers(Flag.CASE),
            TypeName("Inner"),
            (),
            template(method("copy"), method("area", Flag.FINAL)),
            symbol=inner,
            pos=Position("a.scala", 4, 5),
        )
        return ClassDef(
            Modifiers(Flag.CASE),
            TypeName("Outer"),
            (),
            template(method("hashCode"), inner_def),
            symbol=outer,
        )

    def inner_of(self, tree: Tree) -> ClassDef:
        (outer,) = stats_of(tree)
        assert isinstance(outer, ClassDef)
        (inner,) = outer.impl.body
        assert isinstance(inner, ClassDef)
        return inner

    def test_inner_cleaned(self, world: World) -> None:
        """Generated members are stripped at every level."""
        result = fix_case_classes(PackageDef(EMPTY, (self.outer(world),)), world.universe)
        inner = self.inner_of(result)
        assert [str(s.name) for s in inner.impl.body if isinstance(s, DefDef)] == ["area"]

    def test_no_markers_left(self, world: World) -> None:
        """Markers of nested declarations are removed along with the outer one."""
        result = fix_case_classes(PackageDef(EMPTY, (self.outer(world),)), world.universe)
        assert not any(has(node, Marker.CASE_CLASS) for node in walk(result))

    def test_inner_symbols_kept(self, world: World) -> None:
        """Declarations inside a cleaned case class keep their symbols."""
        tree = PackageDef(EMPTY, (self.outer(world),))
        inner = self.inner_of(fix_case_classes(tree, world.universe))
        assert inner.symbol is not None
        assert str(inner.symbol.name) == "Inner"

    def test_moved_inner_is_unfixable(self, world: World) -> None:
        """A cleaned nested case class moved out of its statement list is reported."""
        inner = self.inner_of(fix_case_classes(PackageDef(EMPTY, (self.outer(world),)), world.universe))
        moved = DefDef(NO_MODIFIERS, TermName("make"), (), (), TypeTree(), inner)
        with pytest.raises(UnfixableTreeError) as info:
            fix_case_classes(moved, world.universe)
        assert info.value.pos == Position("a.scala", 4, 5)
