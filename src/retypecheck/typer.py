"""Type-checking, un-type-checking and re-type-checking of trees.

Type-checking distorts certain trees (extractor patterns, lazy values, case
classes and others) in a way that they cannot be type-checked again. `Typer`
runs the external checker through a `Host` and applies the repair passes
that restore a checkable form:

    typer = Typer(host)
    checked = typer.typecheck(tree)
    moved = relocate(checked)  # splice into another context
    rechecked = typer.retypecheck_all(moved)

Failures of the checker, and constructs the repair passes cannot reverse, are
reported through `Host.abort`. `Typer.attempt` turns an abort into a
`TyperResult` instead.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from retypecheck.case_classes import fix_case_classes
from retypecheck.config import DEFAULT_CONVENTIONS, Conventions
from retypecheck.errors import AbortError, Failure, TypecheckError, TyperResult, UnfixableTreeError
from retypecheck.fix_typecheck import fix_typecheck
from retypecheck.fix_untypecheck import fix_untypecheck
from retypecheck.flags import clean_modifiers
from retypecheck.reconstruct import TypeReconstructor
from retypecheck.self_references import SelfReferenceFixer
from retypecheck.synthetic import (
    NonSyntheticTreeMarker,
    SyntheticImplicitParamListCleaner,
    SyntheticTreeMarker,
)
from retypecheck.type_applications import clean_type_applications

if TYPE_CHECKING:
    from collections.abc import Callable

    from retypecheck.flags import Modifiers
    from retypecheck.host import Host
    from retypecheck.trees import Tree
    from retypecheck.types import Type

logger = logging.getLogger(__name__)


class Typer:
    """Pipeline of the external checker and the repair passes.

    Args:
        host: The external checker
        conventions: Conventions of that checker

    """

    def __init__(self, host: Host, conventions: Conventions = DEFAULT_CONVENTIONS) -> None:
        self.host = host
        self.conventions = conventions
        self.reconstructor = TypeReconstructor(host.universe, conventions)

    def typecheck(self, tree: Tree, identify_synthetic_implicit_args: bool = False) -> Tree:
        """Type-check a tree and repair the distortions of the checker.

        Args:
            tree: Tree to check
            identify_synthetic_implicit_args: Mark the implicit argument lists
                the checker inserts, so that `untypecheck` can remove them

        Returns:
            The checked and repaired tree

        """
        try:
            if identify_synthetic_implicit_args:
                logger.debug("Marking user-written applications")
                tree = NonSyntheticTreeMarker().transform(tree)
            logger.debug("Type-checking")
            checked = self.host.check(tree)
            if identify_synthetic_implicit_args:
                logger.debug("Marking inserted implicit argument lists")
                checked = SyntheticTreeMarker().transform(checked)
        except TypecheckError as e:
            self.host.abort(e.pos, e.message)

        logger.debug("Repairing checked tree")
        return fix_typecheck(
            checked,
            self.host.universe,
            self.host.enclosing_owner,
            self.conventions,
        )

    def untypecheck(self, tree: Tree, remove_synthetic_implicit_args: bool = False) -> Tree:
        """Un-type-check a tree so that it can be type-checked again.

        Args:
            tree: A checked tree
            remove_synthetic_implicit_args: Remove the implicit argument lists
                `typecheck` identified as inserted by the checker

        Returns:
            The reset and repaired tree

        """
        tree = self._prepare_reset(tree, remove_synthetic_implicit_args)
        logger.debug("Resetting")
        return self._fix_untypecheck(self.host.reset(tree))

    def untypecheck_all(self, tree: Tree, remove_synthetic_implicit_args: bool = False) -> Tree:
        """Like `untypecheck`, also fixing self references and cached bindings.

        Use this for trees that are moved to a different place than the one
        they were checked in.
        """
        tree = self._prepare_reset(tree, remove_synthetic_implicit_args)
        logger.debug("Fixing self references")
        tree = SelfReferenceFixer(self.conventions).transform(tree)
        logger.debug("Resetting all")
        return self._fix_untypecheck(self.host.reset_all(tree))

    def retypecheck(self, tree: Tree, remove_synthetic_implicit_args: bool = False) -> Tree:
        """Un-type-check and type-check a tree again."""
        return self.typecheck(
            self.untypecheck(tree, remove_synthetic_implicit_args),
            remove_synthetic_implicit_args,
        )

    def retypecheck_all(self, tree: Tree, remove_synthetic_implicit_args: bool = False) -> Tree:
        """Un-type-check a tree with `untypecheck_all` and type-check it again."""
        return self.typecheck(
            self.untypecheck_all(tree, remove_synthetic_implicit_args),
            remove_synthetic_implicit_args,
        )

    def clean_modifiers(self, mods: Modifiers) -> Modifiers:
        """Drop the flags that only the checker uses from a modifier set."""
        return clean_modifiers(mods, self.conventions.round_trip_flags)

    def reconstruct(self, tpe: Type) -> Tree:
        """Create surface type syntax for a resolved type."""
        return self.reconstructor(tpe)

    def attempt(
        self,
        operation: Callable[..., Tree],
        tree: Tree,
        *args: Any,
    ) -> TyperResult:
        """Run a pipeline operation, capturing an abort as a failed result.

        Args:
            operation: One of the pipeline methods, e.g. ``typer.retypecheck``
            tree: Tree to pass to the operation
            args: Further arguments of the operation

        Returns:
            The resulting tree, or the position and message of the abort

        """
        try:
            return TyperResult(tree=operation(tree, *args))
        except AbortError as e:
            logger.debug("Aborted: %s", e)
            return TyperResult(failure=Failure(e.pos, e.message))

    def _prepare_reset(self, tree: Tree, remove_synthetic_implicit_args: bool) -> Tree:
        universe = self.host.universe
        logger.debug("Repairing checked tree")
        tree = fix_typecheck(tree, universe, self.host.enclosing_owner, self.conventions)
        logger.debug("Fixing case classes")
        try:
            tree = fix_case_classes(tree, universe, self.conventions)
        except UnfixableTreeError as e:
            self.host.abort(e.pos, e.message)
        if remove_synthetic_implicit_args:
            logger.debug("Removing inserted implicit argument lists")
            tree = SyntheticImplicitParamListCleaner().transform(tree)
        logger.debug("Cleaning type applications")
        return clean_type_applications(tree, universe, self.conventions)

    def _fix_untypecheck(self, tree: Tree) -> Tree:
        logger.debug("Cleaning reset tree")
        return fix_untypecheck(tree, self.host.universe, self.conventions)
