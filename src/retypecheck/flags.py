"""Modifier flags and modifier sets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag, auto
from functools import reduce
from operator import or_
from typing import TYPE_CHECKING

from retypecheck.names import EMPTY_TYPE_NAME, Name

if TYPE_CHECKING:
    from retypecheck.trees import Tree


class Flag(IntFlag):
    """Modifier and symbol flags.

    Most members mirror surface modifiers. ``STABLE``, ``ACCESSOR``,
    ``GETTER``, ``SETTER``, ``METHOD``, ``MODULE``, ``TRAIT``, ``INTERFACE``,
    ``LIFTED`` and ``EXPANDEDNAME`` are only ever set by the checker.
    """

    ABSTRACT = auto()
    ARTIFACT = auto()
    BYNAMEPARAM = auto()
    CASE = auto()
    CASEACCESSOR = auto()
    CONTRAVARIANT = auto()
    COVARIANT = auto()
    DEFAULTINIT = auto()
    DEFAULTPARAM = auto()
    DEFERRED = auto()
    FINAL = auto()
    IMPLICIT = auto()
    LAZY = auto()
    LOCAL = auto()
    MACRO = auto()
    MUTABLE = auto()
    OVERRIDE = auto()
    PARAM = auto()
    PARAMACCESSOR = auto()
    PRESUPER = auto()
    PRIVATE = auto()
    PROTECTED = auto()
    SEALED = auto()
    SYNTHETIC = auto()
    # Checker-only flags
    STABLE = auto()
    ACCESSOR = auto()
    GETTER = auto()
    SETTER = auto()
    METHOD = auto()
    MODULE = auto()
    TRAIT = auto()
    INTERFACE = auto()
    LIFTED = auto()
    EXPANDEDNAME = auto()


NO_FLAGS = Flag(0)

ROUND_TRIP_FLAGS: Flag = reduce(
    or_,
    (
        Flag.ABSTRACT,
        Flag.ARTIFACT,
        Flag.BYNAMEPARAM,
        Flag.CASE,
        Flag.CASEACCESSOR,
        Flag.CONTRAVARIANT,
        Flag.COVARIANT,
        Flag.DEFAULTINIT,
        Flag.DEFAULTPARAM,
        Flag.DEFERRED,
        Flag.FINAL,
        Flag.IMPLICIT,
        Flag.LAZY,
        Flag.LOCAL,
        Flag.MACRO,
        Flag.MUTABLE,
        Flag.OVERRIDE,
        Flag.PARAM,
        Flag.PARAMACCESSOR,
        Flag.PRESUPER,
        Flag.PRIVATE,
        Flag.PROTECTED,
        Flag.SEALED,
        Flag.SYNTHETIC,
    ),
)
"""Flags that survive a type-check round trip unchanged."""


@dataclass(frozen=True)
class Modifiers:
    """Modifier set of a declaration.

    Attributes:
        flags: Flag bits
        private_within: Visibility qualifier, empty if unqualified
        annotations: Annotation trees in source order

    """

    flags: Flag = NO_FLAGS
    private_within: Name = EMPTY_TYPE_NAME
    annotations: tuple[Tree, ...] = ()

    def has_flag(self, flag: Flag) -> bool:
        """Return True if any of the given flag bits is set."""
        return bool(self.flags & flag)


NO_MODIFIERS = Modifiers()


def clean_modifiers(mods: Modifiers, allowed: Flag = ROUND_TRIP_FLAGS) -> Modifiers:
    """Project a modifier set onto the round-trippable flags.

    The checker annotates declarations with flags that either have no surface
    syntax or interfere with a second type-checking run. Those are dropped;
    the checker re-inserts them when needed. Visibility qualifier and
    annotations are kept as they are.

    Args:
        mods: Modifiers to clean
        allowed: Flags to keep

    Returns:
        Modifiers carrying only the allowed flags

    """
    return Modifiers(mods.flags & allowed, mods.private_within, mods.annotations)
