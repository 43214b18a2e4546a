"""Transient per-node markers.

Markers communicate decisions between passes of one pipeline run without
changing a tree's shape. They travel with the node they are attached to
(rebuilding a node with `dataclasses.replace` keeps them) and take no part
in structural equality. A node holds at most one marker of each kind.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum, auto
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from retypecheck.trees import Tree

T = TypeVar("T", bound="Tree")


class Marker(Enum):
    """Kinds of transient markers."""

    NON_SYNTHETIC = auto()
    """Application written by the user, marked before the checker runs."""

    SYNTHETIC = auto()
    """Application whose argument list the checker inserted."""

    CASE_CLASS = auto()
    """Record declaration already cleaned by the record pass."""


def mark(tree: T, marker: Marker) -> T:
    """Attach a marker to a tree."""
    if marker in tree.attachments:
        return tree
    return replace(tree, attachments=tree.attachments | {marker})


def unmark(tree: T, marker: Marker) -> T:
    """Remove a marker from a tree, if present."""
    if marker not in tree.attachments:
        return tree
    return replace(tree, attachments=tree.attachments - {marker})


def has(tree: Tree, marker: Marker) -> bool:
    """Return True if the tree carries the marker."""
    return marker in tree.attachments
