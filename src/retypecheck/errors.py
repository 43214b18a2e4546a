"""Error types and the result of a guarded pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from retypecheck.trees import Position, Tree


@dataclass
class TypecheckError(Exception):
    """The external checker rejected a tree.

    Raised by `Host.check`; the orchestrator turns it into an abort carrying
    the same position and message.
    """

    pos: Position
    message: str

    def __str__(self) -> str:
        return f"{self.pos}: {self.message}"


@dataclass
class UnfixableTreeError(Exception):
    """A repair pass met a construct it cannot reverse."""

    pos: Position
    message: str

    def __str__(self) -> str:
        return f"{self.pos}: {self.message}"


@dataclass
class AbortError(Exception):
    """Unrecoverable failure surfaced through `Host.abort`."""

    pos: Position
    message: str

    def __str__(self) -> str:
        return f"{self.pos}: {self.message}"


@dataclass(frozen=True)
class Failure:
    """Located failure of a pipeline run."""

    pos: Position
    message: str

    def format(self) -> str:
        """Format the failure for display."""
        return f"{self.pos}: {self.message}"


@dataclass(frozen=True)
class TyperResult:
    """Outcome of a guarded pipeline run: a tree or a located failure."""

    tree: Tree | None = None
    failure: Failure | None = None

    @property
    def is_valid(self) -> bool:
        """Return True if the run produced a tree."""
        return self.failure is None

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if self.failure is None:
            return "TyperResult: valid"
        return f"TyperResult: failed\n  {self.failure.format()}"
