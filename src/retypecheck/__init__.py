"""retypecheck - Repair of checked syntax trees for type-checking them again."""

from retypecheck.attachments import (
    Marker,
    has,
    mark,
    unmark,
)
from retypecheck.config import (
    DEFAULT_CONVENTIONS,
    Conventions,
    load_conventions,
)
from retypecheck.errors import (
    AbortError,
    Failure,
    TypecheckError,
    TyperResult,
    UnfixableTreeError,
)
from retypecheck.flags import (
    NO_MODIFIERS,
    Flag,
    Modifiers,
    clean_modifiers,
)
from retypecheck.host import (
    Host,
    Universe,
)
from retypecheck.names import (
    Name,
    TermName,
    TypeName,
)
from retypecheck.reconstruct import (
    TypeReconstructor,
    expand_symbol,
)
from retypecheck.symbols import (
    Symbol,
    SymbolKind,
)
from retypecheck.traverse import (
    Transformer,
    walk,
)
from retypecheck.trees import (
    EMPTY,
    Position,
    Tree,
)
from retypecheck.typer import Typer

__all__ = [
    # Configuration
    "DEFAULT_CONVENTIONS",
    # Trees
    "EMPTY",
    "NO_MODIFIERS",
    # Errors
    "AbortError",
    "Conventions",
    "Failure",
    "Flag",
    # Host boundary
    "Host",
    # Attachments
    "Marker",
    "Modifiers",
    # Names and symbols
    "Name",
    "Position",
    "Symbol",
    "SymbolKind",
    "TermName",
    "Transformer",
    "Tree",
    "TypeName",
    # Type reconstruction
    "TypeReconstructor",
    "TypecheckError",
    # Pipeline
    "Typer",
    "TyperResult",
    "UnfixableTreeError",
    "Universe",
    "clean_modifiers",
    "expand_symbol",
    "has",
    "load_conventions",
    "mark",
    "unmark",
    "walk",
]
