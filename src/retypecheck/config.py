"""Checker conventions.

The names the checker gives to generated members and the flags it uses
internally are specific to one checker. They are configuration: the defaults
below describe one concrete checker, and a host integrating against a
different one supplies its own, either in code or from a TOML file:

    [retypecheck]
    synthetic_method_names = ["apply", "copy", "equals", "hashCode"]
    relocated_suffix = "$moved"
    round_trip_flags = ["ABSTRACT", "FINAL", "LAZY", "MUTABLE"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from functools import reduce
from operator import or_
from pathlib import Path
from typing import Any

from retypecheck.flags import NO_FLAGS, ROUND_TRIP_FLAGS, Flag

DEFAULT_TABLE = "retypecheck"

_SYNTHETIC_METHOD_NAMES = frozenset(
    {
        "apply",
        "canEqual",
        "copy",
        "equals",
        "hashCode",
        "productArity",
        "productElement",
        "productIterator",
        "productPrefix",
        "readResolve",
        "toString",
        "unapply",
    },
)


@dataclass(frozen=True)
class Conventions:
    """Names and flags the checker uses for the artifacts it introduces.

    Attributes:
        synthetic_method_names: Members generated for record declarations
        synthetic_method_prefixes: Name prefixes of generated members
        round_trip_flags: Flags `clean_modifiers` keeps
        injected_package: Package whose members the checker injects
        root_package_name: Name anchoring a fully qualified path
        constructor_name: Name of constructors
        constructor_encoded_name: Constructor name as embedded in other names
        trait_init_name: Name of trait initializers
        default_getter_marker: Infix of default-argument helper names
        relocated_suffix: Suffix of the marker-suffixed default-argument form
        singleton_suffix: Suffix of names standing for a singleton type
        anonymous_prefix: Name prefix of anonymous classes
        unapply_selector_name: Placeholder the checker passes to extractors
        extractor_method_names: Extractor methods
        abort_on_unfixable: Abort on constructs the record pass cannot reverse

    """

    synthetic_method_names: frozenset[str] = _SYNTHETIC_METHOD_NAMES
    synthetic_method_prefixes: tuple[str, ...] = ("copy$",)
    round_trip_flags: Flag = ROUND_TRIP_FLAGS
    injected_package: str = "scala"
    root_package_name: str = "_root_"
    constructor_name: str = "<init>"
    constructor_encoded_name: str = "$lessinit$greater"
    trait_init_name: str = "$init$"
    default_getter_marker: str = "$default$"
    relocated_suffix: str = "$macro"
    singleton_suffix: str = ".type"
    anonymous_prefix: str = "$anon"
    unapply_selector_name: str = "<unapply-selector>"
    extractor_method_names: frozenset[str] = frozenset({"unapply", "unapplySeq"})
    abort_on_unfixable: bool = True

    def is_synthetic_method_name(self, name: str) -> bool:
        """Return True if a member of that name is generated for records."""
        return name in self.synthetic_method_names or name.startswith(
            self.synthetic_method_prefixes,
        )

    @classmethod
    def from_mapping(cls, table: dict[str, Any]) -> Conventions:
        """Build conventions from a configuration table.

        Args:
            table: Mapping of field names to values; missing fields keep
                their defaults

        Returns:
            Conventions with the given overrides

        Raises:
            ValueError: If the table has unknown keys or malformed values

        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(table) - set(known))
        if unknown:
            msg = f"Unknown convention keys: {unknown}. Known keys: {sorted(known)}"
            raise ValueError(msg)

        values: dict[str, Any] = {}
        for key, value in table.items():
            match key:
                case "synthetic_method_names" | "extractor_method_names":
                    values[key] = frozenset(_as_names(key, value))
                case "synthetic_method_prefixes":
                    values[key] = tuple(_as_names(key, value))
                case "round_trip_flags":
                    values[key] = _as_flags(value)
                case "abort_on_unfixable":
                    if not isinstance(value, bool):
                        msg = f"'{key}' must be a boolean, got {value!r}"
                        raise ValueError(msg)
                    values[key] = value
                case _:
                    if not isinstance(value, str):
                        msg = f"'{key}' must be a string, got {value!r}"
                        raise ValueError(msg)
                    values[key] = value
        return cls(**values)


DEFAULT_CONVENTIONS = Conventions()


def _as_names(key: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings, got {value!r}"
        raise ValueError(msg)
    return value


def _as_flags(value: Any) -> Flag:
    names = _as_names("round_trip_flags", value)
    unknown = [n for n in names if n not in Flag.__members__]
    if unknown:
        msg = f"Unknown flags in 'round_trip_flags': {unknown}"
        raise ValueError(msg)
    return reduce(or_, (Flag[n] for n in names), NO_FLAGS)


def load_conventions(path: Path, table: str = DEFAULT_TABLE) -> Conventions:
    """Load conventions from a TOML file.

    Args:
        path: TOML file to read
        table: Name of the table holding the conventions

    Returns:
        The configured conventions, or the defaults if the file or the
        table does not exist

    Raises:
        tomllib.TOMLDecodeError: If the file is not valid TOML
        ValueError: If the table is malformed

    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return DEFAULT_CONVENTIONS
    section = tomllib.loads(raw).get(table)
    if section is None:
        return DEFAULT_CONVENTIONS
    if not isinstance(section, dict):
        msg = f"'{table}' in {path} must be a table"
        raise ValueError(msg)
    return Conventions.from_mapping(section)
