"""Resolved types as the checker sees them.

Types are immutable values. Many trees may share one type value. Two types
are equal when they have the same shape and refer to the same symbols.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, dataclass_transform

if TYPE_CHECKING:
    from retypecheck.symbols import Symbol


@dataclass(frozen=True)
@dataclass_transform(frozen_default=True)
class Type:
    """Base for resolved types."""

    def __init_subclass__(cls) -> None:
        """Turn every subclass into a frozen dataclass."""
        dataclass(frozen=True)(cls)


class NoPrefix(Type):
    """Absent prefix of a type reference."""


NO_PREFIX = NoPrefix()


class ThisType(Type):
    """Self-type of a class, module or package: ``C.this.type``."""

    sym: Symbol


class TypeRef(Type):
    """Reference to a type symbol: ``pre.Sym[args]``."""

    pre: Type
    sym: Symbol
    args: tuple[Type, ...] = ()


class SingleType(Type):
    """Singleton type of a stable value: ``pre.sym.type``."""

    pre: Type
    sym: Symbol


class TypeBounds(Type):
    """Lower and upper bound: ``>: lo <: hi``."""

    lo: Type
    hi: Type


class ExistentialType(Type):
    """Existential: ``underlying forSome { quantified }``.

    Each quantified symbol carries its constraint as ``info``.
    """

    quantified: tuple[Symbol, ...]
    underlying: Type


class RefinedType(Type):
    """Refinement: ``P1 with P2 { decls }``."""

    parents: tuple[Type, ...]
    decls: tuple[Symbol, ...]


class MethodType(Type):
    """Signature of a method with one value parameter list."""

    params: tuple[Symbol, ...]
    result: Type


class NullaryMethodType(Type):
    """Signature of a parameterless method."""

    result: Type


class PolyType(Type):
    """Signature abstracted over type parameters."""

    type_params: tuple[Symbol, ...]
    result: Type


class ConstantType(Type):
    """Type of a literal constant."""

    value: Any


def dealias(tpe: Type) -> Type:
    """Expand type aliases at the top level."""
    match tpe:
        case TypeRef(sym=sym) if sym.is_alias and sym.info is not None:
            return dealias(sym.info)
    return tpe


def type_symbol(tpe: Type | None) -> Symbol | None:
    """Return the class or type symbol a type denotes, if any."""
    if tpe is None:
        return None
    match dealias(tpe):
        case TypeRef(sym=sym) | ThisType(sym=sym):
            return sym
        case SingleType(sym=sym):
            if sym.module_class is not None:
                return sym.module_class
            return type_symbol(sym.info)
        case ExistentialType(underlying=underlying):
            return type_symbol(underlying)
    return None


def final_result_type(tpe: Type) -> Type:
    """Strip method and polymorphic signatures down to the result type."""
    match tpe:
        case (
            MethodType(result=result)
            | NullaryMethodType(result=result)
            | PolyType(result=result)
        ):
            return final_result_type(result)
    return tpe


def components(tpe: Type) -> tuple[Type, ...]:
    """Return the types directly nested in a type."""
    match tpe:
        case TypeRef(pre=pre, args=args):
            return (pre, *args)
        case SingleType(pre=pre):
            return (pre,)
        case TypeBounds(lo=lo, hi=hi):
            return (lo, hi)
        case ExistentialType(underlying=underlying):
            return (underlying,)
        case RefinedType(parents=parents):
            return parents
        case MethodType(params=params, result=result):
            infos = tuple(p.info for p in params if p.info is not None)
            return (*infos, result)
        case NullaryMethodType(result=result) | PolyType(result=result):
            return (result,)
    return ()


def exists(tpe: Type, predicate: Callable[[Type], bool]) -> bool:
    """Return True if the predicate holds for the type or any nested type."""
    return predicate(tpe) or any(exists(c, predicate) for c in components(tpe))


# =============================================================================
# Type name formatting: Type -> str
# =============================================================================

_TYPE_FORMATTERS: dict[type[Type], Callable[[Any], str]] = {
    NoPrefix: lambda _: "<noprefix>",
    ThisType: lambda t: f"{t.sym.name}.this.type",
    TypeRef: lambda t: (
        f"{_prefix(t.pre)}{t.sym.name}[{', '.join(type_name(a) for a in t.args)}]"
        if t.args
        else f"{_prefix(t.pre)}{t.sym.name}"
    ),
    SingleType: lambda t: f"{_prefix(t.pre)}{t.sym.name}.type",
    TypeBounds: lambda t: f">: {type_name(t.lo)} <: {type_name(t.hi)}",
    ExistentialType: lambda t: (
        f"{type_name(t.underlying)} forSome "
        f"{{ {'; '.join(str(q.name) for q in t.quantified)} }}"
    ),
    RefinedType: lambda t: (
        f"{' with '.join(type_name(p) for p in t.parents)} "
        f"{{ {'; '.join(str(d.name) for d in t.decls)} }}"
    ),
    MethodType: lambda t: (
        f"({', '.join(str(p.name) for p in t.params)}){type_name(t.result)}"
    ),
    NullaryMethodType: lambda t: f"=> {type_name(t.result)}",
    PolyType: lambda t: (
        f"[{', '.join(str(p.name) for p in t.type_params)}]{type_name(t.result)}"
    ),
    ConstantType: lambda t: f"{t.value!r}.type",
}


def _prefix(pre: Type) -> str:
    if isinstance(pre, NoPrefix):
        return ""
    return f"{type_name(pre)}#"


def type_name(tpe: Type) -> str:
    """Get a human-readable rendering of a type for diagnostics."""
    if formatter := _TYPE_FORMATTERS.get(type(tpe)):
        return formatter(tpe)
    return type(tpe).__name__
