"""
pseudoconst/variables.py
════════════════════════

Variable identities and the collector that picks the variables a
function or method is responsible for.

A :class:`VariableIdentity` is a read-only handle on one cppcheck
``Variable``.  Two handles are equal iff they wrap the same declaration
(same ``Variable.Id``), whichever token led to them.

License: MIT
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Optional

from pseudoconst.ast_helper import RECORD_SCOPE_TYPES, tok_location, tok_str
from pseudoconst.plus_reporter import SourceLocation

_log = logging.getLogger(__name__)


class VariableKind(enum.Enum):
    """Where a variable was declared."""
    ARGUMENT = "argument"
    LOCAL = "local"
    FIELD = "field"
    GLOBAL = "global"
    OTHER = "other"


def variable_kind(var: Any) -> VariableKind:
    if getattr(var, "isArgument", False):
        return VariableKind.ARGUMENT
    if getattr(var, "isLocal", False):
        return VariableKind.LOCAL
    scope = getattr(var, "scope", None)
    if getattr(scope, "type", "") in RECORD_SCOPE_TYPES:
        return VariableKind.FIELD
    if getattr(var, "isGlobal", False):
        return VariableKind.GLOBAL
    return VariableKind.OTHER


def is_declared_immutable(var: Any) -> bool:
    """
    True when the variable's own type is const-qualified.

    One level of reference is stripped first, so ``const int &r`` is
    immutable while ``const int *p`` is not (only its pointee is).  The
    value type's ``constness`` bitmask has one bit per indirection level,
    the variable itself sitting at bit ``pointer``.
    """
    value_type = getattr(getattr(var, "nameToken", None), "valueType", None)
    constness = getattr(value_type, "constness", None)
    if value_type is not None and constness is not None:
        pointer = int(getattr(value_type, "pointer", 0) or 0)
        return bool((int(constness) >> pointer) & 1)
    return bool(getattr(var, "isConst", False))


@dataclass(frozen=True)
class VariableIdentity:
    """Canonical handle to a parameter, local or data member."""

    key: str
    name: str = field(compare=False)
    location: SourceLocation = field(compare=False)
    kind: VariableKind = field(compare=False, default=VariableKind.OTHER)
    is_const: bool = field(compare=False, default=False)

    @classmethod
    def of(cls, var: Any) -> VariableIdentity:
        name_tok = getattr(var, "nameToken", None)
        key = getattr(var, "Id", None) or f"py:{id(var):x}"
        return cls(
            key=str(key),
            name=tok_str(name_tok),
            location=tok_location(name_tok),
            kind=variable_kind(var),
            is_const=is_declared_immutable(var),
        )

    def __str__(self) -> str:
        return f"{self.name}@{self.location}"


def identities(variables: Iterable[Any]) -> FrozenSet[VariableIdentity]:
    return frozenset(VariableIdentity.of(v) for v in variables if v is not None)


def function_parameters(function: Any) -> FrozenSet[VariableIdentity]:
    """The parameter declarations of a cppcheck ``Function``."""
    arguments = getattr(function, "argument", None) or {}
    return identities(arguments[nr] for nr in sorted(arguments))


def record_fields(scope: Optional[Any]) -> FrozenSet[VariableIdentity]:
    """Non-static data members declared directly in a record scope."""
    if scope is None:
        return frozenset()
    return identities(
        var for var in getattr(scope, "varlist", None) or []
        if not getattr(var, "isStatic", False)
    )
