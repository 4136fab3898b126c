"""
pseudoconst/declarations.py
═══════════════════════════

Function wrappers and the collector that builds them from a cppcheck
configuration.

Free functions and methods share one wrapper type tagged with a
:class:`DeclarationKind`; the tag only decides which variables the
wrapper is responsible for:

    FREE_FUNCTION   parameters
    METHOD          parameters ∪ data members of the owning record

Every other operation (dumps, pseudo-constness check) is written once
against that shape.

License: MIT
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from pseudoconst.ast_helper import RECORD_SCOPE_TYPES, tok_location
from pseudoconst.constness import PseudoConstnessState
from pseudoconst.diagnostics import DiagnosticsSink, MessageKind
from pseudoconst.plus_reporter import SourceLocation
from pseudoconst.scope_analysis import ScopeResult, analyze
from pseudoconst.variables import VariableIdentity, function_parameters, record_fields

_log = logging.getLogger(__name__)

# cppcheck Function.access values that only occur on members
_MEMBER_ACCESS = frozenset({"Public", "Protected", "Private"})


class DeclarationKind(enum.Enum):
    FREE_FUNCTION = "function"
    METHOD = "method"


def qualified_name(scope: Any) -> str:
    """``ns::Outer::Inner`` for a record scope, following ``nestedIn``."""
    parts: List[str] = []
    while scope is not None and getattr(scope, "type", "") != "Global":
        parts.append(getattr(scope, "className", "") or "")
        scope = getattr(scope, "nestedIn", None)
    return "::".join(reversed(parts))


def function_key(function: Any) -> str:
    """Canonical identity of a function: cppcheck merges redeclarations into one ``Function``."""
    return str(getattr(function, "Id", None) or f"py:{id(function):x}")


@dataclass
class FunctionWrapper:
    """
    One function or method definition.

    ``owner`` is the canonical record scope of a METHOD, None for free
    functions and for methods whose record could not be resolved.
    """

    kind: DeclarationKind
    function: Any
    body: Any
    owner: Optional[Any] = None
    _variables: Optional[FrozenSet[VariableIdentity]] = field(default=None, init=False, repr=False)

    # ── declaration access ──────────────────────────────────────────

    @property
    def declaration(self) -> Any:
        return self.function

    @property
    def name(self) -> str:
        return getattr(self.function, "name", "") or "?"

    @property
    def location(self) -> SourceLocation:
        tok = getattr(self.function, "token", None) or getattr(self.function, "tokenDef", None)
        return tok_location(tok)

    def relevant_variables(self) -> FrozenSet[VariableIdentity]:
        if self._variables is None:
            variables = function_parameters(self.function)
            if self.kind is DeclarationKind.METHOD:
                variables = variables | record_fields(self.owner)
            self._variables = variables
        return self._variables

    def analyse(self) -> ScopeResult:
        return analyze(self.body)

    # ── debug functionality ─────────────────────────────────────────

    def dump_declaration(self, sink: DiagnosticsSink) -> None:
        sink.report(MessageKind.FUNCTION_DECLARED, self.location, self.name, span_length=len(self.name))

    def dump_variable_declarations(self, sink: DiagnosticsSink) -> None:
        ordered = sorted(self.relevant_variables(), key=lambda v: (v.location, v.name))
        sink.report_all(MessageKind.VARIABLE_DECLARED, ((v.location, v.name) for v in ordered))

    # ── analysis functionality ──────────────────────────────────────

    def dump_changes(self, sink: DiagnosticsSink) -> None:
        self.analyse().debug_changed(sink)

    def dump_usages(self, sink: DiagnosticsSink) -> None:
        self.analyse().debug_referenced(sink)

    def check_pseudoconstness(self, state: PseudoConstnessState) -> None:
        result = self.analyse()
        for var in self.relevant_variables():
            state.evaluate(result, var)


class DeclarationCollector:
    """
    Collects one :class:`FunctionWrapper` per function definition.

    Usage
    -----
    >>> collector = DeclarationCollector()
    >>> collector.collect(cfg)
    >>> collector.check_pseudoconstness(sink)
    """

    def __init__(self) -> None:
        self._functions: Dict[str, FunctionWrapper] = {}
        self._records: Dict[str, Any] = {}

    @property
    def wrappers(self) -> List[FunctionWrapper]:
        return list(self._functions.values())

    def __len__(self) -> int:
        return len(self._functions)

    # ── visiting ────────────────────────────────────────────────────

    def collect(self, cfg: Any) -> DeclarationCollector:
        scopes = list(getattr(cfg, "scopes", None) or [])
        # records first: a method body may precede its class in scope order
        for scope in scopes:
            if getattr(scope, "type", "") in RECORD_SCOPE_TYPES:
                self.visit_record(scope)
        for scope in scopes:
            if getattr(scope, "type", "") == "Function":
                self.visit_function_scope(scope)
        _log.info("collected %d function definition(s)", len(self._functions))
        return self

    def visit_record(self, scope: Any) -> None:
        # the first scope seen for a name is the canonical one
        self._records.setdefault(qualified_name(scope), scope)

    def visit_function_scope(self, scope: Any) -> None:
        function = getattr(scope, "function", None)
        if function is None or getattr(scope, "bodyStart", None) is None:
            return

        key = function_key(function)
        owner = self._owning_record(function)
        if owner is not None or self._looks_like_method(function):
            wrapper = FunctionWrapper(DeclarationKind.METHOD, function, scope, owner)
            if owner is None:
                _log.debug("owner of method %s not resolved; using parameters only", wrapper.name)
        else:
            wrapper = FunctionWrapper(DeclarationKind.FREE_FUNCTION, function, scope)

        if key in self._functions:
            _log.debug("replacing earlier definition of %s", wrapper.name)
        self._functions[key] = wrapper

    def _owning_record(self, function: Any) -> Optional[Any]:
        nested_in = getattr(function, "nestedIn", None)
        if getattr(nested_in, "type", "") not in RECORD_SCOPE_TYPES:
            return None
        return self._records.get(qualified_name(nested_in), nested_in)

    @staticmethod
    def _looks_like_method(function: Any) -> bool:
        return getattr(function, "access", None) in _MEMBER_ACCESS

    # ── bulk operations ─────────────────────────────────────────────

    def _for_each(self, op: Callable[[FunctionWrapper], None]) -> None:
        for wrapper in self._functions.values():
            op(wrapper)

    def dump_declarations(self, sink: DiagnosticsSink) -> None:
        self._for_each(lambda w: w.dump_declaration(sink))

    def dump_variable_declarations(self, sink: DiagnosticsSink) -> None:
        self._for_each(lambda w: w.dump_variable_declarations(sink))

    def dump_changes(self, sink: DiagnosticsSink) -> None:
        self._for_each(lambda w: w.dump_changes(sink))

    def dump_usages(self, sink: DiagnosticsSink) -> None:
        self._for_each(lambda w: w.dump_usages(sink))

    def check_pseudoconstness(self, sink: DiagnosticsSink) -> PseudoConstnessState:
        state = PseudoConstnessState()
        self._for_each(lambda w: w.check_pseudoconstness(state))
        state.generate_reports(sink)
        return state
