#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pseudoconst/scope_analysis.py
═════════════════════════════

Read / write classification of every variable reference in one function
body.

The body is walked once, token by token.  Each token that refers to a
variable is classified by its syntactic role alone:

    ┌──────────────────────────────┬──────────────────────────────┐
    │  role                        │  recorded as                 │
    ├──────────────────────────────┼──────────────────────────────┤
    │  declaration name token      │  nothing                     │
    │  operand of ++ / --          │  write + read                │
    │  root of the target of  =    │  write                       │
    │  root of the target of  op=  │  write + read                │
    │  anything else               │  read                        │
    └──────────────────────────────┴──────────────────────────────┘

"Root of the target" follows dereference, subscript and member access
down to the innermost named variable: ``*p = 1`` and ``p[0] = 1`` change
``p``, ``s.f = 1`` changes ``s``, ``this->f = 1`` changes ``f``.  A member
name stands for the whole ``s.f`` / ``p->f`` expression that selects it,
so ``s.f = 1`` and ``p->f++`` also change ``f``.  What the pointer points
to is never tracked.

License: MIT
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, DefaultDict, Dict, FrozenSet, Iterator, List, Mapping, Tuple

from pseudoconst.ast_helper import (
    climb_target_root,
    is_assignment,
    is_compound_assignment,
    is_declaration_token,
    is_increment_decrement,
    iter_body_tokens,
    member_selection,
    tok_location,
    tok_op1,
    tok_parent,
    tok_variable,
)
from pseudoconst.diagnostics import DiagnosticsSink, MessageKind
from pseudoconst.plus_reporter import SourceLocation
from pseudoconst.variables import VariableIdentity

_log = logging.getLogger(__name__)

Sites = Mapping[VariableIdentity, Tuple[SourceLocation, ...]]


@dataclass(frozen=True)
class ScopeResult:
    """
    The outcome of analysing one scope.

    ``referenced`` and ``changed`` map each variable to the places where it
    was read or written, in source order.  Only the keys matter for the
    pseudo-constness fold; the places feed the dump modes.
    """

    referenced: Sites = field(default_factory=dict)
    changed: Sites = field(default_factory=dict)

    @property
    def referenced_variables(self) -> FrozenSet[VariableIdentity]:
        return frozenset(self.referenced)

    @property
    def changed_variables(self) -> FrozenSet[VariableIdentity]:
        return frozenset(self.changed)

    def was_referenced(self, var: VariableIdentity) -> bool:
        return var in self.referenced

    def was_changed(self, var: VariableIdentity) -> bool:
        return var in self.changed

    def iter_changes(self) -> Iterator[Tuple[SourceLocation, str]]:
        """``(location, name)`` for every write, ordered by location."""
        return _iter_sites(self.changed)

    def iter_references(self) -> Iterator[Tuple[SourceLocation, str]]:
        """``(location, name)`` for every read, ordered by location."""
        return _iter_sites(self.referenced)

    # Debug functionality

    def debug_changed(self, sink: DiagnosticsSink) -> None:
        sink.report_all(MessageKind.VARIABLE_CHANGED, self.iter_changes())

    def debug_referenced(self, sink: DiagnosticsSink) -> None:
        sink.report_all(MessageKind.VARIABLE_REFERENCED, self.iter_references())


def _iter_sites(sites: Sites) -> Iterator[Tuple[SourceLocation, str]]:
    flat = [(loc, var.name) for var, locs in sites.items() for loc in locs]
    return iter(sorted(flat))


# ═════════════════════════════════════════════════════════════════════════
#  CLASSIFICATION
# ═════════════════════════════════════════════════════════════════════════

READ = 1
WRITE = 2


def classify(tok: Any) -> int:
    """
    Classify one variable reference as a bit set of READ / WRITE.

    Returns 0 for the name token of a declaration, which is neither.
    """
    if is_declaration_token(tok):
        return 0

    node = member_selection(tok)
    parent = tok_parent(node)
    if is_increment_decrement(parent) and tok_op1(parent) is node:
        return READ | WRITE

    top = climb_target_root(node)
    parent = tok_parent(top)
    if is_assignment(parent) and tok_op1(parent) is top:
        if is_compound_assignment(parent):
            return READ | WRITE
        return WRITE

    return READ


class ScopeAnalysis:
    """
    Collects the reads and writes of one scope.

    Usage
    -----
    >>> result = ScopeAnalysis.analyse_this(function_scope)
    >>> result.was_changed(VariableIdentity.of(var))
    """

    def __init__(self) -> None:
        self._referenced: DefaultDict[VariableIdentity, List[SourceLocation]] = defaultdict(list)
        self._changed: DefaultDict[VariableIdentity, List[SourceLocation]] = defaultdict(list)
        # one identity per cppcheck Variable object seen in this scope
        self._identities: Dict[int, VariableIdentity] = {}

    @classmethod
    def analyse_this(cls, scope: Any) -> ScopeResult:
        analysis = cls()
        for tok in iter_body_tokens(scope):
            analysis.visit(tok)
        return analysis.result()

    def visit(self, tok: Any) -> None:
        var = tok_variable(tok)
        if var is None:
            return
        role = classify(tok)
        if not role:
            return

        identity = self._identity(var)
        loc = tok_location(tok)
        if role & READ:
            self._referenced[identity].append(loc)
        if role & WRITE:
            self._changed[identity].append(loc)

    def _identity(self, var: Any) -> VariableIdentity:
        identity = self._identities.get(id(var))
        if identity is None:
            identity = VariableIdentity.of(var)
            self._identities[id(var)] = identity
        return identity

    def result(self) -> ScopeResult:
        return ScopeResult(
            referenced={v: tuple(locs) for v, locs in self._referenced.items()},
            changed={v: tuple(locs) for v, locs in self._changed.items()},
        )


def analyze(scope: Any) -> ScopeResult:
    """Analyse one function body.  Pure; nothing is cached."""
    result = ScopeAnalysis.analyse_this(scope)
    _log.debug(
        "analysed scope %s: %d referenced, %d changed",
        getattr(scope, "className", "?"),
        len(result.referenced),
        len(result.changed),
    )
    return result
