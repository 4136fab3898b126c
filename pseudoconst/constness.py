"""
pseudoconst/constness.py
════════════════════════

Cross-scope pseudo-constness state.

A variable can be declared const if some analysed scope reads it and no
analysed scope writes it.  Scopes arrive one at a time in no particular
order; the state keeps two sets and a single transition function:

    evaluate(result, v):
        v written in result        → changed ∪= {v}; candidates −= {v}
        v read, v ∉ changed,
        v not already const        → candidates ∪= {v}
        otherwise                  → no change

``changed`` only ever grows and a changed variable never re-enters
``candidates``, so the final candidates do not depend on the order of
the ``evaluate`` calls.

License: MIT
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Set, Tuple

from pseudoconst.diagnostics import DiagnosticsSink, MessageKind
from pseudoconst.scope_analysis import ScopeResult
from pseudoconst.variables import VariableIdentity

_log = logging.getLogger(__name__)


class PseudoConstnessState:
    """Candidates and definitively changed variables of one run."""

    def __init__(self) -> None:
        self.candidates: Set[VariableIdentity] = set()
        self.changed: Set[VariableIdentity] = set()

    def evaluate(self, result: ScopeResult, var: VariableIdentity) -> None:
        if result.was_changed(var):
            self.candidates.discard(var)
            self.changed.add(var)
        elif result.was_referenced(var):
            if var not in self.changed and not var.is_const:
                self.candidates.add(var)

    def fold(self, pairs: Iterable[Tuple[ScopeResult, VariableIdentity]]) -> PseudoConstnessState:
        for result, var in pairs:
            self.evaluate(result, var)
        return self

    def sorted_candidates(self) -> List[VariableIdentity]:
        return sorted(self.candidates, key=lambda v: (v.location, v.name, v.key))

    def generate_reports(self, sink: DiagnosticsSink) -> None:
        _log.info(
            "pseudo-constness: %d candidate(s), %d changed",
            len(self.candidates), len(self.changed),
        )
        for var in self.sorted_candidates():
            sink.report(MessageKind.PSEUDO_CONST, var.location, var.name, span_length=len(var.name))
