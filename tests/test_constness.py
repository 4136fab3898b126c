# tests/test_constness.py
"""
Tests for the cross-scope pseudo-constness state.
"""

import itertools

import pytest

from pseudoconst.constness import PseudoConstnessState
from pseudoconst.plus_reporter import SourceLocation
from pseudoconst.scope_analysis import ScopeResult
from pseudoconst.variables import VariableIdentity, VariableKind


def identity(key, name=None, line=1, is_const=False):
    return VariableIdentity(
        key=key,
        name=name or key,
        location=SourceLocation("demo.c", line, 5),
        kind=VariableKind.ARGUMENT,
        is_const=is_const,
    )


def reads(*variables):
    return ScopeResult(referenced={v: (v.location,) for v in variables})


def writes(*variables):
    return ScopeResult(changed={v: (v.location,) for v in variables})


A = identity("1", "a", line=3)
B = identity("2", "b", line=1)
C = identity("3", "c", line=2)


class TestEvaluate:

    def test_read_only_becomes_candidate(self):
        state = PseudoConstnessState()
        state.evaluate(reads(A), A)
        assert state.candidates == {A}
        assert state.changed == set()

    def test_written_is_changed(self):
        state = PseudoConstnessState()
        state.evaluate(writes(A), A)
        assert state.candidates == set()
        assert state.changed == {A}

    def test_untouched_is_ignored(self):
        state = PseudoConstnessState()
        state.evaluate(ScopeResult(), A)
        assert state.candidates == set()
        assert state.changed == set()

    def test_write_removes_earlier_candidate(self):
        state = PseudoConstnessState()
        state.evaluate(reads(A), A)
        state.evaluate(writes(A), A)
        assert state.candidates == set()
        assert state.changed == {A}

    def test_changed_never_comes_back(self):
        state = PseudoConstnessState()
        state.evaluate(writes(A), A)
        for _ in range(5):
            state.evaluate(reads(A), A)
        assert A not in state.candidates

    def test_already_const_is_never_a_candidate(self):
        const_a = identity("1", "a", is_const=True)
        state = PseudoConstnessState()
        state.evaluate(reads(const_a), const_a)
        assert state.candidates == set()

    def test_identity_is_by_key(self):
        other_token = identity("1", "a", line=40)
        state = PseudoConstnessState()
        state.evaluate(reads(A), A)
        state.evaluate(writes(other_token), other_token)
        assert state.candidates == set()


class TestOrderIndependence:

    PAIRS = [
        (reads(A), A),
        (writes(A), A),
        (reads(B), B),
        (reads(B), B),
        (reads(C), C),
        (writes(C), C),
        (ScopeResult(), C),
    ]

    @pytest.mark.parametrize("order", list(itertools.permutations(range(len(PAIRS)), 3)))
    def test_prefix_permutations(self, order):
        rest = [i for i in range(len(self.PAIRS)) if i not in order]
        pairs = [self.PAIRS[i] for i in list(order) + rest]
        state = PseudoConstnessState().fold(pairs)
        assert state.candidates == {B}
        assert state.changed == {A, C}

    def test_reversed(self):
        forward = PseudoConstnessState().fold(self.PAIRS)
        backward = PseudoConstnessState().fold(reversed(self.PAIRS))
        assert forward.candidates == backward.candidates
        assert forward.changed == backward.changed


class TestReports:

    def test_candidates_sorted_by_location(self):
        state = PseudoConstnessState().fold([(reads(A), A), (reads(B), B), (reads(C), C)])
        assert [v.name for v in state.sorted_candidates()] == ["b", "c", "a"]

    def test_generate_reports(self, sink, reporter):
        state = PseudoConstnessState().fold([(reads(A), A), (reads(B), B), (writes(C), C)])
        state.generate_reports(sink)
        diags = reporter.diagnostics
        assert [d.message for d in diags] == [
            "variable 'b' could be declared as const",
            "variable 'a' could be declared as const",
        ]
        assert all(d.error_id == "pseudoConstVariable" for d in diags)
        assert diags[0].location == SourceLocation("demo.c", 1, 5)
        assert reporter.stats.warning == 2

    def test_no_candidates_is_silent(self, sink, reporter):
        PseudoConstnessState().generate_reports(sink)
        assert reporter.diagnostics == []
