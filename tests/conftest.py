# tests/conftest.py
"""
Mock cppcheck dump objects and builders shared by the test-suite.

The mocks carry only the attributes the analysis reads.  ``ProgramBuilder``
assembles them the way ``cppcheckdata.parsedump`` would: body tokens
linked through ``next`` between a scope's ``{`` and ``}``, AST links in
``astOperand1`` / ``astOperand2`` / ``astParent``.
"""

from __future__ import annotations

import io
import itertools
from typing import Any, Dict, Iterable, List, Optional

import pytest

from pseudoconst.diagnostics import DiagnosticsSink
from pseudoconst.plus_reporter import Reporter

ASSIGNMENT_OPS = {"=", "+=", "-=", "*=", "/=", "%=", "<<=", ">>=", "&=", "^=", "|="}


class _Mock:
    _defaults: Dict[str, Any] = {}

    def __init__(self, **kwargs: Any) -> None:
        for key, value in self._defaults.items():
            setattr(self, key, value() if callable(value) else value)
        for key, value in kwargs.items():
            setattr(self, key, value)


class MockToken(_Mock):
    _defaults = {
        "str": "",
        "next": None,
        "previous": None,
        "astParent": None,
        "astOperand1": None,
        "astOperand2": None,
        "varId": 0,
        "variable": None,
        "isAssignmentOp": False,
        "originalName": "",
        "valueType": None,
        "file": "test.cpp",
        "linenr": 1,
        "column": 1,
    }

    def __repr__(self) -> str:
        return f"MockToken({self.str!r}@{self.linenr}:{self.column})"


class MockValueType(_Mock):
    _defaults = {"type": "int", "pointer": 0, "constness": 0}


class MockVariable(_Mock):
    _defaults = {
        "Id": "",
        "nameToken": None,
        "scope": None,
        "isArgument": False,
        "isLocal": False,
        "isGlobal": False,
        "isStatic": False,
        "isConst": False,
    }


class MockFunction(_Mock):
    _defaults = {
        "Id": "",
        "name": "",
        "argument": dict,
        "token": None,
        "tokenDef": None,
        "nestedIn": None,
        "access": None,
        "type": "Function",
    }


class MockScope(_Mock):
    _defaults = {
        "Id": "",
        "type": "Global",
        "className": "",
        "bodyStart": None,
        "bodyEnd": None,
        "function": None,
        "nestedIn": None,
        "varlist": list,
    }


class MockSuppression(_Mock):
    _defaults = {"errorId": "", "fileName": "", "lineNumber": 0}


class MockConfiguration(_Mock):
    _defaults = {
        "name": "",
        "scopes": list,
        "functions": list,
        "variables": list,
        "tokenlist": list,
        "suppressions": list,
    }


class MockCppcheckData(_Mock):
    _defaults = {"configurations": list}

    def iterconfigurations(self) -> Iterable[MockConfiguration]:
        return iter(self.configurations)


# ═════════════════════════════════════════════════════════════════════════
#  EXPRESSION BUILDERS
# ═════════════════════════════════════════════════════════════════════════

def ref(var: MockVariable) -> MockToken:
    """A fresh token referring to ``var``."""
    return MockToken(str=var.nameToken.str, varId=var.varId, variable=var)


def name(text: str) -> MockToken:
    """A token that names no variable (a function, ``this``)."""
    return MockToken(str=text)


def num(value: int) -> MockToken:
    return MockToken(str=str(value))


def op(s: str, lhs: MockToken, rhs: Optional[MockToken] = None) -> MockToken:
    """An operator node; unary when ``rhs`` is None."""
    tok = MockToken(str=s, isAssignmentOp=s in ASSIGNMENT_OPS)
    tok.astOperand1 = lhs
    lhs.astParent = tok
    if rhs is not None:
        tok.astOperand2 = rhs
        rhs.astParent = tok
    return tok


def assign(target: MockToken, value: MockToken, s: str = "=") -> MockToken:
    return op(s, target, value)


def deref(expr: MockToken) -> MockToken:
    return op("*", expr)


def member(obj: MockToken, field_var: MockVariable) -> MockToken:
    return op(".", obj, ref(field_var))


def this_member(field_var: MockVariable) -> MockToken:
    tok = op(".", name("this"), ref(field_var))
    tok.originalName = "->"
    return tok


def call(func: str, *args: MockToken) -> MockToken:
    if not args:
        return op("(", name(func))
    arg = args[0]
    for nxt in args[1:]:
        arg = op(",", arg, nxt)
    return op("(", name(func), arg)


def ret(expr: MockToken) -> MockToken:
    return op("return", expr)


def decl(var: MockVariable, init: Optional[MockToken] = None) -> MockToken:
    """A local declaration statement, optionally with an initialiser."""
    if init is None:
        return var.nameToken
    return op("=", var.nameToken, init)


def _inorder(tok: Optional[MockToken]) -> List[MockToken]:
    if tok is None:
        return []
    return _inorder(tok.astOperand1) + [tok] + _inorder(tok.astOperand2)


# ═════════════════════════════════════════════════════════════════════════
#  PROGRAM BUILDER
# ═════════════════════════════════════════════════════════════════════════

class ProgramBuilder:
    """
    Builds a ``MockConfiguration`` one declaration at a time.

    Every statement of a body lands on its own line, so tests can assert
    on line numbers.
    """

    def __init__(self, file: str = "test.cpp") -> None:
        self.file = file
        self._ids = itertools.count(1)
        self._line = 0
        self.global_scope = MockScope(Id="s0", type="Global")
        self.cfg = MockConfiguration(scopes=[self.global_scope])

    def _next_line(self) -> int:
        self._line += 1
        return self._line

    def _tok(self, s: str, **kwargs: Any) -> MockToken:
        kwargs.setdefault("linenr", self._next_line())
        tok = MockToken(str=s, file=self.file, **kwargs)
        self.cfg.tokenlist.append(tok)
        return tok

    # ── declarations ────────────────────────────────────────────────

    def record(self, class_name: str, kind: str = "Class", nested_in: Optional[MockScope] = None) -> MockScope:
        scope = MockScope(
            Id=f"s{next(self._ids)}", type=kind, className=class_name,
            nestedIn=nested_in or self.global_scope,
        )
        self.cfg.scopes.append(scope)
        return scope

    def variable(
        self,
        var_name: str,
        *,
        scope: Optional[MockScope] = None,
        const: bool = False,
        pointer: int = 0,
        pointee_const: bool = False,
        constness: Optional[int] = None,
        **flags: Any,
    ) -> MockVariable:
        """
        Declare a variable.

        ``const`` qualifies the variable itself, ``pointee_const`` the
        innermost pointee; ``constness`` overrides both with a raw mask.
        """
        if constness is None:
            constness = (int(const) << pointer) | int(pointee_const and pointer > 0)
        var_id = next(self._ids)
        name_tok = self._tok(
            var_name, varId=var_id,
            valueType=MockValueType(pointer=pointer, constness=constness),
        )
        var = MockVariable(Id=f"v{var_id}", nameToken=name_tok, scope=scope, isConst=const, **flags)
        var.varId = var_id
        name_tok.variable = var
        self.cfg.variables.append(var)
        return var

    def param(self, var_name: str, **kwargs: Any) -> MockVariable:
        return self.variable(var_name, isArgument=True, **kwargs)

    def local(self, var_name: str, **kwargs: Any) -> MockVariable:
        return self.variable(var_name, isLocal=True, **kwargs)

    def field(self, record: MockScope, var_name: str, **kwargs: Any) -> MockVariable:
        var = self.variable(var_name, scope=record, **kwargs)
        record.varlist.append(var)
        return var

    def declare(
        self,
        func_name: str,
        params: Iterable[MockVariable] = (),
        owner: Optional[MockScope] = None,
        access: Optional[str] = None,
    ) -> MockFunction:
        """A function declaration without a body."""
        params = list(params)
        tok = self._tok(func_name)
        func = MockFunction(
            Id=f"f{next(self._ids)}", name=func_name,
            argument={i + 1: p for i, p in enumerate(params)},
            token=tok, tokenDef=tok, nestedIn=owner, access=access,
        )
        self.cfg.functions.append(func)
        return func

    def function(
        self,
        func_name: str,
        params: Iterable[MockVariable] = (),
        body: Iterable[MockToken] = (),
        owner: Optional[MockScope] = None,
        access: Optional[str] = None,
        func: Optional[MockFunction] = None,
    ) -> MockScope:
        """A function definition; pass ``func`` to define an earlier declaration."""
        if func is None:
            func = self.declare(func_name, params, owner, access)
        else:
            func.token = self._tok(func_name)

        scope = MockScope(
            Id=f"s{next(self._ids)}", type="Function", className=func_name,
            function=func, nestedIn=owner or self.global_scope,
        )
        start = self._tok("{", scope=scope)
        tokens: List[MockToken] = [start]
        for stmt in body:
            line = self._next_line()
            for col, tok in enumerate(_inorder(stmt), 1):
                tok.file, tok.linenr, tok.column, tok.scope = self.file, line, col, scope
                tokens.append(tok)
            tokens.append(MockToken(str=";", file=self.file, linenr=line, scope=scope))
        end = self._tok("}", scope=scope)
        tokens.append(end)

        for prev, nxt in zip(tokens, tokens[1:]):
            prev.next, nxt.previous = nxt, prev
        self.cfg.tokenlist.extend(tokens[1:-1])

        scope.bodyStart, scope.bodyEnd = start, end
        self.cfg.scopes.append(scope)
        return scope


# ═════════════════════════════════════════════════════════════════════════
#  FIXTURES
# ═════════════════════════════════════════════════════════════════════════

@pytest.fixture
def program() -> ProgramBuilder:
    return ProgramBuilder()


@pytest.fixture
def reporter(monkeypatch: pytest.MonkeyPatch) -> Reporter:
    monkeypatch.delenv("REPORT_GENERATE_SARIF", raising=False)
    monkeypatch.delenv("REPORT_GENERATE_HTML", raising=False)
    return Reporter(stream=io.StringIO(), colour=False)


@pytest.fixture
def sink(reporter: Reporter) -> DiagnosticsSink:
    return DiagnosticsSink(reporter)


def messages(reporter: Reporter) -> List[str]:
    return [d.message for d in reporter.diagnostics]
