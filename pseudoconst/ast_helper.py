#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pseudoconst/ast_helper.py
═════════════════════════

Read-only helpers over the token and AST objects of a cppcheck dump.

    ┌──────────────────────────────────────────────────────────────────┐
    │  Accessors       tok_str, tok_op1, tok_parent, tok_variable, …   │
    │  Traversal       iter_body_tokens                                │
    │  Predicates      is_assignment, is_increment_decrement, …        │
    │  Target roots    member_selection, climb_target_root, …          │
    └──────────────────────────────────────────────────────────────────┘

Tokens are duck-typed; ``cppcheckdata`` is never imported here.  Every
helper takes ``None`` and answers with ``None``, ``""``, ``0`` or
``False``, so calls chain over incomplete dumps.

License: MIT
"""

from __future__ import annotations

from typing import Any, FrozenSet, Iterator, Optional

from pseudoconst.plus_reporter import SourceLocation

Token = Any


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

ASSIGNMENT_OPS: FrozenSet[str] = frozenset({
    '=', '+=', '-=', '*=', '/=', '%=',
    '&=', '|=', '^=', '<<=', '>>=',
})

INCREMENT_DECREMENT_OPS: FrozenSet[str] = frozenset({'++', '--'})

# scope types whose varlist holds data members
RECORD_SCOPE_TYPES: FrozenSet[str] = frozenset({'Class', 'Struct', 'Union'})


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════
# getattr(None, name, default) is the default, so none of these guard.

def tok_str(tok: Token) -> str:
    return getattr(tok, "str", "") or ""


def tok_op1(tok: Token) -> Optional[Token]:
    return getattr(tok, "astOperand1", None)


def tok_op2(tok: Token) -> Optional[Token]:
    return getattr(tok, "astOperand2", None)


def tok_parent(tok: Token) -> Optional[Token]:
    return getattr(tok, "astParent", None)


def tok_next(tok: Token) -> Optional[Token]:
    return getattr(tok, "next", None)


def tok_variable(tok: Token) -> Optional[Any]:
    """
    The ``Variable`` a token names, or None.

    A token with ``varId == 0`` names nothing, whatever its ``variable``
    attribute says.
    """
    if not getattr(tok, "varId", 0):
        return None
    return getattr(tok, "variable", None)


def tok_location(tok: Token) -> SourceLocation:
    """``file:line:column`` of a token; ``<unknown>:0`` without one."""
    return SourceLocation(
        getattr(tok, "file", None) or "<unknown>",
        int(getattr(tok, "linenr", 0) or 0),
        int(getattr(tok, "column", 0) or 0),
    )


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — TRAVERSAL
# ═══════════════════════════════════════════════════════════════════════════

def iter_body_tokens(scope: Any) -> Iterator[Token]:
    """Each token strictly between ``scope.bodyStart`` and ``scope.bodyEnd``, once, in order."""
    end = getattr(scope, "bodyEnd", None)
    tok = tok_next(getattr(scope, "bodyStart", None))
    while tok is not None and tok is not end:
        yield tok
        tok = tok_next(tok)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — PREDICATES
# ═══════════════════════════════════════════════════════════════════════════

def is_assignment(tok: Token) -> bool:
    """``=`` or a compound assignment."""
    return bool(getattr(tok, "isAssignmentOp", False)) or tok_str(tok) in ASSIGNMENT_OPS


def is_compound_assignment(tok: Token) -> bool:
    return tok_str(tok) != '=' and is_assignment(tok)


def is_increment_decrement(tok: Token) -> bool:
    return tok_str(tok) in INCREMENT_DECREMENT_OPS


def is_dereference(tok: Token) -> bool:
    """Unary ``*``.  Multiplication is the same token text with two operands."""
    return tok_str(tok) == '*' and tok_op1(tok) is not None and tok_op2(tok) is None


def is_subscript(tok: Token) -> bool:
    return tok_str(tok) == '['


def is_member_access(tok: Token) -> bool:
    """``.`` or ``->``; cppcheck spells ``->`` as ``.`` with ``originalName == '->'``."""
    return tok_str(tok) in ('.', '->') or getattr(tok, "originalName", "") == '->'


def is_declaration_token(tok: Token) -> bool:
    """True for the name token in a variable's own declaration."""
    var = tok_variable(tok)
    return var is not None and getattr(var, "nameToken", None) is tok


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — TARGET ROOTS
# ═══════════════════════════════════════════════════════════════════════════

def member_selection(tok: Token) -> Token:
    """The ``.`` / ``->`` node selecting *tok* as its member, else *tok* itself."""
    parent = tok_parent(tok)
    if is_member_access(parent) and tok_op2(parent) is tok:
        return parent
    return tok


def root_variable_token(expr: Token) -> Optional[Token]:
    """
    The token naming the innermost variable at the root of *expr*.

    ``p`` for ``*p``, ``a`` for ``a[i]``, ``s`` for ``s.f`` and ``f`` for
    ``this->f``.  None when the expression is rooted at something that is
    not a named variable (a call result, a literal).
    """
    node = expr
    while node is not None:
        if tok_variable(node) is not None:
            return node
        if is_dereference(node) or is_subscript(node):
            node = tok_op1(node)
        elif is_member_access(node):
            found = root_variable_token(tok_op1(node))
            if found is not None:
                return found
            node = tok_op2(node)
        else:
            return None
    return None


def climb_target_root(tok: Token) -> Token:
    """
    Climb from *tok* while it stays in the root position of its parent.

    The returned node is the largest expression whose root variable is
    *tok*; if that node is the left operand of an assignment, the
    assignment writes through *tok*.
    """
    cur = tok
    while True:
        parent = tok_parent(cur)
        if parent is None:
            return cur
        if (is_dereference(parent) or is_subscript(parent)) and tok_op1(parent) is cur:
            cur = parent
        elif is_member_access(parent) and (
            tok_op1(parent) is cur
            or (tok_op2(parent) is cur and root_variable_token(tok_op1(parent)) is None)
        ):
            cur = parent
        else:
            return cur
