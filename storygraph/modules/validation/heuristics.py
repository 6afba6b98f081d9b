"""
Cheap textual checks on guard expressions.

These never run the real expression grammar. They accept the simple
``name op literal`` chains authors usually write and flag anything else for a
human to look at, so they can disagree with the evaluator in both directions.
"""

from __future__ import annotations

import re

_SIMPLE_CONDITION_RE = re.compile(
    r"^[a-z_][a-z0-9_]*"
    r"(\s*(==|!=|>=|<=|>|<|&&|\|\|)\s*(\d+|true|false|\"[^\"]*\"|'[^']*'|[a-z_][a-z0-9_]*))*$",
    re.IGNORECASE,
)
_ASSIGNMENT_RE = re.compile(r"(^|[^=!<>])=([^=]|$)")
_INC_DEC_RE = re.compile(r"\+\+|--")
_CALL_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*\s*\([^)]*\)")


def parentheses_balanced(text: str) -> bool:
    depth = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def is_valid_condition(condition: str) -> bool:
    trimmed = condition.strip()
    if not trimmed:
        return False
    if not parentheses_balanced(trimmed):
        return False
    return _SIMPLE_CONDITION_RE.match(trimmed) is not None


def looks_effectful(expression: str) -> bool:
    trimmed = expression.strip()
    if not trimmed:
        return False
    return bool(_ASSIGNMENT_RE.search(trimmed) or _INC_DEC_RE.search(trimmed) or _CALL_RE.search(trimmed))
