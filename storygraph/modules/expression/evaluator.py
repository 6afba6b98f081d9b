from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from storygraph.modules.expression.coercion import ExpressionValue, is_truthy
from storygraph.modules.expression.errors import ExpressionError
from storygraph.modules.expression.parser import parse_and_evaluate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExpressionCheck:
    valid: bool
    error: str | None = None


def evaluate_expression(expression: str, variables: Mapping[str, Any]) -> bool:
    """
    Evaluate a guard and coerce the result to ``bool``.

    Used on the play path, so it never raises: malformed input is treated as a
    closed gate and evaluates to ``False``.
    """
    try:
        return is_truthy(parse_and_evaluate(expression, variables))
    except Exception as exc:  # noqa: BLE001
        logger.debug("guard evaluated closed expression=%r reason=%s", expression, exc)
        return False


def evaluate_expression_value(expression: str, variables: Mapping[str, Any]) -> ExpressionValue:
    """Evaluate ``expression`` and return its raw value; raises ``ExpressionError``."""
    return parse_and_evaluate(expression, variables)


def validate_expression(expression: str) -> ExpressionCheck:
    try:
        parse_and_evaluate(expression, {})
    except ExpressionError as exc:
        return ExpressionCheck(valid=False, error=exc.message)
    return ExpressionCheck(valid=True)
