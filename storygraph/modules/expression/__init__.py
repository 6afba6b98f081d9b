from storygraph.modules.expression.coercion import UNDEFINED, ExpressionValue
from storygraph.modules.expression.errors import ExpressionError
from storygraph.modules.expression.evaluator import (
    ExpressionCheck,
    evaluate_expression,
    evaluate_expression_value,
    validate_expression,
)

__all__ = [
    "ExpressionCheck",
    "ExpressionError",
    "ExpressionValue",
    "UNDEFINED",
    "evaluate_expression",
    "evaluate_expression_value",
    "validate_expression",
]
