"""
Value coercion for guard expressions.

Guards follow the loose rules authors know from JavaScript: ``"5" == 5`` is true,
``"3" + 1`` concatenates, missing variables are ``undefined`` rather than errors
and division by zero gives ``NaN``. Numbers are kept as ``int`` when integral
and within the exactly-representable range, otherwise ``float``.
"""

from __future__ import annotations

import math
import re
from typing import Union

MAX_SAFE_INTEGER = 2**53
NAN = float("nan")
INFINITY = float("inf")

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}


class _Undefined:
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "undefined"

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict) -> _Undefined:
        return self


UNDEFINED = _Undefined()

Number = Union[int, float]
ExpressionValue = Union[str, int, float, bool, None, _Undefined]


def canonical_number(value: float | int) -> Number:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
            return value
        try:
            return float(value)
        except OverflowError:
            return INFINITY if value > 0 else -INFINITY
    if math.isfinite(value) and value.is_integer() and -MAX_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER:
        return int(value)
    return value


def _string_to_number(text: str) -> Number:
    stripped = text.strip()
    if not stripped:
        return 0
    if stripped in ("Infinity", "+Infinity"):
        return INFINITY
    if stripped == "-Infinity":
        return -INFINITY
    radix = _RADIX_PREFIXES.get(stripped[:2].lower())
    if radix is not None:
        try:
            return canonical_number(int(stripped[2:], radix))
        except ValueError:
            return NAN
    if _DECIMAL_RE.match(stripped):
        try:
            return canonical_number(float(stripped))
        except OverflowError:
            return INFINITY
    return NAN


def to_number(value: ExpressionValue) -> Number:
    if value is UNDEFINED:
        return NAN
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return _string_to_number(value)
    return NAN


def _number_to_string(value: Number) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", repr(value))


def to_string(value: ExpressionValue) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _number_to_string(value)
    return str(value)


def is_truthy(value: ExpressionValue) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return bool(value)


def type_category(value: ExpressionValue) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def strict_equals(left: ExpressionValue, right: ExpressionValue) -> bool:
    if type_category(left) != type_category(right):
        return False
    return left == right


def loose_equals(left: ExpressionValue, right: ExpressionValue) -> bool:
    left_kind = type_category(left)
    right_kind = type_category(right)
    if left_kind == right_kind:
        return strict_equals(left, right)
    nullish = {"null", "undefined"}
    if left_kind in nullish or right_kind in nullish:
        return left_kind in nullish and right_kind in nullish
    if left_kind == "boolean":
        return loose_equals(to_number(left), right)
    if right_kind == "boolean":
        return loose_equals(left, to_number(right))
    # number against string
    return to_number(left) == to_number(right)


def add(left: ExpressionValue, right: ExpressionValue) -> ExpressionValue:
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    return canonical_number(to_number(left) + to_number(right))


def subtract(left: ExpressionValue, right: ExpressionValue) -> Number:
    return canonical_number(to_number(left) - to_number(right))


def multiply(left: ExpressionValue, right: ExpressionValue) -> Number:
    return canonical_number(to_number(left) * to_number(right))


def divide(left: ExpressionValue, right: ExpressionValue) -> Number:
    dividend = to_number(left)
    divisor = to_number(right)
    if divisor == 0 or math.isnan(divisor):
        return NAN
    try:
        return canonical_number(dividend / divisor)
    except OverflowError:
        return INFINITY if (dividend > 0) == (divisor > 0) else -INFINITY


def remainder(left: ExpressionValue, right: ExpressionValue) -> Number:
    dividend = to_number(left)
    divisor = to_number(right)
    if divisor == 0 or math.isnan(divisor) or math.isnan(dividend) or math.isinf(dividend):
        return NAN
    if math.isinf(divisor):
        return dividend
    return canonical_number(math.fmod(dividend, divisor))


def negate(value: ExpressionValue) -> Number:
    return canonical_number(-to_number(value))


def compare(operator: str, left: ExpressionValue, right: ExpressionValue) -> bool:
    """Relational operators compare numerically; anything involving NaN is false."""
    left_number = to_number(left)
    right_number = to_number(right)
    if operator == "<":
        return left_number < right_number
    if operator == "<=":
        return left_number <= right_number
    if operator == ">":
        return left_number > right_number
    if operator == ">=":
        return left_number >= right_number
    raise ValueError(f"unknown comparison operator: {operator}")
