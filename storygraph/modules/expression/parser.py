from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from storygraph.modules.expression import coercion
from storygraph.modules.expression.coercion import UNDEFINED, ExpressionValue
from storygraph.modules.expression.errors import ExpressionError
from storygraph.modules.expression.tokens import Token, TokenKind, tokenize

MAX_NESTING_DEPTH = 32

OR_OPERATORS = frozenset({"||"})
AND_OPERATORS = frozenset({"&&"})
EQUALITY_OPERATORS = frozenset({"==", "===", "!=", "!=="})
COMPARISON_OPERATORS = frozenset({"<", "<=", ">", ">="})
ADDITIVE_OPERATORS = frozenset({"+", "-"})
MULTIPLICATIVE_OPERATORS = frozenset({"*", "/", "%"})
PREFIX_OPERATORS = frozenset({"!", "-"})


class Parser:
    """
    Recursive-descent parser that evaluates as it goes.

    Binary levels loop over their operators, so long chains like ``a + b + c ...``
    do not grow the call stack. Prefix operators are collected in a loop too, so
    only parentheses nest; they are capped at ``MAX_NESTING_DEPTH``.
    """

    def __init__(self, tokens: list[Token], variables: Mapping[str, Any]) -> None:
        self._tokens = tokens
        self._variables = variables
        self._index = 0
        self._depth = 0

    def parse(self) -> ExpressionValue:
        value = self._logical_or()
        token = self._peek()
        if token.kind is not TokenKind.EOF:
            raise self._unexpected(token)
        return value

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind is not TokenKind.EOF:
            self._index += 1
        return token

    def _match_operator(self, operators: frozenset[str]) -> str | None:
        token = self._peek()
        if token.kind is TokenKind.OPERATOR and token.text in operators:
            self._advance()
            return token.text
        return None

    def _enter(self, token: Token) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise ExpressionError(f"Expression nested too deeply at position {token.position}", token.position)

    @staticmethod
    def _unexpected(token: Token) -> ExpressionError:
        if token.kind is TokenKind.EOF:
            return ExpressionError(f"Unexpected end of expression at position {token.position}", token.position)
        return ExpressionError(f"Unexpected token '{token.text}' at position {token.position}", token.position)

    def _logical_or(self) -> ExpressionValue:
        left = self._logical_and()
        while self._match_operator(OR_OPERATORS) is not None:
            right = self._logical_and()
            left = left if coercion.is_truthy(left) else right
        return left

    def _logical_and(self) -> ExpressionValue:
        left = self._equality()
        while self._match_operator(AND_OPERATORS) is not None:
            right = self._equality()
            left = right if coercion.is_truthy(left) else left
        return left

    def _equality(self) -> ExpressionValue:
        left = self._comparison()
        while (operator := self._match_operator(EQUALITY_OPERATORS)) is not None:
            right = self._comparison()
            if operator == "==":
                left = coercion.loose_equals(left, right)
            elif operator == "!=":
                left = not coercion.loose_equals(left, right)
            elif operator == "===":
                left = coercion.strict_equals(left, right)
            else:
                left = not coercion.strict_equals(left, right)
        return left

    def _comparison(self) -> ExpressionValue:
        left = self._additive()
        while (operator := self._match_operator(COMPARISON_OPERATORS)) is not None:
            right = self._additive()
            left = coercion.compare(operator, left, right)
        return left

    def _additive(self) -> ExpressionValue:
        left = self._multiplicative()
        while (operator := self._match_operator(ADDITIVE_OPERATORS)) is not None:
            right = self._multiplicative()
            left = coercion.add(left, right) if operator == "+" else coercion.subtract(left, right)
        return left

    def _multiplicative(self) -> ExpressionValue:
        left = self._unary()
        while (operator := self._match_operator(MULTIPLICATIVE_OPERATORS)) is not None:
            right = self._unary()
            if operator == "*":
                left = coercion.multiply(left, right)
            elif operator == "/":
                left = coercion.divide(left, right)
            else:
                left = coercion.remainder(left, right)
        return left

    def _unary(self) -> ExpressionValue:
        prefixes: list[str] = []
        while self._peek().kind is TokenKind.OPERATOR and self._peek().text in PREFIX_OPERATORS:
            prefixes.append(self._advance().text)

        value = self._primary()
        for operator in reversed(prefixes):
            value = (not coercion.is_truthy(value)) if operator == "!" else coercion.negate(value)
        return value

    def _primary(self) -> ExpressionValue:
        token = self._peek()
        if token.kind in (TokenKind.NUMBER, TokenKind.STRING, TokenKind.LITERAL):
            self._advance()
            return token.value
        if token.kind is TokenKind.IDENTIFIER:
            self._advance()
            name = str(token.value)
            if name in self._variables:
                return self._variables[name]
            return UNDEFINED
        if token.kind is TokenKind.LPAREN:
            self._advance()
            self._enter(token)
            value = self._logical_or()
            closing = self._peek()
            if closing.kind is not TokenKind.RPAREN:
                raise ExpressionError(f"Expected ')' at position {closing.position}", closing.position)
            self._advance()
            self._depth -= 1
            return value
        raise self._unexpected(token)


def parse_and_evaluate(expression: str, variables: Mapping[str, Any]) -> ExpressionValue:
    return Parser(tokenize(expression), variables).parse()
