from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storygraph.modules.expression.coercion import UNDEFINED, ExpressionValue, canonical_number
from storygraph.modules.expression.errors import ExpressionError

# longest first so "===" wins over "==" and "<=" over "<"
OPERATORS: tuple[str, ...] = (
    "===",
    "!==",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    "%",
    "!",
)
ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\"}
KEYWORDS: dict[str, ExpressionValue] = {"true": True, "false": False, "null": None, "undefined": UNDEFINED}


class TokenKind(str, Enum):
    NUMBER = "number"
    STRING = "string"
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    LPAREN = "lparen"
    RPAREN = "rparen"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: ExpressionValue
    position: int
    text: str


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_identifier_start(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z") or char in "_$"


def _is_identifier_part(char: str) -> bool:
    return _is_identifier_start(char) or _is_digit(char)


def _read_number(source: str, start: int) -> tuple[Token, int]:
    pos = start
    seen_dot = False
    while pos < len(source) and (_is_digit(source[pos]) or (source[pos] == "." and not seen_dot)):
        if source[pos] == ".":
            seen_dot = True
        pos += 1
    text = source[start:pos]
    value = canonical_number(float(text))
    return Token(TokenKind.NUMBER, value, start, text), pos


def _read_string(source: str, start: int) -> tuple[Token, int]:
    quote = source[start]
    pos = start + 1
    chars: list[str] = []
    while pos < len(source) and source[pos] != quote:
        char = source[pos]
        if char == "\\" and pos + 1 < len(source):
            pos += 1
            chars.append(ESCAPES.get(source[pos], source[pos]))
        else:
            chars.append(char)
        pos += 1
    if pos >= len(source):
        raise ExpressionError(f"Unterminated string at position {start}", start)
    pos += 1
    return Token(TokenKind.STRING, "".join(chars), start, source[start:pos]), pos


def tokenize(source: str) -> list[Token]:
    """Split ``source`` into tokens, always ending with an EOF token."""
    tokens: list[Token] = []
    pos = 0
    length = len(source)

    while pos < length:
        char = source[pos]
        if char.isspace():
            pos += 1
            continue

        if _is_digit(char) or (char == "." and pos + 1 < length and _is_digit(source[pos + 1])):
            token, pos = _read_number(source, pos)
            tokens.append(token)
            continue

        if char in ("'", '"'):
            token, pos = _read_string(source, pos)
            tokens.append(token)
            continue

        operator = next((op for op in OPERATORS if source.startswith(op, pos)), None)
        if operator is not None:
            tokens.append(Token(TokenKind.OPERATOR, operator, pos, operator))
            pos += len(operator)
            continue

        if char == "(":
            tokens.append(Token(TokenKind.LPAREN, "(", pos, "("))
            pos += 1
            continue
        if char == ")":
            tokens.append(Token(TokenKind.RPAREN, ")", pos, ")"))
            pos += 1
            continue

        if _is_identifier_start(char):
            start = pos
            while pos < length and _is_identifier_part(source[pos]):
                pos += 1
            word = source[start:pos]
            if word in KEYWORDS:
                tokens.append(Token(TokenKind.LITERAL, KEYWORDS[word], start, word))
            else:
                tokens.append(Token(TokenKind.IDENTIFIER, word, start, word))
            continue

        raise ExpressionError(f"Unexpected character '{char}' at position {pos}", pos)

    tokens.append(Token(TokenKind.EOF, None, length, ""))
    return tokens
