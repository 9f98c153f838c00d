"""Tokenizer for check expressions.

Grammar surface: identifiers, ``.``, ``(``, ``)``, ``,``, comparison operators,
and string/number/boolean literals. There are no boolean connectives.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from axiom_engine.policy.errors import PolicySyntaxError

_TWO_CHAR_OPERATORS: Final[frozenset[str]] = frozenset({"==", "!=", "<=", ">="})
_ONE_CHAR_OPERATORS: Final[frozenset[str]] = frozenset({"<", ">"})
_PUNCTUATION: Final[dict[str, str]] = {".": "dot", "(": "lparen", ")": "rparen", ",": "comma"}
_DIGITS: Final[frozenset[str]] = frozenset(string.digits)
_IDENT_START: Final[frozenset[str]] = frozenset(string.ascii_letters + "_")
_IDENT_CHARS: Final[frozenset[str]] = _IDENT_START | _DIGITS


class TokenType(StrEnum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OPERATOR = "operator"
    DOT = "dot"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"


@dataclass(frozen=True, slots=True)
class Token:
    type: TokenType
    value: str | int | float | bool
    position: int


def tokenize(expression: str) -> list[Token]:
    tokens: list[Token] = []
    index = 0
    length = len(expression)

    while index < length:
        char = expression[index]

        if char.isspace():
            index += 1
            continue

        pair = expression[index : index + 2]
        if pair in _TWO_CHAR_OPERATORS:
            tokens.append(Token(TokenType.OPERATOR, pair, index))
            index += 2
            continue
        if char in _ONE_CHAR_OPERATORS:
            tokens.append(Token(TokenType.OPERATOR, char, index))
            index += 1
            continue

        if char in _PUNCTUATION:
            tokens.append(Token(TokenType(_PUNCTUATION[char]), char, index))
            index += 1
            continue

        if char in {'"', "'"}:
            end = expression.find(char, index + 1)
            if end == -1:
                raise PolicySyntaxError(f"Unterminated string literal at position {index}")
            tokens.append(Token(TokenType.STRING, expression[index + 1 : end], index))
            index = end + 1
            continue

        if char in _DIGITS:
            start = index
            while index < length and expression[index] in _DIGITS:
                index += 1
            fraction = expression[index : index + 2]
            if len(fraction) == 2 and fraction[0] == "." and fraction[1] in _DIGITS:
                index += 1
                while index < length and expression[index] in _DIGITS:
                    index += 1
                tokens.append(Token(TokenType.NUMBER, float(expression[start:index]), start))
            else:
                tokens.append(Token(TokenType.NUMBER, int(expression[start:index]), start))
            continue

        if char in _IDENT_START:
            start = index
            while index < length and expression[index] in _IDENT_CHARS:
                index += 1
            word = expression[start:index]
            if word in {"true", "false"}:
                tokens.append(Token(TokenType.BOOLEAN, word == "true", start))
            else:
                tokens.append(Token(TokenType.IDENTIFIER, word, start))
            continue

        raise PolicySyntaxError(f"Unexpected character {char!r} at position {index}")

    return tokens


__all__ = ["Token", "TokenType", "tokenize"]
