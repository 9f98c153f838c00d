"""
axiom-engine — check expression evaluator

File: src/axiom_engine/policy/evaluator.py

Purpose
- Evaluate one ``expect`` expression against a :class:`PolicyContext` and
  return a typed evidence payload describing what was compared or called.

Grammar
    expression := chain [ call | operator operand ] END
    chain      := IDENT { "." IDENT }
    call       := "(" [ literal { "," literal } ] ")"
    operand    := NUMBER | BOOLEAN | STRING | IDENT
    literal    := NUMBER | STRING

Functional requirements
- A bare chain evaluates to the truthiness of the named metric.
- Unknown metrics, unknown functions, missing capabilities, type mismatches
  and malformed input all raise subclasses of ``PolicyEvaluationError``.
- Booleans never compare equal to numbers; ordering across incompatible
  types is a ``PolicyTypeError``.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from typing import Final

from axiom_engine.domain.ir import JSONScalar
from axiom_engine.domain.manifest import CallDetails, ComparisonDetails
from axiom_engine.policy.context import PolicyContext
from axiom_engine.policy.errors import PolicySyntaxError, PolicyTypeError, UnknownIdentifier
from axiom_engine.policy.functions import Argument, call_function
from axiom_engine.policy.tokenizer import Token, TokenType, tokenize

TRUTHY_OPERATOR: Final[str] = "truthy"

_ORDERING: Final[dict[str, Callable[[object, object], bool]]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class _Cursor:
    __slots__ = ("_index", "_tokens")

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._index = 0

    def peek(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def next(self, expected: str) -> Token:
        token = self.peek()
        if token is None:
            raise PolicySyntaxError(f"Unexpected end of expression; expected {expected}")
        self._index += 1
        return token

    def take(self, *types: TokenType) -> Token | None:
        token = self.peek()
        if token is not None and token.type in types:
            self._index += 1
            return token
        return None

    def expect_end(self) -> None:
        token = self.peek()
        if token is not None:
            raise PolicySyntaxError(
                f"Unexpected token {token.value!r} at position {token.position}"
            )


def evaluate(expression: str, ctx: PolicyContext) -> ComparisonDetails | CallDetails:
    """Evaluate ``expression``; the payload's ``result`` is the check outcome."""

    tokens = tokenize(expression)
    if not tokens:
        raise PolicySyntaxError("Empty expression")
    cursor = _Cursor(tokens)
    name = _parse_chain(cursor)
    measurements = dict(ctx.metrics)

    if cursor.take(TokenType.LPAREN) is not None:
        arguments = _parse_arguments(cursor)
        cursor.expect_end()
        result = call_function(name, arguments, ctx)
        return CallDetails(
            expression=expression,
            measurements=measurements,
            function=name,
            arguments=tuple(arguments),
            result=result,
        )

    op_token = cursor.take(TokenType.OPERATOR)
    if op_token is None:
        cursor.expect_end()
        value = _lookup(name, ctx)
        return ComparisonDetails(
            expression=expression,
            measurements=measurements,
            left=value,
            operator=TRUTHY_OPERATOR,
            result=bool(value),
        )

    left = _lookup(name, ctx)
    right = _parse_operand(cursor, ctx)
    cursor.expect_end()
    op = str(op_token.value)
    return ComparisonDetails(
        expression=expression,
        measurements=measurements,
        left=left,
        operator=op,
        right=right,
        result=compare(left, op, right),
    )


def evaluate_bool(expression: str, ctx: PolicyContext) -> bool:
    return evaluate(expression, ctx).result


def compare(left: JSONScalar, op: str, right: JSONScalar) -> bool:
    if op == "==":
        return _strict_equal(left, right)
    if op == "!=":
        return not _strict_equal(left, right)
    ordering = _ORDERING.get(op)
    if ordering is None:
        raise PolicySyntaxError(f"Unknown operator: {op}")
    if _category(left) != _category(right) or left is None:
        raise PolicyTypeError(
            f"Cannot order {type(left).__name__} and {type(right).__name__} with {op!r}"
        )
    return bool(ordering(left, right))


def _parse_chain(cursor: _Cursor) -> str:
    first = cursor.next("identifier")
    if first.type is not TokenType.IDENTIFIER:
        raise PolicySyntaxError(
            f"Expression must start with an identifier, got {first.value!r}"
        )
    parts = [str(first.value)]
    while cursor.take(TokenType.DOT) is not None:
        part = cursor.next("identifier after '.'")
        if part.type is not TokenType.IDENTIFIER:
            raise PolicySyntaxError(
                f"Expected identifier after '.' at position {part.position}"
            )
        parts.append(str(part.value))
    return ".".join(parts)


def _parse_arguments(cursor: _Cursor) -> list[Argument]:
    arguments: list[Argument] = []
    if cursor.take(TokenType.RPAREN) is not None:
        return arguments
    while True:
        token = cursor.next("argument")
        value = token.value
        if token.type not in (TokenType.STRING, TokenType.NUMBER) or isinstance(value, bool):
            raise PolicySyntaxError(
                f"Call arguments must be string or number literals at position {token.position}"
            )
        arguments.append(value)
        if cursor.take(TokenType.RPAREN) is not None:
            return arguments
        separator = cursor.next("',' or ')'")
        if separator.type is not TokenType.COMMA:
            raise PolicySyntaxError(f"Expected ',' or ')' at position {separator.position}")


def _parse_operand(cursor: _Cursor, ctx: PolicyContext) -> JSONScalar:
    token = cursor.next("operand")
    if token.type in (TokenType.NUMBER, TokenType.BOOLEAN, TokenType.STRING):
        return token.value
    if token.type is TokenType.IDENTIFIER:
        return _lookup(str(token.value), ctx)
    raise PolicySyntaxError(f"Unexpected token {token.value!r} at position {token.position}")


def _lookup(name: str, ctx: PolicyContext) -> JSONScalar:
    if name not in ctx.metrics:
        raise UnknownIdentifier(f"Unknown identifier: {name}")
    return ctx.metrics[name]


def _category(value: JSONScalar) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _strict_equal(left: JSONScalar, right: JSONScalar) -> bool:
    return _category(left) == _category(right) and left == right


__all__ = ["TRUTHY_OPERATOR", "compare", "evaluate", "evaluate_bool"]
