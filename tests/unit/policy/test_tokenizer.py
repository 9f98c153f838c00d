"""Unit tests for the check-expression tokenizer."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from axiom_engine.policy import PolicySyntaxError, TokenType, tokenize


@pytest.mark.unit
def test_tokenizes_comparison_with_float_literal() -> None:
    tokens = tokenize("latency_p50_ms <= 45.5")
    assert [(token.type, token.value) for token in tokens] == [
        (TokenType.IDENTIFIER, "latency_p50_ms"),
        (TokenType.OPERATOR, "<="),
        (TokenType.NUMBER, 45.5),
    ]
    assert [token.position for token in tokens] == [0, 15, 18]


@pytest.mark.unit
def test_tokenizes_dotted_call_with_string_arguments() -> None:
    tokens = tokenize("http.healthy('https://a.test', \"b\")")
    assert [token.type for token in tokens] == [
        TokenType.IDENTIFIER,
        TokenType.DOT,
        TokenType.IDENTIFIER,
        TokenType.LPAREN,
        TokenType.STRING,
        TokenType.COMMA,
        TokenType.STRING,
        TokenType.RPAREN,
    ]
    assert tokens[4].value == "https://a.test"


@pytest.mark.unit
def test_booleans_and_integer_dot_identifier() -> None:
    tokens = tokenize("pii_leak == false")
    assert tokens[-1].type is TokenType.BOOLEAN
    assert tokens[-1].value is False

    # "1.x" is an integer followed by a dot, not a float.
    assert [token.type for token in tokenize("1.x")] == [
        TokenType.NUMBER,
        TokenType.DOT,
        TokenType.IDENTIFIER,
    ]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("expression", "fragment"),
    [("a == 'open", "Unterminated string"), ("a = 1", "Unexpected character '='"), ("a && b", "&")],
)
def test_malformed_input_raises_syntax_error(expression: str, fragment: str) -> None:
    with pytest.raises(PolicySyntaxError, match=fragment):
        tokenize(expression)


@pytest.mark.unit
@given(st.text(max_size=64))
def test_property_tokenizer_never_raises_foreign_errors(expression: str) -> None:
    try:
        tokens = tokenize(expression)
    except PolicySyntaxError:
        return
    positions = [token.position for token in tokens]
    assert positions == sorted(positions)
    assert all(0 <= position < len(expression) for position in positions)
