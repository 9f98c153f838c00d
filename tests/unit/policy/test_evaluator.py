"""
axiom-engine — unit tests for check-expression evaluation

File: tests/unit/policy/test_evaluator.py

Purpose
- Validate comparison/truthiness/call evaluation and the typed error taxonomy.
"""

from __future__ import annotations

import pytest

from axiom_engine.domain import CallDetails, ComparisonDetails
from axiom_engine.policy import (
    PolicyContext,
    PolicySyntaxError,
    PolicyTypeError,
    UnknownFunction,
    UnknownIdentifier,
    compare,
    evaluate,
    evaluate_bool,
)

METRICS = {
    "cold_start_ms": 50,
    "latency_p50_ms": 20.5,
    "no_analytics": True,
    "pii_leak": False,
    "region": "eu",
    "limit_ms": 60,
}


def _ctx() -> PolicyContext:
    return PolicyContext(metrics=METRICS)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("cold_start_ms <= 50", True),
        ("cold_start_ms < 50", False),
        ("cold_start_ms >= 50.0", True),
        ("latency_p50_ms > 20", True),
        ("cold_start_ms != 51", True),
        ("region == 'eu'", True),
        ('region != "us"', True),
        ("pii_leak == false", True),
        ("no_analytics == true", True),
        ("cold_start_ms < limit_ms", True),
    ],
)
def test_comparisons(expression: str, expected: bool) -> None:
    details = evaluate(expression, _ctx())
    assert isinstance(details, ComparisonDetails)
    assert details.result is expected
    assert details.expression == expression
    assert details.measurements == METRICS


@pytest.mark.unit
def test_comparison_details_record_operands() -> None:
    details = evaluate("cold_start_ms <= limit_ms", _ctx())
    assert isinstance(details, ComparisonDetails)
    assert (details.left, details.operator, details.right) == (50, "<=", 60)


@pytest.mark.unit
def test_bare_identifier_is_truthiness() -> None:
    details = evaluate("no_analytics", _ctx())
    assert isinstance(details, ComparisonDetails)
    assert details.operator == "truthy"
    assert details.result is True
    assert evaluate_bool("pii_leak", _ctx()) is False


@pytest.mark.unit
def test_booleans_never_equal_numbers() -> None:
    ctx = PolicyContext(metrics={"flag": True, "one": 1})
    assert evaluate_bool("flag == 1", ctx) is False
    assert evaluate_bool("one != true", ctx) is True


@pytest.mark.unit
def test_function_call_yields_call_details() -> None:
    ctx = PolicyContext(metrics={})
    details = evaluate("scan.artifacts.no_personal_data()", ctx)
    assert isinstance(details, CallDetails)
    assert details.function == "scan.artifacts.no_personal_data"
    assert details.arguments == ()
    assert details.result is True


@pytest.mark.unit
@pytest.mark.parametrize(
    ("expression", "error_type", "code"),
    [
        ("", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("   ", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("cold_start_ms <=", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("cold_start_ms <= 1 2", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("50 >= cold_start_ms", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("os.system('rm')", UnknownFunction, "ERR_UNKNOWN_FUNCTION"),
        ("http.healthy(true)", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("http.healthy('a' 'b')", PolicySyntaxError, "ERR_POLICY_SYNTAX"),
        ("unknown_metric > 1", UnknownIdentifier, "ERR_UNKNOWN_IDENTIFIER"),
        ("cold_start_ms > 'fast'", PolicyTypeError, "ERR_POLICY_TYPE"),
        ("region < 1", PolicyTypeError, "ERR_POLICY_TYPE"),
    ],
)
def test_errors_are_typed(expression: str, error_type: type[Exception], code: str) -> None:
    with pytest.raises(error_type) as excinfo:
        evaluate(expression, _ctx())
    assert excinfo.value.code == code  # type: ignore[attr-defined]


@pytest.mark.unit
def test_unknown_identifier_message_names_the_metric() -> None:
    with pytest.raises(UnknownIdentifier, match="Unknown identifier: bogus"):
        evaluate("bogus", _ctx())


@pytest.mark.unit
def test_compare_rejects_ordering_against_null() -> None:
    assert compare(None, "==", None) is True
    with pytest.raises(PolicyTypeError):
        compare(None, "<", None)
    with pytest.raises(PolicySyntaxError, match="Unknown operator"):
        compare(1, "~", 1)
