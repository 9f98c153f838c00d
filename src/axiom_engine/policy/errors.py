"""Evaluation errors raised by the policy mini-language."""

from __future__ import annotations


class PolicyEvaluationError(RuntimeError):
    """Base error for a check expression that could not be evaluated."""

    code = "ERR_POLICY_EVALUATION"


class PolicySyntaxError(PolicyEvaluationError):
    code = "ERR_POLICY_SYNTAX"


class UnknownIdentifier(PolicyEvaluationError):
    code = "ERR_UNKNOWN_IDENTIFIER"


class UnknownFunction(PolicyEvaluationError):
    code = "ERR_UNKNOWN_FUNCTION"


class MissingCapability(PolicyEvaluationError):
    code = "ERR_MISSING_CAPABILITY"


class PolicyTypeError(PolicyEvaluationError):
    code = "ERR_POLICY_TYPE"


__all__ = [
    "MissingCapability",
    "PolicyEvaluationError",
    "PolicySyntaxError",
    "PolicyTypeError",
    "UnknownFunction",
    "UnknownIdentifier",
]
