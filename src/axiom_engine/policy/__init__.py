"""Policy mini-language: tokenizer, evaluator, allow-listed functions and metrics."""

from axiom_engine.policy.context import ArtifactText, PolicyContext, Probe, load_artifact_texts
from axiom_engine.policy.errors import (
    MissingCapability,
    PolicyEvaluationError,
    PolicySyntaxError,
    PolicyTypeError,
    UnknownFunction,
    UnknownIdentifier,
)
from axiom_engine.policy.evaluator import compare, evaluate, evaluate_bool
from axiom_engine.policy.functions import FUNCTIONS, call_function, http_probe
from axiom_engine.policy.metrics import derive_measurements
from axiom_engine.policy.pii import contains_personal_data, find_personal_data
from axiom_engine.policy.tokenizer import Token, TokenType, tokenize

__all__ = [
    "FUNCTIONS",
    "ArtifactText",
    "MissingCapability",
    "PolicyContext",
    "PolicyEvaluationError",
    "PolicySyntaxError",
    "PolicyTypeError",
    "Probe",
    "Token",
    "TokenType",
    "UnknownFunction",
    "UnknownIdentifier",
    "call_function",
    "compare",
    "contains_personal_data",
    "derive_measurements",
    "evaluate",
    "evaluate_bool",
    "find_personal_data",
    "http_probe",
    "load_artifact_texts",
    "tokenize",
]
