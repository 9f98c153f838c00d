"""Logging setup shared by the CLI and tests."""

from axiom_engine.observability.logging import (
    LOGGER_NAME,
    JsonLineFormatter,
    redact_string,
    redact_value,
    setup_logging,
)

__all__ = [
    "LOGGER_NAME",
    "JsonLineFormatter",
    "redact_string",
    "redact_value",
    "setup_logging",
]
