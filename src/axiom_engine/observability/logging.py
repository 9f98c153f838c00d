"""Structured logging setup with JSON-lines output and redaction support.

Components log through ``structlog.get_logger(__name__)``; ``setup_logging``
routes those events into stdlib ``logging`` so a single handler renders
them, as JSON lines or plain text, on stderr.
"""

from __future__ import annotations

import json
import logging
import math
import re
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, TextIO

import structlog

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

LOGGER_NAME: Final[str] = "axiom_engine"

_REDACTED_VALUE: Final[str] = "***REDACTED***"
_TEXT_FORMAT: Final[str] = "%(levelname)s %(name)s %(message)s"

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = (
    "secret",
    "token",
    "password",
    "passphrase",
    "api_key",
    "apikey",
    "authorization",
    "credential",
    "private_key",
)

_SENSITIVE_ASSIGNMENT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b(api[_-]?key|token|password|secret|authorization)\b\s*([:=])\s*([^\s,;]+)"
)
_BEARER_TOKEN_PATTERN: Final[re.Pattern[str]] = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/-]+=*")
_URL_CREDENTIALS_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?i)\b([a-z][a-z0-9+.-]*://)[^/\s:@]+:[^/\s@]+@"
)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonLineFormatter(logging.Formatter):
    """Formatter that emits one canonical, redacted JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "event": redact_value(record.getMessage(), key_context=None),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = redact_value(extras, key_context=None)

        if record.exc_info is not None:
            event["exception"] = redact_value(
                self.formatException(record.exc_info), key_context=None
            )

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class _KeyValueFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = redact_value(_extract_extra_fields(record), key_context=None)
        if not isinstance(extras, dict) or not extras:
            return base
        rendered = " ".join(
            f"{key}={json.dumps(value, ensure_ascii=False)}"
            for key, value in sorted(extras.items())
        )
        return f"{base} {rendered}"


def setup_logging(
    level: int | str = "INFO",
    *,
    json_output: bool = True,
    stream: TextIO | None = None,
    logger_name: str = LOGGER_NAME,
) -> logging.Logger:
    """Configure the package logger and route structlog events through it.

    Calling this again replaces the previously installed handler.
    """

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    formatter = JsonLineFormatter() if json_output else _KeyValueFormatter(_TEXT_FORMAT)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(_parse_log_level(level))
    logger.propagate = False

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    return logger


def redact_value(value: object, *, key_context: str | None) -> JSONValue:
    """Normalize ``value`` to JSON and mask secret-looking keys and strings."""

    normalized = _normalize_json_value(value)
    if key_context is not None and _requires_redaction_for_key(key_context):
        return _REDACTED_VALUE
    if isinstance(normalized, str):
        return redact_string(normalized)
    if isinstance(normalized, list):
        return [redact_value(item, key_context=None) for item in normalized]
    if isinstance(normalized, dict):
        return {key: redact_value(item, key_context=key) for key, item in normalized.items()}
    return normalized


def redact_string(text: str) -> str:
    redacted = _SENSITIVE_ASSIGNMENT_PATTERN.sub(
        lambda match: f"{match.group(1)}{match.group(2)}{_REDACTED_VALUE}", text
    )
    redacted = _BEARER_TOKEN_PATTERN.sub(f"Bearer {_REDACTED_VALUE}", redacted)
    return _URL_CREDENTIALS_PATTERN.sub(
        lambda match: f"{match.group(1)}{_REDACTED_VALUE}@", redacted
    )


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {value!r}")
    return resolved


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED_RECORD_ATTRS or key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _requires_redaction_for_key(key: str) -> bool:
    key_lower = key.lower()
    return any(term in key_lower for term in _SENSITIVE_KEY_TERMS)


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else _REDACTED_VALUE
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


__all__ = [
    "LOGGER_NAME",
    "JSONScalar",
    "JSONValue",
    "JsonLineFormatter",
    "redact_string",
    "redact_value",
    "setup_logging",
]
