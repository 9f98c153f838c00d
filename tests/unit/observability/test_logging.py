"""
axiom-engine — unit tests for observability logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate structlog routing into JSON-lines / key=value output with redaction.
"""

from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from axiom_engine.observability import redact_string, redact_value, setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("axiom_engine")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    structlog.reset_defaults()


@pytest.mark.unit
def test_structlog_events_render_as_json_lines() -> None:
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)

    structlog.get_logger("axiom_engine.sync.apply").info(
        "apply_started", build_id="abc", artifact_count=2
    )

    record = json.loads(stream.getvalue().strip())
    assert record["event"] == "apply_started"
    assert record["level"] == "INFO"
    assert record["logger"] == "axiom_engine.sync.apply"
    assert record["fields"] == {"build_id": "abc", "artifact_count": 2}
    assert record["timestamp"].endswith("Z")


@pytest.mark.unit
def test_level_filtering_drops_debug_events() -> None:
    stream = io.StringIO()
    setup_logging("WARNING", stream=stream)

    log = structlog.get_logger("axiom_engine.store")
    log.info("artifact_store_put", digest="x")
    log.warning("apply_rejected", code="ERR_PATH_TRAVERSAL")

    lines = stream.getvalue().strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["event"] == "apply_rejected"


@pytest.mark.unit
def test_text_format_renders_sorted_key_values() -> None:
    stream = io.StringIO()
    setup_logging("DEBUG", json_output=False, stream=stream)

    log = structlog.get_logger("axiom_engine.verification")
    log.info("check_evaluated", passed=True, check="c1")

    assert stream.getvalue().strip() == (
        'INFO axiom_engine.verification check_evaluated check="c1" passed=true'
    )


@pytest.mark.unit
def test_sensitive_fields_and_strings_are_redacted() -> None:
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)

    structlog.get_logger("axiom_engine").info(
        "remote_configured",
        api_token="abc123",
        remote="https://user:pw@github.com/acme/site.git",
        note="password=hunter2",
    )

    fields = json.loads(stream.getvalue())["fields"]
    assert fields["api_token"] == "***REDACTED***"
    assert fields["remote"] == "https://***REDACTED***@github.com/acme/site.git"
    assert fields["note"] == "password=***REDACTED***"


@pytest.mark.unit
def test_redaction_helpers() -> None:
    assert redact_string("token=abc123 ok") == "token=***REDACTED*** ok"
    assert redact_string("use Bearer abc.def") == "use Bearer ***REDACTED***"
    assert redact_value({"nested": {"secret": [1, 2]}}, key_context=None) == {
        "nested": {"secret": "***REDACTED***"}
    }
    assert redact_value(float("nan"), key_context=None) == "***REDACTED***"


@pytest.mark.unit
def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown log level"):
        setup_logging("LOUD")
