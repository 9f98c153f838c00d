"""
axiom-engine — configuration defaults and validation

File: src/axiom_engine/config/schema.py

Purpose
- Define the built-in configuration defaults and strict validation rules.

Functional requirements
- Validation reports every issue as (field path, message) before failing.
- Unknown keys are rejected so typos never silently fall back to defaults.
- ``[profiles.<name>]`` tables hold flat scalar measurement overrides.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

from axiom_engine.constants import DEFAULT_PROFILE

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
APPLY_MODES: Final[tuple[str, ...]] = ("direct", "fs", "patch-request", "pr")

# Config paths normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("destination_root",),
    ("store_dir",),
)

_PROFILE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_METRIC_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_CONFIG: Final[dict[str, Any]] = {
    "destination_root": ".",
    "mode": "direct",
    "branch": "",
    "commit_message": "",
    "profile": DEFAULT_PROFILE,
    "store_dir": "",
    "logging": {"level": "INFO", "json": True},
    "profiles": {},
}

_STRING_FIELDS: Final[tuple[str, ...]] = (
    "destination_root",
    "branch",
    "commit_message",
    "profile",
    "store_dir",
)


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


def default_config() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key in sorted(overlay):
        value = overlay[key]
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_config(config: Mapping[str, object]) -> tuple[ConfigValidationIssue, ...]:
    issues: list[ConfigValidationIssue] = []

    def add(path: str, message: str) -> None:
        issues.append(ConfigValidationIssue(path=path, message=message))

    for key in sorted(set(config) - set(DEFAULT_CONFIG)):
        add(key, "unknown configuration key")

    for key in _STRING_FIELDS:
        if not isinstance(config.get(key), str):
            add(key, "expected string")

    mode = config.get("mode")
    if mode not in APPLY_MODES:
        add("mode", f"expected one of: {', '.join(APPLY_MODES)}")

    logging_section = config.get("logging")
    if not isinstance(logging_section, Mapping):
        add("logging", "expected table")
    else:
        for key in sorted(set(logging_section) - {"level", "json"}):
            add(f"logging.{key}", "unknown configuration key")
        level = logging_section.get("level")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            add("logging.level", f"expected one of: {', '.join(LOG_LEVELS)}")
        if not isinstance(logging_section.get("json"), bool):
            add("logging.json", "expected boolean")

    profiles = config.get("profiles")
    if not isinstance(profiles, Mapping):
        add("profiles", "expected table")
    else:
        for name in sorted(profiles):
            _validate_profile(str(name), profiles[name], add)

    return tuple(issues)


def assert_valid_config(config: Mapping[str, object]) -> dict[str, Any]:
    """Validate ``config`` and raise ``ConfigValidationError`` on failure."""

    issues = validate_config(config)
    if issues:
        raise ConfigValidationError(issues)
    return dict(config)


def profile_overrides(config: Mapping[str, object]) -> dict[str, dict[str, Any]]:
    """Return ``[profiles.*]`` tables in the shape ``resolve_profile`` accepts."""

    profiles = config.get("profiles")
    if not isinstance(profiles, Mapping):
        return {}
    return {str(name): dict(values) for name, values in sorted(profiles.items())}


def _validate_profile(
    name: str, overlay: object, add: Callable[[str, str], None]
) -> None:
    path = f"profiles.{name}"
    if not _PROFILE_NAME_PATTERN.fullmatch(name):
        add(path, "profile names must start with a letter and use [A-Za-z0-9_-]")
    if not isinstance(overlay, Mapping):
        add(path, "expected table")
        return
    for metric in sorted(overlay):
        value = overlay[metric]
        if not _METRIC_NAME_PATTERN.fullmatch(str(metric)):
            add(f"{path}.{metric}", "metric names must be identifiers")
        if isinstance(value, float) and not math.isfinite(value):
            add(f"{path}.{metric}", "numbers must be finite")
        elif not isinstance(value, (str, int, float, bool)):
            add(f"{path}.{metric}", "expected string, number or boolean")


__all__ = [
    "APPLY_MODES",
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "profile_overrides",
    "validate_config",
]
