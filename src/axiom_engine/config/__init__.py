"""
axiom-engine config package public API.

File: src/axiom_engine/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``axiom.toml`` + ``AXIOM_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from axiom_engine.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ENV_SETTINGS,
    ConfigLoadError,
    dump_effective_config,
    env_overrides,
    load_config,
    normalize_paths,
)
from axiom_engine.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ConfigValidationError,
    ConfigValidationIssue,
    assert_valid_config,
    default_config,
    merge_config,
    profile_overrides,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ENV_SETTINGS",
    "PATH_FIELDS",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_overrides",
    "load_config",
    "merge_config",
    "normalize_paths",
    "profile_overrides",
    "validate_config",
]
