"""
axiom-engine — runtime config loader

File: src/axiom_engine/config/loader.py

Purpose
- Load effective CLI config from defaults, ``axiom.toml``, ``AXIOM_`` env vars
  and CLI overrides.

Functional requirements
- Precedence: CLI > env (AXIOM_) > file > defaults.
- TOML loading via ``tomllib``; relative paths in the file resolve against the
  file's directory.
- Env values are coerced to the type of the default they override.

Non-functional requirements
- The core never calls this module; only the CLI does, and passes explicit
  parameters onward.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

from axiom_engine.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "axiom.toml"
ENV_PREFIX: Final[str] = "AXIOM_"

# Settings reachable from the environment. Profile tables are file-only.
ENV_SETTINGS: Final[tuple[tuple[str, ...], ...]] = (
    ("branch",),
    ("commit_message",),
    ("destination_root",),
    ("logging", "json"),
    ("logging", "level"),
    ("mode",),
    ("profile",),
    ("store_dir",),
)

_FLAG_WORDS: Final[Mapping[str, bool]] = MappingProxyType(
    {
        "1": True,
        "true": True,
        "yes": True,
        "on": True,
        "0": False,
        "false": False,
        "no": False,
        "off": False,
    }
)


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: CLI > env > file > defaults.

    ``config_path=None`` reads ``./axiom.toml`` when it exists; an explicit path
    must exist. ``None`` values in ``cli_overrides`` mean "not given".
    """

    explicit = config_path is not None
    source = (
        Path(config_path).expanduser().resolve()
        if explicit
        else (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    )

    from_file = normalize_paths(_read_toml(source, required=explicit), base_dir=source.parent)
    config = assert_valid_config(merge_config(default_config(), from_file))

    layered = merge_config(config, env_overrides(os.environ if environ is None else environ))
    layered = merge_config(layered, _dotted_to_nested(cli_overrides or {}))
    return assert_valid_config(layered)


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``AXIOM_*`` values for every known setting, typed like its default."""

    overrides: dict[str, Any] = {}
    for setting in ENV_SETTINGS:
        name = ENV_PREFIX + "_".join(part.upper() for part in setting)
        raw = environ.get(name)
        if raw is None:
            continue
        default = _lookup(DEFAULT_CONFIG, setting)
        value: object = raw.strip()
        if isinstance(default, bool):
            value = _parse_flag(name, raw)
        _assign(overrides, setting, value)
    return overrides


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve non-empty path fields in ``config`` relative to ``base_dir``."""

    resolved = merge_config({}, config)
    for field in PATH_FIELDS:
        raw = _lookup(resolved, field)
        if not isinstance(raw, str) or not raw:
            continue
        candidate = Path(os.path.expandvars(raw)).expanduser()
        if not candidate.is_absolute():
            candidate = base_dir / candidate
        _assign(resolved, field, Path(os.path.normpath(candidate)).as_posix())
    return resolved


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return a deterministic JSON dump of the effective config."""

    return json.dumps(dict(config), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_toml(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _parse_flag(name: str, raw: str) -> bool:
    flag = _FLAG_WORDS.get(raw.strip().lower())
    if flag is None:
        allowed = "/".join(_FLAG_WORDS)
        raise ConfigLoadError(f"{name} must be a boolean ({allowed}), got {raw!r}")
    return flag


def _dotted_to_nested(overrides: Mapping[str, object]) -> dict[str, Any]:
    nested: dict[str, Any] = {}
    for key, value in sorted(overrides.items()):
        if value is None:
            continue
        parts = tuple(part for part in key.split(".") if part)
        if not parts:
            raise ConfigLoadError(f"invalid CLI override key {key!r}")
        _assign(nested, parts, value)
    return nested


def _assign(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    *parents, leaf = path
    node = target
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value


def _lookup(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    node: object = payload
    for part in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(part)
    return node


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ENV_SETTINGS",
    "dump_effective_config",
    "env_overrides",
    "load_config",
    "normalize_paths",
]
