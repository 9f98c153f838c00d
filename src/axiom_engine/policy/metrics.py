"""
axiom-engine — measurement derivation for policy checks

File: src/axiom_engine/policy/metrics.py

Purpose
- Turn a manifest's artifacts plus the active profile into the flat metric
  mapping that check expressions are evaluated against.

Derived metrics
- ``max_dependencies``: most dependencies declared by any ``package.json`` or
  ``requirements.txt`` artifact.
- ``frontend_bundle_kb``: ceil(bytes under ``web/`` or ``webapp/`` / 1024).
- ``no_analytics`` / ``no_telemetry``: no dependency manifest names a known
  analytics or telemetry package.
- ``no_fs_heavy``: no artifact calls a heavy synchronous FS API.
- ``artifact_count`` / ``total_bytes``: over non-meta artifacts.

Derived values override same-named profile values; output is deterministic
for the same manifest, texts and profile.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path, PurePosixPath
from typing import Final

from axiom_engine.domain.ir import JSONScalar
from axiom_engine.domain.manifest import Manifest
from axiom_engine.policy.context import ArtifactText, load_artifact_texts

ANALYTICS_PACKAGES: Final[frozenset[str]] = frozenset({"@vercel/analytics", "analytics", "ga-lite"})
TELEMETRY_PACKAGES: Final[frozenset[str]] = frozenset(
    {"@opentelemetry/api", "pino", "winston", "opentelemetry-api"}
)
FS_HEAVY_CALLS: Final[tuple[str, ...]] = (
    "fs.readFileSync",
    "fs.writeFileSync",
    "fs.createReadStream",
)
FRONTEND_SEGMENTS: Final[frozenset[str]] = frozenset({"web", "webapp"})

_REQUIREMENT_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*")


def derive_measurements(
    manifest: Manifest,
    out_root: Path | None = None,
    profile_measurements: Mapping[str, JSONScalar] | None = None,
    *,
    texts: Sequence[ArtifactText] | None = None,
) -> dict[str, JSONScalar]:
    """Return profile measurements merged with values derived from artifacts."""

    if texts is None:
        texts = load_artifact_texts(manifest.artifacts, out_root)

    measurements: dict[str, JSONScalar] = dict(profile_measurements or {})
    measurements.setdefault("pii_leak", False)

    dependency_sets = [
        deps for deps in (_dependencies_of(item) for item in texts) if deps is not None
    ]
    declared: set[str] = set()
    for _, all_names in dependency_sets:
        declared.update(all_names)

    outputs = [artifact for artifact in manifest.artifacts if not artifact.is_meta]
    frontend_bytes = sum(
        artifact.size_bytes
        for artifact in outputs
        if FRONTEND_SEGMENTS.intersection(PurePosixPath(artifact.path).parts[:-1])
    )

    measurements.update(
        {
            "max_dependencies": max((runtime for runtime, _ in dependency_sets), default=0),
            "frontend_bundle_kb": math.ceil(frontend_bytes / 1024),
            "no_analytics": declared.isdisjoint(ANALYTICS_PACKAGES),
            "no_telemetry": declared.isdisjoint(TELEMETRY_PACKAGES),
            "no_fs_heavy": not any(_has_fs_heavy_call(item.content) for item in texts),
            "artifact_count": len(outputs),
            "total_bytes": sum(artifact.size_bytes for artifact in outputs),
        }
    )
    return measurements


def _dependencies_of(item: ArtifactText) -> tuple[int, frozenset[str]] | None:
    """Return (runtime dependency count, every declared name) for dependency manifests."""

    if item.content is None:
        return None
    name = PurePosixPath(item.path).name
    if name == "package.json":
        return _package_json_dependencies(item.content)
    if name == "requirements.txt":
        names = _requirements(item.content.splitlines())
        return len(names), frozenset(names)
    return None


def _package_json_dependencies(text: str) -> tuple[int, frozenset[str]] | None:
    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(document, dict):
        return None
    runtime = document.get("dependencies")
    dev = document.get("devDependencies")
    runtime_names = set(runtime) if isinstance(runtime, dict) else set()
    dev_names = set(dev) if isinstance(dev, dict) else set()
    return len(runtime_names), frozenset(runtime_names | dev_names)


def _requirements(lines: Iterable[str]) -> list[str]:
    names: list[str] = []
    for raw in lines:
        line = raw.split("#", 1)[0].strip()
        if not line or line.startswith("-"):
            continue
        match = _REQUIREMENT_NAME_RE.match(line)
        if match is not None:
            names.append(match.group(0).lower())
    return names


def _has_fs_heavy_call(content: str | None) -> bool:
    if content is None:
        return False
    return any(call in content for call in FS_HEAVY_CALLS)


__all__ = [
    "ANALYTICS_PACKAGES",
    "FRONTEND_SEGMENTS",
    "FS_HEAVY_CALLS",
    "TELEMETRY_PACKAGES",
    "derive_measurements",
]
