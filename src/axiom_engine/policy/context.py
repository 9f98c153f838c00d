"""
axiom-engine — policy evaluation context

File: src/axiom_engine/policy/context.py

Purpose
- Carry everything a check expression may observe: metrics, artifact text,
  declared capabilities and the network probe.
- Load artifact text once, before evaluation, so the evaluator itself never
  touches the filesystem.

Functional requirements
- Inline manifest content wins over on-disk content.
- On-disk reads are confined to ``out_root``; paths that escape it are skipped.
- Unreadable or non-UTF-8 content is skipped, never fatal.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

import structlog

from axiom_engine.domain.ir import Capability, CapabilityArg, CapabilityKind, JSONScalar
from axiom_engine.domain.manifest import Artifact
from axiom_engine.utils.fs import is_within

Probe = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class ArtifactText:
    path: str
    content: str | None = None


@dataclass(frozen=True, slots=True)
class PolicyContext:
    metrics: Mapping[str, JSONScalar]
    artifacts: tuple[ArtifactText, ...] = ()
    capabilities: tuple[Capability, ...] = ()
    probe: Probe | None = None

    def allows(self, kind: CapabilityKind, arg: CapabilityArg) -> bool:
        return any(capability.allows(kind, arg) for capability in self.capabilities)


def load_artifact_texts(
    artifacts: Iterable[Artifact],
    out_root: Path | None = None,
    *,
    logger: Any | None = None,
) -> tuple[ArtifactText, ...]:
    """Resolve readable UTF-8 text for every non-meta artifact."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    loaded: list[ArtifactText] = []
    for artifact in artifacts:
        if artifact.is_meta:
            continue
        content = _inline_text(artifact)
        if content is None and out_root is not None:
            content = _disk_text(out_root, artifact.path, log)
        loaded.append(ArtifactText(path=artifact.path, content=content))
    return tuple(loaded)


def _inline_text(artifact: Artifact) -> str | None:
    if artifact.content_utf8 is not None:
        return artifact.content_utf8
    if artifact.content_base64 is None:
        return None
    try:
        return base64.b64decode(artifact.content_base64, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def _disk_text(out_root: Path, relative: str, log: Any) -> str | None:
    if "\\" in relative or PurePosixPath(relative).is_absolute():
        log.debug("artifact_text_skipped", path=relative, reason="unsafe_path")
        return None
    candidate = out_root / relative
    if not is_within(candidate, out_root) or not candidate.is_file():
        return None
    try:
        return candidate.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.debug("artifact_text_skipped", path=relative, reason=type(exc).__name__)
        return None


__all__ = ["ArtifactText", "PolicyContext", "Probe", "load_artifact_texts"]
