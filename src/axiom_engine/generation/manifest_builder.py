"""
axiom-engine — deterministic manifest builder

File: src/axiom_engine/generation/manifest_builder.py

Purpose
- Turn an IR plus emitted files into a Manifest whose identity fields are
  pure functions of (IR content, profile).
- Drive a pluggable emitter, score the IR's checks, and optionally persist
  every artifact into the content-addressed store.

Determinism
- ``irHash``    = SHA-256 of the canonical IR JSON.
- ``buildId``   = first 16 hex chars of SHA-256(irHash + ":" + profile).
- ``createdAt`` = BUILD_EPOCH + (int(buildId[:8], 16) mod one year) seconds.
- Artifacts are ordered by path.
"""

from __future__ import annotations

import base64
import itertools
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import Any, Protocol

import structlog

from axiom_engine.constants import (
    BUILD_EPOCH,
    BUILD_EPOCH_WINDOW_SECONDS,
    DEFAULT_PROFILE,
    MANIFEST_META_PATH,
)
from axiom_engine.domain.ir import AxiomIR, EmitType, JSONScalar
from axiom_engine.domain.manifest import Artifact, ArtifactKind, Evidence, Manifest
from axiom_engine.domain.profiles import Profile, resolve_profile
from axiom_engine.policy.context import Probe
from axiom_engine.store.artifact_store import ArtifactStore
from axiom_engine.utils.hashing import canonical_json, sha256_bytes, sha256_text
from axiom_engine.verification.check_runner import run_checks


class GenerationError(ValueError):
    """Raised when an emitter produces an unusable artifact set."""

    code = "ERR_GENERATION"


@dataclass(frozen=True, slots=True)
class GeneratedFile:
    path: str
    content: bytes
    kind: ArtifactKind = ArtifactKind.FILE


@dataclass(frozen=True, slots=True)
class GenerationResult:
    manifest: Manifest
    files: tuple[GeneratedFile, ...]


class Emitter(Protocol):
    def emit(self, ir: AxiomIR, profile: Profile) -> Sequence[GeneratedFile]: ...


class DescriptorEmitter:
    """Emit one JSON descriptor per non-manifest EmitItem at ``<type>/<target>.json``."""

    def emit(self, ir: AxiomIR, profile: Profile) -> Sequence[GeneratedFile]:
        files: list[GeneratedFile] = []
        for agent in ir.agents:
            for item in agent.emit:
                if item.type is EmitType.MANIFEST:
                    continue
                descriptor = {
                    "agent": agent.name,
                    "intent": agent.intent,
                    "type": item.type.value,
                    "subtype": item.subtype,
                    "target": item.target,
                    "profile": profile.name,
                    "capabilities": [cap.to_dict() for cap in agent.capabilities],
                    "constraints": [constraint.to_dict() for constraint in agent.constraints],
                }
                kind = ArtifactKind.REPORT if item.type is EmitType.REPORT else ArtifactKind.FILE
                files.append(
                    GeneratedFile(
                        path=f"{item.type.value}/{item.target}.json",
                        content=(canonical_json(descriptor) + "\n").encode("utf-8"),
                        kind=kind,
                    )
                )
        return files


def compute_build_id(ir_hash: str, profile: str | None) -> str:
    return sha256_text(f"{ir_hash}:{profile or DEFAULT_PROFILE}")[:16]


def compute_created_at(build_id: str) -> str:
    epoch = datetime.fromisoformat(BUILD_EPOCH)
    offset = int(build_id[:8], 16) % BUILD_EPOCH_WINDOW_SECONDS
    return (epoch + timedelta(seconds=offset)).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def build_artifact(file: GeneratedFile) -> Artifact:
    _validate_output_path(file.path)
    try:
        text: str | None = file.content.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    return Artifact(
        path=file.path,
        kind=file.kind,
        sha256=sha256_bytes(file.content),
        size_bytes=len(file.content),
        content_utf8=text,
        content_base64=None if text is not None else base64.b64encode(file.content).decode(),
    )


def build_manifest(
    ir: AxiomIR,
    files: Iterable[GeneratedFile],
    profile: str | None = None,
    evidence: Sequence[Evidence] = (),
) -> Manifest:
    """Assemble a deterministic manifest for ``files``; paths must be unique."""

    artifacts = sorted((build_artifact(file) for file in files), key=lambda item: item.path)
    for previous, current in itertools.pairwise(artifacts):
        if previous.path == current.path:
            raise GenerationError(
                f"{GenerationError.code}: duplicate artifact path {current.path!r}"
            )

    ir_hash = ir.content_hash()
    build_id = compute_build_id(ir_hash, profile)
    return Manifest(
        build_id=build_id,
        ir_hash=ir_hash,
        created_at=compute_created_at(build_id),
        artifacts=tuple(artifacts),
        evidence=tuple(evidence),
        profile=profile,
    )


def generate(
    ir: AxiomIR,
    profile: str | None = None,
    *,
    store: ArtifactStore | None = None,
    emitter: Emitter | None = None,
    extra_profiles: Mapping[str, Mapping[str, JSONScalar]] | None = None,
    probe: Probe | None = None,
    logger: Any | None = None,
) -> GenerationResult:
    """Emit, score and record one build of ``ir`` under ``profile``."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    active = resolve_profile(profile, extra_profiles)
    files = list((emitter or DescriptorEmitter()).emit(ir, active))

    manifest = build_manifest(ir, files, profile)
    checks = run_checks(
        manifest,
        ir,
        profile=active.name,
        probe=probe,
        extra_profiles=extra_profiles,
        logger=log,
    )
    manifest = replace(manifest, evidence=checks.report)

    if any(item.type is EmitType.MANIFEST for agent in ir.agents for item in agent.emit):
        meta = GeneratedFile(
            path=MANIFEST_META_PATH,
            content=(manifest.to_json() + "\n").encode("utf-8"),
            kind=ArtifactKind.REPORT,
        )
        files.append(meta)
        manifest = replace(
            manifest,
            artifacts=tuple(
                sorted((*manifest.artifacts, build_artifact(meta)), key=lambda item: item.path)
            ),
        )

    if store is not None:
        for file in files:
            store.put(sha256_bytes(file.content), file.content)

    log.info(
        "build_generated",
        build_id=manifest.build_id,
        ir_hash=manifest.ir_hash,
        profile=active.name,
        artifact_count=len(manifest.artifacts),
        checks_passed=checks.passed,
    )
    return GenerationResult(
        manifest=manifest,
        files=tuple(sorted(files, key=lambda item: item.path)),
    )


def _validate_output_path(path: str) -> None:
    pure = PurePosixPath(path)
    if (
        not path
        or "\\" in path
        or pure.is_absolute()
        or ".." in pure.parts
        or path.endswith("/")
    ):
        raise GenerationError(f"{GenerationError.code}: unsafe artifact path {path!r}")


__all__ = [
    "DescriptorEmitter",
    "Emitter",
    "GeneratedFile",
    "GenerationError",
    "GenerationResult",
    "build_artifact",
    "build_manifest",
    "compute_build_id",
    "compute_created_at",
    "generate",
]
