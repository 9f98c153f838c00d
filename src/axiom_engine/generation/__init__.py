"""Deterministic build: emit files, score checks, assemble the manifest."""

from axiom_engine.generation.manifest_builder import (
    DescriptorEmitter,
    Emitter,
    GeneratedFile,
    GenerationError,
    GenerationResult,
    build_artifact,
    build_manifest,
    compute_build_id,
    compute_created_at,
    generate,
)

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
