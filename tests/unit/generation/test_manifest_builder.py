"""
axiom-engine — unit tests for deterministic manifest generation

File: tests/unit/generation/test_manifest_builder.py

Purpose
- Validate build identity derivation, artifact ordering, evidence scoring and
  optional store persistence.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from axiom_engine.domain import AxiomIR, Manifest
from axiom_engine.generation import (
    GeneratedFile,
    GenerationError,
    build_artifact,
    build_manifest,
    compute_build_id,
    compute_created_at,
    generate,
)
from axiom_engine.store import ArtifactStore

if TYPE_CHECKING:
    from pathlib import Path

SCENARIO = {
    "version": "1.0.0",
    "agents": [
        {
            "name": "svc",
            "intent": "serve",
            "checks": [{"kind": "sla", "name": "c1", "expect": "cold_start_ms <= 50"}],
            "emit": [{"type": "service", "target": "app"}],
        }
    ],
}


def _triples(manifest: Manifest) -> list[tuple[str, str, int]]:
    return [(item.path, item.sha256, item.size_bytes) for item in manifest.artifacts]


@pytest.mark.unit
def test_generation_is_deterministic() -> None:
    first = generate(AxiomIR.from_dict(SCENARIO), "edge").manifest
    second = generate(AxiomIR.from_dict(SCENARIO), "edge").manifest

    assert first.build_id == second.build_id
    assert first.created_at == second.created_at
    assert first.ir_hash == second.ir_hash
    assert _triples(first) == _triples(second)
    assert first.to_json() == second.to_json()


@pytest.mark.unit
def test_build_identity_formulas() -> None:
    ir = AxiomIR.from_dict(SCENARIO)
    manifest = generate(ir, "edge").manifest

    expected_id = hashlib.sha256(f"{ir.content_hash()}:edge".encode()).hexdigest()[:16]
    assert manifest.build_id == expected_id == compute_build_id(ir.content_hash(), "edge")
    assert manifest.ir_hash == ir.content_hash()

    offset = int(expected_id[:8], 16) % (365 * 24 * 60 * 60)
    created = datetime(2024, 1, 1) + timedelta(seconds=offset)
    assert manifest.created_at == created.strftime("%Y-%m-%dT%H:%M:%S.000Z")


@pytest.mark.unit
def test_missing_profile_hashes_as_default() -> None:
    assert compute_build_id("f" * 64, None) == compute_build_id("f" * 64, "default")
    assert compute_created_at("00000000ffffffff") == "2024-01-01T00:00:00.000Z"


@pytest.mark.unit
def test_profiles_produce_different_builds_and_verdicts() -> None:
    ir = AxiomIR.from_dict(SCENARIO)
    edge = generate(ir, "edge").manifest
    budget = generate(ir, "budget").manifest

    assert edge.build_id != budget.build_id
    assert [item.passed for item in edge.evidence] == [True]
    assert [item.passed for item in budget.evidence] == [False]
    assert edge.evidence[0].check_name == "c1"


@pytest.mark.unit
def test_descriptor_artifacts_are_posix_and_sorted() -> None:
    document = {
        "version": "1.0.0",
        "agents": [
            {
                "name": "svc",
                "intent": "serve",
                "emit": [
                    {"type": "tests", "target": "smoke"},
                    {"type": "service", "subtype": "http", "target": "app"},
                    {"type": "report", "target": "sla"},
                ],
            }
        ],
    }
    manifest = generate(AxiomIR.from_dict(document)).manifest

    paths = [item.path for item in manifest.artifacts]
    assert paths == ["report/sla.json", "service/app.json", "tests/smoke.json"]
    assert all("\\" not in path and not path.startswith("/") for path in paths)
    assert manifest.artifacts[0].kind.value == "report"
    assert manifest.artifacts[1].content_utf8 is not None
    assert '"subtype":"http"' in manifest.artifacts[1].content_utf8


@pytest.mark.unit
def test_manifest_emit_adds_meta_artifact() -> None:
    document = {
        "version": "1.0.0",
        "agents": [
            {
                "name": "svc",
                "intent": "serve",
                "emit": [{"type": "manifest", "target": "build"}],
            }
        ],
    }
    result = generate(AxiomIR.from_dict(document))

    meta = [item for item in result.manifest.artifacts if item.is_meta]
    assert len(meta) == 1
    assert meta[0].content_utf8 is not None
    assert Manifest.from_json(meta[0].content_utf8).build_id == result.manifest.build_id


@pytest.mark.unit
def test_store_receives_every_generated_file(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path)
    result = generate(AxiomIR.from_dict(SCENARIO), "edge", store=store)

    for artifact in result.manifest.artifacts:
        assert store.has(artifact.sha256)
        assert len(store.get(artifact.sha256)) == artifact.size_bytes


@pytest.mark.unit
def test_binary_content_is_carried_as_base64() -> None:
    artifact = build_artifact(GeneratedFile(path="bin/blob.dat", content=b"\xff\x00"))
    assert artifact.content_utf8 is None
    assert artifact.content_base64 == "/wA="
    assert artifact.size_bytes == 2


@pytest.mark.unit
@pytest.mark.parametrize("path", ["", "/abs.txt", "a\\b.txt", "../up.txt", "dir/"])
def test_unsafe_generated_paths_are_rejected(path: str) -> None:
    with pytest.raises(GenerationError):
        build_artifact(GeneratedFile(path=path, content=b"x"))


@pytest.mark.unit
def test_duplicate_paths_are_rejected() -> None:
    files = [GeneratedFile("a.txt", b"1"), GeneratedFile("a.txt", b"2")]
    with pytest.raises(GenerationError, match="duplicate artifact path"):
        build_manifest(AxiomIR.from_dict(SCENARIO), files)
