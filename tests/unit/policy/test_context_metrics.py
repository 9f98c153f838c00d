"""
axiom-engine — unit tests for artifact text loading and derived measurements

File: tests/unit/policy/test_context_metrics.py

Purpose
- Validate inline-first text resolution, out-root confinement, and every derived metric.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import TYPE_CHECKING

import pytest

from axiom_engine.domain import Artifact, ArtifactKind, Manifest
from axiom_engine.policy import ArtifactText, derive_measurements, load_artifact_texts

if TYPE_CHECKING:
    from pathlib import Path


def _artifact(path: str, content: bytes | None = None, *, inline: bool = True) -> Artifact:
    data = content or b""
    text = data.decode("utf-8") if inline and content is not None else None
    return Artifact(
        path=path,
        kind=ArtifactKind.FILE,
        sha256=hashlib.sha256(data).hexdigest(),
        size_bytes=len(data),
        content_utf8=text,
    )


def _manifest(*artifacts: Artifact) -> Manifest:
    return Manifest(
        build_id="0" * 16,
        ir_hash="0" * 64,
        created_at="2024-01-01T00:00:00.000Z",
        artifacts=artifacts,
    )


@pytest.mark.unit
def test_inline_text_wins_and_meta_entry_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("disk", encoding="utf-8")
    encoded = base64.b64encode(b"from base64").decode()
    artifacts = (
        _artifact("a.txt", b"inline"),
        Artifact("b.txt", ArtifactKind.FILE, "0" * 64, 11, content_base64=encoded),
        _artifact("manifest.json", b"{}"),
    )

    texts = load_artifact_texts(artifacts, tmp_path)

    assert texts == (ArtifactText("a.txt", "inline"), ArtifactText("b.txt", "from base64"))


@pytest.mark.unit
def test_disk_reads_are_confined_to_out_root(tmp_path: Path) -> None:
    out_root = tmp_path / "out"
    (out_root / "web").mkdir(parents=True)
    (out_root / "web" / "app.js").write_text("console.log(1)", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    (out_root / "blob.bin").write_bytes(b"\xff\xfe")

    texts = load_artifact_texts(
        (
            _artifact("web/app.js", b"x", inline=False),
            _artifact("../secret.txt", b"x", inline=False),
            _artifact("/etc/hostname", b"x", inline=False),
            _artifact("blob.bin", b"x", inline=False),
            _artifact("missing.txt", b"x", inline=False),
        ),
        out_root,
    )

    assert [item.content for item in texts] == ["console.log(1)", None, None, None, None]


@pytest.mark.unit
def test_derived_measurements_from_dependency_manifests() -> None:
    package_json = json.dumps(
        {
            "dependencies": {"react": "18", "pino": "8", "zod": "3"},
            "devDependencies": {"@vercel/analytics": "1"},
        }
    ).encode()
    requirements = b"httpx>=0.27\n# comment\n-r base.txt\nPyYAML==6.0\n\n"
    manifest = _manifest(
        _artifact("web/package.json", package_json),
        _artifact("api/requirements.txt", requirements),
        _artifact("web/assets/app.js", b"a" * 2000),
        _artifact("api/server.js", b"fs.readFileSync('x')"),
        _artifact("manifest.json", b"{}"),
    )

    metrics = derive_measurements(manifest, profile_measurements={"cold_start_ms": 50})

    assert metrics["cold_start_ms"] == 50
    assert metrics["pii_leak"] is False
    assert metrics["max_dependencies"] == 3
    assert metrics["no_analytics"] is False
    assert metrics["no_telemetry"] is False
    assert metrics["no_fs_heavy"] is False
    assert metrics["frontend_bundle_kb"] == 3
    assert metrics["artifact_count"] == 4
    assert metrics["total_bytes"] == sum(a.size_bytes for a in manifest.artifacts[:4])


@pytest.mark.unit
def test_empty_manifest_yields_permissive_defaults() -> None:
    metrics = derive_measurements(_manifest())
    assert metrics == {
        "pii_leak": False,
        "max_dependencies": 0,
        "frontend_bundle_kb": 0,
        "no_analytics": True,
        "no_telemetry": True,
        "no_fs_heavy": True,
        "artifact_count": 0,
        "total_bytes": 0,
    }


@pytest.mark.unit
def test_derived_values_override_profile_values() -> None:
    metrics = derive_measurements(
        _manifest(_artifact("a.txt", b"abc")),
        profile_measurements={"artifact_count": 99, "pii_leak": True},
    )
    assert metrics["artifact_count"] == 1
    assert metrics["pii_leak"] is True


@pytest.mark.unit
def test_frontend_bytes_only_count_web_directories() -> None:
    manifest = _manifest(
        _artifact("webapp/index.html", b"x" * 1025),
        _artifact("website/index.html", b"x" * 4096),
        _artifact("web.txt", b"x" * 4096),
    )
    assert derive_measurements(manifest)["frontend_bundle_kb"] == 2
