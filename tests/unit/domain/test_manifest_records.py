"""
axiom-engine — unit tests for manifest records

File: tests/unit/domain/test_manifest_records.py

Purpose
- Validate manifest/evidence (de)serialization and the lenient artifact parsing rules.
"""

from __future__ import annotations

import pytest

from axiom_engine.domain import (
    Artifact,
    ArtifactKind,
    CallDetails,
    CheckKind,
    ComparisonDetails,
    ErrorDetails,
    Evidence,
    Manifest,
    ManifestValidationError,
)


def _manifest() -> Manifest:
    return Manifest(
        build_id="0123456789abcdef",
        ir_hash="a" * 64,
        created_at="2024-03-05T10:00:00.000Z",
        profile="edge",
        artifacts=(
            Artifact(
                path="service/api.json",
                kind=ArtifactKind.FILE,
                sha256="b" * 64,
                size_bytes=3,
                content_utf8="{}\n",
            ),
        ),
        evidence=(
            Evidence(
                check_name="fast",
                kind=CheckKind.SLA,
                passed=True,
                details=ComparisonDetails(
                    expression="cold_start_ms <= 50",
                    measurements={"cold_start_ms": 50},
                    left=50,
                    operator="<=",
                    right=50,
                    result=True,
                ),
            ),
            Evidence(
                check_name="probe",
                kind=CheckKind.POLICY,
                passed=False,
                details=CallDetails(
                    expression='http.healthy("https://x.test")',
                    measurements={},
                    function="http.healthy",
                    arguments=("https://x.test",),
                ),
            ),
            Evidence(
                check_name="broken",
                kind=CheckKind.UNIT,
                passed=False,
                details=ErrorDetails(
                    expression="nope > 1",
                    measurements={},
                    error="Unknown identifier: nope",
                    code="ERR_UNKNOWN_IDENTIFIER",
                ),
            ),
        ),
    )


@pytest.mark.unit
def test_manifest_json_round_trip_preserves_every_evidence_shape() -> None:
    manifest = _manifest()
    restored = Manifest.from_json(manifest.to_json())
    assert restored == manifest


@pytest.mark.unit
def test_wire_format_uses_camel_case_keys_and_messages() -> None:
    payload = _manifest().to_dict()
    assert list(payload) == [
        "version",
        "buildId",
        "irHash",
        "profile",
        "artifacts",
        "evidence",
        "createdAt",
    ]
    assert payload["artifacts"][0]["bytes"] == 3  # type: ignore[index]
    details = [item["details"] for item in payload["evidence"]]  # type: ignore[union-attr]
    assert details[0]["message"] == "Check passed"
    assert details[1]["message"] == "Check failed"
    assert details[2]["message"] == "Evaluation error: Unknown identifier: nope"
    assert all(item["evaluated"] is True for item in details)


@pytest.mark.unit
def test_artifact_without_content_omits_inline_keys() -> None:
    artifact = Artifact(path="x.txt", kind=ArtifactKind.FILE, sha256="c" * 64, size_bytes=0)
    assert artifact.to_dict() == {
        "path": "x.txt",
        "kind": "file",
        "sha256": "c" * 64,
        "bytes": 0,
    }
    assert not artifact.is_meta
    assert Artifact(path="manifest.json", kind=ArtifactKind.REPORT, sha256="", size_bytes=0).is_meta


@pytest.mark.unit
def test_hostile_artifact_paths_still_parse() -> None:
    artifact = Artifact.from_dict(
        {"path": "../etc/passwd", "kind": "file", "sha256": "not-a-digest", "bytes": 1}
    )
    assert artifact.path == "../etc/passwd"


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [
        {"version": "9.9.9", "buildId": "x", "irHash": "y", "artifacts": [], "createdAt": "z"},
        {"version": "1.0.0", "buildId": "x", "irHash": "y", "createdAt": "z"},
        {
            "version": "1.0.0",
            "buildId": "x",
            "irHash": "y",
            "createdAt": "z",
            "artifacts": [{"path": "a", "kind": "file", "sha256": "s", "bytes": -1}],
        },
    ],
)
def test_malformed_manifests_are_rejected(payload: dict[str, object]) -> None:
    with pytest.raises(ManifestValidationError):
        Manifest.from_dict(payload)
