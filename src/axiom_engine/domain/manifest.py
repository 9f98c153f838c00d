"""Manifest, artifact and evidence records produced by one generation pass.

Manifests are write-once: apply only consumes them. Parsing is deliberately
lenient about artifact paths and digests; those are security and integrity
properties enforced by :mod:`axiom_engine.sync.apply`, which must be able to
reject a hostile manifest with a precise error instead of a schema failure.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal, NoReturn

from axiom_engine.constants import MANIFEST_META_PATH, MANIFEST_VERSION
from axiom_engine.domain.ir import CheckKind, JSONValue
from axiom_engine.utils.hashing import canonical_json


class ManifestValidationError(ValueError):
    """Raised when a manifest document is structurally malformed."""


class ArtifactKind(StrEnum):
    FILE = "file"
    REPORT = "report"


@dataclass(frozen=True, slots=True)
class Artifact:
    path: str
    kind: ArtifactKind
    sha256: str
    size_bytes: int
    content_utf8: str | None = None
    content_base64: str | None = None

    @property
    def is_meta(self) -> bool:
        """``True`` for the manifest's own metadata entry."""

        return self.path == MANIFEST_META_PATH

    @classmethod
    def from_dict(cls, data: object, path: str = "Artifact") -> Artifact:
        parsed = _expect_object(
            data,
            path,
            required={"path", "kind", "sha256", "bytes"},
            optional={"contentUtf8", "contentBase64"},
        )
        raw_kind = parsed["kind"]
        try:
            kind = ArtifactKind(raw_kind)
        except ValueError:
            _fail(f"{path}.kind", f"invalid value {raw_kind!r}; expected one of: file, report")
        size = parsed["bytes"]
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            _fail(f"{path}.bytes", "expected non-negative integer")
        return cls(
            path=_as_str(parsed["path"], f"{path}.path"),
            kind=kind,
            sha256=_as_str(parsed["sha256"], f"{path}.sha256"),
            size_bytes=size,
            content_utf8=_as_optional_str(parsed.get("contentUtf8"), f"{path}.contentUtf8"),
            content_base64=_as_optional_str(parsed.get("contentBase64"), f"{path}.contentBase64"),
        )

    def to_dict(self, *, include_content: bool = True) -> dict[str, JSONValue]:
        out: dict[str, JSONValue] = {
            "path": self.path,
            "kind": self.kind.value,
            "sha256": self.sha256,
            "bytes": self.size_bytes,
        }
        if include_content and self.content_utf8 is not None:
            out["contentUtf8"] = self.content_utf8
        if include_content and self.content_base64 is not None:
            out["contentBase64"] = self.content_base64
        return out


@dataclass(frozen=True, slots=True)
class ComparisonDetails:
    """Evidence for ``metric <op> value`` checks."""

    expression: str
    measurements: Mapping[str, JSONValue]
    left: JSONValue = None
    operator: str = ""
    right: JSONValue = None
    result: bool = False
    evaluated: bool = True
    tag: Literal["comparison"] = "comparison"

    @property
    def message(self) -> str:
        return "Check passed" if self.result else "Check failed"


@dataclass(frozen=True, slots=True)
class CallDetails:
    """Evidence for allow-listed function-call checks."""

    expression: str
    measurements: Mapping[str, JSONValue]
    function: str = ""
    arguments: tuple[JSONValue, ...] = ()
    result: bool = False
    evaluated: bool = True
    tag: Literal["call"] = "call"

    @property
    def message(self) -> str:
        return "Check passed" if self.result else "Check failed"


@dataclass(frozen=True, slots=True)
class ErrorDetails:
    """Evidence for a check whose expression could not be evaluated."""

    expression: str
    measurements: Mapping[str, JSONValue]
    error: str = ""
    code: str = ""
    evaluated: bool = True
    tag: Literal["error"] = "error"

    @property
    def message(self) -> str:
        return f"Evaluation error: {self.error}"


EvidenceDetails = ComparisonDetails | CallDetails | ErrorDetails


@dataclass(frozen=True, slots=True)
class Evidence:
    check_name: str
    kind: CheckKind
    passed: bool
    details: EvidenceDetails

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "checkName": self.check_name,
            "kind": self.kind.value,
            "passed": self.passed,
            "details": details_to_dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: object, path: str = "Evidence") -> Evidence:
        parsed = _expect_object(
            data, path, required={"checkName", "kind", "passed"}, optional={"details"}
        )
        try:
            kind = CheckKind(parsed["kind"])
        except ValueError:
            _fail(f"{path}.kind", f"invalid value {parsed['kind']!r}")
        passed = parsed["passed"]
        if not isinstance(passed, bool):
            _fail(f"{path}.passed", "expected boolean")
        return cls(
            check_name=_as_str(parsed["checkName"], f"{path}.checkName"),
            kind=kind,
            passed=passed,
            details=details_from_dict(parsed.get("details") or {}),
        )


def details_to_dict(details: EvidenceDetails) -> dict[str, JSONValue]:
    out: dict[str, JSONValue] = {
        "type": details.tag,
        "expression": details.expression,
        "evaluated": details.evaluated,
        "message": details.message,
        "measurements": dict(details.measurements),
    }
    if isinstance(details, ComparisonDetails):
        out.update(
            left=details.left,
            operator=details.operator,
            right=details.right,
            result=details.result,
        )
    elif isinstance(details, CallDetails):
        out.update(
            function=details.function,
            arguments=list(details.arguments),
            result=details.result,
        )
    else:
        out.update(error=details.error, code=details.code)
    return out


def details_from_dict(data: object) -> EvidenceDetails:
    if not isinstance(data, Mapping):
        _fail("Evidence.details", "expected object")
    expression = str(data.get("expression", ""))
    measurements = data.get("measurements") or {}
    if not isinstance(measurements, Mapping):
        _fail("Evidence.details.measurements", "expected object")
    evaluated = bool(data.get("evaluated", True))
    tag = data.get("type", "error" if "error" in data else "comparison")
    if tag == "comparison":
        return ComparisonDetails(
            expression=expression,
            measurements=dict(measurements),
            left=data.get("left"),
            operator=str(data.get("operator", "")),
            right=data.get("right"),
            result=bool(data.get("result", False)),
            evaluated=evaluated,
        )
    if tag == "call":
        return CallDetails(
            expression=expression,
            measurements=dict(measurements),
            function=str(data.get("function", "")),
            arguments=tuple(data.get("arguments") or ()),
            result=bool(data.get("result", False)),
            evaluated=evaluated,
        )
    return ErrorDetails(
        expression=expression,
        measurements=dict(measurements),
        error=str(data.get("error", "")),
        code=str(data.get("code", "")),
        evaluated=evaluated,
    )


@dataclass(frozen=True, slots=True)
class Manifest:
    build_id: str
    ir_hash: str
    created_at: str
    artifacts: tuple[Artifact, ...] = ()
    evidence: tuple[Evidence, ...] = ()
    profile: str | None = None
    version: str = MANIFEST_VERSION

    @classmethod
    def from_dict(cls, data: object) -> Manifest:
        parsed = _expect_object(
            data,
            "Manifest",
            required={"version", "buildId", "irHash", "artifacts", "createdAt"},
            optional={"profile", "evidence"},
        )
        version = _as_str(parsed["version"], "Manifest.version")
        if version != MANIFEST_VERSION:
            _fail("Manifest.version", f"expected {MANIFEST_VERSION!r}, got {version!r}")
        artifacts = _as_list(parsed["artifacts"], "Manifest.artifacts")
        evidence = _as_list(parsed.get("evidence", []), "Manifest.evidence")
        return cls(
            version=version,
            build_id=_as_str(parsed["buildId"], "Manifest.buildId"),
            ir_hash=_as_str(parsed["irHash"], "Manifest.irHash"),
            profile=_as_optional_str(parsed.get("profile"), "Manifest.profile"),
            created_at=_as_str(parsed["createdAt"], "Manifest.createdAt"),
            artifacts=tuple(
                Artifact.from_dict(item, f"Manifest.artifacts[{idx}]")
                for idx, item in enumerate(artifacts)
            ),
            evidence=tuple(
                Evidence.from_dict(item, f"Manifest.evidence[{idx}]")
                for idx, item in enumerate(evidence)
            ),
        )

    @classmethod
    def from_json(cls, raw: str) -> Manifest:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            _fail("Manifest", f"invalid JSON: {exc}")
        return cls.from_dict(parsed)

    def to_dict(self, *, include_content: bool = True) -> dict[str, JSONValue]:
        out: dict[str, JSONValue] = {
            "version": self.version,
            "buildId": self.build_id,
            "irHash": self.ir_hash,
        }
        if self.profile is not None:
            out["profile"] = self.profile
        out["artifacts"] = [
            item.to_dict(include_content=include_content) for item in self.artifacts
        ]
        out["evidence"] = [item.to_dict() for item in self.evidence]
        out["createdAt"] = self.created_at
        return out

    def to_json(self) -> str:
        return canonical_json(self.to_dict())


def _fail(path: str, message: str) -> NoReturn:
    raise ManifestValidationError(f"{path}: {message}")


def _expect_object(
    value: object,
    path: str,
    *,
    required: set[str],
    optional: set[str] | None = None,
) -> dict[str, object]:
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")
    parsed = {str(key): item for key, item in value.items()}
    allowed = required | (optional or set())
    unknown = sorted(key for key in parsed if key not in allowed)
    if unknown:
        _fail(path, f"unexpected fields: {unknown}")
    missing = sorted(key for key in required if key not in parsed)
    if missing:
        _fail(path, f"missing required fields: {missing}")
    return parsed


def _as_str(value: object, path: str) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    return value


def _as_optional_str(value: object, path: str) -> str | None:
    if value is None:
        return None
    return _as_str(value, path)


def _as_list(value: object, path: str) -> list[object]:
    if isinstance(value, (list, tuple)):
        return list(value)
    _fail(path, f"expected array, got {type(value).__name__}")


__all__ = [
    "Artifact",
    "ArtifactKind",
    "CallDetails",
    "ComparisonDetails",
    "ErrorDetails",
    "Evidence",
    "EvidenceDetails",
    "Manifest",
    "ManifestValidationError",
    "details_from_dict",
    "details_to_dict",
]
