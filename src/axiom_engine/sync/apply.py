"""
axiom-engine — manifest apply engine

File: src/axiom_engine/sync/apply.py

Purpose
- Materialize a manifest's artifacts under ``<destination_root>/out/``, either
  directly or as a committed branch in a git working tree.

Functional requirements
- Artifact paths are POSIX-only, relative, free of ``..`` segments and must
  resolve inside ``out/``. One offending artifact rejects the whole call.
- Every artifact is validated and its content resolved before the first byte
  is written. Content resolution order: inline UTF-8, inline base64, artifact
  store by digest.
- Each write is atomic, re-read and verified against the declared digest.
- The ``manifest.json`` meta entry is never placed under ``out/``.
- Failures are returned as data on ``ApplyResult``; nothing raises across the
  ``apply_manifest`` boundary for expected error classes.

Non-functional requirements
- Patch-request mode creates the branch after validation and before the first
  write, so a refused branch leaves the working tree untouched.
- Git runs without a shell, one step at a time; a failed step does not roll
  back earlier ones.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import Any, Final, TypeVar

import structlog

from axiom_engine.constants import DEFAULT_BRANCH_PREFIX, DEFAULT_COMMIT_PREFIX, OUT_DIR
from axiom_engine.domain.ir import JSONValue
from axiom_engine.domain.manifest import Artifact, Manifest
from axiom_engine.store.artifact_store import (
    ArtifactContentMissing,
    ArtifactStore,
    ArtifactStoreError,
)
from axiom_engine.sync.git_engine import (
    GitCommandError,
    GitEngine,
    GitEngineError,
    SanitizationError,
    change_request_url,
    sanitize_branch_name,
)
from axiom_engine.utils.fs import atomic_write, is_within
from axiom_engine.utils.hashing import is_sha256_hex

_WINDOWS_ABSOLUTE_PATH_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z]:")

_T = TypeVar("_T")
_R = TypeVar("_R")


class ApplyMode(StrEnum):
    DIRECT = "direct"
    PATCH_REQUEST = "patch-request"


_MODE_ALIASES: Final[dict[str, ApplyMode]] = {
    "direct": ApplyMode.DIRECT,
    "fs": ApplyMode.DIRECT,
    "patch-request": ApplyMode.PATCH_REQUEST,
    "pr": ApplyMode.PATCH_REQUEST,
}


class ApplyError(RuntimeError):
    """Base error for a rejected apply call."""

    code = "ERR_APPLY"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.code}: {detail}")


class InvalidMode(ApplyError):
    code = "ERR_INVALID_MODE"


class InvalidDestination(ApplyError):
    code = "ERR_INVALID_DESTINATION"


class NotAVersionControlRepository(ApplyError):
    code = "ERR_NOT_A_REPOSITORY"


class InvalidBranchName(ApplyError):
    code = "ERR_INVALID_BRANCH"


class PosixOnlyViolation(ApplyError):
    code = "ERR_POSIX_ONLY"


class AbsolutePathRejected(ApplyError):
    code = "ERR_ABSOLUTE_PATH"


class PathTraversalRejected(ApplyError):
    code = "ERR_PATH_TRAVERSAL"


class OutsideAllowedDirectory(ApplyError):
    code = "ERR_OUTSIDE_ALLOWED_DIRECTORY"


class InvalidInlineContent(ApplyError):
    code = "ERR_INVALID_INLINE_CONTENT"


class SizeMismatch(ApplyError):
    code = "ERR_SIZE_MISMATCH"


class WriteFailed(ApplyError):
    code = "ERR_WRITE_FAILED"


class VcsStepFailed(ApplyError):
    code = "ERR_VCS_STEP_FAILED"


@dataclass(frozen=True, slots=True)
class ApplyResult:
    success: bool
    mode: str
    files_written: tuple[str, ...] = ()
    branch: str | None = None
    commit: str | None = None
    pr_url: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        out: dict[str, JSONValue] = {"success": self.success, "mode": self.mode}
        if self.branch is not None:
            out["branch"] = self.branch
        if self.commit is not None:
            out["commit"] = self.commit
        if self.pr_url is not None:
            out["prUrl"] = self.pr_url
        out["filesWritten"] = list(self.files_written)
        if self.error is not None:
            out["error"] = self.error
            out["errorCode"] = self.error_code
        return out


@dataclass(frozen=True, slots=True)
class _PlannedWrite:
    artifact: Artifact
    target: Path
    content: bytes

    @property
    def reported_path(self) -> str:
        return (OUT_DIR / self.artifact.path).as_posix()


def resolve_mode(mode: str | ApplyMode) -> ApplyMode:
    resolved = _MODE_ALIASES.get(str(mode))
    if resolved is None:
        raise InvalidMode(f"Unsupported apply mode {mode!r}; expected direct or patch-request")
    return resolved


def default_branch_name(manifest: Manifest) -> str:
    digits = "".join(ch for ch in manifest.created_at if ch.isdigit())
    return f"{DEFAULT_BRANCH_PREFIX}-{digits or manifest.build_id}"


def default_commit_message(manifest: Manifest) -> str:
    return f"{DEFAULT_COMMIT_PREFIX} {manifest.build_id}"


def validate_artifact_path(path: str, out_dir: Path) -> Path:
    """Return the target for ``path`` under ``out_dir`` or raise the matching rejection."""

    if "\\" in path:
        raise PosixOnlyViolation(f"Artifact paths must use forward slashes only: {path}")
    if path.startswith("/") or _WINDOWS_ABSOLUTE_PATH_RE.match(path):
        raise AbsolutePathRejected(f"Absolute paths not allowed: {path}")
    if ".." in path.split("/"):
        raise PathTraversalRejected(f"Path traversal not allowed: {path}")
    parts = [part for part in PurePosixPath(path).parts if part != "."]
    if not parts:
        raise OutsideAllowedDirectory(f"Artifact path must name a file under out/: {path!r}")
    target = out_dir.joinpath(*parts)
    if not is_within(target, out_dir) or target.resolve(strict=False) == out_dir.resolve():
        raise OutsideAllowedDirectory(f"Artifact path resolves outside out/: {path}")
    return target


def resolve_content(artifact: Artifact, store: ArtifactStore) -> bytes:
    """Inline UTF-8, then inline base64, then the store; raise when all are absent."""

    if artifact.content_utf8 is not None:
        return artifact.content_utf8.encode("utf-8")
    if artifact.content_base64 is not None:
        try:
            return base64.b64decode(artifact.content_base64, validate=True)
        except binascii.Error as exc:
            raise InvalidInlineContent(
                f"contentBase64 for {artifact.path} is not valid base64: {exc}"
            ) from exc
    if is_sha256_hex(artifact.sha256) and store.has(artifact.sha256):
        return store.get(artifact.sha256)
    expected = (
        store.path_for(artifact.sha256).as_posix()
        if is_sha256_hex(artifact.sha256)
        else store.cache_dir.as_posix()
    )
    raise ArtifactContentMissing(
        f"{ArtifactContentMissing.code}: Artifact content not found in store for "
        f"{artifact.path}. SHA256: {artifact.sha256}, Expected path: {expected}"
    )


def apply_manifest(
    manifest: Manifest,
    mode: str | ApplyMode = ApplyMode.DIRECT,
    destination_root: Path | str | None = None,
    *,
    branch: str | None = None,
    commit_message: str | None = None,
    store: ArtifactStore | None = None,
    git_env: dict[str, str] | None = None,
    logger: Any | None = None,
) -> ApplyResult:
    """Write ``manifest`` under ``<destination_root>/out`` and optionally commit it."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    written: list[str] = []
    mode_label = str(mode)

    try:
        resolved_mode = resolve_mode(mode)
        mode_label = resolved_mode.value
        root = Path(destination_root) if destination_root is not None else Path.cwd()
        if not root.is_dir():
            raise InvalidDestination(
                f"Invalid repoPath: {root.as_posix()} does not exist or is not a directory"
            )
        root = root.resolve()

        git: GitEngine | None = None
        branch_name: str | None = None
        if resolved_mode is ApplyMode.PATCH_REQUEST:
            git = GitEngine(root, env_overrides=git_env)
            if not git.is_repository():
                raise NotAVersionControlRepository(
                    f"Not a git repository: {root.as_posix()}"
                )
            try:
                branch_name = sanitize_branch_name(branch or default_branch_name(manifest))
            except SanitizationError as exc:
                raise InvalidBranchName(str(exc)) from exc

        log.info(
            "apply_started",
            build_id=manifest.build_id,
            mode=resolved_mode.value,
            destination=root.as_posix(),
            artifact_count=len(manifest.artifacts),
        )
        artifact_store = store if store is not None else ArtifactStore(root)
        plan = _plan(manifest, root / OUT_DIR, artifact_store)
        if git is not None and branch_name is not None:
            # The branch must exist before the working tree changes.
            _vcs_step(git.create_branch, "branch", branch_name)
        for item in plan:
            _write_verified(item)
            written.append(item.reported_path)
            log.info(
                "apply_artifact_written",
                path=item.reported_path,
                sha256=item.artifact.sha256,
                size_bytes=len(item.content),
            )

        if git is None or branch_name is None:
            log.info("apply_completed", mode=resolved_mode.value, files_written=len(written))
            return ApplyResult(
                success=True, mode=resolved_mode.value, files_written=tuple(written)
            )

        commit = _commit_change_set(
            git, written, commit_message or default_commit_message(manifest)
        )
        remote = git.remote_url()
        pr_url = change_request_url(remote, branch_name) if remote else None
        log.info(
            "apply_completed",
            mode=resolved_mode.value,
            files_written=len(written),
            branch=branch_name,
            commit=commit,
            pr_url=pr_url,
        )
        return ApplyResult(
            success=True,
            mode=resolved_mode.value,
            files_written=tuple(written),
            branch=branch_name,
            commit=commit,
            pr_url=pr_url,
        )
    except (ApplyError, ArtifactStoreError) as exc:
        log.warning("apply_rejected", mode=mode_label, code=exc.code, error=str(exc))
        return ApplyResult(
            success=False,
            mode=mode_label,
            files_written=tuple(written),
            error=str(exc),
            error_code=exc.code,
        )


def _plan(manifest: Manifest, out_dir: Path, store: ArtifactStore) -> list[_PlannedWrite]:
    outputs = [artifact for artifact in manifest.artifacts if not artifact.is_meta]
    targets = [validate_artifact_path(artifact.path, out_dir) for artifact in outputs]

    plan: list[_PlannedWrite] = []
    for artifact, target in zip(outputs, targets, strict=True):
        content = resolve_content(artifact, store)
        ArtifactStore.verify(content, artifact.sha256, subject=artifact.path)
        if len(content) != artifact.size_bytes:
            raise SizeMismatch(
                f"Declared size for {artifact.path} is {artifact.size_bytes} bytes, "
                f"resolved content is {len(content)} bytes"
            )
        plan.append(_PlannedWrite(artifact=artifact, target=target, content=content))
    return plan


def _write_verified(item: _PlannedWrite) -> None:
    try:
        item.target.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(item.target, item.content)
        on_disk = item.target.read_bytes()
    except OSError as exc:
        raise WriteFailed(f"Could not write {item.reported_path}: {exc}") from exc
    ArtifactStore.verify(on_disk, item.artifact.sha256, subject=item.reported_path)


def _commit_change_set(git: GitEngine, written: list[str], message: str) -> str:
    _vcs_step(git.stage, "stage", written)
    return _vcs_step(git.commit, "commit", message).commit


def _vcs_step(action: Callable[[_T], _R], step: str, argument: _T) -> _R:
    try:
        return action(argument)
    except GitCommandError as exc:
        raise VcsStepFailed(f"git {step} failed: {exc.stderr.strip() or exc}") from exc
    except (GitEngineError, OSError) as exc:
        raise VcsStepFailed(f"git {step} failed: {exc}") from exc


__all__ = [
    "AbsolutePathRejected",
    "ApplyError",
    "ApplyMode",
    "ApplyResult",
    "InvalidBranchName",
    "InvalidDestination",
    "InvalidInlineContent",
    "InvalidMode",
    "NotAVersionControlRepository",
    "OutsideAllowedDirectory",
    "PathTraversalRejected",
    "PosixOnlyViolation",
    "SizeMismatch",
    "VcsStepFailed",
    "WriteFailed",
    "apply_manifest",
    "default_branch_name",
    "default_commit_message",
    "resolve_content",
    "resolve_mode",
    "validate_artifact_path",
]
