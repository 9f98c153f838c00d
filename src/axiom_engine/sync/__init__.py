"""Apply engine: direct filesystem writes and git patch-request change sets."""

from axiom_engine.sync.apply import (
    ApplyError,
    ApplyMode,
    ApplyResult,
    apply_manifest,
    default_branch_name,
    default_commit_message,
    resolve_content,
    resolve_mode,
    validate_artifact_path,
)
from axiom_engine.sync.git_engine import GitEngine, GitEngineError, change_request_url

__all__ = [
    "ApplyError",
    "ApplyMode",
    "ApplyResult",
    "GitEngine",
    "GitEngineError",
    "apply_manifest",
    "change_request_url",
    "default_branch_name",
    "default_commit_message",
    "resolve_content",
    "resolve_mode",
    "validate_artifact_path",
]
