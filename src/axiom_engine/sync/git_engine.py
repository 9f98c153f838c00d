"""Deterministic git helpers for patch-request apply."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_BRANCH_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9._/-]+$")
_GITHUB_REMOTE_RE: Final[re.Pattern[str]] = re.compile(
    r"github\.com[:/]([^/\s]+)/([^/\s]+?)(?:\.git)?/?$"
)
_GITLAB_REMOTE_RE: Final[re.Pattern[str]] = re.compile(
    r"gitlab\.com[:/]([^\s]+?)(?:\.git)?/?$"
)
_LOCAL_IDENTITY: Final[tuple[tuple[str, str], ...]] = (
    ("user.name", "axiom-engine"),
    ("user.email", "axiom@example.invalid"),
)


class GitEngineError(RuntimeError):
    """Base error for git engine failures."""


class SanitizationError(GitEngineError):
    """Raised when a branch name is unsafe to pass to git."""


class GitCommandError(GitEngineError):
    """A git invocation exited non-zero; ``stderr`` holds its diagnostics."""

    def __init__(self, completed: subprocess.CompletedProcess[str]) -> None:
        self.argv = tuple(completed.args)
        self.returncode = completed.returncode
        self.stderr = completed.stderr or ""
        detail = self.stderr.strip() or (completed.stdout or "").strip()
        summary = " ".join(self.argv[1:3])
        message = f"git {summary} exited {self.returncode}"
        super().__init__(f"{message}: {detail}" if detail else message)


@dataclass(frozen=True, slots=True)
class CommitResult:
    branch: str
    commit: str


class GitEngine:
    """Thin wrapper around the git CLI; never invokes a shell."""

    def __init__(
        self,
        repo_path: Path | str,
        *,
        env_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).resolve()
        self._env = {
            **os.environ,
            "GIT_CONFIG_NOSYSTEM": os.environ.get("GIT_CONFIG_NOSYSTEM", "1"),
            **(env_overrides or {}),
            "GIT_TERMINAL_PROMPT": "0",
        }

    def is_repository(self) -> bool:
        return (self.repo_path / ".git").exists()

    def create_branch(self, name: str) -> str:
        """Create ``name`` from HEAD and check it out."""
        branch = sanitize_branch_name(name)
        self._run_git(["checkout", "-b", branch])
        return branch

    def stage(self, paths: Sequence[str]) -> None:
        if not paths:
            return
        self._run_git(["add", "--", *paths])

    def commit(self, message: str) -> CommitResult:
        """Commit what is staged and return the new HEAD."""
        title = message.strip()
        if not title:
            raise GitEngineError("Commit message cannot be empty.")
        self._ensure_local_identity()
        staged = self._run_git(["diff", "--cached", "--name-only"]).stdout.strip()
        if not staged:
            raise GitEngineError("No staged changes to commit.")
        self._run_git(["commit", "--no-gpg-sign", "-m", title])
        return CommitResult(branch=self.current_branch(), commit=self.rev_parse("HEAD"))

    def rev_parse(self, ref: str) -> str:
        return self._run_git(["rev-parse", ref]).stdout.strip()

    def current_branch(self) -> str:
        return self._run_git(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()

    def remote_url(self, remote: str = "origin") -> str | None:
        result = self._run_git(["remote", "get-url", remote], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def _ensure_local_identity(self) -> None:
        for key, value in _LOCAL_IDENTITY:
            if self._run_git(["config", "--get", key], check=False).returncode != 0:
                self._run_git(["config", "--local", key, value])

    def _run_git(
        self, args: Sequence[str], *, check: bool = True
    ) -> subprocess.CompletedProcess[str]:
        completed = subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            env=self._env,
            text=True,
            capture_output=True,
            check=False,
        )
        if check and completed.returncode != 0:
            raise GitCommandError(completed)
        return completed


def sanitize_branch_name(value: str) -> str:
    if value == "":
        raise SanitizationError("branch cannot be empty.")
    if ".." in value:
        raise SanitizationError("branch cannot contain '..'.")
    if value.startswith("-"):
        raise SanitizationError("branch cannot start with '-'.")
    if not _BRANCH_NAME_RE.fullmatch(value):
        raise SanitizationError(f"branch contains unsupported characters: {value!r}")
    return value


def change_request_url(remote_url: str, branch: str) -> str | None:
    """Derive a compare/merge-request URL for GitHub or GitLab remotes."""

    github = _GITHUB_REMOTE_RE.search(remote_url)
    if github is not None:
        owner, repo = github.groups()
        return f"https://github.com/{owner}/{repo}/compare/{branch}?expand=1"
    gitlab = _GITLAB_REMOTE_RE.search(remote_url)
    if gitlab is not None:
        project = gitlab.group(1)
        return (
            f"https://gitlab.com/{project}/-/merge_requests/new"
            f"?merge_request[source_branch]={branch}"
        )
    return None


__all__ = [
    "CommitResult",
    "GitCommandError",
    "GitEngine",
    "GitEngineError",
    "SanitizationError",
    "change_request_url",
    "sanitize_branch_name",
]
