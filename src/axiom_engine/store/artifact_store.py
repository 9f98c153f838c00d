"""
axiom-engine — content-addressed artifact store

File: src/axiom_engine/store/artifact_store.py

Purpose
- Persist artifact bytes keyed by their SHA-256 digest so apply can resolve
  content that a manifest does not carry inline.

Storage layout
- `<repo_root>/.axiom/cache/v1/<sha256-hex>` (one file per unique digest)

Functional requirements
- Entries are immutable: a digest is either present with matching content or absent.
- `put` is idempotent; re-putting identical content leaves the entry untouched.
- Every write is re-read and verified against its digest.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Final

import structlog

from axiom_engine.constants import STORE_DIR
from axiom_engine.utils.fs import atomic_write
from axiom_engine.utils.hashing import sha256_bytes

PathLike = str | os.PathLike[str]

_DIGEST_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]{64}$")


class ArtifactStoreError(RuntimeError):
    """Base error for artifact store failures."""

    code = "ERR_ARTIFACT_STORE"


class InvalidDigestFormat(ArtifactStoreError, ValueError):
    """Raised when a digest is not a 64-character hex string."""

    code = "ERR_INVALID_DIGEST"


class ArtifactContentMissing(ArtifactStoreError, LookupError):
    """Raised when no stored entry exists for a digest."""

    code = "ERR_ARTIFACT_CONTENT_MISSING"


class Sha256Mismatch(ArtifactStoreError):
    """Raised when content does not hash to the expected digest."""

    code = "ERR_SHA256_MISMATCH"

    def __init__(self, expected: str, actual: str, *, subject: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.subject = subject
        prefix = f"{self.code}: Content hash mismatch"
        if subject:
            prefix = f"{prefix} for {subject}"
        super().__init__(f"{prefix}. Expected: {expected}, Actual: {actual}")


class ArtifactStore:
    """Content-addressed store rooted at ``<repo_root>/.axiom/cache/v1``."""

    __slots__ = ("_cache_dir", "_logger")

    def __init__(
        self,
        repo_root: PathLike,
        *,
        cache_dir: PathLike | None = None,
        logger: Any | None = None,
    ) -> None:
        root = Path(repo_root).expanduser()
        self._cache_dir = Path(cache_dir) if cache_dir is not None else root / STORE_DIR
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @staticmethod
    def hash(content: bytes | str) -> str:
        """SHA-256 over raw bytes (text is UTF-8 encoded), lowercase hex."""

        return sha256_bytes(_as_bytes(content))

    @staticmethod
    def verify(content: bytes | str, expected_digest: str, *, subject: str | None = None) -> None:
        actual = ArtifactStore.hash(content)
        if actual != expected_digest:
            raise Sha256Mismatch(expected_digest, actual, subject=subject)

    def path_for(self, digest: str) -> Path:
        return self._cache_dir / _normalize_digest(digest)

    def has(self, digest: str) -> bool:
        return self.path_for(digest).is_file()

    def put(self, digest: str, content: bytes | str) -> Path:
        """Store ``content`` under ``digest`` and return the entry path."""

        normalized = _normalize_digest(digest)
        payload = _as_bytes(content)
        self.verify(payload, normalized)

        target = self._cache_dir / normalized
        if target.is_file() and self.hash(target.read_bytes()) == normalized:
            self._logger.debug("artifact_store_put_skipped", digest=normalized)
            return target

        self._cache_dir.mkdir(parents=True, exist_ok=True)
        atomic_write(target, payload)
        self.verify(target.read_bytes(), normalized, subject=target.as_posix())
        self._logger.debug("artifact_store_put", digest=normalized, size_bytes=len(payload))
        return target

    def get(self, digest: str) -> bytes:
        """Return stored bytes for ``digest``."""

        target = self.path_for(digest)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactContentMissing(
                f"{ArtifactContentMissing.code}: Artifact content not found in store. "
                f"SHA256: {digest}, Expected path: {target.as_posix()}"
            ) from exc


def _normalize_digest(digest: str) -> str:
    if not isinstance(digest, str) or not _DIGEST_RE.fullmatch(digest):
        raise InvalidDigestFormat(f"{InvalidDigestFormat.code}: Invalid SHA256 format: {digest!r}")
    return digest.lower()


def _as_bytes(content: bytes | str) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)


__all__ = [
    "ArtifactContentMissing",
    "ArtifactStore",
    "ArtifactStoreError",
    "InvalidDigestFormat",
    "Sha256Mismatch",
]
