"""
axiom-engine — hashing utilities

File: src/axiom_engine/utils/hashing.py

Purpose
- Provide deterministic SHA-256 helpers for bytes, text and JSON documents.
- Provide the single digest-format predicate shared by the store and apply.

Functional requirements
- Digests are lowercase hex.
- Canonical JSON uses sorted keys and compact separators so equal documents hash equally.

Non-functional requirements
- Standard library only; behavior is cross-platform deterministic.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Final

_SHA256_HEX_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-f]{64}$")

__all__ = [
    "canonical_json",
    "is_sha256_hex",
    "sha256_bytes",
    "sha256_json",
    "sha256_text",
]


def sha256_bytes(data: bytes) -> str:
    """Return SHA-256 hex digest for raw bytes."""

    return hashlib.sha256(data).hexdigest()


def sha256_text(text: str, *, encoding: str = "utf-8") -> str:
    """Return SHA-256 hex digest for text encoded with ``encoding``."""

    return sha256_bytes(text.encode(encoding))


def canonical_json(value: object) -> str:
    """Serialize ``value`` to canonical JSON (sorted keys, compact, UTF-8 preserved)."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256_json(value: object) -> str:
    """Return SHA-256 hex digest of the canonical JSON form of ``value``."""

    return sha256_text(canonical_json(value))


def is_sha256_hex(value: object) -> bool:
    """Return ``True`` for a 64-character lowercase hex digest."""

    return isinstance(value, str) and _SHA256_HEX_RE.fullmatch(value) is not None
