"""Utility exports for filesystem and hashing helpers."""

from axiom_engine.utils.fs import atomic_write, is_within
from axiom_engine.utils.hashing import (
    canonical_json,
    is_sha256_hex,
    sha256_bytes,
    sha256_json,
    sha256_text,
)

__all__ = [
    "atomic_write",
    "canonical_json",
    "is_sha256_hex",
    "is_within",
    "sha256_bytes",
    "sha256_json",
    "sha256_text",
]
