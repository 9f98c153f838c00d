"""Content-addressed artifact storage."""

from axiom_engine.store.artifact_store import (
    ArtifactContentMissing,
    ArtifactStore,
    ArtifactStoreError,
    InvalidDigestFormat,
    Sha256Mismatch,
)

__all__ = [
    "ArtifactContentMissing",
    "ArtifactStore",
    "ArtifactStoreError",
    "InvalidDigestFormat",
    "Sha256Mismatch",
]
