"""Stable constants shared across the build, check and apply pipeline."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Pinned document versions.
IR_VERSION: Final[str] = "1.0.0"
MANIFEST_VERSION: Final[str] = "1.0.0"

# Layout relative to a destination/repository root.
OUT_DIR: Final[PurePosixPath] = PurePosixPath("out")
STORE_DIR: Final[PurePosixPath] = PurePosixPath(".axiom/cache/v1")

# Build metadata entry, never placed under ``out/`` by apply.
MANIFEST_META_PATH: Final[str] = "manifest.json"

# Deterministic manifest timestamps are offsets from this epoch.
BUILD_EPOCH: Final[str] = "2024-01-01T00:00:00Z"
BUILD_EPOCH_WINDOW_SECONDS: Final[int] = 365 * 24 * 60 * 60

DEFAULT_PROFILE: Final[str] = "default"
DEFAULT_BRANCH_PREFIX: Final[str] = "axiom-update"
DEFAULT_COMMIT_PREFIX: Final[str] = "AXIOM: Update from manifest"

HTTP_PROBE_TIMEOUT_SECONDS: Final[float] = 1.0

__all__ = [
    "BUILD_EPOCH",
    "BUILD_EPOCH_WINDOW_SECONDS",
    "DEFAULT_BRANCH_PREFIX",
    "DEFAULT_COMMIT_PREFIX",
    "DEFAULT_PROFILE",
    "HTTP_PROBE_TIMEOUT_SECONDS",
    "IR_VERSION",
    "MANIFEST_META_PATH",
    "MANIFEST_VERSION",
    "OUT_DIR",
    "STORE_DIR",
]
