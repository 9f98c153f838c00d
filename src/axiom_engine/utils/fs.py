"""
axiom-engine — filesystem utilities

File: src/axiom_engine/utils/fs.py

Purpose
- Atomic file replacement for the artifact store and apply, plus the
  containment test that keeps artifact writes under ``out/``.

Functional requirements
- A reader sees either the old file or the complete new one, never a prefix.
- Containment compares fully resolved paths, so symlinks cannot smuggle a target out.
- The destination directory must already exist; nothing is created implicitly.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]

__all__ = [
    "atomic_write",
    "is_within",
]


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``data`` via a synced sibling temp file and ``os.replace``."""

    target = Path(path)
    directory = target.parent.resolve(strict=True)
    if not directory.is_dir():
        raise NotADirectoryError(f"{directory} is not a directory")

    payload = data.encode(encoding) if isinstance(data, str) else data
    handle = tempfile.NamedTemporaryFile(  # noqa: SIM115 - closed before replace
        mode="wb", dir=directory, prefix=f".{target.name}.", suffix=".tmp", delete=False
    )
    staged = Path(handle.name)
    try:
        with handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staged, target)
    except BaseException:
        with contextlib.suppress(OSError):
            staged.unlink(missing_ok=True)
        raise
    _sync_directory(directory)


def is_within(child: PathLike, parent: PathLike) -> bool:
    """Return ``True`` if ``child`` resolves inside (or equal to) resolved ``parent``.

    ``child`` does not need to exist yet; its existing ancestors are resolved.
    """

    return Path(child).resolve(strict=False).is_relative_to(Path(parent).resolve(strict=False))


def _sync_directory(directory: Path) -> None:
    # Persists the rename; platforms without directory fds skip it.
    if not hasattr(os, "O_DIRECTORY"):
        return
    with contextlib.suppress(OSError):
        fd = os.open(directory, os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
