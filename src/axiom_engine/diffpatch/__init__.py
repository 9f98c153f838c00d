"""Structural diff/patch engine for IR documents."""

from axiom_engine.diffpatch.patch import (
    InvalidPatchPath,
    Patch,
    PatchError,
    PatchOp,
    PatchOpKind,
    apply_patch,
    apply_patch_document,
    diff,
    diff_documents,
    patch_from_list,
    patch_to_list,
)

__all__ = [
    "InvalidPatchPath",
    "Patch",
    "PatchError",
    "PatchOp",
    "PatchOpKind",
    "apply_patch",
    "apply_patch_document",
    "diff",
    "diff_documents",
    "patch_from_list",
    "patch_to_list",
]
