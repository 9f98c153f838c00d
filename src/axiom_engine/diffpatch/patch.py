"""
axiom-engine — structural diff/patch for IR documents

File: src/axiom_engine/diffpatch/patch.py

Purpose
- Compute a small add/remove/replace patch between two IR versions so callers
  can skip regenerating artifacts whose inputs did not change.
- Re-apply a patch to reconstruct the newer IR from the older one.

Functional requirements
- ``apply_patch(a, diff(a, b)) == b`` for every pair of valid IR documents.
- Patch application never mutates its input; each touched container is copied,
  untouched subtrees are shared.
- Paths are slash-delimited pointers; array indices are numeric and ``-``
  appends. Out-of-range indices raise ``InvalidPatchPath``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, NoReturn

from axiom_engine.domain.ir import AxiomIR, JSONValue
from axiom_engine.utils.hashing import canonical_json

_APPEND: Final[str] = "-"


class PatchError(ValueError):
    """Base error for malformed patches."""


class InvalidPatchPath(PatchError):
    """Raised when an operation addresses a location that does not exist."""

    code = "ERR_INVALID_PATCH_PATH"


class PatchOpKind(StrEnum):
    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"


@dataclass(frozen=True, slots=True)
class PatchOp:
    op: PatchOpKind
    path: str
    value: JSONValue = None

    def to_dict(self) -> dict[str, JSONValue]:
        out: dict[str, JSONValue] = {"op": self.op.value, "path": self.path}
        if self.op is not PatchOpKind.REMOVE:
            out["value"] = self.value
        return out

    @classmethod
    def from_dict(cls, data: object) -> PatchOp:
        if not isinstance(data, Mapping):
            raise PatchError(f"patch operation must be an object, got {type(data).__name__}")
        try:
            kind = PatchOpKind(data.get("op"))
        except ValueError as exc:
            raise PatchError(f"unsupported patch op {data.get('op')!r}") from exc
        path = data.get("path")
        if not isinstance(path, str):
            raise PatchError("patch operation path must be a string")
        if kind is not PatchOpKind.REMOVE and "value" not in data:
            raise PatchError(f"{kind.value} operation at {path!r} requires a value")
        return cls(op=kind, path=path, value=data.get("value"))


Patch = tuple[PatchOp, ...]


def patch_from_list(raw: object) -> Patch:
    """Parse a JSON-compatible list of operations."""

    if not isinstance(raw, list):
        raise PatchError(f"patch must be an array, got {type(raw).__name__}")
    return tuple(PatchOp.from_dict(item) for item in raw)


def patch_to_list(patch: Sequence[PatchOp]) -> list[JSONValue]:
    return [op.to_dict() for op in patch]


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


def diff(old: AxiomIR, new: AxiomIR) -> Patch:
    """Return the operations that turn ``old`` into ``new``."""

    return diff_documents(old.to_dict(), new.to_dict())


def diff_documents(old: Mapping[str, JSONValue], new: Mapping[str, JSONValue]) -> Patch:
    ops: list[PatchOp] = []

    if _differs(old.get("version"), new.get("version")):
        ops.append(PatchOp(PatchOpKind.REPLACE, "/version", new.get("version")))

    old_agents = _as_list(old.get("agents"))
    new_agents = _as_list(new.get("agents"))
    if len(old_agents) != len(new_agents):
        ops.append(PatchOp(PatchOpKind.REPLACE, "/agents", new.get("agents")))
        return tuple(ops)

    for index, (old_agent, new_agent) in enumerate(zip(old_agents, new_agents, strict=True)):
        if not isinstance(old_agent, Mapping) or not isinstance(new_agent, Mapping):
            if _differs(old_agent, new_agent):
                ops.append(PatchOp(PatchOpKind.REPLACE, f"/agents/{index}", new_agent))
            continue
        ops.extend(_diff_agent(f"/agents/{index}", old_agent, new_agent))

    return tuple(ops)


def _diff_agent(
    base: str,
    old: Mapping[str, JSONValue],
    new: Mapping[str, JSONValue],
) -> list[PatchOp]:
    ops: list[PatchOp] = []
    for key in ("name", "intent"):
        if _differs(old.get(key), new.get(key)):
            ops.append(PatchOp(PatchOpKind.REPLACE, f"{base}/{key}", new.get(key)))

    for key in ("constraints", "capabilities"):
        if _differs(old.get(key), new.get(key)):
            ops.append(PatchOp(PatchOpKind.REPLACE, f"{base}/{key}", new.get(key)))

    for key, key_field in (("checks", "name"), ("emit", "target")):
        ops.extend(
            _diff_keyed(
                f"{base}/{key}", _as_list(old.get(key)), _as_list(new.get(key)), key_field
            )
        )
    return ops


def _diff_keyed(
    base: str,
    old_items: list[JSONValue],
    new_items: list[JSONValue],
    key_field: str,
) -> list[PatchOp]:
    """Diff two arrays whose items carry a natural key.

    Replaces are recorded at the first old index for the key, removes follow in
    descending index order so every recorded index is valid when applied in
    sequence, and new keys are appended. When that sequence cannot reproduce
    ``new_items`` exactly (reordering, duplicate keys, insertion before the
    tail) the whole array is replaced.
    """

    if not _differs(old_items, new_items):
        return []

    key_of = _key_getter(key_field)
    old_index: dict[object, int] = {}
    for index, item in enumerate(old_items):
        old_index.setdefault(key_of(item), index)
    new_by_key: dict[object, JSONValue] = {}
    for item in new_items:
        new_by_key.setdefault(key_of(item), item)

    ops: list[PatchOp] = []
    for key, index in old_index.items():
        if key in new_by_key and _differs(old_items[index], new_by_key[key]):
            ops.append(PatchOp(PatchOpKind.REPLACE, f"{base}/{index}", new_by_key[key]))

    removed = [index for key, index in old_index.items() if key not in new_by_key]
    for index in sorted(removed, reverse=True):
        ops.append(PatchOp(PatchOpKind.REMOVE, f"{base}/{index}"))

    for key, item in new_by_key.items():
        if key not in old_index:
            ops.append(PatchOp(PatchOpKind.ADD, f"{base}/{_APPEND}", item))

    if _differs(_replay(old_items, ops, base), new_items):
        return [PatchOp(PatchOpKind.REPLACE, base, list(new_items))]
    return ops


def _differs(left: object, right: object) -> bool:
    # ``1 == True`` and ``1 == 1.0`` in Python, but not in the canonical document.
    return canonical_json(left) != canonical_json(right)


def _replay(items: list[JSONValue], ops: list[PatchOp], base: str) -> list[JSONValue]:
    result = list(items)
    prefix = f"{base}/"
    for op in ops:
        segment = op.path[len(prefix) :]
        if op.op is PatchOpKind.ADD:
            result.append(op.value)
        elif op.op is PatchOpKind.REMOVE:
            del result[int(segment)]
        else:
            result[int(segment)] = op.value
    return result


def _key_getter(key_field: str) -> Callable[[JSONValue], object]:
    def key_of(item: JSONValue) -> object:
        if isinstance(item, Mapping):
            return item.get(key_field)
        return None

    return key_of


def _as_list(value: object) -> list[JSONValue]:
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return []


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------


def apply_patch(ir: AxiomIR, patch: Sequence[PatchOp]) -> AxiomIR:
    """Return a new IR with ``patch`` applied; ``ir`` is left untouched."""

    document = apply_patch_document(ir.to_dict(), patch)
    return AxiomIR.from_dict(document)


def apply_patch_document(document: JSONValue, patch: Sequence[PatchOp]) -> JSONValue:
    """Apply ``patch`` to a JSON-compatible document without mutating it."""

    result = document
    for op in patch:
        segments = _split_path(op.path)
        result = _apply_op(result, segments, op, op.path)
    return result


def _split_path(path: str) -> list[str]:
    if path == "":
        return []
    if not path.startswith("/"):
        raise InvalidPatchPath(f"{InvalidPatchPath.code}: path must start with '/': {path!r}")
    return [part.replace("~1", "/").replace("~0", "~") for part in path[1:].split("/")]


def _apply_op(node: JSONValue, segments: list[str], op: PatchOp, path: str) -> JSONValue:
    if not segments:
        if op.op is PatchOpKind.REMOVE:
            _invalid(path, "cannot remove the document root")
        return op.value

    head, rest = segments[0], segments[1:]

    if isinstance(node, dict):
        copied = dict(node)
        if rest:
            if head not in copied:
                _invalid(path, f"missing member {head!r}")
            copied[head] = _apply_op(copied[head], rest, op, path)
            return copied
        if op.op is PatchOpKind.REMOVE:
            if head not in copied:
                _invalid(path, f"missing member {head!r}")
            del copied[head]
        elif op.op is PatchOpKind.REPLACE and head not in copied:
            _invalid(path, f"missing member {head!r}")
        else:
            copied[head] = op.value
        return copied

    if isinstance(node, list):
        copied_list = list(node)
        if rest:
            index = _parse_index(head, len(copied_list), path, allow_end=False)
            copied_list[index] = _apply_op(copied_list[index], rest, op, path)
            return copied_list
        if op.op is PatchOpKind.ADD:
            if head == _APPEND:
                copied_list.append(op.value)
            else:
                index = _parse_index(head, len(copied_list), path, allow_end=True)
                copied_list.insert(index, op.value)
        elif op.op is PatchOpKind.REMOVE:
            del copied_list[_parse_index(head, len(copied_list), path, allow_end=False)]
        else:
            copied_list[_parse_index(head, len(copied_list), path, allow_end=False)] = op.value
        return copied_list

    _invalid(path, f"cannot descend into {type(node).__name__}")


def _parse_index(segment: str, length: int, path: str, *, allow_end: bool) -> int:
    if segment == _APPEND:
        _invalid(path, "'-' is only valid as the final segment of an add")
    if not segment.isdigit() or (len(segment) > 1 and segment.startswith("0")):
        _invalid(path, f"invalid array index {segment!r}")
    index = int(segment)
    limit = length if allow_end else length - 1
    if index > limit:
        _invalid(path, f"array index {index} out of range (length {length})")
    return index


def _invalid(path: str, reason: str) -> NoReturn:
    raise InvalidPatchPath(f"{InvalidPatchPath.code}: {reason}: {path!r}")


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
