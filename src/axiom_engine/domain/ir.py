"""Frozen dataclass model of the agent intermediate representation (IR).

The IR is pure data: it is built once per build request, never mutated, and
every transformation (see :mod:`axiom_engine.diffpatch`) produces a new value.
``from_dict`` validates strictly and reports the failing field path;
``to_dict`` yields the canonical JSON-compatible form that diff/patch and
hashing operate on.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import NoReturn, TypeVar

from axiom_engine.constants import IR_VERSION
from axiom_engine.utils.hashing import canonical_json, sha256_json

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
CapabilityArg = str | int | float | bool
ConstraintValue = str | int | float | bool

TEnum = TypeVar("TEnum", bound=StrEnum)


class IRValidationError(ValueError):
    """Raised when a document does not conform to the IR schema."""


class CapabilityKind(StrEnum):
    FILESYSTEM = "filesystem"
    NETWORK = "network"
    SECRET = "secret"
    AI = "ai"
    COMPUTE = "compute"


class ConstraintOp(StrEnum):
    EQ = "=="
    NE = "!="
    LE = "<="
    GE = ">="
    LT = "<"
    GT = ">"


class CheckKind(StrEnum):
    UNIT = "unit"
    POLICY = "policy"
    SLA = "sla"


class EmitType(StrEnum):
    SERVICE = "service"
    TESTS = "tests"
    REPORT = "report"
    MANIFEST = "manifest"


# Short spellings produced by older surface-syntax parsers.
_CAPABILITY_ALIASES: dict[str, str] = {"fs": "filesystem", "net": "network"}


@dataclass(frozen=True, slots=True)
class Capability:
    kind: CapabilityKind
    args: tuple[CapabilityArg, ...] = ()
    optional: bool = False

    @classmethod
    def from_dict(cls, data: object, path: str = "Capability") -> Capability:
        parsed = _expect_object(data, path, required={"kind"}, optional={"args", "optional"})
        raw_kind = parsed["kind"]
        if isinstance(raw_kind, str):
            raw_kind = _CAPABILITY_ALIASES.get(raw_kind, raw_kind)
        args = _as_sequence(parsed.get("args", []), f"{path}.args")
        return cls(
            kind=_as_enum(CapabilityKind, raw_kind, f"{path}.kind"),
            args=tuple(_as_scalar(item, f"{path}.args[{idx}]") for idx, item in enumerate(args)),
            optional=_as_bool(parsed.get("optional", False), f"{path}.optional"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {"kind": self.kind.value, "args": list(self.args), "optional": self.optional}

    def allows(self, kind: CapabilityKind, arg: CapabilityArg) -> bool:
        return self.kind is kind and arg in self.args


@dataclass(frozen=True, slots=True)
class Constraint:
    lhs: str
    op: ConstraintOp
    rhs: ConstraintValue

    @classmethod
    def from_dict(cls, data: object, path: str = "Constraint") -> Constraint:
        parsed = _expect_object(data, path, required={"lhs", "op", "rhs"})
        return cls(
            lhs=_as_str(parsed["lhs"], f"{path}.lhs"),
            op=_as_enum(ConstraintOp, parsed["op"], f"{path}.op"),
            rhs=_as_scalar(parsed["rhs"], f"{path}.rhs"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {"lhs": self.lhs, "op": self.op.value, "rhs": self.rhs}


@dataclass(frozen=True, slots=True)
class Check:
    kind: CheckKind
    name: str
    expect: str

    @classmethod
    def from_dict(cls, data: object, path: str = "Check") -> Check:
        parsed = _expect_object(data, path, required={"kind", "name", "expect"})
        return cls(
            kind=_as_enum(CheckKind, parsed["kind"], f"{path}.kind"),
            name=_as_str(parsed["name"], f"{path}.name"),
            expect=_as_str(parsed["expect"], f"{path}.expect"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {"kind": self.kind.value, "name": self.name, "expect": self.expect}


@dataclass(frozen=True, slots=True)
class EmitItem:
    type: EmitType
    target: str
    subtype: str | None = None

    @classmethod
    def from_dict(cls, data: object, path: str = "EmitItem") -> EmitItem:
        parsed = _expect_object(data, path, required={"type", "target"}, optional={"subtype"})
        subtype = parsed.get("subtype")
        return cls(
            type=_as_enum(EmitType, parsed["type"], f"{path}.type"),
            target=_as_str(parsed["target"], f"{path}.target"),
            subtype=None if subtype is None else _as_str(subtype, f"{path}.subtype"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        out: dict[str, JSONValue] = {"type": self.type.value}
        if self.subtype is not None:
            out["subtype"] = self.subtype
        out["target"] = self.target
        return out


@dataclass(frozen=True, slots=True)
class AgentIR:
    name: str
    intent: str
    constraints: tuple[Constraint, ...] = ()
    capabilities: tuple[Capability, ...] = ()
    emit: tuple[EmitItem, ...] = ()
    checks: tuple[Check, ...] = ()

    @classmethod
    def from_dict(cls, data: object, path: str = "AgentIR") -> AgentIR:
        parsed = _expect_object(
            data,
            path,
            required={"name", "intent"},
            optional={"constraints", "capabilities", "emit", "checks"},
        )
        constraints = _as_sequence(parsed.get("constraints", []), f"{path}.constraints")
        capabilities = _as_sequence(parsed.get("capabilities", []), f"{path}.capabilities")
        emit = _as_sequence(parsed.get("emit", []), f"{path}.emit")
        checks = _as_sequence(parsed.get("checks", []), f"{path}.checks")

        parsed_checks = tuple(
            Check.from_dict(item, f"{path}.checks[{idx}]") for idx, item in enumerate(checks)
        )
        seen: set[str] = set()
        for idx, check in enumerate(parsed_checks):
            if check.name in seen:
                _fail(f"{path}.checks[{idx}].name", f"duplicate check name {check.name!r}")
            seen.add(check.name)

        return cls(
            name=_as_str(parsed["name"], f"{path}.name"),
            intent=_as_str(parsed["intent"], f"{path}.intent", min_len=0),
            constraints=tuple(
                Constraint.from_dict(item, f"{path}.constraints[{idx}]")
                for idx, item in enumerate(constraints)
            ),
            capabilities=tuple(
                Capability.from_dict(item, f"{path}.capabilities[{idx}]")
                for idx, item in enumerate(capabilities)
            ),
            emit=tuple(
                EmitItem.from_dict(item, f"{path}.emit[{idx}]") for idx, item in enumerate(emit)
            ),
            checks=parsed_checks,
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "intent": self.intent,
            "constraints": [item.to_dict() for item in self.constraints],
            "capabilities": [item.to_dict() for item in self.capabilities],
            "emit": [item.to_dict() for item in self.emit],
            "checks": [item.to_dict() for item in self.checks],
        }

    def has_capability(self, kind: CapabilityKind, arg: CapabilityArg) -> bool:
        return any(capability.allows(kind, arg) for capability in self.capabilities)


@dataclass(frozen=True, slots=True)
class AxiomIR:
    """Root IR document: a pinned version plus one or more agents."""

    agents: tuple[AgentIR, ...]
    version: str = IR_VERSION
    _hash: str = field(default="", init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.version != IR_VERSION:
            _fail("AxiomIR.version", f"expected {IR_VERSION!r}, got {self.version!r}")
        if not self.agents:
            _fail("AxiomIR.agents", "must contain at least one agent")

    @classmethod
    def from_dict(cls, data: object) -> AxiomIR:
        parsed = _expect_object(data, "AxiomIR", required={"version", "agents"})
        version = _as_str(parsed["version"], "AxiomIR.version")
        agents = _as_sequence(parsed["agents"], "AxiomIR.agents")
        return cls(
            version=version,
            agents=tuple(
                AgentIR.from_dict(item, f"AxiomIR.agents[{idx}]") for idx, item in enumerate(agents)
            ),
        )

    @classmethod
    def from_json(cls, raw: str) -> AxiomIR:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            _fail("AxiomIR", f"invalid JSON: {exc}")
        return cls.from_dict(parsed)

    def to_dict(self) -> dict[str, JSONValue]:
        return {"version": self.version, "agents": [agent.to_dict() for agent in self.agents]}

    def to_json(self) -> str:
        return canonical_json(self.to_dict())

    def content_hash(self) -> str:
        """SHA-256 of the canonical JSON form; stable across processes."""

        if not self._hash:
            object.__setattr__(self, "_hash", sha256_json(self.to_dict()))
        return self._hash


def _fail(path: str, message: str) -> NoReturn:
    raise IRValidationError(f"{path}: {message}")


def _expect_object(
    value: object,
    path: str,
    *,
    required: set[str],
    optional: set[str] | None = None,
) -> dict[str, object]:
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")

    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            _fail(path, f"object keys must be strings, got {type(key).__name__}")
        parsed[key] = item

    allowed = required | (optional or set())
    unknown = sorted(key for key in parsed if key not in allowed)
    if unknown:
        _fail(path, f"unexpected fields: {unknown}")

    missing = sorted(key for key in required if key not in parsed)
    if missing:
        _fail(path, f"missing required fields: {missing}")

    return parsed


def _as_str(value: object, path: str, *, min_len: int = 1) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    if len(value) < min_len:
        _fail(path, f"must be at least {min_len} character(s)")
    return value


def _as_bool(value: object, path: str) -> bool:
    if isinstance(value, bool):
        return value
    _fail(path, f"expected boolean, got {type(value).__name__}")


def _as_scalar(value: object, path: str) -> str | int | float | bool:
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            _fail(path, "numbers must be finite")
        return value
    _fail(path, f"expected string, number or boolean, got {type(value).__name__}")


def _as_enum(enum_type: type[TEnum], value: object, path: str) -> TEnum:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        _fail(path, f"expected string enum value, got {type(value).__name__}")
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(sorted(item.value for item in enum_type))
        _fail(path, f"invalid value {value!r}; expected one of: {allowed}")


def _as_sequence(value: object, path: str) -> list[object]:
    if isinstance(value, (list, tuple)):
        return list(value)
    _fail(path, f"expected array, got {type(value).__name__}")


__all__ = [
    "AgentIR",
    "AxiomIR",
    "Capability",
    "CapabilityKind",
    "Check",
    "CheckKind",
    "Constraint",
    "ConstraintOp",
    "EmitItem",
    "EmitType",
    "IRValidationError",
    "JSONValue",
]
