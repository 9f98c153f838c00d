"""
axiom-engine — unit tests for structural IR diff/patch

File: tests/unit/diffpatch/test_patch.py

Purpose
- Validate minimal keyed diffs, strict pointer semantics, and the round-trip law
  ``apply_patch(a, diff(a, b)) == b``.
"""

from __future__ import annotations

import copy

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from axiom_engine.diffpatch import (
    InvalidPatchPath,
    PatchError,
    PatchOp,
    PatchOpKind,
    apply_patch,
    apply_patch_document,
    diff,
    patch_from_list,
    patch_to_list,
)
from axiom_engine.domain import AxiomIR


def _agent(**overrides: object) -> dict[str, object]:
    agent: dict[str, object] = {
        "name": "notes",
        "intent": "keep notes",
        "constraints": [],
        "capabilities": [],
        "emit": [{"type": "service", "target": "api"}],
        "checks": [
            {"kind": "sla", "name": "fast", "expect": "cold_start_ms <= 80"},
            {"kind": "policy", "name": "private", "expect": "no_analytics"},
        ],
    }
    agent.update(overrides)
    return agent


def _ir(*agents: dict[str, object]) -> AxiomIR:
    return AxiomIR.from_dict({"version": "1.0.0", "agents": list(agents) or [_agent()]})


@pytest.mark.unit
def test_identical_documents_produce_empty_patch() -> None:
    assert diff(_ir(), _ir()) == ()


@pytest.mark.unit
def test_changed_check_is_replaced_in_place() -> None:
    old = _ir()
    checks = copy.deepcopy(_agent()["checks"])
    checks[1]["expect"] = "no_telemetry"  # type: ignore[index]
    new = _ir(_agent(checks=checks))

    patch = diff(old, new)

    expected = PatchOp(PatchOpKind.REPLACE, "/agents/0/checks/1", checks[1])  # type: ignore[index]
    assert patch == (expected,)
    assert apply_patch(old, patch) == new


@pytest.mark.unit
def test_removed_and_added_checks_use_remove_then_append() -> None:
    old = _ir()
    new_checks = [
        {"kind": "sla", "name": "fast", "expect": "cold_start_ms <= 80"},
        {"kind": "unit", "name": "count", "expect": "artifact_count >= 1"},
    ]
    new = _ir(_agent(checks=new_checks))

    patch = diff(old, new)

    assert [op.op for op in patch] == [PatchOpKind.REMOVE, PatchOpKind.ADD]
    assert patch[0].path == "/agents/0/checks/1"
    assert patch[1].path == "/agents/0/checks/-"
    assert apply_patch(old, patch) == new


@pytest.mark.unit
def test_reordered_checks_fall_back_to_whole_array_replace() -> None:
    old = _ir()
    new = _ir(_agent(checks=list(reversed(_agent()["checks"]))))  # type: ignore[call-overload]

    patch = diff(old, new)

    assert len(patch) == 1
    assert patch[0].path == "/agents/0/checks"
    assert apply_patch(old, patch) == new


@pytest.mark.unit
def test_constraints_and_capabilities_are_replaced_wholesale() -> None:
    old = _ir()
    new = _ir(
        _agent(
            constraints=[{"lhs": "monthly_budget_usd", "op": "<=", "rhs": 3}],
            capabilities=[{"kind": "network", "args": ["http"], "optional": False}],
        )
    )
    paths = [op.path for op in diff(old, new)]
    assert paths == ["/agents/0/constraints", "/agents/0/capabilities"]


@pytest.mark.unit
def test_agent_count_change_replaces_agent_list() -> None:
    old = _ir()
    new = _ir(_agent(), _agent(name="second"))
    patch = diff(old, new)
    assert [op.path for op in patch] == ["/agents"]
    assert apply_patch(old, patch) == new


@pytest.mark.unit
def test_apply_never_mutates_the_input_document() -> None:
    document = _ir().to_dict()
    snapshot = copy.deepcopy(document)
    patch = (PatchOp(PatchOpKind.REPLACE, "/agents/0/intent", "changed"),)

    result = apply_patch_document(document, patch)

    assert document == snapshot
    assert result["agents"][0]["intent"] == "changed"  # type: ignore[index,call-overload]


@pytest.mark.unit
@pytest.mark.parametrize(
    "op",
    [
        PatchOp(PatchOpKind.REPLACE, "/agents/5/intent", "x"),
        PatchOp(PatchOpKind.REMOVE, "/agents/0/checks/2"),
        PatchOp(PatchOpKind.ADD, "/agents/0/checks/3", {}),
        PatchOp(PatchOpKind.ADD, "/agents/-/checks/0", {}),
        PatchOp(PatchOpKind.REPLACE, "/agents/01/intent", "x"),
        PatchOp(PatchOpKind.REPLACE, "/agents/0/missing", "x"),
        PatchOp(PatchOpKind.REMOVE, ""),
        PatchOp(PatchOpKind.REPLACE, "agents", []),
        PatchOp(PatchOpKind.REPLACE, "/version/deeper", "x"),
    ],
)
def test_invalid_paths_raise_invalid_patch_path(op: PatchOp) -> None:
    with pytest.raises(InvalidPatchPath, match="ERR_INVALID_PATCH_PATH"):
        apply_patch_document(_ir().to_dict(), (op,))


@pytest.mark.unit
def test_add_at_array_length_inserts_at_end() -> None:
    op = PatchOp(
        PatchOpKind.ADD,
        "/agents/0/checks/2",
        {"kind": "unit", "name": "n", "expect": "no_fs_heavy"},
    )
    result = apply_patch(_ir(), (op,))
    assert [check.name for check in result.agents[0].checks] == ["fast", "private", "n"]


@pytest.mark.unit
def test_patch_list_round_trip_and_validation() -> None:
    patch = diff(_ir(), _ir(_agent(intent="other")))
    assert patch_from_list(patch_to_list(patch)) == patch

    with pytest.raises(PatchError):
        patch_from_list({"op": "add"})
    with pytest.raises(PatchError, match="unsupported patch op"):
        patch_from_list([{"op": "move", "path": "/x"}])
    with pytest.raises(PatchError, match="requires a value"):
        patch_from_list([{"op": "replace", "path": "/x"}])


@pytest.mark.unit
@pytest.mark.parametrize(("before", "after"), [(1, True), (0, False), (1, 1.0), (True, 1.0)])
def test_diff_distinguishes_booleans_and_floats_from_integers(
    before: object, after: object
) -> None:
    def build(value: object) -> AxiomIR:
        return _ir(
            _agent(
                constraints=[{"lhs": "latency_p50_ms", "op": "==", "rhs": value}],
                capabilities=[{"kind": "network", "args": [value]}],
            )
        )

    old, new = build(before), build(after)
    patch = diff(old, new)

    assert [op.path for op in patch] == [
        "/agents/0/constraints",
        "/agents/0/capabilities",
    ]
    assert apply_patch(old, patch).content_hash() == new.content_hash()


# ---------------------------------------------------------------------------
# property: apply_patch(a, diff(a, b)) == b
# ---------------------------------------------------------------------------

_names = st.sampled_from(["alpha", "beta", "gamma", "delta", "epsilon"])
_checks = st.lists(
    st.fixed_dictionaries(
        {
            "kind": st.sampled_from(["unit", "policy", "sla"]),
            "name": _names,
            "expect": st.sampled_from(["no_analytics", "cold_start_ms <= 80", "pii_leak == false"]),
        }
    ),
    max_size=4,
    unique_by=lambda item: item["name"],
)
_emit = st.lists(
    st.fixed_dictionaries(
        {
            "type": st.sampled_from(["service", "tests", "report"]),
            "target": _names,
        }
    ),
    max_size=4,
)
_scalars = st.one_of(
    st.integers(min_value=-5, max_value=200),
    st.booleans(),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=6),
)
_constraints = st.lists(
    st.fixed_dictionaries(
        {
            "lhs": st.sampled_from(["latency_p50_ms", "monthly_budget_usd"]),
            "op": st.sampled_from(["<=", ">=", "=="]),
            "rhs": _scalars,
        }
    ),
    max_size=2,
)
_agents = st.fixed_dictionaries(
    {
        "name": _names,
        "intent": st.text(max_size=12),
        "constraints": _constraints,
        "capabilities": st.lists(
            st.fixed_dictionaries(
                {
                    "kind": st.sampled_from(["network", "filesystem"]),
                    "args": st.lists(_scalars, max_size=2),
                }
            ),
            max_size=2,
        ),
        "emit": _emit,
        "checks": _checks,
    }
)
_documents = st.builds(
    lambda agents: {"version": "1.0.0", "agents": agents},
    st.lists(_agents, min_size=1, max_size=3),
)


@pytest.mark.unit
@settings(max_examples=150, deadline=None)
@given(old=_documents, new=_documents)
def test_property_round_trip_law(old: dict[str, object], new: dict[str, object]) -> None:
    a = AxiomIR.from_dict(old)
    b = AxiomIR.from_dict(new)
    patched = apply_patch(a, diff(a, b))
    assert patched == b
    assert patched.content_hash() == b.content_hash()


@pytest.mark.unit
@settings(max_examples=50, deadline=None)
@given(document=_documents)
def test_property_self_diff_is_empty(document: dict[str, object]) -> None:
    ir = AxiomIR.from_dict(document)
    assert diff(ir, ir) == ()
