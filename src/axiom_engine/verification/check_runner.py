"""
axiom-engine — check runner

File: src/axiom_engine/verification/check_runner.py

Purpose
- Score every check declared by an IR against measurements derived from a
  manifest, producing one Evidence record per check.

Functional requirements
- Overall ``passed`` is the AND of every check; an empty check set passes.
- Without an IR nothing is evaluated: ``passed`` is true, ``evaluated`` false.
- An evaluation error fails only its own check; the error is captured in
  that check's evidence and the run continues.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from axiom_engine.domain.ir import AxiomIR, JSONScalar, JSONValue
from axiom_engine.domain.manifest import ErrorDetails, Evidence, EvidenceDetails, Manifest
from axiom_engine.domain.profiles import resolve_profile
from axiom_engine.policy.context import PolicyContext, Probe, load_artifact_texts
from axiom_engine.policy.errors import PolicyEvaluationError
from axiom_engine.policy.evaluator import evaluate
from axiom_engine.policy.metrics import derive_measurements


@dataclass(frozen=True, slots=True)
class CheckReport:
    passed: bool
    report: tuple[Evidence, ...]
    evaluated: bool

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "report": [item.to_dict() for item in self.report],
            "evaluated": self.evaluated,
        }


def run_checks(
    manifest: Manifest,
    ir: AxiomIR | None = None,
    out_root: Path | str | None = None,
    profile: str | None = None,
    probe: Probe | None = None,
    *,
    extra_profiles: Mapping[str, Mapping[str, JSONScalar]] | None = None,
    logger: Any | None = None,
) -> CheckReport:
    """Evaluate every check of ``ir`` against measurements derived from ``manifest``.

    ``profile`` overrides ``manifest.profile``. Raises ``UnknownProfile`` when
    the resulting profile name is not defined.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    if ir is None:
        log.info("checks_skipped", build_id=manifest.build_id, reason="no_ir")
        return CheckReport(passed=True, report=(), evaluated=False)

    active = resolve_profile(profile or manifest.profile, extra_profiles)
    root = Path(out_root) if out_root is not None else None
    texts = load_artifact_texts(manifest.artifacts, root, logger=log)
    measurements = derive_measurements(manifest, root, active.measurements, texts=texts)

    report: list[Evidence] = []
    for agent in ir.agents:
        ctx = PolicyContext(
            metrics=measurements,
            artifacts=texts,
            capabilities=agent.capabilities,
            probe=probe,
        )
        for check in agent.checks:
            details: EvidenceDetails
            try:
                details = evaluate(check.expect, ctx)
                passed = details.result
            except PolicyEvaluationError as exc:
                details = ErrorDetails(
                    expression=check.expect,
                    measurements=dict(measurements),
                    error=str(exc),
                    code=exc.code,
                )
                passed = False
            log.info(
                "check_evaluated",
                agent=agent.name,
                check=check.name,
                kind=check.kind.value,
                passed=passed,
                profile=active.name,
            )
            report.append(
                Evidence(check_name=check.name, kind=check.kind, passed=passed, details=details)
            )

    overall = all(item.passed for item in report)
    log.info(
        "checks_completed",
        build_id=manifest.build_id,
        passed=overall,
        total=len(report),
        failed=sum(1 for item in report if not item.passed),
    )
    return CheckReport(passed=overall, report=tuple(report), evaluated=True)


__all__ = ["CheckReport", "run_checks"]
