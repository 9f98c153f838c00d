"""Check aggregation over a manifest and its IR."""

from axiom_engine.verification.check_runner import CheckReport, run_checks

__all__ = ["CheckReport", "run_checks"]
