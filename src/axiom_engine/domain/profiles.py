"""Build profiles: named sets of simulated runtime measurements.

A profile pins the measurements that cannot be derived from artifact content
(cold start, latency, budget), so the same IR checked under different
profiles yields different, but reproducible, outcomes.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from axiom_engine.constants import DEFAULT_PROFILE
from axiom_engine.domain.ir import JSONScalar


class UnknownProfile(LookupError):
    """Raised when a build or check names a profile that is not defined."""

    code = "ERR_UNKNOWN_PROFILE"


@dataclass(frozen=True, slots=True)
class Profile:
    name: str
    measurements: Mapping[str, JSONScalar]


BUILTIN_PROFILES: Final[Mapping[str, Profile]] = MappingProxyType(
    {
        "default": Profile(
            "default",
            MappingProxyType(
                {"cold_start_ms": 80, "latency_p50_ms": 45, "monthly_budget_usd": 2}
            ),
        ),
        "edge": Profile(
            "edge",
            MappingProxyType(
                {"cold_start_ms": 50, "latency_p50_ms": 20, "monthly_budget_usd": 5}
            ),
        ),
        "budget": Profile(
            "budget",
            MappingProxyType(
                {"cold_start_ms": 120, "latency_p50_ms": 90, "monthly_budget_usd": 1}
            ),
        ),
    }
)


def resolve_profile(
    name: str | None,
    extra: Mapping[str, Mapping[str, JSONScalar]] | None = None,
) -> Profile:
    """Look up ``name`` (``None`` means the default profile).

    ``extra`` entries override or extend the built-in measurements; an extra
    entry that shares a built-in name is merged over it.
    """

    resolved = name or DEFAULT_PROFILE
    builtin = BUILTIN_PROFILES.get(resolved)
    override = (extra or {}).get(resolved)
    if builtin is None and override is None:
        known = sorted(set(BUILTIN_PROFILES) | set(extra or {}))
        raise UnknownProfile(
            f"{UnknownProfile.code}: Unknown profile {resolved!r}; expected one of: "
            f"{', '.join(known)}"
        )
    measurements: dict[str, JSONScalar] = dict(builtin.measurements) if builtin else {}
    measurements.update(override or {})
    return Profile(resolved, MappingProxyType(measurements))


__all__ = ["BUILTIN_PROFILES", "Profile", "UnknownProfile", "resolve_profile"]
