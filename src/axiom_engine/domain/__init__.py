"""Domain records: the agent IR and the manifest/artifact/evidence model."""

from axiom_engine.domain.ir import (
    AgentIR,
    AxiomIR,
    Capability,
    CapabilityKind,
    Check,
    CheckKind,
    Constraint,
    ConstraintOp,
    EmitItem,
    EmitType,
    IRValidationError,
)
from axiom_engine.domain.manifest import (
    Artifact,
    ArtifactKind,
    CallDetails,
    ComparisonDetails,
    ErrorDetails,
    Evidence,
    Manifest,
    ManifestValidationError,
)
from axiom_engine.domain.profiles import BUILTIN_PROFILES, Profile, UnknownProfile, resolve_profile

__all__ = [
    "BUILTIN_PROFILES",
    "AgentIR",
    "Artifact",
    "ArtifactKind",
    "AxiomIR",
    "CallDetails",
    "Capability",
    "CapabilityKind",
    "Check",
    "CheckKind",
    "ComparisonDetails",
    "Constraint",
    "ConstraintOp",
    "EmitItem",
    "EmitType",
    "ErrorDetails",
    "Evidence",
    "IRValidationError",
    "Manifest",
    "ManifestValidationError",
    "Profile",
    "UnknownProfile",
    "resolve_profile",
]
