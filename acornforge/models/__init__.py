"""acornforge data models: all Pydantic v2, all frozen (immutable)."""

from acornforge.models.artifacts import (
    ArtifactKind,
    ArtifactSpec,
    FingerprintInput,
    FingerprintRecord,
    StoredArtifact,
    WorkArtifact,
)
from acornforge.models.components import Component
from acornforge.models.context import BuildContext
from acornforge.models.operations import CustomOp, Operation
from acornforge.models.phases import Phase

__all__ = [
    # phases
    "Phase",
    # operations
    "CustomOp",
    "Operation",
    # components
    "Component",
    # context
    "BuildContext",
    # artifacts
    "ArtifactKind",
    "ArtifactSpec",
    "FingerprintInput",
    "FingerprintRecord",
    "StoredArtifact",
    "WorkArtifact",
]
