"""Artifact, fingerprint and cache metadata models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArtifactKind(str, Enum):
    """The artifact kinds that own a fingerprint sidecar."""

    ROOTFS = "rootfs"
    INITRAMFS = "initramfs"
    ISO = "iso"


class FingerprintInput(BaseModel):
    """One declared input file.

    ``name`` is what enters the digest: a path relative to the project
    directory, or ``acornforge/<module>.py`` for the package's own code.
    It never depends on where the checkout or the package lives, so equal
    content gives equal digests across checkouts and machines. An
    ``optional`` input may be absent; its absence is hashed as such.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    optional: bool = False


class ArtifactSpec(BaseModel):
    """Hand-declared description of what an artifact depends on.

    ``inputs`` is the explicit, ordered list of files whose content decides
    whether the artifact is stale; it is never a directory scan.
    ``parameters`` are the settings that shape the produced bytes (labels,
    compression levels); they take part in the digest too.
    ``upstreams`` are other artifacts whose modification time must not be
    newer than this artifact's.
    """

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    artifact: Path
    sidecar: Path
    inputs: tuple[FingerprintInput, ...]
    parameters: dict[str, str] = {}
    upstreams: tuple[Path, ...] = ()


class FingerprintRecord(BaseModel):
    """Sidecar contents, written only after the artifact was promoted."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    digest: str
    inputs: list[str]
    parameters: dict[str, str] = {}
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class WorkArtifact(BaseModel):
    """A ``(work_path, final_path)`` pair for one atomic build attempt."""

    model_config = ConfigDict(frozen=True)

    work_path: Path
    final_path: Path
    is_dir: bool = False

    @classmethod
    def beside(cls, final_path: Path, is_dir: bool = False) -> WorkArtifact:
        """Work path next to the final path, so the promotion is a rename."""
        final_path = Path(final_path)
        return cls(
            work_path=final_path.with_name(final_path.name + ".work"),
            final_path=final_path,
            is_dir=is_dir,
        )


class StoredArtifact(BaseModel):
    """Metadata for an entry in the cross-run artifact store."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    key: str
    content_address: str  # "sha256:<hex>" of the payload
    size_bytes: int
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    metadata: dict[str, Any] = {}
