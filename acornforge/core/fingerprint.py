"""Fingerprint oracle: the skip-vs-rebuild decision.

Primary rule: a content digest over the artifact kind's hand-declared input
files, compared against the digest recorded in a JSON sidecar next to the
artifact. Secondary rule, for kinds that declare upstream artifacts: any
upstream missing or newer than the artifact forces a rebuild.

Every uncertain case answers "rebuild": missing artifact, missing or
malformed sidecar, missing input.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from acornforge.core.errors import BuildError
from acornforge.core.hasher import hash_files
from acornforge.models.artifacts import (
    ArtifactKind,
    ArtifactSpec,
    FingerprintInput,
    FingerprintRecord,
)

logger = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parents[1]


class FingerprintOracle:
    """Decides whether an artifact kind must be rebuilt.

    Parameters
    ----------
    specs:
        One ``ArtifactSpec`` per artifact kind.
    """

    def __init__(self, specs: Iterable[ArtifactSpec]) -> None:
        self._specs: dict[ArtifactKind, ArtifactSpec] = {s.kind: s for s in specs}

    def spec(self, kind: ArtifactKind) -> ArtifactSpec:
        try:
            return self._specs[kind]
        except KeyError:
            raise BuildError(f"No artifact spec declared for kind {kind.value!r}") from None

    @property
    def kinds(self) -> list[ArtifactKind]:
        return list(self._specs)

    # ------------------------------------------------------------------
    # Digest
    # ------------------------------------------------------------------

    def compute(self, kind: ArtifactKind) -> str | None:
        """Digest of inputs and parameters, or None if a required input is missing."""
        spec = self.spec(kind)
        return hash_files(
            [(item.name, item.path) for item in spec.inputs],
            spec.parameters,
            optional={item.name for item in spec.inputs if item.optional},
        )

    def read_record(self, kind: ArtifactKind) -> FingerprintRecord | None:
        """The recorded sidecar, or None if it is missing or untrustworthy."""
        sidecar = self.spec(kind).sidecar
        try:
            record = FingerprintRecord.model_validate_json(sidecar.read_bytes())
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable fingerprint %s: %s", sidecar, exc)
            return None
        if record.kind != kind:
            logger.warning("Fingerprint %s belongs to %s, not %s", sidecar, record.kind.value, kind.value)
            return None
        return record

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def upstream_newer(self, kind: ArtifactKind) -> bool:
        """True if any upstream artifact is missing or newer than *kind*'s."""
        spec = self.spec(kind)
        try:
            artifact_mtime = spec.artifact.stat().st_mtime
        except OSError:
            return True
        for upstream in spec.upstreams:
            try:
                if upstream.stat().st_mtime > artifact_mtime:
                    logger.info("%s is newer than %s", upstream, spec.artifact)
                    return True
            except OSError:
                logger.info("Upstream %s is missing", upstream)
                return True
        return False

    def needs_rebuild(self, kind: ArtifactKind) -> bool:
        spec = self.spec(kind)
        if not (spec.artifact.exists() or spec.artifact.is_symlink()):
            logger.info("%s: artifact %s missing, rebuild", kind.value, spec.artifact)
            return True
        record = self.read_record(kind)
        if record is None:
            logger.info("%s: no trusted fingerprint, rebuild", kind.value)
            return True
        digest = self.compute(kind)
        if digest is None:
            logger.info("%s: a declared input is missing, rebuild", kind.value)
            return True
        if digest != record.digest:
            logger.info("%s: inputs changed, rebuild", kind.value)
            return True
        if spec.upstreams and self.upstream_newer(kind):
            logger.info("%s: upstream artifact changed, rebuild", kind.value)
            return True
        logger.info("%s: inputs unchanged, skip", kind.value)
        return False

    # ------------------------------------------------------------------
    # Sidecar lifecycle
    # ------------------------------------------------------------------

    def invalidate(self, kind: ArtifactKind) -> None:
        """Remove the sidecar before a rebuild starts.

        A crash after the new artifact is promoted but before ``record``
        then leaves no sidecar at all, never one describing older inputs.
        """
        self.spec(kind).sidecar.unlink(missing_ok=True)

    def record(self, kind: ArtifactKind, digest: str | None = None) -> FingerprintRecord:
        """Write the sidecar. Call only after the artifact was promoted.

        Pass the *digest* computed before the build started so an input
        edited mid-build is still seen as changed on the next run.
        """
        spec = self.spec(kind)
        if not (spec.artifact.exists() or spec.artifact.is_symlink()):
            raise BuildError(
                f"Refusing to record a fingerprint for missing artifact {spec.artifact}"
            )
        if digest is None:
            digest = self.compute(kind)
        if digest is None:
            raise BuildError(f"Cannot fingerprint {kind.value}: a declared input is missing")

        record = FingerprintRecord(
            kind=kind,
            digest=digest,
            inputs=[item.name for item in spec.inputs],
            parameters=spec.parameters,
        )
        spec.sidecar.parent.mkdir(parents=True, exist_ok=True)
        tmp = spec.sidecar.with_name(spec.sidecar.name + ".tmp")
        tmp.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, spec.sidecar)
        logger.debug("Recorded %s fingerprint %s", kind.value, digest[:16])
        return record


def sidecar_path(output_dir: Path, kind: ArtifactKind) -> Path:
    """Hidden sidecar location: ``output/.<kind>-inputs.hash``."""
    return Path(output_dir) / f".{kind.value}-inputs.hash"


def project_input(
    base_dir: Path, path: str | Path, optional: bool = False
) -> FingerprintInput:
    """Input named by its path relative to the project directory.

    *path* is either relative to *base_dir* or a path below it.
    """
    path = Path(base_dir) / path
    return FingerprintInput(
        name=path.relative_to(base_dir).as_posix(), path=path, optional=optional
    )


def package_input(rel: str) -> FingerprintInput:
    """Input for one of acornforge's own modules, named ``acornforge/<rel>``."""
    return FingerprintInput(name=f"acornforge/{rel}", path=_PACKAGE_DIR / rel)
