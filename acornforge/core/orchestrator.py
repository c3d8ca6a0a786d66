"""Build orchestrator: skip, restore or build each artifact kind.

For every kind the flow is the same:

1. Ask the fingerprint oracle; an up-to-date artifact is skipped.
2. Compute the input digest *before* building and drop the old sidecar.
3. Try the cross-run artifact store (rootfs and initramfs only).
4. Otherwise run the kind's builder, which promotes atomically, and offer
   the result to the store. A store failure is logged, never fatal.
5. Record the sidecar with the digest from step 2, after promotion.

The ISO is never cached: its checksum file has to travel with it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel, ConfigDict

from acornforge.artifacts import initramfs, iso, rootfs
from acornforge.config import BuildSettings, settings as default_settings
from acornforge.core.artifact_store import ArtifactStore
from acornforge.core.deps import LddLister
from acornforge.core.errors import BuildError
from acornforge.core.fingerprint import FingerprintOracle
from acornforge.models.artifacts import ArtifactKind, ArtifactSpec

logger = logging.getLogger(__name__)

ArtifactBuilder = Callable[[BuildSettings], Path]

BUILD_ORDER: tuple[ArtifactKind, ...] = (
    ArtifactKind.ROOTFS,
    ArtifactKind.INITRAMFS,
    ArtifactKind.ISO,
)

CACHEABLE_KINDS: frozenset[ArtifactKind] = frozenset(
    {ArtifactKind.ROOTFS, ArtifactKind.INITRAMFS}
)


class BuildAction(str, Enum):
    SKIPPED = "skipped"
    RESTORED = "restored"
    BUILT = "built"


class BuildOutcome(BaseModel):
    """What happened to one artifact kind during a run."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    action: BuildAction
    artifact: Path
    digest: str | None = None


class ArtifactStatus(BaseModel):
    """One row of ``acornforge status``."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    artifact: Path
    exists: bool
    needs_rebuild: bool
    recorded_at: datetime | None = None


def artifact_specs(settings: BuildSettings) -> list[ArtifactSpec]:
    return [
        rootfs.artifact_spec(settings),
        initramfs.artifact_spec(settings),
        iso.artifact_spec(settings),
    ]


class BuildOrchestrator:
    """Runs the artifact builders behind the fingerprint oracle.

    Parameters
    ----------
    settings:
        Build settings. Uses the module-level settings if not provided.
    store:
        Artifact store. Built from ``settings.artifact_store_path`` if not
        provided; a ``None`` path disables it.
    dependency_lister:
        Passed through to the rootfs builder. Defaults to ``ldd`` (or the
        command named by ``settings.dependency_lister``).
    builders:
        Override of the per-kind builder callables.
    """

    def __init__(
        self,
        settings: BuildSettings | None = None,
        *,
        store: ArtifactStore | None = None,
        dependency_lister: Any = None,
        builders: Mapping[ArtifactKind, ArtifactBuilder] | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.store = store if store is not None else ArtifactStore(self.settings.artifact_store_path)
        self.oracle = FingerprintOracle(artifact_specs(self.settings))
        if dependency_lister is None:
            dependency_lister = LddLister(self.settings.dependency_lister)
        self._builders: dict[ArtifactKind, ArtifactBuilder] = {
            ArtifactKind.ROOTFS: partial(rootfs.build_rootfs, dependency_lister=dependency_lister),
            ArtifactKind.INITRAMFS: initramfs.build_initramfs,
            ArtifactKind.ISO: iso.build_iso,
        }
        if builders:
            self._builders.update(builders)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, kind: ArtifactKind, force: bool = False) -> BuildOutcome:
        """Bring one artifact kind up to date."""
        spec = self.oracle.spec(kind)
        if not force and not self.oracle.needs_rebuild(kind):
            return BuildOutcome(
                kind=kind, action=BuildAction.SKIPPED, artifact=spec.artifact
            )

        digest = self.oracle.compute(kind)
        self.oracle.invalidate(kind)

        action = BuildAction.BUILT
        cacheable = digest is not None and kind in CACHEABLE_KINDS
        if cacheable and self.store.try_restore(kind, digest, spec.artifact):
            action = BuildAction.RESTORED
        else:
            logger.info("Building %s", kind.value)
            self._builders[kind](self.settings)
            if cacheable:
                self._offer_to_store(kind, digest, spec)

        if digest is None:
            logger.warning(
                "%s: a declared input is missing; no fingerprint recorded", kind.value
            )
        else:
            self.oracle.record(kind, digest)
        return BuildOutcome(kind=kind, action=action, artifact=spec.artifact, digest=digest)

    def _offer_to_store(self, kind: ArtifactKind, digest: str, spec: ArtifactSpec) -> None:
        """Copy a freshly built artifact into the store; failures only warn."""
        metadata = {
            "inputs": [item.name for item in spec.inputs],
            "parameters": spec.parameters,
        }
        try:
            self.store.try_store(kind, digest, spec.artifact, metadata)
        except (BuildError, OSError) as exc:
            logger.warning("Could not store %s artifact %s: %s", kind.value, digest[:16], exc)

    def build_all(
        self, force: bool = False, kinds: Iterable[ArtifactKind] = BUILD_ORDER
    ) -> list[BuildOutcome]:
        """Build *kinds* (default: every kind) in dependency order.

        Stops at the first failure. *kinds* is reordered to ``BUILD_ORDER``.
        """
        wanted = set(kinds)
        return [self.build(kind, force=force) for kind in BUILD_ORDER if kind in wanted]

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def status(self) -> list[ArtifactStatus]:
        rows = []
        for kind in BUILD_ORDER:
            spec = self.oracle.spec(kind)
            record = self.oracle.read_record(kind)
            rows.append(
                ArtifactStatus(
                    kind=kind,
                    artifact=spec.artifact,
                    exists=spec.artifact.exists(),
                    needs_rebuild=self.oracle.needs_rebuild(kind),
                    recorded_at=record.recorded_at if record else None,
                )
            )
        return rows
