"""EROFS rootfs builder.

The EROFS image is both the live boot environment (mounted read-only under
a tmpfs overlay) and the installation source. The staging tree is assembled
as ``rootfs-staging.work`` and the image as ``filesystem.erofs.work``; both
reach their final names only after the registry pass, the staging
verification and the image build have all succeeded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from acornforge import distro
from acornforge.artifacts import producers
from acornforge.builder import build_system
from acornforge.config import BuildSettings
from acornforge.core.atomic import MinimumSize, RequiredEntries, build_atomic
from acornforge.core.errors import BuildError
from acornforge.core.fingerprint import package_input, project_input, sidecar_path
from acornforge.core.process import exists
from acornforge.core.preflight import install_hint
from acornforge.models.artifacts import ArtifactKind, ArtifactSpec, WorkArtifact
from acornforge.models.context import BuildContext

logger = logging.getLogger(__name__)


# Package modules whose code decides what lands in the staging tree.
STAGING_MODULES: tuple[str, ...] = (
    "distro.py",
    "registry.py",
    "builder.py",
    "models/context.py",
    "executor/__init__.py",
    "executor/binaries.py",
    "executor/directories.py",
    "executor/files.py",
    "executor/services.py",
    "executor/users.py",
    "custom/__init__.py",
    "custom/busybox.py",
    "custom/filesystem.py",
    "custom/firmware.py",
    "custom/live.py",
    "artifacts/producers.py",
    "artifacts/rootfs.py",
)


def artifact_spec(settings: BuildSettings) -> ArtifactSpec:
    """Inputs whose content decides whether the rootfs image is stale."""
    base = settings.base_dir
    source = settings.source_rootfs
    return ArtifactSpec(
        kind=ArtifactKind.ROOTFS,
        artifact=settings.output_dir / distro.ROOTFS_NAME,
        sidecar=sidecar_path(settings.output_dir, ArtifactKind.ROOTFS),
        inputs=(
            project_input(base, source / "bin/busybox"),
            project_input(base, source / "lib/apk/db/installed"),
            *(
                project_input(base, f"{distro.PROFILE_SCRIPTS_DIR}/{name}", optional=True)
                for name in distro.PROFILE_SCRIPTS
            ),
            *(package_input(rel) for rel in STAGING_MODULES),
        ),
        parameters={
            "erofs_compression": settings.erofs_compression,
            "erofs_compression_level": str(settings.erofs_compression_level),
            "erofs_chunk_size": str(settings.erofs_chunk_size),
        },
    )


class StagingVerification(RequiredEntries):
    """Checks run against the staging tree before it is packaged."""

    def __init__(self) -> None:
        super().__init__(distro.REQUIRED_STAGING_ENTRIES)

    def problems(self, staging: Path) -> list[str]:
        missing = super().problems(staging)
        if missing and not staging.is_dir():
            return missing
        for rel in (*distro.VERIFY_BINARIES, *distro.VERIFY_DIRS, *distro.VERIFY_CONFIGS):
            path = staging / rel
            if not (path.exists() or path.is_symlink()):
                missing.append(f"{rel} - missing")
        for rel in (distro.VERIFY_SERVICE_DIR, "usr/lib/modules"):
            path = staging / rel
            if not path.is_dir() or not any(path.iterdir()):
                missing.append(f"{rel} - missing or empty")
        return missing


def check_host_tools() -> None:
    if not exists("mkfs.erofs"):
        raise BuildError(
            "mkfs.erofs not found. "
            + install_hint("mkfs.erofs")
            + "\nNOTE: erofs-utils 1.5+ is required for lz4hc compression."
        )


def build_rootfs(settings: BuildSettings, dependency_lister: Any = None) -> Path:
    """Assemble the staging tree, then pack it; returns the image path.

    Both steps go through ``build_atomic``: a failed registry pass or
    verification leaves the previous staging tree in place, and a failed
    image build leaves the previous image in place.
    """
    check_host_tools()
    output = settings.output_dir
    staging = WorkArtifact.beside(output / distro.ROOTFS_STAGING_NAME, is_dir=True)
    image = WorkArtifact.beside(output / distro.ROOTFS_NAME)

    def assemble(work: Path) -> None:
        ctx = BuildContext.for_base_dir(
            settings.base_dir, work, dependency_lister=dependency_lister
        )
        build_system(ctx)

    def pack(work: Path) -> None:
        producers.create_erofs(
            staging.final_path,
            work,
            settings.erofs_compression,
            settings.erofs_compression_level,
            settings.erofs_chunk_size,
        )

    build_atomic(
        staging.work_path, staging.final_path, assemble, StagingVerification(), is_dir=True
    )
    build_atomic(
        image.work_path, image.final_path, pack, MinimumSize(distro.MIN_ARTIFACT_BYTES)
    )

    size_mb = image.final_path.stat().st_size / (1024 * 1024)
    logger.info("EROFS build complete: %s (%.1f MB)", image.final_path, size_mb)
    return image.final_path
