"""System builder: one full registry pass into a staging tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, ConfigDict

from acornforge import custom
from acornforge.core.tracker import LicenseTracker
from acornforge.executor import run_components
from acornforge.models.components import Component
from acornforge.models.context import BuildContext
from acornforge.models.operations import CustomOp
from acornforge.registry import ALL_COMPONENTS, validate_registry

logger = logging.getLogger(__name__)

ESSENTIAL_FILES: tuple[str, ...] = (
    "etc/os-release",
    "etc/hostname",
    "etc/passwd",
    "etc/group",
    "usr/bin/busybox",
)


class BuildSummary(BaseModel):
    """Counts describing an assembled staging tree."""

    model_config = ConfigDict(frozen=True)

    files: int
    dirs: int
    symlinks: int
    size_bytes: int
    missing_essentials: list[str] = []

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)


def summarize(staging: Path) -> BuildSummary:
    files = dirs = symlinks = size = 0
    for root, dirnames, filenames in os.walk(staging):
        for name in dirnames:
            if os.path.islink(os.path.join(root, name)):
                symlinks += 1
            else:
                dirs += 1
        for name in filenames:
            path = os.path.join(root, name)
            if os.path.islink(path):
                symlinks += 1
            else:
                files += 1
                size += os.lstat(path).st_size
    missing = [rel for rel in ESSENTIAL_FILES if not os.path.lexists(staging / rel)]
    return BuildSummary(
        files=files,
        dirs=dirs,
        symlinks=symlinks,
        size_bytes=size,
        missing_essentials=missing,
    )


def build_system(
    ctx: BuildContext,
    components: Sequence[Component] = ALL_COMPONENTS,
    tracker: LicenseTracker | None = None,
) -> BuildSummary:
    """Run every component into ``ctx.staging`` and flush the tracker.

    The staging directory is expected to exist and be empty; the caller
    owns it (normally as the work path of an atomic build). The tracker is
    flushed exactly once, and only if every component succeeded.
    """
    validate_registry(components)
    if tracker is None:
        tracker = LicenseTracker.for_source(ctx.source)

    logger.info("Building system from %s into %s", ctx.source, ctx.staging)
    run_components(ctx, components, tracker)
    custom.execute(ctx, CustomOp.COPY_LICENSES, tracker, component="licenses")

    summary = summarize(ctx.staging)
    logger.info(
        "System built: %d files, %d dirs, %d symlinks, %.1f MB",
        summary.files, summary.dirs, summary.symlinks, summary.size_mb,
    )
    for rel in summary.missing_essentials:
        logger.warning("Essential file missing from staging: %s", rel)
    return summary
