"""Binary copy with transitive shared-library discovery."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable

from acornforge.core.errors import AggregateMissingBinaries, BuildError, MissingRequiredInput
from acornforge.core.tracker import LicenseTracker
from acornforge.executor.files import copy_entry
from acornforge.models.context import BINARY_CANDIDATE_DIRS, BuildContext

logger = logging.getLogger(__name__)

# Upstream directories searched by file name when a library is not found
# at the exact path the lister reported.
LIBRARY_SEARCH_DIRS: tuple[str, ...] = ("lib", "usr/lib", "lib64", "usr/lib64")

# Guards against symlink cycles in the upstream tree.
_MAX_LINK_DEPTH = 16


def copy_binary(ctx: BuildContext, name: str, dest_dir: str) -> Path:
    """Copy binary *name* into ``staging/dest_dir`` with its libraries.

    An upstream symlink (an applet alias) is recreated as a symlink rather
    than copied. Returns the staged path.
    """
    rel = ctx.find_binary(name)
    if rel is None:
        searched = ", ".join(f"{d}/{name}" for d in BINARY_CANDIDATE_DIRS)
        raise MissingRequiredInput(ctx.source / "usr/bin" / name, hint=f"Searched: {searched}")

    src = ctx.source / rel
    dst = ctx.staging / dest_dir / name
    copy_entry(src, dst)
    if src.is_symlink():
        logger.debug("Linked %s -> %s", dst, os.readlink(src))
        return dst

    os.chmod(dst, 0o755)
    copy_libraries(ctx, src)
    return dst


def copy_libraries(ctx: BuildContext, binary: Path) -> list[str]:
    """Copy every library *binary* links against into staging."""
    libraries = ctx.dependency_lister.list_libraries(binary)
    for library in libraries:
        copy_library(ctx, library)
    return libraries


def _locate_library(ctx: BuildContext, library: str) -> Path:
    src = ctx.source / library.lstrip("/")
    if src.exists() or src.is_symlink():
        return src
    name = Path(library).name
    for directory in LIBRARY_SEARCH_DIRS:
        candidate = ctx.source / directory / name
        if candidate.exists() or candidate.is_symlink():
            return candidate
    raise MissingRequiredInput(src, hint=f"Library {name} is not in the upstream tree")


def copy_library(ctx: BuildContext, library: str) -> None:
    """Copy one library to ``staging/<absolute path>`` unless present.

    Symlink chains (``libfoo.so.1 -> libfoo.so.1.2``) are recreated link
    by link, with each link's target copied as well.
    """
    dst = ctx.staging / library.lstrip("/")
    if dst.exists() or dst.is_symlink():
        return
    src = _locate_library(ctx, library)

    for _ in range(_MAX_LINK_DEPTH):
        dst.parent.mkdir(parents=True, exist_ok=True)
        if not src.is_symlink():
            if not src.exists():
                raise MissingRequiredInput(src)
            shutil.copy2(src, dst)
            return
        target = os.readlink(src)
        os.symlink(target, dst)
        if os.path.isabs(target):
            src = ctx.source / target.lstrip("/")
            dst = ctx.staging / target.lstrip("/")
        else:
            src = src.parent / target
            dst = dst.parent / target
        if dst.exists() or dst.is_symlink():
            return
    raise BuildError(f"Too many levels of symbolic links copying {library}")


def copy_binaries(
    ctx: BuildContext,
    names: Iterable[str],
    dest_dir: str,
    tracker: LicenseTracker,
) -> None:
    """Copy a batch; every failure is collected before raising."""
    failures: dict[str, str] = {}
    for name in names:
        try:
            copy_binary(ctx, name, dest_dir)
        except BuildError as exc:
            failures[name] = str(exc)
        else:
            tracker.register_binary(name)
    if failures:
        raise AggregateMissingBinaries(failures, dest_dir)
