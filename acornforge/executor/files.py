"""File, symlink and copy operations."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from acornforge.core.errors import BuildError, MissingRequiredInput

logger = logging.getLogger(__name__)


def _clear(path: Path) -> None:
    """Remove a file or symlink occupying *path*; refuse real directories."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        raise BuildError(f"Refusing to replace directory {path}")


def handle_write_file(staging: Path, path: str, content: str, mode: int | None = None) -> None:
    """Always overwrite; a later phase replaces an earlier phase's file."""
    full = staging / path
    full.parent.mkdir(parents=True, exist_ok=True)
    if full.is_symlink():
        full.unlink()
    full.write_text(content, encoding="utf-8")
    if mode is not None:
        os.chmod(full, mode)


def handle_symlink(staging: Path, link: str, target: str) -> None:
    """Create ``link -> target``, replacing whatever is there.

    Components may compete for the same link path; the last writer in
    phase order wins.
    """
    full = staging / link
    full.parent.mkdir(parents=True, exist_ok=True)
    _clear(full)
    os.symlink(target, full)


def copy_entry(src: Path, dst: Path) -> None:
    """Copy one file, recreating it as a symlink if *src* is one."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    _clear(dst)
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy2(src, dst)


def handle_copy_file(source: Path, staging: Path, path: str) -> None:
    """Required single-file copy; there is no optional mode."""
    src = source / path
    if not (src.exists() or src.is_symlink()):
        raise MissingRequiredInput(src)
    copy_entry(src, staging / path)


def copy_tree(src: Path, dst: Path) -> bool:
    """Recursively copy *src* onto *dst*, preserving symlinks.

    A missing source is logged and skipped; returns False in that case.
    """
    if not src.exists():
        logger.warning("copy_tree: source not found: %s", src)
        return False

    if src.is_file():
        copy_entry(src, dst)
        return True

    dst.mkdir(parents=True, exist_ok=True)
    for entry in sorted(src.iterdir()):
        target = dst / entry.name
        if entry.is_symlink():
            copy_entry(entry, target)
        elif entry.is_dir():
            # A merged-usr link such as lib -> usr/lib is copied through.
            if target.is_symlink() and not target.is_dir():
                target.unlink()
            copy_tree(entry, target)
        else:
            copy_entry(entry, target)
    return True
