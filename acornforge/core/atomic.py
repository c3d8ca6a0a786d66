"""Atomic artifact builder: work/final promotion.

A producer writes to ``work_path``; only after it returns and a sanity check
passes is ``final_path`` replaced by renaming ``work_path`` onto it. On any
failure the work path is deleted and ``final_path`` is left untouched, so an
interrupted or failed attempt can never damage a previous good artifact.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Protocol, Sequence, runtime_checkable

from acornforge.core.errors import SanityCheckFailure

logger = logging.getLogger(__name__)

Producer = Callable[[Path], None]


@runtime_checkable
class SanityCheck(Protocol):
    """Post-production verification; returns a list of problems."""

    def problems(self, path: Path) -> list[str]:
        ...


class MinimumSize:
    """A single-file artifact must be at least ``min_bytes`` long."""

    def __init__(self, min_bytes: int) -> None:
        self.min_bytes = min_bytes

    def problems(self, path: Path) -> list[str]:
        if not path.is_file():
            return [f"{path.name} is not a regular file"]
        size = path.stat().st_size
        if size < self.min_bytes:
            return [f"{path.name} is {size} bytes, expected at least {self.min_bytes}"]
        return []


class RequiredEntries:
    """A directory artifact must contain every named entry.

    Entries are relative paths; a symlink counts as present even when its
    target only resolves inside the finished image.
    """

    def __init__(self, entries: Sequence[str]) -> None:
        self.entries = tuple(entries)

    def problems(self, path: Path) -> list[str]:
        if not path.is_dir():
            return [f"{path.name} is not a directory"]
        return [
            f"missing required entry {entry}"
            for entry in self.entries
            if not os.path.lexists(path / entry)
        ]


def remove_path(path: Path) -> None:
    """Delete a file, symlink or directory tree if present."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def build_atomic(
    work_path: Path,
    final_path: Path,
    producer: Producer,
    sanity: SanityCheck | None = None,
    *,
    is_dir: bool = False,
) -> Path:
    """Run *producer* into *work_path* and promote it onto *final_path*.

    Returns *final_path*. Raises the producer's exception or
    ``SanityCheckFailure``; in both cases *work_path* no longer exists and
    *final_path* is exactly as it was.
    """
    work_path = Path(work_path)
    final_path = Path(final_path)

    remove_path(work_path)
    work_path.parent.mkdir(parents=True, exist_ok=True)
    if is_dir:
        work_path.mkdir()

    try:
        producer(work_path)
        if not (work_path.exists() or work_path.is_symlink()):
            raise SanityCheckFailure(work_path, ["producer did not create any output"])
        if sanity is not None:
            problems = sanity.problems(work_path)
            if problems:
                raise SanityCheckFailure(final_path, problems)
    except BaseException:
        logger.debug("Discarding work path %s", work_path)
        remove_path(work_path)
        raise

    final_path.parent.mkdir(parents=True, exist_ok=True)
    remove_path(final_path)
    os.rename(work_path, final_path)
    logger.info("Promoted %s", final_path)
    return final_path
