"""Directory operations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable


def handle_dir(staging: Path, path: str) -> None:
    (staging / path).mkdir(parents=True, exist_ok=True)


def handle_dir_mode(staging: Path, path: str, mode: int) -> None:
    """Create if missing, then re-apply *mode* even if it already existed.

    A later phase relies on this to restore sticky or restricted bits that
    an earlier, generic phase did not set.
    """
    full = staging / path
    full.mkdir(parents=True, exist_ok=True)
    os.chmod(full, mode)


def handle_dirs(staging: Path, paths: Iterable[str]) -> None:
    for path in paths:
        handle_dir(staging, path)
