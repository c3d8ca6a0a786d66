"""Shared-library dependency discovery.

The executor asks a ``DependencyLister`` for the runtime libraries of each
copied binary. No output, or a failed probe, means "statically linked".
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from acornforge.core.process import run_capture

logger = logging.getLogger(__name__)


@runtime_checkable
class DependencyLister(Protocol):
    """Anything that can list a binary's shared-library dependencies.

    Implementations return absolute library paths as seen by the loader,
    e.g. ``/lib/ld-musl-x86_64.so.1``. An empty list is a valid answer.
    """

    def list_libraries(self, binary: Path) -> list[str]:
        ...


def parse_ldd_output(text: str) -> list[str]:
    """Extract absolute library paths from ``ldd``-style output.

    Handles both ``libc.so => /lib/libc.so (0x...)`` and the bare
    ``/lib/ld-musl-x86_64.so.1 (0x...)`` interpreter line. Entries with no
    resolved path (``linux-vdso.so.1 (0x...)``, ``=> not found``) are
    skipped. Order is preserved and duplicates dropped.
    """
    libs: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if "=>" in line:
            info = line.split("=>", 1)[1].strip()
        elif line.startswith("/"):
            info = line
        else:
            continue
        path = info.split("(", 1)[0].strip()
        if path.startswith("/") and path not in libs:
            libs.append(path)
    return libs


class LddLister:
    """Default lister: runs ``ldd`` (allowed to fail) and parses its output."""

    def __init__(self, command: str = "ldd") -> None:
        self.command = command

    def list_libraries(self, binary: Path) -> list[str]:
        result = run_capture([self.command, binary], allow_fail=True)
        if result.returncode != 0:
            logger.debug("%s reported no dependencies for %s", self.command, binary)
            return []
        return parse_ldd_output(result.stdout.decode("utf-8", errors="replace"))
