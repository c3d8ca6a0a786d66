"""Test doubles and small filesystem helpers shared by the test modules."""

from __future__ import annotations

import os
from pathlib import Path

KERNEL_VERSION = "6.6.58-0-lts"


class FakeLister:
    """Dependency lister with canned answers; records every probe."""

    def __init__(self, libraries: dict[str, list[str]] | None = None) -> None:
        self.libraries = libraries or {}
        self.calls: list[Path] = []

    def list_libraries(self, binary: Path) -> list[str]:
        self.calls.append(binary)
        return list(self.libraries.get(binary.name, []))


def write_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, 0o755)
    return path
