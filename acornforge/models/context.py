"""Build context shared by the executor and custom handlers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from acornforge.core.deps import LddLister
from acornforge.core.errors import MissingRequiredInput

# Where a named binary may live upstream, in lookup order.
BINARY_CANDIDATE_DIRS: tuple[str, ...] = ("usr/bin", "bin", "usr/sbin", "sbin")


class BuildContext(BaseModel):
    """Paths for one registry pass.

    ``source`` is the read-only upstream tree; ``staging`` is the single
    mutable tree being assembled, owned exclusively by one pass.

    Parameters
    ----------
    source:
        Extracted upstream root filesystem.
    staging:
        Tree the executor writes into.
    base_dir:
        Project checkout root.
    output:
        Directory holding final artifacts and their sidecars.
    dependency_lister:
        Lists shared-library dependencies of copied binaries.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source: Path
    staging: Path
    base_dir: Path
    output: Path
    dependency_lister: Any = Field(default_factory=LddLister)

    @classmethod
    def for_base_dir(
        cls,
        base_dir: Path,
        staging: Path,
        dependency_lister: Any = None,
    ) -> BuildContext:
        """Derive paths from the project root; the upstream tree must exist."""
        base_dir = Path(base_dir)
        source = base_dir / "downloads" / "rootfs"
        if not source.is_dir():
            raise MissingRequiredInput(
                source,
                hint="Extract the upstream root filesystem into downloads/rootfs first.",
            )
        extra = {} if dependency_lister is None else {"dependency_lister": dependency_lister}
        return cls(
            source=source,
            staging=Path(staging),
            base_dir=base_dir,
            output=base_dir / "output",
            **extra,
        )

    def lib_path(self) -> str:
        """Library directory of the musl userland."""
        return "usr/lib"

    def source_exists(self, rel: str) -> bool:
        return (self.source / rel).exists()

    def find_binary(self, name: str) -> Path | None:
        """Relative upstream path of *name*, or None.

        Symlinks count even when dangling; applet aliases often point at an
        absolute path that only resolves inside the final image.
        """
        for directory in BINARY_CANDIDATE_DIRS:
            candidate = Path(directory) / name
            full = self.source / candidate
            if full.is_symlink() or full.exists():
                return candidate
        return None
