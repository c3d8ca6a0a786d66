"""License/provenance tracker.

A side accumulator fed by binary-copy and custom operations during a
registry pass. At the end of a fully successful pass it is flushed exactly
once: the license text of every package that contributed to the staging
tree is copied to ``usr/share/licenses/<package>/``.

Binary-to-package ownership comes from the upstream package database
(``lib/apk/db/installed``), a plain-text file of blank-line separated
records. Only its ``P:`` (package), ``F:`` (directory) and ``R:`` (file)
lines are read.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from acornforge.core.errors import BuildError

logger = logging.getLogger(__name__)

APK_DB_PATH = "lib/apk/db/installed"
LICENSES_DIR = "usr/share/licenses"

_BIN_DIRS = frozenset({"bin", "sbin", "usr/bin", "usr/sbin"})


@runtime_checkable
class LicenseSource(Protocol):
    """Supplies license text for a package name."""

    def license_files(self, package: str) -> dict[str, bytes]:
        """Map of file name to license text; empty if none is known."""
        ...


class UpstreamLicenseSource:
    """Reads ``usr/share/licenses/<package>/`` from the upstream tree."""

    def __init__(self, source_root: Path) -> None:
        self._root = Path(source_root) / LICENSES_DIR

    def license_files(self, package: str) -> dict[str, bytes]:
        pkg_dir = self._root / package
        if not pkg_dir.is_dir():
            return {}
        return {
            entry.name: entry.read_bytes()
            for entry in sorted(pkg_dir.iterdir())
            if entry.is_file()
        }


def parse_apk_installed(text: str) -> dict[str, str]:
    """Map each binary file name to the package that installed it.

    Only files under the binary directories are indexed. When two packages
    ship the same name the first record wins.
    """
    owners: dict[str, str] = {}
    package = ""
    directory = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            package = ""
            directory = ""
            continue
        key, _, value = line.partition(":")
        if key == "P":
            package = value
        elif key == "F":
            directory = value.strip("/")
        elif key == "R" and package and directory in _BIN_DIRS:
            owners.setdefault(value, package)
    return owners


class LicenseTracker:
    """Accumulates binaries and packages, then copies their license text.

    Parameters
    ----------
    package_db:
        Upstream package database text file. Binaries it does not know
        about are reported and otherwise ignored at flush time.
    """

    def __init__(self, package_db: Path | None = None) -> None:
        self._package_db = package_db
        self._binaries: list[str] = []
        self._packages: list[str] = []
        self._flushed = False

    @classmethod
    def for_source(cls, source_root: Path) -> LicenseTracker:
        return cls(Path(source_root) / APK_DB_PATH)

    # ------------------------------------------------------------------
    # Accumulate
    # ------------------------------------------------------------------

    def register_binary(self, name: str) -> None:
        if name not in self._binaries:
            self._binaries.append(name)

    def register_package(self, name: str) -> None:
        if name not in self._packages:
            self._packages.append(name)

    @property
    def binaries(self) -> tuple[str, ...]:
        return tuple(self._binaries)

    @property
    def flushed(self) -> bool:
        return self._flushed

    def packages(self) -> list[str]:
        """Registered packages plus the owners of registered binaries."""
        owners: dict[str, str] = {}
        if self._package_db is not None and self._package_db.is_file():
            owners = parse_apk_installed(
                self._package_db.read_text(encoding="utf-8", errors="replace")
            )
        result = list(self._packages)
        for binary in self._binaries:
            package = owners.get(binary)
            if package is None:
                logger.debug("No owning package recorded for binary %s", binary)
            elif package not in result:
                result.append(package)
        return sorted(result)

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self, staging: Path, source: LicenseSource) -> int:
        """Copy license text into *staging*; returns the number of packages.

        May be called once per tracker; a second call raises ``BuildError``.
        """
        if self._flushed:
            raise BuildError("License tracker was already flushed for this pass")
        self._flushed = True

        copied = 0
        for package in self.packages():
            files = source.license_files(package)
            if not files:
                logger.warning("No license text found for package %s", package)
                continue
            dest = Path(staging) / LICENSES_DIR / package
            dest.mkdir(parents=True, exist_ok=True)
            for name, text in files.items():
                (dest / name).write_bytes(text)
            copied += 1
        logger.info("Copied license text for %d package(s)", copied)
        return copied
