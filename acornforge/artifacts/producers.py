"""External image/archive producers.

Thin wrappers over host tools. Each takes a source, an output path and a
few scalar options, and either leaves a complete file at the output path or
raises ``ChildProcessFailure``. None of them does any atomic promotion; the
callers run them as producers inside ``build_atomic``.
"""

from __future__ import annotations

import gzip
import hashlib
import logging
import os
from pathlib import Path

from acornforge.core.process import exists, run_capture, run_interactive

logger = logging.getLogger(__name__)


def create_erofs(
    source: Path,
    output: Path,
    compression: str,
    level: int,
    chunk_size: int,
) -> None:
    """Pack *source* into an EROFS image (needs erofs-utils 1.5+ for lz4hc)."""
    logger.info("Creating EROFS from %s (%s level %d)", source, compression, level)
    run_interactive([
        "mkfs.erofs",
        f"-z{compression},{level}",
        f"-C{chunk_size}",
        "--all-root",
        output,
        source,
    ])


def _cpio_file_list(root: Path) -> bytes:
    """NUL-separated, sorted entry list relative to *root*."""
    entries: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, root)
        for name in [*dirnames, *sorted(filenames)]:
            entries.append(os.path.normpath(os.path.join(rel_dir, name)))
    return b"".join(e.encode() + b"\0" for e in sorted(entries))


def build_cpio(root: Path, output: Path, gzip_level: int) -> None:
    """newc cpio archive of *root*, gzip-compressed with a fixed header mtime."""
    logger.info("Creating cpio archive from %s", root)
    result = run_capture(
        ["cpio", "-o", "-H", "newc", "--null", "--quiet", "-R", "0:0"],
        cwd=root,
        input=_cpio_file_list(root),
    )
    with open(output, "wb") as raw:
        with gzip.GzipFile(fileobj=raw, mode="wb", compresslevel=gzip_level, mtime=0) as gz:
            gz.write(result.stdout)


def run_xorriso(root: Path, output: Path, label: str, efiboot: str) -> None:
    """Hybrid UEFI-bootable ISO of *root*; *efiboot* is relative to *root*."""
    logger.info("Creating ISO %s (label %s)", output.name, label)
    run_interactive([
        "xorriso", "-as", "mkisofs",
        "-o", output,
        "-V", label,
        "-R", "-J",
        "-e", efiboot,
        "-no-emul-boot",
        "-isohybrid-gpt-basdat",
        root,
    ])


def create_fat_image(image: Path, size_mb: int) -> None:
    """Empty FAT16 image of *size_mb* MiB with EFI/BOOT created inside."""
    if image.exists():
        image.unlink()
    run_capture(["mkfs.fat", "-C", "-F", "16", image, str(size_mb * 1024)])
    run_capture(["mmd", "-i", image, "::EFI", "::EFI/BOOT"])


def mcopy_to_fat(image: Path, source: Path, destination: str) -> None:
    run_capture(["mcopy", "-o", "-i", image, source, destination])


def grub_mkstandalone(output: Path, embedded_cfg: Path) -> None:
    """Standalone x86_64 GRUB EFI binary that chains to /EFI/BOOT/grub.cfg."""
    tool = "grub2-mkstandalone" if exists("grub2-mkstandalone") else "grub-mkstandalone"
    run_capture([
        tool,
        "--format=x86_64-efi",
        "--output", output,
        "--locales=",
        "--fonts=",
        f"boot/grub/grub.cfg={embedded_cfg}",
    ])


def write_checksum(artifact: Path, output: Path, name: str | None = None) -> str:
    """Write a ``sha512sum``-compatible line for *artifact*; returns the digest.

    *name* is the file name recorded in the line, defaulting to the
    artifact's own name (pass the final name when hashing a work file).
    """
    hasher = hashlib.sha512()
    with open(artifact, "rb") as fh:
        for chunk in iter(lambda: fh.read(1024 * 1024), b""):
            hasher.update(chunk)
    digest = hasher.hexdigest()
    output.write_text(f"{digest}  {name or artifact.name}\n", encoding="utf-8")
    return digest
