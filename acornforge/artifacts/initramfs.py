"""Tiny live initramfs builder.

The initramfs only has to find the boot medium, mount the EROFS image and
switch_root into it. It carries a static busybox, a handful of boot
modules and a templated ``/init``; everything else lives in the rootfs.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from acornforge import distro
from acornforge.artifacts import producers
from acornforge.config import BuildSettings
from acornforge.core.atomic import MinimumSize, build_atomic, remove_path
from acornforge.core.errors import BuildError, MissingRequiredInput
from acornforge.core.fingerprint import package_input, project_input, sidecar_path
from acornforge.custom.templates import render_template
from acornforge.models.artifacts import ArtifactKind, ArtifactSpec, WorkArtifact

logger = logging.getLogger(__name__)

INIT_TEMPLATE = "profile/init_tiny.template"
BUSYBOX_STATIC = "busybox-static"

# Tried in order; the first one present wins.
MODULE_EXTENSIONS: tuple[str, ...] = (".ko.zst", ".ko", ".ko.gz", ".ko.xz")

MODULE_METADATA: tuple[str, ...] = (
    "modules.dep",
    "modules.dep.bin",
    "modules.alias",
    "modules.alias.bin",
)


def artifact_spec(settings: BuildSettings) -> ArtifactSpec:
    base = settings.base_dir
    return ArtifactSpec(
        kind=ArtifactKind.INITRAMFS,
        artifact=settings.output_dir / distro.INITRAMFS_LIVE_OUTPUT,
        sidecar=sidecar_path(settings.output_dir, ArtifactKind.INITRAMFS),
        inputs=(
            project_input(base, INIT_TEMPLATE),
            project_input(base, settings.downloads_dir / BUSYBOX_STATIC),
            project_input(base, settings.source_rootfs / distro.KERNEL_SOURCE_PATH),
            package_input("distro.py"),
            package_input("custom/templates.py"),
            package_input("artifacts/producers.py"),
            package_input("artifacts/initramfs.py"),
        ),
        parameters={
            "iso_label": settings.iso_label,
            "cpio_gzip_level": str(settings.cpio_gzip_level),
        },
    )


def module_base(module: str) -> str:
    """Strip any kernel-module extension: ``a/b/erofs.ko.gz`` -> ``a/b/erofs``."""
    for ext in sorted(MODULE_EXTENSIONS, key=len, reverse=True):
        if module.endswith(ext):
            return module[: -len(ext)]
    return module


def module_names(modules: tuple[str, ...] = distro.BOOT_MODULES) -> list[str]:
    """Bare module names as ``modprobe`` expects them."""
    return [module_base(m).rsplit("/", 1)[-1] for m in modules]


# ------------------------------------------------------------------
# Tree assembly
# ------------------------------------------------------------------


def create_directory_structure(root: Path) -> None:
    for rel in distro.INITRAMFS_DIRS:
        (root / rel).mkdir(parents=True, exist_ok=True)
    (root / "dev/.note").write_text(
        "# Device nodes are created by devtmpfs at boot\n", encoding="utf-8"
    )


def copy_busybox(downloads_dir: Path, root: Path) -> int:
    """Install the static busybox and its command links; returns the link count."""
    source = downloads_dir / BUSYBOX_STATIC
    if not source.is_file():
        raise MissingRequiredInput(
            source, "place a statically linked busybox binary there"
        )
    target = root / "bin/busybox"
    shutil.copyfile(source, target)
    os.chmod(target, 0o755)

    created = 0
    for command in distro.INITRAMFS_BUSYBOX_COMMANDS:
        link = root / "bin" / command
        if os.path.lexists(link):
            continue
        os.symlink("busybox", link)
        created += 1
    logger.info("Busybox ready (%d commands)", len(distro.INITRAMFS_BUSYBOX_COMMANDS))
    return created


def find_kernel_version(modules_dir: Path) -> str:
    if not modules_dir.is_dir():
        raise MissingRequiredInput(modules_dir, "the upstream rootfs ships no kernel modules")
    versions = sorted(p.name for p in modules_dir.iterdir() if p.is_dir())
    if not versions:
        raise BuildError(f"No kernel version directory found in {modules_dir}")
    return versions[0]


def copy_boot_modules(source_rootfs: Path, root: Path) -> tuple[int, int]:
    """Copy the boot modules that exist; returns ``(copied, builtin)``.

    A module absent from the upstream tree is taken to be compiled into the
    kernel and is not an error.
    """
    modules_dir = source_rootfs / "lib/modules"
    kver = find_kernel_version(modules_dir)
    src_root = modules_dir / kver
    dst_root = root / "lib/modules" / kver
    dst_root.mkdir(parents=True, exist_ok=True)
    logger.info("Kernel version: %s", kver)

    copied = builtin = 0
    for module in distro.BOOT_MODULES:
        base = module_base(module)
        for ext in MODULE_EXTENSIONS:
            src = src_root / f"{base}{ext}"
            if src.is_file():
                dst = dst_root / f"{base}{ext}"
                dst.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(src, dst)
                copied += 1
                break
        else:
            logger.debug("Module %s not found, assuming built-in", base)
            builtin += 1

    for name in MODULE_METADATA:
        src = src_root / name
        if src.is_file():
            shutil.copyfile(src, dst_root / name)

    logger.info("Boot modules: %d copied, %d built-in", copied, builtin)
    return copied, builtin


def init_values(iso_label: str) -> dict[str, str]:
    return {
        "ISO_LABEL": iso_label,
        "ROOTFS_PATH": "/" + distro.ROOTFS_ISO_PATH,
        "BOOT_MODULES": " ".join(module_names()),
        "BOOT_DEVICES": " ".join(distro.BOOT_DEVICE_PROBE_ORDER),
        "LIVE_OVERLAY_PATH": "/" + distro.LIVE_OVERLAY_ISO_PATH,
    }


def create_init_script(base_dir: Path, root: Path, iso_label: str) -> None:
    template_path = base_dir / INIT_TEMPLATE
    try:
        template = template_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise MissingRequiredInput(template_path) from None
    init = root / "init"
    init.write_text(render_template(template, init_values(iso_label)), encoding="utf-8")
    os.chmod(init, 0o755)


# ------------------------------------------------------------------
# Build
# ------------------------------------------------------------------


def build_initramfs(settings: BuildSettings) -> Path:
    """Assemble the initramfs tree and pack it into ``initramfs-live.cpio.gz``."""
    output = settings.output_dir
    root = output / distro.INITRAMFS_BUILD_DIR
    archive = WorkArtifact.beside(output / distro.INITRAMFS_LIVE_OUTPUT)

    remove_path(root)
    root.mkdir(parents=True)
    create_directory_structure(root)
    copy_busybox(settings.downloads_dir, root)
    copy_boot_modules(settings.source_rootfs, root)
    create_init_script(settings.base_dir, root, settings.iso_label)

    build_atomic(
        archive.work_path,
        archive.final_path,
        lambda work: producers.build_cpio(root, work, settings.cpio_gzip_level),
        MinimumSize(distro.MIN_ARTIFACT_BYTES),
    )
    size_kb = archive.final_path.stat().st_size / 1024
    logger.info("Initramfs built: %s (%.0f KB)", archive.final_path, size_kb)
    return archive.final_path
