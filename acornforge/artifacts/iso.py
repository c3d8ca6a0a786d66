"""Bootable live ISO builder.

The ISO carries the kernel, the tiny initramfs, the EROFS rootfs and a
small live overlay (autologin, serial console, empty root password) that
``/init`` stacks between the rootfs and a tmpfs upper layer. Boot is UEFI
only, through GRUB on an embedded FAT image.

The ISO and its detached SHA-512 checksum are promoted together: the
checksum is computed from the work file and only moved into place once the
ISO itself has been promoted.
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
from acornforge.core.errors import MissingRequiredInput
from acornforge.core.fingerprint import package_input, project_input, sidecar_path
from acornforge.executor.files import copy_tree
from acornforge.models.artifacts import ArtifactKind, ArtifactSpec, WorkArtifact

logger = logging.getLogger(__name__)

ISO_CONTENTS_EFI = "iso-contents/efi/boot/bootx64.efi"
GRUB_EMBED_CFG = "configfile /EFI/BOOT/grub.cfg\n"
KERNEL_MODULES_ARG = (
    "modules=loop,erofs,overlay,virtio_pci,virtio_blk,virtio_scsi,"
    "sd-mod,sr-mod,cdrom,isofs"
)


def checksum_path(iso: Path) -> Path:
    """``acornos.iso`` -> ``acornos.sha512``."""
    return iso.with_suffix(distro.ISO_CHECKSUM_SUFFIX)


def input_paths(settings: BuildSettings) -> dict[str, Path]:
    output = settings.output_dir
    return {
        "rootfs": output / distro.ROOTFS_NAME,
        "initramfs": output / distro.INITRAMFS_LIVE_OUTPUT,
        "kernel": settings.source_rootfs / distro.KERNEL_SOURCE_PATH,
    }


def artifact_spec(settings: BuildSettings) -> ArtifactSpec:
    """The packaged artifacts are both content inputs and mtime upstreams."""
    base = settings.base_dir
    paths = input_paths(settings)
    return ArtifactSpec(
        kind=ArtifactKind.ISO,
        artifact=settings.output_dir / distro.ISO_FILENAME,
        sidecar=sidecar_path(settings.output_dir, ArtifactKind.ISO),
        inputs=(
            *(project_input(base, path) for path in paths.values()),
            project_input(base, settings.downloads_dir / ISO_CONTENTS_EFI, optional=True),
            *(
                project_input(base, f"{distro.PROFILE_SCRIPTS_DIR}/{name}", optional=True)
                for name in distro.PROFILE_SCRIPTS
            ),
            package_input("distro.py"),
            package_input("artifacts/producers.py"),
            package_input("artifacts/iso.py"),
        ),
        parameters={"iso_label": settings.iso_label},
        upstreams=tuple(paths.values()),
    )


def validate_inputs(settings: BuildSettings) -> dict[str, Path]:
    hints = {
        "rootfs": "run 'acornforge rootfs' first",
        "initramfs": "run 'acornforge initramfs' first",
        "kernel": "the upstream rootfs must ship the linux-lts kernel",
    }
    paths = input_paths(settings)
    for name, path in paths.items():
        if not path.is_file():
            raise MissingRequiredInput(path, hints[name])
    return paths


# ------------------------------------------------------------------
# Live overlay
# ------------------------------------------------------------------

SERIAL_AUTOLOGIN = """\
#!/bin/sh
# Autologin for the serial console, started by getty -l.
echo "[autologin] Starting login shell..."
exec /bin/sh -l
"""

LIVE_ISSUE = f"\n{distro.OS_NAME} Live - \\l\n\nLogin as 'root' (no password)\n\n"

LIVE_SHADOW = """\
root::0:0:99999:7:::
bin:!:0:0:99999:7:::
daemon:!:0:0:99999:7:::
nobody:!:0:0:99999:7:::
"""

OVERLAY_INITTAB = f"""\
# /etc/inittab - {distro.OS_NAME} Live

::sysinit:/sbin/openrc sysinit
::sysinit:/sbin/openrc boot
::wait:/sbin/openrc default

# Virtual terminals
tty1::respawn:/sbin/getty 38400 tty1
tty2::respawn:/sbin/getty 38400 tty2
tty3::respawn:/sbin/getty 38400 tty3
tty4::respawn:/sbin/getty 38400 tty4
tty5::respawn:/sbin/getty 38400 tty5
tty6::respawn:/sbin/getty 38400 tty6

# Serial console with autologin
ttyS0::respawn:/sbin/getty -n -l /usr/local/bin/serial-autologin 115200 ttyS0 vt100

::ctrlaltdel:/sbin/reboot
::shutdown:/sbin/openrc shutdown
"""

OVERLAY_FSTAB = f"""\
# {distro.OS_NAME} Live fstab
# Volatile log storage, keeps logs from filling the overlay tmpfs
tmpfs   /var/log    tmpfs   nosuid,nodev,noexec,size=64M,mode=0755   0 0
"""

VOLATILE_LOG_SCRIPT = """\
#!/bin/sh
# Volatile /var/log for the live session.
if ! mountpoint -q /var/log 2>/dev/null; then
    if [ -d /var/log ]; then
        mkdir -p /tmp/log-backup
        cp -a /var/log/* /tmp/log-backup/ 2>/dev/null || true
    fi
    mount -t tmpfs -o nosuid,nodev,noexec,size=64M,mode=0755 tmpfs /var/log
    if [ -d /tmp/log-backup ]; then
        cp -a /tmp/log-backup/* /var/log/ 2>/dev/null || true
        rm -rf /tmp/log-backup
    fi
    mkdir -p /var/log/chrony 2>/dev/null || true
fi
"""

EFIVARFS_SCRIPT = """\
#!/bin/sh
# Mount efivarfs when booted through UEFI.
if [ -d /sys/firmware/efi ]; then
    mkdir -p /sys/firmware/efi/efivars 2>/dev/null
    mount -t efivarfs efivarfs /sys/firmware/efi/efivars 2>/dev/null || true
fi
"""

ACPI_HANDLER = f"""\
#!/bin/sh
# {distro.OS_NAME} Live: power button and lid never suspend.
case "$1" in
    button/power)
        logger "{distro.OS_NAME} Live: Power button pressed (suspend disabled)"
        ;;
    button/lid)
        logger "{distro.OS_NAME} Live: Lid event ignored (suspend disabled)"
        ;;
esac
"""

SYSCTL_NO_SUSPEND = f"""\
# {distro.OS_NAME} Live: disable suspend
kernel.sysrq = 1
"""

LOGIND_NO_SUSPEND = f"""\
# {distro.OS_NAME} Live: disable suspend triggers
[Login]
HandlePowerKey=ignore
HandleSuspendKey=ignore
HandleHibernateKey=ignore
HandleLidSwitch=ignore
HandleLidSwitchExternalPower=ignore
HandleLidSwitchDocked=ignore
IdleAction=ignore
"""

# (relative path, content, mode or None)
OVERLAY_FILES: tuple[tuple[str, str, int | None], ...] = (
    ("usr/local/bin/serial-autologin", SERIAL_AUTOLOGIN, 0o755),
    ("etc/issue", LIVE_ISSUE, None),
    ("etc/shadow", LIVE_SHADOW, 0o640),
    ("etc/inittab", OVERLAY_INITTAB, None),
    ("etc/fstab", OVERLAY_FSTAB, None),
    ("etc/local.d/00-volatile-log.start", VOLATILE_LOG_SCRIPT, 0o755),
    ("etc/local.d/01-efivarfs.start", EFIVARFS_SCRIPT, 0o755),
    ("etc/acpi/handler.sh", ACPI_HANDLER, 0o755),
    ("etc/sysctl.d/50-live-no-suspend.conf", SYSCTL_NO_SUSPEND, None),
    ("etc/elogind/logind.conf.d/00-live-no-suspend.conf", LOGIND_NO_SUSPEND, None),
)

OVERLAY_DIRS: tuple[str, ...] = ("etc/runlevels/default", "etc/conf.d")


def create_live_overlay(base_dir: Path, output_dir: Path) -> Path:
    """Regenerate ``output/live-overlay``.

    ``profile/live-overlay`` is copied first so the generated files always
    win over a profile file at the same path.
    """
    overlay = output_dir / distro.LIVE_OVERLAY_DIR
    remove_path(overlay)
    overlay.mkdir(parents=True)

    profile_overlay = base_dir / "profile/live-overlay"
    if profile_overlay.is_dir():
        logger.info("Copying %s", profile_overlay)
        copy_tree(profile_overlay, overlay)

    for rel, content, mode in OVERLAY_FILES:
        path = overlay / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.is_symlink():
            path.unlink()
        path.write_text(content, encoding="utf-8")
        if mode is not None:
            os.chmod(path, mode)
    for rel in OVERLAY_DIRS:
        (overlay / rel).mkdir(parents=True, exist_ok=True)

    logger.info("Live overlay created at %s", overlay)
    return overlay


# ------------------------------------------------------------------
# ISO tree
# ------------------------------------------------------------------


def setup_iso_structure(iso_root: Path) -> None:
    remove_path(iso_root)
    for rel in ("boot/grub", "live", distro.ISO_EFI_DIR):
        (iso_root / rel).mkdir(parents=True, exist_ok=True)


def copy_iso_artifacts(paths: dict[str, Path], overlay: Path, iso_root: Path) -> None:
    shutil.copyfile(paths["kernel"], iso_root / distro.KERNEL_ISO_PATH)
    shutil.copyfile(paths["initramfs"], iso_root / distro.INITRAMFS_LIVE_ISO_PATH)
    shutil.copyfile(paths["rootfs"], iso_root / distro.ROOTFS_ISO_PATH)
    if not overlay.is_dir():
        raise MissingRequiredInput(overlay, "the live overlay was not generated")
    shutil.copytree(overlay, iso_root / distro.LIVE_OVERLAY_ISO_PATH, symlinks=True)


def grub_config(label: str) -> str:
    """GRUB menu with normal, emergency-shell and debug entries."""
    kernel_args = (
        f"{KERNEL_MODULES_ARG} root=LABEL={label} "
        f"{distro.VGA_CONSOLE} {distro.SERIAL_CONSOLE}"
    )
    entries = []
    for suffix, extra in (("", ""), (" (Emergency Shell)", " emergency"), (" (Debug)", " debug")):
        entries.append(
            f"menuentry '{distro.OS_NAME}{suffix}' {{\n"
            f"    linux /{distro.KERNEL_ISO_PATH} {kernel_args}{extra}\n"
            f"    initrd /{distro.INITRAMFS_LIVE_ISO_PATH}\n"
            "}\n"
        )
    header = (
        "# Serial console\n"
        "serial --speed=115200 --unit=0 --word=8 --parity=no --stop=1\n"
        "terminal_input serial console\n"
        "terminal_output serial console\n"
        "\n"
        "set default=0\n"
        "set timeout=5\n"
        "\n"
    )
    return header + "\n".join(entries)


def setup_uefi_boot(settings: BuildSettings, iso_root: Path) -> None:
    efi_dir = iso_root / distro.ISO_EFI_DIR
    bootloader = efi_dir / distro.EFI_BOOTLOADER

    shipped = settings.downloads_dir / ISO_CONTENTS_EFI
    if shipped.is_file():
        logger.info("Using EFI bootloader from %s", shipped)
        shutil.copyfile(shipped, bootloader)
    else:
        logger.info("Creating GRUB EFI bootloader")
        embedded = settings.output_dir / "grub-embed.cfg"
        embedded.write_text(GRUB_EMBED_CFG, encoding="utf-8")
        producers.grub_mkstandalone(bootloader, embedded)

    cfg = grub_config(settings.iso_label)
    (iso_root / "boot/grub/grub.cfg").write_text(cfg, encoding="utf-8")
    (efi_dir / "grub.cfg").write_text(cfg, encoding="utf-8")

    efiboot = settings.output_dir / distro.EFIBOOT_FILENAME
    producers.create_fat_image(efiboot, distro.EFIBOOT_SIZE_MB)
    producers.mcopy_to_fat(efiboot, bootloader, "::EFI/BOOT/")
    producers.mcopy_to_fat(efiboot, efi_dir / "grub.cfg", "::EFI/BOOT/")
    shutil.copyfile(efiboot, iso_root / distro.EFIBOOT_FILENAME)


# ------------------------------------------------------------------
# Build
# ------------------------------------------------------------------


def build_iso(settings: BuildSettings) -> Path:
    """Build ``acornos.iso`` and ``acornos.sha512``; returns the ISO path."""
    paths = validate_inputs(settings)
    output = settings.output_dir
    iso_root = output / distro.ISO_ROOT_DIR
    iso = WorkArtifact.beside(output / distro.ISO_FILENAME)
    checksum = WorkArtifact.beside(checksum_path(iso.final_path))

    overlay = create_live_overlay(settings.base_dir, output)
    setup_iso_structure(iso_root)
    copy_iso_artifacts(paths, overlay, iso_root)
    setup_uefi_boot(settings, iso_root)

    def produce(work: Path) -> None:
        producers.run_xorriso(iso_root, work, settings.iso_label, distro.EFIBOOT_FILENAME)
        producers.write_checksum(work, checksum.work_path, name=iso.final_path.name)

    remove_path(checksum.work_path)
    try:
        build_atomic(
            iso.work_path, iso.final_path, produce, MinimumSize(distro.MIN_ARTIFACT_BYTES)
        )
    except BaseException:
        remove_path(checksum.work_path)
        raise
    os.replace(checksum.work_path, checksum.final_path)

    size_mb = iso.final_path.stat().st_size / (1024 * 1024)
    logger.info(
        "ISO created: %s (%.0f MB, label %s)", iso.final_path, size_mb, settings.iso_label
    )
    return iso.final_path
