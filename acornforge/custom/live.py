"""Live-image custom operations: welcome message, overlay mount points and
the installer tool."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from acornforge import distro
from acornforge.core.tracker import LicenseTracker
from acornforge.executor.files import handle_write_file
from acornforge.models.context import BuildContext

logger = logging.getLogger(__name__)

WELCOME_SCRIPT = f"""\
#!/bin/sh
# Welcome script for {distro.OS_NAME} Live

echo ""
echo "Welcome to {distro.OS_NAME} Live!"
echo ""
echo "To install {distro.OS_NAME} to disk:"
echo "  1. Partition your disk (fdisk, parted, or gdisk)"
echo "  2. Run: recstrap /dev/sdX"
echo ""
echo "For help visit {distro.DOCS_URL}"
echo ""
"""

RECSTRAP_PLACEHOLDER = f"""\
#!/bin/sh
# recstrap - {distro.OS_NAME} installer
#
# The recstrap binary was not found during build.
# To install {distro.OS_NAME} manually:
#
# 1. Partition your disk:
#    fdisk /dev/sdX
#    # Create: 512MB EFI partition (type EFI System)
#    # Create: Rest as Linux partition
#
# 2. Format partitions:
#    mkfs.fat -F32 /dev/sdX1
#    mkfs.ext4 /dev/sdX2
#
# 3. Mount and extract:
#    mount /dev/sdX2 /mnt
#    mkdir -p /mnt/boot/efi
#    mount /dev/sdX1 /mnt/boot/efi
#    mkdir -p /tmp/erofs
#    mount -t erofs /media/cdrom/{distro.ROOTFS_ISO_PATH} /tmp/erofs
#    cp -a /tmp/erofs/* /mnt/
#
# 4. Install a bootloader and set the root password, then reboot.

echo "recstrap binary not available - see script for manual install instructions"
echo "View this script: cat /usr/bin/recstrap"
exit 1
"""

INSTALLER_TOOLS: tuple[str, ...] = ("recstrap", "recfstab", "recchroot")


def create_welcome_message(ctx: BuildContext, tracker: LicenseTracker) -> None:
    staging = ctx.staging
    handle_write_file(staging, "etc/issue.net", distro.LIVE_ISSUE_MESSAGE)
    handle_write_file(staging, "etc/profile.d/welcome.sh", WELCOME_SCRIPT, 0o755)

    # Declared profile scripts only; any of them may be absent.
    overlay = ctx.base_dir / distro.PROFILE_SCRIPTS_DIR
    for name in distro.PROFILE_SCRIPTS:
        entry = overlay / name
        if entry.is_file():
            dst = staging / "etc/profile.d" / name
            shutil.copyfile(entry, dst)
            os.chmod(dst, 0o755)


def create_live_overlay(ctx: BuildContext, tracker: LicenseTracker) -> None:
    """Mount points the initramfs overlay needs inside the read-only image."""
    (ctx.staging / "run").mkdir(parents=True, exist_ok=True)
    tmp = ctx.staging / "tmp"
    tmp.mkdir(parents=True, exist_ok=True)
    os.chmod(tmp, 0o1777)


def _tool_candidates(base_dir: Path, tool: str) -> list[Path]:
    return [
        base_dir / f"../tools/{tool}/target/release/{tool}",
        base_dir / f"../target/release/{tool}",
    ]


def copy_recstrap(ctx: BuildContext, tracker: LicenseTracker) -> list[str]:
    """Install the installer tools, or a placeholder recstrap script.

    Returns the names of the tools that were found and copied.
    """
    bin_dir = ctx.staging / "usr/bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    copied: list[str] = []
    for tool in INSTALLER_TOOLS:
        for candidate in _tool_candidates(ctx.base_dir, tool):
            if candidate.is_file():
                dst = bin_dir / tool
                if dst.is_symlink():
                    dst.unlink()
                shutil.copyfile(candidate, dst)
                os.chmod(dst, 0o755)
                copied.append(tool)
                logger.info("Copied %s installer tool", tool)
                break

    if "recstrap" not in copied:
        handle_write_file(ctx.staging, "usr/bin/recstrap", RECSTRAP_PLACEHOLDER, 0o755)
        logger.info("Created recstrap placeholder (binary not found)")
    return copied
