"""Filesystem-level custom operations: merged-usr links, /etc base files,
timezone data and the device manager."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from acornforge import distro
from acornforge.core.errors import BuildError
from acornforge.core.tracker import LicenseTracker
from acornforge.executor import binaries, services
from acornforge.executor.files import copy_tree, handle_symlink, handle_write_file
from acornforge.executor.users import GROUP, PASSWD, SHADOW, append_entry, seed_account_file
from acornforge.models.context import BuildContext

logger = logging.getLogger(__name__)

# Merged-usr layout: link path -> relative target.
FHS_SYMLINKS: tuple[tuple[str, str], ...] = (
    ("bin", "usr/bin"),
    ("sbin", "usr/sbin"),
    ("lib", "usr/lib"),
    ("var/run", "../run"),
    ("var/lock", "../run/lock"),
)


def _merge_into(src_dir: Path, dst_dir: Path) -> None:
    """Move the contents of a real directory into its merged-usr target."""
    dst_dir.mkdir(parents=True, exist_ok=True)
    for entry in sorted(src_dir.iterdir()):
        target = dst_dir / entry.name
        if target.exists() or target.is_symlink():
            if entry.is_dir() and not entry.is_symlink() and target.is_dir():
                _merge_into(entry, target)
                continue
            raise BuildError(f"Cannot merge {entry}: {target} already exists")
        shutil.move(str(entry), str(target))
    src_dir.rmdir()


def create_fhs_symlinks(ctx: BuildContext, tracker: LicenseTracker) -> None:
    staging = ctx.staging
    for link, target in FHS_SYMLINKS:
        full = staging / link
        resolved = full.parent / target
        if full.is_symlink():
            if os.readlink(full) == target:
                continue
            full.unlink()
        elif full.is_dir():
            _merge_into(full, resolved)
        resolved.mkdir(parents=True, exist_ok=True)
        handle_symlink(staging, link, target)


ROOT_ACCOUNTS: tuple[tuple[str, str, str], ...] = (
    (PASSWD, "root", f"root:x:0:0:root:/root:{distro.DEFAULT_SHELL}"),
    (GROUP, "root", "root:x:0:root"),
    (GROUP, "wheel", "wheel:x:10:root"),
    (GROUP, "tty", "tty:x:5:"),
    (GROUP, "disk", "disk:x:6:root"),
    (GROUP, "audio", "audio:x:18:"),
    (GROUP, "video", "video:x:27:root"),
    (GROUP, "input", "input:x:23:"),
    (GROUP, "users", "users:x:100:"),
)

PROFILE = """\
export PATH=/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin
export PAGER=less
umask 022

for script in /etc/profile.d/*.sh ; do
\tif [ -r "$script" ] ; then
\t\t. "$script"
\tfi
done
unset script
"""


def create_etc_files(ctx: BuildContext, tracker: LicenseTracker) -> None:
    """Base account files and shell profile.

    Account lines are appended only when missing, so re-running is a no-op.
    """
    staging = ctx.staging
    seed_account_file(ctx.source, staging, PASSWD)
    seed_account_file(ctx.source, staging, GROUP)
    shadow = seed_account_file(ctx.source, staging, SHADOW, mode=0o640)
    for rel, name, line in ROOT_ACCOUNTS:
        append_entry(staging / rel, name, line)
    append_entry(shadow, "root", "root:::0:::::")

    if not (staging / "etc/profile").exists():
        handle_write_file(staging, "etc/profile", PROFILE)
    if not (staging / "etc/resolv.conf").exists():
        handle_write_file(staging, "etc/resolv.conf", "")


def copy_timezone_data(ctx: BuildContext, tracker: LicenseTracker) -> None:
    if copy_tree(ctx.source / "usr/share/zoneinfo", ctx.staging / "usr/share/zoneinfo"):
        tracker.register_package("tzdata")
    handle_write_file(ctx.staging, "etc/timezone", "UTC\n")
    handle_symlink(ctx.staging, "etc/localtime", "/usr/share/zoneinfo/UTC")


# eudev init scripts and the runlevel each is enabled in.
UDEV_SERVICES: tuple[tuple[str, str], ...] = (
    ("udev", "sysinit"),
    ("udev-trigger", "sysinit"),
    ("udev-settle", "sysinit"),
    ("udev-postmount", "default"),
)


def setup_device_manager(ctx: BuildContext, tracker: LicenseTracker) -> None:
    """Install eudev: daemon, admin tool, init scripts, runlevel links."""
    binaries.copy_binary(ctx, "udevadm", "usr/bin")
    binaries.copy_binary(ctx, "udevd", "usr/sbin")
    tracker.register_binary("udevadm")
    tracker.register_binary("udevd")
    tracker.register_package("eudev")

    (ctx.staging / "etc/udev/rules.d").mkdir(parents=True, exist_ok=True)
    for script, runlevel in UDEV_SERVICES:
        services.copy_init_script(ctx.source, ctx.staging, script)
        services.enable_service(ctx.staging, script, runlevel)
