"""Firmware and kernel module merges."""

from __future__ import annotations

import logging
from pathlib import Path

from acornforge.core.errors import MissingRequiredInput
from acornforge.core.tracker import LicenseTracker
from acornforge.executor.files import copy_entry, copy_tree
from acornforge.models.context import BuildContext

logger = logging.getLogger(__name__)

FIRMWARE_DIRS: tuple[str, ...] = ("lib/firmware", "usr/lib/firmware")
MODULES_DIRS: tuple[str, ...] = ("lib/modules", "usr/lib/modules")

# Firmware entries needed by the common laptop Wi-Fi chipsets.
WIFI_FIRMWARE_PREFIXES: tuple[str, ...] = (
    "iwlwifi-",
    "ath9k_htc",
    "ath10k",
    "ath11k",
    "brcm",
    "mediatek",
    "mt76",
    "rtlwifi",
    "rtw88",
    "rtw89",
    "regulatory.db",
)


def _first_dir(root: Path, candidates: tuple[str, ...]) -> Path | None:
    for rel in candidates:
        if (root / rel).is_dir():
            return root / rel
    return None


def copy_wifi_firmware(ctx: BuildContext, tracker: LicenseTracker) -> int:
    """Copy the Wi-Fi subset; a source without firmware is skipped."""
    src = _first_dir(ctx.source, FIRMWARE_DIRS)
    if src is None:
        logger.warning("No firmware directory in upstream tree; skipping Wi-Fi firmware")
        return 0
    dst = ctx.staging / "usr/lib/firmware"
    copied = 0
    for entry in sorted(src.iterdir()):
        if not entry.name.startswith(WIFI_FIRMWARE_PREFIXES):
            continue
        if entry.is_dir() and not entry.is_symlink():
            copy_tree(entry, dst / entry.name)
        else:
            copy_entry(entry, dst / entry.name)
        copied += 1
    if copied:
        tracker.register_package("linux-firmware")
    return copied


def copy_all_firmware(ctx: BuildContext, tracker: LicenseTracker) -> bool:
    src = _first_dir(ctx.source, FIRMWARE_DIRS)
    if src is None:
        logger.warning("No firmware directory in upstream tree; skipping firmware")
        return False
    copy_tree(src, ctx.staging / "usr/lib/firmware")
    tracker.register_package("linux-firmware")
    return True


def copy_modules(ctx: BuildContext, tracker: LicenseTracker) -> list[str]:
    """Copy every kernel version's module tree; at least one is required."""
    src = _first_dir(ctx.source, MODULES_DIRS)
    versions = sorted(p.name for p in src.iterdir() if p.is_dir()) if src else []
    if src is None or not versions:
        raise MissingRequiredInput(
            ctx.source / MODULES_DIRS[0],
            hint="Install the linux-lts package into the upstream rootfs",
        )
    for version in versions:
        copy_tree(src / version, ctx.staging / "usr/lib/modules" / version)
    tracker.register_package("linux-lts")
    return versions
