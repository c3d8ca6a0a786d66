"""Busybox applet symlinks."""

from __future__ import annotations

import logging
import os

from acornforge.core.errors import MissingRequiredInput
from acornforge.core.tracker import LicenseTracker
from acornforge.models.context import BuildContext

logger = logging.getLogger(__name__)

BUSYBOX_PATH = "usr/bin/busybox"

APPLETS: tuple[str, ...] = (
    # Core utilities
    "ash", "basename", "cat", "chgrp", "chmod", "chown", "cp", "cut", "date",
    "dd", "df", "dirname", "du", "echo", "env", "expr", "false", "head",
    "hostname", "id", "kill", "ln", "ls", "mkdir", "mknod", "mktemp", "mv",
    "nice", "printf", "pwd", "readlink", "realpath", "rm", "rmdir", "seq",
    "sleep", "sort", "stat", "stty", "sync", "tail", "tee", "test", "touch",
    "tr", "true", "uname", "uniq", "wc", "which", "whoami", "yes",
    # Text and archives
    "awk", "diff", "find", "grep", "egrep", "fgrep", "gzip", "gunzip", "less",
    "sed", "tar", "vi", "xargs", "xz", "unxz", "zcat",
    # System
    "dmesg", "free", "halt", "ifconfig", "init", "login", "mount", "poweroff",
    "ps", "reboot", "su", "swapoff", "swapon", "sysctl", "top", "umount",
    "uptime", "watch",
    # Network
    "nc", "ping", "ping6", "route", "udhcpc", "wget",
)


def create_applet_symlinks(ctx: BuildContext, tracker: LicenseTracker) -> int:
    """Link each applet in ``usr/bin`` to ``busybox``.

    Existing entries are left alone, so a standalone binary copied earlier
    keeps its path. Returns the number of links created.
    """
    busybox = ctx.staging / BUSYBOX_PATH
    if not (busybox.exists() or busybox.is_symlink()):
        raise MissingRequiredInput(busybox, hint="Copy the busybox binary before its applets")

    bin_dir = busybox.parent
    created = 0
    for applet in APPLETS:
        link = bin_dir / applet
        if link.exists() or link.is_symlink():
            continue
        os.symlink("busybox", link)
        created += 1
    tracker.register_package("busybox")
    logger.debug("Created %d busybox applet links", created)
    return created
