"""OpenRC service operations."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from acornforge.core.errors import MissingRequiredInput
from acornforge.executor.files import handle_write_file

logger = logging.getLogger(__name__)


def enable_service(staging: Path, service: str, runlevel: str) -> bool:
    """Link ``etc/runlevels/<runlevel>/<service>`` to its init script.

    Returns False, touching nothing, when the exact link already exists.
    """
    link = staging / "etc/runlevels" / runlevel / service
    target = f"/etc/init.d/{service}"
    if link.is_symlink() and os.readlink(link) == target:
        return False
    link.parent.mkdir(parents=True, exist_ok=True)
    if link.is_symlink() or link.exists():
        link.unlink()
    os.symlink(target, link)
    logger.debug("Enabled %s in runlevel %s", service, runlevel)
    return True


def copy_init_script(source: Path, staging: Path, script: str) -> None:
    src = source / "etc/init.d" / script
    if not src.is_file():
        raise MissingRequiredInput(src, hint=f"Init script {script} is not in the upstream tree")
    dst = staging / "etc/init.d" / script
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    os.chmod(dst, 0o755)


def write_conf(staging: Path, service: str, content: str) -> None:
    handle_write_file(staging, f"etc/conf.d/{service}", content)
