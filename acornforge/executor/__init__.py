"""Executor: interprets one operation at a time against a build context.

Strictly sequential with no retries: the first failing operation aborts its
component and the whole registry pass, with an error naming both. Writes
already made to staging are not rolled back individually; the staging tree
is discarded as a unit by the atomic builder.
"""

from __future__ import annotations

import logging
from typing import Iterable

from acornforge import custom
from acornforge.core.errors import (
    AggregateMissingBinaries,
    BuildError,
    ComponentExecutionError,
    CustomOpFailure,
)
from acornforge.core.tracker import LicenseTracker
from acornforge.executor import binaries, directories, files, services, users
from acornforge.models.components import Component
from acornforge.models.context import BuildContext
from acornforge.models.operations import (
    BinOp,
    BinsOp,
    CopyFileOp,
    CopyTreeOp,
    CustomOperation,
    DirModeOp,
    DirOp,
    DirsOp,
    GroupOp,
    OpenrcConfOp,
    OpenrcEnableOp,
    OpenrcScriptsOp,
    Operation,
    SbinOp,
    SbinsOp,
    SymlinkOp,
    UserOp,
    WriteFileModeOp,
    WriteFileOp,
)

logger = logging.getLogger(__name__)

__all__ = ["execute", "execute_component", "run_components"]


def execute(
    ctx: BuildContext,
    op: Operation,
    tracker: LicenseTracker,
    component: str = "",
) -> None:
    """Apply a single operation to ``ctx.staging``."""
    staging = ctx.staging
    match op:
        case DirOp(path=path):
            directories.handle_dir(staging, path)
        case DirModeOp(path=path, mode=mode):
            directories.handle_dir_mode(staging, path, mode)
        case DirsOp(paths=paths):
            directories.handle_dirs(staging, paths)

        case WriteFileOp(path=path, content=content):
            files.handle_write_file(staging, path, content)
        case WriteFileModeOp(path=path, content=content, mode=mode):
            files.handle_write_file(staging, path, content, mode)
        case SymlinkOp(link=link, target=target):
            files.handle_symlink(staging, link, target)
        case CopyFileOp(path=path):
            files.handle_copy_file(ctx.source, staging, path)
        case CopyTreeOp(path=path):
            files.copy_tree(ctx.source / path, staging / path)

        case BinOp(name=name):
            binaries.copy_binary(ctx, name, "usr/bin")
            tracker.register_binary(name)
        case SbinOp(name=name):
            binaries.copy_binary(ctx, name, "usr/sbin")
            tracker.register_binary(name)
        case BinsOp(names=names):
            binaries.copy_binaries(ctx, names, "usr/bin", tracker)
        case SbinsOp(names=names):
            binaries.copy_binaries(ctx, names, "usr/sbin", tracker)

        case OpenrcEnableOp(service=service, runlevel=runlevel):
            services.enable_service(staging, service, runlevel)
        case OpenrcScriptsOp(scripts=scripts):
            for script in scripts:
                services.copy_init_script(ctx.source, staging, script)
        case OpenrcConfOp(service=service, content=content):
            services.write_conf(staging, service, content)

        case UserOp(name=name, uid=uid, gid=gid, home=home, shell=shell):
            users.handle_user(ctx.source, staging, name, uid, gid, home, shell)
        case GroupOp(name=name, gid=gid):
            users.handle_group(ctx.source, staging, name, gid)

        case CustomOperation(tag=tag):
            custom.execute(ctx, tag, tracker, component=component)

        case _:
            raise BuildError(f"Unknown operation {op!r}")


def execute_component(
    ctx: BuildContext, component: Component, tracker: LicenseTracker
) -> None:
    """Run a component's operations in list order."""
    logger.info("Installing %s...", component.name)
    for op in component.ops:
        try:
            execute(ctx, op, tracker, component=component.name)
        except (CustomOpFailure, AggregateMissingBinaries):
            raise
        except (BuildError, OSError) as exc:
            raise ComponentExecutionError(component.name, op.describe(), str(exc)) from exc


def run_components(
    ctx: BuildContext,
    components: Iterable[Component],
    tracker: LicenseTracker,
) -> None:
    """Run components in registry order; stops at the first failure."""
    for component in components:
        execute_component(ctx, component, tracker)
