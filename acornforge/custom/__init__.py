"""Custom-op dispatch.

Each ``CustomOp`` tag maps to exactly one named handler through an
exhaustive match; there is no mutable handler registry. Any handler error
is wrapped in ``CustomOpFailure`` naming the owning component and the tag,
with the original exception chained.
"""

from __future__ import annotations

import logging
from typing import Any

from acornforge.core.errors import CustomOpFailure
from acornforge.core.tracker import LicenseTracker, UpstreamLicenseSource
from acornforge.custom import busybox, filesystem, firmware, live
from acornforge.models.context import BuildContext
from acornforge.models.operations import CustomOp

logger = logging.getLogger(__name__)


def copy_licenses(ctx: BuildContext, tracker: LicenseTracker) -> int:
    """Flush the tracker into staging; runs once, after the registry pass."""
    return tracker.flush(ctx.staging, UpstreamLicenseSource(ctx.source))


def _dispatch(ctx: BuildContext, tag: CustomOp, tracker: LicenseTracker) -> Any:
    match tag:
        case CustomOp.CREATE_FHS_SYMLINKS:
            return filesystem.create_fhs_symlinks(ctx, tracker)
        case CustomOp.CREATE_BUSYBOX_APPLETS:
            return busybox.create_applet_symlinks(ctx, tracker)
        case CustomOp.SETUP_DEVICE_MANAGER:
            return filesystem.setup_device_manager(ctx, tracker)
        case CustomOp.CREATE_ETC_FILES:
            return filesystem.create_etc_files(ctx, tracker)
        case CustomOp.COPY_TIMEZONE_DATA:
            return filesystem.copy_timezone_data(ctx, tracker)
        case CustomOp.COPY_WIFI_FIRMWARE:
            return firmware.copy_wifi_firmware(ctx, tracker)
        case CustomOp.COPY_ALL_FIRMWARE:
            return firmware.copy_all_firmware(ctx, tracker)
        case CustomOp.COPY_MODULES:
            return firmware.copy_modules(ctx, tracker)
        case CustomOp.CREATE_WELCOME_MESSAGE:
            return live.create_welcome_message(ctx, tracker)
        case CustomOp.CREATE_LIVE_OVERLAY:
            return live.create_live_overlay(ctx, tracker)
        case CustomOp.COPY_RECSTRAP:
            return live.copy_recstrap(ctx, tracker)
        case CustomOp.COPY_LICENSES:
            return copy_licenses(ctx, tracker)
    raise ValueError(f"Unhandled custom operation {tag!r}")


def execute(
    ctx: BuildContext,
    tag: CustomOp,
    tracker: LicenseTracker,
    component: str = "",
) -> Any:
    """Run the handler for *tag*."""
    logger.debug("Custom operation %s", tag.value)
    try:
        return _dispatch(ctx, tag, tracker)
    except Exception as exc:
        raise CustomOpFailure(component or "<none>", tag.value, str(exc)) from exc
