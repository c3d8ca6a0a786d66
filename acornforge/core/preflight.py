"""Host tool preflight.

The build shells out to a handful of image/archive tools. This module lists
them with their purpose and an install hint; the same hints are attached to
``ChildProcessFailure`` when one of these tools exits non-zero.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class HostTool(BaseModel):
    """A required external tool and how to obtain it."""

    model_config = ConfigDict(frozen=True)

    name: str
    purpose: str
    install: str
    required: bool = True


class CheckResult(BaseModel):
    """Outcome of one preflight check."""

    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    detail: str
    hint: str = ""


HOST_TOOLS: tuple[HostTool, ...] = (
    HostTool(name="mkfs.erofs", purpose="Build EROFS rootfs image", install="sudo dnf install erofs-utils"),
    HostTool(name="cpio", purpose="Build initramfs", install="sudo dnf install cpio"),
    HostTool(name="xorriso", purpose="Build bootable ISO", install="sudo dnf install xorriso"),
    HostTool(name="mkfs.fat", purpose="Create EFI boot image", install="sudo dnf install dosfstools"),
    HostTool(name="mmd", purpose="Populate EFI boot image", install="sudo dnf install mtools"),
    HostTool(name="mcopy", purpose="Populate EFI boot image", install="sudo dnf install mtools"),
    HostTool(name="ldd", purpose="Discover shared-library dependencies", install="sudo dnf install glibc-common"),
    HostTool(
        name="grub2-mkstandalone",
        purpose="Generate UEFI bootloader when upstream provides none",
        install="sudo dnf install grub2-tools-extra grub2-efi-x64-modules",
        required=False,
    ),
)

_TOOLS_BY_NAME = {tool.name: tool for tool in HOST_TOOLS}


def install_hint(tool: str) -> str:
    """Remediation text for *tool*, or an empty string if it is not listed."""
    entry = _TOOLS_BY_NAME.get(Path(tool).name)
    if entry is None:
        return ""
    return f"Is {entry.name} installed? Install with: {entry.install}"


def check_tool(tool: HostTool) -> CheckResult:
    found = shutil.which(tool.name)
    if found:
        return CheckResult(
            name=f"{tool.name} tool",
            passed=True,
            detail=f"Found at {found} ({tool.purpose})",
        )
    return CheckResult(
        name=f"{tool.name} tool",
        passed=not tool.required,
        detail=f"Not found (needed for: {tool.purpose})",
        hint=tool.install,
    )


def check_host_tools() -> list[CheckResult]:
    return [check_tool(tool) for tool in HOST_TOOLS]


def check_source_tree(source: Path) -> CheckResult:
    """The extracted upstream root filesystem must exist before any pass."""
    if source.is_dir():
        return CheckResult(
            name="upstream rootfs", passed=True, detail=f"Found at {source}"
        )
    return CheckResult(
        name="upstream rootfs",
        passed=False,
        detail=f"Not found at {source}",
        hint="Extract the upstream root filesystem into downloads/rootfs first.",
    )


def run_preflight(source: Path) -> list[CheckResult]:
    """All checks; the build may proceed only if every result passed."""
    return [check_source_tree(source), *check_host_tools()]
