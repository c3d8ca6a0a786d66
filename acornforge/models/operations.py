"""Operation vocabulary: closed set of declarative filesystem mutations.

Every operation is a frozen model, declared once as static data in
``acornforge.registry``. The ``kind`` field discriminates the union so a
component's full mutation set can be enumerated (and serialized) without
executing any of it.

Paths are always relative to the tree they act on: the staging tree for
writes, the upstream source tree for copies.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class CustomOp(str, Enum):
    """Tags for behaviors the closed vocabulary cannot express.

    Each tag resolves to exactly one handler in ``acornforge.custom``.
    """

    CREATE_FHS_SYMLINKS = "create_fhs_symlinks"
    CREATE_BUSYBOX_APPLETS = "create_busybox_applets"
    SETUP_DEVICE_MANAGER = "setup_device_manager"
    CREATE_ETC_FILES = "create_etc_files"
    COPY_TIMEZONE_DATA = "copy_timezone_data"
    COPY_WIFI_FIRMWARE = "copy_wifi_firmware"
    COPY_ALL_FIRMWARE = "copy_all_firmware"
    COPY_MODULES = "copy_modules"
    CREATE_WELCOME_MESSAGE = "create_welcome_message"
    CREATE_LIVE_OVERLAY = "create_live_overlay"
    COPY_RECSTRAP = "copy_recstrap"
    COPY_LICENSES = "copy_licenses"


class _Op(BaseModel):
    """Shared base for all operations."""

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        """Stable one-line rendering used in error context."""
        parts = []
        for key, value in self.model_dump(exclude={"kind"}).items():
            if key == "mode":
                parts.append(f"{key}={value:#o}")
            elif isinstance(value, Enum):
                parts.append(f"{key}={value.value}")
            else:
                parts.append(f"{key}={value!r}")
        return f"{self.kind}({', '.join(parts)})"  # type: ignore[attr-defined]


# ------------------------------------------------------------------
# Directories
# ------------------------------------------------------------------


class DirOp(_Op):
    kind: Literal["dir"] = "dir"
    path: str


class DirModeOp(_Op):
    """Create-if-missing, then re-apply ``mode`` on every run."""

    kind: Literal["dir_mode"] = "dir_mode"
    path: str
    mode: int


class DirsOp(_Op):
    kind: Literal["dirs"] = "dirs"
    paths: tuple[str, ...]


# ------------------------------------------------------------------
# Files and links
# ------------------------------------------------------------------


class WriteFileOp(_Op):
    kind: Literal["write_file"] = "write_file"
    path: str
    content: str


class WriteFileModeOp(_Op):
    kind: Literal["write_file_mode"] = "write_file_mode"
    path: str
    content: str
    mode: int


class SymlinkOp(_Op):
    """Replace whatever occupies ``link`` with a symlink to ``target``."""

    kind: Literal["symlink"] = "symlink"
    link: str
    target: str


class CopyFileOp(_Op):
    """Required copy of ``source/path`` to ``staging/path``."""

    kind: Literal["copy_file"] = "copy_file"
    path: str


class CopyTreeOp(_Op):
    """Optional recursive copy; a missing source is logged and skipped."""

    kind: Literal["copy_tree"] = "copy_tree"
    path: str


# ------------------------------------------------------------------
# Binaries
# ------------------------------------------------------------------


class BinOp(_Op):
    kind: Literal["bin"] = "bin"
    name: str


class SbinOp(_Op):
    kind: Literal["sbin"] = "sbin"
    name: str


class BinsOp(_Op):
    kind: Literal["bins"] = "bins"
    names: tuple[str, ...]


class SbinsOp(_Op):
    kind: Literal["sbins"] = "sbins"
    names: tuple[str, ...]


# ------------------------------------------------------------------
# OpenRC services
# ------------------------------------------------------------------


class OpenrcEnableOp(_Op):
    kind: Literal["openrc_enable"] = "openrc_enable"
    service: str
    runlevel: str


class OpenrcScriptsOp(_Op):
    kind: Literal["openrc_scripts"] = "openrc_scripts"
    scripts: tuple[str, ...]


class OpenrcConfOp(_Op):
    kind: Literal["openrc_conf"] = "openrc_conf"
    service: str
    content: str


# ------------------------------------------------------------------
# Accounts
# ------------------------------------------------------------------


class UserOp(_Op):
    kind: Literal["user"] = "user"
    name: str
    uid: int
    gid: int
    home: str
    shell: str


class GroupOp(_Op):
    kind: Literal["group"] = "group"
    name: str
    gid: int


# ------------------------------------------------------------------
# Escape hatch
# ------------------------------------------------------------------


class CustomOperation(_Op):
    kind: Literal["custom"] = "custom"
    tag: CustomOp


Operation = Annotated[
    Union[
        DirOp,
        DirModeOp,
        DirsOp,
        WriteFileOp,
        WriteFileModeOp,
        SymlinkOp,
        CopyFileOp,
        CopyTreeOp,
        BinOp,
        SbinOp,
        BinsOp,
        SbinsOp,
        OpenrcEnableOp,
        OpenrcScriptsOp,
        OpenrcConfOp,
        UserOp,
        GroupOp,
        CustomOperation,
    ],
    Field(discriminator="kind"),
]


# ------------------------------------------------------------------
# Constructors for static tables
# ------------------------------------------------------------------


def dir_(path: str) -> DirOp:
    return DirOp(path=path)


def dir_mode(path: str, mode: int) -> DirModeOp:
    return DirModeOp(path=path, mode=mode)


def dirs(paths: tuple[str, ...] | list[str]) -> DirsOp:
    return DirsOp(paths=tuple(paths))


def write_file(path: str, content: str) -> WriteFileOp:
    return WriteFileOp(path=path, content=content)


def write_file_mode(path: str, content: str, mode: int) -> WriteFileModeOp:
    return WriteFileModeOp(path=path, content=content, mode=mode)


def symlink(link: str, target: str) -> SymlinkOp:
    return SymlinkOp(link=link, target=target)


def copy_file(path: str) -> CopyFileOp:
    return CopyFileOp(path=path)


def copy_tree(path: str) -> CopyTreeOp:
    return CopyTreeOp(path=path)


def bin_(name: str) -> BinOp:
    return BinOp(name=name)


def sbin(name: str) -> SbinOp:
    return SbinOp(name=name)


def bins(names: tuple[str, ...] | list[str]) -> BinsOp:
    return BinsOp(names=tuple(names))


def sbins(names: tuple[str, ...] | list[str]) -> SbinsOp:
    return SbinsOp(names=tuple(names))


def openrc_enable(service: str, runlevel: str) -> OpenrcEnableOp:
    return OpenrcEnableOp(service=service, runlevel=runlevel)


def openrc_scripts(scripts: tuple[str, ...] | list[str]) -> OpenrcScriptsOp:
    return OpenrcScriptsOp(scripts=tuple(scripts))


def openrc_conf(service: str, content: str) -> OpenrcConfOp:
    return OpenrcConfOp(service=service, content=content)


def user(name: str, uid: int, gid: int, home: str, shell: str) -> UserOp:
    return UserOp(name=name, uid=uid, gid=gid, home=home, shell=shell)


def group(name: str, gid: int) -> GroupOp:
    return GroupOp(name=name, gid=gid)


def custom(tag: CustomOp) -> CustomOperation:
    return CustomOperation(tag=tag)
