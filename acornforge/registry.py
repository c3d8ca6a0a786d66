"""AcornOS component registry.

Static, module-level component tables. The full set of mutations a build
performs can be enumerated from ``ALL_COMPONENTS`` without executing any of
it. Components run in the declared order, which must be non-decreasing in
phase:

- FILESYSTEM: FHS directories and merged-usr symlinks
- BUSYBOX, UTILITIES: busybox, applets and standalone binaries
- OPENRC, DEVICE_MANAGER: init system and eudev
- NETWORK, SSH, CHRONY: services
- BRANDING, SYSCONFIG: identity and system configuration
- FIRMWARE: kernel modules and firmware
- LIVE_FINAL: welcome message, live overlay, installer, live inittab
"""

from __future__ import annotations

from typing import Sequence

from acornforge import distro
from acornforge.core.errors import RegistryError
from acornforge.models.components import Component
from acornforge.models.operations import (
    CustomOp,
    bin_,
    bins,
    copy_tree,
    custom,
    dir_,
    dir_mode,
    dirs,
    group,
    openrc_conf,
    openrc_enable,
    openrc_scripts,
    sbins,
    symlink,
    user,
    write_file,
    write_file_mode,
)
from acornforge.models.phases import Phase

# ------------------------------------------------------------------
# Filesystem
# ------------------------------------------------------------------

FHS_DIRS: tuple[str, ...] = (
    # Core directories
    "etc", "home", "root", "tmp", "var", "run", "mnt", "media", "srv", "opt",
    # /usr hierarchy (merged-usr)
    "usr/bin", "usr/sbin", "usr/lib", "usr/lib/modules", "usr/share",
    "usr/local/bin", "usr/local/lib", "usr/local/share",
    # /var hierarchy
    "var/log", "var/tmp", "var/cache", "var/spool", "var/lib",
    # Kernel filesystems
    "dev", "proc", "sys",
    "boot",
)

FILESYSTEM = Component(
    name="filesystem",
    phase=Phase.FILESYSTEM,
    ops=(
        dirs(FHS_DIRS),
        custom(CustomOp.CREATE_FHS_SYMLINKS),
        dir_mode("tmp", 0o1777),
        dir_mode("var/tmp", 0o1777),
        dir_mode("root", 0o700),
    ),
)

# ------------------------------------------------------------------
# Binaries
# ------------------------------------------------------------------

BUSYBOX = Component(
    name="busybox",
    phase=Phase.BINARIES,
    ops=(
        bin_("busybox"),
        custom(CustomOp.CREATE_BUSYBOX_APPLETS),
        symlink("bin/sh", "/bin/busybox"),
        symlink("sbin/init", "/bin/busybox"),
    ),
)

ADDITIONAL_BINS: tuple[str, ...] = (
    "bash",
    "coreutils",
    "vim",
    "less",
    "htop",
)

ADDITIONAL_SBINS: tuple[str, ...] = (
    # Partitioning
    "fdisk", "parted", "sgdisk",
    # Filesystems
    "mkfs.ext4", "mkfs.fat", "mkfs.btrfs", "fsck", "fsck.ext4", "blkid",
    # Device mapper
    "cryptsetup", "lvm",
    # Network
    "ip", "dhcpcd",
    # Login
    "agetty",
)

UTILITIES = Component(
    name="utilities",
    phase=Phase.BINARIES,
    ops=(bins(ADDITIONAL_BINS), sbins(ADDITIONAL_SBINS)),
)

# ------------------------------------------------------------------
# Init
# ------------------------------------------------------------------

OPENRC_SCRIPTS: tuple[str, ...] = (
    "hostname", "networking", "bootmisc", "devfs", "dmesg", "fsck", "hwclock",
    "hwdrivers", "killprocs", "localmount", "modules", "mount-ro", "mtab",
    "procfs", "root", "savecache", "seedrng", "sysctl", "sysfs", "swap",
    "swclock", "urandom",
    # Services
    "sshd", "chronyd", "dhcpcd", "local",
)

RUNLEVEL_DIRS: tuple[str, ...] = (
    "etc/runlevels/sysinit",
    "etc/runlevels/boot",
    "etc/runlevels/default",
    "etc/runlevels/nonetwork",
    "etc/runlevels/shutdown",
)

OPENRC = Component(
    name="openrc",
    phase=Phase.INIT,
    ops=(
        sbins(("openrc", "openrc-run")),
        dir_("etc/init.d"),
        dir_("etc/conf.d"),
        dirs(RUNLEVEL_DIRS),
        copy_tree("etc/rc.conf"),
        openrc_scripts(OPENRC_SCRIPTS),
        # sysinit
        openrc_enable("devfs", "sysinit"),
        openrc_enable("dmesg", "sysinit"),
        openrc_enable("hwdrivers", "sysinit"),
        openrc_enable("modules", "sysinit"),
        openrc_enable("sysfs", "sysinit"),
        openrc_enable("procfs", "sysinit"),
        # boot
        openrc_enable("hostname", "boot"),
        openrc_enable("bootmisc", "boot"),
        openrc_enable("hwclock", "boot"),
        openrc_enable("sysctl", "boot"),
        openrc_enable("localmount", "boot"),
        openrc_enable("fsck", "boot"),
        openrc_enable("root", "boot"),
        openrc_enable("swap", "boot"),
        openrc_enable("seedrng", "boot"),
        openrc_enable("urandom", "boot"),
        # shutdown
        openrc_enable("killprocs", "shutdown"),
        openrc_enable("mount-ro", "shutdown"),
        openrc_enable("savecache", "shutdown"),
    ),
)

# eudev rather than busybox mdev: mdev cannot drive a daily-use desktop.
DEVICE_MANAGER = Component(
    name="eudev",
    phase=Phase.INIT,
    ops=(
        copy_tree("etc/udev"),
        copy_tree("usr/lib/udev"),
        custom(CustomOp.SETUP_DEVICE_MANAGER),
    ),
)

# ------------------------------------------------------------------
# Services
# ------------------------------------------------------------------

NETWORK = Component(
    name="network",
    phase=Phase.SERVICES,
    ops=(
        dir_("etc/network"),
        dir_("etc/network/if-down.d"),
        dir_("etc/network/if-post-down.d"),
        dir_("etc/network/if-pre-up.d"),
        dir_("etc/network/if-up.d"),
        copy_tree("etc/network"),
        openrc_enable("networking", "boot"),
        openrc_enable("dhcpcd", "default"),
        openrc_conf("dhcpcd", '# DHCP client configuration\ndhcpcd_args="--quiet"\n'),
    ),
)

SSH = Component(
    name="ssh",
    phase=Phase.SERVICES,
    ops=(
        dir_("etc/ssh"),
        dir_mode("var/empty/sshd", 0o755),
        dir_mode("run/sshd", 0o755),
        copy_tree("etc/ssh"),
        group("sshd", 22),
        user("sshd", 22, 22, "/var/empty/sshd", "/sbin/nologin"),
        openrc_enable("sshd", "default"),
    ),
)

CHRONY = Component(
    name="chrony",
    phase=Phase.SERVICES,
    ops=(
        dir_("var/lib/chrony"),
        dir_("var/log/chrony"),
        copy_tree("etc/chrony"),
        group("chrony", 123),
        user("chrony", 123, 123, "/var/lib/chrony", "/sbin/nologin"),
        openrc_enable("chronyd", "default"),
    ),
)

# ------------------------------------------------------------------
# Config
# ------------------------------------------------------------------

OS_RELEASE = f"""\
NAME="{distro.OS_NAME}"
ID={distro.OS_ID}
ID_LIKE={distro.OS_ID_LIKE}
VERSION_ID={distro.OS_VERSION}
PRETTY_NAME="{distro.OS_NAME}"
HOME_URL="{distro.HOME_URL}"
BUG_REPORT_URL="{distro.BUG_REPORT_URL}"
"""

MOTD = f"""
    _                          ___  ____
   / \\   ___ ___  _ __ _ __   / _ \\/ ___|
  / _ \\ / __/ _ \\| '__| '_ \\ | | | \\___ \\
 / ___ \\ (_| (_) | |  | | | || |_| |___) |
/_/   \\_\\___\\___/|_|  |_| |_| \\___/|____/

Welcome to {distro.OS_NAME}!

Documentation: {distro.DOCS_URL}

"""

ISSUE = f"{distro.OS_NAME} \\n \\l\n\n"

HOSTS = f"127.0.0.1\tlocalhost\n::1\t\tlocalhost\n127.0.1.1\t{distro.HOSTNAME}\n"

BRANDING = Component(
    name="branding",
    phase=Phase.CONFIG,
    ops=(
        write_file("etc/os-release", OS_RELEASE),
        write_file("etc/hostname", f"{distro.HOSTNAME}\n"),
        write_file("etc/motd", MOTD),
        write_file("etc/issue", ISSUE),
        write_file("etc/hosts", HOSTS),
        custom(CustomOp.CREATE_ETC_FILES),
    ),
)

FSTAB = """\
# /etc/fstab - AcornOS
# <device>    <mount>    <type>    <options>    <dump> <pass>
proc         /proc      proc      defaults     0      0
sysfs        /sys       sysfs     defaults     0      0
devpts       /dev/pts   devpts    defaults     0      0
tmpfs        /tmp       tmpfs     defaults     0      0
"""

SHELLS = "/bin/sh\n/bin/ash\n/bin/bash\n/usr/bin/bash\n"

SYSCONFIG = Component(
    name="sysconfig",
    phase=Phase.CONFIG,
    ops=(
        write_file("etc/fstab", FSTAB),
        write_file("etc/shells", SHELLS),
        custom(CustomOp.COPY_TIMEZONE_DATA),
    ),
)

# ------------------------------------------------------------------
# Firmware
# ------------------------------------------------------------------

FIRMWARE = Component(
    name="firmware",
    phase=Phase.FIRMWARE,
    ops=(
        custom(CustomOp.COPY_MODULES),
        custom(CustomOp.COPY_WIFI_FIRMWARE),
        custom(CustomOp.COPY_ALL_FIRMWARE),
    ),
)

# ------------------------------------------------------------------
# Final
# ------------------------------------------------------------------

LIVE_INITTAB = """\
# /etc/inittab - AcornOS Live

::sysinit:/sbin/openrc sysinit
::sysinit:/sbin/openrc boot
::wait:/sbin/openrc default

# Autologin as root on tty1
tty1::respawn:/sbin/agetty --autologin root --noclear tty1 linux
tty2::respawn:/sbin/agetty tty2 linux
tty3::respawn:/sbin/agetty tty3 linux

# Serial console
ttyS0::respawn:/sbin/agetty -L 115200 ttyS0 vt100

::shutdown:/sbin/openrc shutdown
::ctrlaltdel:/sbin/reboot
"""

LIVE_FINAL = Component(
    name="live-final",
    phase=Phase.FINAL,
    ops=(
        custom(CustomOp.CREATE_WELCOME_MESSAGE),
        custom(CustomOp.CREATE_LIVE_OVERLAY),
        custom(CustomOp.COPY_RECSTRAP),
        write_file_mode("etc/inittab", LIVE_INITTAB, 0o644),
    ),
)

# ------------------------------------------------------------------
# All components, in phase order
# ------------------------------------------------------------------

ALL_COMPONENTS: tuple[Component, ...] = (
    FILESYSTEM,
    BUSYBOX,
    UTILITIES,
    OPENRC,
    DEVICE_MANAGER,
    NETWORK,
    SSH,
    CHRONY,
    BRANDING,
    SYSCONFIG,
    FIRMWARE,
    LIVE_FINAL,
)


def validate_registry(components: Sequence[Component]) -> None:
    """Raise ``RegistryError`` unless names are unique and phases never decrease."""
    seen: set[str] = set()
    last = None
    for component in components:
        if component.name in seen:
            raise RegistryError(f"Component {component.name!r} is declared twice")
        seen.add(component.name)
        if last is not None and component.phase < last.phase:
            raise RegistryError(
                f"Component {component.name!r} is out of order "
                f"(phase {component.phase.display_name} after {last.phase.display_name})"
            )
        last = component
