"""AcornOS distribution constants.

Identity, artifact names, image parameters and the verification lists used
by the artifact builders. Values that a user may reasonably want to change
per build (ISO label, compression) are also exposed on ``BuildSettings``.
"""

from __future__ import annotations

# Identity
OS_NAME = "AcornOS"
OS_ID = "acornos"
OS_ID_LIKE = "alpine"
OS_VERSION = "1.0"
HOSTNAME = "acornos"
DEFAULT_SHELL = "/bin/ash"
HOME_URL = "https://levitateos.org/acorn"
DOCS_URL = "https://levitateos.org/acorn/docs"
BUG_REPORT_URL = "https://github.com/levitateos/levitateos/issues"

# Pre-login banner on the live image (network logins).
LIVE_ISSUE_MESSAGE = (
    f"\n{OS_NAME} Live - \\n \\l\n\n"
    "Login as 'root' (no password).\n\n"
)

# Output artifact names (relative to the output directory)
ROOTFS_NAME = "filesystem.erofs"
ROOTFS_STAGING_NAME = "rootfs-staging"
INITRAMFS_BUILD_DIR = "initramfs-tiny-root"
INITRAMFS_LIVE_OUTPUT = "initramfs-live.cpio.gz"
LIVE_OVERLAY_DIR = "live-overlay"
ISO_ROOT_DIR = "iso-root"
ISO_FILENAME = "acornos.iso"
ISO_CHECKSUM_SUFFIX = ".sha512"

# Paths inside the ISO
ISO_LABEL = "ACORNOS"
KERNEL_ISO_PATH = "boot/vmlinuz"
INITRAMFS_LIVE_ISO_PATH = "boot/initramfs.img"
ROOTFS_ISO_PATH = "live/filesystem.erofs"
LIVE_OVERLAY_ISO_PATH = "live/overlay"
ISO_EFI_DIR = "EFI/BOOT"
EFI_BOOTLOADER = "BOOTX64.EFI"
EFIBOOT_FILENAME = "efiboot.img"

# Login scripts shipped with the profile and copied into the live image.
# Listed by hand so every one of them is a declared build input.
PROFILE_SCRIPTS_DIR = "profile/live-overlay/etc/profile.d"
PROFILE_SCRIPTS: tuple[str, ...] = ("00-acorn-test.sh",)
EFIBOOT_SIZE_MB = 16

# Kernel shipped by the upstream rootfs (linux-lts)
KERNEL_SOURCE_PATH = "boot/vmlinuz-lts"

# Console
VGA_CONSOLE = "console=tty0"
SERIAL_CONSOLE = "console=ttyS0,115200n8"

# Image parameters
EROFS_COMPRESSION = "lz4hc"
EROFS_COMPRESSION_LEVEL = 9
EROFS_CHUNK_SIZE = 1048576
CPIO_GZIP_LEVEL = 6

# Minimum size a packaged single-file artifact must reach to be trusted.
MIN_ARTIFACT_BYTES = 1024

# Kernel modules the tiny initramfs needs to reach the EROFS image.
BOOT_MODULES: tuple[str, ...] = (
    "kernel/drivers/block/loop.ko",
    "kernel/fs/erofs/erofs.ko",
    "kernel/fs/overlayfs/overlay.ko",
    "kernel/fs/isofs/isofs.ko",
    "kernel/drivers/cdrom/cdrom.ko",
    "kernel/drivers/scsi/sr_mod.ko",
    "kernel/drivers/scsi/sd_mod.ko",
    "kernel/drivers/virtio/virtio_pci.ko",
    "kernel/drivers/block/virtio_blk.ko",
    "kernel/drivers/scsi/virtio_scsi.ko",
)

# Device probe order used by /init when looking for the boot medium.
BOOT_DEVICE_PROBE_ORDER: tuple[str, ...] = (
    "/dev/sr0",
    "/dev/sr1",
    "/dev/vda",
    "/dev/vdb",
    "/dev/sda",
    "/dev/sdb",
)

INITRAMFS_DIRS: tuple[str, ...] = (
    "bin",
    "dev",
    "proc",
    "sys",
    "tmp",
    "mnt",
    "lib/modules",
    "newroot",
    "media/cdrom",
    "run",
)

# Commands symlinked to busybox inside the initramfs.
INITRAMFS_BUSYBOX_COMMANDS: tuple[str, ...] = (
    "sh", "mount", "umount", "mkdir", "cat", "ls", "sleep", "switch_root",
    "echo", "test", "[", "grep", "sed", "ln", "rm", "cp", "mv", "chmod",
    "chown", "mknod", "losetup", "mount.loop", "insmod", "modprobe", "xz",
    "gunzip", "find", "head",
)

# Entries an assembled staging tree must contain before it is packaged.
REQUIRED_STAGING_ENTRIES: tuple[str, ...] = (
    "sbin/init",
    "usr/bin/busybox",
    "etc/passwd",
    "etc/group",
    "etc/os-release",
)


# Checks run against the staging tree before the EROFS image is made.
VERIFY_BINARIES: tuple[str, ...] = (
    "usr/bin/busybox",
    "usr/bin/sh",
    "sbin/init",
    "sbin/openrc",
)
VERIFY_DIRS: tuple[str, ...] = (
    "bin", "sbin", "lib", "etc", "usr/bin", "usr/sbin", "usr/lib",
    "var", "tmp", "proc", "sys", "dev", "run", "root", "home",
)
VERIFY_CONFIGS: tuple[str, ...] = (
    "etc/os-release",
    "etc/hostname",
    "etc/passwd",
    "etc/group",
    "etc/shadow",
    "etc/inittab",
    "etc/fstab",
)
VERIFY_SERVICE_DIR = "etc/init.d"
