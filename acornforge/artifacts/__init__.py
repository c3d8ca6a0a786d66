"""Artifact builders: EROFS rootfs, tiny initramfs and the live ISO."""
