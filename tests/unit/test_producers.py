"""Tests for the host-tool producer wrappers that need no host tools."""

from __future__ import annotations

import hashlib
from pathlib import Path

from acornforge.artifacts import producers


class TestChecksum:
    def test_sha512sum_format(self, tmp_dir: Path):
        iso = tmp_dir / "acornos.iso.work"
        iso.write_bytes(b"iso bytes")
        out = tmp_dir / "acornos.sha512"
        digest = producers.write_checksum(iso, out, "acornos.iso")
        assert digest == hashlib.sha512(b"iso bytes").hexdigest()
        assert out.read_text() == f"{digest}  acornos.iso\n"

    def test_defaults_to_artifact_name(self, tmp_dir: Path):
        iso = tmp_dir / "acornos.iso"
        iso.write_bytes(b"")
        out = tmp_dir / "sum"
        producers.write_checksum(iso, out)
        assert out.read_text().endswith("  acornos.iso\n")


class TestCpioFileList:
    def test_sorted_and_nul_separated(self, tmp_dir: Path):
        root = tmp_dir / "root"
        (root / "sbin").mkdir(parents=True)
        (root / "bin").mkdir()
        (root / "init").write_text("#!/bin/busybox sh\n")
        (root / "bin" / "busybox").write_text("bb")
        listing = producers._cpio_file_list(root)
        assert listing.split(b"\0")[:-1] == [b"bin", b"bin/busybox", b"init", b"sbin"]
        assert listing.endswith(b"\0")

    def test_symlinks_listed_not_followed(self, tmp_dir: Path):
        root = tmp_dir / "root"
        (root / "bin").mkdir(parents=True)
        (root / "bin" / "sh").symlink_to("busybox")
        assert producers._cpio_file_list(root) == b"bin\0bin/sh\0"


class TestBuildCpio:
    def test_gzip_header_is_deterministic(self, tmp_dir: Path, monkeypatch):
        root = tmp_dir / "root"
        root.mkdir()

        class Completed:
            stdout = b"070701 archive"

        monkeypatch.setattr(producers, "run_capture", lambda *a, **kw: Completed())
        first = tmp_dir / "a.cpio.gz"
        second = tmp_dir / "b.cpio.gz"
        producers.build_cpio(root, first, 6)
        producers.build_cpio(root, second, 6)
        assert first.read_bytes() == second.read_bytes()
