"""Tests for the atomic artifact builder: work/final promotion."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from acornforge.core.atomic import MinimumSize, RequiredEntries, build_atomic
from acornforge.core.errors import SanityCheckFailure


@pytest.fixture
def final(tmp_dir: Path) -> Path:
    path = tmp_dir / "output" / "initramfs-live.cpio.gz"
    path.parent.mkdir()
    path.write_bytes(b"previous good artifact" * 100)
    return path


def _work(final: Path) -> Path:
    return final.with_name(final.name + ".work")


class TestSingleFile:
    def test_promotes_on_success(self, final: Path):
        result = build_atomic(
            _work(final), final, lambda work: work.write_bytes(b"x" * 2048), MinimumSize(1024)
        )
        assert result == final
        assert final.read_bytes() == b"x" * 2048
        assert not _work(final).exists()

    def test_sanity_failure_keeps_previous_artifact(self, final: Path):
        previous = final.read_bytes()
        with pytest.raises(SanityCheckFailure) as info:
            build_atomic(
                _work(final), final, lambda work: work.write_bytes(b"tiny"), MinimumSize(1024)
            )
        assert "4 bytes" in str(info.value)
        assert final.read_bytes() == previous
        assert not _work(final).exists()

    def test_producer_failure_keeps_previous_artifact(self, final: Path):
        previous = final.read_bytes()

        def producer(work: Path) -> None:
            work.write_bytes(b"partial")
            raise RuntimeError("tool crashed")

        with pytest.raises(RuntimeError, match="tool crashed"):
            build_atomic(_work(final), final, producer)
        assert final.read_bytes() == previous
        assert not _work(final).exists()

    def test_interrupt_cleans_up(self, final: Path):
        def producer(work: Path) -> None:
            work.write_bytes(b"partial")
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            build_atomic(_work(final), final, producer)
        assert not _work(final).exists()

    def test_no_output_is_a_failure(self, final: Path):
        with pytest.raises(SanityCheckFailure, match="did not create"):
            build_atomic(_work(final), final, lambda work: None)

    def test_stale_work_path_is_replaced(self, final: Path):
        _work(final).write_bytes(b"leftover from a crash")
        build_atomic(_work(final), final, lambda work: work.write_bytes(b"fresh" * 300))
        assert final.read_bytes() == b"fresh" * 300

    def test_creates_first_artifact(self, tmp_dir: Path):
        final = tmp_dir / "new" / "filesystem.erofs"
        build_atomic(_work(final), final, lambda work: work.write_bytes(b"e" * 1024), MinimumSize(1024))
        assert final.stat().st_size == 1024


class TestDirectory:
    def test_tree_promoted_with_symlink_entries(self, tmp_dir: Path):
        final = tmp_dir / "rootfs-staging"
        (final / "old").mkdir(parents=True)

        def producer(work: Path) -> None:
            (work / "usr/bin").mkdir(parents=True)
            (work / "usr/bin/busybox").write_bytes(b"bb")
            (work / "sbin").mkdir()
            os.symlink("/bin/busybox", work / "sbin/init")

        build_atomic(
            _work(final), final, producer,
            RequiredEntries(["usr/bin/busybox", "sbin/init"]), is_dir=True,
        )
        assert os.path.islink(final / "sbin/init")
        assert not (final / "old").exists()

    def test_missing_entry_keeps_previous_tree(self, tmp_dir: Path):
        final = tmp_dir / "rootfs-staging"
        (final / "etc").mkdir(parents=True)
        (final / "etc/passwd").write_text("root:x:0:0::/root:/bin/sh\n")

        with pytest.raises(SanityCheckFailure, match="etc/passwd"):
            build_atomic(
                _work(final), final, lambda work: (work / "etc").mkdir(),
                RequiredEntries(["etc/passwd"]), is_dir=True,
            )
        assert (final / "etc/passwd").is_file()
        assert not _work(final).exists()


class TestChecks:
    def test_minimum_size_rejects_directory(self, tmp_dir: Path):
        assert MinimumSize(1).problems(tmp_dir) == [f"{tmp_dir.name} is not a regular file"]

    def test_required_entries_rejects_file(self, tmp_dir: Path):
        path = tmp_dir / "file"
        path.write_text("x")
        assert RequiredEntries(["a"]).problems(path) == ["file is not a directory"]
