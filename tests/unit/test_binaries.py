"""Tests for binary copies and shared-library discovery."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from acornforge.core.deps import DependencyLister, LddLister, parse_ldd_output
from acornforge.core.errors import MissingRequiredInput
from acornforge.executor.binaries import copy_binary, copy_library
from acornforge.models.context import BuildContext
from tests.helpers import FakeLister, write_executable


@pytest.fixture
def lister() -> FakeLister:
    return FakeLister({
        "bash": ["/lib/ld-musl-x86_64.so.1", "/usr/lib/libncursesw.so.6"],
    })


@pytest.fixture
def ctx(source_tree: Path, staging: Path, base_dir: Path, lister: FakeLister) -> BuildContext:
    lib = source_tree / "lib"
    lib.mkdir(exist_ok=True)
    (lib / "ld-musl-x86_64.so.1").write_bytes(b"musl")
    usr_lib = source_tree / "usr/lib"
    usr_lib.mkdir(parents=True)
    (usr_lib / "libncursesw.so.6.4").write_bytes(b"ncurses")
    os.symlink("libncursesw.so.6.4", usr_lib / "libncursesw.so.6")
    write_executable(source_tree / "usr/bin/bash")
    return BuildContext.for_base_dir(base_dir, staging, dependency_lister=lister)


class TestCopyBinary:
    def test_copies_binary_and_libraries(self, ctx: BuildContext, lister: FakeLister):
        staged = copy_binary(ctx, "bash", "usr/bin")
        assert staged == ctx.staging / "usr/bin/bash"
        assert (ctx.staging / "lib/ld-musl-x86_64.so.1").read_bytes() == b"musl"
        assert lister.calls == [ctx.source / "usr/bin/bash"]

    def test_library_symlink_chain_is_recreated(self, ctx: BuildContext):
        copy_binary(ctx, "bash", "usr/bin")
        link = ctx.staging / "usr/lib/libncursesw.so.6"
        assert os.readlink(link) == "libncursesw.so.6.4"
        assert (ctx.staging / "usr/lib/libncursesw.so.6.4").read_bytes() == b"ncurses"

    def test_upstream_symlink_is_linked_not_copied(self, ctx: BuildContext, lister: FakeLister):
        os.symlink("/bin/busybox", ctx.source / "usr/bin/vi")
        copy_binary(ctx, "vi", "usr/bin")
        assert os.readlink(ctx.staging / "usr/bin/vi") == "/bin/busybox"
        assert lister.calls == []

    def test_missing_binary(self, ctx: BuildContext):
        with pytest.raises(MissingRequiredInput, match="Searched"):
            copy_binary(ctx, "nonexistent", "usr/bin")

    def test_finds_binary_in_sbin(self, ctx: BuildContext):
        write_executable(ctx.source / "sbin/fdisk")
        copy_binary(ctx, "fdisk", "usr/sbin")
        assert (ctx.staging / "usr/sbin/fdisk").is_file()


class TestCopyLibrary:
    def test_library_found_by_name_in_search_dirs(self, ctx: BuildContext):
        (ctx.source / "lib/libz.so.1").write_bytes(b"zlib")
        copy_library(ctx, "/usr/lib/libz.so.1")
        assert (ctx.staging / "usr/lib/libz.so.1").read_bytes() == b"zlib"

    def test_existing_library_left_alone(self, ctx: BuildContext):
        dst = ctx.staging / "lib/ld-musl-x86_64.so.1"
        dst.parent.mkdir(parents=True)
        dst.write_bytes(b"already")
        copy_library(ctx, "/lib/ld-musl-x86_64.so.1")
        assert dst.read_bytes() == b"already"

    def test_missing_library(self, ctx: BuildContext):
        with pytest.raises(MissingRequiredInput):
            copy_library(ctx, "/usr/lib/libmissing.so.9")


class TestLddParsing:
    def test_parses_both_line_forms(self):
        output = (
            "\t/lib/ld-musl-x86_64.so.1 (0x7f0000000000)\n"
            "\tlibncursesw.so.6 => /usr/lib/libncursesw.so.6 (0x7f0000001000)\n"
            "\tlibc.musl-x86_64.so.1 => /lib/ld-musl-x86_64.so.1 (0x7f0000000000)\n"
            "\tlinux-vdso.so.1 (0x7ffd00000000)\n"
            "\tlibgone.so.1 => not found\n"
        )
        assert parse_ldd_output(output) == [
            "/lib/ld-musl-x86_64.so.1",
            "/usr/lib/libncursesw.so.6",
        ]

    def test_static_binary_output(self):
        assert parse_ldd_output("\tnot a dynamic executable\n") == []

    def test_listers_satisfy_protocol(self):
        assert isinstance(LddLister(), DependencyLister)
        assert isinstance(FakeLister(), DependencyLister)

    def test_ldd_failure_means_no_libraries(self, tmp_dir: Path):
        lister = LddLister(command=str(tmp_dir / "no-such-ldd"))
        assert lister.list_libraries(tmp_dir / "bin") == []
