"""Shared test fixtures for acornforge."""

from __future__ import annotations

import shutil
from collections.abc import Callable
from pathlib import Path

import pytest

from acornforge.config import BuildSettings
from acornforge.core.artifact_store import ArtifactStore
from acornforge.core.tracker import APK_DB_PATH, LicenseTracker
from acornforge.custom.filesystem import UDEV_SERVICES
from acornforge.models.context import BuildContext
from acornforge.registry import ADDITIONAL_BINS, ADDITIONAL_SBINS, OPENRC_SCRIPTS
from tests.helpers import KERNEL_VERSION, FakeLister, write_executable

REPO_ROOT = Path(__file__).resolve().parents[1]

APK_DB = """\
P:busybox
F:bin
R:busybox

P:bash
F:usr/bin
R:bash

P:openrc
F:sbin
R:openrc
R:openrc-run
"""


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def base_dir(tmp_dir: Path) -> Path:
    """Project checkout root with an (empty) upstream rootfs."""
    root = tmp_dir / "project"
    (root / "downloads" / "rootfs").mkdir(parents=True)
    (root / "output").mkdir()
    return root


@pytest.fixture
def source_tree(base_dir: Path) -> Path:
    """Minimal upstream tree: an executable busybox and a package database."""
    source = base_dir / "downloads" / "rootfs"
    write_executable(source / "bin" / "busybox", "#!/bin/sh\n# busybox\n")
    db = source / APK_DB_PATH
    db.parent.mkdir(parents=True)
    db.write_text(APK_DB)
    return source


@pytest.fixture
def full_source_tree(source_tree: Path) -> Path:
    """Upstream tree carrying everything the full registry asks for."""
    for name in ADDITIONAL_BINS:
        write_executable(source_tree / "usr" / "bin" / name)
    for name in (*ADDITIONAL_SBINS, "openrc", "openrc-run", "udevd"):
        write_executable(source_tree / "sbin" / name)
    write_executable(source_tree / "bin" / "udevadm")
    for script in (*OPENRC_SCRIPTS, *(s for s, _ in UDEV_SERVICES)):
        write_executable(source_tree / "etc" / "init.d" / script, "#!/sbin/openrc-run\n")
    (source_tree / "etc" / "rc.conf").write_text('rc_parallel="NO"\n')
    (source_tree / "etc" / "passwd").write_text("root:x:0:0:root:/root:/bin/ash\n")
    (source_tree / "etc" / "group").write_text("root:x:0:root\n")
    (source_tree / "etc" / "ssh").mkdir()
    (source_tree / "etc" / "ssh" / "sshd_config").write_text("PermitRootLogin yes\n")
    module = source_tree / "lib" / "modules" / KERNEL_VERSION / "kernel" / "fs" / "erofs" / "erofs.ko"
    module.parent.mkdir(parents=True)
    module.write_bytes(b"\x7fELF erofs")
    (source_tree / "lib" / "modules" / KERNEL_VERSION / "modules.dep").write_text("")
    zone = source_tree / "usr" / "share" / "zoneinfo" / "UTC"
    zone.parent.mkdir(parents=True)
    zone.write_bytes(b"TZif2")
    licenses = source_tree / "usr" / "share" / "licenses" / "busybox"
    licenses.mkdir(parents=True)
    (licenses / "COPYING").write_text("GPL-2.0-only\n")
    kernel = source_tree / "boot" / "vmlinuz-lts"
    kernel.parent.mkdir(parents=True)
    kernel.write_bytes(b"kernel" * 512)
    return source_tree


@pytest.fixture
def fake_lister() -> FakeLister:
    return FakeLister()


@pytest.fixture
def staging(tmp_dir: Path) -> Path:
    path = tmp_dir / "staging"
    path.mkdir()
    return path


@pytest.fixture
def make_context(base_dir: Path, fake_lister: FakeLister) -> Callable[[Path], BuildContext]:
    """Factory fixture: a BuildContext writing into the given staging tree."""

    def _factory(staging_path: Path) -> BuildContext:
        return BuildContext.for_base_dir(base_dir, staging_path, dependency_lister=fake_lister)

    return _factory


@pytest.fixture
def build_context(
    source_tree: Path, staging: Path, make_context: Callable[[Path], BuildContext]
) -> BuildContext:
    """A context over the minimal upstream tree."""
    return make_context(staging)


@pytest.fixture
def tracker(source_tree: Path) -> LicenseTracker:
    return LicenseTracker.for_source(source_tree)


@pytest.fixture
def artifact_store(tmp_dir: Path) -> ArtifactStore:
    """Provide a fresh ArtifactStore in a temp directory."""
    return ArtifactStore(tmp_dir / "store")


@pytest.fixture
def build_settings(base_dir: Path) -> BuildSettings:
    """Settings rooted at the temporary checkout, with the store disabled."""
    return BuildSettings(_env_file=None, base_dir=base_dir, artifact_store_path=None)


@pytest.fixture
def init_template(base_dir: Path) -> Path:
    """The real init template, installed into the temporary checkout."""
    dest = base_dir / "profile" / "init_tiny.template"
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(REPO_ROOT / "profile" / "init_tiny.template", dest)
    return dest
