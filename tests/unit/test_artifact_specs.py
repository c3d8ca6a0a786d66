"""Tests for the declared inputs and parameters of each artifact kind."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from acornforge import distro
from acornforge.artifacts import rootfs
from acornforge.config import BuildSettings
from acornforge.core import fingerprint
from acornforge.core.fingerprint import FingerprintOracle
from acornforge.core.orchestrator import artifact_specs
from acornforge.core.tracker import APK_DB_PATH
from acornforge.models.artifacts import ArtifactKind

ALL_KINDS = (ArtifactKind.ROOTFS, ArtifactKind.INITRAMFS, ArtifactKind.ISO)


def _checkout(root: Path) -> Path:
    """A project directory holding every required input, with fixed content."""
    files = {
        "profile/init_tiny.template": b"#!/bin/busybox sh\n# {{ISO_LABEL}}\n",
        "downloads/busybox-static": b"static busybox",
        f"downloads/rootfs/{distro.KERNEL_SOURCE_PATH}": b"kernel" * 64,
        "downloads/rootfs/bin/busybox": b"#!/bin/sh\n# busybox\n",
        f"downloads/rootfs/{APK_DB_PATH}": b"P:busybox\n",
        f"output/{distro.ROOTFS_NAME}": b"erofs" * 64,
        f"output/{distro.INITRAMFS_LIVE_OUTPUT}": b"cpio" * 64,
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


def _settings(base_dir: Path, **overrides) -> BuildSettings:
    return BuildSettings(
        _env_file=None, base_dir=base_dir, artifact_store_path=None, **overrides
    )


def _digest(settings: BuildSettings, kind: ArtifactKind) -> str | None:
    return FingerprintOracle(artifact_specs(settings)).compute(kind)


@pytest.fixture
def checkout(tmp_dir: Path) -> Path:
    return _checkout(tmp_dir / "a")


class TestLocationIndependence:
    @pytest.mark.parametrize("kind", ALL_KINDS)
    def test_two_checkouts_share_digests(self, tmp_dir: Path, kind: ArtifactKind):
        first = _settings(_checkout(tmp_dir / "a"))
        second = _settings(_checkout(tmp_dir / "elsewhere" / "b"))
        digest = _digest(first, kind)
        assert digest is not None
        assert digest == _digest(second, kind)

    def test_relative_and_absolute_base_dir_agree(
        self, checkout: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(checkout)
        relative = _settings(Path("."))
        absolute = _settings(checkout.resolve())
        for kind in ALL_KINDS:
            assert _digest(relative, kind) == _digest(absolute, kind)

    def test_input_names_carry_no_location(self, checkout: Path):
        for spec in artifact_specs(_settings(checkout)):
            for item in spec.inputs:
                assert not item.name.startswith("/"), item.name
                assert str(checkout) not in item.name

    def test_content_still_counts(self, tmp_dir: Path):
        first = _settings(_checkout(tmp_dir / "a"))
        second_dir = _checkout(tmp_dir / "b")
        (second_dir / "downloads/busybox-static").write_bytes(b"other busybox")
        second = _settings(second_dir)
        assert _digest(first, ArtifactKind.INITRAMFS) != _digest(second, ArtifactKind.INITRAMFS)
        assert _digest(first, ArtifactKind.ROOTFS) == _digest(second, ArtifactKind.ROOTFS)


class TestBuildParameters:
    def test_iso_label_changes_initramfs_and_iso(self, checkout: Path):
        before = _settings(checkout)
        after = before.model_copy(update={"iso_label": "OTHERLBL"})
        assert _digest(before, ArtifactKind.INITRAMFS) != _digest(after, ArtifactKind.INITRAMFS)
        assert _digest(before, ArtifactKind.ISO) != _digest(after, ArtifactKind.ISO)
        assert _digest(before, ArtifactKind.ROOTFS) == _digest(after, ArtifactKind.ROOTFS)

    def test_erofs_compression_changes_rootfs(self, checkout: Path):
        before = _settings(checkout)
        after = _settings(checkout, erofs_compression_level=3)
        assert _digest(before, ArtifactKind.ROOTFS) != _digest(after, ArtifactKind.ROOTFS)
        assert _digest(before, ArtifactKind.INITRAMFS) == _digest(after, ArtifactKind.INITRAMFS)

    def test_gzip_level_changes_initramfs(self, checkout: Path):
        before = _settings(checkout, cpio_gzip_level=9)
        after = _settings(checkout, cpio_gzip_level=1)
        assert _digest(before, ArtifactKind.INITRAMFS) != _digest(after, ArtifactKind.INITRAMFS)

    def test_parameters_recorded_in_sidecar(self, checkout: Path):
        settings = _settings(checkout, iso_label="TESTLBL")
        oracle = FingerprintOracle(artifact_specs(settings))
        record = oracle.record(ArtifactKind.INITRAMFS)
        assert record.parameters["iso_label"] == "TESTLBL"


class TestRootfsInputs:
    def test_declares_staging_code_and_profile_scripts(self, checkout: Path):
        names = [item.name for item in rootfs.artifact_spec(_settings(checkout)).inputs]
        for expected in (
            "acornforge/distro.py",
            "acornforge/registry.py",
            "acornforge/custom/live.py",
            "acornforge/executor/files.py",
            f"{distro.PROFILE_SCRIPTS_DIR}/00-acorn-test.sh",
        ):
            assert expected in names

    def test_package_inputs_exist(self, checkout: Path):
        for spec in artifact_specs(_settings(checkout)):
            for item in spec.inputs:
                if item.name.startswith("acornforge/"):
                    assert item.path.is_file(), item.name

    def test_distro_edit_forces_rebuild(
        self, checkout: Path, tmp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        package = tmp_dir / "site" / "acornforge"
        shutil.copytree(
            Path(fingerprint.__file__).resolve().parents[1],
            package,
            ignore=shutil.ignore_patterns("__pycache__"),
        )
        monkeypatch.setattr(fingerprint, "_PACKAGE_DIR", package)
        oracle = FingerprintOracle([rootfs.artifact_spec(_settings(checkout))])
        oracle.record(ArtifactKind.ROOTFS)
        assert oracle.needs_rebuild(ArtifactKind.ROOTFS) is False

        with open(package / "distro.py", "a", encoding="utf-8") as fh:
            fh.write('OS_VERSION = "edited"\n')
        assert oracle.needs_rebuild(ArtifactKind.ROOTFS) is True

    def test_added_profile_script_forces_rebuild(self, checkout: Path):
        oracle = FingerprintOracle([rootfs.artifact_spec(_settings(checkout))])
        oracle.record(ArtifactKind.ROOTFS)
        assert oracle.needs_rebuild(ArtifactKind.ROOTFS) is False

        script = checkout / distro.PROFILE_SCRIPTS_DIR / "00-acorn-test.sh"
        script.parent.mkdir(parents=True)
        script.write_text("echo ready\n")
        assert oracle.needs_rebuild(ArtifactKind.ROOTFS) is True
