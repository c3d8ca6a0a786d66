"""Tests for the typer CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from acornforge.cli.app import app
from acornforge.registry import ALL_COMPONENTS

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ACORNFORGE_ARTIFACT_STORE_PATH", "none")


class TestCli:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("build", "rootfs", "initramfs", "iso", "status", "preflight", "components"):
            assert command in result.output

    def test_components(self):
        result = runner.invoke(app, ["components"])
        assert result.exit_code == 0
        assert ALL_COMPONENTS[0].name in result.output
        assert ALL_COMPONENTS[-1].name in result.output

    def test_single_component_with_ops(self):
        result = runner.invoke(app, ["components", "--name", "busybox", "--ops"])
        assert result.exit_code == 0
        assert "busybox" in result.output

    def test_unknown_component(self):
        result = runner.invoke(app, ["components", "--name", "nope"])
        assert result.exit_code == 1
        assert "No component named" in result.output

    def test_preflight_without_upstream_rootfs(self, tmp_dir: Path):
        result = runner.invoke(app, ["preflight", "-C", str(tmp_dir)])
        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_status(self, base_dir: Path):
        result = runner.invoke(app, ["status", "-C", str(base_dir)])
        assert result.exit_code == 0
        assert "rootfs" in result.output

    def test_iso_without_inputs_fails_cleanly(self, base_dir: Path):
        result = runner.invoke(app, ["iso", "-C", str(base_dir)])
        assert result.exit_code == 1
        assert "Build failed" in result.output
        assert not (base_dir / "output" / "acornos.iso").exists()
