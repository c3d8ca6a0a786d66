"""``acornforge build`` and the single-artifact commands.

``build`` brings the rootfs, the initramfs and the ISO up to date in that
order. ``rootfs``, ``initramfs`` and ``iso`` do the same for one kind.
Unchanged artifacts are skipped unless ``--force`` is given.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from acornforge.cli.common import console, fail, load_settings
from acornforge.core.errors import BuildError
from acornforge.core.orchestrator import (
    BUILD_ORDER,
    BuildAction,
    BuildOrchestrator,
    BuildOutcome,
)
from acornforge.models.artifacts import ArtifactKind

_ACTION_STYLE = {
    BuildAction.SKIPPED: "[dim]skipped[/dim]",
    BuildAction.RESTORED: "[cyan]restored[/cyan]",
    BuildAction.BUILT: "[green]built[/green]",
}

BaseDirOption = typer.Option(None, "--base-dir", "-C", help="Project directory (default: current).")
ForceOption = typer.Option(False, "--force", "-f", help="Rebuild even if inputs are unchanged.")
NoStoreOption = typer.Option(False, "--no-store", help="Bypass the cross-run artifact store.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging.")


def _print_outcomes(outcomes: list[BuildOutcome]) -> None:
    table = Table(title="Build Result")
    table.add_column("Artifact", style="cyan")
    table.add_column("Action")
    table.add_column("Path")
    table.add_column("Inputs", style="dim")
    for outcome in outcomes:
        table.add_row(
            outcome.kind.value,
            _ACTION_STYLE[outcome.action],
            str(outcome.artifact),
            (outcome.digest or "")[:16],
        )
    console.print(table)


def _run(
    kinds: list[ArtifactKind],
    base_dir: Path | None,
    force: bool,
    no_store: bool,
    verbose: bool,
) -> None:
    settings = load_settings(base_dir, verbose=verbose, no_store=no_store)
    orchestrator = BuildOrchestrator(settings)
    try:
        outcomes = orchestrator.build_all(force=force, kinds=kinds)
    except BuildError as exc:
        raise fail(exc) from exc
    _print_outcomes(outcomes)


def build_cmd(
    base_dir: Path = BaseDirOption,
    force: bool = ForceOption,
    no_store: bool = NoStoreOption,
    verbose: bool = VerboseOption,
) -> None:
    """Build every artifact: rootfs, initramfs, then the ISO."""
    _run(list(BUILD_ORDER), base_dir, force, no_store, verbose)


def rootfs_cmd(
    base_dir: Path = BaseDirOption,
    force: bool = ForceOption,
    no_store: bool = NoStoreOption,
    verbose: bool = VerboseOption,
) -> None:
    """Assemble the staging tree and pack the EROFS image."""
    _run([ArtifactKind.ROOTFS], base_dir, force, no_store, verbose)


def initramfs_cmd(
    base_dir: Path = BaseDirOption,
    force: bool = ForceOption,
    no_store: bool = NoStoreOption,
    verbose: bool = VerboseOption,
) -> None:
    """Build the tiny live initramfs."""
    _run([ArtifactKind.INITRAMFS], base_dir, force, no_store, verbose)


def iso_cmd(
    base_dir: Path = BaseDirOption,
    force: bool = ForceOption,
    verbose: bool = VerboseOption,
) -> None:
    """Build the bootable ISO from the existing rootfs and initramfs."""
    _run([ArtifactKind.ISO], base_dir, force, False, verbose)
