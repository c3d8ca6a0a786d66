"""``acornforge status``: show which artifacts are current."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from acornforge.cli.common import console, load_settings
from acornforge.core.orchestrator import BuildOrchestrator


def status_cmd(
    base_dir: Path = typer.Option(None, "--base-dir", "-C", help="Project directory (default: current)."),
) -> None:
    """Show each artifact, whether it exists and whether it needs a rebuild."""
    settings = load_settings(base_dir)
    orchestrator = BuildOrchestrator(settings)

    table = Table(title="Artifact Status")
    table.add_column("Artifact", style="cyan")
    table.add_column("Exists", justify="center")
    table.add_column("State")
    table.add_column("Fingerprinted", style="dim")
    table.add_column("Path", style="dim")

    for row in orchestrator.status():
        exists = "[green]Yes[/green]" if row.exists else "[red]No[/red]"
        state = "[yellow]rebuild[/yellow]" if row.needs_rebuild else "[green]up to date[/green]"
        recorded = row.recorded_at.strftime("%Y-%m-%d %H:%M:%S") if row.recorded_at else "-"
        table.add_row(row.kind.value, exists, state, recorded, str(row.artifact))

    console.print(table)
