"""``acornforge preflight``: check host tools and the upstream tree."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from acornforge.cli.common import console, load_settings
from acornforge.core.preflight import run_preflight


def preflight_cmd(
    base_dir: Path = typer.Option(None, "--base-dir", "-C", help="Project directory (default: current)."),
) -> None:
    """Exit non-zero if a required tool or the upstream rootfs is missing."""
    settings = load_settings(base_dir)
    results = run_preflight(settings.source_rootfs)

    table = Table(title="Preflight")
    table.add_column("Check", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Detail")
    table.add_column("Hint", style="dim")
    for result in results:
        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        table.add_row(result.name, status, result.detail, result.hint)
    console.print(table)

    failed = [r for r in results if not r.passed]
    if failed:
        console.print(f"[red]{len(failed)} check(s) failed.[/red]")
        raise typer.Exit(code=1)
    console.print("[green]All checks passed.[/green]")
