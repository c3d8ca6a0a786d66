"""``acornforge components``: enumerate the static component registry.

Nothing is executed; this only reads the module-level tables.
"""

from __future__ import annotations

import typer
from rich.table import Table

from acornforge.cli.common import console
from acornforge.registry import ALL_COMPONENTS


def components_cmd(
    ops: bool = typer.Option(False, "--ops", help="List every operation of every component."),
    name: str = typer.Option(None, "--name", "-n", help="Only show this component."),
) -> None:
    """List components in execution order with their phase."""
    components = [c for c in ALL_COMPONENTS if name is None or c.name == name]
    if not components:
        console.print(f"[red]No component named {name!r}.[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Components")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Component", style="cyan")
    table.add_column("Phase")
    table.add_column("Ops", justify="right")
    if ops:
        table.add_column("Operations")

    for index, component in enumerate(components, start=1):
        row = [
            str(index),
            component.name,
            component.phase.display_name,
            str(len(component.ops)),
        ]
        if ops:
            row.append("\n".join(op.describe() for op in component.ops))
        table.add_row(*row)

    console.print(table)
