"""Main Typer application: imports and registers all CLI commands.

Entry point: ``acornforge`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import typer

from acornforge.cli.commands.build import build_cmd, initramfs_cmd, iso_cmd, rootfs_cmd
from acornforge.cli.commands.components import components_cmd
from acornforge.cli.commands.preflight import preflight_cmd
from acornforge.cli.commands.status import status_cmd

app = typer.Typer(
    name="acornforge",
    help="acornforge: declarative, re-runnable AcornOS image builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="build", help="Build rootfs, initramfs and ISO (skipping unchanged ones).")(build_cmd)
app.command(name="rootfs", help="Build the EROFS rootfs image.")(rootfs_cmd)
app.command(name="initramfs", help="Build the tiny live initramfs.")(initramfs_cmd)
app.command(name="iso", help="Build the bootable live ISO.")(iso_cmd)
app.command(name="status", help="Show artifact freshness.")(status_cmd)
app.command(name="preflight", help="Check host tools and the upstream rootfs.")(preflight_cmd)
app.command(name="components", help="List the component registry.")(components_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
