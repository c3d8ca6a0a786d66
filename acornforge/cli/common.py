"""Shared CLI plumbing: settings overrides, logging and error reporting."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from acornforge.config import BuildSettings
from acornforge.core.errors import BuildError

console = Console()


def configure_logging(level: str) -> None:
    """Route all pipeline logging through one rich handler."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def load_settings(
    base_dir: Path | None = None,
    verbose: bool = False,
    no_store: bool = False,
) -> BuildSettings:
    """Environment settings with command-line overrides applied."""
    overrides: dict[str, object] = {}
    if base_dir is not None:
        overrides["base_dir"] = base_dir
    if verbose:
        overrides["log_level"] = "DEBUG"
    if no_store:
        overrides["artifact_store_path"] = None
    settings = BuildSettings(**overrides)
    configure_logging(settings.log_level)
    return settings


def fail(exc: BuildError) -> typer.Exit:
    """Print a build error and return the exit to raise."""
    console.print(f"[bold red]Build failed:[/bold red] {exc}")
    cause = exc.__cause__
    while cause is not None:
        console.print(f"  [dim]caused by:[/dim] {cause}")
        cause = cause.__cause__
    return typer.Exit(code=1)
