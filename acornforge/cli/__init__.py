"""acornforge CLI: Typer-based command-line interface.

Provides the ``acornforge`` command with subcommands for building the
artifacts, showing their freshness, checking host tools and listing the
component registry.

All output uses Rich for formatted terminal display.
"""
