"""mixver CLI - Command line interface for mixver."""

from __future__ import annotations

from mixver.cli.commands import cli


def main() -> None:
    """Main entry point for the mixver CLI."""
    cli()


__all__ = ["cli", "main"]
