"""Main Typer application — imports and registers all CLI commands.

Entry point: ``artifactsync`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from artifactsync.cli.commands.sync import sync_cmd
from artifactsync.cli.commands.validate import validate_cmd

app = typer.Typer(
    name="artifactsync",
    help="Host artifact content on IPFS: pinning services and archival storage.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="sync", help="Synchronize artifact content to remote destinations.")(sync_cmd)
app.command(name="validate", help="Validate the artifact files in the working tree.")(validate_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
