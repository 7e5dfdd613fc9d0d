"""artifactsync CLI — Typer-based command-line interface.

Provides the ``artifactsync`` command with ``sync`` and ``validate``
subcommands. Summaries are rendered with Rich.
"""
