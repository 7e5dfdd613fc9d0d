"""``artifactsync validate`` — check the artifact files in the working tree.

No remote is contacted. Every invalid file is reported before exiting.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from artifactsync.config import OperatingMode, SyncConfig
from artifactsync.core.engine import SyncEngine
from artifactsync.log import configure_logging
from artifactsync.metadata.tree import MetadataSourceError, WorkingTreeSource
from artifactsync.output.renderer import SummaryRenderer


def validate_cmd(
    repo: Optional[Path] = typer.Option(
        None, "--repo", "-r", help="Path of the git repo containing the artifact files."
    ),
    path: Optional[str] = typer.Option(
        None, "--path", help="Path of the artifact files in the repository."
    ),
) -> None:
    """Parse and validate every artifact file in the working tree."""
    config = SyncConfig.from_environment(repo=repo, path=path, mode=OperatingMode.VALIDATE)
    configure_logging(config.log_level, action=config.action)
    renderer = SummaryRenderer(action=config.action)

    source = WorkingTreeSource(config.repo, config.path)
    try:
        snapshot = SyncEngine(source).prepare()
    except MetadataSourceError as exc:
        renderer.error(str(exc))
        raise typer.Exit(code=1)

    if source.invalid:
        renderer.invalid_files(source.invalid)
        raise typer.Exit(code=1)

    renderer.skipped(snapshot.skipped)
    renderer.console.print(
        f"[green]{len(snapshot.states)} artifact files are valid[/green] "
        f"({len(snapshot.cids)} unique CIDs)"
    )
