"""``artifactsync sync`` — synchronize artifact content to remote destinations.

Loads artifact revisions (working tree or git history), resolves the latest
file CIDs, builds the directory tree on the node service and then brings
every configured destination up to date.
"""

from __future__ import annotations

import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from artifactsync.config import OperatingMode, OutputType, SyncConfig
from artifactsync.core.engine import LocalSnapshot, SyncEngine
from artifactsync.core.provenance import Provenance
from artifactsync.core.remote import Destination, MetadataSource
from artifactsync.core.tree_builder import TreeBuildError
from artifactsync.log import configure_logging
from artifactsync.metadata.git_history import GitHistorySource
from artifactsync.metadata.tree import MetadataSourceError, WorkingTreeSource
from artifactsync.output.formatters import format_artifacts, format_cids, write_action_outputs
from artifactsync.output.renderer import SummaryRenderer
from artifactsync.remote.archival import ArchivalDestination
from artifactsync.remote.kubo import KuboNodeService
from artifactsync.remote.pinning import PinningServiceDestination


def build_source(config: SyncConfig) -> MetadataSource:
    if config.mode == OperatingMode.HISTORY:
        return GitHistorySource(config.repo, config.path)
    return WorkingTreeSource(config.repo, config.path)


def build_renderer(config: SyncConfig) -> SummaryRenderer:
    # JSON output owns stdout; everything else goes to stderr.
    to_stderr = not config.action and config.output != OutputType.SUMMARY
    return SummaryRenderer(Console(stderr=to_stderr), action=config.action)


def emit_outputs(config: SyncConfig, snapshot: LocalSnapshot) -> None:
    """JSON outputs: step outputs in Action mode, stdout otherwise."""
    if config.action:
        write_action_outputs(
            {
                "artifacts": format_artifacts(snapshot.revisions, pretty=False),
                "cids": format_cids(snapshot.cids, pretty=False),
            },
            stream=sys.stdout,
        )
    elif config.output == OutputType.ARTIFACTS:
        typer.echo(format_artifacts(snapshot.revisions))
    elif config.output == OutputType.CIDS:
        typer.echo(format_cids(snapshot.cids))


def build_remotes(
    config: SyncConfig, stack: ExitStack
) -> tuple[KuboNodeService | None, list[Destination]]:
    """The node service and destinations the config enables."""
    if not config.any_destination:
        return None, []

    provenance = Provenance(config.provenance_tag)
    nodes = KuboNodeService(config.ipfs_api, timeout=config.request_timeout)
    stack.callback(nodes.close)

    destinations: list[Destination] = []
    if config.pinning_enabled:
        pinning = PinningServiceDestination(
            config.pin_endpoint or "",
            config.pin_token.get_secret_value() if config.pin_token else "",
            provenance=provenance,
            timeout=config.request_timeout,
        )
        stack.callback(pinning.close)
        destinations.append(pinning)
    if config.archival_enabled:
        archival = ArchivalDestination(
            config.w3s_token.get_secret_value() if config.w3s_token else "",
            nodes,
            endpoint=config.w3s_endpoint,
            provenance=provenance,
            timeout=config.request_timeout,
        )
        stack.callback(archival.close)
        destinations.append(archival)
    return nodes, destinations


def run_sync(config: SyncConfig) -> int:
    """Run the whole pipeline for *config*. Returns the process exit code."""
    configure_logging(config.log_level, action=config.action)
    renderer = build_renderer(config)
    source = build_source(config)

    with ExitStack() as stack:
        nodes, destinations = build_remotes(config, stack)
        engine = SyncEngine(
            source,
            nodes=nodes,
            destinations=destinations,
            dry_run=config.dry_run,
            page_size=config.page_size,
        )

        try:
            snapshot = engine.prepare()
        except MetadataSourceError as exc:
            renderer.error(str(exc))
            return 1

        invalid = getattr(source, "invalid", [])
        if invalid:
            renderer.invalid_files(invalid)
            return 1

        emit_outputs(config, snapshot)

        try:
            report = engine.synchronize(snapshot)
        except TreeBuildError as exc:
            renderer.skipped(snapshot.skipped)
            renderer.error(str(exc))
            return 1

    renderer.print_report(report)
    return 1 if report.failed else 0


def sync_cmd(
    repo: Optional[Path] = typer.Option(
        None, "--repo", "-r", help="Path of the git repo containing the artifact files."
    ),
    mode: Optional[OperatingMode] = typer.Option(
        None, "--mode", "-m", help="Read the working tree (validate) or the git history (history)."
    ),
    path: Optional[str] = typer.Option(
        None, "--path", help="Path of the artifact files in the repository."
    ),
    ipfs_api: Optional[str] = typer.Option(
        None, "--ipfs-api", help="Base URL of the IPFS node RPC API."
    ),
    pin_endpoint: Optional[str] = typer.Option(
        None, "--pin-endpoint", help="URL of the IPFS pinning service API endpoint."
    ),
    pin_token: Optional[str] = typer.Option(
        None, "--pin-token", help="Bearer token for the pinning service."
    ),
    w3s_token: Optional[str] = typer.Option(
        None, "--w3s-token", help="API token for the archival service."
    ),
    output: Optional[OutputType] = typer.Option(
        None, "--output", "-o", help="Output to produce: summary, artifacts or cids."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Reconcile fully but submit nothing."
    ),
    action: bool = typer.Option(
        False, "--action", hidden=True, help="Run as a GitHub Action."
    ),
) -> None:
    """Synchronize artifact content to the configured destinations.

    Pinning needs [bold]--pin-endpoint[/bold] and [bold]--pin-token[/bold];
    archival uploads need [bold]--w3s-token[/bold]. With neither, the
    artifacts are only loaded and reported.
    """
    config = SyncConfig.from_environment(
        repo=repo,
        mode=mode,
        path=path,
        ipfs_api=ipfs_api,
        pin_endpoint=pin_endpoint,
        pin_token=pin_token,
        w3s_token=w3s_token,
        output=output,
        # Flags only ever switch these on; off falls through to the environment.
        dry_run=dry_run or None,
        action=action or None,
    )
    raise typer.Exit(code=run_sync(config))
