"""Human-facing rendering of a run: Rich summary or Action annotations.

Colour scheme
-------------
- green  : destination up to date or synchronized
- yellow : dry run, skipped entries
- red    : failures
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from artifactsync.models.report import DestinationReport, SkippedEntry, SyncReport


class SummaryRenderer:
    """Renders reports and problems for a terminal or a workflow log.

    Parameters
    ----------
    console:
        Rich Console instance. A new one is created if not provided.
    action:
        Emit GitHub Actions workflow commands instead of Rich markup.
    """

    def __init__(self, console: Console | None = None, *, action: bool = False) -> None:
        self.console = console or Console()
        self.action = action

    # ------------------------------------------------------------------
    # Problems
    # ------------------------------------------------------------------

    def error(self, message: str) -> None:
        if self.action:
            # Workflow commands are single-line; escape as the runner expects.
            escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
            self.console.out(f"::error::{escaped}", highlight=False)
        else:
            self.console.print(f"[bold red]Error:[/bold red] {message}", markup=True, highlight=False)

    def group(self, title: str, lines: Sequence[str]) -> None:
        if not lines:
            return
        if self.action:
            self.console.out(f"::group::{title}", highlight=False)
            for line in lines:
                self.console.out(line, highlight=False)
            self.console.out("::endgroup::", highlight=False)
        else:
            self.console.print(f"[bold]{title}[/bold]")
            for line in lines:
                self.console.print(f"  {line}", markup=False, highlight=False)

    def skipped(self, entries: Sequence[SkippedEntry]) -> None:
        self.group(
            f"Skipped {len(entries)} entries",
            [entry.describe() for entry in entries],
        )

    def invalid_files(self, errors: Sequence[Exception]) -> None:
        self.error("one or more artifact files are invalid")
        self.group("Artifact file errors:", [str(error) for error in errors])

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    @staticmethod
    def _status(report: DestinationReport) -> str:
        if report.failed:
            return "[bold red]FAILED[/bold red]"
        if not report.jobs:
            return "[green]up to date[/green]"
        if report.dry_run:
            return f"[yellow]would submit {len(report.jobs)}[/yellow]"
        return f"[green]submitted {len(report.jobs)}[/green]"

    def destination_table(self, reports: Sequence[DestinationReport]) -> Table:
        table = Table(title="Destinations", expand=False)
        table.add_column("Destination", style="cyan")
        table.add_column("Local", justify="right")
        table.add_column("Listed", justify="right")
        table.add_column("Confirmed", justify="right")
        table.add_column("Missing", justify="right")
        table.add_column("Status")

        for report in reports:
            table.add_row(
                report.destination,
                str(report.local_count),
                str(report.swept_count),
                f"{report.confirmed_count}/{report.gap_count}",
                str(len(report.jobs)),
                self._status(report),
            )
        return table

    def render_summary(self, report: SyncReport) -> Panel:
        lines = [
            f"[bold]Artifacts:[/bold]    {report.artifact_count}",
            f"[bold]Unique CIDs:[/bold]  {report.unique_cid_count}",
        ]
        if report.root is not None:
            lines.append(f"[bold]Root:[/bold]         /ipfs/{report.root}")
        if report.skipped:
            lines.append(f"[yellow]Skipped entries: {len(report.skipped)}[/yellow]")
        if any(d.dry_run for d in report.destinations):
            lines.append("[yellow]Dry run: nothing was submitted.[/yellow]")

        border = "red" if report.failed else "green"
        return Panel(
            "\n".join(lines),
            title="[bold]artifactsync[/bold]",
            border_style=border,
            padding=(1, 2),
        )

    def print_report(self, report: SyncReport) -> None:
        """Skipped entries, destination errors, then the summary."""
        self.skipped(report.skipped)
        for destination in report.destinations:
            if destination.error is not None:
                self.error(destination.error)

        if self.action:
            if report.root is not None:
                self.console.out(f"Root directory: /ipfs/{report.root}", highlight=False)
            return

        self.console.print()
        self.console.print(self.render_summary(report))
        if report.destinations:
            self.console.print(self.destination_table(report.destinations))
        self.console.print()
