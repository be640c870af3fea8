"""
Rendering functions for reconverge output.

This module handles the end-of-run summary. Services return a RunReport,
this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from rich.markup import escape
from typing import Optional

from .domain.operation import RunReport, StageResult

console = Console(stderr=True)

REBOOT_BANNER = "✅ All done! Please REBOOT your system to finalize everything."


def _stage_status(stage: StageResult) -> str:
    if stage.error:
        return "[red]aborted[/red]"
    if stage.skipped:
        return "[dim]nothing to do[/dim]"
    if stage.failed:
        return "[yellow]partial[/yellow]"
    return "[green]ok[/green]"


def render_report(report: RunReport, target: Optional[Console] = None) -> None:
    """
    Render the run report as a table, followed by failure details.

    Args:
        report: Outcome of a convergence run
        target: Console to print to (defaults to stderr)
    """
    out = target or console

    table = Table(
        title="Convergence Summary",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    table.add_column("OK", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")

    for stage in report.stages:
        table.add_row(
            stage.stage,
            _stage_status(stage),
            str(stage.total),
            str(stage.successful),
            str(stage.failed),
        )

    out.print(table)

    for stage in report.failed_stages:
        if stage.error:
            out.print(f"[red]✗ {stage.stage}:[/red] {escape(stage.error)}")
        for error in stage.errors:
            out.print(f"[red]✗ {stage.stage}:[/red] {escape(error)}")


def render_banner(target: Optional[Console] = None) -> None:
    (target or console).print(f"[bold]{REBOOT_BANNER}[/bold]")
