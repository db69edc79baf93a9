"""Version commands: ``upload`` and ``versions``."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import DeltaInsightError
from ..logging_config import setup_logging
from ..persistence.models import CodeVersion
from ..server.serializers import version_to_dict
from . import app
from ._common import (
    CONFIG_OPTION,
    DATABASE_OPTION,
    JSON_OPTION,
    OWNER_OPTION,
    VERBOSE_OPTION,
    cli_services,
    console,
    emit_json,
    fail,
    owner_context,
    resolve_config,
)

_SEVERITY_STYLE = {"high": "red", "medium": "yellow", "low": "dim"}


@app.command()
def upload(
    project_id: str = typer.Argument(..., help="Project to add the version to"),
    source: Path = typer.Argument(
        ...,
        help="Source file to analyze (its text is not stored)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Version label"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Upload a new code version and analyze it.

    [bold cyan]Examples:[/bold cyan]

      delta-insight upload 3f2a... app.py --label v2 --owner alice
    """
    setup_logging(verbose=verbose)
    source_code = source.read_text(encoding="utf-8", errors="replace")
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            with console.status("[cyan]Analyzing..."):
                version = services.versions.upload(ctx, project_id, source_code, label)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json(version_to_dict(version))
        return
    _print_version(version)


@app.command()
def versions(
    project_id: str = typer.Argument(..., help="Project whose versions to list"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the versions of a project, newest first."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            items = services.versions.list(ctx, project_id)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json([version_to_dict(v) for v in items])
        return
    if not items:
        console.print("[yellow]No versions uploaded yet.[/yellow]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("ID", style="dim")
    table.add_column("Label", style="bold")
    table.add_column("Uploaded")
    table.add_column("Analysis")
    table.add_column("Issues", justify="right")
    for v in items:
        if v.analysis is None:
            status, count = "[dim]none[/dim]", ""
        elif v.analysis.failed:
            status, count = "[red]failed[/red]", "0"
        else:
            status, count = "[green]completed[/green]", str(len(v.analysis.issues))
        table.add_row(v.id, v.version_label or "", v.uploaded_at[:19], status, count)
    console.print(table)


def _print_version(version: CodeVersion) -> None:
    analysis = version.analysis
    console.print(
        f"[green]Uploaded version[/green] {version.version_label or version.id} "
        f"[dim]({version.id})[/dim]"
    )
    if analysis is None:
        return
    if analysis.failed:
        console.print(f"[red]Analysis failed:[/red] {analysis.failure_reason}")
        console.print("[dim]Re-run the analysis once the analyzer is reachable.[/dim]")
        return

    console.print(f"[bold]Summary:[/bold] {analysis.summary}")
    if not analysis.issues:
        console.print("[green]No issues found.[/green]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Issue", style="bold")
    table.add_column("Severity")
    table.add_column("Complexity")
    table.add_column("Function")
    table.add_column("Lines", justify="right")
    for issue in analysis.issues:
        style = _SEVERITY_STYLE[issue.severity.value]
        lines = ""
        if issue.start_line is not None:
            lines = f"{issue.start_line}-{issue.end_line or issue.start_line}"
        table.add_row(
            issue.issue_code.value,
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.complexity.label,
            issue.function_name or "",
            lines,
        )
    console.print(table)
