"""Comparison commands: ``compare``, ``comparisons``, ``comparison`` and ``explain``."""

from pathlib import Path
from typing import Optional

import typer
from rich.markdown import Markdown
from rich.table import Table

from ..comparison.models import ChangeType, Comparison
from ..exceptions import DeltaInsightError
from ..logging_config import setup_logging
from ..server.serializers import comparison_to_dict, explanation_to_dict
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

_CHANGE_STYLE = {
    ChangeType.IMPROVED: "green",
    ChangeType.WORSENED: "red",
    ChangeType.UNCHANGED: "dim",
}


@app.command()
def compare(
    project_id: str = typer.Argument(..., help="Project both versions belong to"),
    from_version: str = typer.Argument(..., help="Earlier version id"),
    to_version: str = typer.Argument(..., help="Later version id"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Compare two analyzed versions of a project.

    The comparison is deterministic and cached: asking again for the same
    ordered pair returns the stored result. Swapping the versions is a
    different comparison.

    [bold cyan]Examples:[/bold cyan]

      delta-insight compare <project> <v1> <v2> --owner alice

      delta-insight compare <project> <v1> <v2> --json
    """
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            outcome = services.comparisons.compare_versions(ctx, project_id, from_version, to_version)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        data = comparison_to_dict(outcome.comparison)
        data["cached"] = outcome.cached
        emit_json(data)
        return
    if outcome.cached:
        console.print("[dim]Cached comparison[/dim]")
    _print_comparison(outcome.comparison)


@app.command()
def comparisons(
    project_id: str = typer.Argument(..., help="Project whose comparisons to list"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List the comparisons of a project, newest first."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            items = services.comparisons.list_comparisons(ctx, project_id)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json([comparison_to_dict(c) for c in items])
        return
    if not items:
        console.print("[yellow]No comparisons yet.[/yellow]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("ID", style="dim")
    table.add_column("Created")
    table.add_column("Improved", justify="right", style="green")
    table.add_column("Worsened", justify="right", style="red")
    table.add_column("Unchanged", justify="right")
    for c in items:
        table.add_row(
            c.id,
            c.created_at[:19],
            str(c.count(ChangeType.IMPROVED)),
            str(c.count(ChangeType.WORSENED)),
            str(c.count(ChangeType.UNCHANGED)),
        )
    console.print(table)


@app.command()
def comparison(
    comparison_id: str = typer.Argument(..., help="Comparison id"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show a stored comparison."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            found = services.comparisons.get_comparison(ctx, comparison_id)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json(comparison_to_dict(found))
        return
    _print_comparison(found)


@app.command()
def explain(
    comparison_id: str = typer.Argument(..., help="Comparison id"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Explain a comparison in plain language (generated once, then cached)."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            with console.status("[cyan]Generating explanation..."):
                explanation = services.comparisons.explain_comparison(ctx, comparison_id)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json(explanation_to_dict(explanation))
        return
    console.print(Markdown(explanation.text))


def _print_comparison(found: Comparison) -> None:
    console.print(
        f"[bold]Comparison[/bold] [dim]{found.id}[/dim]  "
        f"[green]{found.count(ChangeType.IMPROVED)} improved[/green], "
        f"[red]{found.count(ChangeType.WORSENED)} worsened[/red], "
        f"{found.count(ChangeType.UNCHANGED)} unchanged"
    )
    if not found.results:
        console.print("[dim]Neither version reported any issues.[/dim]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Issue", style="bold")
    table.add_column("Change")
    table.add_column("Before")
    table.add_column("After")
    for r in found.results:
        style = _CHANGE_STYLE[r.change_type]
        before = f"{r.before_severity.value} {r.before_complexity.label}" if r.before_severity else "-"
        after = f"{r.after_severity.value} {r.after_complexity.label}" if r.after_severity else "-"
        table.add_row(
            r.issue_code.value, f"[{style}]{r.change_type.value}[/{style}]", before, after
        )
    console.print(table)

    if found.explanation is not None:
        console.print()
        console.print(Markdown(found.explanation.text))
