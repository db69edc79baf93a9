"""``delta-insight stats``: totals, issue trend, top issues and recent activity."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import DeltaInsightError
from ..logging_config import setup_logging
from ..server.serializers import (
    activity_to_list,
    overall_to_dict,
    top_issues_to_list,
    trends_to_list,
)
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


def _bar(value: int, peak: int, width: int = 20) -> str:
    if peak <= 0:
        return ""
    return "█" * max(1 if value else 0, round(value / peak * width))


@app.command()
def stats(
    days: Optional[int] = typer.Option(None, "--days", help="Days in the issue trend", min=1),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", help="Length of the top-issue and activity lists", min=1
    ),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show your totals, issue trend, most frequent issues and recent activity."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            overall = services.stats.overall(ctx)
            trend = services.stats.trends(ctx, days=days)
            top = services.stats.top_issues(ctx, limit=limit)
            activity = services.stats.activity(ctx, limit=limit)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json(
            {
                "overall": overall_to_dict(overall),
                "trends": trends_to_list(trend),
                "topIssues": top_issues_to_list(top),
                "activity": activity_to_list(activity),
            }
        )
        return

    console.print(
        f"[bold]{overall.total_projects}[/bold] project(s), "
        f"[bold]{overall.total_versions}[/bold] version(s), "
        f"[bold]{overall.total_issues}[/bold] issue(s), "
        f"[bold]{overall.total_comparisons}[/bold] comparison(s)"
    )
    b = overall.breakdown
    console.print(
        f"Results: [green]{b['IMPROVED']} improved[/green], "
        f"[red]{b['WORSENED']} worsened[/red], {b['UNCHANGED']} unchanged"
    )

    console.print()
    console.print("[bold]Issues per day[/bold]")
    peak = max((p.issues for p in trend), default=0)
    for p in trend:
        console.print(f"  {p.date}  {p.issues:>4}  [cyan]{_bar(p.issues, peak)}[/cyan]")

    if top:
        console.print()
        table = Table(title="Top issues", show_header=True, pad_edge=True)
        table.add_column("Issue", style="bold")
        table.add_column("Count", justify="right")
        for t in top:
            table.add_row(t.issue_code, str(t.count))
        console.print(table)

    if activity:
        console.print()
        table = Table(title="Recent activity", show_header=True, pad_edge=True)
        table.add_column("When")
        table.add_column("Event")
        table.add_column("Project", style="bold")
        table.add_column("Detail")
        for e in activity:
            if e.type == "analysis":
                detail = f"{e.version_label or '(unlabeled)'}: {e.issue_count} issue(s)"
            else:
                detail = f"{e.result_count} result(s)"
            table.add_row(e.created_at[:19], e.type, e.project_name, detail)
        console.print(table)
