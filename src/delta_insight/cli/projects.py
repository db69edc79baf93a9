"""Project commands: ``project-create`` and ``projects``."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import DeltaInsightError
from ..logging_config import setup_logging
from ..server.serializers import project_to_dict
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


@app.command(name="project-create")
def project_create(
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Create a project.

    [bold cyan]Examples:[/bold cyan]

      delta-insight project-create "payments service" --owner alice
    """
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            project = services.projects.create(ctx, name, description)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json(project_to_dict(project))
        return
    console.print(f"[green]Created project[/green] {project.name} [dim]({project.id})[/dim]")


@app.command()
def projects(
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    json_output: bool = JSON_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List your projects, newest first."""
    setup_logging(verbose=verbose)
    try:
        ctx = owner_context(owner)
        settings = resolve_config(config=config, database=database, verbose=verbose)
        with cli_services(settings) as services:
            items = services.projects.list(ctx)
    except DeltaInsightError as e:
        fail(e)

    if json_output:
        emit_json([project_to_dict(p) for p in items])
        return
    if not items:
        console.print("[yellow]No projects yet.[/yellow] Create one with 'delta-insight project-create'.")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Created")
    for p in items:
        table.add_row(p.id, p.name, p.description or "", p.created_at[:19])
    console.print(table)
