"""``delta-insight serve``: run the HTTP API."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import DeltaInsightError
from ..logging_config import setup_logging
from . import app
from ._common import CONFIG_OPTION, DATABASE_OPTION, VERBOSE_OPTION, console, fail, resolve_config


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to listen on"),
    host: Optional[str] = typer.Option(None, help="Host to bind to"),
    config: Optional[Path] = CONFIG_OPTION,
    database: Optional[Path] = DATABASE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Start the HTTP API.

    Requests identify their owner with the [bold]X-Owner-Id[/bold] header.

    [bold cyan]Examples:[/bold cyan]

      delta-insight serve

      delta-insight serve --port 8080 --db ./review.db
    """
    import uvicorn

    from ..server.app import create_app

    setup_logging(verbose=verbose)
    try:
        settings = resolve_config(config=config, database=database, verbose=verbose)
    except DeltaInsightError as e:
        fail(e)
    setup_logging(
        verbose=settings.verbosity == "verbose", quiet=settings.verbosity == "quiet"
    )

    bind_host = host or settings.host
    bind_port = port or settings.port
    url = f"http://{bind_host}:{bind_port}"
    console.print(f"[bold]API[/bold] → [link={url}]{url}[/link]")
    console.print(f"[dim]Database: {settings.database_path}[/dim]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    asgi_app = create_app(settings)
    try:
        uvicorn.run(
            asgi_app,
            host=bind_host,
            port=bind_port,
            log_level="info" if settings.verbosity == "verbose" else "warning",
        )
    except KeyboardInterrupt:
        pass
    finally:
        console.print("\n[dim]Stopped.[/dim]")
