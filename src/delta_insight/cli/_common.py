"""Shared CLI helpers."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console

from ..ai.analyzer import CodeAnalyzer
from ..ai.client import LLMClient, OpenAILikeClient
from ..ai.explainer import ComparisonExplainer
from ..config import ServiceConfig, load_config
from ..exceptions import DeltaInsightError
from ..services import Services, open_services
from ..services.context import OwnerContext

console = Console()

# Shared option declarations
OWNER_OPTION = typer.Option(
    None, "--owner", "-o", envvar="DELTA_OWNER_ID", help="Owner id the command acts for"
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Configuration file (TOML)",
    exists=True,
    file_okay=True,
    dir_okay=False,
)
DATABASE_OPTION = typer.Option(None, "--db", help="Review database path")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")
JSON_OPTION = typer.Option(False, "--json", help="Output in machine-readable JSON format")


def resolve_config(
    config: Optional[Path] = None,
    database: Optional[Path] = None,
    verbose: bool = False,
) -> ServiceConfig:
    """Build configuration from CLI options."""
    overrides: dict[str, Any] = {}
    if database is not None:
        overrides["database_path"] = str(database)
    if verbose:
        overrides["verbose"] = True
    return load_config(config_file=config, **overrides)


def build_llm_client(config: ServiceConfig) -> LLMClient:
    return OpenAILikeClient.from_config(config)


@contextmanager
def cli_services(config: ServiceConfig) -> Iterator[Services]:
    """Open services with the analyzer and explainer wired to the configured LLM."""
    client = build_llm_client(config)
    analyzer = CodeAnalyzer(client, timeout=config.llm_timeout_seconds, model=config.llm_model)
    explainer = ComparisonExplainer(
        client, timeout=config.llm_timeout_seconds, model=config.llm_model
    )
    with open_services(config, analyzer=analyzer, explainer=explainer) as services:
        yield services


def owner_context(owner: Optional[str]) -> OwnerContext:
    return OwnerContext.from_header(owner)


def emit_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


def fail(error: DeltaInsightError) -> NoReturn:
    """Print a domain error and exit with status 1."""
    console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)
