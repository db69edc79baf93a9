"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="delta-insight",
    help="Delta Insight - deterministic comparison of analyzed code versions",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .serve import serve as _serve  # noqa: F401, E402
from .projects import project_create as _project_create, projects as _projects  # noqa: F401, E402
from .versions import upload as _upload, versions as _versions  # noqa: F401, E402
from .compare import compare as _compare, comparison as _comparison  # noqa: F401, E402
from .compare import comparisons as _comparisons, explain as _explain  # noqa: F401, E402
from .stats import stats as _stats  # noqa: F401, E402
