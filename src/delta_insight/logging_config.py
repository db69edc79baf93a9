"""
Logging configuration for Delta Insight.

Log records go to stderr through rich, so ``--json`` output on stdout stays
machine-readable. The level comes from the CLI flags, then ``DELTA_LOG_LEVEL``,
then WARNING. ``DELTA_LOG_FILE`` adds a plain-text file handler.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "DELTA_LOG_LEVEL"
LOG_FILE_ENV = "DELTA_LOG_FILE"

# Transport libraries that log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def _resolve_level(verbose: bool, quiet: bool) -> tuple[int, Optional[str]]:
    """Return the level to use and the rejected env value, if any."""
    if quiet:
        return logging.ERROR, None
    if verbose:
        return logging.DEBUG, None

    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return logging.WARNING, None
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return logging.WARNING, name
    return level, None


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the delta_insight logger tree.

    Args:
        verbose: DEBUG level, request logs from the LLM transport, source paths
        quiet: Only ERROR records
        log_file: Also append records to this file (default: ``DELTA_LOG_FILE``)

    Returns:
        The root delta_insight logger
    """
    level, rejected = _resolve_level(verbose, quiet)
    log_file = log_file or os.environ.get(LOG_FILE_ENV) or None

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else max(level, logging.WARNING))

    logger = logging.getLogger("delta_insight")
    logger.setLevel(level)
    if rejected:
        logger.warning("Ignoring %s=%s: not a logging level", LOG_LEVEL_ENV, rejected)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``delta_insight`` or a child of it; *name* is prefixed if needed."""
    if name is None:
        return logging.getLogger("delta_insight")

    if not name.startswith("delta_insight"):
        name = f"delta_insight.{name}"

    return logging.getLogger(name)
